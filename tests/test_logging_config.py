import json
import logging
from pathlib import Path

from expense_tracker.core.config import Settings
from expense_tracker.core.logging import JsonFormatter, RequestIdFilter, request_id_ctx


def make_record(**extra):
    record = logging.LogRecord(
        "expense_tracker.expenses", logging.INFO, __file__, 1, "expense created", None, None
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_formatter_includes_request_id_and_extras():
    token = request_id_ctx.set("req-1")
    try:
        record = make_record(operation="create", expense_id=3)
        RequestIdFilter().filter(record)
        line = json.loads(JsonFormatter().format(record))
    finally:
        request_id_ctx.reset(token)
    assert line["message"] == "expense created"
    assert line["level"] == "INFO"
    assert line["request_id"] == "req-1"
    assert (line["operation"], line["expense_id"]) == ("create", 3)
    assert "status_code" not in line


def test_request_id_defaults_to_dash():
    record = make_record()
    RequestIdFilter().filter(record)
    assert record.request_id == "-"


def test_db_path_derived_from_data_dir(tmp_path):
    settings = Settings(data_dir=tmp_path, db_filename="x.sqlite3").init_post_load()
    assert settings.db_path == tmp_path / "x.sqlite3"


def test_explicit_db_path_wins(tmp_path):
    settings = Settings(data_dir=tmp_path, db_path=tmp_path / "other.db").init_post_load()
    assert settings.db_path == tmp_path / "other.db"


def test_settings_from_environment(monkeypatch):
    monkeypatch.setenv("PORT", "9000")
    monkeypatch.setenv("ENVIRONMENT", "production")
    settings = Settings()
    assert (settings.port, settings.environment) == (9000, "production")
    assert settings.data_dir == Path("data")
