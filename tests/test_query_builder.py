from datetime import datetime, timezone

import pytest

from expense_tracker.services.outcomes import Ok, ValidationFailure
from expense_tracker.services.query_builder import (
    CATEGORY_EMPTY,
    DATE_RANGE_INVERTED,
    LIMIT_NOT_POSITIVE,
    LIMIT_TOO_LARGE,
    OFFSET_NEGATIVE,
    build_list_query,
)


def only_error(result):
    assert isinstance(result, ValidationFailure)
    assert len(result.errors) == 1
    return result.errors[0].field, result.errors[0].message


def test_no_parameters_means_unfiltered_unpaginated():
    result = build_list_query({})
    assert isinstance(result, Ok)
    query = result.value
    assert not query.paginated
    assert query.filter.category is None
    assert query.filter.from_date is None and query.filter.to_date is None


def test_none_values_mean_absent():
    result = build_list_query({"limit": None, "offset": None, "category": None})
    assert isinstance(result, Ok)
    assert not result.value.paginated


def test_limit_alone_enables_pagination():
    query = build_list_query({"limit": "5"}).value
    assert query.paginated
    assert (query.page_limit, query.page_offset) == (5, 0)


def test_offset_alone_uses_default_limit():
    query = build_list_query({"offset": "20"}).value
    assert query.paginated
    assert (query.page_limit, query.page_offset) == (10, 20)


def test_limit_upper_bound():
    assert build_list_query({"limit": "100"}).value.page_limit == 100
    assert only_error(build_list_query({"limit": "150"})) == ("limit", LIMIT_TOO_LARGE)


@pytest.mark.parametrize("raw", ["0", "-1", "abc", "1.5", ""])
def test_limit_must_be_positive_integer(raw):
    assert only_error(build_list_query({"limit": raw})) == ("limit", LIMIT_NOT_POSITIVE)


@pytest.mark.parametrize("raw", ["-1", "x", "2.5"])
def test_offset_must_be_non_negative_integer(raw):
    assert only_error(build_list_query({"offset": raw})) == ("offset", OFFSET_NEGATIVE)


def test_offset_zero_is_allowed():
    assert build_list_query({"offset": "0"}).value.page_offset == 0


@pytest.mark.parametrize("name", ["fromDate", "toDate"])
def test_unparseable_dates(name):
    assert only_error(build_list_query({name: "yesterday"})) == (
        name,
        f"{name} must be a valid ISO date string",
    )


def test_inverted_date_range():
    result = build_list_query(
        {"fromDate": "2024-02-01T00:00:00Z", "toDate": "2024-01-01T00:00:00Z"}
    )
    assert only_error(result) == ("fromDate", DATE_RANGE_INVERTED)


def test_equal_bounds_are_allowed_and_parsed_to_utc():
    result = build_list_query(
        {"fromDate": "2024-01-01T02:00:00+02:00", "toDate": "2024-01-01T00:00:00Z"}
    )
    expected = datetime(2024, 1, 1, tzinfo=timezone.utc)
    assert result.value.filter.from_date == expected
    assert result.value.filter.to_date == expected


def test_category_is_trimmed():
    assert build_list_query({"category": "  Food "}).value.filter.category == "Food"
    assert only_error(build_list_query({"category": "   "})) == (
        "category",
        CATEGORY_EMPTY,
    )


def test_first_violation_wins():
    result = build_list_query({"limit": "0", "offset": "-1", "category": ""})
    assert only_error(result) == ("limit", LIMIT_NOT_POSITIVE)


@pytest.mark.parametrize(
    "name,value",
    [
        ("fromDate", "0001-01-01T00:00:00+01:00"),
        ("toDate", "9999-12-31T23:59:59-05:00"),
    ],
)
def test_offsets_beyond_datetime_range(name, value):
    assert only_error(build_list_query({name: value})) == (
        name,
        f"{name} must be a valid ISO date string",
    )
