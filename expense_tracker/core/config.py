from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment with defaults.

    Environment variable mapping follows pydantic's rules (e.g., APP_NAME, DEBUG,
    ENVIRONMENT, PORT, DATA_DIR, DB_FILENAME, DB_PATH).
    """

    model_config = SettingsConfigDict(
        env_file=".env", case_sensitive=False, extra="ignore"
    )

    # Basic app metadata
    app_name: str = "Expense Tracker API"
    debug: bool = False
    version: str = "1.0.0"
    environment: str = "development"

    # Server
    host: str = "127.0.0.1"
    port: int = 8080

    # Data & persistence
    data_dir: Path = Path("data")
    db_filename: str = "expenses.sqlite3"
    db_path: Optional[Path] = None  # derived if not provided

    def init_post_load(self) -> "Settings":
        """Finalize derived fields. Safe to call more than once."""
        if self.db_path is None:
            self.db_path = self.data_dir / self.db_filename
        return self


@lru_cache
def get_settings() -> Settings:
    settings = Settings()
    settings.init_post_load()
    return settings
