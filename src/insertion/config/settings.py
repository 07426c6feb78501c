from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator
from pathlib import Path
from typing import Literal
from functools import lru_cache
from ..validators.config_validators import to_uppercase, to_lowercase, to_stripped

class Settings(BaseSettings):
    """
    Insertion settings loaded from environment.
    """

    # Environment
    ENV: Literal["development", "testing", "staging", "production"] = "development"

    # Database configuration (Postgres is used when host and database are set)
    POSTGRES_DRIVER: str = "psycopg"
    POSTGRES_USERNAME: str | None = None
    POSTGRES_PASSWORD: str | None = None
    POSTGRES_HOST: str | None = None
    POSTGRES_PORT: int = 5432
    POSTGRES_DB: str | None = None

    # Fallback database when Postgres is not configured
    SQLITE_URL: str = "sqlite+pysqlite:///./insertion.db"

    # SQLAlchemy
    SQLALCHEMY_ECHO: bool = False

    # Dispatching
    INSERTION_HANDLER_SUFFIX: str = "Insert"
    INSERTION_HANDLER_MODULES: list[str] = []
    INSERTION_AUTOCOMMIT: bool = True
    INSERTION_MAX_DEPTH: int = 32

    # Logging
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    LOG_FORMAT: Literal["json", "text"] = "json"
    LOG_TO_STDOUT: bool = True
    LOG_DIR: Path = Path("/var/log/insertion")
    LOG_MAX_BYTES: int = 10_000_000  # 10 MB
    LOG_BACKUP_COUNT: int = 5
    ENABLE_SQL_LOGGING: bool = False

    # --- Derived settings ---
    @property
    def DATABASE_URL(self) -> str:
        """
        Return the database URL the default session factory should bind to.

        - If `POSTGRES_HOST` and `POSTGRES_DB` are set, build a Postgres URL from the
          POSTGRES_* parts (credentials are optional, e.g. for peer auth).
        - Otherwise fall back to `SQLITE_URL`.
        """
        if self.POSTGRES_HOST and self.POSTGRES_DB:
            credentials = ""
            if self.POSTGRES_USERNAME:
                credentials = self.POSTGRES_USERNAME
                if self.POSTGRES_PASSWORD:
                    credentials += f":{self.POSTGRES_PASSWORD}"
                credentials += "@"
            return (
                f"postgresql+{self.POSTGRES_DRIVER}://"
                f"{credentials}"
                f"{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/"
                f"{self.POSTGRES_DB}"
            )

        return self.SQLITE_URL

    # --- Validators ---
    @field_validator("LOG_LEVEL", mode="before")
    def normalize_log_level(cls, v: str | None) -> str | None:
        """
        Normalize the LOG_LEVEL environment variable value to uppercase.

        Runs before Literal validation so `LOG_LEVEL=debug` is accepted.
        """
        return to_uppercase(v)

    @field_validator("LOG_FORMAT", mode="before")
    def normalize_log_format(cls, v: str | None) -> str | None:
        """
        Normalize the LOG_FORMAT environment variable value to lowercase.
        """
        return to_lowercase(v)

    @field_validator("INSERTION_HANDLER_SUFFIX", mode="before")
    def validate_handler_suffix(cls, v: str | None) -> str | None:
        """
        Reject an empty handler suffix: every model name would then be its own handler name.
        """
        v = to_stripped(v)
        if not v:
            raise ValueError("INSERTION_HANDLER_SUFFIX must not be empty")
        return v

    @field_validator("INSERTION_MAX_DEPTH")
    def validate_max_depth(cls, v: int) -> int:
        if v < 1:
            raise ValueError("INSERTION_MAX_DEPTH must be at least 1")
        return v

    model_config = SettingsConfigDict(
        # Load environment variables from a .env file in the working directory.
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

# get_settings() takes no arguments and always returns the same settings from the environment,
# so it is cached with @lru_cache(). Tests call get_settings.cache_clear() after changing env vars.
@lru_cache()
def get_settings() -> Settings:
    return Settings()
