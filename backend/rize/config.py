"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - All secrets come from environment variables (never hardcoded)
    - get_settings() is cached (lru_cache): single instance per process
    - Every database URL uses the aiosqlite driver

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support (ADR: developer UX)
    - Defaults provided for all non-secret settings: a bare checkout runs against local SQLite files
"""

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Application identity: namespaces the durable session cache
    app_id: str = "com.hytek.rize"

    # Local storage (three independent SQLite files)
    notes_database_url: str = "sqlite+aiosqlite:///notes.db"
    tasks_database_url: str = "sqlite+aiosqlite:///tasks.db"
    session_database_url: str = "sqlite+aiosqlite:///session.db"
    database_echo: bool = False

    @field_validator(
        "notes_database_url", "tasks_database_url", "session_database_url",
        mode="before",
    )
    @classmethod
    def convert_sqlite_url(cls, v: str) -> str:
        """Plain sqlite:// URLs are coerced to the async driver."""
        if isinstance(v, str) and v.startswith("sqlite://"):
            return v.replace("sqlite://", "sqlite+aiosqlite://", 1)
        return v

    # Identity provider (Firebase Identity Toolkit REST)
    identity_api_key: str = "firebase-web-api-key-placeholder"
    identity_base_url: str = "https://identitytoolkit.googleapis.com/v1"
    identity_token_url: str = "https://securetoken.googleapis.com/v1/token"
    identity_timeout_seconds: float = 10.0
    identity_max_retries: int = 2
    identity_base_delay_ms: int = 250
    identity_max_delay_ms: int = 4_000

    # Federated sign-in
    federated_provider_id: str = "google.com"
    federated_request_uri: str = "http://localhost"

    # Credentials
    password_min_length: int = 6

    # API
    cors_origins: list[str] = ["http://localhost:8081"]

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"

    @property
    def session_namespace(self) -> str:
        return f"{self.app_id}_preferences"


@lru_cache
def get_settings() -> Settings:
    return Settings()
