"""Environment-driven settings for the planner service."""

from pydantic_settings import BaseSettings
from pydantic import field_validator


# The service starts without these; the dependent feature is switched off
OPTIONAL_FIELDS = {
    "anthropic_api_key",
}

# Values that fall back to a default and skip the emptiness check
DEFAULTED_FIELDS = {
    "ai_model",
    "ai_fallback_model",
    "ai_max_tokens",
    "ai_timeout_seconds",
    "log_level",
}


class Settings(BaseSettings):
    """Planner settings read from the environment or a local .env file."""

    # Storage
    database_url: str

    # AI meal plans and chat are disabled when no key is configured
    anthropic_api_key: str = ""
    ai_model: str = "claude-sonnet-4-5-20250929"
    # Chat retries on this model when the primary call fails; empty disables
    ai_fallback_model: str = ""
    ai_max_tokens: int = 4096
    ai_timeout_seconds: float = 60.0

    log_level: str = "INFO"

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    @field_validator("database_url", mode="before")
    @classmethod
    def fix_database_url(cls, v):
        """SQLAlchemy only accepts the postgresql:// scheme."""
        if isinstance(v, str) and v.startswith("postgres://"):
            return "postgresql://" + v[len("postgres://"):]
        return v

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v):
        if isinstance(v, str):
            return v.strip().upper() or "INFO"
        return v

    @field_validator("*", mode="before")
    @classmethod
    def check_not_empty(cls, v, info):
        """Reject blank values for settings that have no default."""
        name = info.field_name
        if name in DEFAULTED_FIELDS:
            return v
        if name in OPTIONAL_FIELDS:
            return "" if v is None else v
        if v is None or (isinstance(v, str) and not v.strip()):
            raise ValueError(f"{name.upper()} must be set to a non-empty value")
        return v

    @property
    def ai_enabled(self) -> bool:
        return bool(self.anthropic_api_key.strip())


def get_settings() -> Settings:
    """Build Settings from the current environment.

    Raises:
        ValidationError: If DATABASE_URL is missing or blank.
    """
    return Settings()
