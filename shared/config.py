"""
Shared configuration management for the Authority engine.
"""

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import ConfigurationError


LOG_LEVELS = ("debug", "info", "warning", "error", "critical")


class AuthorityConfig(BaseSettings):
    """Engine configuration, read from ``AUTHORITY_*`` environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="AUTHORITY_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    log_level: str = Field(default="info")

    # Clear the relevance cache whenever a rule or alias is added
    invalidate_cache_on_add: bool = Field(default=True)

    # Rule resource matching every resource type
    all_resources: str = Field(default="all", min_length=1)

    enable_metrics: bool = Field(default=True)

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        level = value.lower()
        if level not in LOG_LEVELS:
            raise ValueError(f"unknown log level '{value}', expected one of {', '.join(LOG_LEVELS)}")
        return level


def get_config(**overrides) -> AuthorityConfig:
    """Get engine configuration, with explicit overrides taking precedence over the environment."""
    try:
        return AuthorityConfig(**overrides)
    except ValidationError as e:
        raise ConfigurationError(
            "Invalid Authority configuration",
            details={"errors": [f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()]}
        ) from e
