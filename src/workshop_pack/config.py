"""Process-level settings for workshop-pack.

Read from environment variables and an optional ``.env`` file:

- ``VERBOSE``: any non-empty value turns on verbose output
- ``API_PORT`` / ``API_BASE_PATH``: smoke-test targets used when
  workshop-config.yaml does not provide them
"""

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_API_PORT = 8010
DEFAULT_API_BASE_PATH = "/api/v1"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    verbose: str = ""
    api_port: int = DEFAULT_API_PORT
    api_base_path: str = DEFAULT_API_BASE_PATH

    @field_validator("api_port", mode="before")
    @classmethod
    def _lenient_port(cls, value: object) -> object:
        # A malformed API_PORT must not stop the run; fall back to the default.
        try:
            return int(str(value).strip())
        except ValueError:
            return DEFAULT_API_PORT

    @field_validator("api_base_path", mode="before")
    @classmethod
    def _default_base_path(cls, value: object) -> object:
        if value is None or not str(value).strip():
            return DEFAULT_API_BASE_PATH
        return value

    @property
    def is_verbose(self) -> bool:
        return bool(self.verbose.strip())


_settings: Settings | None = None


def get_settings() -> Settings:
    """Get cached settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Reset settings cache (useful for testing)."""
    global _settings
    _settings = None
