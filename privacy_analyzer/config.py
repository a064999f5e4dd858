"""
Runtime configuration for the CLI and the background service.

Uses ``pydantic_settings.BaseSettings`` for automatic environment
variable binding, type coercion, and validation.  A ``.env`` file
in the working directory is loaded by the entry points through
``python-dotenv`` before settings are read.
"""

from __future__ import annotations

import pydantic
import pydantic_settings

from privacy_analyzer import __version__

DEFAULT_USER_AGENT = f"Mozilla/5.0 (compatible; PrivacyAnalyzer/{__version__})"


class Settings(pydantic_settings.BaseSettings):
    """Analyzer settings bound to environment variables.

    Attributes:
        fetch_timeout: Total timeout for the CLI page fetch, in seconds.
        user_agent: User-Agent header sent with the page fetch.
        host: Bind address of the background service.
        port: Port of the background service.
        environment: ``development`` or ``production``.
        canvas_attach_delay_ms: How long a freshly created canvas may
            stay detached before it is reported.
        live_dwell_ms: How long the live page host waits after load
            before collecting the document snapshot.
        extension_version: Version stamped into exported reports.
    """

    model_config = pydantic_settings.SettingsConfigDict(extra="ignore")

    fetch_timeout: float = pydantic.Field(
        default=15.0, gt=0, validation_alias="PRIVACY_ANALYZER_FETCH_TIMEOUT"
    )
    user_agent: str = pydantic.Field(
        default=DEFAULT_USER_AGENT, validation_alias="PRIVACY_ANALYZER_USER_AGENT"
    )
    host: str = pydantic.Field(default="127.0.0.1", validation_alias="UVICORN_HOST")
    port: int = pydantic.Field(default=3001, validation_alias="UVICORN_PORT")
    environment: str = pydantic.Field(default="development", validation_alias="ENVIRONMENT")
    canvas_attach_delay_ms: int = pydantic.Field(
        default=1000, ge=0, validation_alias="CANVAS_ATTACH_DELAY_MS"
    )
    live_dwell_ms: int = pydantic.Field(default=2000, ge=0, validation_alias="LIVE_DWELL_MS")
    extension_version: str = pydantic.Field(
        default=__version__, validation_alias="EXTENSION_VERSION"
    )

    @property
    def is_production(self) -> bool:
        """Whether the service runs in production mode."""
        return self.environment == "production"


def get_settings() -> Settings:
    """Read settings from the current environment."""
    return Settings()
