"""
Collector configuration loaded from environment variables.

Uses Pydantic BaseSettings for automatic env var loading and validation.
All configuration values come from environment variables or .env files;
no hardcoded site ids or credentials.

SITE_ID and API_KEY default to empty so that a missing credential is
reported by :meth:`CollectorSettings.require_credentials` as a
ConfigurationError (logged, run aborted before any network call) rather
than as a settings validation failure.

CHANGELOG:
- 2026-03-05: Add INSTANCE_NAMESPACE and REDIS_URL for the state store
- 2026-03-02: Initial creation (STORY-103)

TODO:
- None
"""

import logging

from pydantic import field_validator
from pydantic_settings import BaseSettings

from collector.src.errors import ConfigurationError
from collector.src.models import SiteContext

DEFAULT_API_BASE_URL = "https://monitoringapi.solaredge.com"


class CollectorSettings(BaseSettings):
    """Collector configuration for one SolarEdge site.

    Attributes:
        site_id: SolarEdge site identifier (required at run time).
        api_key: SolarEdge monitoring API key (required at run time).
        enable_power_flow: Also poll ``currentPowerFlow.json`` and publish
            the power-flow data points.
        api_base_url: Monitoring API base URL (must be HTTPS).
        request_timeout_s: Timeout per outbound HTTP request in seconds.
        redis_url: Connection URL of the Redis-backed state store.
        instance_namespace: Store namespace of this collector instance,
            e.g. ``solaredge.0``.
        log_level: Root log level name.
    """

    site_id: str = ""
    api_key: str = ""
    enable_power_flow: bool = False
    api_base_url: str = DEFAULT_API_BASE_URL
    request_timeout_s: float = 15.0
    redis_url: str = "redis://localhost:6379/0"
    instance_namespace: str = "solaredge.0"
    log_level: str = "INFO"

    @field_validator("api_base_url")
    @classmethod
    def api_base_url_must_be_https(cls, v: str) -> str:
        """Validate that the monitoring API base URL uses HTTPS.

        The API key travels as a query parameter, so plain HTTP is rejected
        at startup.
        """
        if not v.lower().startswith("https://"):
            raise ValueError(
                f"API_BASE_URL must use HTTPS (got: '{v[:20]}...')"
            )
        return v.rstrip("/")

    @field_validator("request_timeout_s")
    @classmethod
    def request_timeout_must_be_positive(cls, v: float) -> float:
        """Validate the HTTP timeout is positive."""
        if v <= 0:
            raise ValueError("REQUEST_TIMEOUT_S must be > 0")
        return v

    @field_validator("log_level")
    @classmethod
    def log_level_must_be_known(cls, v: str) -> str:
        """Validate the log level is a standard logging level name."""
        level = v.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"LOG_LEVEL '{v}' is not a known logging level")
        return level

    def require_credentials(self) -> None:
        """Raise ConfigurationError when the site id or API key is missing."""
        missing = [
            name
            for name, value in (("SITE_ID", self.site_id), ("API_KEY", self.api_key))
            if not value
        ]
        if missing:
            raise ConfigurationError(f"{' and '.join(missing)} not set")

    def site_context(self) -> SiteContext:
        """Build the SiteContext for this run."""
        return SiteContext(
            site_id=self.site_id,
            has_power_flow_feature=self.enable_power_flow,
        )

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}
