"""Configuration management for the Qwen Image Proxy.

This module provides configuration management using Pydantic Settings.
Two settings classes are defined, one per concern:

- :class:`UpstreamConfig`: everything needed to reach DashScope.  Loaded
  from environment variables with the ``DASHSCOPE_`` prefix.
- :class:`ServerConfig`: how the local uvicorn server binds and logs.
  Loaded from environment variables with the ``QWENPROXY_`` prefix.

Environment Variable Loading
-----------------------------
Configuration values are loaded in the following priority order:
1. Environment variables (``DASHSCOPE_*`` / ``QWENPROXY_*`` prefix)
2. .env file in the working directory
3. Default values defined on the class

Example .env file:
    DASHSCOPE_API_KEY=sk-...
    DASHSCOPE_REGION=singapore
    QWENPROXY_SERVER_PORT=8090

Per-request Loading
-------------------
Unlike a module-level singleton, :class:`UpstreamConfig` is built fresh for
every proxied request (see :func:`qwenproxy.api.main.get_upstream_config`).
Rotating the API key or switching region therefore takes effect on the next
request without restarting the server.

Usage Example
-------------
    from qwenproxy.core.config import UpstreamConfig

    cfg = UpstreamConfig()
    print(cfg.base_url)
"""

from typing import Literal

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from qwenproxy.core.errors import ConfigurationError

DEFAULT_BASE_URL = "https://dashscope.aliyuncs.com/api/v1"
SINGAPORE_BASE_URL = "https://dashscope-intl.aliyuncs.com/api/v1"

# Exact, case-sensitive match.  Any other value selects the default region.
SINGAPORE_REGION = "singapore"


class UpstreamConfig(BaseSettings):
    """Connection settings for the DashScope API.

    Attributes
    ----------
    api_key : str | None
        Bearer token sent to DashScope.  Required for every proxied call;
        its absence is reported per request rather than at startup.
    region : str
        Region selector.  ``"singapore"`` routes to the international
        endpoint, anything else (including empty) to the default one.
    model : str
        Model name embedded in generation payloads.
    request_timeout : float | None
        Seconds before an outbound call is abandoned.  ``None`` disables
        the timeout entirely.

    Examples
    --------
        >>> cfg = UpstreamConfig(api_key="sk-test", region="singapore")
        >>> cfg.base_url
        'https://dashscope-intl.aliyuncs.com/api/v1'
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="DASHSCOPE_",
        case_sensitive=False,
        extra="ignore",
    )

    api_key: str | None = Field(
        default=None,
        description="DashScope API key (sent as a Bearer token)",
    )
    region: str = Field(
        default="",
        description="Region selector ('singapore' for the international endpoint)",
    )
    model: str = Field(
        default="qwen-image-plus",
        description="Model name used for generation requests",
    )
    request_timeout: float | None = Field(
        default=60.0,
        description="Outbound request timeout in seconds",
        gt=0,
    )

    @property
    def base_url(self) -> str:
        """Return the DashScope base URL for the configured region."""
        if self.region == SINGAPORE_REGION:
            return SINGAPORE_BASE_URL
        return DEFAULT_BASE_URL

    @property
    def has_api_key(self) -> bool:
        """Whether a non-empty API key is configured."""
        return bool(self.api_key)


class ServerConfig(BaseSettings):
    """Settings for the local uvicorn server started by ``qwenproxy``."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="QWENPROXY_",
        case_sensitive=False,
        extra="ignore",
    )

    server_host: str = Field(
        default="0.0.0.0",
        description="Server bind address (0.0.0.0 for local network)",
    )
    server_port: int = Field(
        default=8090,
        description="Server port",
        ge=1024,
        le=65535,
    )
    log_level: Literal["critical", "error", "warning", "info", "debug"] = Field(
        default="info",
        description="uvicorn log level",
    )


def load_upstream_config(**overrides) -> UpstreamConfig:
    """Build an :class:`UpstreamConfig` from the current environment.

    Args:
        **overrides: Passed to the constructor (e.g. ``_env_file=None``).

    Returns:
        The validated configuration.

    Raises:
        ConfigurationError: If any ``DASHSCOPE_*`` value fails validation.
            The message names the offending variables, never their values.
    """
    try:
        return UpstreamConfig(**overrides)
    except ValidationError as e:
        names = sorted(
            {f"DASHSCOPE_{str(err['loc'][0]).upper()}" for err in e.errors() if err["loc"]}
        )
        raise ConfigurationError(f"Invalid DashScope configuration: {', '.join(names)}") from e
