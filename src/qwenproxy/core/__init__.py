"""Core functionality for proxying DashScope image generation.

- **UpstreamConfig / ServerConfig**: Configuration using Pydantic Settings
- **ProxyHandler**: Builds and executes the outbound DashScope calls
- **ProxyError** and subclasses: The proxy's error taxonomy

Architecture Overview
---------------------
1. **Configuration Layer** (config.py):
   - Environment-based configuration using Pydantic Settings
   - ``DASHSCOPE_*`` for the upstream, ``QWENPROXY_*`` for the server

2. **Proxy Layer** (proxy.py):
   - One outbound call per operation, no retry, no state
   - DashScope responses relayed verbatim

3. **Errors** (errors.py):
   - Exceptions carrying their HTTP status
   - Classification of DashScope error codes for logging
"""

from qwenproxy.core.config import ServerConfig, UpstreamConfig
from qwenproxy.core.errors import (
    ConfigurationError,
    InvalidInput,
    ProxyError,
    UpstreamProtocolError,
    UpstreamUnavailable,
)
from qwenproxy.core.proxy import ProxyHandler, UpstreamResult

__all__ = [
    "ConfigurationError",
    "InvalidInput",
    "ProxyError",
    "ProxyHandler",
    "ServerConfig",
    "UpstreamConfig",
    "UpstreamProtocolError",
    "UpstreamResult",
    "UpstreamUnavailable",
]
