"""Qwen Image Proxy - Pass-through HTTP proxy for DashScope image generation."""

__version__ = "0.1.0"

from qwenproxy.core.config import ServerConfig, UpstreamConfig
from qwenproxy.core.proxy import ProxyHandler, UpstreamResult

__all__ = [
    "ProxyHandler",
    "ServerConfig",
    "UpstreamConfig",
    "UpstreamResult",
]
