"""Qwen Image Proxy — FastAPI Application.

This module is the single entry point for the web application.  It defines
the FastAPI ``app`` instance, the REST routes, the error rendering, and the
``main()`` CLI function that launches the uvicorn server.

Architecture
------------
The application is a stateless pass-through to DashScope:

- **Configuration** is read from the environment on every request through
  :func:`get_upstream_config`, so key rotation needs no restart.
- **Outbound calls** are made by :class:`~qwenproxy.core.proxy.ProxyHandler`,
  built per request by :func:`get_proxy_handler` from the current
  configuration and the shared ``httpx.Client``.
- **Errors** raised by the proxy are rendered as ``{"error": "..."}`` by a
  single exception handler.  DashScope's own error responses are relayed
  unchanged.

Routes are plain ``def`` functions: FastAPI runs them on its thread pool,
where each blocks on exactly one outbound call.

Endpoints
---------
========  ============================  ====================================
Method    Path                          Purpose
========  ============================  ====================================
POST      ``/api/qwen/generate``        Submit an image generation task
GET       ``/api/qwen/task/{task_id}``  Query the status of a task
GET       ``/api/config``               Effective upstream configuration
========  ============================  ====================================

Usage
-----
CLI (installed entry point)::

    qwenproxy

Direct invocation::

    python -m qwenproxy.api.main
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx
from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from qwenproxy import __version__
from qwenproxy.api.models import GenerationRequest
from qwenproxy.core.config import ServerConfig, UpstreamConfig, load_upstream_config
from qwenproxy.core.errors import InvalidInput, ProxyError
from qwenproxy.core.proxy import ProxyHandler, UpstreamResult

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Application lifecycle: shared HTTP client setup and teardown.
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application startup and shutdown lifecycle.

    On startup:
        Creates one ``httpx.Client`` and stores it on ``app.state``.  All
        requests share its connection pool.

    On shutdown:
        Closes the client and its pooled connections.

    Args:
        app: The FastAPI application instance.

    Yields:
        Control back to the application for the duration of its lifetime.
    """
    app.state.http_client = httpx.Client()
    logger.info("DashScope HTTP client initialised.")

    yield

    app.state.http_client.close()
    logger.info("DashScope HTTP client closed on shutdown.")


# ---------------------------------------------------------------------------
# FastAPI application instance.
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Qwen Image Proxy",
    description="Pass-through proxy for DashScope Qwen image generation.",
    version=__version__,
    lifespan=lifespan,
)

# Browser frontends call the proxy from their own origin.
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------------------------------------------------------
# Error rendering.
# ---------------------------------------------------------------------------


@app.exception_handler(ProxyError)
async def proxy_error_handler(request: Request, exc: ProxyError) -> JSONResponse:
    """Render any :class:`ProxyError` as ``{"error": message}``."""
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Render malformed request bodies as a 400 with the proxy's error shape."""
    logger.info(f"Rejected malformed request to {request.url.path}: {exc.errors()}")
    return JSONResponse(status_code=400, content={"error": "Invalid request body"})


# ---------------------------------------------------------------------------
# Dependencies.
# ---------------------------------------------------------------------------


def get_upstream_config() -> UpstreamConfig:
    """Load the DashScope configuration from the current environment.

    Raises:
        ConfigurationError: 500 when a ``DASHSCOPE_*`` value is invalid.
    """
    return load_upstream_config()


def get_http_client(request: Request) -> httpx.Client:
    """Return the shared client created in :func:`lifespan`."""
    return request.app.state.http_client


def get_proxy_handler(
    config: UpstreamConfig = Depends(get_upstream_config),
    client: httpx.Client = Depends(get_http_client),
) -> ProxyHandler:
    return ProxyHandler(config, client)


def _relay(result: UpstreamResult) -> JSONResponse:
    return JSONResponse(status_code=result.status_code, content=result.body)


# ---------------------------------------------------------------------------
# Routes.
# ---------------------------------------------------------------------------


@app.post("/api/qwen/generate")
def generate(
    req: GenerationRequest,
    handler: ProxyHandler = Depends(get_proxy_handler),
) -> JSONResponse:
    """Submit an asynchronous generation task to DashScope.

    Args:
        req: Parsed :class:`GenerationRequest` payload.
        handler: Proxy handler bound to the current configuration.

    Returns:
        DashScope's status code and JSON body, unchanged.  A successful
        submit carries ``output.task_id`` for use with the task route.

    Raises:
        InvalidInput: 400 for an empty prompt.
        ConfigurationError: 500 when ``DASHSCOPE_API_KEY`` is not set.
        UpstreamUnavailable: 500 when DashScope cannot be reached.
        UpstreamProtocolError: 500 when DashScope's body is not JSON.
    """
    result = handler.submit(
        prompt=req.prompt,
        size=req.size,
        prompt_extend=req.prompt_extend,
        watermark=req.watermark,
    )
    return _relay(result)


@app.get("/api/qwen/task")
@app.get("/api/qwen/task/")
def get_task_without_id() -> JSONResponse:
    """Reject task queries that carry no task ID."""
    raise InvalidInput("Task ID is required")


@app.get("/api/qwen/task/{task_id}")
def get_task(
    task_id: str,
    handler: ProxyHandler = Depends(get_proxy_handler),
) -> JSONResponse:
    """Query the status of a DashScope generation task.

    Args:
        task_id: Opaque task identifier, forwarded unmodified.
        handler: Proxy handler bound to the current configuration.

    Returns:
        DashScope's status code and JSON body, unchanged.
    """
    result = handler.query_status(task_id)
    return _relay(result)


@app.get("/api/config")
def get_config(config: UpstreamConfig = Depends(get_upstream_config)) -> dict:
    """Return the effective upstream configuration, without the API key.

    Returns:
        Dictionary with keys ``version``, ``region``, ``base_url``,
        ``model``, and ``api_key_configured``.
    """
    return {
        "version": __version__,
        "region": config.region,
        "base_url": config.base_url,
        "model": config.model,
        "api_key_configured": config.has_api_key,
    }


# ---------------------------------------------------------------------------
# CLI entry point.
# ---------------------------------------------------------------------------


def main() -> None:
    """Launch the uvicorn ASGI server.

    Reads host, port and log level from :class:`ServerConfig` (which loads
    ``QWENPROXY_SERVER_HOST``, ``QWENPROXY_SERVER_PORT`` and
    ``QWENPROXY_LOG_LEVEL``).  Defaults to ``0.0.0.0:8090``.

    This function is registered as the ``qwenproxy`` console script in
    ``pyproject.toml``.
    """
    import uvicorn

    server = ServerConfig()
    uvicorn.run(
        "qwenproxy.api.main:app",
        host=server.server_host,
        port=server.server_port,
        log_level=server.log_level,
        reload=False,
    )


if __name__ == "__main__":
    main()
