"""Shared pytest fixtures for Qwen Image Proxy tests."""

from __future__ import annotations

from typing import Any, Generator

import httpx
import pytest
from fastapi.testclient import TestClient

from qwenproxy.api.main import app, get_http_client, get_upstream_config
from qwenproxy.core.config import UpstreamConfig, load_upstream_config

DASHSCOPE_ENV_VARS = (
    "DASHSCOPE_API_KEY",
    "DASHSCOPE_REGION",
    "DASHSCOPE_MODEL",
    "DASHSCOPE_REQUEST_TIMEOUT",
)


class FakeUpstream:
    """Stand-in for DashScope behind an ``httpx.MockTransport``.

    Every outbound request is recorded in :attr:`requests`.  The next
    response is controlled by setting :attr:`status_code` together with
    either :attr:`json_body` or :attr:`raw_body`, or by setting
    :attr:`error` to an exception the transport should raise.
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.status_code: int = 200
        self.json_body: Any = {
            "output": {"task_id": "task-123", "task_status": "PENDING"},
            "request_id": "req-1",
        }
        self.raw_body: bytes | None = None
        self.error: Exception | None = None

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        if self.raw_body is not None:
            return httpx.Response(self.status_code, content=self.raw_body)
        return httpx.Response(self.status_code, json=self.json_body)

    @property
    def last_request(self) -> httpx.Request:
        assert self.requests, "no outbound request was made"
        return self.requests[-1]


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    """Remove every ``DASHSCOPE_*`` variable from the environment.

    Returns:
        The monkeypatch fixture, for further ``setenv`` calls.
    """
    for name in DASHSCOPE_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


@pytest.fixture
def api_env(clean_env: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    """Environment with a test API key and no region set."""
    clean_env.setenv("DASHSCOPE_API_KEY", "sk-test")
    return clean_env


@pytest.fixture
def upstream_config() -> UpstreamConfig:
    """Explicit configuration that ignores the environment and ``.env``."""
    return UpstreamConfig(api_key="sk-test", region="", _env_file=None)


@pytest.fixture
def fake_upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture
def http_client(fake_upstream: FakeUpstream) -> Generator[httpx.Client, None, None]:
    """An ``httpx.Client`` wired to :class:`FakeUpstream`.

    Yields:
        Client whose requests never leave the process.
    """
    client = httpx.Client(transport=httpx.MockTransport(fake_upstream))
    try:
        yield client
    finally:
        client.close()


@pytest.fixture
def test_client(
    api_env: pytest.MonkeyPatch,
    http_client: httpx.Client,
) -> Generator[TestClient, None, None]:
    """FastAPI TestClient with DashScope replaced by :class:`FakeUpstream`.

    Configuration is still read from the (monkeypatched) environment on
    every request, skipping any ``.env`` file in the working directory.
    Tests may adjust ``DASHSCOPE_*`` variables through ``api_env``.

    Yields:
        TestClient bound to the application.
    """
    app.dependency_overrides[get_http_client] = lambda: http_client
    app.dependency_overrides[get_upstream_config] = lambda: load_upstream_config(_env_file=None)
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
