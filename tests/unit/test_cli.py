"""Tests for qwenproxy.api.main.main — the ``qwenproxy`` console script."""

from __future__ import annotations

import uvicorn

from qwenproxy.api.main import main


def test_main_runs_uvicorn_with_server_config(monkeypatch):
    """main() should pass host, port and log level from QWENPROXY_* vars."""
    calls = []
    monkeypatch.setattr(uvicorn, "run", lambda *args, **kwargs: calls.append((args, kwargs)))
    monkeypatch.setenv("QWENPROXY_SERVER_HOST", "127.0.0.1")
    monkeypatch.setenv("QWENPROXY_SERVER_PORT", "9100")
    monkeypatch.setenv("QWENPROXY_LOG_LEVEL", "debug")

    main()

    assert len(calls) == 1
    args, kwargs = calls[0]
    assert args == ("qwenproxy.api.main:app",)
    assert kwargs["host"] == "127.0.0.1"
    assert kwargs["port"] == 9100
    assert kwargs["log_level"] == "debug"
    assert kwargs["reload"] is False
