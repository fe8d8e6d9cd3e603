"""DashScope pass-through for the Qwen Image Proxy.

This module provides :class:`ProxyHandler`, the single point where outbound
calls to DashScope are built and executed.  Each public method performs one
complete request/response cycle and keeps no memory of prior calls.

Key Responsibilities
--------------------
- **Input validation**: empty prompts and task IDs are rejected before any
  network traffic happens.
- **Configuration resolution**: the API key and region come from the
  injected :class:`~qwenproxy.core.config.UpstreamConfig`; a missing key is
  reported as :class:`~qwenproxy.core.errors.ConfigurationError`.
- **Request construction**: a fixed-shape multimodal generation payload,
  bearer authentication, and the ``X-DashScope-Async`` header for submits.
- **Result mapping**: transport failures and unparseable bodies become
  proxy errors; everything else (including DashScope's own 4xx/5xx answers)
  is returned verbatim.

There is no retry, caching or polling here.  DashScope owns task state.

Usage
-----
::

    import httpx

    from qwenproxy.core.config import UpstreamConfig
    from qwenproxy.core.proxy import ProxyHandler

    with httpx.Client() as client:
        handler = ProxyHandler(UpstreamConfig(), client)
        result = handler.submit(prompt="a red fox")
        print(result.status_code, result.body)

See Also
--------
- :mod:`qwenproxy.api.main`: the FastAPI routes that wrap this handler.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any
from urllib.parse import quote

import httpx

from qwenproxy.core.config import UpstreamConfig
from qwenproxy.core.errors import (
    ConfigurationError,
    InvalidInput,
    UpstreamProtocolError,
    UpstreamUnavailable,
    classify_upstream_error,
)

logger = logging.getLogger(__name__)

DEFAULT_SIZE = "1328*1328"
GENERATION_PATH = "/services/aigc/multimodal-generation/generation"


@dataclass(frozen=True)
class UpstreamResult:
    """Status code and parsed JSON body of a DashScope response."""

    status_code: int
    body: dict[str, Any]


def build_generation_payload(
    prompt: str,
    *,
    model: str,
    size: str,
    prompt_extend: bool,
    watermark: bool,
) -> dict[str, Any]:
    """Build the JSON body for a multimodal generation request.

    The prompt is embedded as the single text block of a single user
    message; generation options travel in the ``parameters`` object.

    Args:
        prompt: Text prompt, passed through unmodified.
        model: DashScope model name (e.g. ``"qwen-image-plus"``).
        size: Output size in ``"W*H"`` notation.
        prompt_extend: DashScope prompt-extension flag.
        watermark: DashScope watermark flag.

    Returns:
        A JSON-serialisable dictionary.
    """
    return {
        "model": model,
        "input": {
            "messages": [
                {
                    "role": "user",
                    "content": [{"text": prompt}],
                }
            ]
        },
        "parameters": {
            "size": size,
            "prompt_extend": prompt_extend,
            "watermark": watermark,
        },
    }


class ProxyHandler:
    """Forwards generation and task-status calls to DashScope.

    A handler is cheap to build and is meant to be created per request with
    the configuration current at that moment.  The ``httpx.Client`` is
    shared and may be used concurrently.

    Attributes:
        _config (UpstreamConfig):
            API key, region, model and timeout for outbound calls.
        _client (httpx.Client):
            Transport used for the single outbound call of each operation.
    """

    def __init__(self, config: UpstreamConfig, client: httpx.Client) -> None:
        self._config = config
        self._client = client

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def submit(
        self,
        prompt: str,
        size: str | None = None,
        prompt_extend: bool = False,
        watermark: bool = False,
    ) -> UpstreamResult:
        """Submit an asynchronous image generation task.

        Args:
            prompt: Text prompt; must contain at least one non-space character.
            size: Output size.  ``None`` or blank selects ``"1328*1328"``.
            prompt_extend: DashScope prompt-extension flag.
            watermark: DashScope watermark flag.

        Returns:
            The DashScope status code and body, unchanged.  On success the
            body normally carries ``output.task_id`` for polling.

        Raises:
            InvalidInput: If the prompt is empty.
            ConfigurationError: If no API key is configured.
            UpstreamUnavailable: If DashScope cannot be reached.
            UpstreamProtocolError: If DashScope's body is not a JSON object.
        """
        if not prompt or not prompt.strip():
            raise InvalidInput("Prompt is required")

        if not size or not size.strip():
            size = DEFAULT_SIZE

        api_key = self._require_api_key()
        payload = build_generation_payload(
            prompt,
            model=self._config.model,
            size=size,
            prompt_extend=prompt_extend,
            watermark=watermark,
        )
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {api_key}",
            "X-DashScope-Async": "enable",
        }
        url = self._config.base_url + GENERATION_PATH
        return self._send("POST", url, headers=headers, json=payload)

    def query_status(self, task_id: str) -> UpstreamResult:
        """Fetch the current state of a previously submitted task.

        Args:
            task_id: Opaque task identifier returned by :meth:`submit`.  It is
                percent-encoded as a single path segment, so reserved
                characters cannot change the shape of the upstream URL.

        Returns:
            The DashScope status code and body, unchanged.

        Raises:
            InvalidInput: If the task ID is empty.
            ConfigurationError: If no API key is configured.
            UpstreamUnavailable: If DashScope cannot be reached.
            UpstreamProtocolError: If DashScope's body is not a JSON object.
        """
        if not task_id or not task_id.strip():
            raise InvalidInput("Task ID is required")

        api_key = self._require_api_key()
        headers = {"Authorization": f"Bearer {api_key}"}
        url = f"{self._config.base_url}/tasks/{quote(task_id, safe='')}"
        return self._send("GET", url, headers=headers)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _require_api_key(self) -> str:
        if not self._config.api_key:
            raise ConfigurationError("DASHSCOPE_API_KEY not configured")
        return self._config.api_key

    def _send(
        self,
        method: str,
        url: str,
        *,
        headers: dict[str, str],
        json: dict[str, Any] | None = None,
    ) -> UpstreamResult:
        """Execute one outbound call and map the outcome.

        Never retries.  The request timeout comes from the configuration; a
        timeout counts as a transport failure.
        """
        logger.info(f"DashScope request: {method} {url}")
        try:
            response = self._client.request(
                method,
                url,
                headers=headers,
                json=json,
                timeout=self._config.request_timeout,
            )
        except (httpx.RequestError, httpx.InvalidURL) as e:
            logger.error(f"DashScope API error: {e}", exc_info=True)
            raise UpstreamUnavailable("Failed to call DashScope API") from e

        try:
            body = response.json()
        except ValueError as e:
            logger.error(
                f"DashScope returned an unparseable body (status {response.status_code})"
            )
            raise UpstreamProtocolError("Failed to parse response") from e

        if not isinstance(body, dict):
            logger.error(
                f"DashScope returned a non-object JSON body (status {response.status_code})"
            )
            raise UpstreamProtocolError("Failed to parse response")

        if response.status_code >= 400:
            info = classify_upstream_error(response.status_code, body)
            logger.warning(
                f"DashScope error {response.status_code} [{info.code}]: "
                f"{info.user_message} (retryable={info.retryable})"
            )

        return UpstreamResult(status_code=response.status_code, body=body)
