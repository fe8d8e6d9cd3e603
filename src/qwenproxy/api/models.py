"""Pydantic request models for the Qwen Image Proxy API.

FastAPI uses these for request parsing and OpenAPI documentation.  Semantic
validation (e.g. "the prompt must not be empty") is deliberately left to
:class:`~qwenproxy.core.proxy.ProxyHandler` so that a missing prompt and an
empty prompt produce the same error.

Models
------
GenerationRequest
    Payload for ``POST /api/qwen/generate``.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, StrictBool, StrictStr


class GenerationRequest(BaseModel):
    """Request body for the ``POST /api/qwen/generate`` endpoint.

    Attributes:
        prompt: Text description of the image.  Must be non-empty; an absent
            field is treated as an empty prompt.
        size: Output resolution in DashScope's ``"W*H"`` notation.  Falls
            back to ``"1328*1328"`` when omitted or blank.
        prompt_extend: Let DashScope rewrite the prompt before generating.
        watermark: Ask DashScope to stamp a watermark on the result.

    Fields are strict: a flag sent as ``"yes"`` or ``1`` is a malformed
    body, not ``True``.
    """

    prompt: StrictStr = Field(
        default="",
        description="Text prompt for the image (required, non-empty).",
    )
    size: StrictStr | None = Field(
        default=None,
        description="Output size as 'W*H' (e.g. '1328*1328', '1024*1024').",
    )
    prompt_extend: StrictBool = Field(
        default=False,
        description="Enable DashScope prompt extension.",
    )
    watermark: StrictBool = Field(
        default=False,
        description="Add a DashScope watermark to the generated image.",
    )
