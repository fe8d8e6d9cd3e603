"""Tests for qwenproxy.api.models — Pydantic request models.

Tests cover:
- Default values for optional fields.
- Type validation of malformed payloads.
"""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from qwenproxy.api.models import GenerationRequest


class TestGenerationRequest:
    """Test GenerationRequest Pydantic model."""

    def test_minimal_request(self):
        req = GenerationRequest(prompt="a red fox")
        assert req.prompt == "a red fox"
        assert req.size is None
        assert req.prompt_extend is False
        assert req.watermark is False

    def test_missing_prompt_defaults_to_empty(self):
        """An absent prompt parses; the handler rejects it as empty."""
        assert GenerationRequest().prompt == ""

    def test_all_fields(self):
        req = GenerationRequest.model_validate(
            {"prompt": "p", "size": "1024*1024", "prompt_extend": True, "watermark": True}
        )
        assert req.size == "1024*1024"
        assert req.prompt_extend is True
        assert req.watermark is True

    def test_non_string_prompt_rejected(self):
        with pytest.raises(ValidationError):
            GenerationRequest.model_validate({"prompt": 42})

    def test_non_boolean_flag_rejected(self):
        with pytest.raises(ValidationError):
            GenerationRequest.model_validate({"prompt": "p", "watermark": "maybe"})

    @pytest.mark.parametrize("value", ["yes", "true", 1, 0])
    def test_flags_are_strict(self, value):
        """Truthy strings and integers are not coerced into booleans."""
        with pytest.raises(ValidationError):
            GenerationRequest.model_validate({"prompt": "p", "prompt_extend": value})

    def test_non_string_size_rejected(self):
        with pytest.raises(ValidationError):
            GenerationRequest.model_validate({"prompt": "p", "size": 1024})

    def test_unknown_fields_ignored(self):
        req = GenerationRequest.model_validate({"prompt": "p", "model": "other"})
        assert "model" not in req.model_dump()
