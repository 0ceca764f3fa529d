"""Gemini-backed model client used for deal extraction and refinement.

The rest of the pipeline only talks to ``DealModel.generate`` so tests can
swap in a canned model without touching the network.
"""
from __future__ import annotations

import json
import logging
import re
from typing import Any, Dict, Protocol, Sequence

import google.generativeai as genai

from shared.models import ImageBlob

logger = logging.getLogger(__name__)

_LEADING_FENCE = re.compile(r"^```[A-Za-z]*[ \t]*\n?")
_TRAILING_FENCE = re.compile(r"\n?[ \t]*```$")


class ModelNotConfigured(RuntimeError):
    """Raised when no API key is available for the model."""


class DealModel(Protocol):
    @property
    def is_configured(self) -> bool: ...

    def generate(self, prompt: str, images: Sequence[ImageBlob] = ()) -> str: ...


def strip_code_fences(text: str) -> str:
    """Remove a leading ```json / ``` fence and a trailing ``` fence."""
    cleaned = (text or "").strip()
    cleaned = _LEADING_FENCE.sub("", cleaned, count=1)
    cleaned = _TRAILING_FENCE.sub("", cleaned, count=1)
    return cleaned.strip()


def parse_json_object(text: str) -> Dict[str, Any]:
    """Fence-strip and decode a model reply that must be a JSON object."""
    payload = json.loads(strip_code_fences(text))
    if not isinstance(payload, dict):
        raise ValueError(f"expected a JSON object, got {type(payload).__name__}")
    return payload


class GeminiDealModel:
    """Thin wrapper over google-generativeai for text and vision prompts."""

    def __init__(self, api_key: str | None, model_name: str = "gemini-1.5-flash", timeout: float = 60.0):
        self.api_key = api_key
        self.model_name = model_name
        self.timeout = timeout
        self._handle = None

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    def _configure_model(self):
        """Configures and memoizes the Gemini model handle."""
        if self._handle is not None:
            return self._handle
        if not self.api_key:
            raise ModelNotConfigured("GEMINI_API_KEY not set")

        genai.configure(api_key=self.api_key)
        self._handle = genai.GenerativeModel(self.model_name)
        return self._handle

    def generate(self, prompt: str, images: Sequence[ImageBlob] = ()) -> str:
        model = self._configure_model()
        parts: list = [{"mime_type": image.media_type, "data": image.data} for image in images]
        parts.append(prompt)

        logger.debug("Calling %s with %d image(s)", self.model_name, len(images))
        response = model.generate_content(parts, request_options={"timeout": self.timeout})
        return _response_text(response)


def _response_text(response) -> str:
    try:
        text = response.text
    except ValueError:
        # Raised when the candidate has no simple text part (e.g. blocked output).
        text = None
    if text:
        return text

    chunks = []
    for candidate in getattr(response, "candidates", None) or []:
        content = getattr(candidate, "content", None)
        for part in getattr(content, "parts", None) or []:
            if getattr(part, "text", None):
                chunks.append(part.text)
    return "".join(chunks)
