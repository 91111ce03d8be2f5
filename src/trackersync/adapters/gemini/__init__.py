"""Public interface for the Gemini extraction adapter."""

from __future__ import annotations

from .client import GeminiExtractionClient
from .schema import GenerateContentResponse

__all__ = ["GeminiExtractionClient", "GenerateContentResponse"]
