"""Port for the structured text-extraction service."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class ExtractionClient(Protocol):
    """Send one prompt to the extraction service and return its raw text.

    Implementations raise ``UpstreamError`` on any non-success response or
    transport failure and never substitute default text.
    """

    def generate(self, prompt: str) -> str: ...


__all__ = ["ExtractionClient"]
