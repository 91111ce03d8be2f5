"""Ports for fetching external material that feeds reconciliation prompts."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable


@dataclass(slots=True, frozen=True)
class Headline:
    """One news headline offered to the extraction model as evidence."""

    title: str
    published: str = ""
    query: str = ""


@runtime_checkable
class HeadlineSource(Protocol):
    """Callable port returning current headlines, de-duplicated by title."""

    def __call__(self) -> list[Headline]: ...


__all__ = ["Headline", "HeadlineSource"]
