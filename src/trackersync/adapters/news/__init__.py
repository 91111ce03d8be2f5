"""Public interface for the news headline adapter."""

from __future__ import annotations

from .client import GoogleNewsHeadlines

__all__ = ["GoogleNewsHeadlines"]
