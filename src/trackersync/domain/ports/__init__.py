"""Domain port definitions for adapters."""

from __future__ import annotations

from .extraction import ExtractionClient
from .fetching import Headline, HeadlineSource
from .notification import ChangeNotifier
from .persistence import RecordStore, UpdateLog, UpdateLogEntry

__all__ = [
    "ChangeNotifier",
    "ExtractionClient",
    "Headline",
    "HeadlineSource",
    "RecordStore",
    "UpdateLog",
    "UpdateLogEntry",
]
