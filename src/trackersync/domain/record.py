"""Canonical record primitives."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, Final

type TopicValue = Any
type CanonicalRecord = dict[str, TopicValue]

DEFAULT_RECORD_ID: Final[str] = "main"
LAST_UPDATED_KEY: Final[str] = "lastUpdated"
LAST_UPDATE_REASON_KEY: Final[str] = "lastUpdateReason"


def utcnow() -> datetime:
    return datetime.now(UTC)


def isoformat_utc(value: datetime) -> str:
    """Render ``value`` the way the record stores timestamps (``...Z`` suffix)."""

    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    rendered = value.astimezone(UTC).isoformat(timespec="milliseconds")
    return rendered.replace("+00:00", "Z")


@dataclass(slots=True, frozen=True)
class StoredRecord:
    """The canonical record as read from the store, with its concurrency token.

    ``version`` is ``None`` when no row exists yet (cold start); ``data`` is then
    an empty mapping.
    """

    data: Mapping[str, TopicValue] = field(default_factory=dict)
    version: int | None = None
    updated_at: datetime | None = None

    @property
    def exists(self) -> bool:
        return self.version is not None
