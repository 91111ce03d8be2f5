"""Ports for the canonical store and the reconciliation audit log."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from trackersync.domain.record import utcnow

if TYPE_CHECKING:
    from collections.abc import Mapping
    from datetime import datetime

    from trackersync.domain.record import StoredRecord, TopicValue


@runtime_checkable
class RecordStore(Protocol):
    """Keyed store holding canonical records.

    ``patch`` applies only when the stored version equals ``expected_version``
    (``None`` meaning the record must not exist yet) and raises
    ``StaleRecordError`` otherwise. Any other failure is a ``StorageError`` and
    the write must be assumed not applied.
    """

    def get(self, record_id: str) -> StoredRecord: ...

    def patch(
        self,
        record_id: str,
        data: Mapping[str, TopicValue],
        *,
        expected_version: int | None,
    ) -> StoredRecord: ...

    def seed(self, record_id: str, data: Mapping[str, TopicValue]) -> bool: ...


@dataclass(slots=True, kw_only=True)
class UpdateLogEntry:
    """Outcome of one reconciliation cycle, kept for auditing."""

    success: bool
    updated: bool = False
    reason: str | None = None
    error: str | None = None
    topics: tuple[str, ...] = ()
    confidence: float | None = None
    timestamp: datetime = field(default_factory=utcnow)


@runtime_checkable
class UpdateLog(Protocol):
    """Append-only sink for cycle outcomes."""

    def append(self, entry: UpdateLogEntry) -> None: ...


__all__ = ["RecordStore", "UpdateLog", "UpdateLogEntry"]
