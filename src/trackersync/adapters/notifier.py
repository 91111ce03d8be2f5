"""In-process publish/subscribe channel for committed records."""

from __future__ import annotations

import threading
from collections.abc import Callable, Mapping
from copy import deepcopy
from logging import getLogger
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from trackersync.domain.ports.notification import ChangeNotifier
    from trackersync.domain.ports.persistence import RecordStore
    from trackersync.domain.record import StoredRecord, TopicValue

log = getLogger(__name__)

type Subscriber = Callable[[str, Mapping[str, TopicValue]], None]


class InMemoryChangeNotifier:
    """Deliver every committed record to all current subscribers.

    Each subscriber receives its own copy of the full record. A subscriber that
    raises is logged and skipped; delivery to the others and the commit itself
    are unaffected.
    """

    def __init__(self) -> None:
        self._subscribers: list[Subscriber] = []
        self._lock = threading.Lock()

    def subscribe(self, subscriber: Subscriber) -> Callable[[], None]:
        with self._lock:
            self._subscribers.append(subscriber)

        def unsubscribe() -> None:
            with self._lock:
                if subscriber in self._subscribers:
                    self._subscribers.remove(subscriber)

        return unsubscribe

    def publish(self, record_id: str, record: Mapping[str, TopicValue]) -> None:
        with self._lock:
            subscribers = tuple(self._subscribers)
        for subscriber in subscribers:
            try:
                subscriber(record_id, deepcopy(dict(record)))
            except Exception:
                log.exception(f"Subscriber {subscriber!r} failed for record {record_id!r}")


class NotifyingRecordStore:
    """``RecordStore`` wrapper that publishes only after a write is acknowledged."""

    def __init__(self, store: RecordStore, notifier: ChangeNotifier) -> None:
        self._store = store
        self._notifier = notifier

    def get(self, record_id: str) -> StoredRecord:
        return self._store.get(record_id)

    def patch(
        self,
        record_id: str,
        data: Mapping[str, TopicValue],
        *,
        expected_version: int | None,
    ) -> StoredRecord:
        stored = self._store.patch(record_id, data, expected_version=expected_version)
        self._notifier.publish(record_id, stored.data)
        return stored

    def seed(self, record_id: str, data: Mapping[str, TopicValue]) -> bool:
        created = self._store.seed(record_id, data)
        if created:
            self._notifier.publish(record_id, data)
        return created


if TYPE_CHECKING:
    _notifier_check: ChangeNotifier = InMemoryChangeNotifier()
