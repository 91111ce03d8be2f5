"""Port for propagating committed records to live observers."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Mapping

    from trackersync.domain.record import TopicValue


@runtime_checkable
class ChangeNotifier(Protocol):
    """Publish the full committed record for ``record_id`` to subscribers."""

    def publish(self, record_id: str, record: Mapping[str, TopicValue]) -> None: ...


__all__ = ["ChangeNotifier"]
