"""One-level merge policy for applying candidate updates.

For each proposed topic: when both the existing and the proposed value are
mappings, the proposed keys overwrite the existing ones and unmentioned keys
are kept. In every other case (scalar, list, type mismatch, missing topic) the
proposed value replaces the existing one wholesale. Lists are never merged
element-wise, so a shorter proposed list shrinks the topic.

Nested mappings below the first level are replaced, not merged: the
extraction model supplies no per-field provenance to merge deeper safely.
"""

from __future__ import annotations

from collections.abc import Mapping
from copy import deepcopy
from typing import TYPE_CHECKING

from trackersync.domain.record import LAST_UPDATE_REASON_KEY, LAST_UPDATED_KEY, isoformat_utc

if TYPE_CHECKING:
    from datetime import datetime

    from trackersync.domain.record import CanonicalRecord, TopicValue


def merge_topic(existing: TopicValue, proposed: TopicValue) -> TopicValue:
    if isinstance(existing, Mapping) and isinstance(proposed, Mapping):
        return {**deepcopy(dict(existing)), **deepcopy(dict(proposed))}
    return deepcopy(proposed)


def merge_one_level(
    current: Mapping[str, TopicValue],
    updates: Mapping[str, TopicValue],
) -> CanonicalRecord:
    """Return a new record with ``updates`` applied; ``current`` is left untouched."""

    merged: CanonicalRecord = deepcopy(dict(current))
    for topic, proposed in updates.items():
        merged[topic] = merge_topic(merged.get(topic), proposed)
    return merged


def stamp_record(record: CanonicalRecord, *, reason: str, now: datetime) -> CanonicalRecord:
    record[LAST_UPDATED_KEY] = isoformat_utc(now)
    record[LAST_UPDATE_REASON_KEY] = reason
    return record
