"""Bounds applied to every model-proposed value before it can reach the store.

Strings are trimmed, cut to ``MAX_STRING_LENGTH`` and stripped of script
tags, ``javascript:`` URLs and inline event handlers. Lists are cut to
``MAX_LIST_LENGTH`` items. Mappings and lists are walked recursively; other
scalars pass through unchanged.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import TYPE_CHECKING, Final

if TYPE_CHECKING:
    from trackersync.domain.record import TopicValue

MAX_STRING_LENGTH: Final[int] = 1000
MAX_LIST_LENGTH: Final[int] = 100

_SCRIPT_TAG = re.compile(r"<script\b[^<]*(?:(?!</script>)<[^<]*)*</script>", re.IGNORECASE)
_JAVASCRIPT_URL = re.compile(r"javascript:", re.IGNORECASE)
_EVENT_HANDLER = re.compile(r"on\w+=", re.IGNORECASE)


def sanitize_text(value: str, *, max_length: int = MAX_STRING_LENGTH) -> str:
    text = value.strip()[:max_length]
    text = _SCRIPT_TAG.sub("", text)
    text = _JAVASCRIPT_URL.sub("", text)
    return _EVENT_HANDLER.sub("", text)


def sanitize_value(value: TopicValue) -> TopicValue:
    if isinstance(value, str):
        return sanitize_text(value)
    if isinstance(value, Mapping):
        return {key: sanitize_value(item) for key, item in value.items()}
    if isinstance(value, list):
        return [sanitize_value(item) for item in value[:MAX_LIST_LENGTH]]
    return value


def sanitize_updates(updates: Mapping[str, TopicValue]) -> dict[str, TopicValue]:
    return {topic: sanitize_value(value) for topic, value in updates.items()}
