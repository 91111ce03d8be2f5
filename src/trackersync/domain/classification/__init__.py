"""Classification pathway: schema registry and stateless gateway."""

from __future__ import annotations

from .gateway import ClassificationGateway
from .schemas import (
    BROKEN_PROMISE,
    DEFAULT_SCHEMAS,
    ICE_INCIDENT,
    SELF_DEALING,
    ExtractionSchema,
    SchemaRegistry,
    default_registry,
)

__all__ = [
    "BROKEN_PROMISE",
    "DEFAULT_SCHEMAS",
    "ICE_INCIDENT",
    "SELF_DEALING",
    "ClassificationGateway",
    "ExtractionSchema",
    "SchemaRegistry",
    "default_registry",
]
