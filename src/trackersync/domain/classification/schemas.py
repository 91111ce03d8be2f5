"""Extraction schemas for single-document classification.

Each schema is a typed contract: the entity key the result nests under, the
fields the model must fill (always including ``confidence``), and the task
description used to build the prompt. Contracts are checked when they are
registered, so a lookup never returns a malformed schema.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Final

from trackersync.domain.errors import ValidationError

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator, Mapping

CONFIDENCE_FIELD: Final[str] = "confidence"


@dataclass(slots=True, frozen=True)
class ExtractionSchema:
    name: str
    entity: str
    task: str
    fields: Mapping[str, str]

    def build_prompt(self, article: str) -> str:
        found_example = json.dumps(
            {"found": True, self.entity: dict(self.fields)},
            indent=2,
            ensure_ascii=False,
        )
        return (
            f"Analyze this article for {self.task}.\n\n"
            f"Article:\n{article}\n\n"
            f"If found, return JSON:\n{found_example}\n\n"
            'If not found: {"found": false}\n'
            "Return ONLY valid JSON."
        )


def _validate_contract(schema: ExtractionSchema) -> None:
    if not schema.name.strip():
        raise ValueError("Extraction schema name must not be blank")
    if not schema.entity.isidentifier():
        raise ValueError(f"Schema {schema.name!r}: entity key {schema.entity!r} is not a valid key")
    if schema.entity == "found":
        raise ValueError(f"Schema {schema.name!r}: entity key must not shadow 'found'")
    if not schema.task.strip():
        raise ValueError(f"Schema {schema.name!r}: task description must not be blank")
    if CONFIDENCE_FIELD not in schema.fields:
        raise ValueError(f"Schema {schema.name!r}: fields must include {CONFIDENCE_FIELD!r}")


@dataclass(slots=True)
class SchemaRegistry:
    """Explicit mapping from schema identifier to extraction contract."""

    _schemas: dict[str, ExtractionSchema] = field(default_factory=dict)

    def register(self, schema: ExtractionSchema) -> ExtractionSchema:
        _validate_contract(schema)
        if schema.name in self._schemas:
            raise ValueError(f"Extraction schema {schema.name!r} is already registered")
        self._schemas[schema.name] = schema
        return schema

    def get(self, name: str) -> ExtractionSchema:
        try:
            return self._schemas[name]
        except KeyError:
            raise ValidationError(f"Invalid type: {name}") from None

    def __contains__(self, name: object) -> bool:
        return name in self._schemas

    def __iter__(self) -> Iterator[str]:
        return iter(self._schemas)

    @classmethod
    def of(cls, schemas: Iterable[ExtractionSchema]) -> SchemaRegistry:
        registry = cls()
        for schema in schemas:
            registry.register(schema)
        return registry


BROKEN_PROMISE = ExtractionSchema(
    name="brokenPromise",
    entity="promise",
    task="information about a Trump campaign promise that was broken or not fulfilled",
    fields=MappingProxyType(
        {
            "description": "What was promised",
            "quote": "Exact quote if available",
            "status": "Current status",
            "evidence": "List of facts showing it is broken",
            "confidence": "0.0-1.0",
        }
    ),
)

ICE_INCIDENT = ExtractionSchema(
    name="iceIncident",
    entity="incident",
    task="someone killed or seriously harmed by ICE, CBP, or Border Patrol",
    fields=MappingProxyType(
        {
            "name": "Victim name",
            "age": "number",
            "citizenship": "us_citizen|legal_resident|undocumented|unknown",
            "date": "YYYY-MM-DD",
            "location": "City, State",
            "agency": "ICE|CBP|Border Patrol",
            "description": "What happened",
            "confidence": "0.0-1.0",
        }
    ),
)

SELF_DEALING = ExtractionSchema(
    name="selfDealing",
    entity="incident",
    task="Trump profiting from the presidency or conflicts of interest",
    fields=MappingProxyType(
        {
            "type": "taxpayer_spending|foreign_government|policy_benefit",
            "description": "What happened",
            "amount": "number or null",
            "source": "Who documented this",
            "confidence": "0.0-1.0",
        }
    ),
)

DEFAULT_SCHEMAS: Final[tuple[ExtractionSchema, ...]] = (BROKEN_PROMISE, ICE_INCIDENT, SELF_DEALING)


def default_registry() -> SchemaRegistry:
    return SchemaRegistry.of(DEFAULT_SCHEMAS)
