"""Stateless single-document classification."""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING, Any

from trackersync.domain.errors import ParseError
from trackersync.domain.reconciliation.parse import parse_structured

from .schemas import SchemaRegistry, default_registry

if TYPE_CHECKING:
    from trackersync.domain.ports.extraction import ExtractionClient

log = getLogger(__name__)

_RAW_LOG_LIMIT = 500


@dataclass(slots=True)
class ClassificationGateway:
    """Extract one structured entity from one document using a named schema.

    The gateway never touches the canonical store; calls are independent of
    each other and may run in any order.
    """

    extraction: ExtractionClient
    registry: SchemaRegistry = field(default_factory=default_registry)

    def classify(self, schema_name: str, document_text: str) -> dict[str, Any]:
        schema = self.registry.get(schema_name)
        raw = self.extraction.generate(schema.build_prompt(document_text))
        try:
            decoded = parse_structured(raw)
        except ParseError as exc:
            _log_unparsed(schema_name, exc)
            raise
        if not isinstance(decoded, dict) or not isinstance(decoded.get("found"), bool):
            exc = ParseError("Classification output lacks a boolean 'found' field", raw=raw)
            _log_unparsed(schema_name, exc)
            raise exc
        log.info(f"Classified document with schema {schema_name!r}: found={decoded['found']}")
        return decoded


def _log_unparsed(schema_name: str, exc: ParseError) -> None:
    log.error(f"Unusable {schema_name!r} output ({exc}): {exc.raw[:_RAW_LOG_LIMIT]!r}")
