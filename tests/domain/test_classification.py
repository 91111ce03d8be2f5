from __future__ import annotations

import json
import logging
from types import MappingProxyType
from typing import TYPE_CHECKING

import pytest

from trackersync.domain.classification import (
    DEFAULT_SCHEMAS,
    ClassificationGateway,
    ExtractionSchema,
    SchemaRegistry,
    default_registry,
)
from trackersync.domain.errors import ParseError, ValidationError

if TYPE_CHECKING:
    from tests.helpers.fakes import FakeExtractionClient


def _schema(**overrides: object) -> ExtractionSchema:
    values: dict[str, object] = {
        "name": "lawsuit",
        "entity": "case",
        "task": "a lawsuit against the administration",
        "fields": MappingProxyType({"court": "Court name", "confidence": "0.0-1.0"}),
    }
    values.update(overrides)
    return ExtractionSchema(**values)  # type: ignore[arg-type]


def test_default_registry_contains_known_schemas() -> None:
    registry = default_registry()

    assert list(registry) == ["brokenPromise", "iceIncident", "selfDealing"]
    assert registry.get("brokenPromise").entity == "promise"
    assert registry.get("iceIncident").entity == "incident"
    assert registry.get("selfDealing").entity == "incident"


def test_default_schemas_all_require_confidence() -> None:
    for schema in DEFAULT_SCHEMAS:
        assert "confidence" in schema.fields


def test_unknown_schema_raises_validation_error() -> None:
    with pytest.raises(ValidationError, match="Invalid type: weather"):
        default_registry().get("weather")


@pytest.mark.parametrize(
    "overrides",
    [
        {"name": "  "},
        {"entity": "not a key"},
        {"entity": "found"},
        {"task": ""},
        {"fields": MappingProxyType({"court": "Court name"})},
    ],
)
def test_register_rejects_broken_contracts(overrides: dict[str, object]) -> None:
    with pytest.raises(ValueError):  # noqa: PT011
        SchemaRegistry().register(_schema(**overrides))


def test_register_rejects_duplicates() -> None:
    registry = SchemaRegistry.of([_schema()])

    with pytest.raises(ValueError, match="already registered"):
        registry.register(_schema())


def test_prompt_embeds_article_and_contract() -> None:
    prompt = _schema().build_prompt("The court ruled on Monday.")

    assert "a lawsuit against the administration" in prompt
    assert "The court ruled on Monday." in prompt
    assert '"case"' in prompt
    assert '{"found": false}' in prompt


def test_classify_not_found_is_returned_verbatim(extraction: FakeExtractionClient) -> None:
    extraction.responses.append('```json\n{"found": false}\n```')
    gateway = ClassificationGateway(extraction=extraction)

    result = gateway.classify("iceIncident", "Weather report: sunny skies.")

    assert result == {"found": False}
    assert "Weather report: sunny skies." in extraction.prompts[0]


def test_classify_found_passes_fields_through(extraction: FakeExtractionClient) -> None:
    payload = {
        "found": True,
        "promise": {"description": "Lower prices", "confidence": 0.85, "extra": "kept"},
    }
    extraction.responses.append(json.dumps(payload))
    gateway = ClassificationGateway(extraction=extraction)

    assert gateway.classify("brokenPromise", "article") == payload


def test_classify_unknown_schema_makes_no_extraction_call(
    extraction: FakeExtractionClient,
) -> None:
    gateway = ClassificationGateway(extraction=extraction)

    with pytest.raises(ValidationError, match="Invalid type: unknown"):
        gateway.classify("unknown", "article")

    assert extraction.calls == 0


@pytest.mark.parametrize("raw", ["not json", "[]", '{"promise": {}}', '{"found": "yes"}'])
def test_classify_rejects_output_without_found_flag(
    extraction: FakeExtractionClient,
    caplog: pytest.LogCaptureFixture,
    raw: str,
) -> None:
    extraction.responses.append(raw)
    gateway = ClassificationGateway(extraction=extraction)

    with caplog.at_level(logging.ERROR), pytest.raises(ParseError):
        gateway.classify("brokenPromise", "article")

    assert repr(raw) in caplog.text


def test_custom_registry_is_used(extraction: FakeExtractionClient) -> None:
    extraction.responses.append('{"found": true, "case": {"court": "SDNY", "confidence": 0.9}}')
    gateway = ClassificationGateway(extraction=extraction, registry=SchemaRegistry.of([_schema()]))

    result = gateway.classify("lawsuit", "article")

    assert result["case"]["court"] == "SDNY"
