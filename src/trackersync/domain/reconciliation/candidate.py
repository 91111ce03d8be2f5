"""Candidate updates proposed by one reconciliation cycle."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, StrictFloat, field_validator
from pydantic import ValidationError as PydanticValidationError

from trackersync.domain.errors import ParseError

from .parse import parse_structured
from .sanitize import sanitize_text, sanitize_updates


class CandidateUpdate(BaseModel):
    """Proposed partial change to the canonical record with its rationale."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    updates: dict[str, Any] = Field(default_factory=dict)
    reasoning: str = ""
    # Integers pass; booleans and numeric strings do not.
    confidence: StrictFloat = Field(ge=0.0, le=1.0)

    @field_validator("updates", mode="before")
    @classmethod
    def _null_updates(cls, value: object) -> object:
        return {} if value is None else value

    @field_validator("reasoning", mode="before")
    @classmethod
    def _null_reasoning(cls, value: object) -> object:
        return "" if value is None else value

    @field_validator("updates")
    @classmethod
    def _bound_updates(cls, value: dict[str, Any]) -> dict[str, Any]:
        return sanitize_updates(value)

    @field_validator("reasoning")
    @classmethod
    def _bound_reasoning(cls, value: str) -> str:
        return sanitize_text(value)

    @classmethod
    def from_text(cls, raw: str) -> CandidateUpdate:
        """Decode and validate extraction output; any failure is a ``ParseError``."""

        decoded = parse_structured(raw)
        if not isinstance(decoded, dict):
            raise ParseError("Extraction output is not a JSON object", raw=raw)
        try:
            return cls.model_validate(decoded)
        except PydanticValidationError as exc:
            msg = f"Extraction output is not a candidate update ({exc.error_count()} errors)"
            raise ParseError(msg, raw=raw) from exc
