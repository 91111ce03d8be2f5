"""Pydantic models describing Supabase REST rows."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from trackersync.domain.record import StoredRecord


class SupabaseBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class TrackerRow(SupabaseBaseModel):
    data: dict[str, Any] = Field(default_factory=dict)
    updated_at: datetime | None = None
    version: int = 1

    @field_validator("data", mode="before")
    @classmethod
    def _null_data(cls, value: object) -> object:
        return {} if value is None else value

    def to_record(self) -> StoredRecord:
        return StoredRecord(data=self.data, version=self.version, updated_at=self.updated_at)
