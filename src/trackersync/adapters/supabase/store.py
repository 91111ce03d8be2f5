"""Canonical store and update log backed by the Supabase REST API.

Expected tables::

    create table tracker_data (
        id text primary key,
        data jsonb not null default '{}'::jsonb,
        updated_at timestamptz not null default now(),
        version integer not null default 1
    );

    create table update_logs (
        id bigserial primary key,
        timestamp timestamptz not null,
        success boolean not null,
        updated boolean not null default false,
        reason text,
        error text,
        topics text[] not null default '{}',
        confidence double precision
    );

Writes use ``Prefer: return=representation`` so that an optimistic-version
mismatch shows up as an empty result instead of a silent no-op.
"""

from __future__ import annotations

import asyncio
from logging import getLogger
from typing import TYPE_CHECKING, Any, Final

import httpx
from pydantic import ValidationError as PydanticValidationError

from trackersync.adapters.http_resilience import default_client_factory
from trackersync.config.storage import get_supabase_config
from trackersync.domain.errors import StaleRecordError, StorageError
from trackersync.domain.record import StoredRecord, isoformat_utc, utcnow

from .schema import TrackerRow

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping
    from datetime import datetime

    from trackersync.adapters.http_resilience import ClientFactory
    from trackersync.config.storage import SupabaseConfig
    from trackersync.domain.ports.persistence import UpdateLogEntry
    from trackersync.domain.record import TopicValue

log = getLogger(__name__)

TRACKER_TABLE: Final[str] = "tracker_data"
UPDATE_LOG_TABLE: Final[str] = "update_logs"
_RETURN_REPRESENTATION: Final[dict[str, str]] = {"Prefer": "return=representation"}


class _SupabaseTable:
    def __init__(
        self,
        *,
        config: SupabaseConfig | None,
        client_factory: ClientFactory | None,
    ) -> None:
        self._config = config or get_supabase_config()
        self._client_factory = client_factory or default_client_factory

    async def _request(
        self,
        method: str,
        table: str,
        *,
        params: Mapping[str, str] | None = None,
        json: object = None,
        headers: Mapping[str, str] | None = None,
    ) -> httpx.Response:
        try:
            async with self._client_factory(self._config.resilience) as client:
                return await client.request(
                    method,
                    table,
                    params=dict(params) if params else None,
                    json=json,
                    headers=dict(headers) if headers else None,
                )
        except httpx.HTTPError as exc:
            raise StorageError(f"Supabase {method} {table} failed: {exc}") from exc


class SupabaseRecordStore(_SupabaseTable):
    """``RecordStore`` over the ``tracker_data`` table."""

    def __init__(
        self,
        *,
        config: SupabaseConfig | None = None,
        client_factory: ClientFactory | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        super().__init__(config=config, client_factory=client_factory)
        self._clock = clock

    def get(self, record_id: str) -> StoredRecord:
        return asyncio.run(self._get_async(record_id))

    def patch(
        self,
        record_id: str,
        data: Mapping[str, TopicValue],
        *,
        expected_version: int | None,
    ) -> StoredRecord:
        if expected_version is None:
            return asyncio.run(self._insert_async(record_id, data))
        return asyncio.run(self._update_async(record_id, data, expected_version))

    def seed(self, record_id: str, data: Mapping[str, TopicValue]) -> bool:
        return asyncio.run(self._seed_async(record_id, data))

    async def _get_async(self, record_id: str) -> StoredRecord:
        response = await self._request(
            "GET",
            TRACKER_TABLE,
            params={"id": f"eq.{record_id}", "select": "data,updated_at,version"},
        )
        rows = self._rows(response, action="read")
        if not rows:
            return StoredRecord()
        return rows[0].to_record()

    async def _insert_async(self, record_id: str, data: Mapping[str, TopicValue]) -> StoredRecord:
        response = await self._request(
            "POST",
            TRACKER_TABLE,
            json=self._row_payload(record_id, data, version=1),
            headers=_RETURN_REPRESENTATION,
        )
        if response.status_code == httpx.codes.CONFLICT:
            raise StaleRecordError(
                f"Record {record_id!r} was created concurrently",
                expected_version=None,
            )
        rows = self._rows(response, action="insert")
        if not rows:
            raise StorageError(f"Supabase did not acknowledge the insert of {record_id!r}")
        log.info(f"Created record {record_id!r}")
        return rows[0].to_record()

    async def _update_async(
        self,
        record_id: str,
        data: Mapping[str, TopicValue],
        expected_version: int,
    ) -> StoredRecord:
        payload = self._row_payload(record_id, data, version=expected_version + 1)
        del payload["id"]
        response = await self._request(
            "PATCH",
            TRACKER_TABLE,
            params={"id": f"eq.{record_id}", "version": f"eq.{expected_version}"},
            json=payload,
            headers=_RETURN_REPRESENTATION,
        )
        rows = self._rows(response, action="update")
        if not rows:
            raise StaleRecordError(
                f"Record {record_id!r} changed since version {expected_version} was read",
                expected_version=expected_version,
            )
        log.info(f"Patched record {record_id!r} to version {expected_version + 1}")
        return rows[0].to_record()

    async def _seed_async(self, record_id: str, data: Mapping[str, TopicValue]) -> bool:
        response = await self._request(
            "POST",
            TRACKER_TABLE,
            json=self._row_payload(record_id, data, version=1),
            headers={"Prefer": "resolution=ignore-duplicates,return=representation"},
        )
        return bool(self._rows(response, action="seed"))

    def _row_payload(
        self,
        record_id: str,
        data: Mapping[str, TopicValue],
        *,
        version: int,
    ) -> dict[str, Any]:
        return {
            "id": record_id,
            "data": dict(data),
            "updated_at": isoformat_utc(self._clock()),
            "version": version,
        }

    @staticmethod
    def _rows(response: httpx.Response, *, action: str) -> list[TrackerRow]:
        if response.is_error:
            raise StorageError(
                f"Supabase {action} failed: {response.status_code} - {response.text[:500]}"
            )
        if not response.content:
            return []
        try:
            payload = response.json()
        except ValueError as exc:
            raise StorageError(f"Supabase {action} returned a non-JSON body") from exc
        if not isinstance(payload, list):
            raise StorageError(f"Supabase {action} returned an unexpected payload")
        try:
            return [TrackerRow.model_validate(row) for row in payload]
        except PydanticValidationError as exc:
            raise StorageError(f"Supabase {action} returned a malformed row") from exc


class SupabaseUpdateLog(_SupabaseTable):
    """``UpdateLog`` over the ``update_logs`` table; write failures are logged only."""

    def __init__(
        self,
        *,
        config: SupabaseConfig | None = None,
        client_factory: ClientFactory | None = None,
    ) -> None:
        super().__init__(config=config, client_factory=client_factory)

    def append(self, entry: UpdateLogEntry) -> None:
        try:
            asyncio.run(self._append_async(entry))
        except StorageError as exc:
            log.warning(f"Failed to write update log: {exc}")

    async def _append_async(self, entry: UpdateLogEntry) -> None:
        response = await self._request(
            "POST",
            UPDATE_LOG_TABLE,
            json={
                "timestamp": isoformat_utc(entry.timestamp),
                "success": entry.success,
                "updated": entry.updated,
                "reason": entry.reason,
                "error": entry.error,
                "topics": list(entry.topics),
                "confidence": entry.confidence,
            },
            headers={"Prefer": "return=minimal"},
        )
        if response.is_error:
            raise StorageError(f"{response.status_code} - {response.text[:500]}")
