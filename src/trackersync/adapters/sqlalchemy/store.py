"""SQLAlchemy-backed canonical store and update log."""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from sqlalchemy import create_engine, insert, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from trackersync.config.storage import get_database_config
from trackersync.domain.errors import StaleRecordError, StorageError
from trackersync.domain.record import StoredRecord, utcnow

from .mappings import create_all_tables, tracker_data_table, update_log_table

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping
    from datetime import datetime

    from sqlalchemy.engine import Engine

    from trackersync.domain.ports.persistence import UpdateLogEntry
    from trackersync.domain.record import TopicValue

log = getLogger(__name__)


class StartupError(StorageError):
    """Raised when the SQLAlchemy adapter is used before initialisation."""


@dataclass(slots=True)
class _AdapterState:
    engine: Engine | None = None

    def require_engine(self) -> Engine:
        if self.engine is None:
            raise StartupError(
                "SQLAlchemy adapter not initialised. Call trackersync.adapters.sqlalchemy."
                "store.startup() before requesting a store."
            )
        return self.engine


_STATE = _AdapterState()


def startup(
    *,
    engine: Engine | None = None,
    database_uri: str | None = None,
    force: bool = False,
) -> Engine:
    """Initialise the SQLAlchemy engine and create missing tables."""

    if _STATE.engine is not None and not force:
        raise StartupError(
            "SQLAlchemy adapter already initialised. Pass force=True to reconfigure."
        )

    resolved_engine = engine or create_engine(
        database_uri or get_database_config().uri,
        future=True,
    )
    create_all_tables(resolved_engine)
    _STATE.engine = resolved_engine
    return resolved_engine


def configured_engine() -> Engine | None:
    """Return the engine currently managed by the adapter (if any)."""

    return _STATE.engine


def is_started() -> bool:
    return _STATE.engine is not None


def shutdown() -> None:
    """Dispose the managed engine and reset state (primarily for tests)."""

    if _STATE.engine is not None:
        _STATE.engine.dispose()
    _STATE.engine = None


class SqlAlchemyRecordStore:
    """``RecordStore`` over the ``tracker_data`` table with an integer version column."""

    def __init__(
        self,
        engine: Engine | None = None,
        *,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._engine = engine or _STATE.require_engine()
        self._clock = clock

    def get(self, record_id: str) -> StoredRecord:
        stmt = select(
            tracker_data_table.c.data,
            tracker_data_table.c.updated_at,
            tracker_data_table.c.version,
        ).where(tracker_data_table.c.id == record_id)
        try:
            with self._engine.connect() as connection:
                row = connection.execute(stmt).one_or_none()
        except SQLAlchemyError as exc:
            raise StorageError(f"Failed to read record {record_id!r}: {exc}") from exc
        if row is None:
            return StoredRecord()
        return StoredRecord(data=row.data or {}, version=row.version, updated_at=row.updated_at)

    def patch(
        self,
        record_id: str,
        data: Mapping[str, TopicValue],
        *,
        expected_version: int | None,
    ) -> StoredRecord:
        now = self._clock()
        new_version = 1 if expected_version is None else expected_version + 1
        try:
            with self._engine.begin() as connection:
                if expected_version is None:
                    connection.execute(
                        insert(tracker_data_table).values(
                            id=record_id,
                            data=dict(data),
                            updated_at=now,
                            version=new_version,
                        )
                    )
                else:
                    result = connection.execute(
                        update(tracker_data_table)
                        .where(tracker_data_table.c.id == record_id)
                        .where(tracker_data_table.c.version == expected_version)
                        .values(data=dict(data), updated_at=now, version=new_version)
                    )
                    if result.rowcount != 1:
                        raise StaleRecordError(
                            f"Record {record_id!r} changed since version {expected_version} "
                            "was read",
                            expected_version=expected_version,
                        )
        except IntegrityError as exc:
            raise StaleRecordError(
                f"Record {record_id!r} was created concurrently",
                expected_version=expected_version,
            ) from exc
        except SQLAlchemyError as exc:
            raise StorageError(f"Failed to write record {record_id!r}: {exc}") from exc

        log.info(f"Patched record {record_id!r} to version {new_version}")
        return StoredRecord(data=dict(data), version=new_version, updated_at=now)

    def seed(self, record_id: str, data: Mapping[str, TopicValue]) -> bool:
        exists_stmt = select(tracker_data_table.c.id).where(tracker_data_table.c.id == record_id)
        try:
            with self._engine.begin() as connection:
                if connection.execute(exists_stmt).first() is not None:
                    return False
                connection.execute(
                    insert(tracker_data_table).values(
                        id=record_id,
                        data=dict(data),
                        updated_at=self._clock(),
                        version=1,
                    )
                )
        except IntegrityError:
            return False
        except SQLAlchemyError as exc:
            raise StorageError(f"Failed to seed record {record_id!r}: {exc}") from exc
        return True


class SqlAlchemyUpdateLog:
    """``UpdateLog`` over the ``update_logs`` table; write failures are logged only."""

    def __init__(self, engine: Engine | None = None) -> None:
        self._engine = engine or _STATE.require_engine()

    def append(self, entry: UpdateLogEntry) -> None:
        stmt = insert(update_log_table).values(
            timestamp=entry.timestamp,
            success=entry.success,
            updated=entry.updated,
            reason=entry.reason,
            error=entry.error,
            topics=list(entry.topics),
            confidence=entry.confidence,
        )
        try:
            with self._engine.begin() as connection:
                connection.execute(stmt)
        except SQLAlchemyError as exc:
            log.warning(f"Failed to write update log: {exc}")
