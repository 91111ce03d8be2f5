"""SQLAlchemy adapter package for trackersync."""

from __future__ import annotations

from .mappings import create_all_tables, metadata, tracker_data_table, update_log_table
from .store import (
    SqlAlchemyRecordStore,
    SqlAlchemyUpdateLog,
    StartupError,
    configured_engine,
    is_started,
    shutdown,
    startup,
)

__all__ = [
    "SqlAlchemyRecordStore",
    "SqlAlchemyUpdateLog",
    "StartupError",
    "configured_engine",
    "create_all_tables",
    "is_started",
    "metadata",
    "shutdown",
    "startup",
    "tracker_data_table",
    "update_log_table",
]
