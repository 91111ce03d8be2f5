from __future__ import annotations

import os
from datetime import UTC, datetime
from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine  # noqa: TC002
from sqlalchemy.pool import StaticPool

from tests.helpers.fakes import FakeExtractionClient, RecordingStore, RecordingUpdateLog
from trackersync.adapters.sqlalchemy import shutdown, startup

os.environ.setdefault("DATABASE_URI", "sqlite+pysqlite:///:memory:")

if TYPE_CHECKING:
    from collections.abc import Iterator

FIXED_NOW = datetime(2025, 6, 1, 12, 0, tzinfo=UTC)


@pytest.fixture
def fixed_now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def sqlite_engine() -> Iterator[Engine]:
    engine = create_engine(
        "sqlite+pysqlite://",
        future=True,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def started_engine(sqlite_engine: Engine) -> Iterator[Engine]:
    engine = startup(engine=sqlite_engine, force=True)
    try:
        yield engine
    finally:
        shutdown()


@pytest.fixture
def extraction() -> FakeExtractionClient:
    return FakeExtractionClient()


@pytest.fixture
def store() -> RecordingStore:
    return RecordingStore()


@pytest.fixture
def update_log() -> RecordingUpdateLog:
    return RecordingUpdateLog()


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    for name in (
        "GEMINI_API_KEY",
        "GEMINI_MODEL",
        "GEMINI_BASE_URL",
        "SUPABASE_URL",
        "SUPABASE_SERVICE_KEY",
        "TRACKERSYNC_STORE",
        "TRACKERSYNC_RECORD_ID",
        "TRACKERSYNC_NEWS_QUERIES",
        "CRON_SECRET",
    ):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch
