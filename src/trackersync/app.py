"""Application orchestration entry points."""

from __future__ import annotations

import threading
from logging import getLogger
from typing import TYPE_CHECKING

from trackersync.adapters.gemini import GeminiExtractionClient
from trackersync.adapters.news import GoogleNewsHeadlines
from trackersync.adapters.notifier import InMemoryChangeNotifier, NotifyingRecordStore
from trackersync.adapters.sqlalchemy import (
    SqlAlchemyRecordStore,
    SqlAlchemyUpdateLog,
    is_started,
    startup,
)
from trackersync.adapters.supabase import SupabaseRecordStore, SupabaseUpdateLog
from trackersync.config import get_gemini_config, get_news_config, get_store_config
from trackersync.config.gemini import CLASSIFY_MAX_OUTPUT_TOKENS
from trackersync.domain.classification import ClassificationGateway
from trackersync.domain.reconciliation import DEFAULT_CATEGORIES, ReconciliationEngine
from trackersync.domain.record import LAST_UPDATE_REASON_KEY, LAST_UPDATED_KEY

if TYPE_CHECKING:
    from collections.abc import Mapping
    from typing import Any

    from trackersync.config import StoreConfig
    from trackersync.domain.ports import (
        ChangeNotifier,
        ExtractionClient,
        HeadlineSource,
        RecordStore,
        UpdateLog,
    )
    from trackersync.domain.reconciliation import ReconcileResult
    from trackersync.domain.record import TopicValue


log = getLogger(__name__)

# Shared by every store built in this process so that subscribers see all commits.
# In-process consumers attach with ``change_notifier.subscribe``.
change_notifier = InMemoryChangeNotifier()


_STAMP_KEYS = frozenset({LAST_UPDATED_KEY, LAST_UPDATE_REASON_KEY})


def _log_commit(record_id: str, record: Mapping[str, TopicValue]) -> None:
    topics = [key for key in record if key not in _STAMP_KEYS]
    log.info(
        "Committed record %r with %d topics: %s",
        record_id,
        len(topics),
        record.get(LAST_UPDATE_REASON_KEY, ""),
    )


change_notifier.subscribe(_log_commit)

_startup_lock = threading.Lock()


def _ensure_sqlalchemy_started(config: StoreConfig) -> None:
    # Concurrent first requests must start the adapter exactly once.
    with _startup_lock:
        if not is_started():
            startup(database_uri=config.database.uri if config.database else None)


def build_record_store(
    config: StoreConfig | None = None,
    *,
    notifier: ChangeNotifier | None = None,
) -> RecordStore:
    """Build the configured store, wrapped so that commits reach ``notifier``."""

    store_config = config or get_store_config()
    store: RecordStore
    if store_config.backend == "supabase":
        store = SupabaseRecordStore(config=store_config.supabase)
    else:
        _ensure_sqlalchemy_started(store_config)
        store = SqlAlchemyRecordStore()
    return NotifyingRecordStore(store, notifier or change_notifier)


def build_update_log(config: StoreConfig | None = None) -> UpdateLog:
    store_config = config or get_store_config()
    if store_config.backend == "supabase":
        return SupabaseUpdateLog(config=store_config.supabase)
    _ensure_sqlalchemy_started(store_config)
    return SqlAlchemyUpdateLog()


def build_headline_source() -> HeadlineSource | None:
    news_config = get_news_config()
    if not news_config.enabled:
        return None
    return GoogleNewsHeadlines(config=news_config)


def build_reconciliation_engine(
    *,
    extraction: ExtractionClient | None = None,
    store: RecordStore | None = None,
    update_log: UpdateLog | None = None,
    headlines: HeadlineSource | None = None,
    categories: Mapping[str, str] | None = None,
) -> ReconciliationEngine:
    """Wire the engine from the environment; every setting is read before any network call."""

    store_config = get_store_config()
    return ReconciliationEngine(
        extraction=extraction or GeminiExtractionClient(config=get_gemini_config()),
        store=store or build_record_store(store_config),
        record_id=store_config.record_id,
        categories=dict(categories or DEFAULT_CATEGORIES),
        headlines=headlines if headlines is not None else build_headline_source(),
        update_log=update_log or build_update_log(store_config),
    )


def build_classification_gateway(
    *,
    extraction: ExtractionClient | None = None,
) -> ClassificationGateway:
    if extraction is None:
        config = get_gemini_config().with_max_output_tokens(CLASSIFY_MAX_OUTPUT_TOKENS)
        extraction = GeminiExtractionClient(config=config)
    return ClassificationGateway(extraction=extraction)


def reconcile_tracker(*, engine: ReconciliationEngine | None = None) -> ReconcileResult:
    """Run one reconciliation cycle using the configured adapters."""

    effective_engine = engine or build_reconciliation_engine()
    return effective_engine.reconcile()


def classify_document(
    schema_name: str,
    article: str,
    *,
    gateway: ClassificationGateway | None = None,
) -> dict[str, Any]:
    effective_gateway = gateway or build_classification_gateway()
    return effective_gateway.classify(schema_name, article)


def seed_tracker(
    data: Mapping[str, TopicValue],
    *,
    store: RecordStore | None = None,
    record_id: str | None = None,
) -> bool:
    """Create the canonical record from a seed snapshot unless it already exists."""

    store_config = get_store_config() if store is None or record_id is None else None
    effective_store = store or build_record_store(store_config)
    effective_id = record_id or (store_config.record_id if store_config else "")
    created = effective_store.seed(effective_id, data)
    if created:
        log.info(f"Seeded record {effective_id!r} with {len(data)} topics")
    else:
        log.info(f"Record {effective_id!r} already exists; seed skipped")
    return created
