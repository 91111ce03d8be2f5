"""Orchestrator for one reconciliation cycle.

A cycle runs strictly in order: read the record, build the prompt, call the
extraction service, parse, gate on confidence, merge, stamp, commit. Nothing
is persisted before the final ``patch``; a failure at any earlier point leaves
the stored record exactly as it was.

Concurrent cycles are guarded by the store's optimistic version token: the
``patch`` carries the version read in step one and fails with
``StaleRecordError`` when another cycle committed in between.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING, Final

from trackersync.domain.errors import ParseError, TrackerError
from trackersync.domain.ports.persistence import UpdateLogEntry
from trackersync.domain.record import DEFAULT_RECORD_ID, utcnow

from .candidate import CandidateUpdate
from .merge import merge_one_level, stamp_record
from .prompt import DEFAULT_CATEGORIES, build_reconciliation_prompt

if TYPE_CHECKING:
    from datetime import datetime

    from trackersync.domain.ports.extraction import ExtractionClient
    from trackersync.domain.ports.fetching import Headline, HeadlineSource
    from trackersync.domain.ports.persistence import RecordStore, UpdateLog
    from trackersync.domain.record import TopicValue

log = getLogger(__name__)

CONFIDENCE_THRESHOLD: Final[float] = 0.8
PARSE_ERROR: Final[str] = "parse error"
_RAW_LOG_LIMIT: Final[int] = 500


@dataclass(slots=True, frozen=True)
class ReconcileResult:
    """Outcome of one cycle that did not raise."""

    updated: bool
    reasoning: str | None = None
    changes: Mapping[str, TopicValue] | None = None
    error: str | None = None

    def to_dict(self) -> dict[str, object]:
        payload: dict[str, object] = {"updated": self.updated}
        if self.error is not None:
            payload["error"] = self.error
            return payload
        if self.updated:
            payload["changes"] = dict(self.changes or {})
        payload["reasoning"] = self.reasoning
        return payload


@dataclass(slots=True)
class ReconciliationEngine:
    """Reconcile the canonical record against freshly extracted claims."""

    extraction: ExtractionClient
    store: RecordStore
    record_id: str = DEFAULT_RECORD_ID
    categories: Mapping[str, str] = field(default_factory=lambda: dict(DEFAULT_CATEGORIES))
    headlines: HeadlineSource | None = None
    update_log: UpdateLog | None = None
    threshold: float = CONFIDENCE_THRESHOLD
    clock: Callable[[], datetime] = utcnow

    def reconcile(self) -> ReconcileResult:
        """Run one cycle.

        Returns a result for committed, gated and unparseable outcomes. Upstream
        and storage failures propagate after being written to the update log.
        """

        log.info(f"Starting reconciliation of record {self.record_id!r}")
        try:
            result = self._run_cycle()
        except TrackerError as exc:
            self._append_log(UpdateLogEntry(success=False, error=str(exc)))
            raise
        log.info(
            "Finished reconciliation: updated=%s, reasoning=%s, error=%s",
            result.updated,
            result.reasoning,
            result.error,
        )
        return result

    def _run_cycle(self) -> ReconcileResult:
        current = self.store.get(self.record_id)
        headlines = self._collect_headlines()
        prompt = build_reconciliation_prompt(
            current.data,
            categories=self.categories,
            now=self.clock(),
            headlines=headlines,
        )
        raw = self.extraction.generate(prompt)

        try:
            candidate = CandidateUpdate.from_text(raw)
        except ParseError as exc:
            log.error(f"Could not parse extraction output ({exc}): {exc.raw[:_RAW_LOG_LIMIT]!r}")
            self._append_log(UpdateLogEntry(success=False, error=PARSE_ERROR))
            return ReconcileResult(updated=False, error=PARSE_ERROR)

        if candidate.confidence < self.threshold or not candidate.updates:
            log.info(
                "Candidate rejected: confidence=%.2f, topics=%s",
                candidate.confidence,
                sorted(candidate.updates),
            )
            self._append_log(
                UpdateLogEntry(
                    success=True,
                    reason=candidate.reasoning,
                    topics=tuple(sorted(candidate.updates)),
                    confidence=candidate.confidence,
                )
            )
            return ReconcileResult(updated=False, reasoning=candidate.reasoning)

        merged = merge_one_level(current.data, candidate.updates)
        stamp_record(merged, reason=candidate.reasoning, now=self.clock())
        self.store.patch(self.record_id, merged, expected_version=current.version)

        self._append_log(
            UpdateLogEntry(
                success=True,
                updated=True,
                reason=candidate.reasoning,
                topics=tuple(sorted(candidate.updates)),
                confidence=candidate.confidence,
            )
        )
        return ReconcileResult(
            updated=True,
            reasoning=candidate.reasoning,
            changes=candidate.updates,
        )

    def _collect_headlines(self) -> list[Headline]:
        if self.headlines is None:
            return []
        headlines = self.headlines()
        log.info(f"Collected {len(headlines)} headlines")
        return headlines

    def _append_log(self, entry: UpdateLogEntry) -> None:
        if self.update_log is not None:
            self.update_log.append(entry)
