"""Reconciliation of the canonical record against extracted candidate updates.

Flow of one cycle:
1) read the current record and its version token
2) build a prompt from the record, topic categories and optional headlines
3) call the extraction service
4) parse the response into a candidate update (fail closed)
5) gate on confidence and emptiness
6) merge one level deep, stamp, and commit with the version token
"""

from __future__ import annotations

from .candidate import CandidateUpdate
from .engine import CONFIDENCE_THRESHOLD, PARSE_ERROR, ReconcileResult, ReconciliationEngine
from .merge import merge_one_level, merge_topic, stamp_record
from .parse import parse_structured, strip_code_fences
from .prompt import DEFAULT_CATEGORIES, build_reconciliation_prompt

__all__ = [
    "CONFIDENCE_THRESHOLD",
    "DEFAULT_CATEGORIES",
    "PARSE_ERROR",
    "CandidateUpdate",
    "ReconcileResult",
    "ReconciliationEngine",
    "build_reconciliation_prompt",
    "merge_one_level",
    "merge_topic",
    "parse_structured",
    "stamp_record",
    "strip_code_fences",
]
