from __future__ import annotations

from trackersync.domain.reconciliation import CandidateUpdate
from trackersync.domain.reconciliation.sanitize import (
    MAX_LIST_LENGTH,
    MAX_STRING_LENGTH,
    sanitize_text,
    sanitize_value,
)


def test_text_is_trimmed_and_capped() -> None:
    assert sanitize_text("  Forbes  ") == "Forbes"
    assert len(sanitize_text("x" * (MAX_STRING_LENGTH + 50))) == MAX_STRING_LENGTH


def test_markup_is_stripped() -> None:
    assert sanitize_text("Hello <script>alert(1)</script>world") == "Hello world"
    assert sanitize_text("<SCRIPT src=x></SCRIPT>done") == "done"
    assert sanitize_text("javascript:alert(1)") == "alert(1)"
    assert sanitize_text('<a onclick="steal()">link</a>') == '<a "steal()">link</a>'


def test_nested_values_are_walked() -> None:
    value = {
        "victims": [{"name": "  A  ", "age": 34}] * (MAX_LIST_LENGTH + 20),
        "total": 36.2,
        "verified": True,
        "note": None,
    }

    cleaned = sanitize_value(value)

    assert len(cleaned["victims"]) == MAX_LIST_LENGTH
    assert cleaned["victims"][0] == {"name": "A", "age": 34}
    assert cleaned["total"] == 36.2
    assert cleaned["verified"] is True
    assert cleaned["note"] is None


def test_candidate_updates_are_bounded_before_use() -> None:
    long_text = "y" * (MAX_STRING_LENGTH * 2)
    raw = (
        '{"updates": {"debt": {"source": "' + long_text + '"}, "lawsuits": ['
        + ", ".join(str(index) for index in range(MAX_LIST_LENGTH + 5))
        + ']}, "reasoning": " <script>x</script>Forbes ", "confidence": 0.9}'
    )

    candidate = CandidateUpdate.from_text(raw)

    assert len(candidate.updates["debt"]["source"]) == MAX_STRING_LENGTH
    assert candidate.updates["lawsuits"] == list(range(MAX_LIST_LENGTH))
    assert candidate.reasoning == "Forbes"
