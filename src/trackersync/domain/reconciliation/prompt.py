"""Prompt construction for reconciliation cycles."""

from __future__ import annotations

import json
from types import MappingProxyType
from typing import TYPE_CHECKING, Final

from trackersync.domain.record import isoformat_utc

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping
    from datetime import datetime

    from trackersync.domain.ports.fetching import Headline
    from trackersync.domain.record import TopicValue

# Topic name -> extraction rule. Topic names match the keys of the seed record.
DEFAULT_CATEGORIES: Final[Mapping[str, str]] = MappingProxyType(
    {
        "brokenPromises": (
            "Campaign promises whose deadline passed or whose outcome contradicts the promise. "
            "Return the complete list when anything changes."
        ),
        "iceVictims": (
            "People killed or seriously harmed by ICE, CBP or Border Patrol agents, with name, "
            "date, location, agency and sources. Return the complete list when anything changes."
        ),
        "golf": (
            "Trip counts and per-trip costs for Mar-a-Lago, Bedminster and foreign golf travel, "
            "using GAO methodology where possible."
        ),
        "wealth": "Current net worth estimate in billions and its source (e.g. Forbes, Bloomberg).",
        "selfDealing": (
            "Documented taxpayer or foreign-government spending at family properties and other "
            "conflict-of-interest figures, in dollars."
        ),
        "debt": "National debt figures in trillions and per-second or per-household rates.",
    }
)

RESPONSE_CONTRACT: Final[str] = """Return ONLY valid JSON (no markdown) with this exact structure:
{
  "updates": {"<topic>": <new value or partial object>},
  "reasoning": "Brief description of what changed and why",
  "confidence": 0.0
}

RULES:
1. Only propose a topic when a reliable, recent source supports the change.
2. For object topics you may send only the fields that changed.
3. For list topics send the complete new list; it replaces the stored one.
4. "confidence" is a number between 0.0 and 1.0 for the update as a whole.
5. If nothing changed return {"updates": {}, "reasoning": "No changes", "confidence": 1.0}."""


def _render_categories(categories: Mapping[str, str]) -> str:
    return "\n".join(f"- {topic}: {rule}" for topic, rule in categories.items())


def _render_headlines(headlines: Iterable[Headline]) -> str:
    lines = [
        f"- {headline.title} ({headline.published})" if headline.published else f"- {headline.title}"
        for headline in headlines
    ]
    return "\n".join(lines)


def build_reconciliation_prompt(
    current: Mapping[str, TopicValue],
    *,
    categories: Mapping[str, str],
    now: datetime,
    headlines: Iterable[Headline] = (),
) -> str:
    """Embed the current record, the topic categories and optional headlines."""

    record_json = json.dumps(current, indent=2, ensure_ascii=False, default=str)
    sections = [
        f"You maintain an accountability tracker. Today is {isoformat_utc(now)}.",
        f"CURRENT TRACKER DATA:\n{record_json}",
        f"TOPICS TO CHECK FOR UPDATES:\n{_render_categories(categories)}",
    ]
    rendered_headlines = _render_headlines(headlines)
    if rendered_headlines:
        sections.append(f"NEWS HEADLINES:\n{rendered_headlines}")
    sections.append(RESPONSE_CONTRACT)
    return "\n\n".join(sections)
