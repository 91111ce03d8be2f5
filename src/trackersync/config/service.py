"""Trigger endpoint configuration."""

from __future__ import annotations

from dataclasses import dataclass

from .env import optional_env_var


@dataclass(frozen=True, slots=True)
class TriggerConfig:
    """Shared secret guarding the reconciliation trigger; ``None`` disables the check."""

    cron_secret: str | None = None


def get_trigger_config() -> TriggerConfig:
    return TriggerConfig(cron_secret=optional_env_var("CRON_SECRET"))
