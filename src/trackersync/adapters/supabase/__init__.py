"""Public interface for the Supabase store adapter."""

from __future__ import annotations

from .schema import TrackerRow
from .store import SupabaseRecordStore, SupabaseUpdateLog

__all__ = ["SupabaseRecordStore", "SupabaseUpdateLog", "TrackerRow"]
