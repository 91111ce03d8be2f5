"""HTTP service for trackersync."""

from __future__ import annotations

from .api import create_app

__all__ = ["create_app"]
