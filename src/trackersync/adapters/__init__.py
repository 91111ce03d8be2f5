"""Adapters binding domain ports to external services."""
