"""Domain layer: record model, ports, reconciliation and classification."""
