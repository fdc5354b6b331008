"""Menu reconciliation and sync service."""
