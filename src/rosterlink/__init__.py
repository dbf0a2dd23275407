"""Class roster linking and reconciliation service."""
