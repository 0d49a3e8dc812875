"""Time-tracking webhook subscriber service."""
