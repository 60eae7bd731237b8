"""Async key-value cache with per-key expiry."""
