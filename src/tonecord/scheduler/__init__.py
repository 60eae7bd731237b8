"""
Scheduled background tasks.

- **maintenance_scheduler.py**: Periodically purges expired cache entries and
  prunes the moderation log.
"""
