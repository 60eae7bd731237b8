"""
Utility functions and helpers for Tonecord.

- **logger.py**: Centralized logging configuration with colored console output
  and rotating file handlers. Suppresses noise from verbose libraries. Uses
  prompt_toolkit for non-blocking console output.

- **keyed_lock.py**: asyncio locks created on demand per key and dropped when idle.
"""
