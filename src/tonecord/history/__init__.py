"""
Conversation history for moderation context.

- **history_store.py**: Keeps the last N messages of every conversation in a
  TTL cache, serializes read-modify-write access per conversation and renders
  the window for the tone classifier.
"""
