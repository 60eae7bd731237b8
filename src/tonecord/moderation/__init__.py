"""
Moderation logic for Tonecord.

- **profanity_filter.py**: Lexicon-driven profanity detection with
  normalization, letter-run collapsing and fuzzy word matching.

- **spam_detector.py**: Flags an exact repeat of an author's previous message.

- **single_flight.py**: Per-conversation flag allowing one moderation run at a time.

- **moderation_pipeline.py**: Orders the checks and yields verdicts for each
  incoming message.

- **moderation_log.py**: Bounded in-memory record of applied actions.
"""
