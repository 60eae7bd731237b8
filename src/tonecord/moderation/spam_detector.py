"""Detect an author posting the exact same text twice in a row."""

from __future__ import annotations

from tonecord.cache.cache_backend import CacheBackend
from tonecord.errors import CacheUnavailableError
from tonecord.util.logger import get_logger

logger = get_logger("spam_detector")


class RepeatedMessageDetector:
    """
    Remember each author's last text per conversation for ``window_seconds``.

    :meth:`check_and_remember` reports whether the new text repeats the
    previous one and then stores it as the new "last message".
    """

    def __init__(self, cache: CacheBackend, window_seconds: int = 180):
        self.cache = cache
        self.window_seconds = window_seconds

    @staticmethod
    def last_message_key(conversation_id: int, author_id: int) -> str:
        return f"{conversation_id}-{author_id}-last"

    @staticmethod
    def _fingerprint(text: str) -> str:
        return " ".join(text.split()).casefold()

    async def check_and_remember(self, conversation_id: int, author_id: int | None, text: str) -> bool:
        if author_id is None or not text.strip():
            return False

        key = self.last_message_key(conversation_id, author_id)
        fingerprint = self._fingerprint(text)

        try:
            previous = await self.cache.get(key)
        except CacheUnavailableError as exc:
            logger.warning("[SPAM] Cache read failed for %s: %s", key, exc)
            previous = None

        try:
            await self.cache.set(key, fingerprint, self.window_seconds)
        except CacheUnavailableError as exc:
            logger.warning("[SPAM] Cache write failed for %s: %s", key, exc)

        return previous == fingerprint
