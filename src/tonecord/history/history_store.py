"""
Bounded per-conversation message history on top of a TTL cache.

Each conversation owns one cache entry holding its whole window of recent
messages, serialized as a list of dicts and stored newest first. Every
mutation is a read-modify-write of the full window, so all access for one
conversation is serialized through a per-key lock. The cache is best-effort:
a failed read behaves like an empty conversation and a failed write is
logged and ignored.
"""

from __future__ import annotations

from typing import Iterable, List, Tuple

from tonecord.cache.cache_backend import CacheBackend
from tonecord.datatypes.chat_datatypes import HistoryMessage
from tonecord.errors import CacheUnavailableError
from tonecord.util.keyed_lock import KeyedLock
from tonecord.util.logger import get_logger

logger = get_logger("history_store")


class MessageHistoryStore:
    """
    Recent-history window for every conversation the bot sees.

    Attributes:
        window_size (int): Maximum number of messages kept per conversation.
        ttl_seconds (int): Lifetime of a whole window after its last write.
        saturation_threshold (float): Fill ratio above which a window is
            considered saturated.
    """

    def __init__(
        self,
        cache: CacheBackend,
        window_size: int = 10,
        ttl_seconds: int = 86400,
        saturation_threshold: float = 0.5,
    ):
        if window_size < 1:
            raise ValueError("window_size must be at least 1")
        self.cache = cache
        self.window_size = window_size
        self.ttl_seconds = ttl_seconds
        self.saturation_threshold = saturation_threshold
        self._locks = KeyedLock()

    @staticmethod
    def history_key(conversation_id: int) -> str:
        return f"{conversation_id}_chat_history"

    def is_saturated(self, count: int) -> bool:
        return count / self.window_size > self.saturation_threshold

    # --------------------------
    # Public API
    # --------------------------
    async def append(self, conversation_id: int, message: HistoryMessage) -> HistoryMessage:
        """Insert a message, keep only the newest ``window_size`` by timestamp, and persist.

        A message whose id is already in the window replaces the old record.
        """
        async with self._locks.hold(conversation_id):
            messages = await self._load(conversation_id)
            messages = [m for m in messages if m.id != message.id]
            messages.insert(0, message)
            await self._store(conversation_id, messages)
        return message

    async def read(self, conversation_id: int) -> Tuple[List[HistoryMessage], bool]:
        """Return the window (newest first) and whether it is saturated."""
        async with self._locks.hold(conversation_id):
            messages = await self._load(conversation_id)
        return messages, self.is_saturated(len(messages))

    async def get(self, conversation_id: int, message_id: int) -> HistoryMessage | None:
        messages, _ = await self.read(conversation_id)
        return next((m for m in messages if m.id == message_id), None)

    async def delete(self, conversation_id: int, message_id: int) -> HistoryMessage | None:
        """Remove and return the record with ``message_id``; no-op when absent."""
        removed = await self.bulk_delete(conversation_id, [message_id])
        return removed[0] if removed else None

    async def bulk_delete(self, conversation_id: int, message_ids: Iterable[int]) -> List[HistoryMessage]:
        """Remove every listed id in one window rewrite and return the removed records."""
        targets = set(message_ids)
        if not targets:
            return []

        async with self._locks.hold(conversation_id):
            messages = await self._load(conversation_id)
            removed = [m for m in messages if m.id in targets]
            if removed:
                await self._store(conversation_id, [m for m in messages if m.id not in targets])

        if removed:
            logger.debug(
                "[HISTORY] Removed %d message(s) from conversation %s",
                len(removed),
                conversation_id,
            )
        return removed

    async def render(self, conversation_id: int) -> Tuple[str, bool]:
        """Format the window oldest first, one line per message, for the tone classifier."""
        messages, saturated = await self.read(conversation_id)
        lines = [m.render() for m in sorted(messages, key=lambda m: m.timestamp)]
        return "\n".join(lines), saturated

    async def clear(self, conversation_id: int) -> None:
        async with self._locks.hold(conversation_id):
            try:
                await self.cache.delete(self.history_key(conversation_id))
            except CacheUnavailableError as exc:
                logger.warning("[HISTORY] Failed to clear conversation %s: %s", conversation_id, exc)

    # --------------------------
    # Cache access
    # --------------------------
    async def _load(self, conversation_id: int) -> List[HistoryMessage]:
        try:
            raw = await self.cache.get(self.history_key(conversation_id))
        except CacheUnavailableError as exc:
            logger.warning("[HISTORY] Cache read failed for conversation %s: %s", conversation_id, exc)
            return []

        if not raw:
            return []

        messages: List[HistoryMessage] = []
        for item in raw:
            try:
                messages.append(HistoryMessage.from_dict(item))
            except (KeyError, TypeError, ValueError) as exc:
                logger.warning("[HISTORY] Dropping unreadable record in conversation %s: %s", conversation_id, exc)
        return messages

    async def _store(self, conversation_id: int, messages: List[HistoryMessage]) -> None:
        window = sorted(messages, key=lambda m: m.timestamp, reverse=True)[: self.window_size]
        try:
            await self.cache.set(
                self.history_key(conversation_id),
                [m.to_dict() for m in window],
                self.ttl_seconds,
            )
        except CacheUnavailableError as exc:
            logger.warning("[HISTORY] Cache write failed for conversation %s: %s", conversation_id, exc)
