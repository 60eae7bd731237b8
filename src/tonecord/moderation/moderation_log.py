"""
In-memory record of the moderation actions taken by the bot.

The log is bounded and lives for the process lifetime only. It backs the
``/moderation`` slash commands.
"""

from __future__ import annotations

from collections import Counter, deque
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from itertools import count
from typing import Deque, List

from tonecord.util.logger import get_logger

logger = get_logger("moderation_log")


class LoggedAction(Enum):
    """Outcome recorded for a moderated message."""

    DELETED = "deleted"
    REPLACED = "replaced"
    IGNORED = "ignored"

    def __str__(self) -> str:
        return self.value


@dataclass(slots=True)
class ModerationLogEntry:
    """One moderation action.

    Attributes:
        entry_id (str): Sequential identifier, ``log_<n>``.
        conversation_id (int): Conversation the action happened in.
        action (LoggedAction): What the bot did.
        message_id (int | None): The moderated message.
        author_id (int | None): Author of the moderated message, when known.
        author_name (str): Display name of that author.
        original_text (str): Text of the moderated message, when known.
        corrected_text (str): Rewritten text for REPLACED entries.
        corrected_message_id (int | None): Message holding the rewrite.
        reason (str): Why the action was taken.
        timestamp (datetime): UTC time of the action.
    """

    entry_id: str
    conversation_id: int
    action: LoggedAction
    message_id: int | None = None
    author_id: int | None = None
    author_name: str = ""
    original_text: str = ""
    corrected_text: str = ""
    corrected_message_id: int | None = None
    reason: str = ""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass(slots=True)
class ModerationStats:
    """Aggregate view of one conversation's log."""

    total: int
    deleted: int
    replaced: int
    ignored: int
    top_users: List[tuple[str, int]]
    recent_activity: datetime | None


class ModerationLog:
    """Bounded, newest-last list of :class:`ModerationLogEntry`."""

    def __init__(self, max_entries: int = 5000) -> None:
        self._entries: Deque[ModerationLogEntry] = deque(maxlen=max_entries)
        self._ids = count(1)

    def add(
        self,
        conversation_id: int,
        action: LoggedAction,
        *,
        message_id: int | None = None,
        author_id: int | None = None,
        author_name: str = "",
        original_text: str = "",
        corrected_text: str = "",
        corrected_message_id: int | None = None,
        reason: str = "",
    ) -> ModerationLogEntry:
        entry = ModerationLogEntry(
            entry_id=f"log_{next(self._ids)}",
            conversation_id=conversation_id,
            action=action,
            message_id=message_id,
            author_id=author_id,
            author_name=author_name,
            original_text=original_text,
            corrected_text=corrected_text,
            corrected_message_id=corrected_message_id,
            reason=reason,
        )
        self._entries.append(entry)
        logger.debug(
            "[LOG] %s message %s in %s (%s)",
            action,
            message_id,
            conversation_id,
            reason or "no reason",
        )
        return entry

    def by_conversation(self, conversation_id: int, limit: int = 100) -> List[ModerationLogEntry]:
        """Newest entries of one conversation first."""
        entries = [e for e in reversed(self._entries) if e.conversation_id == conversation_id]
        return entries[:limit]

    def by_user(self, author_id: int, conversation_id: int | None = None) -> List[ModerationLogEntry]:
        return [
            e for e in self._entries
            if e.author_id == author_id and (conversation_id is None or e.conversation_id == conversation_id)
        ]

    def stats(self, conversation_id: int, top: int = 5) -> ModerationStats:
        entries = [e for e in self._entries if e.conversation_id == conversation_id]
        actions = Counter(e.action for e in entries)
        authors = Counter(e.author_name or str(e.author_id) for e in entries if e.author_id is not None or e.author_name)
        return ModerationStats(
            total=len(entries),
            deleted=actions[LoggedAction.DELETED],
            replaced=actions[LoggedAction.REPLACED],
            ignored=actions[LoggedAction.IGNORED],
            top_users=authors.most_common(top),
            recent_activity=max((e.timestamp for e in entries), default=None),
        )

    def prune(self, days_to_keep: int = 30) -> int:
        """Drop entries older than ``days_to_keep`` days and return how many were removed."""
        cutoff = datetime.now(timezone.utc) - timedelta(days=days_to_keep)
        kept = [e for e in self._entries if e.timestamp > cutoff]
        removed = len(self._entries) - len(kept)
        self._entries = deque(kept, maxlen=self._entries.maxlen)
        if removed:
            logger.info("[LOG] Pruned %d moderation log entries older than %d days", removed, days_to_keep)
        return removed

    def __len__(self) -> int:
        return len(self._entries)
