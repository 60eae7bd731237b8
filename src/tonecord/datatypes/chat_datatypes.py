"""
Chat-level data structures shared by the transport, history store and pipeline.

- `ChatEvent`: an inbound text message, normalized away from the chat platform.
- `HistoryMessage`: one record of a conversation's bounded history window.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Dict

COMMAND_PREFIX = "/"
DEFAULT_AUTHOR_NAME = "Guest"


def now_millis() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


@dataclass(slots=True, frozen=True)
class ChatEvent:
    """A text message received from the chat platform.

    Attributes:
        conversation_id (int): Channel or chat the message was posted in.
        message_id (int): Platform identifier of the message, unique within the conversation.
        author_id (int | None): Sender identifier, if the platform exposes one.
        author_name (str): Display name of the sender.
        text (str): Raw message text.
        timestamp (int): Epoch milliseconds when the message was sent.
        is_private (bool): True for one-to-one conversations with the bot.
        mentions_bot (bool): True when the text addresses the bot directly.
        bot_mention (str): The literal mention token to strip from questions.
    """

    conversation_id: int
    message_id: int
    author_id: int | None
    author_name: str
    text: str
    timestamp: int
    is_private: bool = False
    mentions_bot: bool = False
    bot_mention: str = ""

    @property
    def is_command(self) -> bool:
        return self.text.lstrip().startswith(COMMAND_PREFIX)

    @property
    def is_question(self) -> bool:
        """Whether the message is addressed to the bot rather than the chat."""
        return self.is_private or self.mentions_bot

    def question_text(self) -> str:
        """The message text with the bot mention removed."""
        text = self.text
        if self.bot_mention:
            text = text.replace(self.bot_mention, "")
        return text.strip()

    def to_history_message(self) -> HistoryMessage:
        return HistoryMessage(
            id=self.message_id,
            text=self.text,
            timestamp=self.timestamp,
            author_name=self.author_name or DEFAULT_AUTHOR_NAME,
            author_id=self.author_id,
        )


@dataclass(slots=True)
class HistoryMessage:
    """One message of a conversation's recent history.

    ``history_only`` marks records that exist purely as context for the AI,
    such as a correction that replaced a deleted message. They are never
    moderated or deleted again.
    """

    id: int
    text: str
    timestamp: int
    author_name: str = DEFAULT_AUTHOR_NAME
    history_only: bool = False
    author_id: int | None = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "text": self.text,
            "timestamp": self.timestamp,
            "author_name": self.author_name,
            "history_only": self.history_only,
            "author_id": self.author_id,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> HistoryMessage:
        author_id = data.get("author_id")
        return cls(
            id=int(data["id"]),
            text=str(data.get("text", "")),
            timestamp=int(data.get("timestamp", 0)),
            author_name=str(data.get("author_name") or DEFAULT_AUTHOR_NAME),
            history_only=bool(data.get("history_only", False)),
            author_id=int(author_id) if author_id is not None else None,
        )

    def render(self) -> str:
        """Format the message as one line of the classifier's history prompt."""
        marker = "history-only" if self.history_only else "live"
        return f"[ID: {self.id}, User: {self.author_name}, Timestamp: {self.timestamp}, {marker}]: {self.text}"
