"""
Outbound messaging operations the moderation service relies on.

Implementations translate platform failures into
:class:`~tonecord.errors.TransportError` subclasses.
"""

from __future__ import annotations

from typing import Protocol


class ChatTransport(Protocol):
    """Send, edit and delete text messages in a conversation."""

    async def send_text(
        self,
        conversation_id: int,
        text: str,
        *,
        reply_to: int | None = None,
        formatted: bool = True,
    ) -> int:
        """Post ``text`` and return the id of the new message."""
        ...

    async def edit_text(
        self,
        conversation_id: int,
        message_id: int,
        text: str,
        *,
        formatted: bool = True,
    ) -> None: ...

    async def delete_message(self, conversation_id: int, message_id: int) -> None: ...

    async def send_typing(self, conversation_id: int) -> None: ...
