"""
Render a stream of text fragments into one chat message that grows in place.

The first non-empty fragment creates a placeholder message. Later fragments
edit it, at most once per ``min_edit_interval`` seconds, with a trailing
cursor showing that generation is still running. When the stream ends the
message gets one last edit without the cursor.
"""

from __future__ import annotations

import time
from typing import AsyncIterable, Callable

from tonecord.errors import TransportError
from tonecord.transport.chat_transport import ChatTransport
from tonecord.util.logger import get_logger

logger = get_logger("stream_renderer")


class StreamRenderer:
    """
    One-shot renderer for a single streamed message.

    Attributes:
        message_id (int | None): Id of the placeholder message once created.
        text (str): Everything received so far.
    """

    def __init__(
        self,
        transport: ChatTransport,
        conversation_id: int,
        *,
        header: str = "",
        cursor: str = " ▌",
        min_edit_interval: float = 1.0,
        max_length: int = 2000,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.transport = transport
        self.conversation_id = conversation_id
        self.header = header
        self.cursor = cursor
        self.min_edit_interval = min_edit_interval
        self.max_length = max_length
        self._clock = clock
        self.message_id: int | None = None
        self.text = ""
        self.edit_count = 0

    def _display(self, with_cursor: bool) -> str:
        suffix = self.cursor if with_cursor else ""
        body = self.header + self.text
        limit = self.max_length - len(suffix)
        if len(body) > limit:
            body = body[: max(limit - 1, 0)] + "…"
        return body + suffix

    async def _edit(self, content: str) -> bool:
        try:
            await self.transport.edit_text(self.conversation_id, self.message_id, content)
        except Exception as exc:
            logger.debug("[RENDER] Formatted edit of %s failed, retrying as plain text: %r", self.message_id, exc)
        else:
            self.edit_count += 1
            return True

        try:
            await self.transport.edit_text(self.conversation_id, self.message_id, content, formatted=False)
        except Exception as exc:
            logger.warning("[RENDER] Edit of message %s dropped: %r", self.message_id, exc)
            return False
        self.edit_count += 1
        return True

    async def render(self, fragments: AsyncIterable[str]) -> str | None:
        """Consume ``fragments`` and return the final text, or None if nothing was delivered."""
        shown = ""
        last_edit = 0.0

        try:
            async for fragment in fragments:
                if not fragment:
                    continue
                self.text += fragment

                if self.message_id is None:
                    try:
                        self.message_id = await self.transport.send_text(
                            self.conversation_id, self._display(with_cursor=True)
                        )
                    except TransportError as exc:
                        logger.error("[RENDER] Could not create message in %s: %s", self.conversation_id, exc)
                        return None
                    shown = self.text
                    last_edit = self._clock()
                    continue

                if self.text == shown or self._clock() - last_edit < self.min_edit_interval:
                    continue

                await self._edit(self._display(with_cursor=True))
                shown = self.text
                last_edit = self._clock()
        except Exception:
            logger.exception("[RENDER] Fragment stream failed in %s, committing partial text", self.conversation_id)

        if self.message_id is None:
            return None

        await self._edit(self._display(with_cursor=False))
        return self.text
