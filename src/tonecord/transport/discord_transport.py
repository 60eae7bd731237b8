"""
Discord implementation of :class:`~tonecord.transport.chat_transport.ChatTransport`.

Conversation ids are channel ids. Messages are addressed through partial
messages so no extra fetch is needed to edit or delete them. Discord errors
are mapped onto the Tonecord error hierarchy:

- ``discord.Forbidden`` -> :class:`PermissionDeniedError`
- ``discord.NotFound`` -> :class:`MessageNotFoundError`
- any other ``discord.HTTPException`` -> :class:`TransportError`
- timeouts and connection failures (``asyncio.TimeoutError``,
  ``aiohttp.ClientError``, ``OSError``) -> :class:`TransportError`
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator

import aiohttp
import discord

from tonecord.errors import MessageNotFoundError, PermissionDeniedError, TransportError
from tonecord.util.logger import get_logger

logger = get_logger("discord_transport")


@asynccontextmanager
async def translate_discord_errors(operation: str, conversation_id: int) -> AsyncIterator[None]:
    try:
        yield
    except discord.Forbidden as exc:
        raise PermissionDeniedError(f"{operation} forbidden in channel {conversation_id}: {exc}") from exc
    except discord.NotFound as exc:
        raise MessageNotFoundError(f"{operation} target not found in channel {conversation_id}: {exc}") from exc
    except discord.HTTPException as exc:
        raise TransportError(f"{operation} failed in channel {conversation_id}: {exc}") from exc
    except (asyncio.TimeoutError, aiohttp.ClientError, OSError) as exc:
        raise TransportError(f"{operation} could not reach channel {conversation_id}: {exc!r}") from exc


class DiscordTransport:
    """Messaging transport backed by a py-cord bot."""

    def __init__(self, bot: discord.Client) -> None:
        self.bot = bot

    async def _get_channel(self, conversation_id: int):
        channel = self.bot.get_channel(conversation_id)
        if channel is None:
            async with translate_discord_errors("fetch_channel", conversation_id):
                channel = await self.bot.fetch_channel(conversation_id)
        if not hasattr(channel, "get_partial_message"):
            raise TransportError(f"Channel {conversation_id} does not hold text messages")
        return channel

    @staticmethod
    def _content(text: str, formatted: bool) -> str:
        return text if formatted else discord.utils.escape_markdown(text)

    async def send_text(
        self,
        conversation_id: int,
        text: str,
        *,
        reply_to: int | None = None,
        formatted: bool = True,
    ) -> int:
        channel = await self._get_channel(conversation_id)
        reference = channel.get_partial_message(reply_to) if reply_to is not None else None
        async with translate_discord_errors("send", conversation_id):
            message = await channel.send(
                content=self._content(text, formatted),
                reference=reference,
                mention_author=False,
                allowed_mentions=discord.AllowedMentions.none(),
            )
        return message.id

    async def edit_text(
        self,
        conversation_id: int,
        message_id: int,
        text: str,
        *,
        formatted: bool = True,
    ) -> None:
        channel = await self._get_channel(conversation_id)
        async with translate_discord_errors("edit", conversation_id):
            await channel.get_partial_message(message_id).edit(content=self._content(text, formatted))

    async def delete_message(self, conversation_id: int, message_id: int) -> None:
        channel = await self._get_channel(conversation_id)
        async with translate_discord_errors("delete", conversation_id):
            await channel.get_partial_message(message_id).delete()
        logger.debug("Deleted message %s in channel %s", message_id, conversation_id)

    async def send_typing(self, conversation_id: int) -> None:
        channel = await self._get_channel(conversation_id)
        async with translate_discord_errors("typing", conversation_id):
            await channel.trigger_typing()
