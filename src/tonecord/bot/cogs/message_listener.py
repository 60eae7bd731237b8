"""Message listener Cog for Tonecord.

This cog turns Discord ``on_message`` events into :class:`ChatEvent` objects
and hands them to the moderation service.
"""

import datetime

import discord
from discord.ext import commands

from tonecord.datatypes.chat_datatypes import DEFAULT_AUTHOR_NAME, ChatEvent
from tonecord.services.moderation_service import ModerationService
from tonecord.util.logger import get_logger

logger = get_logger("message_listener_cog")


def to_millis(created_at: datetime.datetime) -> int:
    """Convert a Discord creation time to epoch milliseconds."""
    if created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=datetime.timezone.utc)
    return int(created_at.timestamp() * 1000)


class MessageListenerCog(commands.Cog):
    """Cog responsible for feeding new messages into moderation."""

    def __init__(self, discord_bot_instance, service: ModerationService):
        """
        Initialize the message listener cog.

        Parameters
        ----------
        discord_bot_instance:
            The Discord bot instance to attach this cog to.
        service:
            Moderation service that handles every accepted message.
        """
        self.bot = discord_bot_instance
        self.service = service
        logger.info("Message listener cog loaded")

    def _bot_mention(self, message: discord.Message) -> str:
        """Return the mention token used for the bot in ``message``, or an empty string."""
        bot_user = self.bot.user
        if bot_user is None:
            return ""
        for token in (f"<@{bot_user.id}>", f"<@!{bot_user.id}>"):
            if token in message.content:
                return token
        return ""

    def build_event(self, message: discord.Message) -> ChatEvent:
        """
        Create a ChatEvent from a Discord message.

        Parameters
        ----------
        message:
            The Discord message to convert.

        Returns
        -------
        ChatEvent
            The normalized chat event.
        """
        bot_mention = self._bot_mention(message)
        return ChatEvent(
            conversation_id=message.channel.id,
            message_id=message.id,
            author_id=message.author.id,
            author_name=getattr(message.author, "display_name", None) or DEFAULT_AUTHOR_NAME,
            text=message.content,
            timestamp=to_millis(message.created_at),
            is_private=isinstance(message.channel, discord.DMChannel),
            mentions_bot=bool(bot_mention),
            bot_mention=bot_mention,
        )

    @commands.Cog.listener(name="on_message")
    async def on_message(self, message: discord.Message):
        """
        Handle new messages: ignore bots and empty messages, moderate the rest.

        Parameters
        ----------
        message:
            The Discord message that was created.
        """
        if message.author.bot:
            return

        if not message.content or not message.content.strip():
            return

        logger.debug(f"Received message from {message.author}: {message.content[:80]}")

        try:
            event = self.build_event(message)
        except Exception as e:
            logger.error(f"Error converting message {message.id}: {e}", exc_info=True)
            return

        await self.service.handle_event(event)


def setup(discord_bot_instance, service: ModerationService):
    """Register the message listener cog."""
    discord_bot_instance.add_cog(MessageListenerCog(discord_bot_instance, service))
