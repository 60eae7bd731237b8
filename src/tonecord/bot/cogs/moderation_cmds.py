"""
Moderation commands cog: read-only views over the moderation log.
"""

import discord
from discord.ext import commands

from tonecord.moderation.moderation_log import LoggedAction, ModerationLog
from tonecord.util.logger import get_logger

logger = get_logger("moderation_commands")

RECENT_LIMIT = 10
PREVIEW_LENGTH = 80

ACTION_ICONS = {
    LoggedAction.DELETED: "🗑️",
    LoggedAction.REPLACED: "✏️",
    LoggedAction.IGNORED: "⚠️",
}


def preview(text: str, limit: int = PREVIEW_LENGTH) -> str:
    text = " ".join(text.split())
    return text if len(text) <= limit else text[: limit - 1] + "…"


class ModerationCog(commands.Cog):
    """Cog exposing moderation statistics."""

    moderation = discord.SlashCommandGroup("moderation", "Moderation statistics for this channel")

    def __init__(self, bot: discord.Bot, moderation_log: ModerationLog):
        self.bot = bot
        self.moderation_log = moderation_log

    @moderation.command(name="stats", description="Show moderation statistics for this channel")
    async def stats(self, application_context: discord.ApplicationContext) -> None:
        """Show how many messages were deleted or replaced in the current channel."""
        try:
            await application_context.defer(ephemeral=True)
            channel = application_context.channel
            stats = self.moderation_log.stats(channel.id)

            embed = discord.Embed(
                title="📊 Moderation Stats",
                description=f"Actions taken in {getattr(channel, 'mention', 'this chat')}",
                color=discord.Color.blue(),
            )
            embed.add_field(name="Total", value=str(stats.total), inline=True)
            embed.add_field(name="Deleted", value=str(stats.deleted), inline=True)
            embed.add_field(name="Replaced", value=str(stats.replaced), inline=True)
            if stats.top_users:
                top = "\n".join(f"{name}: {count}" for name, count in stats.top_users)
                embed.add_field(name="Top Users", value=top, inline=False)
            if stats.recent_activity is not None:
                embed.add_field(
                    name="Last Action",
                    value=discord.utils.format_dt(stats.recent_activity, style="R"),
                    inline=False,
                )
            await application_context.send_followup(embed=embed)
            logger.debug(f"Stats command executed by {application_context.user} in {channel.id}")
        except Exception as e:
            logger.error(f"Error in stats command: {e}")
            await application_context.send_followup(content=f"❌ Error: {e}", ephemeral=True)

    @moderation.command(name="recent", description="Show the latest moderation actions in this channel")
    async def recent(self, application_context: discord.ApplicationContext) -> None:
        """List the most recent moderation log entries for the current channel."""
        try:
            await application_context.defer(ephemeral=True)
            channel = application_context.channel
            entries = self.moderation_log.by_conversation(channel.id, limit=RECENT_LIMIT)

            if not entries:
                embed = discord.Embed(
                    title="📋 Recent Actions",
                    description="No moderation actions recorded yet.",
                    color=discord.Color.orange(),
                )
            else:
                lines = [
                    f"{ACTION_ICONS[entry.action]} **{entry.author_name or 'unknown'}**: "
                    f"{preview(entry.original_text) or '[no text]'}"
                    for entry in entries
                ]
                embed = discord.Embed(
                    title="📋 Recent Actions",
                    description="\n".join(lines),
                    color=discord.Color.blue(),
                )
            await application_context.send_followup(embed=embed, ephemeral=True)
        except Exception as e:
            logger.error(f"Error in recent command: {e}")
            await application_context.send_followup(content=f"❌ Error: {e}", ephemeral=True)


def setup(bot: discord.Bot, moderation_log: ModerationLog) -> None:
    """Register the moderation commands cog."""
    bot.add_cog(ModerationCog(bot, moderation_log))
