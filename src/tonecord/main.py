"""
Tonecord
========

A Discord bot that keeps group chats civil: profanity is deleted on sight,
and once a conversation has enough context an AI tone classifier decides
whether it turned aggressive. Aggressive messages are deleted and replaced
by a polite rewrite streamed into the chat as it is generated.
"""

import os
import sys
from pathlib import Path


def resolve_base_dir() -> Path:
    """Determine the base directory of the project.

    Resolution order:
    1. TONECORD_HOME environment variable, if set.
    2. If running in a frozen/compiled context, use the executable's directory.
    3. Otherwise, assume running from source and use the grandparent of this file's directory.
    """
    if env_home := os.getenv("TONECORD_HOME"):
        return Path(env_home).resolve()

    if getattr(sys, "frozen", False) or getattr(sys, "compiled", False):
        return Path(sys.argv[0]).resolve().parent

    return Path(__file__).resolve().parents[2]


BASE_DIR = resolve_base_dir()
os.chdir(BASE_DIR)

import asyncio
from dataclasses import dataclass

import discord
from dotenv import load_dotenv

from tonecord.ai.correction_generator import CorrectionGenerator
from tonecord.ai.llm_client import LLMClient
from tonecord.ai.tone_classifier import ToneClassifier
from tonecord.cache.cache_backend import MemoryTTLCache
from tonecord.configuration.app_configuration import AppConfig, app_config
from tonecord.history.history_store import MessageHistoryStore
from tonecord.moderation.moderation_log import ModerationLog
from tonecord.moderation.moderation_pipeline import ModerationPipeline
from tonecord.moderation.profanity_filter import ProfanityFilter, ProfanityLexicon
from tonecord.moderation.spam_detector import RepeatedMessageDetector
from tonecord.scheduler.maintenance_scheduler import MaintenanceScheduler
from tonecord.services.moderation_service import ModerationService
from tonecord.transport.discord_transport import DiscordTransport
from tonecord.util.logger import get_logger, handle_exception

logger = get_logger("main")


@dataclass
class Runtime:
    """Long-lived objects shared by the cogs for the lifetime of the bot."""

    cache: MemoryTTLCache
    history: MessageHistoryStore
    llm_client: LLMClient
    moderation_log: ModerationLog
    service: ModerationService
    scheduler: MaintenanceScheduler


def load_environment() -> str:
    """Load environment variables and return the Discord bot token.

    Raises
    ------
    SystemExit
        If the required ``DISCORD_BOT_TOKEN`` variable is missing.
    """
    load_dotenv(dotenv_path=BASE_DIR / ".env")
    token = os.getenv("DISCORD_BOT_TOKEN")
    if not token:
        logger.critical("'DISCORD_BOT_TOKEN' environment variable not set. Bot cannot start.")
        sys.exit(1)
    return token


def build_intents() -> discord.Intents:
    """Construct the Discord intents Tonecord needs to read and moderate messages."""
    intents = discord.Intents.default()
    intents.message_content = True
    intents.guilds = True
    intents.messages = True
    intents.dm_messages = True
    return intents


def build_runtime(bot: discord.Bot, config: AppConfig) -> Runtime:
    """Wire the moderation stack together from the configuration.

    Raises
    ------
    SystemExit
        If the AI provider key is missing.
    """
    ai_settings = config.ai_settings
    if not ai_settings.api_key:
        logger.critical("'%s' environment variable not set. Bot cannot start.", ai_settings.api_key_env)
        sys.exit(1)

    cache = MemoryTTLCache()
    history = MessageHistoryStore(
        cache,
        window_size=config.history_window_size,
        ttl_seconds=config.history_ttl_seconds,
        saturation_threshold=config.saturation_threshold,
    )
    llm_client = LLMClient(ai_settings)
    spam_detector = (
        RepeatedMessageDetector(cache, window_seconds=config.spam_window_seconds)
        if config.spam_check_enabled
        else None
    )
    pipeline = ModerationPipeline(
        history=history,
        profanity_filter=ProfanityFilter(ProfanityLexicon.load(config.profanity_lexicon_path)),
        classifier=ToneClassifier(llm_client, ai_settings.analyze_prompt),
        corrector=CorrectionGenerator(
            llm_client,
            ai_settings.correction_prompt,
            channel_size=config.stream_channel_size,
        ),
        spam_detector=spam_detector,
    )
    moderation_log = ModerationLog(max_entries=config.moderation_log_max_entries)
    service = ModerationService(
        pipeline,
        DiscordTransport(bot),
        llm_client,
        moderation_log,
        answer_prompt=ai_settings.answer_prompt,
        stream_cursor=config.stream_cursor,
        min_edit_interval=config.stream_min_edit_interval,
        max_message_length=config.stream_max_message_length,
    )
    scheduler = MaintenanceScheduler(
        cache,
        moderation_log,
        retention_days=config.moderation_log_retention_days,
    )
    return Runtime(cache, history, llm_client, moderation_log, service, scheduler)


def load_cogs(discord_bot_instance: discord.Bot, runtime: Runtime) -> None:
    """Register all operational cogs with the provided Discord bot instance."""
    from tonecord.bot.cogs import message_listener, moderation_cmds

    message_listener.setup(discord_bot_instance, runtime.service)
    moderation_cmds.setup(discord_bot_instance, runtime.moderation_log)

    logger.info("All cogs loaded successfully.")


def create_bot(config: AppConfig) -> tuple[discord.Bot, Runtime]:
    """Instantiate the Discord bot, its runtime and register all cogs."""
    bot = discord.Bot(intents=build_intents())
    runtime = build_runtime(bot, config)
    load_cogs(bot, runtime)
    return bot, runtime


async def start_bot(bot: discord.Bot, token: str) -> None:
    """Start the Discord bot and handle lifecycle logging around the connection."""
    logger.info("Attempting to connect to Discord…")
    try:
        await bot.start(token)
    except asyncio.CancelledError:
        logger.info("Discord bot start cancelled; shutting down")
    finally:
        logger.info("Discord bot start routine finished.")


async def shutdown_runtime(bot: discord.Bot, runtime: Runtime) -> None:
    """Gracefully stop the Discord bot, the scheduler and the AI client."""
    if not bot.is_closed():
        try:
            await bot.close()
            logger.info("Discord bot connection closed.")
        except Exception as exc:
            logger.exception("Error while closing Discord bot: %s", exc)

    await runtime.scheduler.shutdown()

    try:
        await runtime.llm_client.close()
    except Exception as exc:
        logger.exception("Error while closing AI client: %s", exc)

    logger.info("Shutdown complete.")


async def async_main() -> int:
    """Bootstrap the bot and its moderation runtime, returning an exit code."""
    token = load_environment()

    try:
        bot, runtime = create_bot(app_config)
    except SystemExit:
        raise
    except Exception as exc:
        logger.critical("Failed to initialize Discord bot: %s", exc)
        return 1

    exit_code = 0
    runtime.scheduler.start()
    try:
        await start_bot(bot, token)
    except Exception as exc:
        logger.critical("Discord bot runtime error: %s", exc)
        exit_code = 1
    finally:
        await shutdown_runtime(bot, runtime)

    return exit_code


def main() -> int:
    """Entrypoint that orchestrates the async runtime and returns the process code."""
    sys.excepthook = handle_exception
    logger.info("Starting Tonecord…")
    try:
        return asyncio.run(async_main())
    except KeyboardInterrupt:
        logger.info("Shutdown requested by user.")
        return 0
    except SystemExit as exit_exc:
        code = exit_exc.code
        if isinstance(code, int):
            return code
        return 1
    except Exception as exc:
        logger.critical("An unexpected error occurred while running the bot: %s", exc)
        return 1


if __name__ == "__main__":
    sys.exit(main())
