"""
Moderation Service.

Owns everything between a normalized :class:`ChatEvent` and the chat
platform:

  1. Commands are ignored.
  2. Questions addressed to the bot are answered with a plain AI completion.
  3. Every other message is run through :class:`ModerationPipeline` and its
     verdicts are applied through the :class:`ChatTransport`:
       - DELETE removes the message from the chat and from the history window.
       - KEEP does nothing.
       - STREAM fragments are rendered into a single growing correction
         message, which is then stored as a history-only record.

Nothing raised while handling one event escapes :meth:`handle_event`.
"""

from __future__ import annotations

from contextlib import aclosing
from typing import AsyncIterator

from tonecord.ai.llm_client import LLMClient
from tonecord.ai.prompts import ANSWER_PROMPT, FALLBACK_ANSWER
from tonecord.datatypes.chat_datatypes import ChatEvent, HistoryMessage, now_millis
from tonecord.datatypes.moderation_datatypes import ModerationVerdict, VerdictType
from tonecord.delivery.stream_renderer import StreamRenderer
from tonecord.errors import AIServiceError, MessageNotFoundError, PermissionDeniedError, TransportError
from tonecord.moderation.moderation_log import LoggedAction, ModerationLog
from tonecord.moderation.moderation_pipeline import ModerationPipeline
from tonecord.transport.chat_transport import ChatTransport
from tonecord.util.logger import get_logger

logger = get_logger("moderation_service")


class ModerationService:
    """
    Apply moderation verdicts for inbound chat events.

    Parameters
    ----------
    pipeline:
        Produces the verdicts for each message.
    transport:
        Sends, edits and deletes chat messages.
    llm_client:
        Answers questions addressed to the bot.
    moderation_log:
        Receives one entry per applied action.
    answer_prompt:
        System prompt for question answering.
    stream_cursor, min_edit_interval, max_message_length:
        Forwarded to every :class:`StreamRenderer`.
    """

    def __init__(
        self,
        pipeline: ModerationPipeline,
        transport: ChatTransport,
        llm_client: LLMClient,
        moderation_log: ModerationLog,
        *,
        answer_prompt: str | None = None,
        stream_cursor: str = " ▌",
        min_edit_interval: float = 1.0,
        max_message_length: int = 2000,
    ) -> None:
        self.pipeline = pipeline
        self.transport = transport
        self.llm_client = llm_client
        self.moderation_log = moderation_log
        self.answer_prompt = answer_prompt or ANSWER_PROMPT
        self.stream_cursor = stream_cursor
        self.min_edit_interval = min_edit_interval
        self.max_message_length = max_message_length

    @property
    def history(self):
        return self.pipeline.history

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def handle_event(self, event: ChatEvent) -> None:
        """Handle one inbound message end to end."""
        if event.is_command:
            logger.debug("[SERVICE] Ignoring command %r in %s", event.text, event.conversation_id)
            return

        try:
            if event.is_question and event.question_text():
                await self.answer_question(event)
                return
            await self.moderate(event)
        except Exception:
            logger.exception(
                "[SERVICE] Unhandled error while handling message %s in %s",
                event.message_id,
                event.conversation_id,
            )

    async def answer_question(self, event: ChatEvent) -> None:
        """Record the question and reply with the AI's answer, or a polite fallback."""
        await self.pipeline.record(event)
        prompt = event.question_text()

        try:
            await self.transport.send_typing(event.conversation_id)
        except TransportError as exc:
            logger.debug("[SERVICE] Typing indicator failed in %s: %s", event.conversation_id, exc)

        try:
            answer = await self.llm_client.complete(self.answer_prompt, prompt)
        except AIServiceError as exc:
            logger.warning("[SERVICE] Answer generation failed, sending fallback: %s", exc)
            answer = FALLBACK_ANSWER

        try:
            await self.transport.send_text(event.conversation_id, answer, reply_to=event.message_id)
        except TransportError as exc:
            logger.error("[SERVICE] Could not send answer in %s: %s", event.conversation_id, exc)

    async def moderate(self, event: ChatEvent) -> None:
        """Drive the pipeline for ``event`` and apply each verdict as it arrives."""
        skip_correction = False

        async with aclosing(self.pipeline.process_message(event)) as verdicts:
            async for verdict in verdicts:
                if verdict.action is VerdictType.DELETE:
                    denied = await self._apply_delete(event, verdict)
                    if denied and (verdict.message_id is None or verdict.message_id == event.message_id):
                        skip_correction = True
                elif verdict.action is VerdictType.KEEP:
                    logger.debug("[SERVICE] Keeping message %s in %s", event.message_id, event.conversation_id)
                elif verdict.action is VerdictType.STREAM:
                    if skip_correction:
                        logger.warning(
                            "[SERVICE] Original message %s could not be deleted, dropping its correction",
                            event.message_id,
                        )
                        break
                    await self._deliver_correction(event, verdict, verdicts)
                    break

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _apply_delete(self, event: ChatEvent, verdict: ModerationVerdict) -> bool:
        """Delete the verdict's target and return True if permission was denied."""
        message_id = verdict.message_id if verdict.message_id is not None else event.message_id
        denied = False

        try:
            await self.transport.delete_message(event.conversation_id, message_id)
        except PermissionDeniedError as exc:
            logger.error("[SERVICE] Missing permission to delete message %s: %s", message_id, exc)
            denied = True
        except MessageNotFoundError:
            logger.debug("[SERVICE] Message %s already gone", message_id)
        except TransportError as exc:
            logger.error("[SERVICE] Failed to delete message %s: %s", message_id, exc)
        except Exception:
            logger.exception("[SERVICE] Unexpected error deleting message %s", message_id)

        removed = await self.history.delete(event.conversation_id, message_id)
        self.moderation_log.add(
            event.conversation_id,
            LoggedAction.IGNORED if denied else LoggedAction.DELETED,
            message_id=message_id,
            author_id=removed.author_id if removed else None,
            author_name=removed.author_name if removed else "",
            original_text=removed.text if removed else "",
            reason=verdict.reason,
        )
        logger.info(
            "[SERVICE] %s message %s in %s (%s)",
            "Could not delete" if denied else "Deleted",
            message_id,
            event.conversation_id,
            verdict.reason or "no reason",
        )
        return denied

    @staticmethod
    async def _fragments(
        first: ModerationVerdict,
        verdicts: AsyncIterator[ModerationVerdict],
    ) -> AsyncIterator[str]:
        yield first.text
        async for verdict in verdicts:
            if verdict.action is VerdictType.STREAM:
                yield verdict.text

    async def _deliver_correction(
        self,
        event: ChatEvent,
        first: ModerationVerdict,
        verdicts: AsyncIterator[ModerationVerdict],
    ) -> None:
        renderer = StreamRenderer(
            self.transport,
            event.conversation_id,
            header=f"**{event.author_name}**:\n",
            cursor=self.stream_cursor,
            min_edit_interval=self.min_edit_interval,
            max_length=self.max_message_length,
        )

        async with aclosing(self._fragments(first, verdicts)) as fragments:
            final_text = await renderer.render(fragments)

        if final_text is None or renderer.message_id is None:
            logger.warning("[SERVICE] Correction for message %s was not delivered", event.message_id)
            return

        await self.history.append(
            event.conversation_id,
            HistoryMessage(
                id=renderer.message_id,
                text=final_text,
                timestamp=now_millis(),
                author_name=event.author_name,
                history_only=True,
                author_id=event.author_id,
            ),
        )
        self.moderation_log.add(
            event.conversation_id,
            LoggedAction.REPLACED,
            message_id=event.message_id,
            author_id=event.author_id,
            author_name=event.author_name,
            original_text=event.text,
            corrected_text=final_text,
            corrected_message_id=renderer.message_id,
        )
        logger.info(
            "[SERVICE] Replaced message %s in %s with correction %s (%d edits)",
            event.message_id,
            event.conversation_id,
            renderer.message_id,
            renderer.edit_count,
        )
