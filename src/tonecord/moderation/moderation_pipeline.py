"""
Per-message moderation pipeline.

Every inbound chat message goes through the same ordered stages:

1. RECORD: the message is appended to the conversation history, always.
2. LOCK_CHECK: if a run is already active for the conversation, nothing else
   happens for this message.
3. SPAM_CHECK: an exact repeat of the author's previous message is deleted.
4. FAST_FILTER: the lexical profanity filter; a hit deletes the message
   without any AI call.
5. SATURATION_CHECK: until the history window is filled past the threshold
   the message is kept, which limits AI usage to conversations with context.
6. CLASSIFY: the tone classifier reads the whole rendered window.
7. AGGRESSION_FLOW: every toxic message id is deleted, then a polite rewrite
   of the incoming message is streamed fragment by fragment.

:meth:`ModerationPipeline.process_message` is an async generator of
:class:`ModerationVerdict`; the caller applies the verdicts.
"""

from __future__ import annotations

from contextlib import aclosing
from typing import AsyncIterator

from tonecord.ai.correction_generator import CorrectionGenerator
from tonecord.ai.tone_classifier import ToneClassifier
from tonecord.datatypes.chat_datatypes import ChatEvent, HistoryMessage
from tonecord.datatypes.moderation_datatypes import AnalyzeResult, ModerationVerdict
from tonecord.history.history_store import MessageHistoryStore
from tonecord.moderation.profanity_filter import ProfanityFilter
from tonecord.moderation.single_flight import SingleFlightGuard
from tonecord.moderation.spam_detector import RepeatedMessageDetector
from tonecord.util.logger import get_logger

logger = get_logger("moderation_pipeline")

REASON_SPAM = "repeated message"
REASON_PROFANITY = "profanity"
REASON_TOXIC = "aggressive tone"


class ModerationPipeline:
    """
    Compose the profanity filter, history store, tone classifier and
    correction generator into one verdict stream per message.

    Attributes:
        history: Bounded per-conversation history.
        guard: Single-flight flags, one per conversation.
    """

    def __init__(
        self,
        history: MessageHistoryStore,
        profanity_filter: ProfanityFilter,
        classifier: ToneClassifier,
        corrector: CorrectionGenerator,
        guard: SingleFlightGuard | None = None,
        spam_detector: RepeatedMessageDetector | None = None,
    ) -> None:
        self.history = history
        self.profanity_filter = profanity_filter
        self.classifier = classifier
        self.corrector = corrector
        self.guard = guard or SingleFlightGuard()
        self.spam_detector = spam_detector

    async def record(self, event: ChatEvent) -> HistoryMessage:
        """Append the event to its conversation's history."""
        return await self.history.append(event.conversation_id, event.to_history_message())

    async def process_message(self, event: ChatEvent) -> AsyncIterator[ModerationVerdict]:
        """Record ``event`` and, if no run is active for its conversation, moderate it.

        The single-flight flag is held until this generator is exhausted or
        closed, so callers should drive it with ``contextlib.aclosing``.
        """
        await self.record(event)

        with self.guard.claim(event.conversation_id) as acquired:
            if not acquired:
                # Known limitation: a message arriving during an active run is
                # recorded for context but never moderated, and nothing replays it.
                logger.info(
                    "[PIPELINE] Run active in conversation %s, message %s recorded without moderation",
                    event.conversation_id,
                    event.message_id,
                )
                return

            async with aclosing(self._moderate(event)) as verdicts:
                async for verdict in verdicts:
                    yield verdict

    async def _moderate(self, event: ChatEvent) -> AsyncIterator[ModerationVerdict]:
        conversation_id = event.conversation_id

        if self.spam_detector is not None and await self.spam_detector.check_and_remember(
            conversation_id, event.author_id, event.text
        ):
            logger.warning("[PIPELINE] Repeated message from %s: %r", event.author_name, event.text)
            yield ModerationVerdict.delete(reason=REASON_SPAM)
            return

        if self.profanity_filter.is_profane(event.text):
            logger.warning("[PIPELINE] Profanity filter hit on %s: %r", event.author_name, event.text)
            yield ModerationVerdict.delete(reason=REASON_PROFANITY)
            return

        history_text, saturated = await self.history.render(conversation_id)
        if not saturated:
            yield ModerationVerdict.keep()
            return

        analysis = await self.classifier.classify(history_text)
        if analysis is None or not analysis.is_aggressive:
            yield ModerationVerdict.keep()
            return

        async with aclosing(self._aggression_flow(event, analysis)) as verdicts:
            async for verdict in verdicts:
                yield verdict

    async def _aggression_flow(self, event: ChatEvent, analysis: AnalyzeResult) -> AsyncIterator[ModerationVerdict]:
        window, _ = await self.history.read(event.conversation_id)
        history_only_ids = {m.id for m in window if m.history_only}

        for message_id in analysis.toxic_message_ids:
            if message_id in history_only_ids:
                logger.debug("[PIPELINE] Not deleting history-only message %s", message_id)
                continue
            yield ModerationVerdict.delete(message_id, reason=analysis.reason or REASON_TOXIC)

        channel = self.corrector.open_stream(
            analysis,
            event.text,
            name=f"{event.conversation_id}:{event.message_id}",
        )
        try:
            async for fragment in channel:
                yield ModerationVerdict.fragment(fragment)
        finally:
            await channel.aclose()

        if channel.error is not None:
            logger.warning(
                "[PIPELINE] Correction for message %s stopped early: %s",
                event.message_id,
                channel.error,
            )
