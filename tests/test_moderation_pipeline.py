"""Tests for ModerationPipeline."""

import asyncio
from contextlib import aclosing

import pytest

from fakes import ScriptedLLM, collect, make_event
from tonecord.ai.correction_generator import CorrectionGenerator
from tonecord.ai.tone_classifier import ToneClassifier
from tonecord.cache.cache_backend import MemoryTTLCache
from tonecord.datatypes.moderation_datatypes import ModerationVerdict, VerdictType
from tonecord.errors import AIServiceError
from tonecord.history.history_store import MessageHistoryStore
from tonecord.moderation.moderation_pipeline import (
    REASON_PROFANITY,
    REASON_SPAM,
    ModerationPipeline,
)
from tonecord.moderation.profanity_filter import ProfanityFilter, ProfanityLexicon
from tonecord.moderation.spam_detector import RepeatedMessageDetector

AGGRESSIVE = {"status": "AGGRESSIVE", "toxicMessageIds": [5, 6], "reason": "оскорбления"}


def build_pipeline(llm: ScriptedLLM, *, spam: bool = False) -> ModerationPipeline:
    cache = MemoryTTLCache()
    return ModerationPipeline(
        history=MessageHistoryStore(cache, window_size=10, saturation_threshold=0.5),
        profanity_filter=ProfanityFilter(ProfanityLexicon.load()),
        classifier=ToneClassifier(llm),
        corrector=CorrectionGenerator(llm),
        spam_detector=RepeatedMessageDetector(cache) if spam else None,
    )


async def seed(pipeline: ModerationPipeline, count: int, conversation_id: int = 100) -> None:
    for message_id in range(1, count + 1):
        await pipeline.record(make_event(message_id, f"реплика {message_id}", conversation_id=conversation_id))


class TestFastPath:
    @pytest.mark.asyncio
    async def test_profanity_deletes_without_ai(self):
        llm = ScriptedLLM()
        pipeline = build_pipeline(llm)

        verdicts = await collect(pipeline.process_message(make_event(1, "ты сука")))

        assert verdicts == [ModerationVerdict.delete(reason=REASON_PROFANITY)]
        assert llm.json_calls == []
        assert llm.stream_calls == []

    @pytest.mark.asyncio
    async def test_obscene_message_in_quiet_chat_is_deleted_without_ai(self):
        llm = ScriptedLLM(analysis={"status": "AGGRESSIVE", "toxicMessageIds": [1]})
        pipeline = build_pipeline(llm)
        await seed(pipeline, 2)

        verdicts = await collect(pipeline.process_message(make_event(3, "нахуй пошел")))

        assert verdicts == [ModerationVerdict.delete(reason=REASON_PROFANITY)]
        assert llm.json_calls == []
        assert llm.stream_calls == []

    @pytest.mark.asyncio
    async def test_message_is_recorded_before_moderation(self):
        pipeline = build_pipeline(ScriptedLLM())

        await collect(pipeline.process_message(make_event(1, "ты сука")))

        assert (await pipeline.history.get(100, 1)).text == "ты сука"

    @pytest.mark.asyncio
    async def test_repeated_message_is_deleted(self):
        pipeline = build_pipeline(ScriptedLLM(), spam=True)

        first = await collect(pipeline.process_message(make_event(1, "привет всем")))
        second = await collect(pipeline.process_message(make_event(2, "привет всем")))

        assert first == [ModerationVerdict.keep()]
        assert second == [ModerationVerdict.delete(reason=REASON_SPAM)]


class TestSaturation:
    @pytest.mark.asyncio
    async def test_unsaturated_window_is_kept_without_ai(self):
        llm = ScriptedLLM(analysis=AGGRESSIVE)
        pipeline = build_pipeline(llm)
        await seed(pipeline, 4)

        verdicts = await collect(pipeline.process_message(make_event(5, "ты дурак")))

        assert verdicts == [ModerationVerdict.keep()]
        assert llm.json_calls == []

    @pytest.mark.asyncio
    async def test_neutral_analysis_is_kept(self):
        llm = ScriptedLLM(analysis={"status": "NEUTRAL", "toxicMessageIds": []})
        pipeline = build_pipeline(llm)
        await seed(pipeline, 5)

        verdicts = await collect(pipeline.process_message(make_event(6, "всё хорошо")))

        assert verdicts == [ModerationVerdict.keep()]
        assert len(llm.json_calls) == 1
        assert "[ID: 6, User: Alice" in llm.json_calls[0][1]

    @pytest.mark.asyncio
    async def test_classifier_failure_is_kept(self):
        llm = ScriptedLLM(json_error=AIServiceError("timeout"))
        pipeline = build_pipeline(llm)
        await seed(pipeline, 5)

        verdicts = await collect(pipeline.process_message(make_event(6, "ты дурак")))

        assert verdicts == [ModerationVerdict.keep()]


class TestAggressionFlow:
    @pytest.mark.asyncio
    async def test_deletes_toxic_ids_then_streams_correction(self):
        llm = ScriptedLLM(analysis=AGGRESSIVE, fragments=["Ты ", "не ", "прав"])
        pipeline = build_pipeline(llm)
        await seed(pipeline, 5)

        verdicts = await collect(pipeline.process_message(make_event(6, "ты дурак")))

        assert [v.action for v in verdicts] == [
            VerdictType.DELETE,
            VerdictType.DELETE,
            VerdictType.STREAM,
            VerdictType.STREAM,
            VerdictType.STREAM,
        ]
        assert [v.message_id for v in verdicts[:2]] == [5, 6]
        assert "".join(v.text for v in verdicts[2:]) == "Ты не прав"
        system_prompt, user_prompt = llm.stream_calls[0]
        assert "оскорбления" in system_prompt
        assert user_prompt == "ты дурак"

    @pytest.mark.asyncio
    async def test_history_only_ids_are_not_deleted(self):
        llm = ScriptedLLM(analysis=AGGRESSIVE, fragments=["ok"])
        pipeline = build_pipeline(llm)
        await seed(pipeline, 4)
        history_only = make_event(5, "исправлено").to_history_message()
        history_only.history_only = True
        await pipeline.history.append(100, history_only)

        verdicts = await collect(pipeline.process_message(make_event(6, "ты дурак")))

        deletes = [v.message_id for v in verdicts if v.action is VerdictType.DELETE]
        assert deletes == [6]

    @pytest.mark.asyncio
    async def test_stream_failure_keeps_delivered_fragments(self):
        llm = ScriptedLLM(analysis=AGGRESSIVE, fragments=["Ты "], stream_error=AIServiceError("cut"))
        pipeline = build_pipeline(llm)
        await seed(pipeline, 5)

        verdicts = await collect(pipeline.process_message(make_event(6, "ты дурак")))

        assert [v.text for v in verdicts if v.action is VerdictType.STREAM] == ["Ты "]
        assert not pipeline.guard.is_active(100)


class TestSingleFlight:
    @pytest.mark.asyncio
    async def test_second_message_during_run_is_recorded_not_moderated(self):
        llm = ScriptedLLM()
        llm.json_gate = asyncio.Event()
        pipeline = build_pipeline(llm)
        await seed(pipeline, 5)

        first = asyncio.create_task(collect(pipeline.process_message(make_event(6, "первое"))))
        await asyncio.wait_for(llm.json_started.wait(), timeout=1)
        assert pipeline.guard.is_active(100)

        second = await collect(pipeline.process_message(make_event(7, "ты сука")))

        assert second == []
        assert (await pipeline.history.get(100, 7)) is not None

        llm.json_gate.set()
        assert await asyncio.wait_for(first, timeout=1) == [ModerationVerdict.keep()]
        assert not pipeline.guard.is_active(100)
        assert len(llm.json_calls) == 1

    @pytest.mark.asyncio
    async def test_other_conversations_run_concurrently(self):
        llm = ScriptedLLM()
        llm.json_gate = asyncio.Event()
        pipeline = build_pipeline(llm)
        await seed(pipeline, 5)

        first = asyncio.create_task(collect(pipeline.process_message(make_event(6, "первое"))))
        await asyncio.wait_for(llm.json_started.wait(), timeout=1)

        other = await collect(pipeline.process_message(make_event(1, "ты сука", conversation_id=200)))

        assert other == [ModerationVerdict.delete(reason=REASON_PROFANITY)]
        llm.json_gate.set()
        await asyncio.wait_for(first, timeout=1)

    @pytest.mark.asyncio
    async def test_guard_released_when_consumer_stops_early(self):
        llm = ScriptedLLM(analysis=AGGRESSIVE, fragments=["a", "b", "c"])
        pipeline = build_pipeline(llm)
        await seed(pipeline, 5)

        async with aclosing(pipeline.process_message(make_event(6, "ты дурак"))) as verdicts:
            async for verdict in verdicts:
                if verdict.action is VerdictType.STREAM:
                    break
            assert pipeline.guard.is_active(100)

        assert not pipeline.guard.is_active(100)
