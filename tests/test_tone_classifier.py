"""Tests for the tone classifier and its payload parsing."""

import pytest

from fakes import ScriptedLLM
from tonecord.ai.prompts import ANALYZE_PROMPT
from tonecord.ai.tone_classifier import ToneClassifier, parse_analyze_payload
from tonecord.datatypes.moderation_datatypes import ToneStatus
from tonecord.errors import AIServiceError, ResponseParseError


class TestParseAnalyzePayload:
    def test_valid_payload(self):
        result = parse_analyze_payload(
            {"status": "AGGRESSIVE", "toxicMessageIds": [3, 5], "reason": " оскорбления "}
        )

        assert result.status is ToneStatus.AGGRESSIVE
        assert result.toxic_message_ids == [3, 5]
        assert result.reason == "оскорбления"

    def test_legacy_spelling_and_string_ids(self):
        result = parse_analyze_payload({"status": "AGRESSIVE", "toxicMessageIds": ["7", 7, "8"]})

        assert result.is_aggressive
        assert result.toxic_message_ids == [7, 8]

    def test_missing_optional_fields(self):
        result = parse_analyze_payload({"status": "NEUTRAL"})

        assert result.status is ToneStatus.NEUTRAL
        assert result.toxic_message_ids == []
        assert result.reason == ""

    @pytest.mark.parametrize(
        "payload",
        [
            {},
            {"status": "ANGRY"},
            {"status": "NEUTRAL", "toxicMessageIds": "1,2"},
            {"status": "NEUTRAL", "toxicMessageIds": ["abc"]},
        ],
    )
    def test_invalid_payload(self, payload):
        with pytest.raises(ResponseParseError):
            parse_analyze_payload(payload)


class TestToneClassifier:
    @pytest.mark.asyncio
    async def test_classify_sends_history_prompt(self):
        llm = ScriptedLLM(analysis={"status": "AGGRESSIVE", "toxicMessageIds": [2]})
        classifier = ToneClassifier(llm)

        result = await classifier.classify("[ID: 2, User: Bob, Timestamp: 1, live]: ...")

        assert result.is_aggressive
        system_prompt, user_prompt = llm.json_calls[0]
        assert system_prompt == ANALYZE_PROMPT
        assert user_prompt.startswith("История сообщений:\n[ID: 2")

    @pytest.mark.asyncio
    async def test_custom_system_prompt(self):
        llm = ScriptedLLM()
        await ToneClassifier(llm, system_prompt="custom").classify("history")
        assert llm.json_calls[0][0] == "custom"

    @pytest.mark.asyncio
    async def test_service_error_returns_none(self):
        llm = ScriptedLLM(json_error=AIServiceError("timeout"))
        assert await ToneClassifier(llm).classify("history") is None

    @pytest.mark.asyncio
    async def test_parse_error_returns_none(self):
        llm = ScriptedLLM(json_error=ResponseParseError("bad json"))
        assert await ToneClassifier(llm).classify("history") is None

    @pytest.mark.asyncio
    async def test_invalid_schema_returns_none(self):
        llm = ScriptedLLM(analysis={"status": "FURIOUS"})
        assert await ToneClassifier(llm).classify("history") is None
