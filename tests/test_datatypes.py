"""Tests for chat and moderation datatypes."""

import pytest

from fakes import make_event
from tonecord.datatypes.chat_datatypes import DEFAULT_AUTHOR_NAME, HistoryMessage
from tonecord.datatypes.moderation_datatypes import (
    AnalyzeResult,
    ModerationVerdict,
    ToneStatus,
    VerdictType,
)


class TestChatEvent:
    def test_command_detection(self):
        assert make_event(1, "/start").is_command
        assert make_event(1, "  /help").is_command
        assert not make_event(1, "привет /start").is_command

    def test_question_detection(self):
        assert make_event(1, "как дела", is_private=True).is_question
        assert make_event(1, "<@99> как дела", mentions_bot=True, bot_mention="<@99>").is_question
        assert not make_event(1, "как дела").is_question

    def test_question_text_strips_mention(self):
        event = make_event(1, "<@99> что такое asyncio?", mentions_bot=True, bot_mention="<@99>")
        assert event.question_text() == "что такое asyncio?"

    def test_to_history_message(self):
        event = make_event(5, "текст", author_name="", author_id=3, timestamp=1234)

        record = event.to_history_message()

        assert record.id == 5
        assert record.text == "текст"
        assert record.timestamp == 1234
        assert record.author_name == DEFAULT_AUTHOR_NAME
        assert record.author_id == 3
        assert record.history_only is False


class TestHistoryMessage:
    def test_dict_round_trip(self):
        record = HistoryMessage(id=1, text="a", timestamp=2, author_name="Bob", history_only=True, author_id=7)
        assert HistoryMessage.from_dict(record.to_dict()) == record

    def test_from_dict_defaults(self):
        record = HistoryMessage.from_dict({"id": "3"})

        assert record.id == 3
        assert record.text == ""
        assert record.author_name == DEFAULT_AUTHOR_NAME
        assert record.history_only is False
        assert record.author_id is None

    def test_render(self):
        live = HistoryMessage(id=1, text="hi", timestamp=10, author_name="Bob")
        kept = HistoryMessage(id=2, text="fixed", timestamp=20, author_name="Bob", history_only=True)

        assert live.render() == "[ID: 1, User: Bob, Timestamp: 10, live]: hi"
        assert kept.render() == "[ID: 2, User: Bob, Timestamp: 20, history-only]: fixed"


class TestToneStatus:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("AGGRESSIVE", ToneStatus.AGGRESSIVE),
            ("AGRESSIVE", ToneStatus.AGGRESSIVE),
            ("neutral", ToneStatus.NEUTRAL),
            (" THANKFUL ", ToneStatus.THANKFUL),
            ("SEXUAL", ToneStatus.SEXUAL),
        ],
    )
    def test_parse(self, raw, expected):
        assert ToneStatus.parse(raw) is expected

    def test_parse_unknown(self):
        with pytest.raises(ValueError):
            ToneStatus.parse("ANGRY")

    def test_is_aggressive(self):
        assert AnalyzeResult(ToneStatus.AGGRESSIVE).is_aggressive
        assert not AnalyzeResult(ToneStatus.SEXUAL).is_aggressive


class TestModerationVerdict:
    def test_constructors(self):
        assert ModerationVerdict.delete() == ModerationVerdict(VerdictType.DELETE)
        assert ModerationVerdict.delete(4, reason="x").message_id == 4
        assert ModerationVerdict.keep().action is VerdictType.KEEP

        fragment = ModerationVerdict.fragment("abc")
        assert fragment.action is VerdictType.STREAM
        assert fragment.text == "abc"
