"""Tests for RepeatedMessageDetector."""

import pytest

from fakes import FailingCache, FakeClock
from tonecord.cache.cache_backend import MemoryTTLCache
from tonecord.moderation.spam_detector import RepeatedMessageDetector


class TestRepeatedMessageDetector:
    def test_cache_key_format(self):
        assert RepeatedMessageDetector.last_message_key(10, 20) == "10-20-last"

    @pytest.mark.asyncio
    async def test_second_identical_message_is_a_repeat(self):
        detector = RepeatedMessageDetector(MemoryTTLCache())

        assert await detector.check_and_remember(1, 5, "привет") is False
        assert await detector.check_and_remember(1, 5, "привет") is True

    @pytest.mark.asyncio
    async def test_whitespace_and_case_are_ignored(self):
        detector = RepeatedMessageDetector(MemoryTTLCache())

        await detector.check_and_remember(1, 5, "Привет   всем")
        assert await detector.check_and_remember(1, 5, "привет всем ") is True

    @pytest.mark.asyncio
    async def test_different_text_author_or_conversation(self):
        detector = RepeatedMessageDetector(MemoryTTLCache())
        await detector.check_and_remember(1, 5, "привет")

        assert await detector.check_and_remember(1, 6, "привет") is False
        assert await detector.check_and_remember(2, 5, "привет") is False
        assert await detector.check_and_remember(1, 5, "пока") is False

    @pytest.mark.asyncio
    async def test_repeat_forgotten_after_window(self):
        clock = FakeClock()
        detector = RepeatedMessageDetector(MemoryTTLCache(clock=clock), window_seconds=180)

        await detector.check_and_remember(1, 5, "привет")
        clock.advance(181)

        assert await detector.check_and_remember(1, 5, "привет") is False

    @pytest.mark.asyncio
    async def test_missing_author_or_empty_text_skipped(self):
        detector = RepeatedMessageDetector(MemoryTTLCache())

        assert await detector.check_and_remember(1, None, "привет") is False
        assert await detector.check_and_remember(1, None, "привет") is False
        assert await detector.check_and_remember(1, 5, "  ") is False
        assert await detector.check_and_remember(1, 5, "  ") is False

    @pytest.mark.asyncio
    async def test_cache_failure_never_flags(self):
        detector = RepeatedMessageDetector(FailingCache())

        assert await detector.check_and_remember(1, 5, "привет") is False
        assert await detector.check_and_remember(1, 5, "привет") is False
