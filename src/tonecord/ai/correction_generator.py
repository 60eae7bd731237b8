"""Stream a polite rewrite of a message flagged as aggressive."""

from __future__ import annotations

from tonecord.ai.fragment_channel import FragmentChannel
from tonecord.ai.llm_client import LLMClient
from tonecord.ai.prompts import build_correction_prompt
from tonecord.datatypes.moderation_datatypes import AnalyzeResult
from tonecord.util.logger import get_logger

logger = get_logger("correction_generator")


class CorrectionGenerator:
    """
    Open a streaming rewrite request for one flagged message.

    The system prompt is built from the classifier's analysis; the user
    content is the original message text.
    """

    def __init__(self, client: LLMClient, prompt_template: str | None = None, channel_size: int = 32) -> None:
        self._client = client
        self._prompt_template = prompt_template
        self._channel_size = channel_size

    def open_stream(self, analysis: AnalyzeResult, original_text: str, name: str = "correction") -> FragmentChannel:
        """Return a channel yielding the rewritten text fragment by fragment."""
        system_prompt = build_correction_prompt(analysis, self._prompt_template)
        logger.debug("[CORRECTION] Opening stream %s (%d chars)", name, len(original_text))
        return FragmentChannel(
            self._client.stream(system_prompt, original_text),
            maxsize=self._channel_size,
            name=name,
        )
