"""
Verdict and analysis types produced by the moderation pipeline.

A moderation run yields a lazy sequence of `ModerationVerdict` values:
zero or more DELETE verdicts, then zero or more STREAM fragments of the
rewritten message, or a single KEEP. Exhaustion of the sequence marks the
end of the run.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List


class ToneStatus(Enum):
    """Overall tone of a conversation as judged by the classifier."""

    AGGRESSIVE = "AGGRESSIVE"
    NEUTRAL = "NEUTRAL"
    THANKFUL = "THANKFUL"
    SEXUAL = "SEXUAL"

    @classmethod
    def parse(cls, value: str) -> ToneStatus:
        """Parse a status string, accepting the legacy ``AGRESSIVE`` spelling."""
        normalized = str(value).strip().upper()
        if normalized == "AGRESSIVE":
            return cls.AGGRESSIVE
        return cls(normalized)

    def __str__(self) -> str:
        return self.value


@dataclass(slots=True)
class AnalyzeResult:
    """Structured answer of the tone classifier.

    Attributes:
        status (ToneStatus): Tone of the conversation.
        toxic_message_ids (List[int]): Ids, taken from the rendered history, of
            the messages the classifier considers toxic.
        reason (str): Short free-form justification, used to steer the rewrite.
    """

    status: ToneStatus
    toxic_message_ids: List[int] = field(default_factory=list)
    reason: str = ""

    @property
    def is_aggressive(self) -> bool:
        return self.status is ToneStatus.AGGRESSIVE


class VerdictType(Enum):
    """Enumeration of pipeline verdicts."""

    DELETE = "delete"
    KEEP = "keep"
    STREAM = "stream"

    def __str__(self) -> str:
        return self.value


@dataclass(slots=True, frozen=True)
class ModerationVerdict:
    """One element of a moderation run's output.

    Attributes:
        action (VerdictType): What the caller should do.
        message_id (int | None): Target of a DELETE; ``None`` means the incoming message.
        text (str): Fragment of the corrected message for STREAM verdicts.
        reason (str): Why a DELETE was issued, for logging.
    """

    action: VerdictType
    message_id: int | None = None
    text: str = ""
    reason: str = ""

    @classmethod
    def delete(cls, message_id: int | None = None, reason: str = "") -> ModerationVerdict:
        return cls(VerdictType.DELETE, message_id=message_id, reason=reason)

    @classmethod
    def keep(cls) -> ModerationVerdict:
        return cls(VerdictType.KEEP)

    @classmethod
    def fragment(cls, text: str) -> ModerationVerdict:
        return cls(VerdictType.STREAM, text=text)
