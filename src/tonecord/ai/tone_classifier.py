"""Classify the tone of a rendered conversation history with the AI provider."""

from __future__ import annotations

from typing import Any, Dict

import jsonschema
from jsonschema import ValidationError

from tonecord.ai.llm_client import LLMClient
from tonecord.ai.prompts import ANALYZE_PROMPT, build_history_prompt
from tonecord.datatypes.moderation_datatypes import AnalyzeResult, ToneStatus
from tonecord.errors import AIServiceError, ResponseParseError
from tonecord.util.logger import get_logger

logger = get_logger("tone_classifier")

ANALYZE_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "status": {
            "type": "string",
            "enum": ["AGGRESSIVE", "AGRESSIVE", "NEUTRAL", "THANKFUL", "SEXUAL"],
        },
        "toxicMessageIds": {
            "type": "array",
            "items": {"type": ["integer", "string"]},
        },
        "reason": {"type": "string"},
    },
    "required": ["status"],
}


def parse_analyze_payload(payload: Dict[str, Any]) -> AnalyzeResult:
    """Validate a classifier payload and convert it into an :class:`AnalyzeResult`.

    Raises:
        ResponseParseError: The payload does not match :data:`ANALYZE_SCHEMA`
            or lists ids that are not integers.
    """
    try:
        jsonschema.validate(instance=payload, schema=ANALYZE_SCHEMA)
    except ValidationError as exc:
        raise ResponseParseError(f"Schema validation failed: {exc.message}") from exc

    try:
        ids = [int(raw_id) for raw_id in payload.get("toxicMessageIds") or []]
    except (TypeError, ValueError) as exc:
        raise ResponseParseError(f"Invalid toxic message id: {exc}") from exc

    return AnalyzeResult(
        status=ToneStatus.parse(payload["status"]),
        toxic_message_ids=list(dict.fromkeys(ids)),
        reason=str(payload.get("reason") or "").strip(),
    )


class ToneClassifier:
    """
    Ask the AI provider whether a conversation has turned aggressive.

    :meth:`classify` never raises: transport failures, timeouts and malformed
    payloads are logged and reported as ``None``, which the pipeline treats
    as "keep, no action".
    """

    def __init__(self, client: LLMClient, system_prompt: str | None = None) -> None:
        self._client = client
        self._system_prompt = system_prompt or ANALYZE_PROMPT

    async def classify(self, history: str) -> AnalyzeResult | None:
        try:
            payload = await self._client.call_json(
                self._system_prompt,
                build_history_prompt(history),
                schema=ANALYZE_SCHEMA,
            )
            result = parse_analyze_payload(payload)
        except AIServiceError as exc:
            logger.error("[CLASSIFIER] AI request failed: %s", exc)
            return None
        except ResponseParseError as exc:
            logger.error("[CLASSIFIER] Malformed analysis payload: %s", exc)
            return None
        except Exception:
            logger.exception("[CLASSIFIER] Unexpected error during classification")
            return None

        logger.info(
            "[CLASSIFIER] status=%s toxic_ids=%s reason=%r",
            result.status,
            result.toxic_message_ids,
            result.reason,
        )
        return result
