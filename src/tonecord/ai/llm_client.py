"""
Thin adapter around an OpenAI-compatible chat completion endpoint.

Three call shapes are exposed, all taking a system prompt and a user prompt:

- :meth:`LLMClient.call_json`: one non-streaming request asking for a JSON
  object, returned parsed.
- :meth:`LLMClient.stream`: a streaming request yielding text deltas as they
  arrive. The SDK consumes the SSE framing, including the ``[DONE]`` sentinel.
- :meth:`LLMClient.complete`: one non-streaming plain-text request.

Provider failures are re-raised as :class:`AIServiceError` and malformed JSON
as :class:`ResponseParseError`; callers decide how to degrade.
"""

from __future__ import annotations

import json
from typing import Any, AsyncIterator, Dict, List

from openai import AsyncOpenAI, OpenAIError
from openai.types.chat import ChatCompletionMessageParam

from tonecord.configuration.ai_settings import AISettings
from tonecord.errors import AIServiceError, ResponseParseError
from tonecord.util.logger import get_logger

logger = get_logger("llm_client")


def build_messages(system_prompt: str, user_prompt: str) -> List[ChatCompletionMessageParam]:
    return [
        {"role": "system", "content": system_prompt},
        {"role": "user", "content": user_prompt},
    ]


class LLMClient:
    """Issue chat completion requests with the configured model and sampling settings."""

    def __init__(self, settings: AISettings, client: AsyncOpenAI | None = None) -> None:
        self._settings = settings
        self._model_name = settings.model_name
        self._client = client or AsyncOpenAI(
            api_key=settings.api_key,
            base_url=settings.base_url,
            timeout=settings.request_timeout,
            max_retries=settings.max_retries,
        )
        logger.info(
            "[LLM CLIENT] Initialized with base_url=%s, model=%s",
            settings.base_url,
            self._model_name,
        )

    @property
    def model_name(self) -> str:
        return self._model_name

    def _response_format(self, schema: Dict[str, Any] | None) -> Dict[str, Any]:
        if schema is not None and self._settings.response_format == "json_schema":
            return {
                "type": "json_schema",
                "json_schema": {"name": "tonecord_response", "strict": False, "schema": schema},
            }
        return {"type": "json_object"}

    async def call_json(
        self,
        system_prompt: str,
        user_prompt: str,
        schema: Dict[str, Any] | None = None,
    ) -> Dict[str, Any]:
        """Request a JSON object and return it parsed.

        Raises:
            AIServiceError: The request failed or timed out.
            ResponseParseError: The answer is not a JSON object.
        """
        logger.debug("[LLM CLIENT] JSON request (%d chars of user prompt)", len(user_prompt))
        try:
            response = await self._client.chat.completions.create(
                model=self._model_name,
                messages=build_messages(system_prompt, user_prompt),
                temperature=self._settings.temperature,
                response_format=self._response_format(schema),
            )
        except OpenAIError as exc:
            raise AIServiceError(f"JSON request failed: {exc}") from exc

        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise ResponseParseError("Empty response content")

        try:
            payload = json.loads(content.strip())
        except json.JSONDecodeError as exc:
            raise ResponseParseError(f"Response is not valid JSON: {exc}") from exc

        if not isinstance(payload, dict):
            raise ResponseParseError(f"Expected a JSON object, got {type(payload).__name__}")
        return payload

    async def stream(self, system_prompt: str, user_prompt: str) -> AsyncIterator[str]:
        """Yield non-empty text deltas of a streamed completion.

        Raises:
            AIServiceError: The request failed or the stream broke off.
        """
        logger.debug("[LLM CLIENT] Stream request (%d chars of user prompt)", len(user_prompt))
        try:
            stream = await self._client.chat.completions.create(
                model=self._model_name,
                messages=build_messages(system_prompt, user_prompt),
                temperature=self._settings.temperature,
                stream=True,
            )
            async for chunk in stream:
                if not chunk.choices:
                    continue
                content = chunk.choices[0].delta.content
                if content:
                    yield content
        except OpenAIError as exc:
            raise AIServiceError(f"Stream request failed: {exc}") from exc

    async def complete(self, system_prompt: str, user_prompt: str) -> str:
        """Return the plain-text answer of a single completion.

        Raises:
            AIServiceError: The request failed or returned nothing.
        """
        try:
            response = await self._client.chat.completions.create(
                model=self._model_name,
                messages=build_messages(system_prompt, user_prompt),
                temperature=self._settings.temperature,
            )
        except OpenAIError as exc:
            raise AIServiceError(f"Completion request failed: {exc}") from exc

        content = response.choices[0].message.content if response.choices else None
        if not content or not content.strip():
            raise AIServiceError("Completion returned no content")
        return content.strip()

    async def close(self) -> None:
        await self._client.close()
