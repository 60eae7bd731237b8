"""
AI provider integration for Tonecord.

This package talks to an OpenAI-compatible chat completion API:

- **llm_client.py**: AsyncOpenAI wrapper with JSON, streaming and plain-text
  request shapes. Maps provider failures onto the Tonecord error hierarchy.

- **tone_classifier.py**: Sends the rendered history window and validates the
  JSON verdict against a schema before turning it into an AnalyzeResult.

- **correction_generator.py**: Opens a streaming rewrite of a flagged message.

- **fragment_channel.py**: Bounded queue between the streaming request and the
  consumer, with cancellation on close.

- **prompts.py**: Default system prompts and prompt builders.
"""
