"""
Exception hierarchy shared by every Tonecord component.

Each external boundary (messaging transport, AI provider, cache) translates
its library-specific failures into one of these types so the pipeline and the
message handler can apply a single recovery policy:

- :class:`TransportError` and subclasses: the chat platform refused or failed
  an operation. Logged; the pipeline continues with a conservative default.
- :class:`AIServiceError`: the AI provider failed or timed out.
- :class:`ResponseParseError`: the AI provider answered with a payload that
  does not match the expected structure.
- :class:`CacheUnavailableError`: the history cache could not be read or
  written; treated as an empty conversation.
"""

from __future__ import annotations


class TonecordError(Exception):
    """Base class for all errors raised by Tonecord."""


class TransportError(TonecordError):
    """A messaging transport operation failed."""


class PermissionDeniedError(TransportError):
    """The bot lacks the permission required for a transport operation."""


class MessageNotFoundError(TransportError):
    """The targeted message or channel no longer exists."""


class AIServiceError(TonecordError):
    """The AI provider request failed or timed out."""


class ResponseParseError(TonecordError):
    """The AI provider returned a malformed structured payload."""


class CacheUnavailableError(TonecordError):
    """The cache backend could not complete a read or write."""
