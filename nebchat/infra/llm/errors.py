# nebchat/infra/llm/errors.py
from __future__ import annotations


class NebchatError(Exception):
    """Base error for failures raised by nebchat itself (not by the provider SDK)."""


class ConfigurationError(NebchatError):
    """Raised by the setup layer when a required vendor setting is missing."""


class ChannelClosedError(NebchatError, RuntimeError):
    """Raised when a fragment is put on a channel that was already closed."""


class StreamInterruptedError(NebchatError):
    """Raised by a stream function when the producer stopped without closing its channel."""
