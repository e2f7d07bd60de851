"""AumAI LLMRun: client and CLI for a streaming model-serving endpoint."""

from .core import LlmrunClient, decode_event
from .errors import (
    DecodeError,
    LlmrunError,
    SessionBusyError,
    StatusError,
    TransportError,
)
from .session import ChatSession, ConversationState

__version__ = "0.1.0"

__all__ = [
    "LlmrunClient",
    "decode_event",
    "ChatSession",
    "ConversationState",
    "LlmrunError",
    "TransportError",
    "StatusError",
    "DecodeError",
    "SessionBusyError",
]
