"""Round-trip orchestration between user input, provider and capability registry."""

from .controller import FAILURE_MESSAGE, AgentSession
from .models import ActionPayload, MessagePayload, SendMessageOptions, SessionState

__all__ = [
    "FAILURE_MESSAGE",
    "ActionPayload",
    "AgentSession",
    "MessagePayload",
    "SendMessageOptions",
    "SessionState",
]
