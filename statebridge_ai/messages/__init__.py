"""Chat message models and store."""

from .models import Message, MessageRole
from .store import MessageStore

__all__ = ["Message", "MessageRole", "MessageStore"]
