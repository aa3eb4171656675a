"""In-memory message list with explicit, id-addressed updates."""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Union

from .models import Message, MessageRole

logger = logging.getLogger(__name__)

MessageLike = Union[Message, Mapping[str, Any]]


def _as_message(message: MessageLike) -> Message:
    if isinstance(message, Message):
        return message
    return Message.model_validate(dict(message))


class MessageStore:
    """Ordered chat history.

    Messages are replaced, never mutated in place: ``update`` swaps in a copy
    carrying the changes so previously handed-out objects stay unchanged.
    """

    def __init__(self, messages: Optional[Iterable[MessageLike]] = None) -> None:
        self._messages: List[Message] = [_as_message(m) for m in (messages or [])]

    def add(self, message: MessageLike) -> Message:
        msg = _as_message(message)
        self._messages.append(msg)
        logger.debug("Added %s message %s", msg.role.value, msg.id)
        return msg

    def add_many(self, messages: Iterable[MessageLike]) -> List[Message]:
        return [self.add(m) for m in messages]

    def get(self, message_id: str) -> Optional[Message]:
        for msg in self._messages:
            if msg.id == message_id:
                return msg
        return None

    def update(self, message_id: str, **changes: Any) -> Optional[Message]:
        """Apply ``changes`` to the message with ``message_id``; returns the new message or None."""
        for index, msg in enumerate(self._messages):
            if msg.id == message_id:
                data: Dict[str, Any] = msg.model_dump()
                data.update(changes)
                data["id"] = message_id
                updated = Message.model_validate(data)
                self._messages[index] = updated
                return updated
        logger.warning("Cannot update unknown message %s", message_id)
        return None

    def delete(self, message_id: str) -> bool:
        before = len(self._messages)
        self._messages = [m for m in self._messages if m.id != message_id]
        return len(self._messages) != before

    def clear(self) -> None:
        self._messages = []

    def set_messages(self, messages: Iterable[MessageLike]) -> None:
        self._messages = [_as_message(m) for m in messages]

    def by_role(self, role: Union[MessageRole, str]) -> List[Message]:
        role = MessageRole(role)
        return [m for m in self._messages if m.role is role]

    @property
    def messages(self) -> List[Message]:
        return list(self._messages)

    def __iter__(self) -> Iterator[Message]:
        return iter(list(self._messages))

    def __len__(self) -> int:
        return len(self._messages)
