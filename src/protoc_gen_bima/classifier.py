"""Classification of messages by the response naming convention."""

from __future__ import annotations

from enum import Enum
from typing import Dict, Iterable

from protoc_gen_bima.models import Message

RESPONSE_SUFFIX = "Response"
PAGINATED_RESPONSE_SUFFIX = "PaginatedResponse"


class MessageKind(Enum):
    PLAIN = "plain"
    RESPONSE = "response"
    PAGINATED_RESPONSE = "paginated_response"

    @property
    def is_response(self) -> bool:
        return self is not MessageKind.PLAIN


def classify_message(message: Message) -> MessageKind:
    name = message.go_name
    if name.endswith(PAGINATED_RESPONSE_SUFFIX):
        return MessageKind.PAGINATED_RESPONSE
    if name.endswith(RESPONSE_SUFFIX):
        return MessageKind.RESPONSE
    return MessageKind.PLAIN


def classify_messages(messages: Iterable[Message]) -> Dict[str, MessageKind]:
    """Map each message's full proto name to its kind."""
    return {m.full_name: classify_message(m) for m in messages}
