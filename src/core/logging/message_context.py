"""Per-record Kafka position carried into log lines."""

from contextvars import ContextVar, Token
from dataclasses import dataclass, replace
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class MessagePosition:
    """Where the record being handled came from. Empty fields mean unset."""

    topic: str = ""
    partition: int = -1
    offset: int = -1
    key: str = ""
    consumer_group: str = ""

    def with_updates(self, **changes: Any) -> "MessagePosition":
        return replace(self, **{k: v for k, v in changes.items() if v is not None})


_EMPTY = MessagePosition()
_position: ContextVar[MessagePosition] = ContextVar("message_position", default=_EMPTY)


def set_message_context(
    topic: Optional[str] = None,
    partition: Optional[int] = None,
    offset: Optional[int] = None,
    key: Optional[str] = None,
    consumer_group: Optional[str] = None,
) -> None:
    """Update the current position; arguments left as None are unchanged."""
    _position.set(
        _position.get().with_updates(
            topic=topic,
            partition=partition,
            offset=offset,
            key=key,
            consumer_group=consumer_group,
        )
    )


def get_message_context() -> Dict[str, Any]:
    """
    Current position as log fields.

    ``message_topic``, ``message_partition`` and ``message_offset`` are always
    present; key and consumer group only when set.
    """
    position = _position.get()
    context: Dict[str, Any] = {
        "message_topic": position.topic,
        "message_partition": position.partition,
        "message_offset": position.offset,
    }
    if position.key:
        context["message_key"] = position.key
    if position.consumer_group:
        context["message_consumer_group"] = position.consumer_group
    return context


def clear_message_context() -> None:
    _position.set(_EMPTY)


class MessageLogContext:
    """
    Tag log lines emitted while one record is handled.

    Usage:
        with MessageLogContext(topic="events", partition=0, offset=12345):
            decode_message()

    The previous position is restored on exit, including on exceptions.
    """

    def __init__(
        self,
        topic: Optional[str] = None,
        partition: Optional[int] = None,
        offset: Optional[int] = None,
        key: Optional[str] = None,
        consumer_group: Optional[str] = None,
    ):
        self.changes = {
            "topic": topic,
            "partition": partition,
            "offset": offset,
            "key": key,
            "consumer_group": consumer_group,
        }
        self._token: Optional[Token] = None

    def __enter__(self) -> "MessageLogContext":
        self._token = _position.set(_position.get().with_updates(**self.changes))
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self._token is not None:
            _position.reset(self._token)
            self._token = None
        return False
