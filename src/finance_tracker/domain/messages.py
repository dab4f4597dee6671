from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from finance_tracker.logger import get_logger

logger = get_logger(__name__)

MESSAGE_EVENTS = frozenset({"message", "message.upsert"})
VOICE_MESSAGE_TYPES = frozenset({"ptt", "audio"})


class MessageKind(str, Enum):
    TEXT = "text"
    VOICE = "voice"
    IGNORED = "ignored"


@dataclass(frozen=True)
class NormalizedMessage:
    kind: MessageKind
    text: str | None = None
    sender: str | None = None
    reason: str | None = None

    @property
    def has_text(self) -> bool:
        return self.kind is MessageKind.TEXT and bool(self.text)


def _ignored(reason: str, sender: str | None = None) -> NormalizedMessage:
    return NormalizedMessage(kind=MessageKind.IGNORED, sender=sender, reason=reason)


def _as_text(value: Any) -> str:
    if isinstance(value, str):
        return value.strip()
    return ""


def normalize_event(event: Any) -> NormalizedMessage:
    """Turn a WAHA webhook event into something the pipeline can act on.

    Voice notes are recognised but never transcribed. Anything that is not
    a recognisable inbound message comes back as ``IGNORED`` with a reason,
    never as an error.
    """
    if not isinstance(event, dict):
        return _ignored("unexpected event")

    event_name = event.get("event")
    if event_name not in MESSAGE_EVENTS:
        return _ignored(f"unsupported event {event_name!r}")

    payload = event.get("payload")
    if not isinstance(payload, dict):
        return _ignored("missing payload")

    sender = _as_text(payload.get("from")) or None
    if payload.get("fromMe") is True:
        return _ignored("own message", sender)

    message_type = _as_text(payload.get("type")).lower()
    if message_type in VOICE_MESSAGE_TYPES:
        return NormalizedMessage(
            kind=MessageKind.VOICE,
            sender=sender,
            reason="voice messages are not transcribed",
        )

    body = _as_text(payload.get("body"))
    if not body:
        return _ignored("empty body", sender)

    return NormalizedMessage(kind=MessageKind.TEXT, text=body, sender=sender)
