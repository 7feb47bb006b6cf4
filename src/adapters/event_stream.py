"""Newline-delimited JSON event adapter.

Maps JSON event lines to core engine calls and engine results back to JSON,
keeping the wire format out of the core. Supported events:

    {"type": "chat", "channel": 10, "sender_id": 1, "sender": "...", "text": "..."}
    {"type": "listings", "batch": 3, "data": "<base64 batch>"}
    {"type": "summary"}
"""

from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass
import json
import logging
from typing import Any, Iterable, Iterator, Optional, Union

from core.engine import FilterEngine
from core.errors import InvalidArgument, MalformedBatch
from core.models import HistoryEntry

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChatEvent:
    channel: int
    sender_id: int
    sender: str
    text: str


@dataclass(frozen=True)
class ListingsEvent:
    batch: Optional[int]
    data: bytes


@dataclass(frozen=True)
class SummaryEvent:
    pass


Event = Union[ChatEvent, ListingsEvent, SummaryEvent]


def _int_field(raw: dict[str, Any], key: str, default: Optional[int]) -> Optional[int]:
    value = raw.get(key)
    if value is None:
        return default
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise InvalidArgument(f"Event field {key!r} must be an integer, got {value!r}") from exc


def parse_event(line: str) -> Event:
    """Parse one JSON line into an event.

    Raises InvalidArgument for anything that is not a well-formed event.
    """

    try:
        raw = json.loads(line)
    except json.JSONDecodeError as exc:
        raise InvalidArgument(f"Event is not valid JSON: {exc}") from exc
    if not isinstance(raw, dict):
        raise InvalidArgument("Event must be a JSON object")

    kind = raw.get("type")
    if kind == "chat":
        if raw.get("text") is None:
            raise InvalidArgument("Chat event requires text")
        return ChatEvent(
            channel=_int_field(raw, "channel", 0),
            sender_id=_int_field(raw, "sender_id", 0),
            sender=str(raw.get("sender", "")),
            text=str(raw["text"]),
        )
    if kind == "listings":
        encoded = raw.get("data", "")
        if not isinstance(encoded, str):
            raise InvalidArgument("Listing data must be a base64 string")
        try:
            data = base64.b64decode(encoded, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise InvalidArgument(f"Listing data is not valid base64: {exc}") from exc
        return ListingsEvent(batch=_int_field(raw, "batch", None), data=data)
    if kind == "summary":
        return SummaryEvent()
    raise InvalidArgument(f"Unsupported event type: {kind}")


def dispatch(engine: FilterEngine, event: Event) -> dict[str, Any]:
    """Run one event through the engine and describe the outcome."""

    if isinstance(event, ChatEvent):
        suppress = engine.filter_chat(event.channel, event.sender_id, event.sender, event.text)
        return {"type": "chat", "suppress": suppress}

    if isinstance(event, ListingsEvent):
        try:
            data = engine.filter_batch(event.data, event.batch)
        except MalformedBatch:
            # Pass the buffer through untouched; the transport still needs it.
            LOGGER.exception("Malformed listing batch %s, passing it through", event.batch)
            data = event.data
        return {
            "type": "listings",
            "batch": event.batch,
            "data": base64.b64encode(data).decode("ascii"),
        }

    engine.summary_received()
    return {"type": "summary"}


def history_to_dict(entry: HistoryEntry) -> dict[str, Any]:
    return {
        "id": entry.id,
        "timestamp": entry.timestamp.isoformat(),
        "classifier_version": entry.classifier_version,
        "channel": entry.channel.name.lower(),
        "sender_id": entry.sender_id,
        "sender": entry.sender,
        "text": entry.text,
        "suppressed": entry.suppressed,
        "reason": entry.reason,
    }


def process_lines(engine: FilterEngine, lines: Iterable[str]) -> Iterator[dict[str, Any]]:
    """Dispatch every non-blank line, yielding results or error records."""

    for number, line in enumerate(lines, start=1):
        if not line.strip():
            continue
        try:
            event = parse_event(line)
        except InvalidArgument as exc:
            LOGGER.warning("Skipping event on line %s: %s", number, exc)
            yield {"type": "error", "line": number, "error": str(exc)}
            continue
        yield dispatch(engine, event)
