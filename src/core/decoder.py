"""Raw log to ChatMessageEvent decoding (core domain)."""

from __future__ import annotations

import logging
from typing import Any, Iterable, List, Mapping, Optional

from core.errors import EventDecodeError
from core.models import ChatMessageEvent, RawLogEntry
from core.ports import EventSchemaPort

LOGGER = logging.getLogger(__name__)

CHAT_ID_FIELD = "chatId"
SENDER_FIELD = "sender"
POINTER_FIELD = "messageCid"
TIMESTAMP_FIELD = "timestamp"

# 9999-12-31T23:59:59Z, the last second datetime and SQLite INTEGER both hold
MAX_TIMESTAMP = 253_402_300_799


def _require(args: Mapping[str, Any], name: str) -> Any:
    if name not in args or args[name] is None:
        raise EventDecodeError(f"missing field {name}")
    return args[name]


def _as_int(value: Any, name: str) -> int:
    # bool is an int subclass but never a valid ledger integer here
    if isinstance(value, bool):
        raise EventDecodeError(f"field {name} is not an integer")
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise EventDecodeError(f"field {name} is not an integer") from exc


def _as_timestamp(value: Any) -> int:
    seconds = _as_int(value, TIMESTAMP_FIELD)
    if seconds < 0 or seconds > MAX_TIMESTAMP:
        # out of range counts as missing, so assembly falls back to now
        return 0
    return seconds


def event_from_args(args: Mapping[str, Any], entry: RawLogEntry) -> ChatMessageEvent:
    """Build a ChatMessageEvent from decoded arguments of one log entry."""

    sender = _require(args, SENDER_FIELD)
    pointer = _require(args, POINTER_FIELD)
    if not isinstance(sender, str) or not isinstance(pointer, str):
        raise EventDecodeError("sender and messageCid must be strings")

    return ChatMessageEvent(
        chat_id=_as_int(_require(args, CHAT_ID_FIELD), CHAT_ID_FIELD),
        sender=sender.lower(),
        content_pointer=pointer,
        logged_at=_as_timestamp(_require(args, TIMESTAMP_FIELD)),
        transaction_hash=entry.transaction_hash,
        log_index=entry.log_index,
        block_number=entry.block_number,
    )


def decode(
    raw_entries: Iterable[RawLogEntry],
    schema: EventSchemaPort,
    expected_chat_id: Optional[int] = None,
) -> List[ChatMessageEvent]:
    """Decode entries in order, dropping any that fail.

    One malformed entry never aborts the batch. When ``expected_chat_id`` is
    given, events for another session are dropped as well.
    """

    events: List[ChatMessageEvent] = []
    dropped = 0
    for entry in raw_entries:
        try:
            event = event_from_args(schema.decode(entry), entry)
        except (EventDecodeError, ValueError, TypeError, KeyError) as exc:
            dropped += 1
            LOGGER.debug("Dropping log %s-%s: %s", entry.transaction_hash, entry.log_index, exc)
            continue
        if expected_chat_id is not None and event.chat_id != expected_chat_id:
            dropped += 1
            LOGGER.warning(
                "Dropping log %s-%s for chat %s while scanning chat %s",
                entry.transaction_hash,
                entry.log_index,
                event.chat_id,
                expected_chat_id,
            )
            continue
        events.append(event)

    if dropped:
        LOGGER.info("Decoded %s events, dropped %s entries", len(events), dropped)
    return events
