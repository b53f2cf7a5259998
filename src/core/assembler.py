"""Transcript assembly (core domain).

Events and their resolved contents are zipped into Message records and put
into a stable total order by ``created_at``. Equal timestamps keep scan order
because Python's sort is stable and the scan itself is ascending.
"""

from __future__ import annotations

import time
from typing import Any, Iterable, List, Optional, Sequence

from core.models import ChatMessageEvent, Message, ResolvedContent


def message_id(transaction_hash: str, log_index: int) -> str:
    """Return the idempotency key for one logged event."""

    return f"{transaction_hash}-{log_index}"


def assemble(
    events: Sequence[ChatMessageEvent],
    contents: Sequence[ResolvedContent],
    now: Optional[int] = None,
) -> List[Message]:
    """Build the ordered transcript from paired events and contents.

    A missing or zero ledger timestamp falls back to ``now`` and the message
    is flagged with ``timestamp_known=False``.
    """

    if len(events) != len(contents):
        raise ValueError(f"Got {len(events)} events but {len(contents)} resolved contents")

    fallback = int(time.time()) if now is None else int(now)
    messages: List[Message] = []
    for event, content in zip(events, contents):
        known = bool(event.logged_at)
        messages.append(
            Message(
                id=message_id(event.transaction_hash, event.log_index),
                chat_id=event.chat_id,
                sender=event.sender,
                content_pointer=event.content_pointer,
                payload=content.raw,
                created_at=event.logged_at if known else fallback,
                block_number=event.block_number,
                log_index=event.log_index,
                timestamp_known=known,
            )
        )

    messages.sort(key=lambda message: message.created_at)
    return messages


def extract_text(payload: Any) -> Optional[str]:
    """Return the display text of a payload, or None when there is none.

    Lookup order: the payload itself when it is a string, then ``body``
    (string), ``body.text``, ``body.message``, ``text``, ``message``.
    """

    if payload is None:
        return None
    if isinstance(payload, str):
        return payload
    if not isinstance(payload, dict):
        return None

    body = payload.get("body")
    if isinstance(body, str):
        return body
    if isinstance(body, dict):
        for key in ("text", "message"):
            if isinstance(body.get(key), str):
                return body[key]
    for key in ("text", "message"):
        if isinstance(payload.get(key), str):
            return payload[key]
    return None


def merge_transcripts(existing: Iterable[Message], incoming: Iterable[Message]) -> List[Message]:
    """Merge an incremental re-scan into a transcript using ``id`` as key."""

    merged = list(existing)
    seen = {message.id for message in merged}
    for message in incoming:
        if message.id in seen:
            continue
        seen.add(message.id)
        merged.append(message)
    merged.sort(key=lambda message: message.created_at)
    return merged
