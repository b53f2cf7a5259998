"""Shared transcript formatting helpers.

Keeping formatting here prevents drift between the one-shot and watch
commands and keeps output consistent regardless of mode.
"""

from __future__ import annotations

import json
from dataclasses import asdict
from datetime import datetime, timezone
from typing import Iterable, Optional

from core.assembler import extract_text
from core.models import Message

UNKNOWN_TIME = "??:??:?? ??-??-????"


def short_address(address: str) -> str:
    """Return a 0x1234…abcd style label for an address."""

    if not address or len(address) <= 12:
        return address or "unknown"
    return f"{address[:6]}…{address[-4:]}"


def display_text(message: Message) -> str:
    """Text to show for a message, falling back to the raw pointer."""

    text = extract_text(message.payload)
    if text:
        return text
    return f"Message CID: {message.content_pointer}"


def _format_timestamp(message: Message) -> str:
    if not message.timestamp_known:
        return UNKNOWN_TIME
    try:
        stamp = datetime.fromtimestamp(message.created_at, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return UNKNOWN_TIME
    return stamp.astimezone().strftime("%H:%M:%S %d-%m-%Y")


def format_message(message: Message, sender_labels: Optional[dict[str, str]] = None) -> str:
    """Render one message as a single plain-text block."""

    labels = sender_labels or {}
    sender = labels.get(message.sender) or short_address(message.sender)
    lines = [f"[{_format_timestamp(message)}] {sender}:", display_text(message)]
    if message.payload is None:
        lines.append("(content unavailable)")
    return "\n".join(lines)


def _format_text(messages: list[Message], sender_labels: Optional[dict[str, str]]) -> str:
    if not messages:
        return "No messages."
    divider = "──────────────"
    return f"\n{divider}\n".join(format_message(message, sender_labels) for message in messages)


def _format_json(messages: list[Message]) -> str:
    rows = []
    for message in messages:
        row = asdict(message)
        row["text"] = extract_text(message.payload)
        rows.append(row)
    return json.dumps(rows, indent=2, ensure_ascii=False)


def format_transcript(
    messages: Iterable[Message],
    mode: str = "text",
    sender_labels: Optional[dict[str, str]] = None,
) -> str:
    """Return the transcript formatted for the requested mode."""

    items = list(messages)
    if mode == "text":
        return _format_text(items, sender_labels)
    if mode == "json":
        return _format_json(items)
    raise ValueError(f"Unsupported transcript format: {mode}")
