from __future__ import annotations

import json
from dataclasses import replace

import pytest

from adapters.transcript_formatting import (
    UNKNOWN_TIME,
    display_text,
    format_message,
    format_transcript,
    short_address,
)
from core.models import Message


def _message(payload=None, timestamp_known: bool = True) -> Message:
    return Message(
        id="0xtx-0",
        chat_id=1,
        sender="0x52908400098527886e0f7030069857d2e4169ee7",
        content_pointer="ipfs://bafyabc",
        payload=payload,
        created_at=1_700_000_000,
        block_number=10,
        log_index=0,
        timestamp_known=timestamp_known,
    )


def test_display_text_falls_back_to_pointer() -> None:
    assert display_text(_message({"body": {"text": "hi"}})) == "hi"
    assert display_text(_message({"unexpected": True})) == "Message CID: ipfs://bafyabc"
    assert display_text(_message(None)) == "Message CID: ipfs://bafyabc"


def test_format_message_uses_sender_alias() -> None:
    message = _message({"text": "hello"})
    text = format_message(message, {message.sender: "Dr. Rao"})

    assert "Dr. Rao:" in text
    assert text.endswith("hello")


def test_format_message_marks_missing_content_and_time() -> None:
    text = format_message(_message(None, timestamp_known=False))

    assert text.startswith(f"[{UNKNOWN_TIME}] 0x5290…9ee7:")
    assert "(content unavailable)" in text


def test_format_transcript_json() -> None:
    rows = json.loads(format_transcript([_message({"message": "yo"})], mode="json"))

    assert rows[0]["id"] == "0xtx-0"
    assert rows[0]["text"] == "yo"
    assert rows[0]["payload"] == {"message": "yo"}


def test_format_transcript_empty_and_unknown_mode() -> None:
    assert format_transcript([]) == "No messages."
    with pytest.raises(ValueError):
        format_transcript([], mode="xml")


def test_short_address() -> None:
    assert short_address("0x1234") == "0x1234"
    assert short_address("") == "unknown"


def test_unrepresentable_time_prints_unknown_marker() -> None:
    message = replace(_message({"text": "late"}), created_at=2**70)

    text = format_message(message)

    assert UNKNOWN_TIME in text
    assert "late" in text
