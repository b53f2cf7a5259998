from __future__ import annotations

import pytest

from core.assembler import assemble, extract_text, merge_transcripts, message_id
from core.models import ChatMessageEvent, ResolvedContent


def _event(block: int, log_index: int, logged_at: int, tx: "str | None" = None) -> ChatMessageEvent:
    return ChatMessageEvent(
        chat_id=1,
        sender="0xabc",
        content_pointer=f"bafy{block}{log_index}",
        logged_at=logged_at,
        transaction_hash=tx or f"0xtx{block}",
        log_index=log_index,
        block_number=block,
    )


def _content(raw=None) -> ResolvedContent:
    return ResolvedContent(raw=raw, resolved_address="https://gw.example/ipfs/x")


def test_output_is_sorted_by_created_at() -> None:
    events = [_event(1, 0, 300), _event(2, 0, 100), _event(3, 0, 200)]

    messages = assemble(events, [_content({"text": str(i)}) for i in range(3)])

    assert [message.created_at for message in messages] == [100, 200, 300]


def test_equal_timestamps_keep_scan_order() -> None:
    events = [_event(10, 0, 1_000), _event(10, 1, 1_000), _event(9, 5, 1_000), _event(12, 0, 500)]

    messages = assemble(events, [_content() for _ in events])

    assert [(message.block_number, message.log_index) for message in messages] == [
        (12, 0),
        (10, 0),
        (10, 1),
        (9, 5),
    ]


def test_ids_are_unique_within_one_transaction() -> None:
    events = [_event(10, 0, 1, tx="0xsame"), _event(10, 1, 1, tx="0xsame")]

    messages = assemble(events, [_content(), _content()])

    assert [message.id for message in messages] == ["0xsame-0", "0xsame-1"]
    assert message_id("0xsame", 0) != message_id("0xsame", 1)


def test_missing_timestamp_falls_back_to_now() -> None:
    events = [_event(1, 0, 0), _event(2, 0, 50)]

    messages = assemble(events, [_content(), _content()], now=999)

    assert [message.created_at for message in messages] == [50, 999]
    assert [message.timestamp_known for message in messages] == [True, False]


def test_failed_resolution_keeps_message() -> None:
    messages = assemble([_event(1, 0, 10)], [_content(None)])

    assert len(messages) == 1
    assert messages[0].payload is None


def test_mismatched_lengths_raise() -> None:
    with pytest.raises(ValueError):
        assemble([_event(1, 0, 10)], [])


@pytest.mark.parametrize(
    "payload, expected",
    [
        ("plain", "plain"),
        ({"body": "from body"}, "from body"),
        ({"body": {"text": "body text"}, "text": "top"}, "body text"),
        ({"body": {"message": "body message"}}, "body message"),
        ({"body": {"other": 1}, "text": "top text"}, "top text"),
        ({"message": "top message"}, "top message"),
        ({"type": "medifuse.chat/message"}, None),
        (None, None),
        ([1, 2], None),
    ],
)
def test_extract_text_priority(payload, expected) -> None:
    assert extract_text(payload) == expected


def test_merge_transcripts_uses_id_as_key() -> None:
    first = assemble([_event(1, 0, 10), _event(2, 0, 20)], [_content(), _content()])
    rescan = assemble([_event(2, 0, 20), _event(3, 0, 15)], [_content(), _content()])

    merged = merge_transcripts(first, rescan)

    assert [message.id for message in merged] == ["0xtx1-0", "0xtx3-0", "0xtx2-0"]
