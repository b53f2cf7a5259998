from __future__ import annotations

from core.models import Message
from adapters.sqlite_storage import SQLiteTranscriptStore


def _message(block: int, log_index: int, created_at: int, payload=None, chat_id: int = 7) -> Message:
    return Message(
        id=f"0xtx{block}-{log_index}",
        chat_id=chat_id,
        sender="0xabc",
        content_pointer=f"ipfs://bafy{block}",
        payload=payload,
        created_at=created_at,
        block_number=block,
        log_index=log_index,
    )


def _store(tmp_path) -> SQLiteTranscriptStore:
    store = SQLiteTranscriptStore(str(tmp_path / "chatledger.db"))
    store.init_db()
    return store


def test_save_messages_is_idempotent_by_id(tmp_path) -> None:
    store = _store(tmp_path)
    first = [_message(10, 0, 100, {"text": "hi"}), _message(10, 1, 100)]

    added = store.save_messages(first)
    again = store.save_messages(first + [_message(12, 0, 200)])

    assert [message.id for message in added] == ["0xtx10-0", "0xtx10-1"]
    assert [message.id for message in again] == ["0xtx12-0"]
    assert len(store.load_transcript(7)) == 3


def test_load_transcript_round_trips_fields(tmp_path) -> None:
    store = _store(tmp_path)
    store.save_messages([_message(10, 0, 100, {"body": {"text": "hi"}})])

    [loaded] = store.load_transcript(7)

    assert loaded.payload == {"body": {"text": "hi"}}
    assert loaded.timestamp_known is True
    assert loaded.block_number == 10


def test_load_transcript_orders_by_time_then_insertion(tmp_path) -> None:
    store = _store(tmp_path)
    store.save_messages([_message(10, 0, 300), _message(11, 0, 100)])
    store.save_messages([_message(12, 0, 100), _message(13, 0, 50, chat_id=8)])

    ids = [message.id for message in store.load_transcript(7)]

    assert ids == ["0xtx11-0", "0xtx12-0", "0xtx10-0"]


def test_cursor_upsert(tmp_path) -> None:
    store = _store(tmp_path)

    assert store.get_cursor(7) is None
    store.set_cursor(7, 100)
    store.set_cursor(7, 250)

    assert store.get_cursor(7) == 250
    assert store.get_cursor(8) is None
