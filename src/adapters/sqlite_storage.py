"""SQLite storage adapter.

Implements the core TranscriptStorePort using a simple SQLite database.
"""

from __future__ import annotations

import json
import sqlite3
from datetime import datetime, timezone
from typing import Iterable, List, Optional

from core.models import Message


class SQLiteTranscriptStore:
    """Thin SQLite wrapper that satisfies the TranscriptStorePort contract."""

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def init_db(self) -> None:
        """Create tables if they do not exist.

        Tables:
        - scan_state: per-chat highest block already scanned
        - messages: merged transcript, one row per message id
        """

        with self._connect() as conn:
            # scan_state keeps a single cursor per chat so a re-poll only
            # scans blocks it has not seen yet.
            # Fields:
            # - chat_id: chat session id (PRIMARY KEY)
            # - last_block: highest block covered by a completed scan
            # - updated_at: time of the last cursor update
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS scan_state (
                    chat_id INTEGER PRIMARY KEY,
                    last_block INTEGER NOT NULL,
                    updated_at TIMESTAMP NOT NULL
                )
                """
            )
            # messages is append-only; id (tx hash + log index) is the
            # idempotency key, seq preserves scan order for equal timestamps.
            # Fields:
            # - seq: insertion order
            # - id: transactionHash-logIndex (UNIQUE)
            # - chat_id, sender, content_pointer: decoded event fields
            # - payload: resolved JSON, NULL when resolution failed
            # - created_at: ledger timestamp (unix seconds)
            # - timestamp_known: 0 when created_at was substituted
            # - block_number, log_index: ledger position
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS messages (
                    seq INTEGER PRIMARY KEY AUTOINCREMENT,
                    id TEXT NOT NULL UNIQUE,
                    chat_id INTEGER NOT NULL,
                    sender TEXT,
                    content_pointer TEXT,
                    payload TEXT,
                    created_at INTEGER NOT NULL,
                    timestamp_known INTEGER NOT NULL,
                    block_number INTEGER,
                    log_index INTEGER
                )
                """
            )
            conn.execute("CREATE INDEX IF NOT EXISTS idx_messages_chat ON messages (chat_id, created_at)")

    def get_cursor(self, chat_id: int) -> Optional[int]:
        """Return the last scanned block for a chat, if any."""

        with self._connect() as conn:
            row = conn.execute(
                "SELECT last_block FROM scan_state WHERE chat_id = ?",
                (chat_id,),
            ).fetchone()
        return int(row["last_block"]) if row else None

    def set_cursor(self, chat_id: int, last_block: int) -> None:
        """Upsert the last scanned block for a chat."""

        now = datetime.now(timezone.utc)
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO scan_state (chat_id, last_block, updated_at)
                VALUES (?, ?, ?)
                ON CONFLICT(chat_id) DO UPDATE SET
                    last_block = excluded.last_block,
                    updated_at = excluded.updated_at
                """,
                (chat_id, last_block, now.isoformat()),
            )

    def save_messages(self, messages: Iterable[Message]) -> List[Message]:
        """Insert messages not stored yet and return the newly added ones."""

        added: List[Message] = []
        with self._connect() as conn:
            for message in messages:
                cur = conn.execute(
                    """
                    INSERT OR IGNORE INTO messages (
                        id,
                        chat_id,
                        sender,
                        content_pointer,
                        payload,
                        created_at,
                        timestamp_known,
                        block_number,
                        log_index
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        message.id,
                        message.chat_id,
                        message.sender,
                        message.content_pointer,
                        None if message.payload is None else json.dumps(message.payload),
                        message.created_at,
                        int(message.timestamp_known),
                        message.block_number,
                        message.log_index,
                    ),
                )
                if cur.rowcount:
                    added.append(message)
        return added

    def load_transcript(self, chat_id: int) -> List[Message]:
        """Return the stored transcript ordered by created_at, then scan order."""

        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM messages WHERE chat_id = ? ORDER BY created_at, seq",
                (chat_id,),
            ).fetchall()
        return [
            Message(
                id=row["id"],
                chat_id=int(row["chat_id"]),
                sender=row["sender"],
                content_pointer=row["content_pointer"],
                payload=None if row["payload"] is None else json.loads(row["payload"]),
                created_at=int(row["created_at"]),
                block_number=int(row["block_number"]),
                log_index=int(row["log_index"]),
                timestamp_known=bool(row["timestamp_known"]),
            )
            for row in rows
        ]
