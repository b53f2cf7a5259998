"""Ports (interfaces) used by the core pipeline.

Ports define the minimal contracts for ledger, decoding, content and storage
adapters so that the core can be reused with different backends.
"""

from __future__ import annotations

from typing import Any, Iterable, List, Mapping, Optional, Protocol

from core.models import LogFilter, Message, RawLogEntry


class LedgerPort(Protocol):
    """Read-only ledger operations required by the range scanner."""

    def get_block_number(self) -> int:
        ...

    def get_logs(self, log_filter: LogFilter, from_block: int, to_block: int) -> List[RawLogEntry]:
        ...


class EventSchemaPort(Protocol):
    """Event interface descriptor used by the decoder.

    ``decode`` raises EventDecodeError for entries that do not match.
    """

    def decode(self, entry: RawLogEntry) -> Mapping[str, Any]:
        ...

    def topics_for_chat(self, chat_id: int) -> tuple:
        ...


class ContentFetcherPort(Protocol):
    """Fetch a JSON document from a resolved address."""

    def get_json(self, address: str) -> Any:
        ...


class TranscriptStorePort(Protocol):
    """Optional transcript cache used by the CLI for incremental re-scans."""

    def get_cursor(self, chat_id: int) -> Optional[int]:
        ...

    def set_cursor(self, chat_id: int, last_block: int) -> None:
        ...

    def save_messages(self, messages: Iterable[Message]) -> List[Message]:
        ...

    def load_transcript(self, chat_id: int) -> List[Message]:
        ...
