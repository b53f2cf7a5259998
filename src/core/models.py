"""Core domain models.

These dataclasses are shared across the core and adapters to avoid tight
coupling to web3 or HTTP client types.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Tuple, Union


@dataclass(frozen=True)
class BlockRange:
    """Inclusive block window, matching eth_getLogs semantics."""

    from_block: int
    to_block: int


@dataclass(frozen=True)
class LogFilter:
    """Push-down filter: topics already encode the chat session."""

    address: str
    topics: Tuple[Optional[str], ...]


@dataclass(frozen=True)
class RawLogEntry:
    """Ledger-native log entry; hashes and data are 0x-prefixed hex."""

    address: str
    topics: Tuple[str, ...]
    data: str
    block_number: int
    transaction_hash: str
    log_index: int


@dataclass(frozen=True)
class ChatMessageEvent:
    """Decoded chat message event."""

    chat_id: int
    sender: str
    content_pointer: str
    logged_at: int
    transaction_hash: str
    log_index: int
    block_number: int


@dataclass(frozen=True)
class RawPointer:
    """A content pointer given as a plain string."""

    value: str


@dataclass(frozen=True)
class NestedPointer:
    """A content pointer given as an object carrying a known key."""

    fields: Mapping[str, Any]


ContentPointer = Union[RawPointer, NestedPointer]


@dataclass(frozen=True)
class ResolvedContent:
    """Result of resolving one pointer; raw is None when unavailable."""

    raw: Any
    resolved_address: Optional[str]

    @property
    def ok(self) -> bool:
        return self.raw is not None


@dataclass(frozen=True)
class Message:
    """Final transcript entry exposed to callers."""

    id: str
    chat_id: int
    sender: str
    content_pointer: str
    payload: Any
    created_at: int
    block_number: int
    log_index: int
    timestamp_known: bool = True


@dataclass(frozen=True)
class ScanResult:
    """Raw entries of one scan plus what was given up on."""

    entries: Tuple[RawLogEntry, ...]
    window: Optional[BlockRange]
    skipped_blocks: Tuple[int, ...] = ()
    requests: int = 0


@dataclass(frozen=True)
class Transcript:
    """Assembled messages together with the scan that produced them."""

    chat_id: int
    messages: Tuple[Message, ...]
    scan: ScanResult = field(default_factory=lambda: ScanResult(entries=(), window=None))


@dataclass(frozen=True)
class SyncResult:
    """Outcome of merging one incremental scan into a transcript store."""

    transcript: Transcript
    fresh: Tuple[Message, ...]
    cursor: Optional[int]
