"""Core transcript reconstruction pipeline.

This module is integration-agnostic. It only relies on ports for the ledger,
event schema and content fetching, enabling other chains or storage networks
without changes here.

The pipeline enforces a strict order:
1) Build the push-down log filter for the chat session
2) Scan the block window sequentially
3) Decode raw entries, dropping malformed ones
4) Resolve each event's content pointer
5) Assemble and order the transcript
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Optional

from core import decoder
from core.assembler import assemble
from core.config import ResolverConfig, ScanConfig
from core.errors import FilterBuildError
from core.models import LogFilter, Message, ResolvedContent, SyncResult, Transcript
from core.ports import ContentFetcherPort, EventSchemaPort, LedgerPort, TranscriptStorePort
from core.resolver import ContentResolver
from core.scanner import RangeScanner

LOGGER = logging.getLogger(__name__)

FilterBuilder = Callable[[str, EventSchemaPort, int], LogFilter]


def build_log_filter(contract_address: str, schema: EventSchemaPort, chat_id: int) -> LogFilter:
    """Return the filter whose topics select one chat session."""

    if not contract_address:
        raise FilterBuildError("Contract address is not configured")
    try:
        topics = tuple(schema.topics_for_chat(chat_id))
    except (TypeError, ValueError, OverflowError) as exc:
        raise FilterBuildError(f"Cannot encode chat id {chat_id!r}: {exc}") from exc
    return LogFilter(address=contract_address, topics=topics)


class TranscriptProcessor:
    """Orchestrates scanning, decoding, resolution and assembly."""

    def __init__(
        self,
        ledger: LedgerPort,
        schema: EventSchemaPort,
        fetcher: ContentFetcherPort,
        contract_address: str,
        scan_config: Optional[ScanConfig] = None,
        resolver_config: Optional[ResolverConfig] = None,
        filter_builder: Optional[FilterBuilder] = None,
    ) -> None:
        self._ledger = ledger
        self._schema = schema
        self._contract_address = contract_address
        self._filter_builder = filter_builder or build_log_filter
        self._scanner = RangeScanner(scan_config)
        self._resolver_config = resolver_config or ResolverConfig()
        self._resolver = ContentResolver(fetcher, self._resolver_config)

    def log_filter(self, chat_id: int) -> LogFilter:
        return self._filter_builder(self._contract_address, self._schema, chat_id)

    def reconstruct(self, chat_id: int, from_block: Optional[int] = None) -> List[Message]:
        """Return the ordered transcript for one chat session."""

        return list(self.reconstruct_with_report(chat_id, from_block).messages)

    def reconstruct_with_report(self, chat_id: int, from_block: Optional[int] = None) -> Transcript:
        log_filter = self.log_filter(chat_id)
        scan = self._scanner.scan_with_report(chat_id, self._ledger, log_filter, from_block=from_block)
        events = decoder.decode(scan.entries, self._schema, expected_chat_id=chat_id)

        # Resolution starts only after decoding completes.
        contents = self._resolve_all([event.content_pointer for event in events])
        messages = assemble(events, contents)

        missing = sum(1 for content in contents if not content.ok)
        if missing:
            LOGGER.info("Chat %s: %s of %s messages without resolved content", chat_id, missing, len(messages))
        return Transcript(chat_id=chat_id, messages=tuple(messages), scan=scan)

    def _resolve_all(self, pointers: List[str]) -> List[ResolvedContent]:
        workers = self._resolver_config.max_workers
        if workers <= 1 or len(pointers) <= 1:
            return [self._resolver.resolve(pointer) for pointer in pointers]
        # Executor.map keeps input order, so contents stay paired with events.
        with ThreadPoolExecutor(max_workers=workers) as pool:
            return list(pool.map(self._resolver.resolve, pointers))


def sync_transcript(
    processor: TranscriptProcessor,
    store: TranscriptStorePort,
    chat_id: int,
    from_block: Optional[int] = None,
    resume: bool = True,
) -> SyncResult:
    """Scan one chat and merge the result into ``store``.

    With ``resume`` and no explicit ``from_block`` the scan starts right after
    the stored cursor. The cursor only moves forward, and only when the
    scanned window joins the blocks it already covers. A window that starts
    past a gap leaves the cursor in place so the gap is scanned next time.
    """

    cursor = store.get_cursor(chat_id)
    start = from_block
    if start is None and resume and cursor is not None:
        start = cursor + 1

    transcript = processor.reconstruct_with_report(chat_id, from_block=start)
    fresh = store.save_messages(transcript.messages)

    window = transcript.scan.window
    if window is not None:
        if cursor is None:
            cursor = window.to_block
            store.set_cursor(chat_id, cursor)
        elif window.from_block <= cursor + 1 and window.to_block > cursor:
            cursor = window.to_block
            store.set_cursor(chat_id, cursor)
        elif window.from_block > cursor + 1:
            LOGGER.warning(
                "Chat %s: blocks %s-%s not scanned yet, keeping cursor at %s",
                chat_id,
                cursor + 1,
                window.from_block - 1,
                cursor,
            )
    return SyncResult(transcript=transcript, fresh=tuple(fresh), cursor=cursor)
