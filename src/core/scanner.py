"""Adaptive block-range scanning (core domain).

The scanner walks an inclusive block window in sub-windows, one request at a
time. A failing sub-window is halved and retried from the same start block;
once the sub-window is a single block that still fails, the block is skipped
so the scan always makes forward progress.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional

from core.config import ScanConfig
from core.errors import LedgerUnavailableError
from core.models import BlockRange, LogFilter, RawLogEntry, ScanResult
from core.ports import LedgerPort

LOGGER = logging.getLogger(__name__)

ADVANCE = "advance"
HALVE = "halve"
SKIP = "skip"


@dataclass
class ScanCursor:
    """State machine over (start, size) for one scan.

    Transitions:
    - on_success: advance past the sub-window, grow size back toward base
    - on_failure: halve size (floor 1), or skip one block when size is 1
    """

    start: int
    end: int
    base_size: int
    size: int = 0

    def __post_init__(self) -> None:
        if self.base_size < 1:
            raise ValueError("chunk size must be at least 1")
        if not self.size:
            self.size = self.base_size

    @property
    def done(self) -> bool:
        return self.start > self.end

    def current(self) -> BlockRange:
        return BlockRange(self.start, min(self.start + self.size - 1, self.end))

    def on_success(self) -> str:
        self.start = self.current().to_block + 1
        if self.size < self.base_size:
            self.size = min(self.base_size, self.size * 2)
        return ADVANCE

    def on_failure(self) -> str:
        if self.size > 1:
            self.size = max(1, self.size // 2)
            return HALVE
        self.start += 1
        return SKIP


def scan_window(head: int, lookback: int, from_block: Optional[int] = None) -> Optional[BlockRange]:
    """Return the block window to scan, or None when there is nothing to do."""

    lower = max(0, head - lookback) if from_block is None else max(0, from_block)
    if lower > head:
        return None
    return BlockRange(lower, head)


class RangeScanner:
    """Sequential, failure-tolerant log scanner for one chat filter."""

    def __init__(self, config: Optional[ScanConfig] = None) -> None:
        self._config = config or ScanConfig()

    def scan(self, chat_id: int, ledger: LedgerPort, log_filter: LogFilter) -> List[RawLogEntry]:
        """Return all raw entries in the lookback window, ascending by block."""

        return list(self.scan_with_report(chat_id, ledger, log_filter).entries)

    def scan_with_report(
        self,
        chat_id: int,
        ledger: LedgerPort,
        log_filter: LogFilter,
        from_block: Optional[int] = None,
    ) -> ScanResult:
        """Scan and also report the window, skipped blocks and request count."""

        try:
            head = int(ledger.get_block_number())
        except Exception as exc:
            raise LedgerUnavailableError(f"Cannot read chain head: {exc}") from exc

        window = scan_window(head, self._config.lookback_blocks, from_block)
        if window is None:
            LOGGER.debug("Chat %s: nothing to scan (from_block=%s, head=%s)", chat_id, from_block, head)
            return ScanResult(entries=(), window=None)

        cursor = ScanCursor(start=window.from_block, end=window.to_block, base_size=self._config.chunk_size)
        entries: List[RawLogEntry] = []
        skipped: List[int] = []
        requests = 0

        while not cursor.done:
            sub = cursor.current()
            requests += 1
            try:
                batch = ledger.get_logs(log_filter, sub.from_block, sub.to_block)
            except Exception as exc:
                block = cursor.start
                transition = cursor.on_failure()
                if transition == SKIP:
                    skipped.append(block)
                    LOGGER.warning("Chat %s: skipping block %s after repeated failures: %s", chat_id, block, exc)
                else:
                    LOGGER.debug(
                        "Chat %s: logs [%s, %s] failed (%s), retrying with %s blocks",
                        chat_id,
                        sub.from_block,
                        sub.to_block,
                        exc,
                        cursor.size,
                    )
                continue
            entries.extend(batch)
            cursor.on_success()

        LOGGER.info(
            "Chat %s: scanned blocks %s-%s, %s logs, %s requests, %s skipped",
            chat_id,
            window.from_block,
            window.to_block,
            len(entries),
            requests,
            len(skipped),
        )
        return ScanResult(
            entries=tuple(entries),
            window=window,
            skipped_blocks=tuple(skipped),
            requests=requests,
        )
