"""Exception types shared by the core and adapters."""

from __future__ import annotations


class ChatLedgerError(Exception):
    """Base class for all chatledger errors."""


class LedgerUnavailableError(ChatLedgerError):
    """The ledger client cannot be reached at all; aborts a scan."""


class FilterBuildError(ChatLedgerError):
    """The log filter for a chat session cannot be constructed."""


class EventDecodeError(ChatLedgerError):
    """A single raw log entry does not match the event schema."""


class ContentFetchError(ChatLedgerError):
    """Fetching or parsing off-chain content failed."""
