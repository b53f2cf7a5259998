"""Off-chain content resolution (core domain)."""

from __future__ import annotations

import logging
from typing import Any, Optional

from core.config import ResolverConfig
from core.models import ResolvedContent
from core.pointers import normalize_pointer
from core.ports import ContentFetcherPort

LOGGER = logging.getLogger(__name__)


class ContentResolver:
    """Resolve one pointer at a time; failures degrade to ``raw=None``.

    ``resolve`` has no shared state so callers may fan it out across threads.
    No retries are performed here.
    """

    def __init__(self, fetcher: ContentFetcherPort, config: Optional[ResolverConfig] = None) -> None:
        self._fetcher = fetcher
        self._config = config or ResolverConfig()

    def resolve(self, pointer: Any) -> ResolvedContent:
        return resolve(pointer, self._fetcher, self._config.gateway)


def resolve(pointer: Any, fetcher: ContentFetcherPort, gateway: Optional[str] = None) -> ResolvedContent:
    """Normalize ``pointer`` and fetch the JSON it references."""

    address = normalize_pointer(pointer, gateway or ResolverConfig().gateway)
    if address is None:
        return ResolvedContent(raw=None, resolved_address=None)

    try:
        raw = fetcher.get_json(address)
    except Exception as exc:
        LOGGER.warning("Content fetch failed for %s: %s", address, exc)
        return ResolvedContent(raw=None, resolved_address=address)
    return ResolvedContent(raw=raw, resolved_address=address)
