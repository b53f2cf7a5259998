"""Core configuration dataclasses.

We keep config parsing outside the core, but these dataclasses define the
shape the core expects so adapters and app layers can build safely.
"""

from __future__ import annotations

from dataclasses import dataclass

DEFAULT_LOOKBACK_BLOCKS = 10_000
DEFAULT_CHUNK_SIZE = 1_000
DEFAULT_GATEWAY = "https://ipfs.io/ipfs/"


@dataclass(frozen=True)
class ScanConfig:
    """Block window settings for the range scanner."""

    lookback_blocks: int = DEFAULT_LOOKBACK_BLOCKS
    chunk_size: int = DEFAULT_CHUNK_SIZE


@dataclass(frozen=True)
class ResolverConfig:
    """Content resolution settings consumed by the resolver and processor."""

    gateway: str = DEFAULT_GATEWAY
    max_workers: int = 1
