"""Helpers for working with content pointers.

A pointer is either a plain string (``ipfs://<cid>``, a gateway URL or a bare
CID) or an object carrying one of the known keys. Every shape reduces to a
single fetchable address.
"""

from __future__ import annotations

import json
import re
from typing import Any, Mapping, Optional

from core.config import DEFAULT_GATEWAY
from core.models import ContentPointer, NestedPointer, RawPointer

MAX_POINTER_DEPTH = 8

POINTER_KEYS = ("gatewayUrl", "url", "ipfsUrl", "src", "href", "cid", "hash")
IPFS_SCHEME = "ipfs://"

_URL_SCHEME = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]*://")


def _exceeds_depth(text: str, limit: int) -> bool:
    """Return True when JSON brackets in ``text`` nest deeper than ``limit``."""

    depth = 0
    in_string = False
    escaped = False
    for char in text:
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char in "{[":
            depth += 1
            if depth > limit:
                return True
        elif char in "}]":
            depth -= 1
    return False


def parse_pointer(value: Any) -> Optional[ContentPointer]:
    """Classify a raw value into a pointer shape.

    Returns None for empty values and for JSON nested past MAX_POINTER_DEPTH.
    """

    if value is None:
        return None
    if isinstance(value, (RawPointer, NestedPointer)):
        return value
    if isinstance(value, Mapping):
        return NestedPointer(dict(value))
    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None
    if text.startswith("{"):
        if _exceeds_depth(text, MAX_POINTER_DEPTH):
            return None
        try:
            decoded = json.loads(text)
        except (ValueError, RecursionError):
            decoded = None
        if isinstance(decoded, dict):
            return NestedPointer(decoded)
    return RawPointer(text)


def gateway_address(cid: str, gateway: str = DEFAULT_GATEWAY) -> str:
    """Join a CID (optionally with a path) onto a gateway base URL."""

    base = gateway if gateway.endswith("/") else f"{gateway}/"
    return f"{base}{cid.lstrip('/')}"


def _strip_ipfs_scheme(value: str) -> str:
    rest = value[len(IPFS_SCHEME):]
    # ipfs://ipfs/<cid> shows up from some uploaders
    if rest.startswith("ipfs/"):
        rest = rest[len("ipfs/"):]
    return rest


def normalize_pointer(value: Any, gateway: str = DEFAULT_GATEWAY, depth: int = 0) -> Optional[str]:
    """Reduce any pointer shape to a fetchable address.

    Objects recurse into the first present, non-empty key from POINTER_KEYS.
    ``ipfs://`` strings are mapped onto the gateway, strings that already
    carry a URL scheme are returned unchanged, and anything else is treated as
    a bare CID. Objects nested deeper than MAX_POINTER_DEPTH give None.
    """

    if depth > MAX_POINTER_DEPTH:
        return None
    pointer = parse_pointer(value)
    if pointer is None:
        return None

    if isinstance(pointer, NestedPointer):
        for key in POINTER_KEYS:
            candidate = pointer.fields.get(key)
            if candidate is None or candidate == "" or candidate == {}:
                continue
            return normalize_pointer(candidate, gateway, depth + 1)
        return None

    text = pointer.value
    if text.lower().startswith(IPFS_SCHEME):
        cid = _strip_ipfs_scheme(text)
        return gateway_address(cid, gateway) if cid else None
    if _URL_SCHEME.match(text):
        return text
    return gateway_address(text, gateway)
