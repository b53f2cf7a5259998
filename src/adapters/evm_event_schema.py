"""EVM event schema adapter.

Implements the core EventSchemaPort for a Solidity event described by an ABI
fragment. Indexed arguments are read from topics, the rest from log data.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from eth_abi import decode as abi_decode
from eth_abi import encode as abi_encode
from eth_abi.exceptions import DecodingError, EncodingError
from eth_utils import decode_hex, keccak

from core.decoder import CHAT_ID_FIELD
from core.errors import EventDecodeError
from core.models import RawLogEntry

DEFAULT_EVENT_NAME = "ChatMessagePosted"

DEFAULT_EVENT_ABI: Dict[str, Any] = {
    "anonymous": False,
    "name": DEFAULT_EVENT_NAME,
    "type": "event",
    "inputs": [
        {"indexed": True, "name": "chatId", "type": "uint256"},
        {"indexed": True, "name": "sender", "type": "address"},
        {"indexed": False, "name": "messageCid", "type": "string"},
        {"indexed": False, "name": "timestamp", "type": "uint256"},
    ],
}


@dataclass(frozen=True)
class EventInput:
    name: str
    type: str
    indexed: bool


def _is_dynamic(abi_type: str) -> bool:
    # Indexed dynamic values are stored as their keccak hash in the topic.
    return abi_type in ("string", "bytes") or abi_type.endswith("]") or abi_type.startswith("(")


def load_abi(path: str) -> List[dict]:
    """Load an ABI list from a plain ABI file or a Hardhat artifact."""

    with open(path, "r", encoding="utf-8") as handle:
        data = json.load(handle)
    if isinstance(data, dict):
        data = data.get("abi", [])
    if not isinstance(data, list):
        raise ValueError(f"No ABI list found in {path}")
    return data


class EvmEventSchema:
    """Decode one named event; satisfies EventSchemaPort."""

    def __init__(self, event_abi: Mapping[str, Any]) -> None:
        if event_abi.get("type", "event") != "event":
            raise ValueError("ABI entry is not an event")
        if event_abi.get("anonymous"):
            raise ValueError("Anonymous events cannot be filtered by topic")
        self.name = str(event_abi["name"])
        self.inputs: Tuple[EventInput, ...] = tuple(
            EventInput(name=item["name"], type=item["type"], indexed=bool(item.get("indexed")))
            for item in event_abi.get("inputs", [])
        )
        self.signature = f"{self.name}({','.join(item.type for item in self.inputs)})"
        self.topic0 = "0x" + keccak(text=self.signature).hex()

    @classmethod
    def from_abi(cls, abi: Sequence[Mapping[str, Any]], event_name: str = DEFAULT_EVENT_NAME) -> "EvmEventSchema":
        for item in abi:
            if item.get("type") == "event" and item.get("name") == event_name:
                return cls(item)
        raise ValueError(f"Event {event_name} not found in ABI")

    @classmethod
    def default(cls) -> "EvmEventSchema":
        return cls(DEFAULT_EVENT_ABI)

    @property
    def indexed_inputs(self) -> List[EventInput]:
        return [item for item in self.inputs if item.indexed]

    @property
    def data_inputs(self) -> List[EventInput]:
        return [item for item in self.inputs if not item.indexed]

    def topics_for_chat(self, chat_id: int) -> Tuple[Optional[str], ...]:
        """Return eth_getLogs topics selecting one chat id."""

        if isinstance(chat_id, bool) or not isinstance(chat_id, int):
            raise TypeError(f"chat id must be an integer, got {type(chat_id).__name__}")

        topics: List[Optional[str]] = [self.topic0]
        for item in self.indexed_inputs:
            if item.name != CHAT_ID_FIELD:
                topics.append(None)
                continue
            try:
                encoded = abi_encode([item.type], [chat_id])
            except EncodingError as exc:
                raise ValueError(str(exc)) from exc
            topics.append("0x" + encoded.hex())
            return tuple(topics)
        raise ValueError(f"Event {self.name} has no indexed {CHAT_ID_FIELD} argument")

    def decode(self, entry: RawLogEntry) -> Dict[str, Any]:
        """Return the decoded arguments of one log entry."""

        topics = list(entry.topics)
        if not topics or topics[0].lower() != self.topic0:
            raise EventDecodeError(f"log is not a {self.name} event")

        indexed = self.indexed_inputs
        if len(topics) - 1 != len(indexed):
            raise EventDecodeError(f"expected {len(indexed)} indexed topics, got {len(topics) - 1}")

        args: Dict[str, Any] = {}
        try:
            for item, topic in zip(indexed, topics[1:]):
                if _is_dynamic(item.type):
                    args[item.name] = topic.lower()
                else:
                    args[item.name] = abi_decode([item.type], decode_hex(topic))[0]

            values = abi_decode([item.type for item in self.data_inputs], decode_hex(entry.data or "0x"))
        except (DecodingError, ValueError, TypeError) as exc:
            raise EventDecodeError(f"cannot decode {self.name}: {exc}") from exc

        for item, value in zip(self.data_inputs, values):
            args[item.name] = value
        return args
