"""web3.py ledger adapter.

Implements the core LedgerPort with ``eth_blockNumber`` and ``eth_getLogs``
and converts web3's AttributeDict/HexBytes results into core RawLogEntry
values.
"""

from __future__ import annotations

from typing import Any, List, Mapping

from web3 import Web3

from core.errors import FilterBuildError
from core.models import LogFilter, RawLogEntry
from core.ports import EventSchemaPort
from core.processor import build_log_filter


def _hex(value: Any) -> str:
    if value is None:
        return "0x"
    if isinstance(value, str):
        text = value.lower()
        return text if text.startswith("0x") else f"0x{text}"
    return Web3.to_hex(value)


def _int(value: Any) -> int:
    if isinstance(value, str):
        return int(value, 16) if value.lower().startswith("0x") else int(value)
    return int(value)


def to_raw_entry(log: Mapping[str, Any]) -> RawLogEntry:
    """Convert one eth_getLogs result into a RawLogEntry."""

    return RawLogEntry(
        address=str(log["address"]).lower(),
        topics=tuple(_hex(topic) for topic in log.get("topics", [])),
        data=_hex(log.get("data")),
        block_number=_int(log["blockNumber"]),
        transaction_hash=_hex(log["transactionHash"]),
        log_index=_int(log["logIndex"]),
    )


def build_chat_filter(contract_address: str, schema: EventSchemaPort, chat_id: int) -> LogFilter:
    """Validate the contract address and build the chat session filter."""

    if not contract_address or not Web3.is_address(contract_address):
        raise FilterBuildError(f"Invalid contract address: {contract_address!r}")
    checksum = Web3.to_checksum_address(contract_address)
    return build_log_filter(checksum, schema, chat_id)


class Web3Ledger:
    """Thin web3 wrapper that satisfies the LedgerPort contract."""

    def __init__(self, w3: Web3) -> None:
        self._w3 = w3

    def get_block_number(self) -> int:
        return int(self._w3.eth.block_number)

    def get_logs(self, log_filter: LogFilter, from_block: int, to_block: int) -> List[RawLogEntry]:
        params = {
            "address": log_filter.address,
            "topics": list(log_filter.topics),
            "fromBlock": from_block,
            "toBlock": to_block,
        }
        logs = self._w3.eth.get_logs(params)
        return [to_raw_entry(log) for log in logs]
