"""Static configuration for chatledger.

All user-editable settings (contract, scan window, gateway, logging) live in
a single JSON file for quick edits without touching Python. Secrets such as
the RPC URL stay in the environment.
"""

import json
import os

from core.config import DEFAULT_CHUNK_SIZE, DEFAULT_GATEWAY, DEFAULT_LOOKBACK_BLOCKS

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))

# config.json at the project root unless CHATLEDGER_CONFIG points elsewhere.
CONFIG_PATH = os.getenv("CHATLEDGER_CONFIG", os.path.join(PROJECT_ROOT, "config.json"))


def _load_json_config() -> dict:
    """Load config.json with a flat, user-friendly schema."""

    if not os.path.exists(CONFIG_PATH):
        raise FileNotFoundError(f"Config file not found: {CONFIG_PATH}")

    with open(CONFIG_PATH, "r", encoding="utf-8") as handle:
        return json.load(handle)


def _resolve_path(path):
    if not path or os.path.isabs(path):
        return path
    return os.path.join(PROJECT_ROOT, path)


_CONFIG = _load_json_config()

# Expose the raw config for modules that need structured access.
CONFIG = _CONFIG

# Contract and event selection.
# - ABI_PATH: optional ABI file or Hardhat artifact; None uses the built-in event
# - EVENT_NAME: event carrying chatId, sender, messageCid, timestamp
_ledger = _CONFIG.get("ledger", {})
CONTRACT_ADDRESS = _ledger.get("contract_address", "")
ABI_PATH = _resolve_path(_ledger.get("abi_path"))
EVENT_NAME = _ledger.get("event_name", "ChatMessagePosted")
REQUEST_TIMEOUT_S = float(_ledger.get("request_timeout_s", 20))

# Block window for each scan.
_scan = _CONFIG.get("scan", {})
LOOKBACK_BLOCKS = int(_scan.get("lookback_blocks", DEFAULT_LOOKBACK_BLOCKS))
CHUNK_SIZE = int(_scan.get("chunk_size", DEFAULT_CHUNK_SIZE))

# Content resolution. MAX_WORKERS > 1 resolves pointers in a thread pool.
_ipfs = _CONFIG.get("ipfs", {})
GATEWAY = _ipfs.get("gateway", DEFAULT_GATEWAY)
FETCH_TIMEOUT_S = float(_ipfs.get("timeout_s", 10))
MAX_WORKERS = int(_ipfs.get("max_workers", 1))

# Re-poll interval for the watch command.
WATCH_INTERVAL_S = float(_CONFIG.get("watch", {}).get("interval_s", 15))

# Where to store the SQLite transcript cache.
DB_PATH = _resolve_path(_CONFIG.get("storage", {}).get("db_path", "chatledger.db"))

# Display names for sender addresses, keyed by lower-cased address.
SENDER_ALIASES = {str(key).lower(): value for key, value in _CONFIG.get("aliases", {}).items()}

# Logging configuration (optional).
LOGGING = _CONFIG.get("logging", {})
