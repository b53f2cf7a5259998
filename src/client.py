"""Web3 client factory for chatledger."""

from __future__ import annotations

import logging
import os

from dotenv import load_dotenv
from web3 import Web3

from core.errors import LedgerUnavailableError


def build_web3(timeout_s: float = 20) -> Web3:
    """Create a Web3 HTTP client from environment variables.

    We read RPC_URL via python-dotenv to keep provider keys out of the repo.
    """

    load_dotenv()

    rpc_url = os.getenv("RPC_URL")

    # Fail fast on missing configuration to avoid an ambiguous connection error.
    if not rpc_url:
        raise RuntimeError("Missing RPC_URL in environment")

    logging.getLogger(__name__).info("Initializing web3 client")

    w3 = Web3(Web3.HTTPProvider(rpc_url, request_kwargs={"timeout": timeout_s}))
    if not w3.is_connected():
        raise LedgerUnavailableError("Failed to connect to the RPC endpoint")
    return w3
