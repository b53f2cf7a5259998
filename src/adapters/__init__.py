"""Adapters that connect the core pipeline to web3, IPFS gateways and SQLite."""
