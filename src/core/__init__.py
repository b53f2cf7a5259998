"""Core domain package for chatledger.

Core contains range scanning, event decoding, pointer resolution and
transcript assembly without any web3, HTTP or storage-specific code, keeping
the reconstruction logic portable.
"""
