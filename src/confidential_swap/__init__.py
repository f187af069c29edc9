"""Confidential balance ledger with oracle-gated swaps into a public reserve asset."""

__version__ = "0.1.0"
