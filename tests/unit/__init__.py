"""
tests.unit
==========

Unit tests for the `ledgercore` building blocks: KV stores and cache
branches, the canonical CBOR codec, decimal helpers, address parsing, errors,
config and logging.
"""
