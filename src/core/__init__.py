"""
Core domain models, codecs, amount primitives and payload contracts.

This module contains the foundational building blocks that are independent
of external systems (ledger nodes, verifier backends, wallets).
"""
