"""
Test suite for PermiX DEX core

Contains:
- tests/unit/          : Unit tests for codecs, builders, evaluator,
                         order book, verification session and gateways
"""
