"""
Codec — кодирование валют и hex-текста для ledger payload'ов.
"""

from .currency import (
    CURRENCY_HEX_WIDTH,
    NATIVE_CURRENCY,
    currency_matches,
    decode_currency,
    encode_currency,
    hex_to_text,
    text_to_hex,
)

__all__ = [
    "NATIVE_CURRENCY",
    "CURRENCY_HEX_WIDTH",
    "encode_currency",
    "decode_currency",
    "currency_matches",
    "text_to_hex",
    "hex_to_text",
]
