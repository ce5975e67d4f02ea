"""
Currency Codec — кодирование идентификаторов валют и hex-текста для ledger

Правила кодирования валюты:
- Код длиной <= 3 символов передаётся без изменений ("USD", "CCC"), если
  состоит из STANDARD_CODE_CHARS
- NATIVE_CURRENCY ("XRP") — выделенное значение, никогда не кодируется в hex
- Код длиннее 3 символов: байты → hex, дополнение нулевыми байтами справа
  до CURRENCY_HEX_WIDTH символов, верхний регистр

Кодирование необратимо на уровне padding: decode() срезает хвостовые
нулевые байты перед интерпретацией байтов как текста.

Hex-текст (credential type, URI) кодируется UTF-8 без padding.
"""

import binascii
import string
from typing import Final

from src.core.errors import EncodingError


# =============================================================================
# КОНСТАНТЫ
# =============================================================================

# Нативная валюта ledger (скалярная сумма в drops)
NATIVE_CURRENCY: Final[str] = "XRP"

# Ширина нестандартного кода валюты: 20 байт = 40 hex-символов
CURRENCY_HEX_WIDTH: Final[int] = 40

# Максимальная длина стандартного (ISO-подобного) кода
STANDARD_CODE_MAX_LEN: Final[int] = 3

# Допустимые символы стандартного кода (<= 3 символов)
STANDARD_CODE_CHARS: Final[frozenset] = frozenset(string.ascii_letters + string.digits + "?!@#$%^&*<>(){}[]|")

_HEX_DIGITS: Final[frozenset] = frozenset(string.hexdigits)


# =============================================================================
# ВАЛЮТЫ
# =============================================================================


def encode_currency(code: str) -> str:
    """
    Кодирование кода валюты в идентификатор ledger.

    Args:
        code: Человекочитаемый код ("USD", "EUROC", "XRP")

    Returns:
        Идентификатор валюты: исходный код (<= 3 символов) или
        40-символьная hex-строка в верхнем регистре

    Raises:
        EncodingError: Пустой код, не-ASCII символы, недопустимые символы
            короткого кода или код длиннее 20 байт

    Examples:
        >>> encode_currency("USD")
        'USD'
        >>> encode_currency("EUROC")
        '4555524F43000000000000000000000000000000'
    """
    if not isinstance(code, str) or not code:
        raise EncodingError("Currency code must be a non-empty string", {"code": code})

    if len(code) <= STANDARD_CODE_MAX_LEN:
        if not set(code) <= STANDARD_CODE_CHARS:
            raise EncodingError(
                "Standard currency code contains characters outside the allowed set",
                {"code": code},
            )
        return code

    try:
        raw = code.encode("ascii")
    except UnicodeEncodeError as e:
        raise EncodingError(
            "Currency code contains characters outside the ASCII byte range",
            {"code": code, "position": e.start},
        ) from e

    if raw[0] == 0:
        raise EncodingError("Currency code must not start with a zero byte", {"code": code})

    hex_code = raw.hex()
    if len(hex_code) > CURRENCY_HEX_WIDTH:
        raise EncodingError(
            f"Currency code exceeds {CURRENCY_HEX_WIDTH // 2} bytes",
            {"code": code, "bytes": len(raw)},
        )

    return hex_code.ljust(CURRENCY_HEX_WIDTH, "0").upper()


def decode_currency(identifier: str) -> str:
    """
    Декодирование идентификатора валюты обратно в человекочитаемый код.

    Args:
        identifier: Код <= 3 символов или 40-символьная hex-строка

    Returns:
        Человекочитаемый код без нулевого padding

    Raises:
        EncodingError: Идентификатор не является ни кодом, ни валидным hex
    """
    if not isinstance(identifier, str) or not identifier:
        raise EncodingError("Currency identifier must be a non-empty string", {"identifier": identifier})

    if len(identifier) <= STANDARD_CODE_MAX_LEN:
        return identifier

    if len(identifier) != CURRENCY_HEX_WIDTH or not set(identifier) <= _HEX_DIGITS:
        raise EncodingError(
            "Currency identifier is neither a standard code nor a 40-digit hex string",
            {"identifier": identifier},
        )

    raw = bytes.fromhex(identifier).rstrip(b"\x00")
    try:
        return raw.decode("ascii")
    except UnicodeDecodeError as e:
        raise EncodingError(
            "Currency identifier does not decode to ASCII text",
            {"identifier": identifier},
        ) from e


def currency_matches(identifier: str, code: str) -> bool:
    """
    Сравнение идентификатора из ledger с человекочитаемым кодом.

    Ledger возвращает нестандартные коды в hex, поэтому сравнение идёт
    по закодированной форме (без учёта регистра hex).
    """
    try:
        return identifier.upper() == encode_currency(code).upper()
    except EncodingError:
        return False


# =============================================================================
# HEX-ТЕКСТ (credential type, URI)
# =============================================================================


def text_to_hex(text: str) -> str:
    """UTF-8 текст → hex в верхнем регистре (без padding)."""
    if not isinstance(text, str):
        raise EncodingError("Text must be a string", {"text": text})
    return text.encode("utf-8").hex().upper()


def hex_to_text(value: str) -> str:
    """Hex → UTF-8 текст (обратное к text_to_hex)."""
    try:
        return binascii.unhexlify(value).decode("utf-8")
    except (binascii.Error, ValueError, UnicodeDecodeError) as e:
        raise EncodingError("Value is not hex-encoded UTF-8 text", {"value": value}) from e
