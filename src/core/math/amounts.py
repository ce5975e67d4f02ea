"""
Amount Primitives — точная десятичная арифметика для сумм ledger

Ledger передаёт суммы строками. Вся арифметика ведётся в Decimal,
float не используется нигде, чтобы округление не искажало цены и
количества в payload'ах.

КРИТИЧЕСКИЕ ИНВАРИАНТЫ:
1. NaN/Inf никогда не пропагируют (EncodingError на входе)
2. Нативные суммы — целое число drops (дробные drops запрещены)
3. format_decimal() никогда не возвращает экспоненциальную запись
"""

from decimal import Decimal, InvalidOperation
from typing import Union

from src.core.errors import EncodingError, ValidationError


# =============================================================================
# ТИПЫ
# =============================================================================

DecimalLike = Union[str, int, Decimal]


# =============================================================================
# ПАРСИНГ И ФОРМАТИРОВАНИЕ
# =============================================================================


def parse_decimal(value: DecimalLike, field: str = "value") -> Decimal:
    """
    Парсинг суммы в Decimal.

    Args:
        value: Строка, int или Decimal (float отклоняется — теряет точность)
        field: Имя поля для сообщения об ошибке

    Returns:
        Конечный Decimal

    Raises:
        EncodingError: Значение не является конечным десятичным числом
    """
    if isinstance(value, bool) or isinstance(value, float):
        raise EncodingError(
            f"{field} must be a decimal string, int or Decimal",
            {field: value, "type": type(value).__name__},
        )

    try:
        result = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError) as e:
        raise EncodingError(f"{field} is not a decimal number", {field: value}) from e

    if not result.is_finite():
        raise EncodingError(f"{field} must be finite", {field: value})

    return result


def format_decimal(value: Decimal) -> str:
    """
    Decimal → строка ledger без экспоненты и хвостовых нулей.

    Examples:
        >>> format_decimal(Decimal("200.00"))
        '200'
        >>> format_decimal(Decimal("0.50"))
        '0.5'
    """
    if value == 0:
        return "0"
    return format(value.normalize(), "f")


# =============================================================================
# ВАЛИДАЦИЯ ЗНАКА
# =============================================================================


def require_positive(value: DecimalLike, field: str) -> Decimal:
    """Сумма строго > 0, иначе ValidationError."""
    amount = parse_decimal(value, field)
    if amount <= 0:
        raise ValidationError(f"{field} must be positive", {field: value})
    return amount


def require_non_negative(value: DecimalLike, field: str) -> Decimal:
    """Сумма >= 0, иначе ValidationError."""
    amount = parse_decimal(value, field)
    if amount < 0:
        raise ValidationError(f"{field} must be non-negative", {field: value})
    return amount


# =============================================================================
# НАТИВНАЯ ВАЛЮТА (drops)
# =============================================================================


def require_whole_drops(value: Decimal, field: str) -> str:
    """
    Нативная сумма в payload — целое число drops.

    Raises:
        ValidationError: value содержит дробную часть
    """
    if value != value.to_integral_value():
        raise ValidationError(
            f"{field} must be a whole number of drops for the native currency",
            {field: format_decimal(value)},
        )
    return format_decimal(value)


# =============================================================================
# ДЕЛЕНИЕ
# =============================================================================


def divide_amounts(numerator: DecimalLike, denominator: DecimalLike, field: str = "price") -> Decimal:
    """
    Частное двух сумм без Infinity/NaN.

    В отличие от float-деления, ноль в знаменателе не заменяется
    fallback-значением: цена от нулевого количества не имеет смысла.

    Examples:
        >>> divide_amounts("2000", "10000")
        Decimal('0.2')

    Raises:
        EncodingError: знаменатель равен нулю или вход не является числом
    """
    num = parse_decimal(numerator, f"{field} numerator")
    denom = parse_decimal(denominator, f"{field} denominator")
    if denom == 0:
        raise EncodingError(f"{field} denominator is zero", {"numerator": format_decimal(num)})
    return num / denom
