"""
Core math modules для PermiX

Десятичная арифметика сумм: парсинг, каноничное форматирование,
целые drops для native, безопасное деление для цен.
"""

from src.core.math.amounts import (
    DecimalLike,
    divide_amounts,
    format_decimal,
    parse_decimal,
    require_non_negative,
    require_positive,
    require_whole_drops,
)

__all__ = [
    "DecimalLike",
    "divide_amounts",
    "format_decimal",
    "parse_decimal",
    "require_non_negative",
    "require_positive",
    "require_whole_drops",
]
