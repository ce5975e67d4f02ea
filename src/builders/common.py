"""Общие примитивы transaction builders.

Builder — чистая функция (intent, context) → payload. Builder никогда не
выполняет сетевой I/O, не подписывает и не кэширует payload: ledger
submission не идемпотентна, поэтому payload строится заново перед
каждой отправкой.
"""

import re
from typing import Any, Dict, Final

from src.core.errors import ValidationError

TransactionPayload = Dict[str, Any]

_HASH256_RE: Final = re.compile(r"^[0-9A-Fa-f]{64}$")


def require_account(value: Any, field: str) -> str:
    """Аккаунт — непустая строка."""
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field} is required", {field: value})
    return value.strip()


def require_distinct(a: str, b: str, field_a: str, field_b: str) -> None:
    if a == b:
        raise ValidationError(f"{field_a} and {field_b} must differ", {field_a: a})


def require_hash256(value: Any, field: str) -> str:
    """Ledger-идентификатор (DomainID) — 64 hex-символа, нормализуется в upper."""
    if not isinstance(value, str) or not _HASH256_RE.match(value):
        raise ValidationError(f"{field} must be a 64-digit hex identifier", {field: value})
    return value.upper()


def require_sequence(value: Any, field: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ValidationError(f"{field} must be a positive integer", {field: value})
    return value
