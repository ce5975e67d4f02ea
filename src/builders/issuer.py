"""Builders для эмитента токенов: флаги аккаунта, trust lines, платежи.

Механизм флагов ledger различает:
- комбинируемые bitmask-флаги (поле Flags, tf*) — можно OR'ить в одном
  payload'е
- именованные флаги (поле SetFlag, asf*) — строго один на payload

Именованный флаг никогда не попадает в bitmask payload.
"""

import logging
from dataclasses import dataclass
from typing import Final, List, Optional

from src.core.codec import encode_currency, NATIVE_CURRENCY
from src.core.config import TrustLineDefaults
from src.core.errors import ValidationError
from src.core.math.amounts import format_decimal, require_non_negative, require_positive

from .common import TransactionPayload, require_account, require_distinct

logger = logging.getLogger(__name__)


# =============================================================================
# ФЛАГИ
# =============================================================================

# AccountSet transaction flags (bitmask, комбинируемые)
TF_REQUIRE_AUTH: Final[int] = 0x00040000

# AccountSet SetFlag values (именованные, один на транзакцию)
ASF_GLOBAL_FREEZE: Final[int] = 7
ASF_DEFAULT_RIPPLE: Final[int] = 8
ASF_ALLOW_TRUSTLINE_CLAWBACK: Final[int] = 16

# TrustSet flags
TF_CLEAR_NO_RIPPLE: Final[int] = 0x00040000


@dataclass(frozen=True)
class IssuerFlags:
    """Желаемые флаги аккаунта эмитента.

    enable_rippling всегда выставляется: без него не работает
    multi-hop settlement через эмитента.
    """
    require_auth: bool = False
    freeze: bool = False
    clawback: bool = False
    enable_rippling: bool = True


def build_issuer_flags(account: str, flags: IssuerFlags) -> List[TransactionPayload]:
    """AccountSet payload'ы для настройки эмитента.

    Returns:
        [bitmask payload (если есть комбинируемые флаги)] +
        по одному payload'у на каждый именованный флаг:
        DefaultRipple (всегда), GlobalFreeze, AllowTrustLineClawback
    """
    account = require_account(account, "account")
    payloads: List[TransactionPayload] = []

    mask = 0
    if flags.require_auth:
        mask |= TF_REQUIRE_AUTH
    if mask:
        payloads.append({"TransactionType": "AccountSet", "Account": account, "Flags": mask})

    if not flags.enable_rippling:
        logger.warning("enable_rippling=False ignored for %s: DefaultRipple is always set", account)

    named = [ASF_DEFAULT_RIPPLE]
    if flags.freeze:
        named.append(ASF_GLOBAL_FREEZE)
    if flags.clawback:
        named.append(ASF_ALLOW_TRUSTLINE_CLAWBACK)

    for set_flag in named:
        payloads.append({"TransactionType": "AccountSet", "Account": account, "SetFlag": set_flag})

    logger.debug("Issuer flags for %s: mask=0x%08X named=%s", account, mask, named)
    return payloads


# =============================================================================
# TRUST LINES / PAYMENTS
# =============================================================================


def _issued_currency(code: str) -> str:
    if code == NATIVE_CURRENCY:
        raise ValidationError("native currency cannot be issued or trusted", {"currency": code})
    return encode_currency(code)


def build_trust_set(
    holder: str,
    issuer: str,
    currency_code: str,
    limit: Optional[str] = None,
    defaults: Optional[TrustLineDefaults] = None,
) -> TransactionPayload:
    """TrustSet: holder разрешает себе держать токен эмитента.

    Args:
        holder: аккаунт держателя (подписант)
        issuer: аккаунт эмитента
        currency_code: код токена (кодируется через Codec)
        limit: неотрицательный десятичный лимит (default: TrustLineDefaults)
    """
    holder = require_account(holder, "holder")
    issuer = require_account(issuer, "issuer")
    require_distinct(holder, issuer, "holder", "issuer")

    limit_value = limit if limit is not None else (defaults or TrustLineDefaults()).limit
    if not isinstance(limit_value, str):
        raise ValidationError("limit must be a decimal string", {"limit": limit_value})

    return {
        "TransactionType": "TrustSet",
        "Account": holder,
        "LimitAmount": {
            "currency": _issued_currency(currency_code),
            "issuer": issuer,
            "value": format_decimal(require_non_negative(limit_value, "limit")),
        },
        "Flags": TF_CLEAR_NO_RIPPLE,
    }


def build_payment(
    issuer: str,
    destination: str,
    currency_code: str,
    amount: str,
    sender: Optional[str] = None,
) -> TransactionPayload:
    """Payment токена: выпуск (sender == issuer) или перевод.

    Raises:
        ValidationError: amount <= 0, sender == destination
    """
    issuer = require_account(issuer, "issuer")
    destination = require_account(destination, "destination")
    sender = require_account(sender, "sender") if sender is not None else issuer
    require_distinct(sender, destination, "sender", "destination")

    return {
        "TransactionType": "Payment",
        "Account": sender,
        "Destination": destination,
        "Amount": {
            "currency": _issued_currency(currency_code),
            "issuer": issuer,
            "value": format_decimal(require_positive(amount, "amount")),
        },
    }


def build_token_issuance_bundle(
    issuer: str,
    currency_code: str,
    flags: IssuerFlags,
    holder: Optional[str] = None,
    initial_amount: Optional[str] = None,
    limit: Optional[str] = None,
) -> List[TransactionPayload]:
    """Полный набор payload'ов для запуска токена в порядке отправки.

    1. Флаги эмитента
    2. Trust line держателя (если задан initial_amount)
    3. Выпуск initial_amount держателю
    """
    encode_currency(currency_code)
    payloads = build_issuer_flags(issuer, flags)

    if initial_amount is not None:
        if holder is None:
            raise ValidationError("holder is required to issue an initial amount", {"issuer": issuer})
        payloads.append(build_trust_set(holder, issuer, currency_code, limit))
        payloads.append(build_payment(issuer, holder, currency_code, initial_amount))

    return payloads
