"""Builders для ордеров permissioned DEX: размещение и отмена.

Вывод TakerGets/TakerPays из стороны ордера:
- BUY:  TakerGets = quantity base,              TakerPays = quantity * price quote
- SELL: TakerGets = quantity * price quote,     TakerPays = quantity base

Если сторона пары нативная, соответствующая сумма — голая скалярная
строка (drops), а не структура токена. Нормализовать это нельзя.
"""

from decimal import Decimal
from typing import Optional, Union

from src.core.domain.order import Side, TradingPair
from src.core.errors import ValidationError
from src.core.math.amounts import require_positive

from .common import TransactionPayload, require_account, require_sequence

DecimalInput = Union[str, int, Decimal]


def build_offer_create(
    account: str,
    side: Side,
    pair: TradingPair,
    quantity: DecimalInput,
    unit_price: DecimalInput,
    domain_id: Optional[str] = None,
) -> TransactionPayload:
    """OfferCreate для пары pair.

    Args:
        account: аккаунт, размещающий ордер
        side: BUY или SELL базового актива
        pair: торговая пара
        quantity: количество base (> 0; для native — в drops)
        unit_price: цена в quote за единицу base (> 0; для native quote — drops)
        domain_id: домен, в который размещается ордер (передаётся как есть)

    Raises:
        ValidationError: неположительные quantity/price, дробные drops
    """
    account = require_account(account, "account")
    try:
        side = Side(side)
    except ValueError as e:
        raise ValidationError("side must be buy or sell", {"side": side}) from e
    qty = require_positive(quantity, "quantity")
    price = require_positive(unit_price, "unit_price")
    total = qty * price

    base_amount = pair.base.amount(qty, "quantity")
    quote_amount = pair.quote.amount(total, "total")

    if side == Side.BUY:
        taker_gets, taker_pays = base_amount, quote_amount
    else:
        taker_gets, taker_pays = quote_amount, base_amount

    payload: TransactionPayload = {
        "TransactionType": "OfferCreate",
        "Account": account,
        "TakerGets": taker_gets,
        "TakerPays": taker_pays,
    }
    if domain_id is not None:
        if not isinstance(domain_id, str) or not domain_id:
            raise ValidationError("domain_id must be a non-empty string", {"domain_id": domain_id})
        payload["DomainID"] = domain_id
    return payload


def build_offer_cancel(account: str, sequence: int) -> TransactionPayload:
    """OfferCancel: отмена ордера по sequence его OfferCreate."""
    return {
        "TransactionType": "OfferCancel",
        "Account": require_account(account, "account"),
        "OfferSequence": require_sequence(sequence, "sequence"),
    }
