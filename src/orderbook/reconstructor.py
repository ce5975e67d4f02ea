"""Order Book Reconstructor — двусторонний стакан из сырых ledger offer'ов.

Классификация для пары (BASE, QUOTE):
- TakerGets = QUOTE, TakerPays = BASE → ASK (продажа base)
    price = value(TakerGets) / value(TakerPays), amount = value(TakerPays)
- TakerGets = BASE, TakerPays = QUOTE → BID (покупка base)
    price = value(TakerPays) / value(TakerGets), amount = value(TakerGets)
- Иначе offer принадлежит другой паре и отбрасывается

Сортировка: asks по возрастанию цены, bids по убыванию; равные цены
сохраняют порядок входа (stable sort).

Вырожденные offer'ы (нулевое количество, битая сумма) пропускаются с
warning и учитываются в skipped_count; Infinity/NaN в стакан не попадают.

Reconstructor не хранит состояния между вызовами: каждый вызов — чистая
функция над снапшотом, параллельные вызовы безопасны.
"""

import logging
from decimal import Decimal
from typing import Any, Iterable, List, Mapping, Optional, Tuple, Union

from pydantic import ValidationError as ModelValidationError

from src.core.domain.amounts import amount_value
from src.core.domain.order import OrderBook, PricedOrder, RawOffer, Side, TradingPair
from src.core.errors import EncodingError, MalformedOfferError
from src.core.math.amounts import divide_amounts

logger = logging.getLogger(__name__)

OfferInput = Union[RawOffer, Mapping[str, Any]]


def _coerce_offer(item: OfferInput) -> RawOffer:
    if isinstance(item, RawOffer):
        return item
    try:
        return RawOffer.from_ledger_object(item)
    except (KeyError, TypeError, ModelValidationError) as e:
        raise MalformedOfferError("Offer object is missing required fields", {"error": str(e)}) from e


def _value(raw: Any, field: str, offer: RawOffer) -> Decimal:
    try:
        value = amount_value(raw)
    except EncodingError as e:
        raise MalformedOfferError(
            f"{field} is not a valid amount",
            {"account": offer.account, "sequence": offer.sequence},
        ) from e
    if value <= 0:
        raise MalformedOfferError(
            f"{field} has zero or negative quantity",
            {"account": offer.account, "sequence": offer.sequence, field: str(value)},
        )
    return value


class OrderBookReconstructor:
    """Классификация сырых offer'ов в bids/asks торговой пары."""

    def classify(
        self,
        raw_offers: Iterable[OfferInput],
        pair: TradingPair,
        domain_id: Optional[str] = None,
    ) -> OrderBook:
        """Построение стакана.

        Args:
            raw_offers: offer'ы из ledger (RawOffer или ledger-объекты)
            pair: торговая пара
            domain_id: если задан, offer'ы других доменов исключаются

        Returns:
            OrderBook с отсортированными сторонами и счётчиком пропусков
        """
        bids: List[PricedOrder] = []
        asks: List[PricedOrder] = []
        skipped: List[str] = []

        for position, item in enumerate(raw_offers):
            try:
                offer = _coerce_offer(item)
                if domain_id is not None and offer.domain_id != domain_id:
                    continue
                priced = self._price(offer, pair)
            except MalformedOfferError as e:
                logger.warning("Skipping malformed offer #%d for %s: %s", position, pair, e)
                skipped.append(str(e))
                continue

            if priced is None:
                logger.debug("Offer #%d does not belong to %s, discarded", position, pair)
            elif priced.side == Side.SELL:
                asks.append(priced)
            else:
                bids.append(priced)

        # sorted() стабилен, в том числе с reverse=True
        asks = sorted(asks, key=lambda o: o.price)
        bids = sorted(bids, key=lambda o: o.price, reverse=True)

        return OrderBook(
            pair=pair,
            bids=tuple(bids),
            asks=tuple(asks),
            skipped_count=len(skipped),
            skipped_reasons=tuple(skipped),
        )

    def _price(self, offer: RawOffer, pair: TradingPair) -> Optional[PricedOrder]:
        side, base_raw, quote_raw = self._orient(offer, pair)
        if side is None:
            return None

        base_value = _value(base_raw, "base amount", offer)
        quote_value = _value(quote_raw, "quote amount", offer)

        return PricedOrder(
            side=side,
            account=offer.account,
            sequence=offer.sequence,
            price=divide_amounts(quote_value, base_value),
            amount=base_value,
            total=quote_value,
            domain_id=offer.domain_id,
        )

    @staticmethod
    def _orient(offer: RawOffer, pair: TradingPair) -> Tuple[Optional[Side], Any, Any]:
        """(сторона, сумма base, сумма quote) или (None, ...) для чужой пары."""
        gets, pays = offer.taker_gets, offer.taker_pays
        if pair.quote.matches(gets) and pair.base.matches(pays):
            return Side.SELL, pays, gets
        if pair.base.matches(gets) and pair.quote.matches(pays):
            return Side.BUY, gets, pays
        return None, None, None


def classify(
    raw_offers: Iterable[OfferInput],
    pair: TradingPair,
    domain_id: Optional[str] = None,
) -> OrderBook:
    """Функциональная обёртка над OrderBookReconstructor.classify()."""
    return OrderBookReconstructor().classify(raw_offers, pair, domain_id)
