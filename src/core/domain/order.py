"""
Order — модели ордеров, торговых пар и стакана

Ордер (offer) создаётся и отменяется только аккаунтом-владельцем.
Сопоставление ордеров выполняет ledger; здесь ордера только строятся и
классифицируются.
"""

from decimal import Decimal
from enum import Enum
from typing import Any, Mapping, Optional

from pydantic import BaseModel, Field, model_validator

from .amounts import CurrencyRef, RawAmount


# =============================================================================
# ENUMS
# =============================================================================


class Side(str, Enum):
    """Сторона ордера относительно базового актива"""

    BUY = "buy"
    SELL = "sell"


# =============================================================================
# TRADING PAIR
# =============================================================================


class TradingPair(BaseModel):
    """
    Торговая пара base/quote.

    Используется только как ключ классификации.
    """

    base: CurrencyRef = Field(..., description="Базовый актив")
    quote: CurrencyRef = Field(..., description="Котируемый актив")

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def validate_distinct(self) -> "TradingPair":
        if self.base == self.quote:
            raise ValueError(f"base and quote must differ, got {self.base} twice")
        return self

    def __str__(self) -> str:
        return f"{self.base.code}/{self.quote.code}"


# =============================================================================
# RAW OFFER
# =============================================================================


class RawOffer(BaseModel):
    """
    Сырой Offer, как он приходит из ledger (book_offers / account_offers).
    """

    account: str = Field(..., min_length=1, description="Аккаунт-владелец")
    taker_gets: RawAmount = Field(..., description="Что получает taker")
    taker_pays: RawAmount = Field(..., description="Что платит taker")
    sequence: int = Field(..., ge=0, description="Sequence OfferCreate")
    domain_id: Optional[str] = Field(None, description="Домен, к которому привязан offer")
    ledger_id: Optional[str] = Field(None, description="index ledger-объекта")

    model_config = {"frozen": True}

    @classmethod
    def from_ledger_object(cls, obj: Mapping[str, Any]) -> "RawOffer":
        return cls(
            account=obj["Account"],
            taker_gets=obj["TakerGets"],
            taker_pays=obj["TakerPays"],
            sequence=obj.get("Sequence", 0),
            domain_id=obj.get("DomainID"),
            ledger_id=obj.get("index"),
        )


# =============================================================================
# PRICED ORDER / ORDER BOOK
# =============================================================================


class PricedOrder(BaseModel):
    """Классифицированный ордер стакана с ценой в quote за единицу base."""

    side: Side = Field(..., description="BUY — bid, SELL — ask")
    account: str = Field(..., description="Аккаунт-владелец")
    sequence: int = Field(..., ge=0, description="Sequence OfferCreate")
    price: Decimal = Field(..., gt=0, description="Цена (quote за 1 base)")
    amount: Decimal = Field(..., gt=0, description="Количество base")
    total: Decimal = Field(..., gt=0, description="Количество quote")
    domain_id: Optional[str] = Field(None, description="Домен offer'а")

    model_config = {"frozen": True}


class OrderBook(BaseModel):
    """
    Двусторонний стакан для торговой пары.

    asks — по возрастанию цены, bids — по убыванию.
    """

    pair: TradingPair = Field(..., description="Торговая пара")
    bids: tuple[PricedOrder, ...] = Field(default_factory=tuple, description="Заявки на покупку")
    asks: tuple[PricedOrder, ...] = Field(default_factory=tuple, description="Заявки на продажу")
    skipped_count: int = Field(0, ge=0, description="Пропущено вырожденных offer'ов")
    skipped_reasons: tuple[str, ...] = Field(default_factory=tuple, description="Причины пропуска")

    model_config = {"frozen": True}

    @property
    def best_bid(self) -> Optional[PricedOrder]:
        return self.bids[0] if self.bids else None

    @property
    def best_ask(self) -> Optional[PricedOrder]:
        return self.asks[0] if self.asks else None

    @property
    def spread(self) -> Optional[Decimal]:
        """best_ask - best_bid (None, если одна из сторон пуста)."""
        if self.best_bid is None or self.best_ask is None:
            return None
        return self.best_ask.price - self.best_bid.price
