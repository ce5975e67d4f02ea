"""
Amounts — ссылки на валюты и суммы ledger

Дуальность native/token:
- Нативная валюта: сумма — голая скалярная строка (drops), например "1500000"
- Выпущенный токен: структура {"currency", "issuer", "value"}

Эта разница несущая: сериализация нативной суммы как структуры (или
наоборот) даёт транзакцию, которую ledger отвергнет или исполнит не так.
"""

from decimal import Decimal
from typing import Any, Dict, Mapping, Optional, Union

from pydantic import BaseModel, Field, model_validator

from src.core.codec import NATIVE_CURRENCY, currency_matches, decode_currency, encode_currency
from src.core.errors import EncodingError
from src.core.math.amounts import format_decimal, parse_decimal, require_whole_drops

# Сырая сумма, как она приходит из ledger или уходит в payload
RawAmount = Union[str, Dict[str, Any]]


class CurrencyRef(BaseModel):
    """
    Ссылка на валюту: нативная или (code, issuer).

    Используется как ключ классификации, не персистится.
    """

    code: str = Field(..., min_length=1, description="Человекочитаемый код валюты")
    issuer: Optional[str] = Field(None, description="Эмитент токена (None для native)")

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def validate_issuer(self) -> "CurrencyRef":
        """Native не имеет эмитента, токен обязан его иметь."""
        if self.code == NATIVE_CURRENCY and self.issuer is not None:
            raise ValueError("native currency must not carry an issuer")
        if self.code != NATIVE_CURRENCY and not self.issuer:
            raise ValueError(f"issued currency {self.code} requires an issuer")
        # Проверка, что код кодируется (EncodingError → ValueError для pydantic)
        try:
            encode_currency(self.code)
        except EncodingError as e:
            raise ValueError(str(e)) from e
        return self

    @classmethod
    def native(cls) -> "CurrencyRef":
        return cls(code=NATIVE_CURRENCY)

    @classmethod
    def token(cls, code: str, issuer: str) -> "CurrencyRef":
        return cls(code=code, issuer=issuer)

    @property
    def is_native(self) -> bool:
        return self.code == NATIVE_CURRENCY

    @property
    def identifier(self) -> str:
        """Идентификатор валюты в ledger (hex для кодов > 3 символов)."""
        return encode_currency(self.code)

    def matches(self, raw: RawAmount) -> bool:
        """
        Соответствует ли сырая сумма ledger этой валюте.

        Скаляр — всегда native; структура — токен с совпадающими
        currency и issuer.
        """
        if isinstance(raw, str):
            return self.is_native
        if not isinstance(raw, Mapping) or self.is_native:
            return False
        currency = raw.get("currency")
        if not isinstance(currency, str):
            return False
        return currency_matches(currency, self.code) and raw.get("issuer") == self.issuer

    def amount(self, value: Decimal, field: str = "amount") -> RawAmount:
        """
        Payload-представление суммы в этой валюте.

        Native → скалярная строка целых drops; токен → структура.
        """
        if self.is_native:
            return require_whole_drops(value, field)
        return {
            "currency": self.identifier,
            "issuer": self.issuer,
            "value": format_decimal(value),
        }

    def __str__(self) -> str:
        return self.code if self.is_native else f"{self.code}.{self.issuer}"


def amount_value(raw: RawAmount) -> Decimal:
    """
    Числовое значение сырой суммы.

    Скаляр уже является значением; у структуры берётся поле value.

    Raises:
        EncodingError: Сумма не содержит валидного десятичного значения
    """
    if isinstance(raw, str):
        return parse_decimal(raw, "amount")
    if isinstance(raw, Mapping):
        if "value" not in raw:
            raise EncodingError("Structured amount has no value field", {"amount": dict(raw)})
        return parse_decimal(raw["value"], "amount.value")
    raise EncodingError("Amount is neither a scalar nor a structured amount", {"amount": raw})


def amount_currency(raw: RawAmount) -> CurrencyRef:
    """Восстановление CurrencyRef из сырой суммы ledger."""
    if isinstance(raw, str):
        return CurrencyRef.native()
    if isinstance(raw, Mapping) and isinstance(raw.get("currency"), str):
        return CurrencyRef.token(decode_currency(raw["currency"]), raw.get("issuer"))
    raise EncodingError("Amount has no currency", {"amount": raw})
