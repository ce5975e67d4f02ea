"""
Credential — on-ledger credential и требования к нему

Credential создаётся транзакцией эмитента, становится accepted=True только
после транзакции принятия субъектом и перестаёт действовать по истечении
Expiration или после удаления.

Инвариант: credential пригоден для eligibility только если
accepted == True и (expiration не задан или в будущем).
"""

from datetime import datetime
from typing import Any, Dict, Final, Mapping, Optional

from pydantic import BaseModel, Field, field_validator

from src.core.codec import hex_to_text, text_to_hex
from src.core.domain.ledger_time import ensure_utc, from_ledger_time
from src.core.errors import EncodingError

# lsfAccepted: флаг ledger-объекта Credential
LSF_ACCEPTED: Final[int] = 0x00010000


class Credential(BaseModel):
    """
    Credential, выданный issuer'ом subject'у.

    credential_type хранится в hex (как в ledger).
    """

    issuer: str = Field(..., min_length=1, description="Аккаунт эмитента")
    subject: str = Field(..., min_length=1, description="Аккаунт субъекта")
    credential_type: str = Field(..., min_length=1, description="Тип credential (hex)")
    expiration: Optional[datetime] = Field(None, description="Момент истечения (UTC)")
    accepted: bool = Field(False, description="Принят ли credential субъектом")
    ledger_id: Optional[str] = Field(None, description="index ledger-объекта")

    model_config = {"frozen": True}

    @field_validator("expiration")
    @classmethod
    def expiration_to_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(v) if v is not None else None

    @property
    def type_text(self) -> str:
        """Тип credential как текст (если декодируется)."""
        try:
            return hex_to_text(self.credential_type)
        except EncodingError:
            return self.credential_type

    @property
    def key(self) -> tuple[str, str]:
        """Ключ (issuer, type) для сравнения с политикой домена."""
        return (self.issuer, self.credential_type.upper())

    def is_expired(self, now: datetime) -> bool:
        return self.expiration is not None and self.expiration <= ensure_utc(now)

    def is_usable(self, now: datetime) -> bool:
        """Accepted и не истёк."""
        return self.accepted and not self.is_expired(now)

    @classmethod
    def from_ledger_object(cls, obj: Mapping[str, Any]) -> "Credential":
        """
        Парсинг ledger-объекта Credential (account_objects type=credential).

        Expiration — секунды ledger-эпохи; accepted определяется флагом
        lsfAccepted.
        """
        expiration = obj.get("Expiration")
        return cls(
            issuer=obj["Issuer"],
            subject=obj["Subject"],
            credential_type=obj["CredentialType"],
            expiration=from_ledger_time(int(expiration)) if expiration is not None else None,
            accepted=bool(int(obj.get("Flags", 0)) & LSF_ACCEPTED),
            ledger_id=obj.get("index"),
        )


class CredentialRequirement(BaseModel):
    """Пара (issuer, type), которую домен принимает."""

    issuer: str = Field(..., min_length=1, description="Аккаунт эмитента")
    credential_type: str = Field(..., min_length=1, description="Тип credential (hex)")

    model_config = {"frozen": True}

    @classmethod
    def from_text(cls, issuer: str, type_text: str) -> "CredentialRequirement":
        return cls(issuer=issuer, credential_type=text_to_hex(type_text))

    @classmethod
    def from_ledger_entry(cls, entry: Mapping[str, Any]) -> "CredentialRequirement":
        """Парсинг элемента AcceptedCredentials: {"Credential": {...}}."""
        inner = entry.get("Credential", entry)
        return cls(issuer=inner["Issuer"], credential_type=inner["CredentialType"])

    @property
    def key(self) -> tuple[str, str]:
        return (self.issuer, self.credential_type.upper())

    def to_payload(self) -> Dict[str, Any]:
        return {"Credential": {"Issuer": self.issuer, "CredentialType": self.credential_type.upper()}}
