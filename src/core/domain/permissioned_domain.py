"""
PermissionedDomain — граница доступа, определённая владельцем и набором
принимаемых credential'ов.

Изменяется только владельцем и только полной заменой набора. Пустой
набор означает "открыт для всех".
"""

from typing import Any, Iterable, Mapping, Optional

from pydantic import BaseModel, Field

from .credential import CredentialRequirement


class PermissionedDomain(BaseModel):
    """Снапшот домена, прочитанный из ledger (не кэшируется)."""

    owner: str = Field(..., min_length=1, description="Аккаунт владельца")
    domain_id: Optional[str] = Field(None, description="Ledger-идентификатор домена")
    sequence: Optional[int] = Field(None, ge=0, description="Sequence создающей транзакции")
    accepted_credentials: tuple[CredentialRequirement, ...] = Field(
        default_factory=tuple, description="Принимаемые (issuer, type)"
    )

    model_config = {"frozen": True}

    @property
    def is_open(self) -> bool:
        return not self.accepted_credentials

    @property
    def policy(self) -> frozenset[tuple[str, str]]:
        """Политика домена как множество ключей (issuer, type)."""
        return frozenset(req.key for req in self.accepted_credentials)

    @classmethod
    def from_ledger_object(cls, obj: Mapping[str, Any]) -> "PermissionedDomain":
        return cls(
            owner=obj["Owner"],
            domain_id=obj.get("index"),
            sequence=obj.get("Sequence"),
            accepted_credentials=tuple(
                CredentialRequirement.from_ledger_entry(entry)
                for entry in obj.get("AcceptedCredentials", [])
            ),
        )


def find_domain_id(objects: Iterable[Mapping[str, Any]], sequence: int) -> Optional[str]:
    """
    Поиск ledger-идентификатора домена по sequence создающей транзакции.

    Идентификатор известен только после того, как создание домена
    наблюдается в ledger.
    """
    for obj in objects:
        if obj.get("LedgerEntryType", "PermissionedDomain") != "PermissionedDomain":
            continue
        if obj.get("Sequence") == sequence and obj.get("index"):
            return obj["index"]
    return None
