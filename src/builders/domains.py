"""Builders для permissioned domains: создание/обновление и удаление.

Обновление домена — ПОЛНАЯ замена набора принимаемых credential'ов.
Пара, отсутствующая в новом наборе, перестаёт приниматься доменом.
Вызывающий код обязан прочитать текущий набор перед частичным
изменением, иначе записи будут молча потеряны (см.
ComplianceDesk.add_accepted_credential).
"""

from typing import Final, Iterable, Optional, Tuple, Union

from src.core.domain.credential import CredentialRequirement
from src.core.errors import ValidationError

from .common import TransactionPayload, require_account, require_hash256
from .credentials import encode_credential_type

# Лимит ledger на размер AcceptedCredentials
MAX_ACCEPTED_CREDENTIALS: Final[int] = 10

# (issuer, type_text) или готовое требование с hex-типом
AcceptedEntry = Union[Tuple[str, str], CredentialRequirement]


def _to_requirement(entry: AcceptedEntry) -> CredentialRequirement:
    if isinstance(entry, CredentialRequirement):
        return entry
    try:
        issuer, type_text = entry
    except (TypeError, ValueError) as e:
        raise ValidationError("accepted credential must be an (issuer, type) pair", {"entry": entry}) from e
    return CredentialRequirement(
        issuer=require_account(issuer, "issuer"),
        credential_type=encode_credential_type(type_text),
    )


def build_domain_set(
    owner: str,
    accepted_credentials: Iterable[AcceptedEntry],
    domain_id: Optional[str] = None,
) -> TransactionPayload:
    """PermissionedDomainSet: создание домена или полная замена его политики.

    Args:
        owner: владелец домена (подписант)
        accepted_credentials: полный новый набор (issuer, type)
        domain_id: id существующего домена (None → создание нового)

    Raises:
        ValidationError: дубликаты, превышение лимита, битый domain_id
    """
    owner = require_account(owner, "owner")
    requirements = [_to_requirement(entry) for entry in accepted_credentials]

    seen = set()
    for requirement in requirements:
        if requirement.key in seen:
            raise ValidationError(
                "accepted credentials contain a duplicate (issuer, type) pair",
                {"issuer": requirement.issuer, "credential_type": requirement.credential_type},
            )
        seen.add(requirement.key)

    if len(requirements) > MAX_ACCEPTED_CREDENTIALS:
        raise ValidationError(
            f"a domain accepts at most {MAX_ACCEPTED_CREDENTIALS} credentials",
            {"count": len(requirements)},
        )

    payload: TransactionPayload = {
        "TransactionType": "PermissionedDomainSet",
        "Account": owner,
    }
    if domain_id is not None:
        payload["DomainID"] = require_hash256(domain_id, "domain_id")
    # Пустой набор = домен открыт для всех: поле не передаётся
    if requirements:
        payload["AcceptedCredentials"] = [req.to_payload() for req in requirements]
    return payload


def build_domain_delete(owner: str, domain_id: str) -> TransactionPayload:
    """PermissionedDomainDelete: удаление домена владельцем."""
    return {
        "TransactionType": "PermissionedDomainDelete",
        "Account": require_account(owner, "owner"),
        "DomainID": require_hash256(domain_id, "domain_id"),
    }
