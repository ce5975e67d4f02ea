"""Builders для credential-транзакций: создание, принятие, отзыв."""

from datetime import datetime
from typing import Final, Optional, Union

from src.core.codec import text_to_hex
from src.core.domain.ledger_time import to_ledger_time
from src.core.errors import ValidationError

from .common import TransactionPayload, require_account, require_distinct

# Лимиты ledger на размеры полей (байты)
CREDENTIAL_TYPE_MAX_BYTES: Final[int] = 64
URI_MAX_BYTES: Final[int] = 256


def encode_credential_type(type_text: str) -> str:
    """Тип credential (текст) → hex с проверкой лимита ledger."""
    if not isinstance(type_text, str) or not type_text:
        raise ValidationError("credential type is required", {"credential_type": type_text})
    encoded = text_to_hex(type_text)
    if len(encoded) // 2 > CREDENTIAL_TYPE_MAX_BYTES:
        raise ValidationError(
            f"credential type exceeds {CREDENTIAL_TYPE_MAX_BYTES} bytes",
            {"credential_type": type_text},
        )
    return encoded


def _expiration_seconds(expiration: Union[datetime, int]) -> int:
    if isinstance(expiration, datetime):
        try:
            return to_ledger_time(expiration)
        except ValueError as e:
            raise ValidationError(str(e), {"expiration": expiration.isoformat()}) from e
    if isinstance(expiration, bool) or not isinstance(expiration, int) or expiration < 0:
        raise ValidationError("expiration must be a datetime or ledger seconds", {"expiration": expiration})
    return expiration


def build_credential_create(
    issuer: str,
    subject: str,
    type_text: str,
    expiration: Optional[Union[datetime, int]] = None,
    uri: Optional[str] = None,
) -> TransactionPayload:
    """CredentialCreate: issuer выдаёт credential субъекту.

    Args:
        issuer: аккаунт эмитента (подписант)
        subject: аккаунт субъекта
        type_text: тип credential текстом ("KYC_CRED")
        expiration: момент истечения (aware datetime или секунды ledger-эпохи)
        uri: ссылка на описание credential

    Raises:
        ValidationError: subject == issuer, пустые поля, превышены лимиты
    """
    issuer = require_account(issuer, "issuer")
    subject = require_account(subject, "subject")
    require_distinct(issuer, subject, "issuer", "subject")

    payload: TransactionPayload = {
        "TransactionType": "CredentialCreate",
        "Account": issuer,
        "Subject": subject,
        "CredentialType": encode_credential_type(type_text),
    }
    if expiration is not None:
        payload["Expiration"] = _expiration_seconds(expiration)
    if uri:
        uri_hex = text_to_hex(uri)
        if len(uri_hex) // 2 > URI_MAX_BYTES:
            raise ValidationError(f"uri exceeds {URI_MAX_BYTES} bytes", {"uri": uri})
        payload["URI"] = uri_hex
    return payload


def build_credential_accept(subject: str, issuer: str, type_text: str) -> TransactionPayload:
    """CredentialAccept: субъект принимает credential.

    Credential идентифицируется парой (issuer, type), а не ledger id:
    id становится известен только после того, как выдача наблюдается
    в ledger.
    """
    subject = require_account(subject, "subject")
    issuer = require_account(issuer, "issuer")
    return {
        "TransactionType": "CredentialAccept",
        "Account": subject,
        "Issuer": issuer,
        "CredentialType": encode_credential_type(type_text),
    }


def build_credential_delete(
    account: str,
    type_text: str,
    issuer: Optional[str] = None,
    subject: Optional[str] = None,
) -> TransactionPayload:
    """CredentialDelete: отзыв (issuer) или отказ (subject) от credential.

    Подписант (account) должен быть issuer'ом или subject'ом; вторая
    сторона передаётся явно.
    """
    account = require_account(account, "account")
    if issuer is None and subject is None:
        raise ValidationError("issuer or subject is required", {"account": account})
    issuer = require_account(issuer, "issuer") if issuer is not None else account
    subject = require_account(subject, "subject") if subject is not None else account
    if account not in (issuer, subject):
        raise ValidationError(
            "account must be the credential issuer or subject",
            {"account": account, "issuer": issuer, "subject": subject},
        )

    payload: TransactionPayload = {
        "TransactionType": "CredentialDelete",
        "Account": account,
        "CredentialType": encode_credential_type(type_text),
    }
    if issuer != account:
        payload["Issuer"] = issuer
    if subject != account:
        payload["Subject"] = subject
    return payload
