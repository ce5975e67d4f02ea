"""Builders — чистые функции, собирающие ledger transaction payload'ы.

- credentials: CredentialCreate / CredentialAccept / CredentialDelete
- domains: PermissionedDomainSet / PermissionedDomainDelete
- issuer: AccountSet (флаги), TrustSet, Payment, bundle выпуска токена
- orders: OfferCreate / OfferCancel
"""

from .common import TransactionPayload
from .credentials import (
    build_credential_accept,
    build_credential_create,
    build_credential_delete,
    encode_credential_type,
)
from .domains import MAX_ACCEPTED_CREDENTIALS, build_domain_delete, build_domain_set
from .issuer import (
    ASF_ALLOW_TRUSTLINE_CLAWBACK,
    ASF_DEFAULT_RIPPLE,
    ASF_GLOBAL_FREEZE,
    TF_CLEAR_NO_RIPPLE,
    TF_REQUIRE_AUTH,
    IssuerFlags,
    build_issuer_flags,
    build_payment,
    build_token_issuance_bundle,
    build_trust_set,
)
from .orders import build_offer_cancel, build_offer_create

__all__ = [
    "TransactionPayload",
    # Credentials
    "build_credential_create",
    "build_credential_accept",
    "build_credential_delete",
    "encode_credential_type",
    # Domains
    "MAX_ACCEPTED_CREDENTIALS",
    "build_domain_set",
    "build_domain_delete",
    # Issuer
    "TF_REQUIRE_AUTH",
    "TF_CLEAR_NO_RIPPLE",
    "ASF_GLOBAL_FREEZE",
    "ASF_DEFAULT_RIPPLE",
    "ASF_ALLOW_TRUSTLINE_CLAWBACK",
    "IssuerFlags",
    "build_issuer_flags",
    "build_trust_set",
    "build_payment",
    "build_token_issuance_bundle",
    # Orders
    "build_offer_create",
    "build_offer_cancel",
]
