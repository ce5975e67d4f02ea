"""
Domain models and value objects.

Contains fundamental domain entities: CurrencyRef, Credential,
PermissionedDomain, TradingPair, RawOffer, OrderBook, AttributeRequirement.
"""

from src.core.domain.amounts import (
    CurrencyRef,
    RawAmount,
    amount_currency,
    amount_value,
)
from src.core.domain.credential import (
    LSF_ACCEPTED,
    Credential,
    CredentialRequirement,
)
from src.core.domain.ledger_time import (
    LEDGER_EPOCH_OFFSET,
    from_ledger_time,
    to_ledger_time,
    ensure_utc,
    utc_now,
)
from src.core.domain.order import (
    OrderBook,
    PricedOrder,
    RawOffer,
    Side,
    TradingPair,
)
from src.core.domain.permissioned_domain import PermissionedDomain, find_domain_id
from src.core.domain.verification import (
    AttributeRequirement,
    GatewaySessionState,
    RequirementKind,
    VerificationStatus,
)

__all__ = [
    # Amounts
    "CurrencyRef",
    "RawAmount",
    "amount_value",
    "amount_currency",
    # Ledger time
    "LEDGER_EPOCH_OFFSET",
    "to_ledger_time",
    "from_ledger_time",
    "ensure_utc",
    "utc_now",
    # Credentials
    "LSF_ACCEPTED",
    "Credential",
    "CredentialRequirement",
    # Domains
    "PermissionedDomain",
    "find_domain_id",
    # Orders
    "Side",
    "TradingPair",
    "RawOffer",
    "PricedOrder",
    "OrderBook",
    # Verification
    "RequirementKind",
    "VerificationStatus",
    "AttributeRequirement",
    "GatewaySessionState",
]
