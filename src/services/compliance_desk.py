"""
ComplianceDesk — оркестрация действий аккаунта в permissioned DEX

Связывает явно переданный контекст аккаунта и gateway handle с чистыми
компонентами core:

    intent → Eligibility Evaluator (gate) → Transaction Builder →
        JSON Schema contract → Ledger Gateway → Order Book Reconstructor

Desk не хранит ledger-состояния между вызовами: credential'ы, домены и
offer'ы читаются заново на каждую операцию. Payload строится
непосредственно перед отправкой и не переиспользуется.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional, Union

from src.builders import build_domain_set, build_offer_cancel, build_offer_create
from src.builders.common import TransactionPayload, require_account
from src.builders.credentials import encode_credential_type
from src.core.codec import currency_matches
from src.core.contracts import validate_transaction
from src.core.domain.amounts import CurrencyRef
from src.core.domain.credential import Credential, CredentialRequirement
from src.core.domain.order import OrderBook, Side, TradingPair
from src.core.domain.permissioned_domain import PermissionedDomain
from src.core.errors import NotEligibleError, TransactionFailedError, ValidationError
from src.core.math.amounts import parse_decimal
from src.eligibility import EligibilityEvaluator, EligibilityResult
from src.gateways.base import LedgerGateway, SubmitResult
from src.orderbook import OrderBookReconstructor

logger = logging.getLogger(__name__)

# Типы ledger-объектов для account_objects
CREDENTIAL_OBJECT_TYPE = "credential"
DOMAIN_OBJECT_TYPE = "permissioned_domain"


@dataclass(frozen=True)
class AccountContext:
    """Аккаунт, от имени которого действует desk (подпись вне core)."""
    address: str
    label: str = ""

    def __post_init__(self):
        require_account(self.address, "address")


def _book_side(ref: CurrencyRef) -> Union[str, Dict[str, str]]:
    if ref.is_native:
        return ref.code
    return {"currency": ref.identifier, "issuer": ref.issuer}


class ComplianceDesk:
    """Точка входа для действий аккаунта: чтение состояния, gate, отправка."""

    def __init__(
        self,
        account: AccountContext,
        ledger: LedgerGateway,
        evaluator: Optional[EligibilityEvaluator] = None,
        reconstructor: Optional[OrderBookReconstructor] = None,
    ):
        self.account = account
        self.ledger = ledger
        self.evaluator = evaluator or EligibilityEvaluator()
        self.reconstructor = reconstructor or OrderBookReconstructor()

    # =========================================================================
    # ЧТЕНИЕ LEDGER
    # =========================================================================

    def credentials(self, subject: Optional[str] = None) -> List[Credential]:
        """Credential'ы, выданные субъекту (default: аккаунт desk'а).

        account_objects возвращает и выданные аккаунтом credential'ы,
        поэтому результат фильтруется по Subject.
        """
        subject = subject or self.account.address
        objects = self.ledger.query_objects(subject, CREDENTIAL_OBJECT_TYPE)
        return [
            Credential.from_ledger_object(obj)
            for obj in objects
            if obj.get("LedgerEntryType", "Credential") == "Credential" and obj.get("Subject") == subject
        ]

    def domains(self, owner: Optional[str] = None) -> List[PermissionedDomain]:
        """Домены владельца (default: аккаунт desk'а)."""
        owner = owner or self.account.address
        objects = self.ledger.query_objects(owner, DOMAIN_OBJECT_TYPE)
        return [
            PermissionedDomain.from_ledger_object(obj)
            for obj in objects
            if obj.get("LedgerEntryType", "PermissionedDomain") == "PermissionedDomain"
        ]

    def domain(self, domain_id: str, owner: Optional[str] = None) -> PermissionedDomain:
        """Снапшот домена по id.

        Raises:
            ValidationError: домен не найден у владельца
        """
        for domain in self.domains(owner):
            if domain.domain_id and domain.domain_id.upper() == domain_id.upper():
                return domain
        raise ValidationError(
            "Permissioned domain not found",
            {"domain_id": domain_id, "owner": owner or self.account.address},
        )

    def token_balance(
        self,
        currency_code: str,
        issuer: str,
        account: Optional[str] = None,
    ) -> Optional[Decimal]:
        """Баланс токена по trust line (None, если trust line нет)."""
        account = account or self.account.address
        for line in self.ledger.query_trust_lines(account):
            currency = line.get("currency")
            if isinstance(currency, str) and currency_matches(currency, currency_code) and line.get("account") == issuer:
                return parse_decimal(line.get("balance") or "0", "balance")
        return None

    # =========================================================================
    # ELIGIBILITY
    # =========================================================================

    def check_eligibility(
        self,
        domain: PermissionedDomain,
        now: Optional[datetime] = None,
    ) -> EligibilityResult:
        """Eligibility аккаунта desk'а в домене по свежим credential'ам."""
        return self.evaluator.evaluate(self.credentials(), domain.accepted_credentials, now)

    def require_eligibility(
        self,
        domain: PermissionedDomain,
        now: Optional[datetime] = None,
    ) -> EligibilityResult:
        """
        Raises:
            NotEligibleError: у аккаунта нет подходящего credential
        """
        result = self.check_eligibility(domain, now)
        if not result.eligible:
            logger.info(
                "Refused %s in domain %s: %s",
                self.account.address,
                domain.domain_id,
                result.reason_code,
            )
            raise NotEligibleError(
                result.details,
                {"reason_code": result.reason_code, "domain_id": domain.domain_id or ""},
            )
        return result

    # =========================================================================
    # ОТПРАВКА
    # =========================================================================

    def submit(self, payload: TransactionPayload) -> SubmitResult:
        """Проверка контракта и отправка через ledger gateway.

        Raises:
            ContractViolationError: payload не соответствует контракту
            TransactionFailedError: result code отличен от tesSUCCESS
            GatewayError: сбой вызова ledger
        """
        validate_transaction(payload)
        if payload.get("Account") != self.account.address:
            raise ValidationError(
                "payload signer does not match the desk account",
                {"account": payload.get("Account"), "desk": self.account.address},
            )

        result = self.ledger.submit(payload)
        if not result.succeeded:
            raise TransactionFailedError(
                f"{payload['TransactionType']} was not applied",
                result_code=result.result_code,
                tx_hash=result.tx_hash or None,
            )
        logger.info("%s applied: %s", payload["TransactionType"], result.tx_hash)
        return result

    def place_order(
        self,
        side: Side,
        pair: TradingPair,
        quantity: Any,
        unit_price: Any,
        domain: Optional[PermissionedDomain] = None,
        now: Optional[datetime] = None,
    ) -> SubmitResult:
        """Размещение ордера; в домене — только после eligibility gate."""
        domain_id = None
        if domain is not None:
            self.require_eligibility(domain, now)
            domain_id = domain.domain_id

        payload = build_offer_create(self.account.address, side, pair, quantity, unit_price, domain_id)
        return self.submit(payload)

    def cancel_order(self, sequence: int) -> SubmitResult:
        return self.submit(build_offer_cancel(self.account.address, sequence))

    # =========================================================================
    # ORDER BOOK
    # =========================================================================

    def order_book(self, pair: TradingPair, domain_id: Optional[str] = None) -> OrderBook:
        """Свежий снапшот обеих сторон книги и его классификация."""
        base, quote = _book_side(pair.base), _book_side(pair.quote)
        offers = list(self.ledger.query_offers(quote, base, domain_id))
        offers.extend(self.ledger.query_offers(base, quote, domain_id))
        return self.reconstructor.classify(offers, pair, domain_id)

    # =========================================================================
    # READ-MODIFY-WRITE ПОЛИТИКИ ДОМЕНА
    # =========================================================================

    def add_accepted_credential(self, domain_id: str, issuer: str, type_text: str) -> TransactionPayload:
        """Полная замена политики: текущий набор из ledger + новая пара.

        Raises:
            ValidationError: пара уже принимается, домен не найден
        """
        domain = self.domain(domain_id)
        requirement = CredentialRequirement(
            issuer=require_account(issuer, "issuer"),
            credential_type=encode_credential_type(type_text),
        )
        if requirement.key in domain.policy:
            raise ValidationError(
                "credential is already accepted by the domain",
                {"issuer": issuer, "credential_type": type_text},
            )
        return build_domain_set(
            domain.owner,
            list(domain.accepted_credentials) + [requirement],
            domain_id=domain.domain_id,
        )

    def remove_accepted_credential(self, domain_id: str, issuer: str, type_text: str) -> TransactionPayload:
        """Полная замена политики: текущий набор из ledger без пары.

        Raises:
            ValidationError: пара не принимается доменом, домен не найден
        """
        domain = self.domain(domain_id)
        key = (issuer, encode_credential_type(type_text))
        remaining = [req for req in domain.accepted_credentials if req.key != key]
        if len(remaining) == len(domain.accepted_credentials):
            raise ValidationError(
                "credential is not accepted by the domain",
                {"issuer": issuer, "credential_type": type_text},
            )
        return build_domain_set(domain.owner, remaining, domain_id=domain.domain_id)
