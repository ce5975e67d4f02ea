"""Gateway protocols — внешние коллабораторы core.

Core потребляет ledger и verifier только через эти интерфейсы; сетевой
транспорт, подпись и финальность находятся за ними. Любой сбой вызова
сообщается как GatewayError и никогда не повторяется молча.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Protocol, Sequence, Union

from src.core.domain.verification import AttributeRequirement, GatewaySessionState

# Каноничный код успешного применения транзакции
SUCCESS_RESULT_CODE = "tesSUCCESS"

# Спецификация книги для book_offers: "XRP" или {"currency", "issuer"}
BookSide = Union[str, Dict[str, str]]


@dataclass(frozen=True)
class SubmitResult:
    """Результат отправки транзакции."""

    result_code: str
    tx_hash: str

    @property
    def succeeded(self) -> bool:
        return self.result_code == SUCCESS_RESULT_CODE


@dataclass(frozen=True)
class CreatedSession:
    """Созданная verifier-сессия: id и challenge для QR-кода."""

    session_id: str
    challenge: str


class LedgerGateway(Protocol):
    """Доступ к ledger-ноде."""

    def submit(self, payload: Dict[str, Any]) -> SubmitResult:
        ...

    def query_objects(self, account: str, object_type: str) -> List[Dict[str, Any]]:
        ...

    def query_offers(
        self,
        taker_gets: BookSide,
        taker_pays: BookSide,
        domain_id: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        ...

    def query_trust_lines(self, account: str) -> List[Dict[str, Any]]:
        ...


class VerifierGateway(Protocol):
    """Доступ к verifier backend."""

    def create_session(self, requirements: Sequence[AttributeRequirement]) -> CreatedSession:
        ...

    def get_session(self, session_id: str) -> GatewaySessionState:
        ...
