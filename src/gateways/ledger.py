"""JSON-RPC ledger gateway поверх requests.

Подпись транзакций вне core: gateway получает signer — callable,
превращающий payload в подписанный tx_blob. Без signer'а submit()
недоступен, чтение ledger работает.

Все чтения идут по validated ledger; постраничные ответы (marker)
собираются целиком.
"""

import logging
from typing import Any, Callable, Dict, List, Optional

import requests

from src.core.config import GatewaySettings
from src.core.errors import GatewayError

from .base import BookSide, SubmitResult

logger = logging.getLogger(__name__)

Signer = Callable[[Dict[str, Any]], str]

# Защита от бесконечной пагинации при зацикленном marker
MAX_PAGES = 100
PAGE_LIMIT = 200


def book_side(spec: BookSide) -> Dict[str, str]:
    """'XRP' или {"currency", "issuer"} → сторона книги для book_offers."""
    if isinstance(spec, str):
        return {"currency": spec}
    return dict(spec)


class JsonRpcLedgerGateway:
    """Ledger gateway: JSON-RPC по HTTP POST к rippled-совместимой ноде."""

    def __init__(
        self,
        settings: Optional[GatewaySettings] = None,
        signer: Optional[Signer] = None,
        session: Optional[requests.Session] = None,
    ):
        self.settings = settings or GatewaySettings()
        self.signer = signer
        self.session = session or requests.Session()

    # -------------------------------------------------------------------------
    # Транспорт
    # -------------------------------------------------------------------------

    def request(self, method: str, params: Dict[str, Any]) -> Dict[str, Any]:
        """Один JSON-RPC вызов; возвращает поле result.

        Raises:
            GatewayError: сетевой сбой, HTTP-ошибка, невалидный JSON или
                ответ со status == "error"
        """
        body = {"method": method, "params": [params]}
        logger.debug("Ledger RPC %s %s", method, params)
        try:
            response = self.session.post(
                self.settings.ledger_rpc_url,
                json=body,
                timeout=self.settings.http_timeout_sec,
            )
            response.raise_for_status()
            payload = response.json()
        except requests.RequestException as e:
            raise GatewayError(f"Ledger RPC {method} failed", {"error": str(e)}) from e
        except ValueError as e:
            raise GatewayError(f"Ledger RPC {method} returned invalid JSON", {"error": str(e)}) from e

        result = payload.get("result") if isinstance(payload, dict) else None
        if not isinstance(result, dict):
            raise GatewayError(f"Ledger RPC {method} returned no result")
        if result.get("status") == "error":
            raise GatewayError(
                f"Ledger RPC {method} returned an error",
                {
                    "error": result.get("error", "unknown"),
                    "error_message": result.get("error_message", ""),
                },
            )
        return result

    def _paginate(self, method: str, params: Dict[str, Any], items_key: str) -> List[Dict[str, Any]]:
        items: List[Dict[str, Any]] = []
        request_params = dict(params)
        for _ in range(MAX_PAGES):
            result = self.request(method, request_params)
            items.extend(result.get(items_key) or [])
            marker = result.get("marker")
            if marker is None:
                return items
            request_params = {**params, "marker": marker}
        raise GatewayError(f"Ledger RPC {method} exceeded {MAX_PAGES} pages", {"items": len(items)})

    # -------------------------------------------------------------------------
    # LedgerGateway
    # -------------------------------------------------------------------------

    def submit(self, payload: Dict[str, Any]) -> SubmitResult:
        """Подпись injected signer'ом и отправка.

        Result code, отличный от tesSUCCESS, не является исключением
        здесь: решение принимает вызывающий код.
        """
        if self.signer is None:
            raise GatewayError(
                "No signer configured for ledger submission",
                {"transaction_type": payload.get("TransactionType")},
            )
        tx_blob = self.signer(payload)
        result = self.request("submit", {"tx_blob": tx_blob})

        tx_json = result.get("tx_json") or {}
        submitted = SubmitResult(
            result_code=str(result.get("engine_result", "")),
            tx_hash=str(tx_json.get("hash") or result.get("hash") or ""),
        )
        if not submitted.succeeded:
            logger.warning(
                "%s submission returned %s (%s)",
                payload.get("TransactionType"),
                submitted.result_code,
                result.get("engine_result_message", ""),
            )
        return submitted

    def query_objects(self, account: str, object_type: str) -> List[Dict[str, Any]]:
        """account_objects с фильтром по типу ("credential", "permissioned_domain", "offer")."""
        params = {
            "account": account,
            "ledger_index": "validated",
            "type": object_type,
            "limit": PAGE_LIMIT,
        }
        return self._paginate("account_objects", params, "account_objects")

    def query_offers(
        self,
        taker_gets: BookSide,
        taker_pays: BookSide,
        domain_id: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """book_offers для одной стороны книги (опционально в пределах домена)."""
        params: Dict[str, Any] = {
            "taker_gets": book_side(taker_gets),
            "taker_pays": book_side(taker_pays),
            "ledger_index": "validated",
            "limit": PAGE_LIMIT,
        }
        if domain_id is not None:
            params["domain"] = domain_id
        return self._paginate("book_offers", params, "offers")

    def query_trust_lines(self, account: str) -> List[Dict[str, Any]]:
        """account_lines: trust line'ы аккаунта."""
        params = {"account": account, "ledger_index": "validated", "limit": PAGE_LIMIT}
        return self._paginate("account_lines", params, "lines")
