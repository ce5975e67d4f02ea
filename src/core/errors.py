"""
Иерархия исключений PermiX DEX core.

Все исключения наследуются от PermixError, чтобы вызывающий код мог
перехватить их одним except. Каждое исключение несёт человекочитаемое
сообщение (message) и машиночитаемые детали (details).

Таксономия:
- EncodingError: некорректный код валюты или сумма
- ValidationError: структурно некорректный вход builder'а
- MalformedOfferError: неклассифицируемый/вырожденный offer (пропускается)
- GatewayError: сбой вызова ledger/verifier
- PolicyMismatchError: локальная перепроверка claims не прошла
"""

from typing import Any, Dict, Optional


class PermixError(Exception):
    """Базовое исключение для всех ошибок PermiX."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message


class EncodingError(PermixError):
    """Некорректный код валюты, hex-строка или числовая сумма."""


class ValidationError(PermixError):
    """Структурно некорректный вход transaction builder'а."""


class ContractViolationError(ValidationError):
    """Payload не соответствует своему JSON Schema контракту."""


class MalformedOfferError(PermixError):
    """Offer нельзя классифицировать (нулевое количество, битая сумма)."""


class GatewayError(PermixError):
    """Сбой сетевого вызова к ledger-ноде или verifier backend."""


class TransactionFailedError(GatewayError):
    """Ledger вернул result code, отличный от tesSUCCESS."""

    def __init__(
        self,
        message: str,
        result_code: str,
        tx_hash: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        merged = {"result_code": result_code, **(details or {})}
        if tx_hash:
            merged["tx_hash"] = tx_hash
        super().__init__(message, merged)
        self.result_code = result_code
        self.tx_hash = tx_hash


class PolicyMismatchError(PermixError):
    """Gateway сообщил success, но claims не удовлетворяют политике."""


class NotEligibleError(PermixError):
    """Аккаунт не имеет подходящего credential для домена."""


class SessionStateError(PermixError):
    """Операция контроллера недопустима в текущем состоянии сессии."""
