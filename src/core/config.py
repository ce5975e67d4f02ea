"""
Конфигурация PermiX core

Конфиги компонентов — frozen dataclass'ы с дефолтами; настройки сетевых
gateway'ев дополнительно читаются из окружения.

Переменные окружения:
- PERMIX_LEDGER_RPC_URL: JSON-RPC endpoint ledger-ноды
- PERMIX_VERIFIER_URL: базовый URL verifications API
- PERMIX_HTTP_TIMEOUT_SEC: таймаут HTTP-запроса (секунды)
"""

import os
from dataclasses import dataclass
from typing import Mapping, Optional

DEFAULT_LEDGER_RPC_URL = "https://s.devnet.rippletest.net:51234"
DEFAULT_VERIFIER_URL = "https://beta-verifier.edel-id.ch/management/api/verifications"


@dataclass(frozen=True)
class VerificationConfig:
    """Конфигурация Verification Session Controller.

    - poll_interval_sec: пауза между опросами статуса
    - timeout_sec: потолок длительности сессии (после него TIMED_OUT)
    - retry_backoff_sec: пауза перед единственным повтором после GatewayError
    """
    poll_interval_sec: float = 2.0
    timeout_sec: float = 300.0
    retry_backoff_sec: float = 1.0

    def __post_init__(self):
        if self.poll_interval_sec <= 0:
            raise ValueError(f"poll_interval_sec must be positive, got {self.poll_interval_sec}")
        if self.timeout_sec <= 0:
            raise ValueError(f"timeout_sec must be positive, got {self.timeout_sec}")
        if self.retry_backoff_sec < 0:
            raise ValueError(f"retry_backoff_sec must be non-negative, got {self.retry_backoff_sec}")


@dataclass(frozen=True)
class TrustLineDefaults:
    """Дефолты trust line: лимит 500M токенов."""
    limit: str = "500000000"


@dataclass(frozen=True)
class GatewaySettings:
    """Endpoint'ы и таймауты сетевых gateway'ев."""
    ledger_rpc_url: str = DEFAULT_LEDGER_RPC_URL
    verifier_url: str = DEFAULT_VERIFIER_URL
    http_timeout_sec: float = 20.0

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "GatewaySettings":
        """Чтение настроек из окружения (пустые значения → дефолты)."""
        env = os.environ if environ is None else environ
        timeout_raw = (env.get("PERMIX_HTTP_TIMEOUT_SEC") or "").strip()
        try:
            timeout = float(timeout_raw) if timeout_raw else cls.http_timeout_sec
        except ValueError as e:
            raise ValueError(f"PERMIX_HTTP_TIMEOUT_SEC must be a number, got {timeout_raw!r}") from e
        if timeout <= 0:
            raise ValueError(f"PERMIX_HTTP_TIMEOUT_SEC must be positive, got {timeout}")

        return cls(
            ledger_rpc_url=(env.get("PERMIX_LEDGER_RPC_URL") or "").strip() or DEFAULT_LEDGER_RPC_URL,
            verifier_url=(env.get("PERMIX_VERIFIER_URL") or "").strip().rstrip("/") or DEFAULT_VERIFIER_URL,
            http_timeout_sec=timeout,
        )
