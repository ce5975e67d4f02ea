"""Verification Session Controller — state machine off-chain identity proof.

States:
    CREATED → AWAITING_PRESENTATION → POLLING →
        {SUCCEEDED | FAILED | TIMED_OUT | CANCELLED}

- CREATED: из требований домена строится запрос, verifier gateway выдаёт
  session id и challenge (рендерится вызывающим кодом как QR)
- AWAITING_PRESENTATION → POLLING: статус опрашивается с фиксированным
  интервалом, одновременно в полёте не более одного запроса
- SUCCEEDED: gateway сообщил success И claims прошли локальную
  перепроверку; иначе downgrade в FAILED
- FAILED: gateway сообщил failure/cancel/expiry, GatewayError после
  единственного повтора, либо несоответствие claims политике
- TIMED_OUT: истёк потолок сессии, независимо от статуса gateway (ответ
  опроса, завершившегося после потолка, отбрасывается)
- CANCELLED: сработал CancellationToken (проверяется перед каждым опросом
  и перед каждым sleep)

Контроллер однопоточный и кооперативный: работает в потоке вызывающего,
сам ничего не планирует. Один экземпляр — один логический flow; для
параллельной верификации нескольких доменов нужны отдельные экземпляры.

Retry: из FAILED / TIMED_OUT / CANCELLED новая сессия запускается только
явным start() вызывающего кода с той же политикой.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Sequence

from src.core.config import VerificationConfig
from src.core.domain.verification import (
    AttributeRequirement,
    GatewaySessionState,
    VerificationStatus,
)
from src.core.errors import GatewayError, SessionStateError
from src.gateways.base import VerifierGateway

from .clock import CancellationToken, Clock, SystemClock
from .presentation import find_mismatches

logger = logging.getLogger(__name__)

# Статусы verifier backend (после upper())
GATEWAY_SUCCESS_STATUSES = frozenset({"SUCCESS", "SUCCEEDED"})
GATEWAY_FAILURE_STATUSES = frozenset({"FAILED", "FAILURE", "CANCELLED", "CANCELED", "EXPIRED", "REJECTED", "ERROR"})


@dataclass
class VerificationSession:
    """Эфемерное состояние сессии; принадлежит только контроллеру."""

    requirements: tuple[AttributeRequirement, ...]
    status: VerificationStatus = VerificationStatus.CREATED
    session_id: Optional[str] = None
    challenge: Optional[str] = None
    started_at: Optional[float] = None
    finished_at: Optional[float] = None
    poll_count: int = 0
    result_claims: Optional[Mapping[str, Any]] = None
    reason_code: str = ""
    reason: str = ""
    gateway_status: Optional[str] = None


@dataclass(frozen=True)
class VerificationOutcome:
    """Терминальный результат сессии для отображения.

    reason — человекочитаемая причина, reason_code — машиночитаемая.
    """

    status: VerificationStatus
    reason_code: str
    reason: str
    session_id: Optional[str]
    claims: Optional[Mapping[str, Any]]
    elapsed_sec: float
    poll_count: int
    mismatches: tuple[str, ...] = field(default_factory=tuple)

    @property
    def succeeded(self) -> bool:
        return self.status == VerificationStatus.SUCCEEDED


class VerificationController:
    """Контроллер одной verification session (на один flow)."""

    def __init__(
        self,
        gateway: VerifierGateway,
        requirements: Sequence[AttributeRequirement],
        config: Optional[VerificationConfig] = None,
        clock: Optional[Clock] = None,
        cancel_token: Optional[CancellationToken] = None,
    ):
        """
        Args:
            gateway: verifier gateway
            requirements: требования домена (неизменны на всё время жизни)
            config: интервал опроса, потолок, backoff
            clock: источник времени (default: SystemClock)
            cancel_token: кооперативная отмена (default: новый токен)
        """
        if not requirements:
            raise ValueError("verification requires at least one attribute requirement")

        self.gateway = gateway
        self.requirements = tuple(requirements)
        self.config = config or VerificationConfig()
        self.clock = clock or SystemClock()
        self.cancel_token = cancel_token or CancellationToken()

        self._session: Optional[VerificationSession] = None
        self._mismatches: tuple[str, ...] = ()

    # -------------------------------------------------------------------------
    # Публичный интерфейс
    # -------------------------------------------------------------------------

    @property
    def status(self) -> Optional[VerificationStatus]:
        return self._session.status if self._session else None

    @property
    def session_id(self) -> Optional[str]:
        return self._session.session_id if self._session else None

    @property
    def challenge(self) -> Optional[str]:
        return self._session.challenge if self._session else None

    def start(self) -> str:
        """CREATED → AWAITING_PRESENTATION.

        Returns:
            challenge для рендеринга QR-кода

        Повторный start() после FAILED / TIMED_OUT / CANCELLED начинает
        новую сессию с той же политикой; успешная сессия повторно не
        запускается.

        Raises:
            SessionStateError: сессия активна или уже SUCCEEDED
            GatewayError: verifier не создал сессию (сессия → FAILED)
        """
        if self._session is not None:
            status = self._session.status
            if not status.is_terminal or status == VerificationStatus.SUCCEEDED:
                raise SessionStateError(
                    "Cannot start a new session from the current state",
                    {"status": status.value},
                )
            logger.info("Restarting verification after %s", status.value)
            self.discard()

        self._session = VerificationSession(requirements=self.requirements)
        self._mismatches = ()
        logger.info("Verification session created with %d requirements", len(self.requirements))

        try:
            created = self.gateway.create_session(self.requirements)
        except GatewayError as e:
            self._session.started_at = self.clock.monotonic()
            self._finish(VerificationStatus.FAILED, "session_create_failed", f"Verifier rejected session creation: {e.message}")
            raise

        self._session.session_id = created.session_id
        self._session.challenge = created.challenge
        self._session.started_at = self.clock.monotonic()
        self._transition(VerificationStatus.AWAITING_PRESENTATION, "awaiting_presentation", "Waiting for wallet presentation")
        return created.challenge

    def advance(self) -> VerificationStatus:
        """Один шаг state machine: проверка отмены/таймаута и не более одного опроса.

        Returns:
            статус после шага (терминальный статус возвращается как есть)
        """
        session = self._require_session()
        if session.status.is_terminal:
            return session.status
        if session.status == VerificationStatus.CREATED:
            raise SessionStateError("Session was not started", {"status": session.status.value})

        if self._check_cancel_or_timeout():
            return session.status

        if session.status == VerificationStatus.AWAITING_PRESENTATION:
            self._transition(VerificationStatus.POLLING, "polling", "Polling verifier for presentation")

        state = self._poll_with_retry()
        if state is None:
            return session.status

        # Ответ, пришедший после потолка, не засчитывается
        if self._elapsed() >= self.config.timeout_sec:
            session.gateway_status = state.status.strip().upper()
            self._finish_timed_out()
            return session.status

        self._apply_gateway_state(state)
        return session.status

    def run(self) -> VerificationOutcome:
        """Блокирующий цикл: advance() → sleep → ... до терминального статуса.

        Сон никогда не выходит за потолок сессии, поэтому TIMED_OUT
        наступает ровно на потолке.
        """
        session = self._require_session()
        if session.status == VerificationStatus.CREATED:
            raise SessionStateError("Session was not started", {"status": session.status.value})

        while not self.advance().is_terminal:
            if self._check_cancel_or_timeout():
                break
            self.clock.sleep(min(self.config.poll_interval_sec, self._remaining()))

        return self.outcome()

    def cancel(self) -> None:
        """Запрос отмены; применяется на следующей проверке."""
        self.cancel_token.cancel()

    def outcome(self) -> VerificationOutcome:
        """Терминальный результат текущей сессии.

        Raises:
            SessionStateError: сессия ещё не завершена
        """
        session = self._require_session()
        if not session.status.is_terminal:
            raise SessionStateError("Session is not terminal yet", {"status": session.status.value})

        return VerificationOutcome(
            status=session.status,
            reason_code=session.reason_code,
            reason=session.reason,
            session_id=session.session_id,
            claims=session.result_claims if session.status == VerificationStatus.SUCCEEDED else None,
            elapsed_sec=self._elapsed(session.finished_at),
            poll_count=session.poll_count,
            mismatches=self._mismatches,
        )

    def discard(self) -> VerificationOutcome:
        """Изъятие терминальной сессии; после этого возможен новый start().

        Токен отмены (в том числе переданный вызывающим) сбрасывается на
        месте: повторная попытка не завершится сразу, а cancel() через тот
        же токен продолжит действовать на новую сессию.
        """
        result = self.outcome()
        self._session = None
        self._mismatches = ()
        self.cancel_token.reset()
        return result

    # -------------------------------------------------------------------------
    # Внутренняя логика
    # -------------------------------------------------------------------------

    def _require_session(self) -> VerificationSession:
        if self._session is None:
            raise SessionStateError("No verification session; call start() first")
        return self._session

    def _elapsed(self, at: Optional[float] = None) -> float:
        session = self._require_session()
        if session.started_at is None:
            return 0.0
        now = at if at is not None else self.clock.monotonic()
        return now - session.started_at

    def _remaining(self) -> float:
        return max(self.config.timeout_sec - self._elapsed(), 0.0)

    def _check_cancel_or_timeout(self) -> bool:
        """Переход в CANCELLED/TIMED_OUT, если пора. True — сессия завершена."""
        if self.cancel_token.is_cancelled:
            self._finish(VerificationStatus.CANCELLED, "cancelled", "Verification was cancelled")
            return True
        if self._elapsed() >= self.config.timeout_sec:
            self._finish_timed_out()
            return True
        return False

    def _finish_timed_out(self) -> None:
        self._finish(
            VerificationStatus.TIMED_OUT,
            "timed_out",
            f"No presentation received within {self.config.timeout_sec:g} seconds",
        )

    def _poll_with_retry(self) -> Optional[GatewaySessionState]:
        """Один опрос; при GatewayError — один повтор после backoff.

        Returns:
            состояние gateway или None, если сессия завершилась
        """
        session = self._require_session()
        try:
            session.poll_count += 1
            return self.gateway.get_session(session.session_id)
        except GatewayError as first_error:
            logger.warning("Verifier poll failed for %s, retrying once: %s", session.session_id, first_error)

            if self.cancel_token.is_cancelled:
                self._finish(VerificationStatus.CANCELLED, "cancelled", "Verification was cancelled")
                return None
            self.clock.sleep(min(self.config.retry_backoff_sec, self._remaining()))
            if self._check_cancel_or_timeout():
                return None

            try:
                session.poll_count += 1
                return self.gateway.get_session(session.session_id)
            except GatewayError as second_error:
                self._finish(
                    VerificationStatus.FAILED,
                    "gateway_error",
                    f"Verifier could not be reached: {second_error.message}",
                )
                return None

    def _apply_gateway_state(self, state: GatewaySessionState) -> None:
        session = self._require_session()
        status = state.status.strip().upper()
        session.gateway_status = status

        if status in GATEWAY_SUCCESS_STATUSES:
            mismatches = find_mismatches(self.requirements, state.claims)
            if mismatches:
                self._mismatches = tuple(mismatches)
                logger.warning(
                    "Verifier reported success for %s but claims failed local checks: %s",
                    session.session_id,
                    "; ".join(mismatches),
                )
                self._finish(
                    VerificationStatus.FAILED,
                    "policy_mismatch",
                    "The presented identity does not meet this domain's requirements",
                )
                return
            session.result_claims = dict(state.claims or {})
            self._finish(VerificationStatus.SUCCEEDED, "verified", "Identity verified")
        elif status in GATEWAY_FAILURE_STATUSES:
            self._finish(
                VerificationStatus.FAILED,
                f"verifier_{status.lower()}",
                f"Verifier reported the presentation as {status.lower()}",
            )

    def _transition(self, new_status: VerificationStatus, reason_code: str, reason: str) -> None:
        session = self._require_session()
        logger.info(
            "Verification %s: %s → %s (%s)",
            session.session_id or "<new>",
            session.status.value,
            new_status.value,
            reason_code,
        )
        session.status = new_status
        session.reason_code = reason_code
        session.reason = reason

    def _finish(self, new_status: VerificationStatus, reason_code: str, reason: str) -> None:
        self._transition(new_status, reason_code, reason)
        self._require_session().finished_at = self.clock.monotonic()
