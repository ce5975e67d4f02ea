"""Тесты Verification Session Controller.

Coverage:
- CREATED → AWAITING_PRESENTATION → POLLING → терминальные статусы
- Локальная перепроверка claims (downgrade SUCCEEDED → FAILED)
- Таймаут ровно на потолке
- Кооперативная отмена (CANCELLED ≠ TIMED_OUT)
- GatewayError: один повтор с backoff, затем FAILED
- Retry только вызывающим кодом, с той же политикой
"""

import logging
from typing import List, Optional

import pytest

from src.core.config import VerificationConfig
from src.core.domain import AttributeRequirement, GatewaySessionState, RequirementKind, VerificationStatus
from src.core.errors import GatewayError, SessionStateError
from src.gateways import CreatedSession
from src.verification import (
    CancellationToken,
    ManualClock,
    VerificationController,
    requirements_from_policy,
)


class FakeVerifierGateway:
    """Scripted verifier: каждый get_session() берёт следующий элемент сценария.

    Элемент — GatewaySessionState, GatewayError (будет выброшен) или None
    (pending). Когда сценарий исчерпан, возвращается последний элемент.
    """

    def __init__(self, script: Optional[list] = None, create_error: Optional[GatewayError] = None):
        self.script = list(script or [])
        self.create_error = create_error
        self.created: List[tuple] = []
        self.polled: List[str] = []
        self.on_poll = None

    def create_session(self, requirements):
        if self.create_error is not None:
            raise self.create_error
        session_id = f"session-{len(self.created) + 1}"
        self.created.append(tuple(requirements))
        return CreatedSession(session_id=session_id, challenge=f"https://verify.example/{session_id}")

    def get_session(self, session_id):
        self.polled.append(session_id)
        if self.on_poll is not None:
            self.on_poll()
        item = self.script.pop(0) if len(self.script) > 1 else (self.script[0] if self.script else None)
        if isinstance(item, GatewayError):
            raise item
        return item or GatewaySessionState(status="PENDING")


def success(claims):
    return GatewaySessionState(status="SUCCESS", claims=claims)


# =============================================================================
# FIXTURES
# =============================================================================


@pytest.fixture
def requirements():
    return requirements_from_policy({"ageOver18": True, "nationalities": "CH"})


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def config():
    return VerificationConfig(poll_interval_sec=2.0, timeout_sec=10.0, retry_backoff_sec=1.0)


def make_controller(gateway, requirements, clock, config, token=None):
    return VerificationController(gateway, requirements, config=config, clock=clock, cancel_token=token)


# =============================================================================
# TESTS
# =============================================================================


class TestLifecycle:
    def test_start_returns_challenge(self, requirements, clock, config):
        gateway = FakeVerifierGateway()
        controller = make_controller(gateway, requirements, clock, config)

        challenge = controller.start()

        assert challenge == "https://verify.example/session-1"
        assert controller.status == VerificationStatus.AWAITING_PRESENTATION
        assert controller.session_id == "session-1"
        assert gateway.created == [tuple(requirements)]

    def test_first_advance_enters_polling(self, requirements, clock, config):
        controller = make_controller(FakeVerifierGateway(), requirements, clock, config)
        controller.start()

        assert controller.advance() == VerificationStatus.POLLING

    def test_success_with_matching_claims(self, requirements, clock, config):
        gateway = FakeVerifierGateway([None, success({"age_over_18": "true", "issuing_country": "ch"})])
        controller = make_controller(gateway, requirements, clock, config)
        controller.start()

        outcome = controller.run()

        assert outcome.succeeded
        assert outcome.reason_code == "verified"
        assert outcome.claims["issuing_country"] == "ch"
        assert outcome.poll_count == 2
        assert clock.sleeps == [2.0]

    def test_gateway_failure_status(self, requirements, clock, config):
        gateway = FakeVerifierGateway([GatewaySessionState(status="EXPIRED")])
        controller = make_controller(gateway, requirements, clock, config)
        controller.start()

        outcome = controller.run()

        assert outcome.status == VerificationStatus.FAILED
        assert outcome.reason_code == "verifier_expired"
        assert outcome.reason != outcome.reason_code
        assert outcome.claims is None

    def test_advance_before_start(self, requirements, clock, config):
        controller = make_controller(FakeVerifierGateway(), requirements, clock, config)

        with pytest.raises(SessionStateError):
            controller.advance()

    def test_outcome_before_terminal(self, requirements, clock, config):
        controller = make_controller(FakeVerifierGateway(), requirements, clock, config)
        controller.start()

        with pytest.raises(SessionStateError):
            controller.outcome()

    def test_requirements_required(self, clock, config):
        with pytest.raises(ValueError):
            make_controller(FakeVerifierGateway(), [], clock, config)

    def test_transitions_logged(self, requirements, clock, config, caplog):
        gateway = FakeVerifierGateway([GatewaySessionState(status="FAILED")])
        controller = make_controller(gateway, requirements, clock, config)

        with caplog.at_level(logging.INFO, logger="src.verification.state_machine"):
            controller.start()
            controller.run()

        assert "AWAITING_PRESENTATION → POLLING" in caplog.text
        assert "POLLING → FAILED" in caplog.text


class TestLocalReverification:
    """Gateway success ≠ соответствие политике домена."""

    def test_age_false_string_downgrades_to_failed(self, clock, config):
        requirements = requirements_from_policy({"ageOver18": True})
        gateway = FakeVerifierGateway([success({"age_over_18": "false"})])
        controller = make_controller(gateway, requirements, clock, config)
        controller.start()

        outcome = controller.run()

        assert outcome.status == VerificationStatus.FAILED
        assert outcome.reason_code == "policy_mismatch"
        assert outcome.claims is None
        assert len(outcome.mismatches) == 1

    def test_wrong_country_downgrades_to_failed(self, requirements, clock, config):
        gateway = FakeVerifierGateway([success({"age_over_18": True, "issuing_country": "DE"})])
        controller = make_controller(gateway, requirements, clock, config)
        controller.start()

        assert controller.run().reason_code == "policy_mismatch"

    def test_success_without_claims_fails(self, requirements, clock, config):
        gateway = FakeVerifierGateway([GatewaySessionState(status="SUCCESS")])
        controller = make_controller(gateway, requirements, clock, config)
        controller.start()

        assert controller.run().status == VerificationStatus.FAILED


class TestTimeout:
    def test_times_out_exactly_at_ceiling(self, requirements, clock, config):
        """Gateway никогда не отвечает терминально → TIMED_OUT ровно на 10с."""
        controller = make_controller(FakeVerifierGateway(), requirements, clock, config)
        controller.start()

        outcome = controller.run()

        assert outcome.status == VerificationStatus.TIMED_OUT
        assert outcome.elapsed_sec == pytest.approx(10.0)
        assert clock.monotonic() == pytest.approx(10.0)
        assert outcome.poll_count == 5

    def test_last_sleep_is_clipped_to_ceiling(self, requirements, clock):
        config = VerificationConfig(poll_interval_sec=4.0, timeout_sec=10.0)
        controller = make_controller(FakeVerifierGateway(), requirements, clock, config)
        controller.start()

        outcome = controller.run()

        assert clock.sleeps == [4.0, 4.0, 2.0]
        assert outcome.elapsed_sec == pytest.approx(10.0)

    def test_timeout_wins_over_pending_poll(self, requirements, clock, config):
        controller = make_controller(FakeVerifierGateway(), requirements, clock, config)
        controller.start()
        clock.advance(10.0)

        assert controller.advance() == VerificationStatus.TIMED_OUT
        assert controller.outcome().poll_count == 0

    def test_success_arriving_after_ceiling_is_discarded(self, requirements, clock):
        """Опрос длился дольше потолка: SUCCESS не засчитывается."""
        gateway = FakeVerifierGateway([success({"age_over_18": True, "issuing_country": "CH"})])
        gateway.on_poll = lambda: clock.advance(10.0)
        controller = make_controller(gateway, requirements, clock, VerificationConfig(timeout_sec=5.0))
        controller.start()

        outcome = controller.run()

        assert outcome.status == VerificationStatus.TIMED_OUT
        assert outcome.claims is None
        assert outcome.poll_count == 1

    def test_success_within_ceiling_after_slow_poll(self, requirements, clock):
        gateway = FakeVerifierGateway([success({"age_over_18": True, "issuing_country": "CH"})])
        gateway.on_poll = lambda: clock.advance(4.0)
        controller = make_controller(gateway, requirements, clock, VerificationConfig(timeout_sec=5.0))
        controller.start()

        assert controller.run().status == VerificationStatus.SUCCEEDED


class TestCancellation:
    def test_cancel_before_poll(self, requirements, clock, config):
        token = CancellationToken()
        gateway = FakeVerifierGateway()
        controller = make_controller(gateway, requirements, clock, config, token)
        controller.start()

        token.cancel()

        assert controller.advance() == VerificationStatus.CANCELLED
        assert gateway.polled == []

    def test_cancel_during_run_stops_before_sleep(self, requirements, clock, config):
        token = CancellationToken()
        gateway = FakeVerifierGateway()
        gateway.on_poll = token.cancel
        controller = make_controller(gateway, requirements, clock, config, token)
        controller.start()

        outcome = controller.run()

        assert outcome.status == VerificationStatus.CANCELLED
        assert outcome.reason_code == "cancelled"
        assert clock.sleeps == []
        assert len(gateway.polled) == 1

    def test_cancel_is_distinct_from_timeout(self, requirements, clock, config):
        controller = make_controller(FakeVerifierGateway(), requirements, clock, config)
        controller.start()
        clock.advance(10.0)
        controller.cancel()

        assert controller.advance() == VerificationStatus.CANCELLED


class TestGatewayErrors:
    def test_single_retry_recovers(self, requirements, clock, config):
        claims = {"age_over_18": True, "issuing_country": "CH"}
        gateway = FakeVerifierGateway([GatewayError("boom"), success(claims)])
        controller = make_controller(gateway, requirements, clock, config)
        controller.start()

        assert controller.advance() == VerificationStatus.SUCCEEDED
        assert clock.sleeps == [1.0]
        assert len(gateway.polled) == 2

    def test_second_error_fails_session(self, requirements, clock, config, caplog):
        gateway = FakeVerifierGateway([GatewayError("boom"), GatewayError("still down")])
        controller = make_controller(gateway, requirements, clock, config)
        controller.start()

        with caplog.at_level(logging.WARNING, logger="src.verification.state_machine"):
            status = controller.advance()

        assert status == VerificationStatus.FAILED
        assert controller.outcome().reason_code == "gateway_error"
        assert "still down" in controller.outcome().reason
        assert len(gateway.polled) == 2
        assert "retrying once" in caplog.text

    def test_create_failure_marks_failed_and_raises(self, requirements, clock, config):
        gateway = FakeVerifierGateway(create_error=GatewayError("verifier down"))
        controller = make_controller(gateway, requirements, clock, config)

        with pytest.raises(GatewayError):
            controller.start()

        assert controller.status == VerificationStatus.FAILED
        assert controller.outcome().reason_code == "session_create_failed"


class TestRetry:
    """Повтор — только по инициативе вызывающего кода."""

    def test_restart_after_timeout_uses_same_policy(self, requirements, clock, config):
        gateway = FakeVerifierGateway()
        controller = make_controller(gateway, requirements, clock, config)
        controller.start()
        assert controller.run().status == VerificationStatus.TIMED_OUT

        controller.start()

        assert controller.session_id == "session-2"
        assert controller.status == VerificationStatus.AWAITING_PRESENTATION
        assert gateway.created[0] == gateway.created[1]

    def test_no_automatic_retry(self, requirements, clock, config):
        gateway = FakeVerifierGateway([GatewaySessionState(status="FAILED")])
        controller = make_controller(gateway, requirements, clock, config)
        controller.start()
        controller.run()

        assert controller.advance() == VerificationStatus.FAILED
        assert len(gateway.created) == 1

    def test_cannot_restart_active_session(self, requirements, clock, config):
        controller = make_controller(FakeVerifierGateway(), requirements, clock, config)
        controller.start()

        with pytest.raises(SessionStateError):
            controller.start()

    def test_cannot_restart_succeeded_session(self, requirements, clock, config):
        gateway = FakeVerifierGateway([success({"age_over_18": True, "issuing_country": "CH"})])
        controller = make_controller(gateway, requirements, clock, config)
        controller.start()
        controller.run()

        with pytest.raises(SessionStateError):
            controller.start()

    def test_restart_after_cancel_resets_token(self, requirements, clock, config):
        token = CancellationToken()
        controller = make_controller(FakeVerifierGateway(), requirements, clock, config, token)
        controller.start()
        token.cancel()
        controller.advance()

        controller.start()

        assert controller.cancel_token is token
        assert not token.is_cancelled
        assert controller.advance() == VerificationStatus.POLLING

        # Токен вызывающего продолжает управлять новой сессией
        token.cancel()

        assert controller.advance() == VerificationStatus.CANCELLED

    def test_discard_returns_outcome(self, requirements, clock, config):
        controller = make_controller(FakeVerifierGateway([GatewaySessionState(status="REJECTED")]), requirements, clock, config)
        controller.start()
        controller.run()

        outcome = controller.discard()

        assert outcome.reason_code == "verifier_rejected"
        assert controller.status is None


class TestIndependentFlows:
    def test_two_controllers_do_not_share_state(self, requirements, config):
        gateway_a = FakeVerifierGateway([success({"age_over_18": True, "issuing_country": "CH"})])
        gateway_b = FakeVerifierGateway([GatewaySessionState(status="FAILED")])
        a = make_controller(gateway_a, requirements, ManualClock(), config)
        b = make_controller(gateway_b, requirements, ManualClock(), config)
        a.start()
        b.start()

        assert a.run().succeeded
        assert b.run().status == VerificationStatus.FAILED


def test_manual_requirements_accepted(clock, config):
    requirement = AttributeRequirement(name="family_name", kind=RequirementKind.DISCLOSE)
    gateway = FakeVerifierGateway([success({"family_name": "Muster"})])
    controller = make_controller(gateway, [requirement], clock, config)
    controller.start()

    assert controller.run().succeeded
