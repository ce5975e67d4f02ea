"""Тесты Eligibility Evaluator.

Coverage:
- OR-семантика: достаточно одного подходящего credential
- accepted / expiration / (issuer, type) — все три условия обязательны
- Пустая политика → допуск всех
- Диагностика EligibilityResult (reason_code)
- Детерминизм и идемпотентность
"""

from datetime import datetime, timedelta, timezone

import pytest

from src.core.domain import Credential, CredentialRequirement, to_ledger_time
from src.core.errors import ValidationError
from src.eligibility import (
    EligibilityEvaluator,
    evaluate_eligibility,
    is_eligible,
    normalize_policy,
    usable_credentials,
)

KYC_ISSUER = "rHb9CJAWyB4rj91VRWn96DkukG4bwdtyTh"
AML_ISSUER = "rPT1Sjq2YGrBMTttX4GZHjKu9dyfzbpAYe"
SUBJECT = "rf1BiGeXwwQoi8Z2ueFYTEXSwuJYfV2Jpn"
KYC_HEX = "4B59435F43524544"  # KYC_CRED
AML_HEX = "414D4C5F43524544"  # AML_CRED

NOW = datetime(2025, 6, 1, tzinfo=timezone.utc)


def make_credential(issuer=KYC_ISSUER, credential_type=KYC_HEX, accepted=True, expiration=None):
    return Credential(
        issuer=issuer,
        subject=SUBJECT,
        credential_type=credential_type,
        accepted=accepted,
        expiration=expiration,
    )


@pytest.fixture
def evaluator():
    return EligibilityEvaluator()


@pytest.fixture
def kyc_policy():
    return {(KYC_ISSUER, KYC_HEX)}


class TestSingleCredential:
    """isEligible([c], policy) ⇔ accepted ∧ ¬expired ∧ (issuer, type) ∈ policy."""

    @pytest.mark.parametrize(
        "accepted,expiration,issuer,credential_type,expected",
        [
            (True, None, KYC_ISSUER, KYC_HEX, True),
            (True, NOW + timedelta(days=1), KYC_ISSUER, KYC_HEX, True),
            (False, None, KYC_ISSUER, KYC_HEX, False),
            (True, NOW, KYC_ISSUER, KYC_HEX, False),
            (True, NOW - timedelta(seconds=1), KYC_ISSUER, KYC_HEX, False),
            (True, None, AML_ISSUER, KYC_HEX, False),
            (True, None, KYC_ISSUER, AML_HEX, False),
            (False, NOW - timedelta(days=1), AML_ISSUER, AML_HEX, False),
        ],
    )
    def test_truth_table(self, kyc_policy, accepted, expiration, issuer, credential_type, expected):
        credential = make_credential(issuer, credential_type, accepted, expiration)

        assert is_eligible([credential], kyc_policy, NOW) is expected

    def test_type_comparison_ignores_hex_case(self, kyc_policy):
        credential = make_credential(credential_type=KYC_HEX.lower())

        assert is_eligible([credential], kyc_policy, NOW)


class TestPolicySemantics:
    def test_empty_policy_admits_everyone(self, evaluator):
        result = evaluator.evaluate([], [], NOW)

        assert result.eligible
        assert result.reason_code == "open_domain"

    def test_or_across_policy_entries(self):
        """Любая из пар политики достаточна (KYC или AML)."""
        policy = {(KYC_ISSUER, KYC_HEX), (AML_ISSUER, AML_HEX)}

        assert is_eligible([make_credential(AML_ISSUER, AML_HEX)], policy, NOW)

    def test_or_across_held_credentials(self, kyc_policy):
        held = [make_credential(accepted=False), make_credential(AML_ISSUER, AML_HEX), make_credential()]

        assert is_eligible(held, kyc_policy, NOW)

    def test_policy_of_requirement_models(self):
        policy = [CredentialRequirement.from_text(KYC_ISSUER, "KYC_CRED")]

        assert is_eligible([make_credential()], policy, NOW)

    def test_normalize_policy(self):
        keys = normalize_policy([(KYC_ISSUER, KYC_HEX.lower()), CredentialRequirement(issuer=AML_ISSUER, credential_type=AML_HEX)])

        assert keys == frozenset({(KYC_ISSUER, KYC_HEX), (AML_ISSUER, AML_HEX)})

    def test_text_type_in_policy_key_rejected(self):
        """Tuple-ключ несёт hex; текстовый тип не может молча не совпасть."""
        with pytest.raises(ValidationError, match="must be hex"):
            is_eligible([make_credential()], {(KYC_ISSUER, "KYC_CRED")}, NOW)


class TestDiagnostics:
    """reason_code в EligibilityResult."""

    def test_matched(self, evaluator, kyc_policy):
        credential = make_credential()
        result = evaluator.evaluate([credential], kyc_policy, NOW)

        assert result.reason_code == "credential_matched"
        assert result.matched_credential == credential

    def test_no_credentials(self, evaluator, kyc_policy):
        result = evaluator.evaluate([], kyc_policy, NOW)

        assert not result.eligible
        assert result.reason_code == "no_credentials"

    def test_no_usable_credentials(self, evaluator, kyc_policy):
        held = [make_credential(accepted=False), make_credential(expiration=NOW - timedelta(days=1))]
        result = evaluator.evaluate(held, kyc_policy, NOW)

        assert result.reason_code == "no_usable_credentials"
        assert result.held_count == 2
        assert result.usable_count == 0

    def test_no_matching_credential(self, evaluator, kyc_policy):
        result = evaluator.evaluate([make_credential(AML_ISSUER, AML_HEX)], kyc_policy, NOW)

        assert result.reason_code == "no_matching_credential"
        assert result.matched_credential is None

    def test_functional_wrapper(self, kyc_policy):
        assert evaluate_eligibility([make_credential()], kyc_policy, NOW).eligible


class TestPurity:
    def test_idempotent(self, evaluator, kyc_policy):
        held = [make_credential(AML_ISSUER, AML_HEX), make_credential()]

        assert evaluator.evaluate(held, kyc_policy, NOW) == evaluator.evaluate(held, kyc_policy, NOW)

    def test_accepts_generators(self, kyc_policy):
        held = (c for c in [make_credential()])

        assert is_eligible(held, iter(kyc_policy), NOW)

    def test_usable_credentials_filter(self):
        held = [make_credential(), make_credential(accepted=False)]

        assert usable_credentials(held, NOW) == held[:1]


class TestTimezones:
    """Naive datetime трактуется как UTC, сравнение не падает."""

    def test_naive_expiration_is_utc(self):
        credential = make_credential(expiration=datetime(2099, 1, 1))

        assert credential.expiration.tzinfo is not None
        assert is_eligible([credential], {(KYC_ISSUER, KYC_HEX)})

    def test_naive_expiration_in_the_past(self, kyc_policy):
        credential = make_credential(expiration=datetime(2025, 5, 31, 23, 59))

        assert not is_eligible([credential], kyc_policy, NOW)

    def test_naive_now_against_ledger_expiration(self, kyc_policy):
        expiration = to_ledger_time(datetime(2025, 6, 1, 12, tzinfo=timezone.utc))
        credential = Credential.from_ledger_object(
            {
                "Issuer": KYC_ISSUER,
                "Subject": SUBJECT,
                "CredentialType": KYC_HEX,
                "Flags": 0x00010000,
                "Expiration": expiration,
            }
        )

        assert is_eligible([credential], kyc_policy, datetime(2025, 6, 1, 11))
        assert not is_eligible([credential], kyc_policy, datetime(2025, 6, 1, 12))

    def test_other_offset_normalized(self, kyc_policy):
        cet = timezone(timedelta(hours=2))
        credential = make_credential(expiration=datetime(2025, 6, 1, 2, 30, tzinfo=cet))

        assert credential.expiration == datetime(2025, 6, 1, 0, 30, tzinfo=timezone.utc)
        assert not is_eligible([credential], kyc_policy, NOW + timedelta(hours=1))
