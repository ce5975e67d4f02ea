"""Eligibility — допуск аккаунтов в permissioned domains по credential'ам."""

from .evaluator import (
    EligibilityEvaluator,
    EligibilityResult,
    evaluate_eligibility,
    is_eligible,
    normalize_policy,
    usable_credentials,
)

__all__ = [
    "EligibilityEvaluator",
    "EligibilityResult",
    "evaluate_eligibility",
    "is_eligible",
    "normalize_policy",
    "usable_credentials",
]
