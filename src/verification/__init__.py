"""Verification — off-chain identity proof перед входом в permissioned domain.

- presentation: требования к атрибутам, presentation request, перепроверка claims
- state_machine: VerificationController (CREATED → ... → терминальный статус)
- clock: инъецируемые Clock и CancellationToken
"""

from .clock import CancellationToken, Clock, ManualClock, SystemClock
from .presentation import (
    ATTRIBUTE_ALIASES,
    REQUIRED_VC_TYPE,
    build_presentation_request,
    canonical_attribute_name,
    claim_value,
    find_mismatches,
    is_truthy_claim,
    reconcile_claims,
    requirements_from_policy,
)
from .state_machine import (
    GATEWAY_FAILURE_STATUSES,
    GATEWAY_SUCCESS_STATUSES,
    VerificationController,
    VerificationOutcome,
    VerificationSession,
)

__all__ = [
    # Clock
    "Clock",
    "SystemClock",
    "ManualClock",
    "CancellationToken",
    # Presentation
    "ATTRIBUTE_ALIASES",
    "REQUIRED_VC_TYPE",
    "canonical_attribute_name",
    "requirements_from_policy",
    "build_presentation_request",
    "claim_value",
    "is_truthy_claim",
    "find_mismatches",
    "reconcile_claims",
    # State machine
    "GATEWAY_SUCCESS_STATUSES",
    "GATEWAY_FAILURE_STATUSES",
    "VerificationController",
    "VerificationOutcome",
    "VerificationSession",
]
