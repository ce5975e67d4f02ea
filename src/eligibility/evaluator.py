"""Eligibility Evaluator — допуск аккаунта в permissioned domain.

Правило (OR-семантика):
- Аккаунт допущен, если хотя бы один его credential одновременно
  * accepted
  * не истёк
  * (issuer, type) входит в политику домена
- Пустая политика означает "открыт для всех" → всегда допущен

Evaluator чистый: без side effects, детерминирован, идемпотентен.
Момент времени передаётся явно (now), чтобы результат не зависел от часов.
"""

import re
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional, Tuple, Union

from src.core.domain.credential import Credential, CredentialRequirement
from src.core.domain.ledger_time import ensure_utc, utc_now
from src.core.errors import ValidationError

# Ключ политики (issuer, type_hex): тип уже в hex, как в ledger.
# Текстовые типы передаются через CredentialRequirement.from_text().
PolicyKey = Tuple[str, str]
PolicyEntry = Union[PolicyKey, CredentialRequirement]

_HEX_RE = re.compile(r"^(?:[0-9A-Fa-f]{2})+$")


@dataclass(frozen=True)
class EligibilityResult:
    """Результат проверки eligibility."""

    eligible: bool
    reason_code: str

    # Credential, обеспечивший допуск (None для открытого домена или отказа)
    matched_credential: Optional[Credential]

    # Диагностика
    held_count: int
    usable_count: int
    details: str


def normalize_policy(policy: Iterable[PolicyEntry]) -> frozenset[PolicyKey]:
    """Политика → множество ключей (issuer, TYPE_HEX_UPPER).

    Raises:
        ValidationError: тип в tuple-ключе не hex (текстовый тип)
    """
    keys = set()
    for entry in policy:
        if isinstance(entry, CredentialRequirement):
            keys.add(entry.key)
        else:
            issuer, type_hex = entry
            if not isinstance(type_hex, str) or not _HEX_RE.match(type_hex):
                raise ValidationError(
                    "policy key credential type must be hex; wrap text types with CredentialRequirement.from_text",
                    {"issuer": issuer, "credential_type": type_hex},
                )
            keys.add((issuer, type_hex.upper()))
    return frozenset(keys)


def usable_credentials(held: Iterable[Credential], now: datetime) -> list[Credential]:
    """Credential'ы, пригодные для eligibility (accepted и не истёкшие)."""
    return [c for c in held if c.is_usable(now)]


class EligibilityEvaluator:
    """Проверка членства аккаунта в домене по его credential'ам.

    Порядок проверок:
    1. Пустая политика → допуск (open_domain)
    2. Поиск первого пригодного credential, ключ которого в политике
    3. Иначе отказ с уточнением причины (нет credential'ов / не приняты
       или истекли / не та пара issuer-type)
    """

    def evaluate(
        self,
        held: Iterable[Credential],
        policy: Iterable[PolicyEntry],
        now: Optional[datetime] = None,
    ) -> EligibilityResult:
        """Оценка eligibility.

        Args:
            held: credential'ы аккаунта (как прочитаны из ledger)
            policy: принимаемые доменом CredentialRequirement или (issuer, type_hex)
            now: момент проверки (default: текущее UTC)

        Returns:
            EligibilityResult с решением и диагностикой
        """
        held = list(held)
        keys = normalize_policy(policy)
        moment = ensure_utc(now) if now is not None else utc_now()
        usable = usable_credentials(held, moment)

        if not keys:
            return EligibilityResult(
                eligible=True,
                reason_code="open_domain",
                matched_credential=None,
                held_count=len(held),
                usable_count=len(usable),
                details="Domain accepts any account (empty credential policy)",
            )

        for credential in usable:
            if credential.key in keys:
                return EligibilityResult(
                    eligible=True,
                    reason_code="credential_matched",
                    matched_credential=credential,
                    held_count=len(held),
                    usable_count=len(usable),
                    details=f"Matched {credential.type_text} issued by {credential.issuer}",
                )

        if not held:
            reason_code, details = "no_credentials", "Account holds no credentials"
        elif not usable:
            reason_code = "no_usable_credentials"
            details = f"All {len(held)} credentials are unaccepted or expired"
        else:
            reason_code = "no_matching_credential"
            details = f"None of {len(usable)} usable credentials is accepted by the domain"

        return EligibilityResult(
            eligible=False,
            reason_code=reason_code,
            matched_credential=None,
            held_count=len(held),
            usable_count=len(usable),
            details=details,
        )


def is_eligible(
    held: Iterable[Credential],
    policy: Iterable[PolicyEntry],
    now: Optional[datetime] = None,
) -> bool:
    """Булев вид EligibilityEvaluator.evaluate()."""
    return evaluate_eligibility(held, policy, now).eligible


def evaluate_eligibility(
    held: Iterable[Credential],
    policy: Iterable[PolicyEntry],
    now: Optional[datetime] = None,
) -> EligibilityResult:
    """Функциональная обёртка над EligibilityEvaluator.evaluate()."""
    return EligibilityEvaluator().evaluate(held, policy, now)
