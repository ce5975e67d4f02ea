"""
Presentation — требования к атрибутам, presentation request и локальная
перепроверка claims

Gateway success означает "предъявлен валидный proof", а не "proof
удовлетворяет ЭТОЙ политике". Поэтому после success claims сверяются
с требованиями локально:
- BOOLEAN (age_over_18): принимаются только true, "true", 1, "yes"
- EQUALS (issuing_country): сравнение после trim + casefold; для
  списков достаточно совпадения любого элемента
- DISCLOSE (family_name): атрибут должен присутствовать и быть непустым
"""

import re
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from src.core.domain.verification import AttributeRequirement, RequirementKind
from src.core.errors import PolicyMismatchError, ValidationError


# =============================================================================
# КАНОНИЗАЦИЯ ИМЁН АТРИБУТОВ
# =============================================================================

# Исторические имена атрибутов → канонические claim paths
ATTRIBUTE_ALIASES: Dict[str, str] = {
    "nationalities": "issuing_country",
    "country": "issuing_country",
}

ATTRIBUTE_LABELS: Dict[str, str] = {
    "family_name": "Family name",
    "given_name": "Given name",
    "age_over_18": "Age over 18",
    "issuing_country": "Issuing Country",
}

# Тип verifiable credential, который обязан предъявить кошелёк
REQUIRED_VC_TYPE = "betaid-sdjwt"

_BOOLEAN_ATTRIBUTE_RE = re.compile(r"^age_over_\d+$")
_CAMEL_BOUNDARY_RE = re.compile(r"(?<=[a-z])(?=[A-Z0-9])")

_TRUE_STRINGS = frozenset({"true", "yes"})


def canonical_attribute_name(name: str) -> str:
    """
    camelCase / snake_case имя атрибута → канонический claim path.

    Examples:
        >>> canonical_attribute_name("ageOver18")
        'age_over_18'
        >>> canonical_attribute_name("nationalities")
        'issuing_country'
    """
    snake = _CAMEL_BOUNDARY_RE.sub("_", name.strip()).lower()
    return ATTRIBUTE_ALIASES.get(snake, snake)


def requirements_from_policy(policy: Mapping[str, Any]) -> List[AttributeRequirement]:
    """
    Требования домена → список AttributeRequirement.

    Значения политики:
    - False / None у булевых атрибутов: атрибут не запрашивается
    - True: BOOLEAN для age_over_N, иначе DISCLOSE
    - строка: EQUALS с ожидаемым значением

    Raises:
        ValidationError: неподдерживаемое значение требования или
            конфликтующие требования к одному атрибуту
    """
    requirements: Dict[str, AttributeRequirement] = {}

    for raw_name, value in policy.items():
        name = canonical_attribute_name(raw_name)
        label = ATTRIBUTE_LABELS.get(name)

        if value is False or value is None:
            continue
        if value is True:
            kind = RequirementKind.BOOLEAN if _BOOLEAN_ATTRIBUTE_RE.match(name) else RequirementKind.DISCLOSE
            requirement = AttributeRequirement(name=name, kind=kind, label=label)
        elif isinstance(value, str) and value.strip():
            requirement = AttributeRequirement(
                name=name, kind=RequirementKind.EQUALS, expected=value.strip(), label=label
            )
        else:
            raise ValidationError(
                "attribute requirement must be a boolean or a non-empty string",
                {"attribute": raw_name, "value": value},
            )

        existing = requirements.get(name)
        if existing is not None and existing != requirement:
            raise ValidationError(
                "conflicting requirements for the same attribute",
                {"attribute": name},
            )
        requirements[name] = requirement

    return list(requirements.values())


# =============================================================================
# PRESENTATION REQUEST
# =============================================================================


def build_presentation_request(
    requirements: Sequence[AttributeRequirement],
    accepted_issuer_dids: Iterable[str] = (),
) -> Dict[str, Any]:
    """
    Тело запроса на создание verification (presentation definition).

    Каждое требование становится полем input descriptor'а; тип VC
    фиксируется константным фильтром.
    """
    fields: List[Dict[str, Any]] = []
    for requirement in requirements:
        label = requirement.label or requirement.name.replace("_", " ").capitalize()
        fields.append(
            {
                "id": requirement.name,
                "name": label,
                "purpose": f"Provide {label.lower()}.",
                "path": [f"$.{requirement.name}"],
                "filter": None,
            }
        )

    fields.append(
        {
            "id": "vct",
            "name": "VC Type",
            "purpose": "Ensure correct VC type.",
            "path": ["$.vct"],
            "filter": {"type": "string", "const": REQUIRED_VC_TYPE},
        }
    )

    return {
        "accepted_issuer_dids": list(accepted_issuer_dids),
        "presentation_definition": {
            "id": "00000000-0000-0000-0000-000000000000",
            "input_descriptors": [
                {
                    "id": "11111111-1111-1111-1111-111111111111",
                    "format": {
                        "vc+sd-jwt": {
                            "sd-jwt_alg_values": ["ES256"],
                            "kb-jwt_alg_values": ["ES256"],
                        }
                    },
                    "constraints": {"fields": fields, "limit_disclosure": None, "format": {}},
                }
            ],
        },
    }


# =============================================================================
# ЛОКАЛЬНАЯ ПЕРЕПРОВЕРКА CLAIMS
# =============================================================================


def claim_value(claims: Mapping[str, Any], name: str) -> Optional[Any]:
    """Значение claim по пути (точки — вложенность: "address.country")."""
    current: Any = claims
    for part in name.split("."):
        if not isinstance(current, Mapping) or part not in current:
            return None
        current = current[part]
    return current


def is_truthy_claim(value: Any) -> bool:
    """Канонические true-кодировки: true, "true", 1, "yes"."""
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value == 1
    if isinstance(value, str):
        return value.strip().casefold() in _TRUE_STRINGS
    return False


def _normalize(value: Any) -> str:
    return str(value).strip().casefold()


def _matches_expected(value: Any, expected: str) -> bool:
    if isinstance(value, (list, tuple)):
        return any(_matches_expected(item, expected) for item in value)
    return value is not None and _normalize(value) == _normalize(expected)


def find_mismatches(
    requirements: Iterable[AttributeRequirement],
    claims: Optional[Mapping[str, Any]],
) -> List[str]:
    """Список нарушенных требований (пустой — claims удовлетворяют политике)."""
    claims = claims or {}
    mismatches: List[str] = []

    for requirement in requirements:
        value = claim_value(claims, requirement.name)

        if requirement.kind == RequirementKind.BOOLEAN:
            if not is_truthy_claim(value):
                mismatches.append(f"{requirement.name}: expected true, got {value!r}")
        elif requirement.kind == RequirementKind.EQUALS:
            if not _matches_expected(value, requirement.expected):
                mismatches.append(f"{requirement.name}: expected {requirement.expected!r}, got {value!r}")
        elif value is None or (isinstance(value, str) and not value.strip()):
            mismatches.append(f"{requirement.name}: not disclosed")

    return mismatches


def reconcile_claims(
    requirements: Iterable[AttributeRequirement],
    claims: Optional[Mapping[str, Any]],
) -> None:
    """
    Локальная перепроверка claims против требований.

    Raises:
        PolicyMismatchError: хотя бы одно требование не выполнено
    """
    mismatches = find_mismatches(requirements, claims)
    if mismatches:
        raise PolicyMismatchError(
            "Presented claims do not satisfy the domain policy",
            {"mismatches": "; ".join(mismatches)},
        )
