"""
Verification — требования к атрибутам identity-proof сессии

Домен формулирует требования (возраст 18+, страна выдачи, ФИО), из них
строится presentation request для verifier и по ним же локально
перепроверяются возвращённые claims.
"""

from enum import Enum
from typing import Any, Mapping, Optional

from pydantic import BaseModel, Field, model_validator


class RequirementKind(str, Enum):
    """Тип проверки атрибута"""

    # Атрибут должен быть раскрыт (значение не проверяется)
    DISCLOSE = "disclose"
    # Булевый атрибут должен быть истинным (age_over_18)
    BOOLEAN = "boolean"
    # Значение атрибута должно совпасть с ожидаемым (issuing_country)
    EQUALS = "equals"


class VerificationStatus(str, Enum):
    """Состояние verification session"""

    CREATED = "CREATED"
    AWAITING_PRESENTATION = "AWAITING_PRESENTATION"
    POLLING = "POLLING"
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"
    TIMED_OUT = "TIMED_OUT"
    CANCELLED = "CANCELLED"

    @property
    def is_terminal(self) -> bool:
        return self in _TERMINAL_STATUSES


_TERMINAL_STATUSES = frozenset(
    {
        VerificationStatus.SUCCEEDED,
        VerificationStatus.FAILED,
        VerificationStatus.TIMED_OUT,
        VerificationStatus.CANCELLED,
    }
)


class AttributeRequirement(BaseModel):
    """Требование к одному атрибуту (name — канонический snake_case)."""

    name: str = Field(..., min_length=1, description="Канонический путь claim")
    kind: RequirementKind = Field(..., description="Тип проверки")
    expected: Optional[str] = Field(None, description="Ожидаемое значение для EQUALS")
    label: Optional[str] = Field(None, description="Отображаемое имя")

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def validate_expected(self) -> "AttributeRequirement":
        if self.kind == RequirementKind.EQUALS and not self.expected:
            raise ValueError(f"EQUALS requirement {self.name} needs an expected value")
        if self.kind != RequirementKind.EQUALS and self.expected is not None:
            raise ValueError(f"{self.kind.value} requirement {self.name} must not set expected")
        return self


class GatewaySessionState(BaseModel):
    """Ответ verifier gateway на запрос состояния сессии."""

    status: str = Field(..., min_length=1, description="Статус в терминах verifier")
    claims: Optional[Mapping[str, Any]] = Field(None, description="Раскрытые claims")

    model_config = {"frozen": True}
