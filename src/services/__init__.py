"""Services — оркестрация компонентов core вокруг явного контекста аккаунта."""

from .compliance_desk import AccountContext, ComplianceDesk

__all__ = [
    "AccountContext",
    "ComplianceDesk",
]
