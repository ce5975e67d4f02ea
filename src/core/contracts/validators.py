"""
JSON Schema Contract Validators

Каждый transaction payload перед отправкой проверяется против формального
контракта своего TransactionType (Draft 2020-12).

Схемы (contracts/schema/) именуются snake_case от TransactionType:
- credential_create.json / credential_accept.json / credential_delete.json
- permissioned_domain_set.json / permissioned_domain_delete.json
- account_set.json / trust_set.json / payment.json
- offer_create.json / offer_cancel.json
"""

import json
import re
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

from jsonschema import Draft202012Validator, SchemaError, ValidationError
from jsonschema.exceptions import best_match

from src.core.errors import ContractViolationError

DEFAULT_SCHEMA_DIR = Path(__file__).resolve().parents[3] / "contracts" / "schema"

SUPPORTED_TRANSACTION_TYPES = (
    "CredentialCreate",
    "CredentialAccept",
    "CredentialDelete",
    "PermissionedDomainSet",
    "PermissionedDomainDelete",
    "AccountSet",
    "TrustSet",
    "Payment",
    "OfferCreate",
    "OfferCancel",
)


def schema_name_for(transaction_type: str) -> str:
    """'PermissionedDomainSet' → 'permissioned_domain_set'."""
    return re.sub(r"(?<!^)(?=[A-Z])", "_", transaction_type).lower()


# TransactionType → имя схемы
TRANSACTION_SCHEMAS: Dict[str, str] = {t: schema_name_for(t) for t in SUPPORTED_TRANSACTION_TYPES}


# =============================================================================
# SCHEMA LOADER
# =============================================================================


class SchemaLoader:
    """
    Загрузка и meta-валидация схем с кэшем по имени.

    schema_dir по умолчанию: contracts/schema/ в корне проекта.
    """

    def __init__(self, schema_dir: Optional[Path] = None):
        self.schema_dir = Path(schema_dir) if schema_dir is not None else DEFAULT_SCHEMA_DIR
        if not self.schema_dir.is_dir():
            raise RuntimeError(f"Schema directory not found: {self.schema_dir}")
        self._cache: Dict[str, Dict[str, Any]] = {}

    def load_schema(self, schema_name: str) -> Dict[str, Any]:
        """
        Raises:
            FileNotFoundError: файла схемы нет
            ValueError: схема не проходит meta-валидацию
        """
        cached = self._cache.get(schema_name)
        if cached is not None:
            return cached

        path = self.schema_dir / f"{schema_name}.json"
        if not path.is_file():
            raise FileNotFoundError(f"Schema not found: {path}")

        schema = json.loads(path.read_text(encoding="utf-8"))
        try:
            Draft202012Validator.check_schema(schema)
        except SchemaError as e:
            raise ValueError(f"Invalid JSON Schema in {path.name}: {e.message}") from e

        self._cache[schema_name] = schema
        return schema


_loader: Optional[SchemaLoader] = None
_validators: Dict[str, "TransactionValidator"] = {}


def _default_loader() -> SchemaLoader:
    global _loader
    if _loader is None:
        _loader = SchemaLoader()
    return _loader


# =============================================================================
# CONTRACT VALIDATORS
# =============================================================================


class ContractValidator:
    """Скомпилированный Draft 2020-12 валидатор одной схемы."""

    def __init__(self, schema_name: str, loader: Optional[SchemaLoader] = None):
        self.schema_name = schema_name
        self.schema = (loader or _default_loader()).load_schema(schema_name)
        self.validator = Draft202012Validator(self.schema)

    def validate(self, data: Dict[str, Any]) -> None:
        """
        Raises:
            jsonschema.ValidationError: наиболее релевантное нарушение
        """
        error = best_match(self.validator.iter_errors(data))
        if error is not None:
            raise error

    def is_valid(self, data: Dict[str, Any]) -> bool:
        return self.validator.is_valid(data)

    def iter_errors(self, data: Dict[str, Any]) -> Iterator[ValidationError]:
        return self.validator.iter_errors(data)


class TransactionValidator(ContractValidator):
    """Валидатор payload'а конкретного TransactionType."""

    def __init__(self, transaction_type: str, loader: Optional[SchemaLoader] = None):
        if transaction_type not in TRANSACTION_SCHEMAS:
            raise ValueError(f"No contract for transaction type: {transaction_type}")
        self.transaction_type = transaction_type
        super().__init__(TRANSACTION_SCHEMAS[transaction_type], loader)


def _validator_for(transaction_type: str) -> TransactionValidator:
    validator = _validators.get(transaction_type)
    if validator is None:
        validator = _validators[transaction_type] = TransactionValidator(transaction_type)
    return validator


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================


def contract_errors(payload: Dict[str, Any]) -> List[str]:
    """Все нарушения контракта в виде 'path: message' (пусто — payload валиден)."""
    transaction_type = payload.get("TransactionType")
    if transaction_type not in TRANSACTION_SCHEMAS:
        return [f"<root>: unknown TransactionType {transaction_type!r}"]
    errors = sorted(_validator_for(transaction_type).iter_errors(payload), key=lambda e: list(e.absolute_path))
    return [f"{'/'.join(str(p) for p in e.absolute_path) or '<root>'}: {e.message}" for e in errors]


def validate_transaction(payload: Dict[str, Any]) -> None:
    """
    Валидация transaction payload'а против контракта его типа.

    Raises:
        ContractViolationError: тип неизвестен или payload нарушает схему
    """
    transaction_type = payload.get("TransactionType")
    if transaction_type not in TRANSACTION_SCHEMAS:
        raise ContractViolationError(
            "Payload has no known TransactionType",
            {"transaction_type": transaction_type},
        )

    validator = _validator_for(transaction_type)
    errors = list(validator.iter_errors(payload))
    if not errors:
        return

    error = best_match(errors)
    path = "/".join(str(p) for p in error.absolute_path) or "<root>"
    raise ContractViolationError(
        f"{transaction_type} payload violates its contract: {error.message}",
        {"path": path, "violations": len(errors)},
    ) from error
