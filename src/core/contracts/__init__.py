"""
Contract Validation Module

JSON Schema контракты transaction payload'ов.
"""

from .validators import (
    SUPPORTED_TRANSACTION_TYPES,
    TRANSACTION_SCHEMAS,
    ContractValidator,
    SchemaLoader,
    TransactionValidator,
    contract_errors,
    schema_name_for,
    validate_transaction,
)

__all__ = [
    # Classes
    "SchemaLoader",
    "ContractValidator",
    "TransactionValidator",
    # Registry
    "SUPPORTED_TRANSACTION_TYPES",
    "TRANSACTION_SCHEMAS",
    "schema_name_for",
    # Functions
    "contract_errors",
    "validate_transaction",
]
