"""Gateways — внешние коллабораторы: ledger-нода и verifier backend."""

from .base import (
    SUCCESS_RESULT_CODE,
    BookSide,
    CreatedSession,
    LedgerGateway,
    SubmitResult,
    VerifierGateway,
)
from .ledger import JsonRpcLedgerGateway, book_side
from .verifier import HttpVerifierGateway

__all__ = [
    "SUCCESS_RESULT_CODE",
    "BookSide",
    "CreatedSession",
    "LedgerGateway",
    "VerifierGateway",
    "SubmitResult",
    "JsonRpcLedgerGateway",
    "HttpVerifierGateway",
    "book_side",
]
