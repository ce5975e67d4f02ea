"""Order book — реконструкция стакана из ledger offer'ов."""

from .reconstructor import OrderBookReconstructor, classify

__all__ = [
    "OrderBookReconstructor",
    "classify",
]
