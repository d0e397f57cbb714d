"""
Transaction validation and batch resolution for the Scrooge ledger.
"""
from scrooge.core.ledger.validator import validate_transaction, is_valid_transaction, \
    TransactionValidationError, InputNotFoundError, DoubleSpendError, InvalidSignatureError, \
    NegativeOutputError, InsufficientFundsError
from scrooge.core.ledger.handler import TxHandler, BatchResult, resolve_batch, \
    apply_transactions, canonical_order

__all__ = [
    "TxHandler",
    "BatchResult",
    "resolve_batch",
    "apply_transactions",
    "canonical_order",
    "validate_transaction",
    "is_valid_transaction",
    "TransactionValidationError",
    "InputNotFoundError",
    "DoubleSpendError",
    "InvalidSignatureError",
    "NegativeOutputError",
    "InsufficientFundsError"
]
