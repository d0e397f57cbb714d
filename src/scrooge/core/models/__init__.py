from scrooge.core.models.utxo import UTXO, Output
from scrooge.core.models.transaction import (
    Input,
    Transaction,
    MalformedTransactionError,
    FinalizedTransactionError,
)

__all__ = [
    "UTXO",
    "Output",
    "Input",
    "Transaction",
    "MalformedTransactionError",
    "FinalizedTransactionError",
]
