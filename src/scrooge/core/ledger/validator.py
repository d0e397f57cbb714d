"""
Single-transaction validation against a UTXO pool snapshot.

Checks run cheapest first: existence, duplicate inputs, signatures, output
values, then conservation. The pool is only read.
"""

import logging
from decimal import Decimal
from typing import Set

from scrooge.core.models.transaction import Transaction
from scrooge.core.models.utxo import UTXO
from scrooge.core.pool import UTXOPool
from scrooge.wallet.signer import Signer

logger = logging.getLogger(__name__)


class TransactionValidationError(Exception):
    """Base exception for transaction validation errors."""

    pass


class InputNotFoundError(TransactionValidationError):
    """Exception raised when a transaction input UTXO is not in the pool."""

    pass


class DoubleSpendError(TransactionValidationError):
    """Exception raised when a UTXO is claimed more than once."""

    pass


class InvalidSignatureError(TransactionValidationError):
    """Exception raised when an input signature is missing or invalid."""

    pass


class NegativeOutputError(TransactionValidationError):
    """Exception raised when a transaction output has a negative value."""

    pass


class InsufficientFundsError(TransactionValidationError):
    """Exception raised when transaction inputs do not cover outputs."""

    pass


def validate_transaction(tx: Transaction, pool: UTXOPool) -> Decimal:
    """Validate a transaction against a pool.

    Args:
        tx: Transaction to validate
        pool: Pool holding the outputs the transaction spends

    Returns:
        Decimal: The implicit fee, inputs minus outputs

    Raises:
        TransactionValidationError: If the transaction is invalid
        MalformedTransactionError: If signing data cannot be built for an input
    """
    claimed: Set[UTXO] = set()
    for utxo in tx.input_utxos():
        if not pool.contains(utxo):
            raise InputNotFoundError(f"Input UTXO not found: {utxo.key()}")
        if utxo in claimed:
            raise DoubleSpendError(f"Input UTXO claimed twice: {utxo.key()}")
        claimed.add(utxo)

    input_value = Decimal(0)
    for i, tx_input in enumerate(tx.inputs):
        spent = pool.get_tx_output(tx_input.utxo())
        if tx_input.signature is None:
            raise InvalidSignatureError(f"Input {i} is not signed")
        if not Signer.verify_for_address(
            message=tx.get_raw_data_to_sign(i),
            signature=tx_input.signature,
            address=spent.address,
        ):
            raise InvalidSignatureError(f"Invalid signature on input {i}")
        input_value += spent.value

    output_value = Decimal(0)
    for i, output in enumerate(tx.outputs):
        if output.value < 0:
            raise NegativeOutputError(f"Output {i} has negative value {output.value}")
        output_value += output.value

    if input_value < output_value:
        raise InsufficientFundsError(
            f"Insufficient funds: {input_value} < {output_value}"
        )

    return input_value - output_value


def is_valid_transaction(tx: Transaction, pool: UTXOPool) -> bool:
    """Return True if ``tx`` could be committed against ``pool``."""
    try:
        validate_transaction(tx, pool)
    except TransactionValidationError as e:
        logger.debug(f"Transaction {tx.hash} is invalid: {e}")
        return False
    return True
