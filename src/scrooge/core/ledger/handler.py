"""
Batch resolution for the Scrooge ledger.

This module turns an unordered batch of candidate transactions into the
largest set that can be committed together, in commit order, and derives the
pool that results from committing it. Transactions in a batch may spend each
other's outputs; such a transaction waits for a later pass, once its producer
has been committed.
"""

import logging
from typing import Dict, Iterable, List, Optional, Set

from pydantic import BaseModel, Field

from scrooge.core.config import config, BatchOrdering, ClaimPolicy
from scrooge.core.ledger.validator import (
    TransactionValidationError,
    is_valid_transaction,
    validate_transaction,
)
from scrooge.core.models.transaction import MalformedTransactionError, Transaction
from scrooge.core.models.utxo import UTXO
from scrooge.core.pool import UTXOPool

logger = logging.getLogger(__name__)

CLAIMED_IN_BATCH = "input already claimed by another transaction in this batch"


class BatchResult(BaseModel):
    """Outcome of resolving one batch against one pool."""

    accepted: List[Transaction] = Field(default_factory=list, description="Committed, in commit order")
    pool: UTXOPool = Field(..., description="Pool after committing the accepted transactions")
    rejected: Dict[str, str] = Field(default_factory=dict, description="Rejection reason by tx hash")
    unresolved: List[str] = Field(default_factory=list, description="Hashes left waiting on a producer")
    passes: int = Field(0, description="Number of passes executed")

    model_config = {"arbitrary_types_allowed": True}

    def accepted_hashes(self) -> List[str]:
        return [tx.hash for tx in self.accepted]


def canonical_order(batch: Iterable[Transaction], ordering: BatchOrdering = "hash") -> List[Transaction]:
    """Drop repeated hashes and put the batch in the order it is attempted.

    Raises:
        MalformedTransactionError: If a transaction has not been finalized
        ValueError: If ``ordering`` is unknown
    """
    unique: Dict[str, Transaction] = {}
    for tx in batch:
        if not tx.is_finalized():
            raise MalformedTransactionError("Batch contains a transaction with no hash")
        if tx.hash in unique:
            logger.debug(f"Dropping repeated transaction {tx.hash}")
            continue
        unique[tx.hash] = tx

    if ordering == "presented":
        return list(unique.values())
    if ordering == "hash":
        return [unique[tx_hash] for tx_hash in sorted(unique)]
    raise ValueError(f"Unknown batch ordering: {ordering}")


def apply_transactions(pool: UTXOPool, txs: Iterable[Transaction]) -> UTXOPool:
    """Return a new pool with ``txs`` committed on top of ``pool``.

    Every input of ``txs`` must be in ``pool`` and no two of them may share
    an input; ``pool`` itself is left untouched.
    """
    new_pool = UTXOPool(pool)
    for tx in txs:
        for utxo in tx.input_utxos():
            new_pool.remove_utxo(utxo)
        for utxo, output in tx.outputs_as_utxos():
            new_pool.add_utxo(utxo, output)
    return new_pool


def resolve_batch(
    batch: Iterable[Transaction],
    pool: UTXOPool,
    ordering: BatchOrdering = "hash",
    claim_policy: ClaimPolicy = "on_acceptance",
) -> BatchResult:
    """Resolve a batch into the transactions that can be committed.

    Each pass walks the working batch once. A transaction spending an output
    already claimed in the pass is rejected; one spending an output of a
    transaction still in the working batch is deferred to the next pass; the
    rest are validated against the pool as it stood at the start of the pass.
    Accepted transactions are then committed to a new pool, and the deferred
    ones form the next working batch. Resolution stops when nothing is left or
    a pass neither accepts nor rejects anything.

    Args:
        batch: Candidate transactions, all finalized
        pool: Pool to validate against; not modified
        ordering: ``"hash"`` to attempt transactions in hash order,
            ``"presented"`` to keep the order of ``batch``
        claim_policy: ``"on_acceptance"`` to claim outputs only for accepted
            transactions, ``"on_attempt"`` to also claim the outputs of
            transactions that fail validation

    Returns:
        BatchResult: Accepted transactions, resulting pool and rejections

    Raises:
        MalformedTransactionError: If a transaction cannot be hashed or signed
    """
    if claim_policy not in ("on_acceptance", "on_attempt"):
        raise ValueError(f"Unknown claim policy: {claim_policy}")

    working = canonical_order(batch, ordering)
    result = BatchResult(pool=UTXOPool(pool))
    logger.info(f"Resolving batch of {len(working)} transactions against {len(pool)} unspent outputs")

    while working:
        result.passes += 1
        pending_hashes = {tx.hash for tx in working}
        claimed: Set[UTXO] = set()
        accepted: List[Transaction] = []
        deferred: List[Transaction] = []

        for tx in working:
            inputs = tx.input_utxos()

            if any(utxo in claimed for utxo in inputs):
                result.rejected[tx.hash] = CLAIMED_IN_BATCH
                logger.debug(f"Rejected {tx.hash}: {CLAIMED_IN_BATCH}")
                continue

            if any(utxo.tx_hash in pending_hashes for utxo in inputs):
                deferred.append(tx)
                logger.debug(f"Deferred {tx.hash} until its producer is committed")
                continue

            try:
                validate_transaction(tx, result.pool)
            except TransactionValidationError as e:
                result.rejected[tx.hash] = str(e)
                logger.debug(f"Rejected {tx.hash}: {e}")
                if claim_policy == "on_attempt":
                    claimed.update(inputs)
                continue

            accepted.append(tx)
            claimed.update(inputs)
            logger.debug(f"Accepted {tx.hash} in pass {result.passes}")

        if len(deferred) == len(working):
            result.unresolved = [tx.hash for tx in deferred]
            logger.warning(
                f"Discarding {len(deferred)} transactions whose producers never resolved"
            )
            break

        result.pool = apply_transactions(result.pool, accepted)
        result.accepted.extend(accepted)
        working = deferred

    logger.info(
        f"Batch resolved in {result.passes} passes: {len(result.accepted)} accepted, "
        f"{len(result.rejected)} rejected, {len(result.unresolved)} unresolved"
    )
    return result


class TxHandler:
    """
    Ledger front end owning a private UTXO pool.

    The handler copies the pool it is given, validates single transactions
    against it, and commits whole batches to it.
    """

    def __init__(
        self,
        utxo_pool: UTXOPool,
        ordering: Optional[BatchOrdering] = None,
        claim_policy: Optional[ClaimPolicy] = None,
    ):
        """Initialize the handler.

        Args:
            utxo_pool: Initial pool; copied, never aliased
            ordering: Batch ordering, defaults to ``config.batch_ordering``
            claim_policy: Claim policy, defaults to ``config.claim_policy``
        """
        self._utxo_pool = UTXOPool(utxo_pool)
        self.ordering = ordering or config.batch_ordering
        self.claim_policy = claim_policy or config.claim_policy
        self.last_result: Optional[BatchResult] = None

    @property
    def utxo_pool(self) -> UTXOPool:
        return self.get_utxo_pool()

    def get_utxo_pool(self) -> UTXOPool:
        """Get a copy of the current pool."""
        return UTXOPool(self._utxo_pool)

    def is_valid_tx(self, tx: Transaction) -> bool:
        return is_valid_transaction(tx, self._utxo_pool)

    def handle_txs(self, possible_txs: Iterable[Transaction]) -> List[Transaction]:
        """Commit the mutually valid subset of a batch.

        Args:
            possible_txs: Unordered candidate transactions

        Returns:
            List[Transaction]: Accepted transactions in commit order

        Raises:
            MalformedTransactionError: If a transaction cannot be hashed or signed
        """
        result = resolve_batch(
            possible_txs,
            self._utxo_pool,
            ordering=self.ordering,
            claim_policy=self.claim_policy,
        )
        self._utxo_pool = result.pool
        self.last_result = result
        return list(result.accepted)
