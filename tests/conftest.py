"""
Pytest configuration for Scrooge tests.

Shared fixtures: wallets, a transaction builder and a pool seeded with one
output per wallet.
"""

from decimal import Decimal

import pytest

from scrooge.core.models.transaction import Transaction
from scrooge.core.models.utxo import UTXO
from scrooge.core.pool import UTXOPool
from scrooge.wallet import Wallet


@pytest.fixture
def wallets():
    """Create wallets for the parties in a test."""
    return {
        "alice": Wallet.generate(),
        "bob": Wallet.generate(),
        "carol": Wallet.generate(),
        "dave": Wallet.generate(),
    }


@pytest.fixture
def build_tx():
    """Return a helper that builds, signs and finalizes a transaction.

    ``spends`` is a list of ``(UTXO, signer)`` pairs; a ``None`` signer leaves
    the input unsigned. ``outputs`` is a list of ``(value, address)`` pairs.
    """

    def _build(spends, outputs):
        tx = Transaction()
        for utxo, _ in spends:
            tx.add_input(utxo.tx_hash, utxo.index)
        for value, address in outputs:
            tx.add_output(Decimal(str(value)), address)
        for i, (_, signer) in enumerate(spends):
            if signer is not None:
                signer.sign_input(tx, i)
        tx.finalize()
        return tx

    return _build


@pytest.fixture
def seeded_pool(wallets):
    """Pool holding a coinbase output of 10 for alice and 5 for bob.

    Returns:
        tuple: (pool, {"alice": UTXO, "bob": UTXO})
    """
    pool = UTXOPool()
    utxos = {}
    for name, value in (("alice", 10), ("bob", 5)):
        coinbase = Transaction.coinbase(Decimal(value), wallets[name].get_address())
        utxo = UTXO(tx_hash=coinbase.hash, index=0)
        pool.add_utxo(utxo, coinbase.get_output(0))
        utxos[name] = utxo
    return pool, utxos
