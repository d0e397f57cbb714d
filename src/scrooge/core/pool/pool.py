"""
Unspent transaction output pool.

The pool maps each unspent output identifier to the output it names. Every
entry is an output that has been created and not yet consumed by a committed
transaction.
"""

from decimal import Decimal
from typing import Dict, Iterator, List, Optional

from scrooge.core.models.utxo import UTXO, Output


class UTXONotFoundError(LookupError):
    """Exception raised when a UTXO is read or removed but is not in the pool."""

    pass


class UTXOPool:
    """Mapping from :class:`UTXO` to :class:`Output`.

    ``UTXOPool(other)`` copies ``other``; later changes to either pool are not
    visible in the other.
    """

    def __init__(self, other: Optional["UTXOPool"] = None):
        self._utxos: Dict[UTXO, Output] = {}
        if other is not None:
            # UTXO and Output are frozen, so copying the mapping is enough.
            self._utxos = dict(other._utxos)

    def copy(self) -> "UTXOPool":
        return UTXOPool(self)

    def contains(self, utxo: UTXO) -> bool:
        return utxo in self._utxos

    def get_tx_output(self, utxo: UTXO) -> Output:
        """Get the output for an unspent identifier.

        Raises:
            UTXONotFoundError: If the identifier is not in the pool
        """
        try:
            return self._utxos[utxo]
        except KeyError:
            raise UTXONotFoundError(f"UTXO not found: {utxo.key()}") from None

    def add_utxo(self, utxo: UTXO, output: Output):
        self._utxos[utxo] = output

    def remove_utxo(self, utxo: UTXO):
        """Remove a spent identifier.

        Raises:
            UTXONotFoundError: If the identifier is not in the pool
        """
        try:
            del self._utxos[utxo]
        except KeyError:
            raise UTXONotFoundError(f"Cannot remove missing UTXO: {utxo.key()}") from None

    def get_all_utxos(self) -> List[UTXO]:
        return list(self._utxos)

    def total_value(self) -> Decimal:
        return sum((output.value for output in self._utxos.values()), Decimal(0))

    def balance(self, address: str) -> Decimal:
        return sum(
            (output.value for output in self._utxos.values() if output.address == address),
            Decimal(0),
        )

    def to_records(self) -> List[dict]:
        """Serialize the pool as a list of JSON-friendly rows, sorted by key."""
        return [
            {"tx_hash": utxo.tx_hash, "index": utxo.index, **self._utxos[utxo].to_row()}
            for utxo in sorted(self._utxos, key=lambda u: (u.tx_hash, u.index))
        ]

    @classmethod
    def from_records(cls, rows: List[dict]) -> "UTXOPool":
        pool = cls()
        for row in rows:
            pool.add_utxo(
                UTXO(tx_hash=row["tx_hash"], index=row["index"]), Output.from_row(row)
            )
        return pool

    def __contains__(self, utxo: UTXO) -> bool:
        return self.contains(utxo)

    def __iter__(self) -> Iterator[UTXO]:
        return iter(list(self._utxos))

    def __len__(self) -> int:
        return len(self._utxos)

    def __eq__(self, other) -> bool:
        if not isinstance(other, UTXOPool):
            return NotImplemented
        return self._utxos == other._utxos

    def __repr__(self) -> str:
        return f"UTXOPool({len(self._utxos)} unspent)"
