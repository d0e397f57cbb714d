"""
Unspent output pool for the Scrooge ledger.
"""
from scrooge.core.pool.pool import UTXOPool, UTXONotFoundError

__all__ = ["UTXOPool", "UTXONotFoundError"]
