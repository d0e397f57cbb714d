"""
Scrooge: batch validation of UTXO transactions against an unspent output pool.
"""

__version__ = "0.1.0"
