from scrooge.wallet.wallet import Wallet, WalletFileError
from scrooge.wallet.signer import Signer

__all__ = ["Wallet", "WalletFileError", "Signer"]
