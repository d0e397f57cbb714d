import json
import base64
from pathlib import Path
from typing import Optional, Union

from nacl.signing import SigningKey
from nacl.encoding import Base64Encoder
from scrooge.core.config import config
from scrooge.core.models.transaction import Transaction
from scrooge.wallet.signer import Signer


class WalletFileError(Exception):
    """Exception raised when a wallet file cannot be parsed."""

    pass


class Wallet:
    """An Ed25519 key pair whose verify key is the address outputs are paid to."""

    def __init__(self, signing_key: SigningKey):
        self.signing_key = signing_key
        self.verify_key = signing_key.verify_key

    @classmethod
    def generate(cls) -> "Wallet":
        return cls(SigningKey.generate())

    @classmethod
    def load(cls, path: Optional[Union[str, Path]] = None) -> "Wallet":
        """Load a wallet saved by :meth:`save`.

        Raises:
            WalletFileError: If the file is not a wallet, or its stored
                address does not match its key
        """
        wallet_path = Path(path) if path is not None else config.wallet_path
        try:
            data = json.loads(wallet_path.read_text())
            wallet = cls(SigningKey(base64.b64decode(data["private_key"])))
        except (KeyError, TypeError, ValueError) as e:
            raise WalletFileError(f"Invalid wallet file {wallet_path}: {str(e)}") from e

        if data.get("address", wallet.get_address()) != wallet.get_address():
            raise WalletFileError(f"Address in {wallet_path} does not match its key")
        return wallet

    def save(self, path: Optional[Union[str, Path]] = None):
        wallet_path = Path(path) if path is not None else config.wallet_path
        wallet_path.parent.mkdir(parents=True, exist_ok=True)
        wallet_path.write_text(json.dumps({
            "address": self.get_address(),
            "private_key": base64.b64encode(self.signing_key.encode()).decode("utf-8"),
        }))

    def get_address(self) -> str:
        return self.verify_key.encode(encoder=Base64Encoder).decode("utf-8")

    def sign(self, message: bytes) -> str:
        """Sign a message, returning a base64 signature."""
        return Signer.sign(message=message, private_key=self.signing_key.encode())

    def sign_input(self, tx: Transaction, index: int):
        """Sign input ``index`` of an unfinalized transaction in place.

        Args:
            tx: Transaction being built
            index: Position of the input this wallet is authorizing
        """
        tx.add_signature(self.sign(tx.get_raw_data_to_sign(index)), index)
