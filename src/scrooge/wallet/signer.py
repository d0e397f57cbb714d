from nacl.signing import SigningKey, VerifyKey
from nacl.exceptions import BadSignatureError
import base64


class Signer:
    @staticmethod
    def sign(message: bytes, private_key: bytes) -> str:
        # private_key is the raw seed from Wallet.signing_key.encode()
        key = SigningKey(private_key)
        signed = key.sign(message)
        return base64.b64encode(signed.signature).decode("utf-8")

    @staticmethod
    def verify(message: bytes, signature: str, public_key: bytes) -> bool:
        # A malformed key or signature encoding is a failed verification.
        try:
            key = VerifyKey(public_key)
            key.verify(message, base64.b64decode(signature, validate=True))
            return True
        except (BadSignatureError, ValueError, TypeError):
            return False

    @staticmethod
    def verify_for_address(message: bytes, signature: str, address: str) -> bool:
        """Verify a signature against a base64-encoded verify key (an address)."""
        try:
            public_key = base64.b64decode(address, validate=True)
        except ValueError:
            return False
        return Signer.verify(message=message, signature=signature, public_key=public_key)
