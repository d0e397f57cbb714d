import hashlib
import json
from decimal import Decimal
from typing import List, Optional, Tuple

from pydantic import BaseModel, Field, ValidationError

from scrooge.core.models.utxo import MAX_OUTPUT_INDEX, UTXO, Output


class MalformedTransactionError(Exception):
    """Raised when a transaction cannot be hashed or signed as presented."""

    pass


class FinalizedTransactionError(Exception):
    """Raised when a finalized transaction is modified."""

    pass


class Input(BaseModel):
    prev_tx_hash: str = Field(..., description="Hash of the transaction whose output is spent")
    output_index: int = Field(
        ..., ge=0, le=MAX_OUTPUT_INDEX, description="Index of the spent output"
    )
    signature: Optional[str] = Field(None, description="Base64 signature authorizing the spend")

    def utxo(self) -> UTXO:
        return UTXO(tx_hash=self.prev_tx_hash, index=self.output_index)

    def to_row(self, with_signature: bool = True) -> dict:
        row = {"prev_tx_hash": self.prev_tx_hash, "output_index": self.output_index}
        if with_signature:
            row["signature"] = self.signature
        return row


class Transaction(BaseModel):
    """A transfer consuming existing outputs and creating new ones.

    A transaction is built up with the ``add_*`` methods, signed input by
    input over :meth:`get_raw_data_to_sign`, and then finalized. Finalizing
    fixes ``hash``, which becomes part of the identifier of every output the
    transaction creates, so afterwards the builder methods and field
    assignment raise :class:`FinalizedTransactionError` and the input and
    output sequences become tuples.
    """

    inputs: List[Input] = Field(default_factory=list, description="Outputs being consumed")
    outputs: List[Output] = Field(default_factory=list, description="Outputs being created")
    hash: Optional[str] = Field(None, description="SHA-256 of the raw transaction once finalized")

    @classmethod
    def coinbase(cls, value: Decimal, address: str) -> "Transaction":
        """Create a finalized transaction minting a single output."""
        tx = cls()
        tx.add_output(value, address)
        tx.finalize()
        return tx

    def model_post_init(self, __context):
        if self.is_finalized():
            self._freeze()

    def __setattr__(self, name, value):
        if name in type(self).model_fields:
            self._check_mutable()
        super().__setattr__(name, value)

    def _freeze(self):
        # Tuples make in-place edits of a finalized transaction fail too.
        self.__dict__["inputs"] = tuple(self.inputs)
        self.__dict__["outputs"] = tuple(self.outputs)

    def is_finalized(self) -> bool:
        return self.hash is not None

    def _check_mutable(self):
        if self.is_finalized():
            raise FinalizedTransactionError(f"Transaction {self.hash} is finalized")

    def add_input(self, prev_tx_hash: str, output_index: int):
        self._check_mutable()
        try:
            tx_input = Input(prev_tx_hash=prev_tx_hash, output_index=output_index)
        except ValidationError as e:
            raise MalformedTransactionError(f"Invalid input {prev_tx_hash}:{output_index}: {e}") from e
        self.inputs.append(tx_input)

    def remove_input(self, index: int):
        self._check_mutable()
        del self.inputs[index]

    def add_output(self, value: Decimal, address: str):
        self._check_mutable()
        self.outputs.append(Output(value=Decimal(str(value)), address=address))

    def add_signature(self, signature: str, index: int):
        self._check_mutable()
        if not 0 <= index < len(self.inputs):
            raise MalformedTransactionError(f"No input at index {index}")
        self.inputs[index] = self.inputs[index].model_copy(update={"signature": signature})

    def get_input(self, index: int) -> Input:
        return self.inputs[index]

    def get_output(self, index: int) -> Output:
        return self.outputs[index]

    def num_inputs(self) -> int:
        return len(self.inputs)

    def num_outputs(self) -> int:
        return len(self.outputs)

    def get_raw_data_to_sign(self, index: int) -> bytes:
        """Return the bytes that input ``index`` must sign.

        Covers the outpoint being spent and every output, but no signature,
        so each input can be signed independently of the others.

        Raises:
            MalformedTransactionError: If there is no input at ``index``
        """
        if not 0 <= index < len(self.inputs):
            raise MalformedTransactionError(
                f"Cannot build signing data for input {index} of {len(self.inputs)}"
            )
        data = {
            "input": self.inputs[index].to_row(with_signature=False),
            "outputs": [output.to_row() for output in self.outputs],
        }
        return json.dumps(data, sort_keys=True).encode()

    def get_raw_tx(self) -> bytes:
        data = {
            "inputs": [tx_input.to_row() for tx_input in self.inputs],
            "outputs": [output.to_row() for output in self.outputs],
        }
        return json.dumps(data, sort_keys=True).encode()

    def finalize(self) -> str:
        if not self.is_finalized():
            self.hash = hashlib.sha256(self.get_raw_tx()).hexdigest()
            self._freeze()
        return self.hash

    def input_utxos(self) -> List[UTXO]:
        return [tx_input.utxo() for tx_input in self.inputs]

    def outputs_as_utxos(self) -> List[Tuple[UTXO, Output]]:
        """Pair each output with the identifier it will have once committed."""
        if not self.is_finalized():
            raise MalformedTransactionError("Transaction has no hash; call finalize() first")
        return [
            (UTXO(tx_hash=self.hash, index=i), output)
            for i, output in enumerate(self.outputs)
        ]

    def to_row(self) -> dict:
        return {
            "hash": self.hash,
            "inputs": [tx_input.to_row() for tx_input in self.inputs],
            "outputs": [output.to_row() for output in self.outputs],
        }

    @classmethod
    def from_row(cls, row: dict) -> "Transaction":
        """Rebuild a transaction from :meth:`to_row` output.

        Raises:
            MalformedTransactionError: If an input is invalid or the stored hash
                does not match the content
        """
        try:
            inputs = [Input(**tx_input) for tx_input in row["inputs"]]
        except ValidationError as e:
            raise MalformedTransactionError(f"Invalid input in stored transaction: {e}") from e
        tx = cls(
            inputs=inputs,
            outputs=[Output.from_row(output) for output in row["outputs"]],
        )
        tx.finalize()
        if row.get("hash") is not None and row["hash"] != tx.hash:
            raise MalformedTransactionError(
                f"Stored hash {row['hash']} does not match content hash {tx.hash}"
            )
        return tx
