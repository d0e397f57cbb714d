from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

MAX_OUTPUT_INDEX = 2**32 - 1


class UTXO(BaseModel):
    model_config = ConfigDict(frozen=True)

    tx_hash: str = Field(..., description="Hash of the transaction that created the output")
    index: int = Field(
        ..., ge=0, le=MAX_OUTPUT_INDEX, description="Position of the output in that transaction"
    )

    def key(self) -> str:
        return f"{self.tx_hash}:{self.index}"

    def __str__(self) -> str:
        return self.key()


class Output(BaseModel):
    model_config = ConfigDict(frozen=True)

    # Negative values are representable so the validator can reject them.
    value: Decimal = Field(..., description="Amount carried by the output")
    address: str = Field(..., description="Base64 verify key allowed to claim this output")

    def to_row(self) -> dict:
        return {"value": str(self.value), "address": self.address}

    @classmethod
    def from_row(cls, row: dict) -> "Output":
        return cls(value=Decimal(str(row["value"])), address=row["address"])
