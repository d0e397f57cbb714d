import json
from decimal import Decimal

import pytest

from scrooge.core.models.transaction import (
    Transaction,
    MalformedTransactionError,
    FinalizedTransactionError,
)
from scrooge.core.models.utxo import UTXO


def make_unsigned():
    tx = Transaction()
    tx.add_input("prevtx1", 0)
    tx.add_input("prevtx2", 1)
    tx.add_output(Decimal("0.65"), "provider")
    tx.add_output(Decimal("0.35"), "change")
    return tx


def test_transaction_builder():
    tx = make_unsigned()

    assert tx.num_inputs() == 2
    assert tx.num_outputs() == 2
    assert tx.input_utxos() == [
        UTXO(tx_hash="prevtx1", index=0),
        UTXO(tx_hash="prevtx2", index=1),
    ]
    assert tx.get_output(1).value == Decimal("0.35")
    assert not tx.is_finalized()

    tx.remove_input(0)
    assert tx.get_input(0).prev_tx_hash == "prevtx2"


def test_signing_data_excludes_signatures():
    tx = make_unsigned()
    before = tx.get_raw_data_to_sign(0)

    tx.add_signature("c2lnbmF0dXJl", 0)
    tx.add_signature("b3RoZXI=", 1)

    assert tx.get_raw_data_to_sign(0) == before
    assert b"c2lnbmF0dXJl" not in before
    assert json.loads(before)["input"] == {"prev_tx_hash": "prevtx1", "output_index": 0}


def test_signing_data_differs_per_input():
    tx = make_unsigned()
    assert tx.get_raw_data_to_sign(0) != tx.get_raw_data_to_sign(1)


def test_signing_data_out_of_range():
    tx = make_unsigned()
    with pytest.raises(MalformedTransactionError):
        tx.get_raw_data_to_sign(2)
    with pytest.raises(MalformedTransactionError):
        tx.add_signature("c2ln", 5)


def test_raw_tx_includes_signatures():
    tx = make_unsigned()
    unsigned = tx.get_raw_tx()
    tx.add_signature("c2lnbmF0dXJl", 0)
    assert tx.get_raw_tx() != unsigned


def test_finalize_fixes_hash():
    tx = make_unsigned()
    tx_hash = tx.finalize()

    assert tx.is_finalized()
    assert len(tx_hash) == 64
    assert tx.finalize() == tx_hash
    assert tx.outputs_as_utxos()[1][0] == UTXO(tx_hash=tx_hash, index=1)


def test_finalized_transaction_rejects_changes():
    tx = make_unsigned()
    tx.finalize()

    with pytest.raises(FinalizedTransactionError):
        tx.add_input("prevtx3", 0)
    with pytest.raises(FinalizedTransactionError):
        tx.add_output(Decimal("1"), "someone")
    with pytest.raises(FinalizedTransactionError):
        tx.add_signature("c2ln", 0)
    with pytest.raises(FinalizedTransactionError):
        tx.remove_input(0)


def test_outputs_need_a_hash():
    with pytest.raises(MalformedTransactionError):
        make_unsigned().outputs_as_utxos()


def test_identical_content_gives_identical_hash():
    assert make_unsigned().finalize() == make_unsigned().finalize()


def test_coinbase():
    tx = Transaction.coinbase(Decimal(25), "miner")
    assert tx.is_finalized()
    assert tx.num_inputs() == 0
    assert tx.get_output(0).value == Decimal(25)


def test_from_row_checks_hash():
    tx = make_unsigned()
    tx.finalize()
    row = tx.to_row()

    assert Transaction.from_row(row).hash == tx.hash

    row["hash"] = "0" * 64
    with pytest.raises(MalformedTransactionError):
        Transaction.from_row(row)


def test_input_index_beyond_u32_is_malformed():
    tx = Transaction()
    with pytest.raises(MalformedTransactionError):
        tx.add_input("a" * 64, 2**32)
    with pytest.raises(MalformedTransactionError):
        tx.add_input("a" * 64, -1)
    assert tx.num_inputs() == 0

    tx.add_input("a" * 64, 2**32 - 1)
    assert tx.get_input(0).utxo() == UTXO(tx_hash="a" * 64, index=2**32 - 1)


def test_from_row_rejects_out_of_range_index():
    row = make_unsigned().to_row()
    row["inputs"][0]["output_index"] = 2**32

    with pytest.raises(MalformedTransactionError):
        Transaction.from_row(row)


def test_finalized_fields_cannot_be_reassigned():
    tx = make_unsigned()
    tx_hash = tx.finalize()

    with pytest.raises(FinalizedTransactionError):
        tx.hash = "0" * 64
    with pytest.raises(FinalizedTransactionError):
        tx.inputs = []
    with pytest.raises(FinalizedTransactionError):
        tx.outputs = []
    assert tx.hash == tx_hash
    assert tx.num_inputs() == 2


def test_finalized_sequences_cannot_be_edited_in_place():
    tx = make_unsigned()
    tx.finalize()
    raw = tx.get_raw_tx()

    with pytest.raises(AttributeError):
        tx.outputs.append(tx.get_output(0))
    with pytest.raises(AttributeError):
        tx.inputs.pop()
    with pytest.raises(TypeError):
        tx.outputs[0] = tx.get_output(1)
    assert tx.get_raw_tx() == raw


def test_transaction_built_with_hash_is_finalized():
    tx = Transaction(outputs=make_unsigned().outputs, hash="0" * 64)

    assert tx.is_finalized()
    with pytest.raises(FinalizedTransactionError):
        tx.add_output(Decimal("1"), "someone")
    with pytest.raises(AttributeError):
        tx.outputs.append(tx.get_output(0))
