import json
import base64
from decimal import Decimal

import pytest

from scrooge.core.config import config
from scrooge.core.models.transaction import Transaction
from scrooge.wallet import Wallet, WalletFileError, Signer


def test_wallet_generate_and_save(tmp_path):
    wallet = Wallet.generate()
    path = tmp_path / "wallet.json"
    wallet.save(str(path))

    loaded = Wallet.load(str(path))
    assert loaded.get_address() == wallet.get_address()


def test_wallet_with_config(monkeypatch, tmp_path):
    """Test wallet using config for paths."""
    test_wallet_path = tmp_path / "config_wallet.json"
    monkeypatch.setattr(config, "wallet_path", test_wallet_path)

    wallet = Wallet.generate()
    wallet.save()

    assert test_wallet_path.exists()

    loaded_wallet = Wallet.load()
    assert loaded_wallet.get_address() == wallet.get_address()

    with open(test_wallet_path, "r") as f:
        data = json.load(f)

    assert "private_key" in data
    assert base64.b64decode(data["private_key"])


def test_sign_input():
    wallet = Wallet.generate()
    tx = Transaction()
    tx.add_input("prev", 0)
    tx.add_output(Decimal("1"), "someone")

    wallet.sign_input(tx, 0)

    assert Signer.verify_for_address(
        tx.get_raw_data_to_sign(0), tx.get_input(0).signature, wallet.get_address()
    )


def test_saved_wallet_records_address(tmp_path):
    wallet = Wallet.generate()
    path = tmp_path / "wallet.json"
    wallet.save(path)

    data = json.loads(path.read_text())
    assert data["address"] == wallet.get_address()


def test_load_rejects_mismatched_address(tmp_path):
    path = tmp_path / "wallet.json"
    Wallet.generate().save(path)
    data = json.loads(path.read_text())
    data["address"] = Wallet.generate().get_address()
    path.write_text(json.dumps(data))

    with pytest.raises(WalletFileError):
        Wallet.load(path)


@pytest.mark.parametrize("content", [
    "{not json",
    "[]",
    json.dumps({"address": "x"}),
    json.dumps({"private_key": base64.b64encode(b"short").decode()}),
])
def test_load_rejects_invalid_wallet_file(tmp_path, content):
    path = tmp_path / "wallet.json"
    path.write_text(content)

    with pytest.raises(WalletFileError):
        Wallet.load(path)
