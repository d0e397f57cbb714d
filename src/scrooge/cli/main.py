import json
import logging
import os
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import List, Optional

import dotenv
import typer

from scrooge.core.config import config, load_config_from_env
from scrooge.core.ledger import TransactionValidationError, resolve_batch, validate_transaction
from scrooge.core.models.transaction import MalformedTransactionError, Transaction
from scrooge.core.pool import UTXOPool
from scrooge.wallet.wallet import Wallet, WalletFileError

app = typer.Typer()
logger = logging.getLogger(__name__)


def load_dotenv(env_file: Optional[str] = None) -> bool:
    """Load a .env file, if present, and apply SCROOGE_* settings to the global config."""
    env_path = Path(env_file) if env_file else Path.cwd() / ".env"
    loaded = False
    if env_path.exists():
        dotenv.load_dotenv(env_path)
        loaded = True

    env_config = load_config_from_env()
    for field_name in env_config.model_fields_set:
        setattr(config, field_name, getattr(env_config, field_name))
    return loaded


@app.callback()
def main(
    log_level: Optional[str] = typer.Option(None, help="Override the configured log level"),
    env_file: Optional[str] = typer.Option(None, help="Path to a .env file (default: ./.env)"),
):
    """Scrooge – validate and commit batches of UTXO transactions."""
    dotenv_loaded = load_dotenv(env_file)
    if log_level:
        config.log_level = log_level
    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    if dotenv_loaded:
        logger.info("Loaded environment variables from .env")


def _read_json(path: str):
    try:
        with open(path, "r") as f:
            return json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        typer.echo(f"❌ Could not read {path}: {str(e)}", err=True)
        raise typer.Exit(1)


def _write_json(path: str, data):
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(path, "w") as f:
        json.dump(data, f, indent=2)


def load_pool(path: str) -> UTXOPool:
    try:
        return UTXOPool.from_records(_read_json(path))
    except (KeyError, TypeError, ValueError, InvalidOperation) as e:
        typer.echo(f"❌ Malformed pool in {path}: {str(e)}", err=True)
        raise typer.Exit(1)


def load_transactions(path: str) -> List[Transaction]:
    data = _read_json(path)
    rows = data if isinstance(data, list) else [data]
    try:
        return [Transaction.from_row(row) for row in rows]
    except (MalformedTransactionError, KeyError, TypeError, ValueError, InvalidOperation) as e:
        typer.echo(f"❌ Malformed transaction in {path}: {str(e)}", err=True)
        raise typer.Exit(1)


def _wallet_path(path: Optional[str]) -> str:
    return os.path.expanduser(path) if path else str(config.wallet_path)


def _load_wallet(path: Optional[str]) -> Wallet:
    wallet_path = _wallet_path(path)
    if not os.path.exists(wallet_path):
        typer.echo(f"❌ Wallet not found at {wallet_path}", err=True)
        raise typer.Exit(1)
    try:
        return Wallet.load(wallet_path)
    except WalletFileError as e:
        typer.echo(f"❌ {str(e)}", err=True)
        raise typer.Exit(1)


@app.command()
def keygen(
    path: Optional[str] = typer.Option(None, help="Where to write the wallet file"),
    force: bool = typer.Option(False, help="Overwrite an existing wallet"),
):
    """Generate a new wallet and save it locally."""
    wallet_path = _wallet_path(path)
    if os.path.exists(wallet_path) and not force:
        typer.echo(f"⚠️  Wallet already exists at {wallet_path}")
        raise typer.Exit(1)

    wallet = Wallet.generate()
    wallet.save(wallet_path)
    typer.echo(f"✅ Wallet created and saved to {wallet_path}")
    typer.echo(wallet.get_address())


@app.command()
def address(path: Optional[str] = typer.Option(None, help="Path to wallet file")):
    """Show the address of a wallet."""
    typer.echo(_load_wallet(path).get_address())


@app.command()
def pay(
    pool_file: str = typer.Argument(..., help="JSON file holding the unspent outputs"),
    to: str = typer.Option(..., help="Recipient address"),
    amount: str = typer.Option(..., help="Amount to send"),
    fee: str = typer.Option("0", help="Amount left unclaimed as fee"),
    path: Optional[str] = typer.Option(None, help="Path to wallet file"),
    out: Optional[str] = typer.Option(None, help="Write the signed transaction here"),
):
    """Build and sign a transaction spending the wallet's outputs in a pool."""
    try:
        amount_value = Decimal(amount)
        fee_value = Decimal(fee)
    except InvalidOperation:
        typer.echo(f"❌ Invalid amount or fee: {amount}, {fee}", err=True)
        raise typer.Exit(1)
    if not (amount_value.is_finite() and fee_value.is_finite()) or amount_value < 0 or fee_value < 0:
        typer.echo(f"❌ Invalid amount or fee: {amount}, {fee}", err=True)
        raise typer.Exit(1)

    wallet = _load_wallet(path)
    sender = wallet.get_address()
    pool = load_pool(pool_file)

    tx = Transaction()
    total = Decimal(0)
    for utxo in sorted(pool, key=lambda u: (u.tx_hash, u.index)):
        output = pool.get_tx_output(utxo)
        if output.address != sender:
            continue
        tx.add_input(utxo.tx_hash, utxo.index)
        total += output.value
        if total >= amount_value + fee_value:
            break

    if total < amount_value + fee_value:
        typer.echo(f"❌ Insufficient funds: {total} < {amount_value + fee_value}", err=True)
        raise typer.Exit(1)

    tx.add_output(amount_value, to)
    change = total - amount_value - fee_value
    if change > 0:
        tx.add_output(change, sender)
    for i in range(tx.num_inputs()):
        wallet.sign_input(tx, i)
    tx.finalize()

    if out:
        _write_json(out, tx.to_row())
        typer.echo(f"✅ Transaction {tx.hash} written to {out}")
    else:
        typer.echo(json.dumps(tx.to_row(), indent=2))


@app.command()
def validate(
    pool_file: str = typer.Argument(..., help="JSON file holding the unspent outputs"),
    tx_file: str = typer.Argument(..., help="JSON file holding one transaction"),
):
    """Check a single transaction against a pool without changing it."""
    pool = load_pool(pool_file)
    for tx in load_transactions(tx_file):
        try:
            fee = validate_transaction(tx, pool)
        except TransactionValidationError as e:
            typer.echo(f"❌ {tx.hash} invalid: {str(e)}")
            raise typer.Exit(1)
        typer.echo(f"✅ {tx.hash} valid (fee {fee})")


@app.command()
def handle(
    pool_file: str = typer.Argument(..., help="JSON file holding the unspent outputs"),
    batch_file: str = typer.Argument(..., help="JSON file holding a list of transactions"),
    out: Optional[str] = typer.Option(None, help="Write the resulting pool here"),
    ordering: Optional[str] = typer.Option(None, help="'hash' or 'presented'"),
    claim_policy: Optional[str] = typer.Option(None, help="'on_acceptance' or 'on_attempt'"),
):
    """Resolve a batch of transactions against a pool."""
    pool = load_pool(pool_file)
    batch = load_transactions(batch_file)
    try:
        result = resolve_batch(
            batch,
            pool,
            ordering=ordering or config.batch_ordering,
            claim_policy=claim_policy or config.claim_policy,
        )
    except ValueError as e:
        typer.echo(f"❌ {str(e)}", err=True)
        raise typer.Exit(1)

    typer.echo(f"✅ Accepted {len(result.accepted)} of {len(batch)} in {result.passes} passes")
    for tx in result.accepted:
        typer.echo(f"  + {tx.hash}")
    for tx_hash, reason in result.rejected.items():
        typer.echo(f"  - {tx_hash}: {reason}")
    for tx_hash in result.unresolved:
        typer.echo(f"  ? {tx_hash}: unresolved")

    if out:
        _write_json(out, result.pool.to_records())
        typer.echo(f"💾 Resulting pool ({len(result.pool)} unspent) written to {out}")


if __name__ == "__main__":
    app()
