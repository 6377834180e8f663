#!/usr/bin/env python3
"""
Verify an Ethereum coin or ERC-20 transfer.

CLI wrapper script for transfer verification functionality.

Usage:
    python scripts/verify_transaction.py \\
        --rpc-url https://mainnet.infura.io/v3/YOUR_KEY \\
        --tx-hash 0x5c504ed432cb51138bcf09aa5e8a410dd4a1e204ef84bfed1be16dfba1b22060 \\
        --receiver 0x742d35Cc6634C0532925a3b844Bc9e7595f0bEb1 \\
        --amount 1.5

Add --token-address for ERC-20 transfers and --wait to poll pending transactions.
Exits with status 1 when the transfer does not verify.
"""

import json
import logging
import sys
from dataclasses import asdict
from pathlib import Path

import click

from eth_txverify.config import NetworkConfig
from eth_txverify.core.codec import scaled_hex_to_decimal
from eth_txverify.core.formatting import format_amount
from eth_txverify.core.utils import Web3ConnectionManager, setup_logging
from eth_txverify.exceptions import TransferVerificationError
from eth_txverify.verification import TransferVerifier, classify

logger = logging.getLogger(__name__)


def load_config(config_path: Path | None, rpc_url: str | None) -> NetworkConfig:
    """Load network configuration, letting --rpc-url override the file."""
    if config_path is None:
        project_root = Path(__file__).parent.parent
        config_path = project_root / "configs" / "network_config.yaml"

    try:
        config = NetworkConfig.from_yaml(config_path)
    except FileNotFoundError:
        logger.warning(f"Config file not found at {config_path}, using defaults")
        config = NetworkConfig()

    if rpc_url:
        config.rpc_url = rpc_url
    return config


@click.command()
@click.option("--tx-hash", required=True, help="Transaction hash (0x + 64 hex chars)")
@click.option(
    "--rpc-url",
    default=None,
    help="Ethereum RPC endpoint URL (overrides the config file)",
)
@click.option(
    "--config",
    type=click.Path(exists=True, path_type=Path),
    default=None,
    help="Path to network config YAML file (optional)",
)
@click.option("--receiver", default=None, help="Expected receiver address")
@click.option("--amount", default=None, help="Expected amount in coin or token units")
@click.option("--token-address", default=None, help="ERC-20 token contract address")
@click.option(
    "--decimals",
    type=int,
    default=None,
    help="Asset decimals (default: coin decimals or the token's decimals())",
)
@click.option(
    "--wait/--no-wait",
    default=False,
    help="Poll until the transaction is mined and has a receipt",
)
@click.option("--timeout", type=float, default=None, help="Seconds to wait with --wait")
@click.option(
    "--log-level",
    type=click.Choice(
        ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False
    ),
    default="INFO",
    help="Logging level",
)
def main(
    tx_hash: str,
    rpc_url: str | None,
    config: Path | None,
    receiver: str | None,
    amount: str | None,
    token_address: str | None,
    decimals: int | None,
    wait: bool,
    timeout: float | None,
    log_level: str,
) -> None:
    """
    Verify an Ethereum coin or ERC-20 transfer.

    Prints the transaction state, confirmations and verification result as
    JSON. With --receiver and --amount the transfer data is checked too.
    """
    setup_logging(level=log_level)

    if (receiver is None) != (amount is None):
        raise click.UsageError("--receiver and --amount must be given together")

    cfg = load_config(config, rpc_url)

    try:
        manager = Web3ConnectionManager.from_config(cfg)
        verifier = TransferVerifier(manager, cfg)

        if wait:
            record = verifier.wait_for_status(tx_hash, timeout=timeout)
        else:
            record = verifier.fetch(tx_hash)

        if receiver is not None:
            verified = verifier.verify_transfer_with_data(
                record, receiver, amount, token_address=token_address, decimals=decimals
            )
        else:
            verified = verifier.verify_transfer(record, token_address)

        decoded = None
        if token_address and verified:
            decoded = record.decode_input()
        coin_amount = scaled_hex_to_decimal(record.value, cfg.coin_decimals)
        result = {
            "hash": record.hash,
            "state": classify(record).value,
            "confirmations": verifier.get_confirmations(record),
            "value": f"{format_amount(coin_amount, cfg.coin_decimals)} "
            f"{cfg.coin_symbol}",
            "transfer": asdict(decoded) if decoded else None,
            "verified": verified,
            "url": verifier.transaction_url(record) if cfg.explorer_url else None,
        }
        click.echo(json.dumps(result, indent=2))

    except TransferVerificationError as e:
        logger.error(f"Verification failed: {e}")
        sys.exit(1)

    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        sys.exit(1)

    if not verified:
        sys.exit(1)


if __name__ == "__main__":
    main()
