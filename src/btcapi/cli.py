"""
BTC-API CLI - run the HTTP service or query it directly from a shell.
"""

from __future__ import annotations

import asyncio
import json
from collections.abc import Awaitable, Callable
from typing import Any

import typer
from loguru import logger

from btcapi.config import Settings, get_settings
from btcapi.errors import BtcApiError
from btcapi.main import run_server, setup_logging
from btcapi.models import ApiResponse, BroadcastTransactionParams, CreateTransactionParams
from btcapi.service import BitcoinService

app = typer.Typer(
    name="btcapi",
    help="Bitcoin wallet transaction service",
    add_completion=False,
)


def _load_settings(network: str | None, log_level: str, **overrides: Any) -> Settings:
    if network:
        overrides["network"] = network
    try:
        settings = get_settings(log_level=log_level, **overrides)
    except BtcApiError as e:
        typer.echo(str(e), err=True)
        raise typer.Exit(1) from e
    setup_logging(settings.log_level)
    return settings


def _run_query(
    network: str | None,
    log_level: str,
    query: Callable[[BitcoinService], Awaitable[ApiResponse[Any]]],
    **overrides: Any,
) -> None:
    settings = _load_settings(network, log_level, **overrides)

    async def _execute() -> ApiResponse[Any]:
        service = BitcoinService.from_settings(settings)
        try:
            return await query(service)
        finally:
            await service.close()

    try:
        envelope = asyncio.run(_execute())
    except BtcApiError as e:
        typer.echo(str(e), err=True)
        raise typer.Exit(1) from e

    typer.echo(json.dumps(envelope.to_dict(), indent=2))
    if envelope.is_error:
        raise typer.Exit(1)


@app.command()
def serve(
    network: str | None = typer.Option(None, "--network", "-n", help="Bitcoin network"),
    host: str | None = typer.Option(None, "--host", help="Listen host"),
    port: int | None = typer.Option(None, "--port", "-p", help="Listen port"),
    log_level: str = typer.Option("INFO", "--log-level", "-l"),
) -> None:
    """Run the HTTP API server."""
    overrides: dict[str, Any] = {}
    if host:
        overrides["http_host"] = host
    if port:
        overrides["http_port"] = port
    settings = _load_settings(network, log_level, **overrides)

    try:
        asyncio.run(run_server(settings))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
    except BtcApiError as e:
        logger.error(f"{e}")
        raise typer.Exit(1) from e


@app.command()
def fee(
    network: str | None = typer.Option(None, "--network", "-n"),
    log_level: str = typer.Option("WARNING", "--log-level", "-l"),
) -> None:
    """Show recommended network fee rates (sat/vB)."""
    _run_query(network, log_level, lambda service: service.get_network_fee())


@app.command("validate-hash")
def validate_hash(
    transaction_hash: str = typer.Argument(..., help="Transaction hash to classify"),
    network: str | None = typer.Option(None, "--network", "-n"),
    log_level: str = typer.Option("WARNING", "--log-level", "-l"),
) -> None:
    """Classify a transaction as Confirmed, Cancelled or Pending."""
    _run_query(
        network, log_level, lambda service: service.validate_transaction_hash(transaction_hash)
    )


@app.command()
def balance(
    address: str = typer.Argument(..., help="Address to look up"),
    network: str | None = typer.Option(None, "--network", "-n"),
    log_level: str = typer.Option("WARNING", "--log-level", "-l"),
) -> None:
    """Show confirmed and unconfirmed balance of an address."""
    _run_query(network, log_level, lambda service: service.get_wallet_balance(address))


@app.command()
def create(
    sender: str = typer.Option(..., "--from", help="Funding (and change) address"),
    receiver: str = typer.Option(..., "--to", help="Destination address"),
    amount: int = typer.Option(..., "--amount", "-a", help="Amount in sats"),
    tx_fee: int = typer.Option(..., "--fee", "-f", help="Absolute fee in sats"),
    sign: bool = typer.Option(False, "--sign", help="Sign with the configured keys"),
    broadcast: bool = typer.Option(False, "--broadcast", help="Broadcast after signing"),
    network: str | None = typer.Option(None, "--network", "-n"),
    log_level: str = typer.Option("WARNING", "--log-level", "-l"),
) -> None:
    """Fund, build and optionally sign and broadcast a transaction."""
    params = CreateTransactionParams(
        sender_address=sender,
        receiver_address=receiver,
        amount=amount,
        fee=tx_fee,
        broadcast=broadcast,
    )
    overrides: dict[str, Any] = {"signing_enabled": True} if sign or broadcast else {}
    _run_query(
        network, log_level, lambda service: service.create_transaction(params), **overrides
    )


@app.command("broadcast")
def broadcast_cmd(
    tx_hex: str = typer.Argument(..., help="Signed transaction hex"),
    network: str | None = typer.Option(None, "--network", "-n"),
    log_level: str = typer.Option("WARNING", "--log-level", "-l"),
) -> None:
    """Broadcast a signed transaction."""
    params = BroadcastTransactionParams(signed_transaction=tx_hex)
    _run_query(network, log_level, lambda service: service.broadcast_transaction(params))


def main() -> None:
    app()


if __name__ == "__main__":
    main()
