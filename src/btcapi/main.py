"""
Main entry point for the API server.
"""

from __future__ import annotations

import asyncio
import signal
import sys

from loguru import logger

from btcapi.config import Settings
from btcapi.server import ApiServer
from btcapi.service import BitcoinService


def setup_logging(level: str) -> None:
    logger.remove()

    logger.add(
        sys.stderr,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
        level=level.upper(),
        colorize=True,
    )


async def run_server(settings: Settings) -> None:
    logger.info("Starting BTC-API")
    logger.info(f"Network: {settings.network}")
    logger.info(f"Esplora API: {settings.esplora_url}")
    logger.info(f"Raw transaction API: {settings.rawtx_url}")
    logger.info(f"Signing enabled: {settings.signing_enabled}")

    service = BitcoinService.from_settings(settings)
    server = ApiServer(settings, service)

    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()

    def shutdown_handler() -> None:
        logger.info("Received shutdown signal")
        stop_event.set()

    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, shutdown_handler)

    try:
        await server.start()
        await stop_event.wait()
    except asyncio.CancelledError:
        logger.info("Server cancelled")
    finally:
        await server.stop()
