"""
HTTP server exposing the transaction service.
"""

from __future__ import annotations

import contextlib
from typing import Any

from aiohttp import web
from loguru import logger
from pydantic import ValidationError

from btcapi.config import Settings
from btcapi.models import ApiResponse, BroadcastTransactionParams, CreateTransactionParams
from btcapi.service import BitcoinService


def _json(envelope: ApiResponse[Any], status: int = 200) -> web.Response:
    return web.json_response(envelope.to_dict(), status=status)


def _bad_request(message: str) -> web.Response:
    return _json(ApiResponse.failure(message), status=400)


class ApiServer:
    def __init__(self, settings: Settings, service: BitcoinService) -> None:
        self.settings = settings
        self.service = service
        self.app = web.Application()
        self.runner: web.AppRunner | None = None
        self.site: web.TCPSite | None = None
        self._setup_routes()

    def _setup_routes(self) -> None:
        self.app.router.add_get("/networkFee", self._handle_network_fee)
        self.app.router.add_get("/validateTransactionHash", self._handle_validate_transaction_hash)
        self.app.router.add_post("/createTransaction", self._handle_create_transaction)
        self.app.router.add_post("/broadcastTransaction", self._handle_broadcast_transaction)
        self.app.router.add_get("/walletBalance", self._handle_wallet_balance)
        self.app.router.add_get("/health", self._handle_health)

    async def _read_body(self, request: web.Request) -> Any:
        try:
            return await request.json()
        except ValueError as e:
            raise web.HTTPBadRequest(reason=f"Invalid JSON body: {e}") from e

    async def _handle_network_fee(self, _request: web.Request) -> web.Response:
        logger.debug("Received request to get network fee")
        return _json(await self.service.get_network_fee())

    async def _handle_validate_transaction_hash(self, request: web.Request) -> web.Response:
        transaction_hash = request.query.get("transactionHash")
        logger.debug(f"Received request to validate transaction hash: {transaction_hash}")
        if not transaction_hash:
            return _bad_request("missing query parameter: transactionHash")
        return _json(await self.service.validate_transaction_hash(transaction_hash))

    async def _handle_create_transaction(self, request: web.Request) -> web.Response:
        try:
            params = CreateTransactionParams.model_validate(await self._read_body(request))
        except web.HTTPBadRequest as e:
            return _bad_request(e.reason)
        except ValidationError as e:
            return _bad_request(f"Invalid request: {e.error_count()} validation error(s): {e}")

        logger.debug(f"Received request to create transaction: {params!r}")
        return _json(await self.service.create_transaction(params))

    async def _handle_broadcast_transaction(self, request: web.Request) -> web.Response:
        try:
            params = BroadcastTransactionParams.model_validate(await self._read_body(request))
        except web.HTTPBadRequest as e:
            return _bad_request(e.reason)
        except ValidationError as e:
            return _bad_request(f"Invalid request: {e.error_count()} validation error(s): {e}")

        logger.debug("Received request to broadcast transaction")
        return _json(await self.service.broadcast_transaction(params))

    async def _handle_wallet_balance(self, request: web.Request) -> web.Response:
        address = request.query.get("address")
        logger.debug(f"Received request to get wallet balance: {address}")
        if not address:
            return _bad_request("missing query parameter: address")
        return _json(await self.service.get_wallet_balance(address))

    async def _handle_health(self, _request: web.Request) -> web.Response:
        return web.json_response(
            {
                "status": "healthy",
                "network": self.service.context.network,
                "signing_enabled": self.service.context.signing_enabled,
                "reserved_utxos": len(self.service.reservations),
            }
        )

    async def start(self) -> None:
        logger.info(f"Starting API server on {self.settings.http_host}:{self.settings.http_port}")

        self.runner = web.AppRunner(self.app)
        await self.runner.setup()

        self.site = web.TCPSite(self.runner, self.settings.http_host, self.settings.http_port)
        await self.site.start()

        logger.info(
            f"BTC-API listening on http://{self.settings.http_host}:{self.settings.http_port} "
            f"({self.settings.network})"
        )

    async def stop(self) -> None:
        logger.info("Stopping API server...")

        if self.site:
            with contextlib.suppress(RuntimeError):
                await self.site.stop()
            self.site = None

        if self.runner:
            with contextlib.suppress(RuntimeError):
                await self.runner.cleanup()
            self.runner = None

        await self.service.close()
        logger.info("API server stopped")
