"""
Esplora (mempool.space / blockstream.info) REST backend.

Provides UTXO lookup, transaction broadcast and recommended fee rates.
Reference: https://github.com/Blockstream/esplora/blob/master/API.md
"""

from __future__ import annotations

from loguru import logger
from pydantic import ValidationError

from btcapi.backends.base import Broadcaster, FeeOracle, UtxoProvider
from btcapi.backends.client import HttpBackend
from btcapi.errors import ResponseDecodeError
from btcapi.models import NetworkFee
from btcapi.wallet.models import UnspentOutput


class EsploraBackend(HttpBackend, UtxoProvider, Broadcaster, FeeOracle):
    name = "esplora"

    async def get_utxos(self, address: str) -> list[UnspentOutput]:
        response = await self._request("GET", f"address/{address}/utxo")
        payload = self._json(response)

        if not isinstance(payload, list):
            raise ResponseDecodeError(f"expected a UTXO list, got {type(payload).__name__}")

        utxos: list[UnspentOutput] = []
        try:
            for entry in payload:
                status = entry.get("status") or {}
                utxos.append(
                    UnspentOutput(
                        transaction_id=entry["txid"],
                        output_index=int(entry["vout"]),
                        value=int(entry["value"]),
                        confirmed=bool(status.get("confirmed", False)),
                        address=address,
                        block_height=status.get("block_height"),
                    )
                )
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise ResponseDecodeError(f"malformed UTXO entry: {e}") from e

        logger.debug(f"Found {len(utxos)} UTXOs for {address}")
        return utxos

    async def broadcast_transaction(self, tx_hex: str) -> str:
        """
        POST the raw hex to ``/tx``.

        Esplora answers 400 with a plain-text reason on rejection; that text is
        returned as-is so the broadcast validator can reject it.
        """
        response = await self._request("POST", "tx", content=tx_hex, allowed_status=(400,))
        logger.info(f"Broadcast response ({response.status_code}): {response.text[:100]}")
        return response.text

    async def get_network_fee(self) -> NetworkFee:
        response = await self._request("GET", "v1/fees/recommended")
        try:
            return NetworkFee.model_validate(self._json(response))
        except ValidationError as e:
            raise ResponseDecodeError(f"{e}") from e
