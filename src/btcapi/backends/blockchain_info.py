"""
blockchain.info raw transaction backend.

``/rawtx/<hash>`` exposes the inclusion signals the status classifier needs
(``block_index``, ``block_height``, ``double_spend``, ``rbf``), which Esplora
does not report.
"""

from __future__ import annotations

from loguru import logger
from pydantic import ValidationError

from btcapi.backends.base import RawTransactionProvider
from btcapi.backends.client import HttpBackend
from btcapi.errors import ExternalApiError, ResponseDecodeError
from btcapi.models import ExplorerApiError, RawTransactionRecord, RawTransactionResponse


class BlockchainInfoBackend(HttpBackend, RawTransactionProvider):
    name = "blockchain.info"

    async def get_raw_transaction(self, txid: str) -> RawTransactionRecord:
        # Error records come back with 4xx/5xx statuses and a JSON body
        response = await self._request(
            "GET", f"rawtx/{txid}", allowed_status=(400, 404, 500)
        )
        payload = self._json(response)

        try:
            record = RawTransactionResponse.validate_python(payload)
        except ValidationError as e:
            raise ResponseDecodeError(f"{e}") from e

        if isinstance(record, ExplorerApiError):
            logger.warning(f"Explorer error for {txid}: {record.error}")
            raise ExternalApiError(f"{record.error}: {record.message}")

        return record
