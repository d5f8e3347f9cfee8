"""
Broadcast response validation.

Explorers answer a broadcast with free-form text; only a bare 64-character hex
transaction id counts as success.
"""

from __future__ import annotations

import re

import httpx

from btcapi.constants import TXID_HEX_LENGTH
from btcapi.errors import InvalidBroadcastResponse, InvalidUrl

TXID_PATTERN = re.compile(rf"[0-9a-fA-F]{{{TXID_HEX_LENGTH}}}")


class BroadcastResultValidator:
    def __init__(self, explorer_tx_url: str) -> None:
        self.explorer_tx_url = explorer_tx_url

    def validate(self, response_text: str) -> str:
        """Return the transaction id, or raise InvalidBroadcastResponse."""
        if not TXID_PATTERN.fullmatch(response_text):
            raise InvalidBroadcastResponse(response_text)
        return response_text

    def explorer_url(self, txid: str) -> str:
        try:
            base = httpx.URL(self.explorer_tx_url.rstrip("/") + "/")
        except httpx.InvalidURL as e:
            raise InvalidUrl(f"{self.explorer_tx_url}: {e}") from e
        if not base.is_absolute_url:
            raise InvalidUrl(self.explorer_tx_url)
        return str(base.join(txid))
