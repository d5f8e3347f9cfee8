"""
Collaborator interfaces consumed by the transaction engine.

Implementations provide access to explorer data without any local node or
wallet. Every method raises a BtcApiError subclass on failure; none retries.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from btcapi.models import NetworkFee, RawTransactionRecord
from btcapi.wallet.models import UnspentOutput


class UtxoProvider(ABC):
    @abstractmethod
    async def get_utxos(self, address: str) -> list[UnspentOutput]:
        """Get unspent outputs for an address (empty list if none)"""


class RawTransactionProvider(ABC):
    @abstractmethod
    async def get_raw_transaction(self, txid: str) -> RawTransactionRecord:
        """Get the raw transaction record for a hash.

        Raises ExternalApiError when the explorer answers with an error record.
        """


class Broadcaster(ABC):
    @abstractmethod
    async def broadcast_transaction(self, tx_hex: str) -> str:
        """Submit a signed transaction, returns the explorer's response text verbatim"""


class FeeOracle(ABC):
    @abstractmethod
    async def get_network_fee(self) -> NetworkFee:
        """Get recommended fee rates in sat/vB"""
