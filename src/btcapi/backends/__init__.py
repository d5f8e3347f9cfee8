"""
Explorer backends.

Available backends:
- EsploraBackend: UTXOs, broadcast and fee rates (mempool.space / blockstream.info)
- BlockchainInfoBackend: raw transaction records with inclusion signals
"""

from btcapi.backends.base import Broadcaster, FeeOracle, RawTransactionProvider, UtxoProvider
from btcapi.backends.blockchain_info import BlockchainInfoBackend
from btcapi.backends.esplora import EsploraBackend

__all__ = [
    "BlockchainInfoBackend",
    "Broadcaster",
    "EsploraBackend",
    "FeeOracle",
    "RawTransactionProvider",
    "UtxoProvider",
]
