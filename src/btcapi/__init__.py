"""
btcapi - Bitcoin wallet transaction service

Coin selection, transaction building, P2WPKH signing, broadcast validation and
explorer based transaction status classification.
"""

__version__ = "0.1.0"

from btcapi.broadcast import BroadcastResultValidator
from btcapi.config import ChainContext, Settings
from btcapi.errors import BtcApiError
from btcapi.models import ApiResponse, TransactionStatus
from btcapi.service import BitcoinService
from btcapi.status import TransactionStatusClassifier

__all__ = [
    "ApiResponse",
    "BitcoinService",
    "BroadcastResultValidator",
    "BtcApiError",
    "ChainContext",
    "Settings",
    "TransactionStatus",
    "TransactionStatusClassifier",
]
