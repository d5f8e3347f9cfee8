"""
Error taxonomy for the transaction service.

Every failure the engine can report is a BtcApiError subclass. The service
layer turns these into error envelopes; nothing here is allowed to escape to
an HTTP client as a traceback.
"""

from __future__ import annotations


class BtcApiError(Exception):
    """Base class for all service errors."""

    kind = "BtcApiError"

    def __init__(self, detail: str = "") -> None:
        self.detail = detail
        super().__init__(str(self))

    def __str__(self) -> str:
        if self.detail:
            return f"{self.kind}: {self.detail}"
        return self.kind


class ConfigLoadError(BtcApiError):
    kind = "ConfigLoadError"


class ExternalRequestError(BtcApiError):
    """Transport failure or unexpected HTTP status from a collaborator."""

    kind = "ExternalRequestError"


class ResponseDecodeError(BtcApiError):
    """Collaborator answered with a body that does not match the expected shape."""

    kind = "ResponseDecodeError"


class ExternalApiError(BtcApiError):
    """Collaborator answered with an explicit error record."""

    kind = "ExternalApiError"


class InvalidAmount(BtcApiError):
    kind = "InvalidAmount"


class InvalidFee(BtcApiError):
    kind = "InvalidFee"


class InvalidOutPoint(BtcApiError):
    kind = "InvalidOutPoint"


class InvalidAddress(BtcApiError):
    kind = "InvalidAddress"


class InvalidUrl(BtcApiError):
    kind = "InvalidUrl"


class NoUtxosFound(BtcApiError):
    kind = "NoUtxosFound"

    def __init__(self, address: str) -> None:
        self.address = address
        super().__init__(address)


class InsufficientFunds(BtcApiError):
    kind = "InsufficientFunds"

    def __init__(self, shortfall: int) -> None:
        self.shortfall = shortfall
        super().__init__(str(shortfall))


class UnableToVerifyTxnStatus(BtcApiError):
    kind = "UnableToVerifyTxnStatus"


class InvalidBroadcastResponse(BtcApiError):
    kind = "InvalidResponse"

    def __init__(self, response_text: str) -> None:
        self.response_text = response_text
        super().__init__(response_text)


class TransactionSigningError(BtcApiError):
    kind = "TransactionSigningError"


class UtxoReservationConflict(BtcApiError):
    """Selected outputs were claimed by a concurrent request."""

    kind = "UtxoReservationConflict"


class InvalidTransaction(BtcApiError):
    """Submitted transaction hex could not be parsed."""

    kind = "InvalidTransaction"
