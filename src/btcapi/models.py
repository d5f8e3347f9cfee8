"""
API and explorer data models using Pydantic for validation and serialization.

Outgoing models serialize with camelCase aliases (``isError``, ``errorMsg``...),
incoming explorer records are parsed leniently (unknown fields ignored).
"""

from __future__ import annotations

from enum import Enum
from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic.alias_generators import to_camel

from btcapi.errors import InvalidAmount, InvalidFee

T = TypeVar("T")


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ApiResponse(CamelModel, Generic[T]):
    """Uniform response envelope returned by every service operation."""

    is_error: bool
    data: T | None = None
    error_msg: str | None = None

    @classmethod
    def success(cls, data: T) -> ApiResponse[T]:
        return cls(is_error=False, data=data)

    @classmethod
    def failure(cls, message: str) -> ApiResponse[T]:
        return cls(is_error=True, error_msg=message)

    def to_dict(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


# ---------------------------------------------------------------------------
# Explorer records
# ---------------------------------------------------------------------------


class RawOutput(BaseModel):
    model_config = ConfigDict(extra="ignore")

    value: int
    addr: str | None = None
    script: str = ""
    spent: bool = False


class RawInput(BaseModel):
    model_config = ConfigDict(extra="ignore")

    # Coinbase inputs carry no previous output
    prev_out: RawOutput | None = None


class RawTransactionRecord(BaseModel):
    """Raw transaction as returned by blockchain.info ``/rawtx/<hash>``."""

    model_config = ConfigDict(extra="ignore")

    hash: str
    fee: int = 0
    double_spend: bool
    block_index: int | None = None
    block_height: int | None = None
    inputs: list[RawInput] = Field(default_factory=list)
    out: list[RawOutput] = Field(default_factory=list)
    rbf: bool | None = None


class ExplorerApiError(BaseModel):
    """Error variant of the raw transaction response."""

    error: str
    message: str = ""


RawTransactionResponse = TypeAdapter(RawTransactionRecord | ExplorerApiError)


class NetworkFee(CamelModel):
    """Recommended fee rates in sat/vB."""

    fastest_fee: int
    half_hour_fee: int
    hour_fee: int
    economy_fee: int
    minimum_fee: int


# ---------------------------------------------------------------------------
# Transaction status
# ---------------------------------------------------------------------------


class TransactionStatus(str, Enum):
    CONFIRMED = "Confirmed"
    CANCELLED = "Cancelled"
    PENDING = "Pending"


class AddressAmount(CamelModel):
    address: str
    amount: int


class TransactionDetail(CamelModel):
    transaction_hash: str
    status: TransactionStatus
    block_index: int | None = None
    block_height: int | None = None
    total_fee: int
    total_input: int
    total_output: int
    inputs: list[AddressAmount] = Field(default_factory=list)
    outputs: list[AddressAmount] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Service requests and responses
# ---------------------------------------------------------------------------


class CreateTransactionParams(CamelModel):
    sender_address: str = Field(..., min_length=1)
    receiver_address: str = Field(..., min_length=1)
    amount: int
    fee: int
    broadcast: bool = False

    def check_amounts(self) -> CreateTransactionParams:
        if self.amount <= 0:
            raise InvalidAmount(f"amount must be positive, got {self.amount}")
        if self.fee < 0:
            raise InvalidFee(f"fee must not be negative, got {self.fee}")
        return self


class BroadcastTransactionParams(CamelModel):
    signed_transaction: str = Field(..., min_length=1)


class BroadcastData(CamelModel):
    txid: str
    explorer_url: str


class FundedInput(CamelModel):
    txid: str
    vout: int
    value: int


class CreateTransactionData(CamelModel):
    transaction_hex: str
    txid: str
    signed: bool
    inputs: list[FundedInput]
    send_amount: int
    fee: int
    change_amount: int
    broadcast: BroadcastData | None = None


class WalletBalance(CamelModel):
    address: str
    confirmed: int
    unconfirmed: int
    total: int
    utxo_count: int
