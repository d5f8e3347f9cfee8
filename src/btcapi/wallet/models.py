"""
Wallet data models.
"""

from __future__ import annotations

from dataclasses import dataclass

from btcapi.wallet.transaction import TxInput


@dataclass(frozen=True)
class UnspentOutput:
    """UTXO as reported by the explorer for a single address"""

    transaction_id: str
    output_index: int
    value: int
    confirmed: bool
    address: str = ""
    block_height: int | None = None

    @property
    def outpoint(self) -> tuple[str, int]:
        return self.transaction_id, self.output_index


@dataclass(frozen=True)
class FundingPlan:
    """Result of coin selection"""

    inputs: tuple[TxInput, ...]
    consumed_outputs: tuple[UnspentOutput, ...]
    change_amount: int
    send_amount: int
    fee: int

    @property
    def total_value(self) -> int:
        return sum(utxo.value for utxo in self.consumed_outputs)

    @property
    def outpoints(self) -> list[tuple[str, int]]:
        return [utxo.outpoint for utxo in self.consumed_outputs]
