"""
Coin selection.

Smallest-first accumulation over confirmed outputs: the payment is spread over
many small UTXOs rather than one large one, trading a larger transaction for a
tidier UTXO set.
"""

from __future__ import annotations

from loguru import logger

from btcapi.backends.base import UtxoProvider
from btcapi.errors import InsufficientFunds, NoUtxosFound, UtxoReservationConflict
from btcapi.wallet.models import FundingPlan, UnspentOutput
from btcapi.wallet.reservation import Outpoint, UtxoReservations
from btcapi.wallet.transaction import TxInput


def plan_funding(
    utxos: list[UnspentOutput],
    send_amount: int,
    fee: int,
    excluded: set[Outpoint] | None = None,
) -> FundingPlan:
    """
    Pick inputs covering ``send_amount + fee`` from a UTXO snapshot.

    Outputs are scanned in ascending value order (stable, so ties keep the
    provider's order). Unconfirmed and excluded outputs are never spent.

    Raises:
        InsufficientFunds: confirmed outputs cannot cover the target; carries
            ``target - confirmed_sum``
        UtxoReservationConflict: they could, but some are held by other requests
    """
    target = send_amount + fee
    excluded = excluded or set()

    selected: list[UnspentOutput] = []
    accumulated = 0

    for utxo in sorted(utxos, key=lambda u: u.value):
        if accumulated >= target:
            break
        if not utxo.confirmed:
            continue
        if utxo.outpoint in excluded:
            continue
        selected.append(utxo)
        accumulated += utxo.value

    if accumulated < target:
        confirmed_sum = sum(u.value for u in utxos if u.confirmed)
        if confirmed_sum >= target:
            raise UtxoReservationConflict(
                f"{target} sats available only through outputs reserved by other requests"
            )
        raise InsufficientFunds(target - confirmed_sum)

    inputs = tuple(TxInput(txid=u.transaction_id, vout=u.output_index) for u in selected)

    return FundingPlan(
        inputs=inputs,
        consumed_outputs=tuple(selected),
        change_amount=accumulated - target,
        send_amount=send_amount,
        fee=fee,
    )


class CoinSelector:
    def __init__(
        self,
        provider: UtxoProvider,
        reservations: UtxoReservations | None = None,
    ) -> None:
        self.provider = provider
        self.reservations = reservations

    async def select(self, address: str, send_amount: int, fee: int) -> FundingPlan:
        """
        Fund ``send_amount + fee`` from the live UTXO set of ``address``.

        When a reservation registry is attached, outputs claimed by other
        in-flight requests are skipped and the chosen ones are claimed before
        returning. The caller releases them if the transaction is abandoned.
        """
        utxos = await self.provider.get_utxos(address)
        if not utxos:
            raise NoUtxosFound(address)

        excluded = await self.reservations.reserved() if self.reservations is not None else set()
        plan = plan_funding(utxos, send_amount, fee, excluded)

        if self.reservations is not None and not await self.reservations.claim(plan.outpoints):
            raise UtxoReservationConflict(address)

        logger.debug(
            f"Selected {len(plan.inputs)} of {len(utxos)} UTXOs for {address}: "
            f"total={plan.total_value}, send={send_amount}, fee={fee}, "
            f"change={plan.change_amount}"
        )
        return plan
