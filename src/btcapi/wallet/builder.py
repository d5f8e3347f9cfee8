"""
Unsigned transaction builder.

Two outputs, always in this order: the payment to the receiver, then the change
back to the sender (the sender address doubles as the change address).
"""

from __future__ import annotations

from collections.abc import Sequence

from btcapi.constants import TX_LOCKTIME, TX_VERSION
from btcapi.wallet.address import address_to_scriptpubkey
from btcapi.wallet.transaction import Transaction, TxInput, TxOutput


class TransactionBuilder:
    def __init__(self, network: str = "mainnet"):
        self.network = network

    def build(
        self,
        receiver_address: str,
        sender_address: str,
        send_amount: int,
        change_amount: int,
        inputs: Sequence[TxInput],
    ) -> Transaction:
        """
        Build an unsigned transaction.

        Args:
            receiver_address: Destination of ``send_amount``
            sender_address: Funding address, receives ``change_amount``
            send_amount: Payment value in satoshis
            change_amount: Change value in satoshis (may be zero)
            inputs: Funded inputs in selection order

        Raises:
            InvalidAddress: if either address is malformed or not on this network
        """
        receiver_script = address_to_scriptpubkey(receiver_address, self.network)
        sender_script = address_to_scriptpubkey(sender_address, self.network)

        # Unsigned inputs carry no scriptSig and no witness
        bare_inputs = tuple(TxInput(txid=inp.txid, vout=inp.vout) for inp in inputs)

        return Transaction(
            inputs=bare_inputs,
            outputs=(
                TxOutput(value=send_amount, script_pubkey=receiver_script),
                TxOutput(value=change_amount, script_pubkey=sender_script),
            ),
            version=TX_VERSION,
            locktime=TX_LOCKTIME,
        )
