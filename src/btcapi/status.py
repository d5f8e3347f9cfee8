"""
Transaction lifecycle classification from explorer inclusion signals.
"""

from __future__ import annotations

from btcapi.errors import UnableToVerifyTxnStatus
from btcapi.models import AddressAmount, RawTransactionRecord, TransactionDetail, TransactionStatus

UNKNOWN_ADDRESS = "Unknown"


def classify_signals(
    block_index: int | None,
    block_height: int | None,
    double_spend: bool,
    replace_by_fee: bool | None,
) -> TransactionStatus:
    """
    Map the four inclusion signals to a status.

    | block_index | block_height | double_spend | rbf          | status    |
    |-------------|--------------|--------------|--------------|-----------|
    | absent      | absent       | true         | any          | Cancelled |
    | present     | present      | false        | absent/false | Confirmed |
    | absent      | absent       | false        | true         | Pending   |

    Every other combination raises UnableToVerifyTxnStatus.
    """
    in_block = block_index is not None and block_height is not None
    not_in_block = block_index is None and block_height is None

    if not_in_block and double_spend:
        return TransactionStatus.CANCELLED
    if in_block and not double_spend and not replace_by_fee:
        return TransactionStatus.CONFIRMED
    if not_in_block and not double_spend and replace_by_fee is True:
        return TransactionStatus.PENDING

    raise UnableToVerifyTxnStatus(
        f"block_index={block_index}, block_height={block_height}, "
        f"double_spend={double_spend}, rbf={replace_by_fee}"
    )


def _input_amounts(record: RawTransactionRecord) -> list[AddressAmount]:
    return [
        AddressAmount(
            address=inp.prev_out.addr or UNKNOWN_ADDRESS,
            amount=inp.prev_out.value,
        )
        for inp in record.inputs
        if inp.prev_out is not None
    ]


def _output_amounts(record: RawTransactionRecord) -> list[AddressAmount]:
    return [
        AddressAmount(address=out.addr or UNKNOWN_ADDRESS, amount=out.value) for out in record.out
    ]


class TransactionStatusClassifier:
    def classify(
        self, record: RawTransactionRecord
    ) -> tuple[TransactionStatus, TransactionDetail]:
        status = classify_signals(
            record.block_index, record.block_height, record.double_spend, record.rbf
        )

        inputs = _input_amounts(record)
        outputs = _output_amounts(record)

        detail = TransactionDetail(
            transaction_hash=record.hash,
            status=status,
            block_index=record.block_index,
            block_height=record.block_height,
            total_fee=record.fee,
            total_input=sum(entry.amount for entry in inputs),
            total_output=sum(entry.amount for entry in outputs),
            inputs=inputs,
            outputs=outputs,
        )
        return status, detail
