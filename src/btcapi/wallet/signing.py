"""
Bitcoin transaction signing for P2WPKH inputs (BIP 143).
"""

from __future__ import annotations

from collections.abc import Sequence

from coincurve import PrivateKey
from loguru import logger

from btcapi.constants import SIGHASH_ALL
from btcapi.errors import BtcApiError, TransactionSigningError
from btcapi.wallet.address import (
    address_to_scriptpubkey,
    create_p2wpkh_script_code,
    pubkey_to_p2wpkh_script,
)
from btcapi.wallet.keys import KeyStore
from btcapi.wallet.models import UnspentOutput
from btcapi.wallet.transaction import Transaction, encode_varint, hash256


def compute_sighash_segwit(
    tx: Transaction,
    input_index: int,
    script_code: bytes,
    value: int,
    sighash_type: int = SIGHASH_ALL,
) -> bytes:
    try:
        if input_index < 0 or input_index >= len(tx.inputs):
            raise TransactionSigningError("Input index out of range")

        hash_prevouts = hash256(b"".join(inp.serialize_outpoint() for inp in tx.inputs))
        hash_sequence = hash256(
            b"".join(inp.sequence.to_bytes(4, "little") for inp in tx.inputs)
        )
        hash_outputs = hash256(b"".join(out.serialize() for out in tx.outputs))

        target_input = tx.inputs[input_index]

        preimage = (
            tx.version.to_bytes(4, "little")
            + hash_prevouts
            + hash_sequence
            + target_input.serialize_outpoint()
            + encode_varint(len(script_code))
            + script_code
            + value.to_bytes(8, "little")
            + target_input.sequence.to_bytes(4, "little")
            + hash_outputs
            + tx.locktime.to_bytes(4, "little")
            + sighash_type.to_bytes(4, "little")
        )

        return hash256(preimage)

    except TransactionSigningError:
        raise
    except Exception as e:
        raise TransactionSigningError(f"Failed to compute sighash: {e}") from e


def sign_p2wpkh_input(
    tx: Transaction,
    input_index: int,
    script_code: bytes,
    value: int,
    private_key: PrivateKey,
    sighash_type: int = SIGHASH_ALL,
) -> bytes:
    """Sign a P2WPKH input using coincurve.

    Args:
        tx: The transaction to sign
        input_index: Index of the input to sign
        script_code: The scriptCode for signing (P2PKH script for P2WPKH)
        value: The value of the input being spent (in satoshis)
        private_key: coincurve PrivateKey instance
        sighash_type: Sighash type (default SIGHASH_ALL = 1)

    Returns:
        DER-encoded signature with sighash type byte appended
    """
    sighash = compute_sighash_segwit(tx, input_index, script_code, value, sighash_type)

    # The sighash is already SHA256d, hasher=None skips coincurve's own hashing
    signature = private_key.sign(sighash, hasher=None)

    return signature + bytes([sighash_type])


def create_witness_stack(signature: bytes, pubkey_bytes: bytes) -> list[bytes]:
    return [signature, pubkey_bytes]


class TransactionSigner:
    """Signs every input of an unsigned transaction independently.

    Each input uses its own consumed output's value and locking script and the
    key the key store resolves for that output's address.
    """

    def __init__(self, key_store: KeyStore, network: str = "mainnet") -> None:
        self.key_store = key_store
        self.network = network

    def sign(
        self, unsigned_tx: Transaction, consumed_outputs: Sequence[UnspentOutput]
    ) -> Transaction:
        if len(consumed_outputs) != len(unsigned_tx.inputs):
            raise TransactionSigningError(
                f"{len(unsigned_tx.inputs)} inputs but {len(consumed_outputs)} consumed outputs"
            )

        witnesses: list[list[bytes]] = []
        try:
            for index, (inp, utxo) in enumerate(zip(unsigned_tx.inputs, consumed_outputs)):
                if inp.outpoint != utxo.outpoint:
                    raise TransactionSigningError(
                        f"Input {index} spends {inp.txid}:{inp.vout}, "
                        f"expected {utxo.transaction_id}:{utxo.output_index}"
                    )

                private_key = self.key_store.resolve_key(utxo.address)
                pubkey = private_key.public_key.format(compressed=True)

                locking_script = address_to_scriptpubkey(utxo.address, self.network)
                if locking_script != pubkey_to_p2wpkh_script(pubkey):
                    raise TransactionSigningError(
                        f"Input {index}: {utxo.address} is not a P2WPKH output of the resolved key"
                    )

                script_code = create_p2wpkh_script_code(pubkey)
                signature = sign_p2wpkh_input(
                    unsigned_tx, index, script_code, utxo.value, private_key
                )
                witnesses.append(create_witness_stack(signature, pubkey))
                logger.debug(f"Signed input {index} ({utxo.transaction_id}:{utxo.output_index})")

        except TransactionSigningError:
            raise
        except BtcApiError as e:
            raise TransactionSigningError(str(e)) from e
        except Exception as e:
            raise TransactionSigningError(f"Signing failed: {e}") from e

        return unsigned_tx.with_witnesses(witnesses)
