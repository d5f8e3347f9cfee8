"""
Tests for P2WPKH signing.
"""

from __future__ import annotations

import pytest
from coincurve import PrivateKey, PublicKey

from btcapi.errors import TransactionSigningError
from btcapi.wallet.address import create_p2wpkh_script_code
from btcapi.wallet.builder import TransactionBuilder
from btcapi.wallet.coin_selection import plan_funding
from btcapi.wallet.keys import KeyStore, StaticKeyStore
from btcapi.wallet.models import UnspentOutput
from btcapi.wallet.signing import (
    TransactionSigner,
    compute_sighash_segwit,
    create_witness_stack,
    sign_p2wpkh_input,
)
from btcapi.wallet.transaction import Transaction, TxInput

NETWORK = "testnet"

# BIP143 native P2WPKH example
BIP143_UNSIGNED_TX = (
    "0100000002fff7f7881a8099afa6940d42d1e7f6362bec38171ea3edf433541db4e4ad969f0000000000eeffffff"
    "ef51e1b804cc89d182d279655c3aa89e815b1b309fe287d9b2b55d57b90ec68a0100000000ffffffff02202cb206"
    "000000001976a9148280b37df378db99f66f85c95a783a76ac7a6d5988ac9093510d000000001976a9143bde42db"
    "ee7e4dbe6a21b2d50ce2f0167faa815988ac11000000"
)
BIP143_PUBKEY = bytes.fromhex("025476c2e83188368da1ff3e292e7acafcdb3566bb0ad253f62fc70f07aeee6357")
BIP143_SIGHASH = "c37af31116d1b27caf68aae9e3ac82f1477929014d5b917657d0eb49478cb670"


def _unsigned(funded_utxos, sender_address, receiver_address):
    plan = plan_funding(funded_utxos, 115000, 5220)
    tx = TransactionBuilder(NETWORK).build(
        receiver_address, sender_address, 115000, plan.change_amount, plan.inputs
    )
    return tx, plan


class TestComputeSighash:
    def test_bip143_vector(self):
        tx = Transaction.from_hex(BIP143_UNSIGNED_TX)
        script_code = create_p2wpkh_script_code(BIP143_PUBKEY)

        assert script_code.hex() == "76a9141d0f172a0ecb48aee1be1f2687d2963ae33f71a188ac"

        sighash = compute_sighash_segwit(tx, 1, script_code, 600000000)
        assert sighash.hex() == BIP143_SIGHASH

    def test_value_commits(self):
        tx = Transaction.from_hex(BIP143_UNSIGNED_TX)
        script_code = create_p2wpkh_script_code(BIP143_PUBKEY)

        assert compute_sighash_segwit(tx, 1, script_code, 600000001).hex() != BIP143_SIGHASH

    def test_input_index_out_of_range(self):
        tx = Transaction.from_hex(BIP143_UNSIGNED_TX)

        with pytest.raises(TransactionSigningError, match="out of range"):
            compute_sighash_segwit(tx, 2, b"", 0)


class TestSignP2wpkhInput:
    def test_signature_verifies(self, sender_key: PrivateKey):
        tx = Transaction.from_hex(BIP143_UNSIGNED_TX)
        pubkey = sender_key.public_key.format(compressed=True)
        script_code = create_p2wpkh_script_code(pubkey)

        signature = sign_p2wpkh_input(tx, 0, script_code, 1000, sender_key)

        assert signature[-1] == 0x01
        assert signature[0] == 0x30
        sighash = compute_sighash_segwit(tx, 0, script_code, 1000)
        assert PublicKey(pubkey).verify(signature[:-1], sighash, hasher=None)

    def test_deterministic(self, sender_key: PrivateKey):
        tx = Transaction.from_hex(BIP143_UNSIGNED_TX)
        script_code = create_p2wpkh_script_code(sender_key.public_key.format(compressed=True))

        first = sign_p2wpkh_input(tx, 0, script_code, 1000, sender_key)
        second = sign_p2wpkh_input(tx, 0, script_code, 1000, sender_key)
        assert first == second

    def test_witness_stack(self):
        assert create_witness_stack(b"sig", b"pub") == [b"sig", b"pub"]


class TestTransactionSigner:
    def test_signs_every_input(
        self, funded_utxos, sender_address, receiver_address, key_store, sender_key
    ):
        unsigned, plan = _unsigned(funded_utxos, sender_address, receiver_address)

        signed = TransactionSigner(key_store, NETWORK).sign(unsigned, plan.consumed_outputs)

        assert signed.is_signed
        assert signed.txid == unsigned.txid
        assert signed.outputs == unsigned.outputs

        pubkey = sender_key.public_key.format(compressed=True)
        script_code = create_p2wpkh_script_code(pubkey)
        for index, (inp, utxo) in enumerate(zip(signed.inputs, plan.consumed_outputs)):
            signature, witness_pubkey = inp.witness
            assert witness_pubkey == pubkey
            sighash = compute_sighash_segwit(unsigned, index, script_code, utxo.value)
            assert sender_key.public_key.verify(signature[:-1], sighash, hasher=None)

    def test_signed_hex_parses_back(self, funded_utxos, sender_address, receiver_address, key_store):
        unsigned, plan = _unsigned(funded_utxos, sender_address, receiver_address)
        signed = TransactionSigner(key_store, NETWORK).sign(unsigned, plan.consumed_outputs)

        assert Transaction.from_hex(signed.to_hex()) == signed

    def test_unknown_address(self, funded_utxos, sender_address, receiver_address, receiver_key):
        unsigned, plan = _unsigned(funded_utxos, sender_address, receiver_address)
        store = StaticKeyStore([receiver_key], NETWORK)

        with pytest.raises(TransactionSigningError, match="No signing key"):
            TransactionSigner(store, NETWORK).sign(unsigned, plan.consumed_outputs)

    def test_consumed_output_count_mismatch(
        self, funded_utxos, sender_address, receiver_address, key_store
    ):
        unsigned, plan = _unsigned(funded_utxos, sender_address, receiver_address)

        with pytest.raises(TransactionSigningError, match="consumed outputs"):
            TransactionSigner(key_store, NETWORK).sign(unsigned, plan.consumed_outputs[:-1])

    def test_outpoint_mismatch(self, funded_utxos, sender_address, receiver_address, key_store):
        unsigned, plan = _unsigned(funded_utxos, sender_address, receiver_address)
        swapped = (plan.consumed_outputs[1], plan.consumed_outputs[0], plan.consumed_outputs[2])

        with pytest.raises(TransactionSigningError, match="spends"):
            TransactionSigner(key_store, NETWORK).sign(unsigned, swapped)

    def test_key_not_matching_output_script(
        self, funded_utxos, sender_address, receiver_address, sender_key
    ):
        class AnyAddressKeyStore(KeyStore):
            def resolve_key(self, address: str) -> PrivateKey:
                return sender_key

        foreign = UnspentOutput("a" * 64, 0, 5000, True, receiver_address)
        tx = TransactionBuilder(NETWORK).build(
            receiver_address, sender_address, 4000, 0, [TxInput(txid="a" * 64, vout=0)]
        )

        with pytest.raises(TransactionSigningError, match="not a P2WPKH output"):
            TransactionSigner(AnyAddressKeyStore(), NETWORK).sign(tx, [foreign])
