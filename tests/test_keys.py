"""
Tests for WIF decoding and key resolution.
"""

import pytest
from coincurve import PrivateKey

from btcapi.errors import TransactionSigningError
from btcapi.wallet.keys import StaticKeyStore, private_key_from_wif, private_key_to_wif

# Private key 0x01 as a compressed mainnet WIF
ONE_WIF_MAINNET = "KwDiBf89QgGbjEhKnhXJuH7LrciVrZi3qYjgd9M7rFU73sVHnoWn"


class TestWif:
    def test_decode_known_mainnet_wif(self):
        key = private_key_from_wif(ONE_WIF_MAINNET, "mainnet")
        assert key.secret == (1).to_bytes(32, "big")

    def test_encode_known_mainnet_wif(self):
        key = PrivateKey((1).to_bytes(32, "big"))
        assert private_key_to_wif(key, "mainnet") == ONE_WIF_MAINNET

    def test_testnet_round_trip(self, sender_key):
        wif = private_key_to_wif(sender_key, "testnet")
        assert wif[0] == "c"
        assert private_key_from_wif(wif, "testnet").secret == sender_key.secret

    def test_wrong_network(self):
        with pytest.raises(ValueError, match="not a testnet key"):
            private_key_from_wif(ONE_WIF_MAINNET, "testnet")

    def test_bad_checksum(self):
        with pytest.raises(ValueError):
            private_key_from_wif(ONE_WIF_MAINNET[:-1] + "m", "mainnet")


class TestStaticKeyStore:
    def test_resolves_by_address(self, key_store, sender_key, sender_address):
        assert key_store.resolve_key(sender_address) is sender_key
        assert key_store.addresses == [sender_address]

    def test_resolves_uppercase_bech32(self, key_store, sender_key, sender_address):
        assert key_store.resolve_key(sender_address.upper()) is sender_key

    def test_unknown_address(self, key_store, receiver_address):
        with pytest.raises(TransactionSigningError):
            key_store.resolve_key(receiver_address)

    def test_from_wifs(self, sender_key, sender_address):
        store = StaticKeyStore.from_wifs([private_key_to_wif(sender_key, "testnet")], "testnet")
        assert store.resolve_key(sender_address).secret == sender_key.secret
