"""
Test fixtures and configuration.
"""

from __future__ import annotations

from typing import Any

import pytest
from coincurve import PrivateKey

from btcapi.config import ChainContext
from btcapi.wallet.address import pubkey_to_p2wpkh_address
from btcapi.wallet.keys import StaticKeyStore
from btcapi.wallet.models import UnspentOutput

NETWORK = "testnet"

# Real mainnet P2SH addresses (from the raw transaction sample below)
MAINNET_P2SH_SENDER = "3LPwjGtU2gfY5kSAAj44Y62pjTFvAHp9L2"
MAINNET_P2SH_RECEIVER = "32SSfvCfRaSB8XzBLTHx8XHRxnZdJTBdVQ"


def address_for(key: PrivateKey, network: str = NETWORK) -> str:
    return pubkey_to_p2wpkh_address(key.public_key.format(compressed=True), network)


@pytest.fixture
def sender_key() -> PrivateKey:
    return PrivateKey(bytes.fromhex("01" * 32))


@pytest.fixture
def receiver_key() -> PrivateKey:
    return PrivateKey(bytes.fromhex("02" * 32))


@pytest.fixture
def sender_address(sender_key: PrivateKey) -> str:
    return address_for(sender_key)


@pytest.fixture
def receiver_address(receiver_key: PrivateKey) -> str:
    return address_for(receiver_key)


@pytest.fixture
def key_store(sender_key: PrivateKey) -> StaticKeyStore:
    return StaticKeyStore([sender_key], NETWORK)


@pytest.fixture
def chain_context() -> ChainContext:
    return ChainContext(
        network=NETWORK,
        esplora_url="https://esplora.test/api",
        rawtx_url="https://rawtx.test",
        explorer_tx_url="https://explorer.test/tx",
        signing_enabled=True,
    )


@pytest.fixture
def funded_utxos(sender_address: str) -> list[UnspentOutput]:
    """Deliberately unsorted; ascending order is 9054, 10443, 104000."""
    return [
        UnspentOutput("a" * 64, 19, 104000, True, sender_address, 800000),
        UnspentOutput("b" * 64, 0, 10443, True, sender_address, 800001),
        UnspentOutput("c" * 64, 0, 9054, True, sender_address, 800002),
    ]


@pytest.fixture
def raw_tx_json() -> dict[str, Any]:
    """blockchain.info /rawtx response for an unconfirmed RBF transaction."""
    prev_out_script = "a914cd2fd13bfc172b4684355643c32f0ffea44c8db887"
    return {
        "hash": "69f8ab2bf2d82b3e5fd7626736d040d9c11d4ea3c31fb0c30bb0d72e8c5a6238",
        "ver": 2,
        "vin_sz": 3,
        "vout_sz": 2,
        "size": 590,
        "weight": 1388,
        "fee": 5220,
        "relayed_by": "0.0.0.0",
        "lock_time": 0,
        "tx_index": 1983842466781942,
        "double_spend": False,
        "time": 1740082068,
        "block_index": None,
        "block_height": None,
        "inputs": [
            {
                "sequence": 4294967293,
                "script": "160014af5fcdda823022f56922022804997da4b01ae9d0",
                "index": i,
                "prev_out": {
                    "type": 0,
                    "spent": True,
                    "value": value,
                    "spending_outpoints": [{"tx_index": 1983842466781942, "n": i}],
                    "n": n,
                    "tx_index": 6450264201823941,
                    "script": prev_out_script,
                    "addr": MAINNET_P2SH_SENDER,
                },
            }
            for i, (value, n) in enumerate([(104000, 19), (10443, 0), (9054, 0)])
        ],
        "out": [
            {
                "type": 0,
                "spent": False,
                "value": 115000,
                "spending_outpoints": [],
                "n": 0,
                "tx_index": 1983842466781942,
                "script": "a91408368b78847d0f42552eea496044af9d3331b09f87",
                "addr": MAINNET_P2SH_RECEIVER,
            },
            {
                "type": 0,
                "spent": False,
                "value": 3277,
                "spending_outpoints": [],
                "n": 1,
                "tx_index": 1983842466781942,
                "script": prev_out_script,
                "addr": MAINNET_P2SH_SENDER,
            },
        ],
        "rbf": True,
    }
