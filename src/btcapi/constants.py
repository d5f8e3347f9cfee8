"""
Bitcoin protocol constants used when building and signing transactions.
"""

from __future__ import annotations

TX_VERSION = 2
TX_LOCKTIME = 0

# Maximal sequence: no relative locktime, no BIP125 opt-in replace-by-fee
SEQUENCE_FINAL = 0xFFFFFFFF

SIGHASH_ALL = 0x01

# Standard P2PKH dust limit in Bitcoin Core
STANDARD_DUST_LIMIT = 546  # satoshis

TXID_HEX_LENGTH = 64

# Bech32 human readable parts per network
BECH32_HRP = {
    "mainnet": "bc",
    "testnet": "tb",
    "signet": "tb",
    "regtest": "bcrt",
}

# Base58 version bytes (P2PKH, P2SH) per network
BASE58_P2PKH_VERSION = {
    "mainnet": 0x00,
    "testnet": 0x6F,
    "signet": 0x6F,
    "regtest": 0x6F,
}
BASE58_P2SH_VERSION = {
    "mainnet": 0x05,
    "testnet": 0xC4,
    "signet": 0xC4,
    "regtest": 0xC4,
}

# WIF private key prefixes
WIF_VERSION = {
    "mainnet": 0x80,
    "testnet": 0xEF,
    "signet": 0xEF,
    "regtest": 0xEF,
}
