"""
Bitcoin address utilities.

Decodes addresses into scriptPubKeys while enforcing the configured network,
and derives P2WPKH addresses/scripts for signing keys.
"""

from __future__ import annotations

import hashlib

import base58
import bech32

from btcapi.constants import BASE58_P2PKH_VERSION, BASE58_P2SH_VERSION, BECH32_HRP
from btcapi.errors import InvalidAddress


def hash160(data: bytes) -> bytes:
    """RIPEMD160(SHA256(data))"""
    h = hashlib.new("ripemd160")
    h.update(hashlib.sha256(data).digest())
    return h.digest()


def _bech32_hrp(address: str) -> str:
    lowered = address.lower()
    if lowered.startswith("bcrt1"):
        return "bcrt"
    return lowered[: lowered.rfind("1")]


def _is_bech32(address: str) -> bool:
    return address.lower().startswith(("bc1", "tb1", "bcrt1"))


def address_to_scriptpubkey(address: str, network: str = "mainnet") -> bytes:
    """
    Convert a Bitcoin address to scriptPubKey, rejecting other networks.

    Supports:
    - P2WPKH (bc1q..., tb1q..., bcrt1q...)
    - P2WSH (bc1q... 62 chars, tb1q... 62 chars)
    - P2TR (bc1p..., tb1p...)
    - P2PKH (1..., m..., n...)
    - P2SH (3..., 2...)

    Raises:
        InvalidAddress: if the address cannot be parsed or belongs to another network
    """
    if network not in BECH32_HRP:
        raise InvalidAddress(f"{address} (unknown network {network})")

    if _is_bech32(address):
        hrp = _bech32_hrp(address)
        if hrp != BECH32_HRP[network]:
            raise InvalidAddress(f"{address} is not a {network} address")

        witver, witprog = bech32.decode(hrp, address)
        if witver is None or witprog is None:
            raise InvalidAddress(address)

        program = bytes(witprog)
        if witver == 0:
            if len(program) == 20:
                # P2WPKH: OP_0 <20-byte-pubkeyhash>
                return bytes([0x00, 0x14]) + program
            if len(program) == 32:
                # P2WSH: OP_0 <32-byte-scripthash>
                return bytes([0x00, 0x20]) + program
        elif witver == 1 and len(program) == 32:
            # P2TR: OP_1 <32-byte-pubkey>
            return bytes([0x51, 0x20]) + program

        raise InvalidAddress(f"{address} (unsupported witness program v{witver})")

    try:
        decoded = base58.b58decode_check(address)
    except ValueError as e:
        raise InvalidAddress(address) from e

    if len(decoded) != 21:
        raise InvalidAddress(address)

    version = decoded[0]
    payload = decoded[1:]

    if version == BASE58_P2PKH_VERSION[network]:
        # P2PKH: OP_DUP OP_HASH160 <20-byte-pubkeyhash> OP_EQUALVERIFY OP_CHECKSIG
        return bytes([0x76, 0xA9, 0x14]) + payload + bytes([0x88, 0xAC])
    if version == BASE58_P2SH_VERSION[network]:
        # P2SH: OP_HASH160 <20-byte-scripthash> OP_EQUAL
        return bytes([0xA9, 0x14]) + payload + bytes([0x87])

    raise InvalidAddress(f"{address} is not a {network} address")


def is_valid_address(address: str, network: str) -> bool:
    try:
        address_to_scriptpubkey(address, network)
    except InvalidAddress:
        return False
    return True


def pubkey_to_p2wpkh_address(pubkey: bytes, network: str = "mainnet") -> str:
    """
    Convert compressed public key to P2WPKH (native segwit) address.
    BIP173 bech32 encoding.
    """
    if len(pubkey) != 33:
        raise ValueError(f"Invalid compressed pubkey length: {len(pubkey)}")

    address = bech32.encode(BECH32_HRP[network], 0, hash160(pubkey))
    if address is None:
        raise ValueError(f"Failed to encode P2WPKH address for {pubkey.hex()}")
    return address


def pubkey_to_p2wpkh_script(pubkey: bytes) -> bytes:
    """Create P2WPKH scriptPubKey (OP_0 <20-byte-hash>)"""
    return bytes([0x00, 0x14]) + hash160(pubkey)


def create_p2wpkh_script_code(pubkey: bytes) -> bytes:
    """Create the scriptCode for P2WPKH signing (BIP 143).

    For P2WPKH, the scriptCode is the P2PKH script:
    OP_DUP OP_HASH160 <20-byte-pubkeyhash> OP_EQUALVERIFY OP_CHECKSIG

    Returns 25 bytes (without length prefix - the preimage serialization adds that).
    """
    return b"\x76\xa9\x14" + hash160(pubkey) + b"\x88\xac"
