"""
Signing key resolution.

The signer never assumes one global key: every input asks the key store for
the key controlling the address that owns the consumed output.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable

import base58
from coincurve import PrivateKey
from loguru import logger

from btcapi.constants import WIF_VERSION
from btcapi.errors import TransactionSigningError
from btcapi.wallet.address import pubkey_to_p2wpkh_address


def private_key_from_wif(wif: str, network: str = "mainnet") -> PrivateKey:
    """Decode a compressed-key WIF string for the given network."""
    try:
        decoded = base58.b58decode_check(wif)
    except ValueError as e:
        raise ValueError("Invalid WIF checksum") from e

    if len(decoded) != 34 or decoded[-1] != 0x01:
        raise ValueError("Only compressed-key WIF is supported")
    if decoded[0] != WIF_VERSION[network]:
        raise ValueError(f"WIF is not a {network} key")

    return PrivateKey(decoded[1:33])


def private_key_to_wif(private_key: PrivateKey, network: str = "mainnet") -> str:
    payload = bytes([WIF_VERSION[network]]) + private_key.secret + b"\x01"
    return base58.b58encode_check(payload).decode("ascii")


class KeyStore(ABC):
    @abstractmethod
    def resolve_key(self, address: str) -> PrivateKey:
        """Return the private key controlling ``address``.

        Raises TransactionSigningError if no key is known for it.
        """


class StaticKeyStore(KeyStore):
    """Fixed set of keys, indexed by their P2WPKH address on one network."""

    def __init__(self, keys: Iterable[PrivateKey], network: str = "mainnet") -> None:
        self.network = network
        self._keys: dict[str, PrivateKey] = {}
        for key in keys:
            address = pubkey_to_p2wpkh_address(key.public_key.format(compressed=True), network)
            self._keys[address] = key
        logger.info(f"Loaded {len(self._keys)} signing key(s) for {network}")

    @classmethod
    def from_wifs(cls, wifs: Iterable[str], network: str = "mainnet") -> StaticKeyStore:
        return cls((private_key_from_wif(wif, network) for wif in wifs), network)

    @property
    def addresses(self) -> list[str]:
        return list(self._keys)

    def resolve_key(self, address: str) -> PrivateKey:
        key = self._keys.get(address) or self._keys.get(address.lower())
        if key is None:
            raise TransactionSigningError(f"No signing key for address {address}")
        return key
