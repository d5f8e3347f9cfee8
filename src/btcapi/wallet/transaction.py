"""
Transaction data structures and wire (de)serialization.

Unsigned transactions are serialized in the legacy layout; as soon as any input
carries witness data the BIP144 segwit layout (marker + flag) is used.
"""

from __future__ import annotations

import hashlib
import struct
from dataclasses import dataclass, replace

from btcapi.constants import SEQUENCE_FINAL, TX_LOCKTIME, TX_VERSION


class TransactionParseError(ValueError):
    pass


def hash256(data: bytes) -> bytes:
    return hashlib.sha256(hashlib.sha256(data).digest()).digest()


def encode_varint(value: int) -> bytes:
    if value < 0xFD:
        return bytes([value])
    if value <= 0xFFFF:
        return b"\xfd" + struct.pack("<H", value)
    if value <= 0xFFFFFFFF:
        return b"\xfe" + struct.pack("<I", value)
    return b"\xff" + struct.pack("<Q", value)


def read_varint(data: bytes, offset: int) -> tuple[int, int]:
    first = data[offset]
    offset += 1

    if first < 0xFD:
        return first, offset
    if first == 0xFD:
        return struct.unpack("<H", data[offset : offset + 2])[0], offset + 2
    if first == 0xFE:
        return struct.unpack("<I", data[offset : offset + 4])[0], offset + 4
    return struct.unpack("<Q", data[offset : offset + 8])[0], offset + 8


@dataclass(frozen=True)
class TxInput:
    """Transaction input referencing a previous output.

    ``txid`` is in RPC (big-endian) hex, as reported by explorers.
    """

    txid: str
    vout: int
    script_sig: bytes = b""
    sequence: int = SEQUENCE_FINAL
    witness: tuple[bytes, ...] = ()

    @property
    def txid_le(self) -> bytes:
        return bytes.fromhex(self.txid)[::-1]

    @property
    def outpoint(self) -> tuple[str, int]:
        return self.txid, self.vout

    def serialize_outpoint(self) -> bytes:
        return self.txid_le + struct.pack("<I", self.vout)

    def serialize(self) -> bytes:
        return (
            self.serialize_outpoint()
            + encode_varint(len(self.script_sig))
            + self.script_sig
            + struct.pack("<I", self.sequence)
        )


@dataclass(frozen=True)
class TxOutput:
    value: int
    script_pubkey: bytes

    def serialize(self) -> bytes:
        return (
            struct.pack("<Q", self.value) + encode_varint(len(self.script_pubkey)) + self.script_pubkey
        )


@dataclass(frozen=True)
class Transaction:
    inputs: tuple[TxInput, ...]
    outputs: tuple[TxOutput, ...]
    version: int = TX_VERSION
    locktime: int = TX_LOCKTIME

    @property
    def has_witness(self) -> bool:
        return any(inp.witness for inp in self.inputs)

    @property
    def is_signed(self) -> bool:
        return bool(self.inputs) and all(inp.witness for inp in self.inputs)

    @property
    def total_output_value(self) -> int:
        return sum(out.value for out in self.outputs)

    def with_witnesses(self, witnesses: list[list[bytes]]) -> Transaction:
        if len(witnesses) != len(self.inputs):
            raise ValueError(
                f"Expected {len(self.inputs)} witness stacks, got {len(witnesses)}"
            )
        inputs = tuple(
            replace(inp, witness=tuple(stack)) for inp, stack in zip(self.inputs, witnesses)
        )
        return replace(self, inputs=inputs)

    def serialize_legacy(self) -> bytes:
        """Serialize without witness data (the form hashed for the txid)."""
        result = struct.pack("<I", self.version)
        result += encode_varint(len(self.inputs))
        for inp in self.inputs:
            result += inp.serialize()
        result += encode_varint(len(self.outputs))
        for out in self.outputs:
            result += out.serialize()
        result += struct.pack("<I", self.locktime)
        return result

    def serialize(self) -> bytes:
        if not self.has_witness:
            return self.serialize_legacy()

        result = struct.pack("<I", self.version)
        # SegWit marker and flag
        result += bytes([0x00, 0x01])
        result += encode_varint(len(self.inputs))
        for inp in self.inputs:
            result += inp.serialize()
        result += encode_varint(len(self.outputs))
        for out in self.outputs:
            result += out.serialize()

        for inp in self.inputs:
            result += encode_varint(len(inp.witness))
            for item in inp.witness:
                result += encode_varint(len(item))
                result += item

        result += struct.pack("<I", self.locktime)
        return result

    def to_hex(self) -> str:
        return self.serialize().hex()

    @property
    def txid(self) -> str:
        """Double SHA256 of the non-witness serialization, in RPC byte order."""
        return hash256(self.serialize_legacy())[::-1].hex()

    @classmethod
    def from_hex(cls, tx_hex: str) -> Transaction:
        try:
            tx_bytes = bytes.fromhex(tx_hex)
        except ValueError as e:
            raise TransactionParseError(f"Transaction is not valid hex: {e}") from e
        return cls.deserialize(tx_bytes)

    @classmethod
    def deserialize(cls, tx_bytes: bytes) -> Transaction:
        try:
            offset = 0
            version = struct.unpack("<I", tx_bytes[offset : offset + 4])[0]
            offset += 4

            has_witness = False
            if tx_bytes[offset] == 0x00 and tx_bytes[offset + 1] == 0x01:
                has_witness = True
                offset += 2

            input_count, offset = read_varint(tx_bytes, offset)
            raw_inputs: list[tuple[str, int, bytes, int]] = []
            for _ in range(input_count):
                txid = tx_bytes[offset : offset + 32][::-1].hex()
                offset += 32
                vout = struct.unpack("<I", tx_bytes[offset : offset + 4])[0]
                offset += 4
                script_len, offset = read_varint(tx_bytes, offset)
                script_sig = tx_bytes[offset : offset + script_len]
                offset += script_len
                sequence = struct.unpack("<I", tx_bytes[offset : offset + 4])[0]
                offset += 4
                raw_inputs.append((txid, vout, script_sig, sequence))

            output_count, offset = read_varint(tx_bytes, offset)
            outputs: list[TxOutput] = []
            for _ in range(output_count):
                value = struct.unpack("<Q", tx_bytes[offset : offset + 8])[0]
                offset += 8
                script_len, offset = read_varint(tx_bytes, offset)
                script_pubkey = tx_bytes[offset : offset + script_len]
                offset += script_len
                outputs.append(TxOutput(value, script_pubkey))

            witnesses: list[tuple[bytes, ...]] = [() for _ in range(input_count)]
            if has_witness:
                for i in range(input_count):
                    stack_count, offset = read_varint(tx_bytes, offset)
                    items = []
                    for _ in range(stack_count):
                        item_len, offset = read_varint(tx_bytes, offset)
                        items.append(tx_bytes[offset : offset + item_len])
                        offset += item_len
                    witnesses[i] = tuple(items)

            locktime = struct.unpack("<I", tx_bytes[offset : offset + 4])[0]
            offset += 4
        except (IndexError, struct.error) as e:
            raise TransactionParseError(f"Failed to parse transaction: {e}") from e

        if offset != len(tx_bytes):
            raise TransactionParseError(
                f"Trailing data after transaction: {len(tx_bytes) - offset} bytes"
            )

        inputs = tuple(
            TxInput(txid, vout, script_sig, sequence, witnesses[i])
            for i, (txid, vout, script_sig, sequence) in enumerate(raw_inputs)
        )
        return cls(inputs=inputs, outputs=tuple(outputs), version=version, locktime=locktime)
