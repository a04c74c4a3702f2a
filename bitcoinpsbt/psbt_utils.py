# Copyright (C) 2018-2025 The python-bitcoin-psbt developers
#
# This file is part of python-bitcoin-psbt
#
# It is subject to the license terms in the LICENSE file found in the top-level
# directory of this distribution.
#
# No part of python-bitcoin-psbt, including this file, may be copied, modified,
# propagated, or distributed except according to the terms contained in the
# LICENSE file.

"""
psbt_utils.py
=============
This module contains the key-value map codec and the field value helpers of
Partially Signed Bitcoin Transactions (PSBTs).

Functions provided:
  - is_valid_pubkey / is_valid_xonly_pubkey: Validate public key encodings.
  - read_key_value_pair / write_key_value_pair: The <key><value> map entries.
  - read_map: Reads a whole map up to its 0x00 separator.
  - encode_witness_stack / decode_witness_stack: Serialize and parse witness stacks.
  - encode_uint32 / decode_uint32: Fixed width little-endian integer fields.
  - encode_tap_tree / decode_tap_tree: The PSBT_OUT_TAP_TREE value.
  - encode_tap_bip32 / decode_tap_bip32: The PSBT_*_TAP_BIP32_DERIVATION value.
  - parse_path: Parses BIP-32 path strings like m/84'/1'/0'.

KeyOriginInfo represents the (fingerprint, path) pair of BIP-32 derivations.
"""

import struct
from io import BytesIO
from typing import Optional, Union

from bitcoinpsbt.errors import FormatError
from bitcoinpsbt.utils import (
    encode_varint,
    parse_compact_size,
    prepend_compact_size,
    read_bytes,
    read_compact_size,
    read_var_bytes,
)

HARDENED_INDEX = 0x80000000


def is_valid_pubkey(pubkey: bytes) -> bool:
    """
    Check whether the given public key has a valid SEC encoding.

    Compressed keys are 33 bytes starting with 0x02 or 0x03 and uncompressed
    keys are 65 bytes starting with 0x04.
    """
    if len(pubkey) == 33:
        return pubkey[0] in (0x02, 0x03)
    if len(pubkey) == 65:
        return pubkey[0] == 0x04
    return False


def is_valid_xonly_pubkey(pubkey: bytes) -> bool:
    """x-only public keys (BIP-340) are 32 bytes"""
    return len(pubkey) == 32


def read_key_value_pair(stream: BytesIO) -> Optional[tuple[int, bytes, bytes]]:
    """
    Read a key-value pair from the stream.

    Args:
        stream: The serialized PSBT positioned at the start of a key.

    Returns:
        Tuple of (key_type, key_data, value_data) or None if the separator
        was found.

    Raises:
        FormatError if the stream ends before the pair does or the key type
        is not a canonical compact size.
    """
    key_len = read_compact_size(stream)
    if key_len == 0:
        return None

    key = read_bytes(stream, key_len)
    key_type, type_size = parse_compact_size(key)
    value = read_var_bytes(stream)
    return key_type, key[type_size:], value


def write_key_value_pair(key_type: int, key_data: bytes, value: bytes) -> bytes:
    """Serializes a key-value pair"""
    key = encode_varint(key_type) + key_data
    return prepend_compact_size(key) + prepend_compact_size(value)


def read_map(stream: BytesIO) -> list[tuple[int, bytes, bytes]]:
    """
    Read all the key-value pairs of a map up to and including its separator.

    Raises:
        FormatError if the same key appears twice.
    """
    pairs = []
    seen = set()
    while True:
        pair = read_key_value_pair(stream)
        if pair is None:
            return pairs
        key_type, key_data, _ = pair
        if (key_type, key_data) in seen:
            raise FormatError(
                f"Duplicate key 0x{key_type:02x}{key_data.hex()} in map"
            )
        seen.add((key_type, key_data))
        pairs.append(pair)


def encode_witness_stack(witness_stack: list[bytes]) -> bytes:
    """
    Encode a witness stack for a segwit transaction.

    The encoding is:
        <varint count> followed by a sequence of [<varint length> <data>] items.
    """
    result = encode_varint(len(witness_stack))
    for item in witness_stack:
        result += prepend_compact_size(item)
    return result


def decode_witness_stack(data: bytes) -> list[bytes]:
    """
    Decode an encoded witness stack into its component items.

    Raises:
        FormatError if the items do not consume exactly all of data.
    """
    stream = BytesIO(data)
    count = read_compact_size(stream)
    items = [read_var_bytes(stream) for _ in range(count)]
    if stream.read(1):
        raise FormatError("Trailing data after witness stack")
    return items


def encode_uint32(value: int) -> bytes:
    return struct.pack("<I", value)


def decode_uint32(data: bytes, field: str) -> int:
    """Decodes a 4 byte little-endian unsigned field value"""
    if len(data) != 4:
        raise FormatError(f"{field} must be 4 bytes, got {len(data)}")
    return struct.unpack("<I", data)[0]


def parse_path(path: str) -> list[int]:
    """
    Parse a BIP-32 derivation path string into child indexes.

    Both ' and h mark hardened indexes, e.g. m/84'/1'/0'/0/5 or 84h/1h/0h.
    """
    parts = path.strip().split("/")
    if parts and parts[0] in ("m", "M"):
        parts = parts[1:]

    indexes = []
    for part in parts:
        if not part:
            raise ValueError(f"Invalid derivation path: {path}")
        hardened = part[-1] in ("'", "h", "H")
        number = part[:-1] if hardened else part
        if not number.isdigit() or int(number) >= HARDENED_INDEX:
            raise ValueError(f"Invalid derivation path: {path}")
        indexes.append(int(number) + (HARDENED_INDEX if hardened else 0))
    return indexes


class KeyOriginInfo:
    """The origin of a key derived from a BIP-32 master key

    Attributes
    ----------
    fingerprint : bytes
        the first 4 bytes of the hash160 of the master public key
    path : list[int]
        the child indexes from the master key to the key

    Methods
    -------
    from_bytes(data)
        parses a serialized key origin (classmethod)
    from_string(fingerprint, path)
        creates a key origin from hex fingerprint and path string (classmethod)
    to_bytes()
        serializes the key origin
    get_path_string()
        returns the path as a string, like m/84'/0'/0'
    """

    def __init__(self, fingerprint: bytes, path: list[int]) -> None:
        if len(fingerprint) != 4:
            raise ValueError("Key fingerprint must be 4 bytes")
        self.fingerprint = fingerprint
        self.path = list(path)

    @classmethod
    def from_bytes(cls, data: bytes) -> "KeyOriginInfo":
        if len(data) < 4 or len(data) % 4:
            raise FormatError(
                f"Key origin must be a fingerprint and 4 byte indexes, got {len(data)} bytes"
            )
        count = (len(data) - 4) // 4
        path = list(struct.unpack("<" + "I" * count, data[4:]))
        return cls(data[:4], path)

    @classmethod
    def from_string(cls, fingerprint: str, path: Union[str, list[int]]) -> "KeyOriginInfo":
        if isinstance(path, str):
            path = parse_path(path)
        return cls(bytes.fromhex(fingerprint), path)

    def to_bytes(self) -> bytes:
        return self.fingerprint + struct.pack("<" + "I" * len(self.path), *self.path)

    def get_path_string(self) -> str:
        parts = ["m"]
        for index in self.path:
            if index >= HARDENED_INDEX:
                parts.append(f"{index - HARDENED_INDEX}'")
            else:
                parts.append(str(index))
        return "/".join(parts)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, KeyOriginInfo):
            return False
        return self.fingerprint == other.fingerprint and self.path == other.path

    def __hash__(self) -> int:
        return hash(self.to_bytes())

    def __repr__(self) -> str:
        return f"KeyOriginInfo({self.fingerprint.hex()}, {self.get_path_string()})"


def encode_tap_tree(leaves: list[tuple[int, int, bytes]]) -> bytes:
    """Serializes (depth, leaf_version, script) leaves in depth-first order"""
    result = b""
    for depth, leaf_version, script in leaves:
        result += bytes([depth, leaf_version]) + prepend_compact_size(script)
    return result


def decode_tap_tree(data: bytes) -> list[tuple[int, int, bytes]]:
    """
    Parse a PSBT_OUT_TAP_TREE value into (depth, leaf_version, script) leaves.

    Only the encoding is checked here; the tree shape is checked by
    get_tap_tree_merkle_root().
    """
    if not data:
        raise FormatError("Taproot tree must have at least one leaf")

    stream = BytesIO(data)
    leaves = []
    while stream.tell() < len(data):
        depth, leaf_version = read_bytes(stream, 2)
        leaves.append((depth, leaf_version, read_var_bytes(stream)))
    return leaves


def encode_tap_bip32(leaf_hashes: list[bytes], origin: KeyOriginInfo) -> bytes:
    """Serializes the leaf hashes a key is used in followed by its origin"""
    return encode_varint(len(leaf_hashes)) + b"".join(leaf_hashes) + origin.to_bytes()


def decode_tap_bip32(data: bytes) -> tuple[list[bytes], KeyOriginInfo]:
    stream = BytesIO(data)
    count = read_compact_size(stream)
    leaf_hashes = [read_bytes(stream, 32) for _ in range(count)]
    return leaf_hashes, KeyOriginInfo.from_bytes(stream.read())
