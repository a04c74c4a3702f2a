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

from __future__ import annotations

import hashlib
from io import BytesIO
from typing import Optional

from bitcoinpsbt.constants import (
    ANNEX_TAG,
    LEAF_VERSION_TAPSCRIPT,
    TAPROOT_CONTROL_BASE_SIZE,
    TAPROOT_CONTROL_MAX_NODE_COUNT,
    TAPROOT_CONTROL_NODE_SIZE,
)
from bitcoinpsbt.errors import FormatError


#
# Compact size (varint) integers
#
def encode_varint(i: int) -> bytes:
    """
    Encode a potentially very large integer into varint bytes. The length should be
    specified in little-endian.

    https://bitcoin.org/en/developer-reference#compactsize-unsigned-integers
    """
    if i < 0:
        raise ValueError("Integer cannot be negative: %d" % i)
    if i < 253:
        return bytes([i])
    elif i < 0x10000:
        return b"\xfd" + i.to_bytes(2, "little")
    elif i < 0x100000000:
        return b"\xfe" + i.to_bytes(4, "little")
    elif i < 0x10000000000000000:
        return b"\xff" + i.to_bytes(8, "little")
    else:
        raise ValueError("Integer is too large: %d" % i)


def prepend_compact_size(data: bytes) -> bytes:
    """
    Counts bytes and returns them with their varint (or compact size) prepended.
    """
    return encode_varint(len(data)) + data


# smallest value that requires each of the multi-byte encodings
_COMPACT_SIZE_MINIMUMS = {0xFD: 0xFD, 0xFE: 0x10000, 0xFF: 0x100000000}
_COMPACT_SIZE_WIDTHS = {0xFD: 2, 0xFE: 4, 0xFF: 8}


def parse_compact_size(data: bytes, offset: int = 0) -> tuple[int, int]:
    """
    Parses a compact size integer starting at offset. Returns (value, size).

    Raises
    ------
    FormatError
        if data is truncated or the value was not encoded in its shortest form
    """
    if offset >= len(data):
        raise FormatError("Unexpected end of data reading compact size")
    first_byte = data[offset]
    if first_byte < 0xFD:
        return first_byte, 1

    width = _COMPACT_SIZE_WIDTHS[first_byte]
    if offset + 1 + width > len(data):
        raise FormatError("Unexpected end of data reading compact size")
    value = int.from_bytes(data[offset + 1 : offset + 1 + width], "little")
    if value < _COMPACT_SIZE_MINIMUMS[first_byte]:
        raise FormatError("Non-canonical compact size encoding")
    return value, 1 + width


def read_bytes(stream: BytesIO, n: int) -> bytes:
    """Reads exactly n bytes from stream or raises FormatError"""
    data = stream.read(n)
    if len(data) != n:
        raise FormatError(f"Unexpected end of data: wanted {n} bytes, got {len(data)}")
    return data


def read_compact_size(stream: BytesIO) -> int:
    """Reads a canonical compact size integer from stream"""
    first = read_bytes(stream, 1)
    if first[0] < 0xFD:
        return first[0]
    rest = read_bytes(stream, _COMPACT_SIZE_WIDTHS[first[0]])
    value, _ = parse_compact_size(first + rest)
    return value


def read_var_bytes(stream: BytesIO) -> bytes:
    """Reads a compact size length prefixed byte string from stream"""
    return read_bytes(stream, read_compact_size(stream))


#
# Taproot helpers
#
def tagged_hash(data: bytes, tag: str) -> bytes:
    """
    Tagged hashes ensure that hashes used in one context can not be used in another.
    It is used extensively in Taproot

    A tagged hash is: SHA256( SHA256("TapTweak") ||
                              SHA256("TapTweak") ||
                              data
                            )
    """

    tag_digest = hashlib.sha256(tag.encode()).digest()
    return hashlib.sha256(tag_digest + tag_digest + data).digest()


def tapleaf_tagged_hash(
    script: bytes, leaf_version: int = LEAF_VERSION_TAPSCRIPT
) -> bytes:
    """Calculates the tagged hash for a tapleaf"""
    script_part = bytes([leaf_version]) + prepend_compact_size(script)
    return tagged_hash(script_part, "TapLeaf")


def tapbranch_tagged_hash(thashed_a: bytes, thashed_b: bytes) -> bytes:
    """Calculates the tagged hash for a tapbranch"""
    # order - smaller left side
    if thashed_a < thashed_b:
        return tagged_hash(thashed_a + thashed_b, "TapBranch")
    else:
        return tagged_hash(thashed_b + thashed_a, "TapBranch")


def calculate_tweak(internal_key: bytes, merkle_root: Optional[bytes] = None) -> bytes:
    """
    Calculates the tweak to apply to the public and private key when required.

    internal_key is the 32 byte x-only internal key, merkle_root the root of
    the script tree or None for key path only outputs.
    """
    if merkle_root:
        return tagged_hash(internal_key + merkle_root, "TapTweak")
    return tagged_hash(internal_key, "TapTweak")


def is_valid_leaf_version(leaf_version: int) -> bool:
    """Leaf versions are even and cannot collide with the annex tag"""
    return leaf_version & 0x01 == 0 and leaf_version != ANNEX_TAG


class ControlBlock:
    """Represents a control block for spending a taproot script path

    Attributes
    ----------
    leaf_version : int
        the leaf version of the script being spent
    internal_key : bytes
        the 32 byte x-only internal public key
    output_key_parity : int
        1 if the tweaked output key has an odd y coordinate, 0 otherwise
    merkle_path : list[bytes]
        the 32 byte hashes from the leaf up to the root

    Methods
    -------
    from_bytes(data)
        parses a serialized control block (classmethod)
    to_bytes()
        returns the control block as bytes
    compute_merkle_root(leaf_hash)
        folds the merkle path over a leaf hash
    """

    def __init__(
        self,
        internal_key: bytes,
        merkle_path: Optional[list[bytes]] = None,
        leaf_version: int = LEAF_VERSION_TAPSCRIPT,
        output_key_parity: int = 0,
    ) -> None:
        self.internal_key = internal_key
        self.merkle_path = merkle_path if merkle_path is not None else []
        self.leaf_version = leaf_version
        self.output_key_parity = output_key_parity

    @classmethod
    def from_bytes(cls, data: bytes) -> "ControlBlock":
        """Parses a control block, raises FormatError when malformed"""
        if len(data) < TAPROOT_CONTROL_BASE_SIZE:
            raise FormatError("Control block is too short")
        if (len(data) - TAPROOT_CONTROL_BASE_SIZE) % TAPROOT_CONTROL_NODE_SIZE:
            raise FormatError("Control block has a partial merkle path node")
        node_count = (len(data) - TAPROOT_CONTROL_BASE_SIZE) // TAPROOT_CONTROL_NODE_SIZE
        if node_count > TAPROOT_CONTROL_MAX_NODE_COUNT:
            raise FormatError("Control block merkle path is too long")
        leaf_version = data[0] & 0xFE
        if not is_valid_leaf_version(leaf_version):
            raise FormatError(f"Invalid leaf version: 0x{leaf_version:02x}")
        path = [
            data[TAPROOT_CONTROL_BASE_SIZE + 32 * i : TAPROOT_CONTROL_BASE_SIZE + 32 * (i + 1)]
            for i in range(node_count)
        ]
        return cls(data[1:33], path, leaf_version, data[0] & 0x01)

    def to_bytes(self) -> bytes:
        first = bytes([self.leaf_version | self.output_key_parity])
        return first + self.internal_key + b"".join(self.merkle_path)

    def to_hex(self) -> str:
        """Converts object to hexadecimal string"""
        return b_to_h(self.to_bytes())

    def compute_merkle_root(self, leaf_hash: bytes) -> bytes:
        node = leaf_hash
        for sibling in self.merkle_path:
            node = tapbranch_tagged_hash(node, sibling)
        return node

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ControlBlock):
            return False
        return self.to_bytes() == other.to_bytes()

    def __repr__(self) -> str:
        return f"ControlBlock({self.to_hex()})"


def get_tap_tree_merkle_root(leaves: list[tuple[int, int, bytes]]) -> bytes:
    """Rebuilds a taproot script tree from its leaves and returns the root.

    Leaves are (depth, leaf_version, script) tuples in depth-first order, as
    carried by PSBT_OUT_TAP_TREE. Siblings are merged as soon as both are
    known so the tree must be complete and no deeper than 128 levels.

    Raises
    ------
    ValueError
        if the leaves do not describe a complete binary tree
    """
    if not leaves:
        raise ValueError("Taproot tree must have at least one leaf")

    # pending subtrees as (depth, hash)
    stack: list[tuple[int, bytes]] = []
    for depth, leaf_version, script in leaves:
        if depth > TAPROOT_CONTROL_MAX_NODE_COUNT:
            raise ValueError(f"Taproot leaf depth {depth} exceeds 128")
        if not is_valid_leaf_version(leaf_version):
            raise ValueError(f"Invalid leaf version: 0x{leaf_version:02x}")
        if stack and (stack[-1][0] == 0 or stack[-1][0] > depth):
            raise ValueError("Taproot tree leaves are not in depth-first order")

        node = (depth, tapleaf_tagged_hash(script, leaf_version))
        while stack and stack[-1][0] == node[0]:
            sibling = stack.pop()
            node = (node[0] - 1, tapbranch_tagged_hash(sibling[1], node[1]))
        stack.append(node)

    if len(stack) != 1 or stack[0][0] != 0:
        raise ValueError("Taproot tree is incomplete")
    return stack[0][1]


#
# Basic conversions between bytes (b), hexadecimal (h) and integer (i)
#
def b_to_h(b: bytes) -> str:
    """Converts bytes to hexadecimal string"""
    return b.hex()


def h_to_b(h: str) -> bytes:
    """Converts hexadecimal string to bytes"""
    return bytes.fromhex(h)


# to convert hashes to ints we need byteorder BIG...
def b_to_i(b: bytes) -> int:
    """Converts a bytes to a number"""
    return int.from_bytes(b, byteorder="big")


def i_to_b32(i: int) -> bytes:
    """Converts a integer to 32 bytes"""
    return i.to_bytes(32, byteorder="big")
