# Copyright (C) 2018-2025 The python-bitcoin-psbt developers
#
# This file is part of python-bitcoin-psbt
#
# It is subject to the license terms in the LICENSE file found in the top-level
# directory of this distribution.
#
# No part of python-bitcoin-psbt, including this file, may be copied,
# modified, propagated, or distributed except according to the terms contained
# in the LICENSE file.


import unittest
from io import BytesIO

from bitcoinpsbt.setup import setup
from bitcoinpsbt.errors import FormatError
from bitcoinpsbt.hashfunctions import (
    hash_ripemd160,
    hash_hash160,
    hash_double_sha256,
)
from bitcoinpsbt.utils import (
    encode_varint,
    parse_compact_size,
    read_compact_size,
    tapleaf_tagged_hash,
    tapbranch_tagged_hash,
    get_tap_tree_merkle_root,
    ControlBlock,
)
from bitcoinpsbt.psbt_utils import (
    KeyOriginInfo,
    parse_path,
    encode_tap_tree,
    decode_tap_tree,
    encode_witness_stack,
    decode_witness_stack,
    encode_tap_bip32,
    decode_tap_bip32,
)
from bitcoinpsbt.script import Script


class TestCompactSize(unittest.TestCase):
    def test_encode_varint(self):
        self.assertEqual(encode_varint(0), b"\x00")
        self.assertEqual(encode_varint(252), b"\xfc")
        self.assertEqual(encode_varint(253), b"\xfd\xfd\x00")
        self.assertEqual(encode_varint(0xFFFF), b"\xfd\xff\xff")
        self.assertEqual(encode_varint(0x10000), b"\xfe\x00\x00\x01\x00")
        self.assertEqual(
            encode_varint(0x100000000), b"\xff\x00\x00\x00\x00\x01\x00\x00\x00"
        )
        self.assertRaises(ValueError, encode_varint, -1)

    def test_parse_compact_size(self):
        self.assertEqual(parse_compact_size(b"\x05"), (5, 1))
        self.assertEqual(parse_compact_size(b"\xfd\xfd\x00"), (253, 3))
        self.assertEqual(parse_compact_size(b"\x00\xfe\x00\x00\x01\x00", 1), (0x10000, 5))

    def test_non_canonical_compact_size(self):
        self.assertRaises(FormatError, parse_compact_size, b"\xfd\xfc\x00")
        self.assertRaises(FormatError, parse_compact_size, b"\xfe\xff\xff\x00\x00")
        self.assertRaises(FormatError, read_compact_size, BytesIO(b"\xfd\x01\x00"))

    def test_truncated_compact_size(self):
        self.assertRaises(FormatError, parse_compact_size, b"")
        self.assertRaises(FormatError, parse_compact_size, b"\xfe\x01\x00")
        self.assertRaises(FormatError, read_compact_size, BytesIO(b"\xfd\x01"))


class TestHashes(unittest.TestCase):
    def test_ripemd160(self):
        self.assertEqual(
            hash_ripemd160(b"").hex(), "9c1185a5c5e9fc54612808977ee8f548b2258d31"
        )
        self.assertEqual(
            hash_ripemd160(b"abc").hex(), "8eb208f7e05d987a9b044a8e98c6b087f15a0bfc"
        )

    def test_hash160_of_public_key(self):
        pubkey = bytes.fromhex(
            "02d82c9860e36f15d7b72aa59e29347f951277c21cd4d34822acdeeadbcff8a546"
        )
        self.assertEqual(
            hash_hash160(pubkey).hex(), "fd337ad3bf81e086d96a68e1f8d6a0a510f8c24a"
        )

    def test_double_sha256(self):
        self.assertEqual(
            hash_double_sha256(b"").hex(),
            "5df6e0e2761359d30a8275058e299fcc0381534545f55cf43e41983f5d4c9456",
        )


class TestTaprootTree(unittest.TestCase):
    def setUp(self):
        setup("testnet")
        self.script_a = Script(
            [
                "13f523102815e9fbbe132ffb8329b0fef5a9e4836d216dce1824633287b0abc6",
                "OP_CHECKSIG",
            ]
        ).to_bytes()
        self.script_b = Script(["OP_1"]).to_bytes()
        self.script_c = Script(["OP_2"]).to_bytes()

    def test_single_leaf_root_is_leaf_hash(self):
        self.assertEqual(
            get_tap_tree_merkle_root([(0, 0xC0, self.script_a)]),
            tapleaf_tagged_hash(self.script_a),
        )

    def test_two_leaves(self):
        expected = tapbranch_tagged_hash(
            tapleaf_tagged_hash(self.script_a), tapleaf_tagged_hash(self.script_b)
        )
        self.assertEqual(
            get_tap_tree_merkle_root([(1, 0xC0, self.script_a), (1, 0xC0, self.script_b)]),
            expected,
        )
        # branches are hashed in lexicographic order
        self.assertEqual(
            get_tap_tree_merkle_root([(1, 0xC0, self.script_b), (1, 0xC0, self.script_a)]),
            expected,
        )

    def test_unbalanced_tree(self):
        leaf_a = tapleaf_tagged_hash(self.script_a)
        leaf_b = tapleaf_tagged_hash(self.script_b)
        leaf_c = tapleaf_tagged_hash(self.script_c)
        expected = tapbranch_tagged_hash(leaf_a, tapbranch_tagged_hash(leaf_b, leaf_c))
        leaves = [(1, 0xC0, self.script_a), (2, 0xC0, self.script_b), (2, 0xC0, self.script_c)]
        self.assertEqual(get_tap_tree_merkle_root(leaves), expected)

    def test_invalid_trees(self):
        self.assertRaises(ValueError, get_tap_tree_merkle_root, [])
        self.assertRaises(ValueError, get_tap_tree_merkle_root, [(1, 0xC0, self.script_a)])
        self.assertRaises(
            ValueError,
            get_tap_tree_merkle_root,
            [(1, 0xC0, self.script_a), (2, 0xC0, self.script_b), (1, 0xC0, self.script_c)],
        )
        self.assertRaises(
            ValueError, get_tap_tree_merkle_root, [(0, 0xC1, self.script_a)]
        )
        self.assertRaises(
            ValueError, get_tap_tree_merkle_root, [(129, 0xC0, self.script_a)]
        )

    def test_tap_tree_encoding(self):
        leaves = [(1, 0xC0, self.script_a), (1, 0xC0, self.script_b)]
        encoded = encode_tap_tree(leaves)
        self.assertEqual(encoded[:3], bytes([1, 0xC0, len(self.script_a)]))
        self.assertEqual(decode_tap_tree(encoded), leaves)
        self.assertRaises(FormatError, decode_tap_tree, b"")
        self.assertRaises(FormatError, decode_tap_tree, encoded[:-1])


class TestControlBlock(unittest.TestCase):
    def setUp(self):
        self.internal_key = bytes.fromhex(
            "1036a7ed8d24eac9057e114f22342ebf20c16d37f0d25cfd2c900bf401ec09c9"
        )

    def test_parse_without_path(self):
        data = bytes.fromhex("c1") + self.internal_key
        control_block = ControlBlock.from_bytes(data)
        self.assertEqual(control_block.leaf_version, 0xC0)
        self.assertEqual(control_block.output_key_parity, 1)
        self.assertEqual(control_block.internal_key, self.internal_key)
        self.assertEqual(control_block.merkle_path, [])
        self.assertEqual(control_block.to_bytes(), data)

    def test_merkle_root(self):
        sibling = bytes(range(32))
        leaf_hash = bytes(32)
        control_block = ControlBlock(self.internal_key, [sibling])
        self.assertEqual(
            control_block.compute_merkle_root(leaf_hash),
            tapbranch_tagged_hash(leaf_hash, sibling),
        )
        self.assertEqual(
            ControlBlock.from_bytes(control_block.to_bytes()), control_block
        )

    def test_malformed(self):
        self.assertRaises(FormatError, ControlBlock.from_bytes, b"\xc0" + bytes(31))
        self.assertRaises(
            FormatError, ControlBlock.from_bytes, b"\xc0" + self.internal_key + bytes(5)
        )
        # 0x50 is the annex tag
        self.assertRaises(FormatError, ControlBlock.from_bytes, b"\x51" + self.internal_key)
        self.assertRaises(
            FormatError, ControlBlock.from_bytes, b"\xc0" + self.internal_key + bytes(32 * 129)
        )


class TestFieldValues(unittest.TestCase):
    def test_key_origin(self):
        origin = KeyOriginInfo.from_string("d90c6a4f", "m/174'/0'/0")
        self.assertEqual(origin.to_bytes().hex(), "d90c6a4fae0000800000008000000000")
        self.assertEqual(origin.get_path_string(), "m/174'/0'/0")
        self.assertEqual(KeyOriginInfo.from_bytes(origin.to_bytes()), origin)
        self.assertRaises(FormatError, KeyOriginInfo.from_bytes, b"\xd9\x0c\x6a")
        self.assertRaises(FormatError, KeyOriginInfo.from_bytes, bytes(6))

    def test_parse_path(self):
        self.assertEqual(parse_path("84h/1h/0h"), parse_path("m/84'/1'/0'"))
        self.assertEqual(parse_path("m/0/5"), [0, 5])
        self.assertEqual(parse_path("m"), [])
        self.assertRaises(ValueError, parse_path, "m/x")
        self.assertRaises(ValueError, parse_path, "m//1")

    def test_witness_stack(self):
        stack = [b"", b"\x01\x02", bytes(75)]
        encoded = encode_witness_stack(stack)
        self.assertEqual(encoded[:4], b"\x03\x00\x02\x01")
        self.assertEqual(decode_witness_stack(encoded), stack)
        self.assertRaises(FormatError, decode_witness_stack, encoded + b"\x00")
        self.assertRaises(FormatError, decode_witness_stack, encoded[:-1])

    def test_tap_bip32(self):
        origin = KeyOriginInfo.from_string("ede45cc5", "m/86'/1'/0'/0/0")
        leaf_hashes = [bytes(32), bytes(range(32))]
        encoded = encode_tap_bip32(leaf_hashes, origin)
        self.assertEqual(encoded[0], 2)
        self.assertEqual(decode_tap_bip32(encoded), (leaf_hashes, origin))
        self.assertEqual(decode_tap_bip32(encode_tap_bip32([], origin)), ([], origin))


if __name__ == "__main__":
    unittest.main()
