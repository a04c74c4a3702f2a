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

from bitcoinpsbt.setup import setup
from bitcoinpsbt.constants import SIGHASH_ALL, SIGHASH_SINGLE
from bitcoinpsbt.errors import FormatError
from bitcoinpsbt.keys import PublicKey
from bitcoinpsbt.script import Script
from bitcoinpsbt.transactions import TxInput, TxOutput, Transaction, TxWitnessInput


class TestTransactionSerialization(unittest.TestCase):
    maxDiff = None

    def setUp(self):
        setup("testnet")
        self.txin = TxInput(
            "fb48f4e23bf6ddf606714141ac78c3e921c8c0bebeb7c8abb2c799e9ff96ce6c", 0
        )
        self.txout = TxOutput(
            10000000,
            Script(
                [
                    "OP_DUP",
                    "OP_HASH160",
                    "fd337ad3bf81e086d96a68e1f8d6a0a510f8c24a",
                    "OP_EQUALVERIFY",
                    "OP_CHECKSIG",
                ]
            ),
        )
        self.change_txout = TxOutput(
            29000000,
            Script.from_raw("76a914c992931350c9ba48538003706953831402ea34ea88ac"),
        )
        self.core_tx_result = (
            "02000000016cce96ffe999c7b2abc8b7bebec0c821e9c378ac41417106f6ddf63be2f448fb"
            "0000000000ffffffff0280969800000000001976a914fd337ad3bf81e086d96a68e1f8d6a0"
            "a510f8c24a88ac4081ba01000000001976a914c992931350c9ba48538003706953831402ea"
            "34ea88ac00000000"
        )
        self.core_tx_signed_low_s_SIGNONE_result = (
            "02000000016cce96ffe999c7b2abc8b7bebec0c821e9c378ac41417106f6ddf63be2f448fb"
            "000000006a47304402201e4b7a2ed516485fdde697ba63f6670d43aa6f18d82f18bae12d5f"
            "d228363ac10220670602bec9df95d7ec4a619a2f44e0b8dcf522fdbe39530dd78d738c0ed0"
            "c430022103a2fef1829e0742b89c218c51898d9e7cb9d51201ba2bf9d9e9214ebb6af32708"
            "ffffffff0280969800000000001976a914fd337ad3bf81e086d96a68e1f8d6a0a510f8c24a"
            "88ac4081ba01000000001976a91442151d0c21442c2b038af0ad5ee64b9d6f4f4e4988ac00"
            "000000"
        )
        self.core_tx_signed_low_s_SIGNONE_txid = (
            "105933681b0ca37ae0c0af43ae6f111803c899232b7fd586584b532dbe21ae6f"
        )
        self.p2pkh_and_p2wpkh_to_p2pkh_result = (
            "02000000000102cc32915a633295794e8b2a9574cd02ff3eaa042b1c0bffb21fd668c87952"
            "2a1e000000006a47304402200fe842622e656a6780093f60b0597a36a57481611543a2e957"
            "6f9e8f1b34edb8022008ba063961c600834760037be20f45bbe077541c533b3fd257eae8e0"
            "8d0de3b3012102d82c9860e36f15d7b72aa59e29347f951277c21cd4d34822acdeeadbcff8"
            "a546ffffffffda607a90ee1ccae095add81952d2e47a26e4dd75bce0d0bd04bf0f314790f3"
            "ff0000000000ffffffff01209a1d00000000001976a914fd337ad3bf81e086d96a68e1f8d6"
            "a0a510f8c24a88ac00024730440220274bb5445294033a36c360c48cc5e441ba8cc2bc1554"
            "dcb7d367088ec40a0d0302202a36f6e03f969e1b0c582f006257eec8fa2ada8cd34fe41ae2"
            "aa90d6728999d1012102d82c9860e36f15d7b72aa59e29347f951277c21cd4d34822acdeea"
            "dbcff8a54600000000"
        )

    def test_unsigned_tx_1_input_2_outputs(self):
        tx = Transaction([self.txin], [self.txout, self.change_txout])
        self.assertEqual(tx.to_hex(), self.core_tx_result)
        self.assertFalse(tx.has_witness())

    def test_parse_signed_legacy_tx(self):
        tx = Transaction.from_raw(self.core_tx_signed_low_s_SIGNONE_result)
        self.assertEqual(tx.to_hex(), self.core_tx_signed_low_s_SIGNONE_result)
        self.assertEqual(tx.get_txid(), self.core_tx_signed_low_s_SIGNONE_txid)
        self.assertEqual(tx.get_wtxid(), tx.get_txid())
        self.assertEqual(len(tx.inputs[0].script_sig), 0x6A)
        self.assertEqual(tx.outputs[0].amount, 10000000)

    def test_parse_signed_segwit_tx(self):
        tx = Transaction.from_raw(self.p2pkh_and_p2wpkh_to_p2pkh_result)
        self.assertEqual(tx.to_hex(), self.p2pkh_and_p2wpkh_to_p2pkh_result)
        self.assertTrue(tx.has_witness())
        # the legacy input has an empty witness
        self.assertEqual(tx.witnesses[0].stack, [])
        self.assertEqual(len(tx.witnesses[1].stack), 2)
        self.assertNotEqual(tx.get_wtxid(), tx.get_txid())

        stripped = Transaction.copy(tx)
        stripped.witnesses = []
        self.assertEqual(stripped.get_txid(), tx.get_txid())

    def test_copy_is_independent(self):
        tx = Transaction([self.txin], [self.txout])
        copied = Transaction.copy(tx)
        copied.inputs[0].sequence = 0
        copied.outputs[0].amount = 1
        self.assertEqual(tx.inputs[0].sequence, 0xFFFFFFFF)
        self.assertNotEqual(tx, copied)

    def test_witness_serialization(self):
        tx = Transaction(
            [self.txin], [self.txout], witnesses=[TxWitnessInput([b"\x01", b""])]
        )
        raw = tx.to_bytes()
        self.assertEqual(raw[4:6], b"\x00\x01")
        self.assertEqual(Transaction.from_bytes(raw), tx)
        self.assertEqual(tx.to_bytes(include_witness=False)[4:5], b"\x01")

    def test_malformed_transactions(self):
        raw = bytes.fromhex(self.core_tx_result)
        self.assertRaises(FormatError, Transaction.from_bytes, raw[:-1])
        self.assertRaises(FormatError, Transaction.from_bytes, raw + b"\x00")
        # marker and flag followed by only empty witnesses
        segwit = Transaction(
            [self.txin], [self.txout], witnesses=[TxWitnessInput([b"\x01"])]
        ).to_bytes()
        empty_witness = segwit[:-7] + b"\x00" + segwit[-4:]
        self.assertRaises(FormatError, Transaction.from_bytes, empty_witness)

    def test_txoutput_amount_type(self):
        self.assertRaises(TypeError, TxOutput, 0.1, self.txout.script_pubkey)
        self.assertEqual(TxOutput.from_bytes(self.txout.to_bytes()), self.txout)


class TestTransactionDigests(unittest.TestCase):
    maxDiff = None

    def setUp(self):
        setup("testnet")
        # native P2WPKH example of BIP-143
        self.unsigned = (
            "0100000002fff7f7881a8099afa6940d42d1e7f6362bec38171ea3edf433541db4e4ad969f"
            "0000000000eeffffffef51e1b804cc89d182d279655c3aa89e815b1b309fe287d9b2b55d57"
            "b90ec68a0100000000ffffffff02202cb206000000001976a9148280b37df378db99f66f85"
            "c95a783a76ac7a6d5988ac9093510d000000001976a9143bde42dbee7e4dbe6a21b2d50ce2"
            "f0167faa815988ac11000000"
        )
        self.script_code = Script(
            [
                "OP_DUP",
                "OP_HASH160",
                "1d0f172a0ecb48aee1be1f2687d2963ae33f71a1",
                "OP_EQUALVERIFY",
                "OP_CHECKSIG",
            ]
        )
        self.amount = 600000000
        self.preimage = (
            "0100000096b827c8483d4e9b96712b6713a7b68d6e8003a781feba36c31143470b4efd3752"
            "b0a642eea2fb7ae638c36f6252b6750293dbe574a806984b8e4d8548339a3bef51e1b804cc"
            "89d182d279655c3aa89e815b1b309fe287d9b2b55d57b90ec68a010000001976a9141d0f17"
            "2a0ecb48aee1be1f2687d2963ae33f71a188ac0046c32300000000ffffffff863ef3e1a92a"
            "fbfdb97f31ad0fc7683ee943e9abcf2501590ff8f6551f47e5e51100000001000000"
        )
        self.sighash = "c37af31116d1b27caf68aae9e3ac82f1477929014d5b917657d0eb49478cb670"

        # one P2PKH input signed with SIGHASH_SINGLE
        self.sig_sighash_single_result = (
            "02000000010f798b60b145361aebb95cfcdedd29e6773b4b96778af33ed6f42a9e2b4c4676"
            "000000006a47304402202cfd7077fe8adfc5a65fb3953fa3482cad1413c28b53f12941c108"
            "2898d4935102201d393772c47f0699592268febb5b4f64dabe260f440d5d0f96dae5bc2b53"
            "e11e032102d82c9860e36f15d7b72aa59e29347f951277c21cd4d34822acdeeadbcff8a546"
            "ffffffff0240548900000000001976a914c3f8e5b0f8455a2b02c29c4488a550278209b669"
            "88aca0bb0d00000000001976a91442151d0c21442c2b038af0ad5ee64b9d6f4f4e4988ac00"
            "000000"
        )

    def test_segwit_preimage(self):
        tx = Transaction.from_raw(self.unsigned)
        preimage = tx.get_transaction_segwit_preimage(
            1, self.script_code, self.amount, SIGHASH_ALL
        )
        self.assertEqual(preimage.hex(), self.preimage)
        self.assertEqual(
            tx.get_transaction_segwit_digest(1, self.script_code, self.amount).hex(),
            self.sighash,
        )

    def test_legacy_digest_verifies_signature(self):
        tx = Transaction.from_raw(self.sig_sighash_single_result)
        signature, pubkey = [
            bytes.fromhex(token) for token in Script.from_raw(tx.inputs[0].script_sig).get_script()
        ]
        self.assertEqual(signature[-1], SIGHASH_SINGLE)

        script_code = Script(
            [
                "OP_DUP",
                "OP_HASH160",
                PublicKey(pubkey).get_hash160().hex(),
                "OP_EQUALVERIFY",
                "OP_CHECKSIG",
            ]
        )
        digest = tx.get_transaction_digest(0, script_code, SIGHASH_SINGLE)
        self.assertTrue(PublicKey(pubkey).verify(signature[:-1], digest))

        # scriptSigs of the signed transaction do not change the digest
        unsigned = Transaction.copy(tx)
        unsigned.inputs[0].script_sig = b""
        self.assertEqual(unsigned.get_transaction_digest(0, script_code, SIGHASH_SINGLE), digest)

    def test_sighash_single_without_output(self):
        tx = Transaction.from_raw(self.sig_sighash_single_result)
        tx.outputs = tx.outputs[:0]
        self.assertRaises(
            ValueError,
            tx.get_transaction_digest,
            0,
            self.script_code,
            SIGHASH_SINGLE,
        )


if __name__ == "__main__":
    unittest.main()
