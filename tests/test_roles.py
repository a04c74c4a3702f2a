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
from bitcoinpsbt.constants import (
    SIGHASH_ALL,
    SIGHASH_ANYONECANPAY,
    SIGHASH_NONE,
    SIGHASH_SINGLE,
    TX_MODIFIABLE_INPUTS,
    TX_MODIFIABLE_OUTPUTS,
    TX_MODIFIABLE_SIGHASH_SINGLE,
)
from bitcoinpsbt.errors import (
    IndexOutOfRange,
    MissingPrevoutInfo,
    SignerBackendError,
    SigningError,
    ValidationError,
)
from bitcoinpsbt.finalizer import extract, finalize
from bitcoinpsbt.hashfunctions import hash_hash160, hash_sha256
from bitcoinpsbt.keys import PrivateKey, PrivateKeySigner
from bitcoinpsbt.psbt import PSBT
from bitcoinpsbt.psbt_utils import KeyOriginInfo
from bitcoinpsbt.roles import Constructor, Creator, Signer, Updater
from bitcoinpsbt.script import Script
from bitcoinpsbt.sighash import compute_sighash
from bitcoinpsbt.transactions import Transaction, TxInput, TxOutput
from bitcoinpsbt.utils import ControlBlock, tapleaf_tagged_hash


def p2pkh_script(pubkey):
    return Script(
        ["OP_DUP", "OP_HASH160", hash_hash160(pubkey).hex(), "OP_EQUALVERIFY", "OP_CHECKSIG"]
    ).to_bytes()


def p2wpkh_script(pubkey):
    return Script(["OP_0", hash_hash160(pubkey).hex()]).to_bytes()


def strip_signed(signed_hex):
    tx = Transaction.from_raw(signed_hex)
    for txin in tx.inputs:
        txin.script_sig = b""
    tx.witnesses = []
    return tx


class TestCreator(unittest.TestCase):
    def setUp(self):
        setup("testnet")
        self.txin = TxInput("fb48f4e23bf6ddf606714141ac78c3e921c8c0bebeb7c8abb2c799e9ff96ce6c", 0)
        self.txout = TxOutput(
            10000000, Script.from_raw("76a914fd337ad3bf81e086d96a68e1f8d6a0a510f8c24a88ac")
        )

    def test_create_v0(self):
        tx = Transaction([self.txin], [self.txout])
        psbt = Creator.create_v0(tx)
        self.assertEqual(psbt.version, 0)
        self.assertEqual(len(psbt.inputs), 1)
        self.assertEqual(len(psbt.outputs), 1)
        # the transaction is copied
        tx.outputs[0].amount = 1
        self.assertEqual(psbt.tx.outputs[0].amount, 10000000)
        self.assertEqual(PSBT.from_base64(psbt.to_base64()), psbt)

    def test_create_v0_rejects_signed_tx(self):
        txin = TxInput(self.txin.txid, 0, script_sig=b"\x51")
        self.assertRaises(
            ValidationError, Creator.create_v0, Transaction([txin], [self.txout])
        )

    def test_create_v2(self):
        psbt = Creator.create_v2(
            inputs=[self.txin], outputs=[self.txout], fallback_locktime=500
        )
        self.assertTrue(psbt.is_v2())
        self.assertEqual(psbt.tx_version, 2)
        self.assertEqual(psbt.inputs[0].prev_txid, self.txin.txid)
        self.assertIsNone(psbt.inputs[0].sequence)
        self.assertEqual(psbt.outputs[0].amount, 10000000)
        self.assertEqual(psbt.compute_lock_time(), 500)
        self.assertEqual(PSBT.from_bytes(psbt.to_bytes()), psbt)

        tx = psbt.get_unsigned_tx()
        self.assertEqual(tx.locktime, 500)
        self.assertEqual(tx.inputs[0].sequence, 0xFFFFFFFF)

    def test_create_v2_without_inputs(self):
        psbt = Creator.create_v2(tx_modifiable=TX_MODIFIABLE_INPUTS | TX_MODIFIABLE_OUTPUTS)
        self.assertEqual(psbt.inputs, [])
        self.assertEqual(PSBT.from_bytes(psbt.to_bytes()).tx_modifiable, 3)


class TestConstructor(unittest.TestCase):
    def setUp(self):
        setup("testnet")
        self.txin = TxInput("fb48f4e23bf6ddf606714141ac78c3e921c8c0bebeb7c8abb2c799e9ff96ce6c", 0)
        self.txin2 = TxInput("fb48f4e23bf6ddf606714141ac78c3e921c8c0bebeb7c8abb2c799e9ff96ce6c", 1)
        self.txout = TxOutput(
            10000000, Script.from_raw("76a914fd337ad3bf81e086d96a68e1f8d6a0a510f8c24a88ac")
        )
        self.psbt = Creator.create_v2(
            inputs=[self.txin],
            outputs=[self.txout],
            tx_modifiable=TX_MODIFIABLE_INPUTS | TX_MODIFIABLE_OUTPUTS,
        )

    def test_add_input_and_output(self):
        self.assertEqual(Constructor.add_input(self.psbt, self.txin2), 1)
        self.assertEqual(Constructor.add_output(self.psbt, self.txout), 1)
        tx = self.psbt.get_unsigned_tx()
        self.assertEqual(tx.inputs[1].txout_index, 1)
        self.assertEqual(len(tx.outputs), 2)

    def test_not_modifiable(self):
        self.psbt.tx_modifiable = TX_MODIFIABLE_OUTPUTS
        with self.assertRaises(ValidationError) as cm:
            Constructor.add_input(self.psbt, self.txin2)
        self.assertEqual(cm.exception.field, "PSBT_GLOBAL_TX_MODIFIABLE")
        Constructor.add_output(self.psbt, self.txout)

        self.psbt.tx_modifiable = None
        self.assertRaises(ValidationError, Constructor.add_output, self.psbt, self.txout)

    def test_version_0(self):
        psbt = Creator.create_v0(Transaction([self.txin], [self.txout]))
        with self.assertRaises(ValidationError) as cm:
            Constructor.add_input(psbt, self.txin2)
        self.assertEqual(cm.exception.field, "PSBT_GLOBAL_VERSION")

    def test_lock_time_requirements(self):
        Constructor.add_input(self.psbt, self.txin2, required_height_locktime=800000)
        self.assertEqual(self.psbt.compute_lock_time(), 800000)

        # not a block height
        txin3 = TxInput(self.txin.txid, 2)
        self.assertRaises(
            ValidationError,
            Constructor.add_input,
            self.psbt,
            txin3,
            None,
            600000000,
        )
        self.assertEqual(len(self.psbt.inputs), 2)

    def test_incompatible_lock_times(self):
        Constructor.add_input(self.psbt, self.txin2, required_time_locktime=1700000000)
        txin3 = TxInput(self.txin.txid, 2)
        self.assertRaises(
            ValidationError,
            Constructor.add_input,
            self.psbt,
            txin3,
            required_height_locktime=800000,
        )
        self.assertEqual(len(self.psbt.inputs), 2)
        self.assertEqual(self.psbt.compute_lock_time(), 1700000000)


class TestUpdater(unittest.TestCase):
    maxDiff = None

    def setUp(self):
        setup("testnet")
        self.pubkey = bytes.fromhex(
            "02d82c9860e36f15d7b72aa59e29347f951277c21cd4d34822acdeeadbcff8a546"
        )
        self.pubkey2 = bytes.fromhex(
            "02364d6f04487a71b5966eae3e14a4dc6f00dbe8e55e61bedd0b880766bfe72b5d"
        )
        self.prev_tx = Transaction(
            [TxInput("01" * 32, 0)],
            [TxOutput(20000, p2pkh_script(self.pubkey)), TxOutput(30000, p2wpkh_script(self.pubkey))],
        )
        tx = Transaction(
            [TxInput(self.prev_tx.get_txid(), 1)],
            [TxOutput(25000, p2pkh_script(self.pubkey2))],
        )
        self.psbt = Creator.create_v0(tx)
        self.updater = Updater(self.psbt)
        self.origin = KeyOriginInfo.from_string("d90c6a4f", "m/84'/1'/0'/0/0")

    def test_utxos(self):
        self.updater.add_non_witness_utxo(0, self.prev_tx)
        self.updater.add_witness_utxo(0, self.prev_tx.outputs[1])
        self.assertEqual(self.psbt.get_spent_output(0).amount, 30000)

        self.assertRaises(
            ValidationError, self.updater.add_witness_utxo, 0, self.prev_tx.outputs[0]
        )
        other_tx = Transaction([TxInput("02" * 32, 0)], self.prev_tx.outputs)
        with self.assertRaises(ValidationError) as cm:
            self.updater.add_non_witness_utxo(0, other_tx)
        self.assertEqual(cm.exception.field, "PSBT_IN_NON_WITNESS_UTXO")
        self.assertEqual(cm.exception.index, 0)

    def test_scripts(self):
        witness_script = Script(
            ["OP_1", self.pubkey.hex(), self.pubkey2.hex(), "OP_2", "OP_CHECKMULTISIG"]
        ).to_bytes()
        p2wsh = Script(["OP_0", hash_sha256(witness_script).hex()]).to_bytes()
        p2sh = Script.from_raw(p2wsh).to_p2sh_script_pub_key().to_bytes()
        self.updater.add_witness_utxo(0, TxOutput(30000, p2sh))

        self.assertRaises(ValidationError, self.updater.add_redeem_script, 0, witness_script)
        self.updater.add_redeem_script(0, p2wsh)
        self.assertRaises(
            ValidationError, self.updater.add_witness_script, 0, p2pkh_script(self.pubkey)
        )
        self.updater.add_witness_script(0, Script.from_raw(witness_script))
        self.assertEqual(self.psbt.get_effective_script(0), witness_script)

    def test_redeem_script_bytes_are_hashed_as_given(self):
        def p2sh(redeem_script):
            return Script(
                ["OP_HASH160", hash_hash160(redeem_script).hex(), "OP_EQUAL"]
            ).to_bytes()

        # OP_PUSHDATA1 where a direct push would do
        non_minimal = bytes.fromhex("4c21") + self.pubkey + bytes.fromhex("ac")
        self.updater.add_witness_utxo(0, TxOutput(30000, p2sh(non_minimal)))
        self.updater.add_redeem_script(0, non_minimal)
        self.assertEqual(self.psbt.inputs[0].redeem_script, non_minimal)

        # 0xbb is not a known opcode
        unknown_opcode = bytes.fromhex("51bb")
        with self.assertRaises(ValidationError) as cm:
            self.updater.add_redeem_script(0, unknown_opcode)
        self.assertEqual(cm.exception.field, "PSBT_IN_REDEEM_SCRIPT")
        self.assertEqual(self.psbt.inputs[0].redeem_script, non_minimal)

        self.updater.add_witness_utxo(0, TxOutput(30000, p2sh(unknown_opcode)))
        self.updater.add_redeem_script(0, unknown_opcode)
        self.assertEqual(self.psbt.inputs[0].redeem_script, unknown_opcode)

    def test_derivations_and_types(self):
        self.updater.add_input_bip32_derivation(0, self.pubkey, self.origin)
        self.assertEqual(self.psbt.get_derivations(0, self.pubkey), [self.origin])
        self.assertRaises(
            ValidationError,
            self.updater.add_input_bip32_derivation,
            0,
            b"\x05" + self.pubkey[1:],
            self.origin,
        )
        self.updater.add_output_bip32_derivation(0, self.pubkey2, self.origin)

        self.updater.set_sighash_type(0, SIGHASH_SINGLE)
        self.assertEqual(self.psbt.inputs[0].sighash_type, SIGHASH_SINGLE)
        self.assertRaises(ValidationError, self.updater.set_sighash_type, 0, 1 << 32)

    def test_preimages(self):
        hash_value = self.updater.add_preimage(0, "sha256", b"secret")
        self.assertEqual(hash_value, hash_sha256(b"secret"))
        self.assertEqual(self.psbt.inputs[0].sha256_preimages[hash_value], b"secret")
        self.assertEqual(
            self.updater.add_preimage(0, "hash160", b"secret"), hash_hash160(b"secret")
        )
        self.assertRaises(ValueError, self.updater.add_preimage, 0, "md5", b"secret")
        # the document still validates and round trips
        self.assertEqual(PSBT.from_bytes(self.psbt.to_bytes()), self.psbt)

    def test_taproot_fields(self):
        xonly = self.pubkey[1:]
        self.updater.set_tap_internal_key(0, self.pubkey)
        self.assertEqual(self.psbt.inputs[0].tap_internal_key, xonly)
        self.assertRaises(ValidationError, self.updater.set_tap_merkle_root, 0, bytes(31))

        leaf_script = Script([xonly.hex(), "OP_CHECKSIG"]).to_bytes()
        control_block = ControlBlock(xonly)
        leaf_hash = self.updater.add_tap_leaf_script(0, control_block.to_bytes(), leaf_script)
        self.assertEqual(leaf_hash, tapleaf_tagged_hash(leaf_script))
        self.assertRaises(
            ValidationError, self.updater.add_tap_leaf_script, 0, b"\xc0" + bytes(31), leaf_script
        )

        self.updater.add_tap_bip32_derivation(0, xonly, [leaf_hash], self.origin)
        self.assertEqual(self.psbt.get_derivations(0, self.pubkey), [self.origin])

        merkle_root = self.updater.set_output_tap_tree(0, [(0, 0xC0, leaf_script)])
        self.assertEqual(merkle_root, leaf_hash)
        self.assertRaises(
            ValidationError, self.updater.set_output_tap_tree, 0, [(1, 0xC0, leaf_script)]
        )
        self.assertEqual(PSBT.from_bytes(self.psbt.to_bytes()), self.psbt)

    def test_xpub_and_proprietary(self):
        xpub = (
            "xpub661MyMwAqRbcFtXgS5sYJABqqG9YLmC4Q1Rdap9gSE8NqtwybGhePY2gZ29ESFjqJoCu1Rupje8Yt"
            "GqsefD265TMg7usUDFdp6W1EGMcet8"
        )
        self.updater.add_xpub(xpub, KeyOriginInfo.from_string("3442193e", []))
        self.assertEqual(len(list(self.psbt.xpubs)[0]), 78)
        self.assertRaises(ValidationError, self.updater.add_xpub, xpub[:-1] + "9", self.origin)

        self.updater.add_global_proprietary(b"\x03abc\x00", b"\x01")
        self.updater.add_input_proprietary(0, b"\x03abc\x01", b"\x02")
        self.updater.add_output_proprietary(0, b"\x03abc\x02", b"\x03")
        parsed = PSBT.from_bytes(self.psbt.to_bytes())
        self.assertEqual(parsed.proprietary, {b"\x03abc\x00": b"\x01"})
        self.assertEqual(parsed.inputs[0].proprietary, {b"\x03abc\x01": b"\x02"})

    def test_index_checks(self):
        self.assertRaises(IndexOutOfRange, self.updater.set_sighash_type, 1, SIGHASH_ALL)
        self.assertRaises(IndexOutOfRange, self.updater.add_output_redeem_script, 1, b"\x51")

    def test_finalized_input(self):
        self.psbt.inputs[0].final_script_witness = [b"\x01"]
        with self.assertRaises(ValidationError) as cm:
            self.updater.set_sighash_type(0, SIGHASH_ALL)
        self.assertEqual(cm.exception.index, 0)
        self.assertRaises(
            ValidationError, self.updater.add_witness_utxo, 0, self.prev_tx.outputs[1]
        )


class TestSigner(unittest.TestCase):
    maxDiff = None

    def setUp(self):
        setup("testnet")
        self.sk = PrivateKey("cTALNpTpRbbxTCJ2A5Vq88UxT44w1PE2cYqiB3n4hRvzyCev1Wwo")
        self.pubkey = self.sk.get_public_key().to_bytes()
        self.signer = Signer(PrivateKeySigner([self.sk]))
        self.spend_p2pkh_result = (
            "02000000000101d33a48a6073b8a504107e47671e9464e10457451a576531e0d3878c74c1c"
            "cab30000000000ffffffff0120f40e00000000001976a914fd337ad3bf81e086d96a68e1f8"
            "d6a0a510f8c24a88ac0247304402201c7ec9b049daa99c78675810b5e36b0b61add3f84180"
            "eaeaa613f8525904bdc302204854830d463a4699b6d69e37c08b8d3c6158185d46499170cf"
            "cc24d4a9e9a37f012102d82c9860e36f15d7b72aa59e29347f951277c21cd4d34822acdeea"
            "dbcff8a54600000000"
        )
        self.psbt = Creator.create_v0(strip_signed(self.spend_p2pkh_result))
        Updater(self.psbt).add_witness_utxo(0, TxOutput(990000, p2wpkh_script(self.pubkey)))

    def test_sign_p2wpkh(self):
        self.assertTrue(self.signer.sign_input(self.psbt, 0, self.pubkey))
        signature = self.psbt.inputs[0].partial_sigs[self.pubkey]
        self.assertEqual(signature[-1], SIGHASH_ALL)
        digest = compute_sighash(self.psbt, 0)
        self.assertTrue(self.sk.get_public_key().verify(signature[:-1], digest))

        finalize(self.psbt)
        tx = extract(self.psbt)
        self.assertEqual(tx.get_txid(), Transaction.from_raw(self.spend_p2pkh_result).get_txid())
        self.assertEqual(tx.witnesses[0].stack, [signature, self.pubkey])

    def test_signing_is_additive(self):
        self.assertTrue(self.signer.sign_input(self.psbt, 0, self.pubkey))
        before = self.psbt.to_bytes()
        self.assertFalse(self.signer.sign_input(self.psbt, 0, self.pubkey))
        self.assertFalse(self.signer.sign_input(self.psbt, 0, self.pubkey, SIGHASH_NONE))
        self.assertEqual(self.psbt.to_bytes(), before)

    def test_backend_failure(self):
        signer = Signer(
            PrivateKeySigner([PrivateKey("cV3R88re3AZSBnWhBBNdiCKTfwpMKkYYjdiR13HQzsU7zoRNX7JL")])
        )
        before = self.psbt.to_bytes()
        with self.assertRaises(SigningError) as cm:
            signer.sign_input(self.psbt, 0, self.pubkey)
        self.assertIsInstance(cm.exception.__cause__, SignerBackendError)
        self.assertEqual(cm.exception.index, 0)
        self.assertEqual(self.psbt.to_bytes(), before)

    def test_finalized_input(self):
        self.signer.sign_input(self.psbt, 0, self.pubkey)
        finalize(self.psbt)
        self.assertRaises(ValidationError, self.signer.sign_input, self.psbt, 0, self.pubkey)
        self.assertEqual(self.signer.sign_all(self.psbt, [self.pubkey]), 0)

    def test_sign_all(self):
        tx = Transaction(
            [TxInput("0f" * 32, 0), TxInput("0f" * 32, 1), TxInput("0f" * 32, 2)],
            [TxOutput(9000, p2pkh_script(self.pubkey))],
        )
        psbt = Creator.create_v0(tx)
        updater = Updater(psbt)
        updater.add_witness_utxo(0, TxOutput(10000, p2wpkh_script(self.pubkey)))
        updater.add_witness_utxo(1, TxOutput(10000, p2pkh_script(self.pubkey)))
        # the third input has no spent output and is skipped

        other = PrivateKey("cV3R88re3AZSBnWhBBNdiCKTfwpMKkYYjdiR13HQzsU7zoRNX7JL")
        pubkeys = [self.pubkey, other.get_public_key().to_bytes()]
        self.assertEqual(self.signer.sign_all(psbt, pubkeys), 2)
        self.assertEqual(list(psbt.inputs[0].partial_sigs), [self.pubkey])
        self.assertEqual(list(psbt.inputs[1].partial_sigs), [self.pubkey])
        self.assertEqual(psbt.inputs[2].partial_sigs, {})
        self.assertEqual(self.signer.sign_all(psbt, pubkeys), 0)


class TestTxModifiable(unittest.TestCase):
    def setUp(self):
        setup("testnet")
        self.sk = PrivateKey("cTALNpTpRbbxTCJ2A5Vq88UxT44w1PE2cYqiB3n4hRvzyCev1Wwo")
        self.pubkey = self.sk.get_public_key().to_bytes()
        self.signer = Signer(PrivateKeySigner([self.sk]))

    def create(self, tx_modifiable=TX_MODIFIABLE_INPUTS | TX_MODIFIABLE_OUTPUTS):
        psbt = Creator.create_v2(
            inputs=[TxInput("0f" * 32, 0)],
            outputs=[TxOutput(9000, p2pkh_script(self.pubkey))],
            tx_modifiable=tx_modifiable,
        )
        Updater(psbt).add_witness_utxo(0, TxOutput(10000, p2wpkh_script(self.pubkey)))
        return psbt

    def test_sighash_all(self):
        psbt = self.create()
        self.signer.sign_input(psbt, 0, self.pubkey, SIGHASH_ALL)
        self.assertEqual(psbt.tx_modifiable, 0)
        self.assertRaises(
            ValidationError, Constructor.add_input, psbt, TxInput("0f" * 32, 1)
        )

    def test_sighash_single(self):
        psbt = self.create()
        self.signer.sign_input(psbt, 0, self.pubkey, SIGHASH_SINGLE)
        self.assertEqual(psbt.tx_modifiable, TX_MODIFIABLE_SIGHASH_SINGLE)

        psbt = self.create()
        self.signer.sign_input(psbt, 0, self.pubkey, SIGHASH_SINGLE | SIGHASH_ANYONECANPAY)
        self.assertEqual(
            psbt.tx_modifiable, TX_MODIFIABLE_INPUTS | TX_MODIFIABLE_SIGHASH_SINGLE
        )

    def test_sighash_none_anyonecanpay(self):
        psbt = self.create()
        self.signer.sign_input(psbt, 0, self.pubkey, SIGHASH_NONE | SIGHASH_ANYONECANPAY)
        self.assertEqual(psbt.tx_modifiable, TX_MODIFIABLE_INPUTS | TX_MODIFIABLE_OUTPUTS)

        # the lock time of a signed transaction cannot change
        self.assertRaises(
            ValidationError,
            Constructor.add_input,
            psbt,
            TxInput("0f" * 32, 1),
            required_height_locktime=800000,
        )
        self.assertEqual(len(psbt.inputs), 1)
        self.assertEqual(Constructor.add_input(psbt, TxInput("0f" * 32, 1)), 1)

    def test_flags_absent(self):
        psbt = self.create(tx_modifiable=None)
        self.signer.sign_input(psbt, 0, self.pubkey)
        self.assertIsNone(psbt.tx_modifiable)


class TestTaprootSigning(unittest.TestCase):
    maxDiff = None

    def setUp(self):
        setup("testnet")
        self.priv02 = PrivateKey("cV3R88re3AZSBnWhBBNdiCKTfwpMKkYYjdiR13HQzsU7zoRNX7JL")
        self.raw_signed02 = (
            "02000000000101566e10098ddba743bedbe1e4b356377abb3ef106c6831e733863d5eea012647b"
            "0100000000ffffffff01a00f0000000000001976a9148e48a6c5108efac226d33018b5347bb24a"
            "dec37a88ac01403065c743ec6261ce82abe9ea13f718702f9fb23f6d95ffe0eb59266d38416ad2"
            "9b664370c8f6719a8e1354f38c58c7c6e965cec71b9b5b0f8c100d207a448bd100000000"
        )
        self.internal_priv = PrivateKey("cT33CWKwcV8afBs5NYzeSzeSoGETtAB8izjDjMEuGqyqPoF7fbQR")
        self.leaf_priv = PrivateKey("cSW2kQbqC9zkqagw8oTYKFTozKuZ214zd6CMTDs4V32cMfH3dgKa")
        self.leaf_script = Script(
            [self.leaf_priv.get_public_key().to_x_only_bytes().hex(), "OP_CHECKSIG"]
        ).to_bytes()
        self.leaf_hash = tapleaf_tagged_hash(self.leaf_script)
        self.signed_key_path = (
            "0200000000010166fa733b552a229823b72571c3d91349ae90354926ff45e67257c6c4739d4c3d"
            "0000000000ffffffff01b80b000000000000225120d4213cd57207f22a9e905302007b99b84491"
            "534729bd5f4065bdcb42ed10fcd50140dff6c2256f49fd03b03c0ede86e6ba5ae64c84217438f2"
            "4752e5493c097983a8358b31cc821f84c63f0cbc39dae2885e669e7cfe370696dcde27bf99e712"
            "fdad00000000"
        )
        self.signed_script_path = (
            "0200000000010166fa733b552a229823b72571c3d91349ae90354926ff45e67257c6c4739d4c3d"
            "0000000000ffffffff01b80b000000000000225120d4213cd57207f22a9e905302007b99b84491"
            "534729bd5f4065bdcb42ed10fcd503407dac0f9685e8392e29a74302beeec1a38fd0731380d961"
            "36e0a1d02d492593ed0c229031def4d6cb235213d60f631c48aa944c44a86bd56be8778aa7794b"
            "baf3222013f523102815e9fbbe132ffb8329b0fef5a9e4836d216dce1824633287b0abc6ac21c1"
            "1036a7ed8d24eac9057e114f22342ebf20c16d37f0d25cfd2c900bf401ec09c900000000"
        )

    def create(self, signed_hex, internal_key, amount, merkle_root=None):
        output_key, _ = internal_key.get_taproot_output_key(merkle_root)
        psbt = Creator.create_v0(strip_signed(signed_hex))
        Updater(psbt).add_witness_utxo(
            0, TxOutput(amount, Script(["OP_1", output_key.hex()]).to_bytes())
        )
        return psbt

    def test_key_path(self):
        pub = self.priv02.get_public_key()
        psbt = self.create(self.raw_signed02, pub, 5000)
        signer = Signer(PrivateKeySigner([self.priv02]))

        # the internal key is needed to tweak the private key
        self.assertRaises(MissingPrevoutInfo, signer.sign_input, psbt, 0, pub.to_bytes())
        Updater(psbt).set_tap_internal_key(0, pub.to_x_only_bytes())
        self.assertTrue(signer.sign_input(psbt, 0, pub.to_bytes()))
        self.assertEqual(len(psbt.inputs[0].tap_key_sig), 64)
        self.assertFalse(signer.sign_input(psbt, 0, pub.to_bytes()))

        finalize(psbt)
        self.assertEqual(extract(psbt).to_hex(), self.raw_signed02)

    def test_key_path_with_script_tree(self):
        pub = self.internal_priv.get_public_key()
        psbt = self.create(self.signed_key_path, pub, 3500, self.leaf_hash)
        updater = Updater(psbt)
        updater.set_tap_internal_key(0, pub.to_x_only_bytes())
        signer = Signer(PrivateKeySigner([self.internal_priv]))

        # without the merkle root the tweaked key does not match the output
        self.assertRaises(SigningError, signer.sign_input, psbt, 0, pub.to_x_only_bytes())
        updater.set_tap_merkle_root(0, self.leaf_hash)
        self.assertTrue(signer.sign_input(psbt, 0, pub.to_x_only_bytes()))

        finalize(psbt)
        self.assertEqual(extract(psbt).to_hex(), self.signed_key_path)

    def test_script_path(self):
        internal = self.internal_priv.get_public_key()
        psbt = self.create(self.signed_script_path, internal, 3500, self.leaf_hash)
        _, parity = internal.get_taproot_output_key(self.leaf_hash)
        control_block = ControlBlock(internal.to_x_only_bytes(), [], 0xC0, parity)
        Updater(psbt).add_tap_leaf_script(0, control_block, self.leaf_script)

        leaf_pub = self.leaf_priv.get_public_key().to_x_only_bytes()
        signer = Signer(PrivateKeySigner([self.leaf_priv]))
        self.assertEqual(signer.sign_all(psbt, [leaf_pub]), 1)
        self.assertIn((leaf_pub, self.leaf_hash), psbt.inputs[0].tap_script_sigs)
        self.assertIsNone(psbt.inputs[0].tap_key_sig)

        finalize(psbt)
        self.assertEqual(extract(psbt).to_hex(), self.signed_script_path)


if __name__ == "__main__":
    unittest.main()
