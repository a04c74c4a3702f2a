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

import logging
from typing import Optional, Union

from bitcoinpsbt.constants import (
    DEFAULT_TX_SEQUENCE,
    DEFAULT_TX_VERSION,
    ECDSA,
    SCHNORR,
    SIGHASH_ANYONECANPAY,
    SIGHASH_DEFAULT,
    SIGHASH_NONE,
    SIGHASH_SINGLE,
    TX_MODIFIABLE_INPUTS,
    TX_MODIFIABLE_OUTPUTS,
    TX_MODIFIABLE_SIGHASH_SINGLE,
)
from bitcoinpsbt.errors import (
    MissingPrevoutInfo,
    SignerBackendError,
    SigningError,
    UnsupportedScript,
    ValidationError,
)
from bitcoinpsbt.hashfunctions import PREIMAGE_HASHES, hash_hash160, hash_sha256
from bitcoinpsbt.keys import PublicKey, SigningBackend, decode_xpub
from bitcoinpsbt.psbt import PSBT, PSBTInput, PSBTOutput
from bitcoinpsbt.psbt_utils import KeyOriginInfo, is_valid_pubkey
from bitcoinpsbt.script import Script, try_parse_script
from bitcoinpsbt.sighash import (
    LegacyPath,
    SegwitV0Path,
    SighashCache,
    TaprootKeyPath,
    TaprootScriptPath,
    compute_sighash,
    resolve_sighash_type,
    resolve_spending_path,
)
from bitcoinpsbt.transactions import Transaction, TxInput, TxOutput
from bitcoinpsbt.utils import (
    ControlBlock,
    calculate_tweak,
    get_tap_tree_merkle_root,
    tapleaf_tagged_hash,
)

logger = logging.getLogger(__name__)


def _script_bytes(script: Union[bytes, Script]) -> bytes:
    return script.to_bytes() if isinstance(script, Script) else bytes(script)


def _xonly(pubkey: bytes) -> bytes:
    """x-only form of a SEC encoded or x-only public key"""
    return pubkey if len(pubkey) == 32 else pubkey[1:33]


class Creator:
    """Creates new PSBTs from an unsigned transaction (version 0) or from
    explicit transaction fields (version 2)."""

    @staticmethod
    def create_v0(tx: Transaction) -> PSBT:
        """Creates a version 0 PSBT embedding a copy of tx.

        Raises
        ------
        ValidationError
            if the transaction carries scriptSigs or witnesses
        """
        for txin in tx.inputs:
            if txin.script_sig:
                raise ValidationError(
                    None, "PSBT_GLOBAL_UNSIGNED_TX", "scriptSigs must be empty"
                )
        if tx.has_witness():
            raise ValidationError(None, "PSBT_GLOBAL_UNSIGNED_TX", "witnesses must be empty")

        psbt = PSBT(Transaction.copy(tx))
        psbt.validate()
        logger.debug("Created version 0 PSBT %s", psbt.unique_id())
        return psbt

    @staticmethod
    def create_v2(
        tx_version: int = DEFAULT_TX_VERSION,
        inputs: Optional[list[TxInput]] = None,
        outputs: Optional[list[TxOutput]] = None,
        fallback_locktime: Optional[int] = None,
        tx_modifiable: Optional[int] = None,
    ) -> PSBT:
        """Creates a version 2 PSBT.

        Inputs are given as TxInput objects whose outpoint and sequence are
        copied; scriptSigs must be empty.
        """
        psbt = PSBT(version=2)
        psbt.tx_version = tx_version
        psbt.fallback_locktime = fallback_locktime
        psbt.tx_modifiable = tx_modifiable

        for txin in inputs or []:
            psbt.inputs.append(_new_v2_input(txin))
        for txout in outputs or []:
            psbt.outputs.append(_new_v2_output(txout))

        psbt.validate()
        logger.debug("Created version 2 PSBT %s", psbt.unique_id())
        return psbt


def _new_v2_input(
    txin: TxInput,
    required_time_locktime: Optional[int] = None,
    required_height_locktime: Optional[int] = None,
) -> PSBTInput:
    if txin.script_sig:
        raise ValidationError(None, "PSBT_IN_PREVIOUS_TXID", "scriptSigs must be empty")
    psbt_input = PSBTInput()
    psbt_input.prev_txid = txin.txid
    psbt_input.output_index = txin.txout_index
    if txin.sequence != DEFAULT_TX_SEQUENCE:
        psbt_input.sequence = txin.sequence
    psbt_input.required_time_locktime = required_time_locktime
    psbt_input.required_height_locktime = required_height_locktime
    return psbt_input


def _new_v2_output(txout: TxOutput) -> PSBTOutput:
    psbt_output = PSBTOutput()
    psbt_output.amount = txout.amount
    psbt_output.script = txout.script_pubkey
    return psbt_output


def _has_signatures(psbt: PSBT) -> bool:
    return any(
        psbt_input.partial_sigs
        or psbt_input.tap_key_sig is not None
        or psbt_input.tap_script_sigs
        or psbt_input.is_finalized()
        for psbt_input in psbt.inputs
    )


class Constructor:
    """Adds inputs and outputs to version 2 PSBTs (BIP-370).

    Inputs and outputs are always appended so the pairing of SIGHASH_SINGLE
    signatures with their outputs is kept.
    """

    @staticmethod
    def _check_modifiable(psbt: PSBT, flag: int, what: str) -> None:
        if not psbt.is_v2():
            raise ValidationError(
                None, "PSBT_GLOBAL_VERSION", f"{what} can only be added to version 2 PSBTs"
            )
        if not (psbt.tx_modifiable or 0) & flag:
            raise ValidationError(None, "PSBT_GLOBAL_TX_MODIFIABLE", f"{what} are not modifiable")

    @staticmethod
    def add_input(
        psbt: PSBT,
        txin: TxInput,
        required_time_locktime: Optional[int] = None,
        required_height_locktime: Optional[int] = None,
    ) -> int:
        """Appends an input, returns its index.

        Raises
        ------
        ValidationError
            if inputs are not modifiable, the lock time requirements are
            invalid or incompatible with the other inputs, or the lock time
            of an already signed transaction would change
        """
        Constructor._check_modifiable(psbt, TX_MODIFIABLE_INPUTS, "inputs")
        signed = _has_signatures(psbt)
        locktime = psbt.compute_lock_time()

        psbt.inputs.append(
            _new_v2_input(txin, required_time_locktime, required_height_locktime)
        )
        index = len(psbt.inputs) - 1
        try:
            psbt._validate_input(index)
            if psbt.compute_lock_time() != locktime and signed:
                raise ValidationError(
                    index,
                    "PSBT_IN_REQUIRED_TIME_LOCKTIME",
                    "would change the lock time of a signed transaction",
                )
        except ValidationError:
            psbt.inputs.pop()
            raise

        logger.debug("Added input %d spending %s:%d", index, txin.txid, txin.txout_index)
        return index

    @staticmethod
    def add_output(psbt: PSBT, txout: TxOutput) -> int:
        """Appends an output, returns its index"""
        Constructor._check_modifiable(psbt, TX_MODIFIABLE_OUTPUTS, "outputs")
        psbt.outputs.append(_new_v2_output(txout))
        logger.debug("Added output %d of %d satoshis", len(psbt.outputs) - 1, txout.amount)
        return len(psbt.outputs) - 1


class Updater:
    """Attaches the information signers and finalizers need to a PSBT.

    Every method checks its arguments before changing the document, so a
    failed call leaves it untouched. Finalized inputs cannot be updated.

    Attributes
    ----------
    psbt : PSBT
        the document being updated
    """

    def __init__(self, psbt: PSBT) -> None:
        self.psbt = psbt

    def _input(self, index: int, field: str) -> PSBTInput:
        self.psbt._check_input_index(index)
        psbt_input = self.psbt.inputs[index]
        if psbt_input.is_finalized():
            raise ValidationError(index, field, "input is finalized")
        return psbt_input

    def _output(self, index: int) -> PSBTOutput:
        self.psbt._check_output_index(index)
        return self.psbt.outputs[index]

    #
    # Inputs
    #
    def add_non_witness_utxo(self, index: int, tx: Transaction) -> None:
        psbt_input = self._input(index, "PSBT_IN_NON_WITNESS_UTXO")
        txid, vout = self.psbt.get_outpoint(index)
        if tx.get_txid() != txid:
            raise ValidationError(
                index, "PSBT_IN_NON_WITNESS_UTXO", "does not match the previous txid"
            )
        if vout >= len(tx.outputs):
            raise ValidationError(index, "PSBT_IN_NON_WITNESS_UTXO", f"has no output {vout}")
        if psbt_input.witness_utxo is not None and psbt_input.witness_utxo != tx.outputs[vout]:
            raise ValidationError(
                index, "PSBT_IN_NON_WITNESS_UTXO", "does not match the witness UTXO"
            )
        psbt_input.non_witness_utxo = Transaction.copy(tx)

    def add_witness_utxo(self, index: int, txout: TxOutput) -> None:
        psbt_input = self._input(index, "PSBT_IN_WITNESS_UTXO")
        if psbt_input.non_witness_utxo is not None:
            _, vout = self.psbt.get_outpoint(index)
            if psbt_input.non_witness_utxo.outputs[vout] != txout:
                raise ValidationError(
                    index,
                    "PSBT_IN_WITNESS_UTXO",
                    "does not match the output of the previous transaction",
                )
        psbt_input.witness_utxo = TxOutput.copy(txout)

    def add_redeem_script(self, index: int, script: Union[bytes, Script]) -> None:
        psbt_input = self._input(index, "PSBT_IN_REDEEM_SCRIPT")
        redeem_script = _script_bytes(script)
        spent = self.psbt.get_spent_output(index)
        if spent is not None:
            # hash the bytes as given, a re-encoded script may differ
            expected = Script(
                ["OP_HASH160", hash_hash160(redeem_script).hex(), "OP_EQUAL"]
            ).to_bytes()
            if spent.script_pubkey != expected:
                raise ValidationError(
                    index, "PSBT_IN_REDEEM_SCRIPT", "does not match the P2SH output"
                )
        psbt_input.redeem_script = redeem_script

    def add_witness_script(self, index: int, script: Union[bytes, Script]) -> None:
        psbt_input = self._input(index, "PSBT_IN_WITNESS_SCRIPT")
        witness_script = _script_bytes(script)
        spent = self.psbt.get_spent_output(index)
        if spent is not None:
            expected = Script(["OP_0", hash_sha256(witness_script).hex()]).to_bytes()
            outer = psbt_input.redeem_script if psbt_input.redeem_script else spent.script_pubkey
            if outer != expected:
                raise ValidationError(
                    index, "PSBT_IN_WITNESS_SCRIPT", "does not match the P2WSH program"
                )
        psbt_input.witness_script = witness_script

    def add_input_bip32_derivation(
        self, index: int, pubkey: bytes, origin: KeyOriginInfo
    ) -> None:
        psbt_input = self._input(index, "PSBT_IN_BIP32_DERIVATION")
        if not is_valid_pubkey(pubkey):
            raise ValidationError(index, "PSBT_IN_BIP32_DERIVATION", "invalid public key")
        psbt_input.bip32_derivations[pubkey] = origin

    def set_sighash_type(self, index: int, sighash_type: int) -> None:
        psbt_input = self._input(index, "PSBT_IN_SIGHASH_TYPE")
        if not 0 <= sighash_type <= 0xFFFFFFFF:
            raise ValidationError(index, "PSBT_IN_SIGHASH_TYPE", "must be a 32 bit value")
        psbt_input.sighash_type = sighash_type

    def add_preimage(self, index: int, hash_name: str, preimage: bytes) -> bytes:
        """Records a hash preimage, returns its hash

        hash_name is one of ripemd160, sha256, hash160 and hash256.
        """
        psbt_input = self._input(index, f"PSBT_IN_{hash_name.upper()}")
        if hash_name not in PREIMAGE_HASHES:
            raise ValueError(f"Unknown preimage hash: {hash_name}")
        hash_value = PREIMAGE_HASHES[hash_name](preimage)
        psbt_input.get_preimages(hash_name)[hash_value] = preimage
        return hash_value

    def set_tap_internal_key(self, index: int, internal_key: bytes) -> None:
        psbt_input = self._input(index, "PSBT_IN_TAP_INTERNAL_KEY")
        internal_key = _xonly(internal_key)
        if len(internal_key) != 32:
            raise ValidationError(index, "PSBT_IN_TAP_INTERNAL_KEY", "must be 32 bytes")
        psbt_input.tap_internal_key = internal_key

    def set_tap_merkle_root(self, index: int, merkle_root: bytes) -> None:
        psbt_input = self._input(index, "PSBT_IN_TAP_MERKLE_ROOT")
        if len(merkle_root) != 32:
            raise ValidationError(index, "PSBT_IN_TAP_MERKLE_ROOT", "must be 32 bytes")
        psbt_input.tap_merkle_root = merkle_root

    def add_tap_leaf_script(
        self,
        index: int,
        control_block: Union[bytes, ControlBlock],
        script: Union[bytes, Script],
    ) -> bytes:
        """Records a leaf script with its control block, returns the leaf hash"""
        psbt_input = self._input(index, "PSBT_IN_TAP_LEAF_SCRIPT")
        if isinstance(control_block, bytes):
            try:
                control_block = ControlBlock.from_bytes(control_block)
            except ValueError as e:
                raise ValidationError(index, "PSBT_IN_TAP_LEAF_SCRIPT", str(e)) from e
        leaf_script = _script_bytes(script)
        leaf_version = control_block.leaf_version
        psbt_input.tap_leaf_scripts[control_block.to_bytes()] = (leaf_script, leaf_version)
        return tapleaf_tagged_hash(leaf_script, leaf_version)

    def add_tap_bip32_derivation(
        self,
        index: int,
        xonly: bytes,
        leaf_hashes: list[bytes],
        origin: KeyOriginInfo,
    ) -> None:
        psbt_input = self._input(index, "PSBT_IN_TAP_BIP32_DERIVATION")
        if len(xonly) != 32 or any(len(h) != 32 for h in leaf_hashes):
            raise ValidationError(
                index, "PSBT_IN_TAP_BIP32_DERIVATION", "keys and leaf hashes must be 32 bytes"
            )
        psbt_input.tap_bip32_derivations[xonly] = (list(leaf_hashes), origin)

    def add_input_proprietary(self, index: int, key_data: bytes, value: bytes) -> None:
        self._input(index, "PSBT_IN_PROPRIETARY").proprietary[key_data] = value

    #
    # Outputs
    #
    def add_output_redeem_script(self, index: int, script: Union[bytes, Script]) -> None:
        self._output(index).redeem_script = _script_bytes(script)

    def add_output_witness_script(self, index: int, script: Union[bytes, Script]) -> None:
        self._output(index).witness_script = _script_bytes(script)

    def add_output_bip32_derivation(
        self, index: int, pubkey: bytes, origin: KeyOriginInfo
    ) -> None:
        psbt_output = self._output(index)
        if not is_valid_pubkey(pubkey):
            raise ValidationError(index, "PSBT_OUT_BIP32_DERIVATION", "invalid public key")
        psbt_output.bip32_derivations[pubkey] = origin

    def set_output_tap_internal_key(self, index: int, internal_key: bytes) -> None:
        psbt_output = self._output(index)
        internal_key = _xonly(internal_key)
        if len(internal_key) != 32:
            raise ValidationError(index, "PSBT_OUT_TAP_INTERNAL_KEY", "must be 32 bytes")
        psbt_output.tap_internal_key = internal_key

    def set_output_tap_tree(self, index: int, leaves: list[tuple[int, int, bytes]]) -> bytes:
        """Records the script tree of a taproot output, returns its merkle root

        leaves are (depth, leaf_version, script) tuples in depth-first order.
        """
        psbt_output = self._output(index)
        leaves = [(d, v, _script_bytes(s)) for d, v, s in leaves]
        try:
            merkle_root = get_tap_tree_merkle_root(leaves)
        except ValueError as e:
            raise ValidationError(index, "PSBT_OUT_TAP_TREE", str(e)) from e
        psbt_output.tap_tree = leaves
        return merkle_root

    def add_output_tap_bip32_derivation(
        self,
        index: int,
        xonly: bytes,
        leaf_hashes: list[bytes],
        origin: KeyOriginInfo,
    ) -> None:
        psbt_output = self._output(index)
        if len(xonly) != 32 or any(len(h) != 32 for h in leaf_hashes):
            raise ValidationError(
                index, "PSBT_OUT_TAP_BIP32_DERIVATION", "keys and leaf hashes must be 32 bytes"
            )
        psbt_output.tap_bip32_derivations[xonly] = (list(leaf_hashes), origin)

    def add_output_proprietary(self, index: int, key_data: bytes, value: bytes) -> None:
        self._output(index).proprietary[key_data] = value

    #
    # Globals
    #
    def add_xpub(self, xpub: Union[str, bytes], origin: KeyOriginInfo) -> None:
        """Records an extended public key, base58 encoded or serialized"""
        if isinstance(xpub, str):
            try:
                xpub = decode_xpub(xpub)
            except ValueError as e:
                raise ValidationError(None, "PSBT_GLOBAL_XPUB", str(e)) from e
        if len(xpub) != 78:
            raise ValidationError(None, "PSBT_GLOBAL_XPUB", "must be 78 bytes")
        self.psbt.xpubs[xpub] = origin

    def add_global_proprietary(self, key_data: bytes, value: bytes) -> None:
        self.psbt.proprietary[key_data] = value


class Signer:
    """Signs PSBT inputs through a signing backend.

    Signing only ever adds signatures: an existing signature for the same
    key (and leaf) is left untouched and the call reports it did nothing.

    Attributes
    ----------
    backend : SigningBackend
        produces the signatures
    """

    def __init__(self, backend: SigningBackend) -> None:
        self.backend = backend

    def _sign(
        self,
        index: int,
        message: bytes,
        pubkey: bytes,
        curve: str,
        tweak: Optional[bytes] = None,
    ) -> bytes:
        try:
            signature = self.backend.sign(message, pubkey, curve, tweak)
        except SignerBackendError as e:
            raise SigningError(index, f"signing backend failed: {e}") from e
        if curve == SCHNORR and len(signature) != 64:
            raise SigningError(index, "backend returned an invalid Schnorr signature")
        return signature

    def sign_input(
        self,
        psbt: PSBT,
        index: int,
        pubkey: bytes,
        sighash_type: Optional[int] = None,
        leaf_hash: Optional[bytes] = None,
        cache: Optional[SighashCache] = None,
    ) -> bool:
        """Signs an input with the key of pubkey.

        ECDSA signatures go to partial_sigs under pubkey, taproot key path
        signatures to tap_key_sig and script path signatures (leaf_hash
        given) to tap_script_sigs under (x-only key, leaf hash).

        Returns
        -------
        bool
            True if a signature was added, False if one was already present

        Raises
        ------
        MissingPrevoutInfo, UnsupportedSighashType, UnsupportedScript, IndexOutOfRange
            if the message to sign cannot be computed
        SigningError
            if the backend fails; the document is not changed
        """
        psbt._check_input_index(index)
        psbt_input = psbt.inputs[index]
        if psbt_input.is_finalized():
            raise ValidationError(index, "PSBT_IN_FINAL_SCRIPTSIG", "input is finalized")

        path = resolve_spending_path(psbt, index, leaf_hash)
        sighash_type = resolve_sighash_type(psbt, index, path, sighash_type)

        if isinstance(path, TaprootKeyPath):
            if psbt_input.tap_key_sig is not None:
                logger.warning("Input %d already has a taproot key path signature", index)
                return False
            tweak = self._get_key_path_tweak(index, path, pubkey)
            message = compute_sighash(psbt, index, sighash_type, None, cache)
            signature = self._sign(index, message, pubkey, SCHNORR, tweak)
            if sighash_type != SIGHASH_DEFAULT:
                signature += bytes([sighash_type])
            psbt_input.tap_key_sig = signature

        elif isinstance(path, TaprootScriptPath):
            key = (_xonly(pubkey), path.leaf_hash)
            if key in psbt_input.tap_script_sigs:
                logger.warning(
                    "Input %d already has a signature of %s for leaf %s",
                    index,
                    key[0].hex(),
                    key[1].hex(),
                )
                return False
            message = compute_sighash(psbt, index, sighash_type, path.leaf_hash, cache)
            signature = self._sign(index, message, pubkey, SCHNORR)
            if sighash_type != SIGHASH_DEFAULT:
                signature += bytes([sighash_type])
            psbt_input.tap_script_sigs[key] = signature

        else:
            if not is_valid_pubkey(pubkey):
                raise ValidationError(index, "PSBT_IN_PARTIAL_SIG", "invalid public key")
            if pubkey in psbt_input.partial_sigs:
                logger.warning("Input %d already has a signature of %s", index, pubkey.hex())
                return False
            message = compute_sighash(psbt, index, sighash_type, None, cache)
            signature = self._sign(index, message, pubkey, ECDSA)
            psbt_input.partial_sigs[pubkey] = signature + bytes([sighash_type])

        if psbt.is_v2():
            self._update_modifiable(psbt, sighash_type)
        logger.debug("Signed input %d with %s (sighash 0x%02x)", index, pubkey.hex(), sighash_type)
        return True

    @staticmethod
    def _get_key_path_tweak(index: int, path: TaprootKeyPath, pubkey: bytes) -> bytes:
        if path.internal_key is None:
            raise MissingPrevoutInfo(
                index, "taproot key path signing requires PSBT_IN_TAP_INTERNAL_KEY"
            )
        if _xonly(pubkey) != path.internal_key:
            raise SigningError(index, "public key is not the taproot internal key")
        output_key, _ = PublicKey(path.internal_key).get_taproot_output_key(path.merkle_root)
        if output_key != path.output_key:
            raise SigningError(
                index, "internal key and merkle root do not match the output key"
            )
        return calculate_tweak(path.internal_key, path.merkle_root)

    @staticmethod
    def _update_modifiable(psbt: PSBT, sighash_type: int) -> None:
        """Narrows PSBT_GLOBAL_TX_MODIFIABLE after a signature (BIP-370)"""
        base_type = sighash_type & 0x03
        flags = psbt.tx_modifiable
        if flags is None and base_type != SIGHASH_SINGLE:
            return

        flags = flags or 0
        if not sighash_type & SIGHASH_ANYONECANPAY:
            flags &= ~TX_MODIFIABLE_INPUTS
        if base_type != SIGHASH_NONE:
            flags &= ~TX_MODIFIABLE_OUTPUTS
        if base_type == SIGHASH_SINGLE:
            flags |= TX_MODIFIABLE_SIGHASH_SINGLE
        psbt.tx_modifiable = flags

    def sign_all(
        self, psbt: PSBT, pubkeys: list[bytes], sighash_type: Optional[int] = None
    ) -> int:
        """Signs every input, and every taproot leaf, that uses one of pubkeys.

        Inputs whose spending path cannot be resolved are skipped. Returns
        the number of signatures added.
        """
        cache = SighashCache(psbt)
        added = 0
        for index, psbt_input in enumerate(psbt.inputs):
            if psbt_input.is_finalized():
                continue
            try:
                path = resolve_spending_path(psbt, index)
            except (MissingPrevoutInfo, UnsupportedScript) as e:
                logger.warning("Skipping input %d: %s", index, e)
                continue

            for pubkey in pubkeys:
                for leaf_hash in _signing_targets(psbt_input, path, pubkey):
                    if self.sign_input(psbt, index, pubkey, sighash_type, leaf_hash, cache):
                        added += 1
        return added


def _signing_targets(psbt_input: PSBTInput, path, pubkey: bytes) -> list[Optional[bytes]]:
    """The leaf hashes (None for the key path or ECDSA) pubkey can sign for"""
    if isinstance(path, TaprootKeyPath):
        targets: list[Optional[bytes]] = []
        if path.internal_key is not None and _xonly(pubkey) == path.internal_key:
            targets.append(None)
        for leaf_script, leaf_version in psbt_input.tap_leaf_scripts.values():
            parsed = try_parse_script(leaf_script)
            if parsed is not None and _xonly(pubkey) in parsed.get_public_keys():
                leaf_hash = tapleaf_tagged_hash(leaf_script, leaf_version)
                if leaf_hash not in targets:
                    targets.append(leaf_hash)
        return targets

    if isinstance(path, (LegacyPath, SegwitV0Path)):
        parsed = try_parse_script(path.script_code)
        if parsed is None or not is_valid_pubkey(pubkey):
            return []
        if parsed.is_p2pkh():
            key_hash = bytes.fromhex(parsed.get_script()[2])
            return [None] if hash_hash160(pubkey) == key_hash else []
        return [None] if pubkey in parsed.get_public_keys() else []

    return []


