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
from typing import Optional

from bitcoinpsbt.constants import LEAF_VERSION_TAPSCRIPT
from bitcoinpsbt.errors import (
    FinalizeError,
    InputFinalizeError,
    InsufficientSignatures,
    NotFinalized,
    UnsatisfiableScript,
)
from bitcoinpsbt.hashfunctions import hash_hash160, hash_sha256
from bitcoinpsbt.psbt import PSBT, PSBTInput
from bitcoinpsbt.script import Script, push_data, try_parse_script
from bitcoinpsbt.transactions import Transaction, TxWitnessInput
from bitcoinpsbt.utils import tapleaf_tagged_hash

logger = logging.getLogger(__name__)


def finalize(psbt: PSBT) -> None:
    """Finalizes every input that is not finalized yet.

    Inputs are finalized independently; the ones that succeed stay
    finalized even when others fail.

    Raises
    ------
    FinalizeError
        listing an InsufficientSignatures or UnsatisfiableScript error for
        every input that could not be finalized
    """
    failures = []
    for index in range(len(psbt.inputs)):
        try:
            finalize_input(psbt, index)
        except InputFinalizeError as e:
            failures.append(e)
    if failures:
        raise FinalizeError(failures)


def finalize_input(psbt: PSBT, index: int) -> None:
    """Builds the final scriptSig and witness of an input from its signatures.

    On success the signing fields are removed from the input; on failure
    the input is left untouched.
    """
    psbt._check_input_index(index)
    psbt_input = psbt.inputs[index]
    if psbt_input.is_finalized():
        return

    spent = psbt.get_spent_output(index)
    if spent is None:
        raise UnsatisfiableScript(index, "spent output is unknown")
    parsed = try_parse_script(spent.script_pubkey)
    if parsed is None:
        raise UnsatisfiableScript(index, "spent scriptPubKey cannot be parsed")

    script_sig = b""
    witness: Optional[list[bytes]] = None

    if parsed.is_p2tr():
        witness = _satisfy_taproot(index, psbt_input)
    elif parsed.is_p2sh():
        redeem_script = psbt_input.redeem_script
        if redeem_script is None:
            raise UnsatisfiableScript(index, "P2SH input lacks its redeem script")
        if hash_hash160(redeem_script) != bytes.fromhex(parsed.get_script()[1]):
            raise UnsatisfiableScript(index, "redeem script does not match the P2SH hash")
        inner = try_parse_script(redeem_script)
        if inner is None:
            raise UnsatisfiableScript(index, "redeem script cannot be parsed")

        if inner.is_p2wpkh() or inner.is_p2wsh():
            witness = _satisfy_segwit(index, psbt_input, inner)
            script_sig = push_data(redeem_script)
        elif inner.get_witness_program() is not None:
            raise UnsatisfiableScript(index, "unsupported nested witness program")
        else:
            items = _satisfy_script(index, psbt_input, inner)
            script_sig = _to_script_sig(items + [redeem_script])
    elif parsed.is_p2wpkh() or parsed.is_p2wsh():
        witness = _satisfy_segwit(index, psbt_input, parsed)
    elif parsed.get_witness_program() is not None:
        raise UnsatisfiableScript(index, "unsupported witness version")
    else:
        script_sig = _to_script_sig(_satisfy_script(index, psbt_input, parsed))

    psbt_input.final_script_sig = script_sig if script_sig else None
    psbt_input.final_script_witness = witness
    psbt_input.clear_presig_fields()
    logger.debug("Finalized input %d", index)


def _to_script_sig(items: list[bytes]) -> bytes:
    return b"".join(push_data(item) for item in items)


def _find_key_hash_signature(
    index: int, psbt_input: PSBTInput, key_hash: bytes
) -> tuple[bytes, bytes]:
    """Returns the (signature, public key) whose key hashes to key_hash"""
    for pubkey in sorted(psbt_input.partial_sigs):
        if hash_hash160(pubkey) == key_hash:
            return psbt_input.partial_sigs[pubkey], pubkey
    raise InsufficientSignatures(index, "no signature for the key hash")


def _satisfy_segwit(index: int, psbt_input: PSBTInput, program_script: Script) -> list[bytes]:
    _, program = program_script.get_witness_program()
    if len(program) == 20:
        signature, pubkey = _find_key_hash_signature(index, psbt_input, program)
        return [signature, pubkey]

    witness_script = psbt_input.witness_script
    if witness_script is None:
        raise UnsatisfiableScript(index, "P2WSH input lacks its witness script")
    if hash_sha256(witness_script) != program:
        raise UnsatisfiableScript(index, "witness script does not match the P2WSH hash")
    parsed = try_parse_script(witness_script)
    if parsed is None:
        raise UnsatisfiableScript(index, "witness script cannot be parsed")
    return _satisfy_script(index, psbt_input, parsed) + [witness_script]


def _satisfy_script(index: int, psbt_input: PSBTInput, script: Script) -> list[bytes]:
    """The stack items that satisfy a p2pk, p2pkh or multisig script"""
    partial_sigs = psbt_input.partial_sigs

    if script.is_p2pk():
        pubkey = script.get_public_keys()[0]
        if pubkey not in partial_sigs:
            raise InsufficientSignatures(index, "no signature for the P2PK key")
        return [partial_sigs[pubkey]]

    if script.is_p2pkh():
        key_hash = bytes.fromhex(script.get_script()[2])
        signature, pubkey = _find_key_hash_signature(index, psbt_input, key_hash)
        return [signature, pubkey]

    is_multisig, params = script.is_multisig()
    if is_multisig:
        required, _ = params
        signatures = [
            partial_sigs[pubkey] for pubkey in script.get_public_keys() if pubkey in partial_sigs
        ]
        if len(signatures) < required:
            raise InsufficientSignatures(
                index, f"{len(signatures)} of {required} multisig signatures"
            )
        # dummy element consumed by OP_CHECKMULTISIG
        return [b""] + signatures[:required]

    raise UnsatisfiableScript(index, f"unsupported script type {script.get_script_type()}")


def _satisfy_taproot(index: int, psbt_input: PSBTInput) -> list[bytes]:
    if psbt_input.tap_key_sig is not None:
        return [psbt_input.tap_key_sig]

    leaves = sorted(
        psbt_input.tap_leaf_scripts.items(), key=lambda item: (len(item[0]), item[1][0])
    )
    if not leaves:
        raise InsufficientSignatures(index, "no taproot key path signature or leaf scripts")

    error: Optional[InputFinalizeError] = None
    for control_block, (leaf_script, leaf_version) in leaves:
        try:
            items = _satisfy_leaf(index, psbt_input, leaf_script, leaf_version)
        except InputFinalizeError as e:
            # keep the most informative reason, a missing signature
            if error is None or isinstance(e, InsufficientSignatures):
                error = e
            continue
        return items + [leaf_script, control_block]
    raise error


def _satisfy_leaf(
    index: int, psbt_input: PSBTInput, leaf_script: bytes, leaf_version: int
) -> list[bytes]:
    if leaf_version != LEAF_VERSION_TAPSCRIPT:
        raise UnsatisfiableScript(index, f"unsupported leaf version 0x{leaf_version:02x}")
    script = try_parse_script(leaf_script)
    if script is None:
        raise UnsatisfiableScript(index, "leaf script cannot be parsed")

    leaf_hash = tapleaf_tagged_hash(leaf_script, leaf_version)
    signatures = psbt_input.tap_script_sigs

    if script.is_tapscript_p2pk():
        key = (script.get_public_keys()[0], leaf_hash)
        if key not in signatures:
            raise InsufficientSignatures(index, "no signature for the leaf key")
        return [signatures[key]]

    is_multi_a, params = script.is_multi_a()
    if is_multi_a:
        required, _ = params
        items = []
        found = 0
        for xonly in script.get_public_keys():
            key = (xonly, leaf_hash)
            if key in signatures and found < required:
                items.append(signatures[key])
                found += 1
            else:
                items.append(b"")
        if found < required:
            raise InsufficientSignatures(
                index, f"{found} of {required} leaf signatures"
            )
        # the first key's signature is consumed last
        return list(reversed(items))

    raise UnsatisfiableScript(index, "unsupported leaf script")


def extract(psbt: PSBT) -> Transaction:
    """Returns the network transaction of a fully finalized PSBT.

    Raises
    ------
    NotFinalized
        listing every input that is not finalized
    """
    missing = [i for i, psbt_input in enumerate(psbt.inputs) if not psbt_input.is_finalized()]
    if missing:
        raise NotFinalized(missing)

    tx = psbt.get_unsigned_tx()
    for txin, psbt_input in zip(tx.inputs, psbt.inputs):
        txin.script_sig = psbt_input.final_script_sig or b""
    if any(psbt_input.final_script_witness for psbt_input in psbt.inputs):
        tx.witnesses = [
            TxWitnessInput(list(psbt_input.final_script_witness or []))
            for psbt_input in psbt.inputs
        ]
    logger.debug("Extracted transaction %s", tx.get_txid())
    return tx
