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
combiner.py
===========
Merges copies of the same PSBT that were updated or signed independently.

The merge is a join: it never mutates its arguments and the result does not
depend on the order the documents are given in. Signatures for the same key
that differ (e.g. produced with different nonces) are resolved by keeping
the lexicographically smaller one.
"""

import logging
from typing import Optional

from bitcoinpsbt.constants import (
    PROPRIETARY_MERGE_LOWEST,
    TX_MODIFIABLE_INPUTS,
    TX_MODIFIABLE_OUTPUTS,
    TX_MODIFIABLE_SIGHASH_SINGLE,
)
from bitcoinpsbt.errors import ConflictingField, IncompatibleBase, ValidationError
from bitcoinpsbt.psbt import PSBT, PSBTInput, PSBTOutput
from bitcoinpsbt.psbt_utils import encode_witness_stack
from bitcoinpsbt.setup import get_proprietary_merge

logger = logging.getLogger(__name__)


# fields that must agree when set on both sides, with their wire names
INPUT_SCALAR_FIELDS = {
    "non_witness_utxo": "PSBT_IN_NON_WITNESS_UTXO",
    "witness_utxo": "PSBT_IN_WITNESS_UTXO",
    "sighash_type": "PSBT_IN_SIGHASH_TYPE",
    "redeem_script": "PSBT_IN_REDEEM_SCRIPT",
    "witness_script": "PSBT_IN_WITNESS_SCRIPT",
    "required_time_locktime": "PSBT_IN_REQUIRED_TIME_LOCKTIME",
    "required_height_locktime": "PSBT_IN_REQUIRED_HEIGHT_LOCKTIME",
    "tap_internal_key": "PSBT_IN_TAP_INTERNAL_KEY",
    "tap_merkle_root": "PSBT_IN_TAP_MERKLE_ROOT",
}

# maps whose common keys must carry equal values
INPUT_MAP_FIELDS = {
    "bip32_derivations": "PSBT_IN_BIP32_DERIVATION",
    "ripemd160_preimages": "PSBT_IN_RIPEMD160",
    "sha256_preimages": "PSBT_IN_SHA256",
    "hash160_preimages": "PSBT_IN_HASH160",
    "hash256_preimages": "PSBT_IN_HASH256",
    "tap_leaf_scripts": "PSBT_IN_TAP_LEAF_SCRIPT",
    "tap_bip32_derivations": "PSBT_IN_TAP_BIP32_DERIVATION",
    "unknown": "unknown",
}

INPUT_SIGNATURE_FIELDS = {
    "partial_sigs": "PSBT_IN_PARTIAL_SIG",
    "tap_script_sigs": "PSBT_IN_TAP_SCRIPT_SIG",
}

OUTPUT_SCALAR_FIELDS = {
    "redeem_script": "PSBT_OUT_REDEEM_SCRIPT",
    "witness_script": "PSBT_OUT_WITNESS_SCRIPT",
    "tap_internal_key": "PSBT_OUT_TAP_INTERNAL_KEY",
    "tap_tree": "PSBT_OUT_TAP_TREE",
}

OUTPUT_MAP_FIELDS = {
    "bip32_derivations": "PSBT_OUT_BIP32_DERIVATION",
    "tap_bip32_derivations": "PSBT_OUT_TAP_BIP32_DERIVATION",
    "unknown": "unknown",
}


def combine(*psbts: PSBT) -> PSBT:
    """Merges PSBTs describing the same unsigned transaction.

    Raises
    ------
    IncompatibleBase
        if the documents differ in version or unsigned transaction
    ConflictingField
        if a field that cannot be merged has different values, or if the
        merged fields break a document rule that each copy kept on its own
    """
    if not psbts:
        raise ValueError("At least one PSBT is required")

    result = PSBT.copy(psbts[0])
    for other in psbts[1:]:
        result = _combine_pair(result, other)
    logger.debug("Combined %d PSBTs", len(psbts))
    return result


def _check_base(a: PSBT, b: PSBT) -> None:
    if a.version != b.version:
        raise IncompatibleBase(f"PSBT versions differ: {a.version} and {b.version}")

    if not a.is_v2():
        if a.tx.to_bytes(include_witness=False) != b.tx.to_bytes(include_witness=False):
            raise IncompatibleBase("unsigned transactions differ")
        return

    if a.tx_version != b.tx_version:
        raise IncompatibleBase("transaction versions differ")
    if a.fallback_locktime != b.fallback_locktime:
        raise IncompatibleBase("fallback lock times differ")
    if len(a.inputs) != len(b.inputs) or len(a.outputs) != len(b.outputs):
        raise IncompatibleBase("input or output counts differ")
    for index in range(len(a.inputs)):
        if a.get_outpoint(index) != b.get_outpoint(index):
            raise IncompatibleBase(f"input {index} spends a different outpoint")
        if a.get_sequence(index) != b.get_sequence(index):
            raise IncompatibleBase(f"input {index} has a different sequence")
    for index in range(len(a.outputs)):
        if a.get_output(index) != b.get_output(index):
            raise IncompatibleBase(f"output {index} differs")


def _combine_pair(a: PSBT, b: PSBT) -> PSBT:
    _check_base(a, b)
    result = PSBT.copy(a)
    other = PSBT.copy(b)

    result.explicit_version = a.explicit_version or b.explicit_version
    result.tx_modifiable = _merge_modifiable(a.tx_modifiable, b.tx_modifiable)
    _merge_map(result.xpubs, other.xpubs, None, "PSBT_GLOBAL_XPUB")
    _merge_proprietary(result.proprietary, other.proprietary, None, "PSBT_GLOBAL_PROPRIETARY")
    _merge_map(result.unknown, other.unknown, None, "unknown")

    for index, (mine, theirs) in enumerate(zip(result.inputs, other.inputs)):
        _merge_input(index, mine, theirs)
    for index, (mine, theirs) in enumerate(zip(result.outputs, other.outputs)):
        _merge_output(index, mine, theirs)

    try:
        result.validate()
    except ValidationError as e:
        raise ConflictingField(e.index, e.field) from e
    return result


def _merge_modifiable(a: Optional[int], b: Optional[int]) -> Optional[int]:
    """Inputs/outputs stay modifiable only if both allow it; SIGHASH_SINGLE
    is set if either side has such a signature.

    An absent field allows no modification, it only stays absent when both
    sides lack it.
    """
    if a is None and b is None:
        return None
    a = a or 0
    b = b or 0
    both = TX_MODIFIABLE_INPUTS | TX_MODIFIABLE_OUTPUTS
    return (a & b & both) | ((a | b) & TX_MODIFIABLE_SIGHASH_SINGLE)


def _merge_scalar(target, source, name: str, index: Optional[int], field: str) -> None:
    mine = getattr(target, name)
    theirs = getattr(source, name)
    if theirs is None:
        return
    if mine is None:
        setattr(target, name, theirs)
    elif mine != theirs:
        raise ConflictingField(index, field)


def _merge_map(mine: dict, theirs: dict, index: Optional[int], field: str) -> None:
    for key, value in theirs.items():
        if key not in mine:
            mine[key] = value
        elif mine[key] != value:
            raise ConflictingField(index, field)


def _merge_signatures(mine: dict, theirs: dict, index: int, field: str) -> None:
    for key, signature in theirs.items():
        if key not in mine:
            mine[key] = signature
        elif mine[key] != signature:
            logger.warning(
                "Input %d has two different %s values for the same key, keeping the smaller",
                index,
                field,
            )
            mine[key] = min(mine[key], signature)


def _merge_proprietary(mine: dict, theirs: dict, index: Optional[int], field: str) -> None:
    if get_proprietary_merge() != PROPRIETARY_MERGE_LOWEST:
        _merge_map(mine, theirs, index, field)
        return
    for key, value in theirs.items():
        mine[key] = min(mine[key], value) if key in mine else value


def _final_fields(psbt_input: PSBTInput) -> tuple[bytes, bytes]:
    witness = psbt_input.final_script_witness
    return (
        psbt_input.final_script_sig or b"",
        encode_witness_stack(witness) if witness is not None else b"",
    )


def _merge_input(index: int, mine: PSBTInput, theirs: PSBTInput) -> None:
    for name, field in INPUT_SCALAR_FIELDS.items():
        _merge_scalar(mine, theirs, name, index, field)
    for name, field in INPUT_MAP_FIELDS.items():
        _merge_map(getattr(mine, name), getattr(theirs, name), index, field)
    for name, field in INPUT_SIGNATURE_FIELDS.items():
        _merge_signatures(getattr(mine, name), getattr(theirs, name), index, field)
    _merge_proprietary(mine.proprietary, theirs.proprietary, index, "PSBT_IN_PROPRIETARY")

    if theirs.tap_key_sig is not None:
        if mine.tap_key_sig is None:
            mine.tap_key_sig = theirs.tap_key_sig
        elif mine.tap_key_sig != theirs.tap_key_sig:
            logger.warning(
                "Input %d has two different taproot key signatures, keeping the smaller", index
            )
            mine.tap_key_sig = min(mine.tap_key_sig, theirs.tap_key_sig)

    if theirs.is_finalized():
        if not mine.is_finalized() or _final_fields(theirs) < _final_fields(mine):
            mine.final_script_sig = theirs.final_script_sig
            mine.final_script_witness = theirs.final_script_witness
    if mine.is_finalized():
        mine.clear_presig_fields()
    logger.debug("Merged input %d", index)


def _merge_output(index: int, mine: PSBTOutput, theirs: PSBTOutput) -> None:
    for name, field in OUTPUT_SCALAR_FIELDS.items():
        _merge_scalar(mine, theirs, name, index, field)
    for name, field in OUTPUT_MAP_FIELDS.items():
        _merge_map(getattr(mine, name), getattr(theirs, name), index, field)
    _merge_proprietary(mine.proprietary, theirs.proprietary, index, "PSBT_OUT_PROPRIETARY")
