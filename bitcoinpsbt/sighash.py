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
    ECDSA_SIGHASH_TYPES,
    SIGHASH_ALL,
    SIGHASH_DEFAULT,
    SIGHASH_SINGLE,
    TAPROOT_SIGHASH_TYPES,
)
from bitcoinpsbt.errors import (
    MissingPrevoutInfo,
    SighashError,
    UnsupportedScript,
    UnsupportedSighashType,
)
from bitcoinpsbt.hashfunctions import hash_hash160, hash_sha256
from bitcoinpsbt.psbt import PSBT
from bitcoinpsbt.script import Script, try_parse_script
from bitcoinpsbt.transactions import SharedHashes
from bitcoinpsbt.utils import tapleaf_tagged_hash

logger = logging.getLogger(__name__)


class SpendingPath:
    """Base of the spending paths an input can be signed for"""

    def __eq__(self, other: object) -> bool:
        return type(self) is type(other) and vars(self) == vars(other)

    def __repr__(self) -> str:
        fields = ", ".join(
            f"{k}={v.hex() if isinstance(v, bytes) else v}" for k, v in vars(self).items()
        )
        return f"{type(self).__name__}({fields})"


class LegacyPath(SpendingPath):
    """Pre-segwit spend, signed over the script code with the original digest"""

    def __init__(self, script_code: bytes) -> None:
        self.script_code = script_code


class SegwitV0Path(SpendingPath):
    """Native or P2SH nested segwit v0 spend (BIP-143)"""

    def __init__(self, script_code: bytes, amount: int) -> None:
        self.script_code = script_code
        self.amount = amount


class TaprootKeyPath(SpendingPath):
    """Taproot key path spend; the internal key and merkle root give the tweak"""

    def __init__(
        self,
        output_key: bytes,
        internal_key: Optional[bytes] = None,
        merkle_root: Optional[bytes] = None,
    ) -> None:
        self.output_key = output_key
        self.internal_key = internal_key
        self.merkle_root = merkle_root


class TaprootScriptPath(SpendingPath):
    """Taproot script path spend of a single leaf"""

    def __init__(
        self, leaf_script: bytes, leaf_version: int, leaf_hash: bytes, control_block: bytes
    ) -> None:
        self.leaf_script = leaf_script
        self.leaf_version = leaf_version
        self.leaf_hash = leaf_hash
        self.control_block = control_block


AnyPath = Union[LegacyPath, SegwitV0Path, TaprootKeyPath, TaprootScriptPath]


def is_taproot_path(path: SpendingPath) -> bool:
    return isinstance(path, (TaprootKeyPath, TaprootScriptPath))


def resolve_spending_path(
    psbt: PSBT, index: int, leaf_hash: Optional[bytes] = None
) -> AnyPath:
    """Determines how an input is spent from its spent output and scripts.

    For taproot outputs the key path is returned unless a leaf hash is
    given, in which case the known leaf script with that hash and the
    shortest control block is used.

    Raises
    ------
    IndexOutOfRange
        if the input does not exist
    MissingPrevoutInfo
        if the spent output or a script needed to resolve it is unknown
    UnsupportedScript
        for unknown witness versions, P2SH wrapped taproot and scripts that
        do not match their hash
    """
    spent = psbt.get_spent_output(index)
    if spent is None:
        raise MissingPrevoutInfo(index)

    psbt_input = psbt.inputs[index]
    script = spent.script_pubkey
    parsed = try_parse_script(script)

    nested = False
    if parsed is not None and parsed.is_p2sh():
        redeem_script = psbt_input.redeem_script
        if redeem_script is None:
            raise MissingPrevoutInfo(index, "P2SH input lacks its redeem script")
        if hash_hash160(redeem_script) != bytes.fromhex(parsed.get_script()[1]):
            raise UnsupportedScript(index, "redeem script does not match the P2SH hash")
        script = redeem_script
        parsed = try_parse_script(script)
        nested = True

    program = parsed.get_witness_program() if parsed is not None else None
    if program is None:
        if leaf_hash is not None:
            raise UnsupportedScript(index, "leaf hash given for a non taproot input")
        return LegacyPath(script)

    version, witness_program = program
    if version == 0:
        if len(witness_program) == 20:
            # the script code of P2WPKH is the P2PKH script of the key hash
            script_code = Script(
                ["OP_DUP", "OP_HASH160", witness_program.hex(), "OP_EQUALVERIFY", "OP_CHECKSIG"]
            ).to_bytes()
            return SegwitV0Path(script_code, spent.amount)
        if len(witness_program) == 32:
            witness_script = psbt_input.witness_script
            if witness_script is None:
                raise MissingPrevoutInfo(index, "P2WSH input lacks its witness script")
            if hash_sha256(witness_script) != witness_program:
                raise UnsupportedScript(
                    index, "witness script does not match the P2WSH hash"
                )
            return SegwitV0Path(witness_script, spent.amount)
        raise UnsupportedScript(index, "invalid witness v0 program length")

    if version == 1 and len(witness_program) == 32:
        if nested:
            raise UnsupportedScript(index, "P2SH wrapped taproot outputs are not spendable")
        if leaf_hash is None:
            return TaprootKeyPath(
                witness_program, psbt_input.tap_internal_key, psbt_input.tap_merkle_root
            )

        candidates = [
            (control_block, leaf_script, leaf_version)
            for control_block, (leaf_script, leaf_version) in psbt_input.tap_leaf_scripts.items()
            if tapleaf_tagged_hash(leaf_script, leaf_version) == leaf_hash
        ]
        if not candidates:
            raise MissingPrevoutInfo(index, f"no leaf script with hash {leaf_hash.hex()}")
        control_block, leaf_script, leaf_version = min(
            candidates, key=lambda c: (len(c[0]), c[0])
        )
        return TaprootScriptPath(leaf_script, leaf_version, leaf_hash, control_block)

    raise UnsupportedScript(index, f"unsupported witness version {version}")


def resolve_sighash_type(
    psbt: PSBT, index: int, path: SpendingPath, sighash_type: Optional[int] = None
) -> int:
    """Returns the sighash type to sign with, checking it against the input.

    Without an explicit type the one recorded in the input is used, or
    SIGHASH_DEFAULT for taproot and SIGHASH_ALL otherwise.
    """
    recorded = psbt.inputs[index].sighash_type
    taproot = is_taproot_path(path)

    if sighash_type is None:
        if recorded is not None:
            sighash_type = recorded
        else:
            sighash_type = SIGHASH_DEFAULT if taproot else SIGHASH_ALL
    elif recorded is not None and recorded != sighash_type:
        raise UnsupportedSighashType(
            index, sighash_type, f"input requires 0x{recorded:02x}"
        )

    allowed = TAPROOT_SIGHASH_TYPES if taproot else ECDSA_SIGHASH_TYPES
    if sighash_type not in allowed:
        raise UnsupportedSighashType(index, sighash_type, "not allowed for this input")

    if sighash_type & 0x03 == SIGHASH_SINGLE and index >= len(psbt.outputs):
        raise UnsupportedSighashType(
            index, sighash_type, "SIGHASH_SINGLE without a corresponding output"
        )
    return sighash_type


class SighashCache:
    """The hashes shared by every input's segwit v0 and taproot digests.

    Built once per document and read-only afterwards, so that signing all
    the inputs of a transaction hashes its prevouts, amounts, scripts,
    sequences and outputs only once. It can be shared by concurrent Signer
    calls on different inputs.

    Attributes
    ----------
    tx : Transaction
        the unsigned transaction of the document
    spent_outputs : list[TxOutput or None]
        the output spent by each input, None when unknown
    hashes : SharedHashes
        the shared hashes; amounts and scriptPubKeys are only present when
        every spent output is known
    """

    def __init__(self, psbt: PSBT) -> None:
        self.tx = psbt.get_unsigned_tx()
        self.spent_outputs = [psbt.get_spent_output(i) for i in range(len(psbt.inputs))]
        self.missing_index = next(
            (i for i, spent in enumerate(self.spent_outputs) if spent is None), None
        )

        amounts = script_pubkeys = None
        if self.missing_index is None:
            amounts = [spent.amount for spent in self.spent_outputs]
            script_pubkeys = [spent.script_pubkey for spent in self.spent_outputs]
        self.hashes = SharedHashes(self.tx, amounts, script_pubkeys)
        self._fingerprint = self._get_fingerprint(self.tx, self.spent_outputs)
        logger.debug("Built sighash cache for %d inputs", len(self.spent_outputs))

    @staticmethod
    def _get_fingerprint(tx, spent_outputs) -> bytes:
        spent = b"".join(
            spent.to_bytes() if spent is not None else b"\x00" for spent in spent_outputs
        )
        return tx.to_bytes(include_witness=False) + spent

    def check(self, psbt: PSBT) -> None:
        """Raises SighashError unless the cache matches the document"""
        spent_outputs = [psbt.get_spent_output(i) for i in range(len(psbt.inputs))]
        if self._get_fingerprint(psbt.get_unsigned_tx(), spent_outputs) != self._fingerprint:
            raise SighashError("sighash cache was built for a different or modified document")

    def get_amounts(self) -> list[int]:
        return [spent.amount for spent in self.spent_outputs]

    def get_script_pubkeys(self) -> list[bytes]:
        return [spent.script_pubkey for spent in self.spent_outputs]


def compute_sighash(
    psbt: PSBT,
    index: int,
    sighash_type: Optional[int] = None,
    leaf_hash: Optional[bytes] = None,
    cache: Optional[SighashCache] = None,
) -> bytes:
    """Computes the message that signatures of an input commit to.

    Parameters
    ----------
    psbt : PSBT
        the document
    index : int
        the input to sign
    sighash_type : int
        the sighash flag, by default the one the input records
    leaf_hash : bytes
        the leaf to sign for a taproot script path spend
    cache : SighashCache
        shared hashes of the document, built on the fly when not given

    Returns
    -------
    bytes
        the 32 byte digest to sign
    """
    psbt._check_input_index(index)
    path = resolve_spending_path(psbt, index, leaf_hash)
    sighash_type = resolve_sighash_type(psbt, index, path, sighash_type)

    if cache is None:
        cache = SighashCache(psbt)
    else:
        cache.check(psbt)

    if isinstance(path, LegacyPath):
        return cache.tx.get_transaction_digest(index, path.script_code, sighash_type)

    if isinstance(path, SegwitV0Path):
        return cache.tx.get_transaction_segwit_digest(
            index, path.script_code, path.amount, sighash_type, cache.hashes
        )

    if cache.missing_index is not None:
        raise MissingPrevoutInfo(
            cache.missing_index, "taproot signing requires the spent output of every input"
        )

    ext_flag = 1 if isinstance(path, TaprootScriptPath) else 0
    return cache.tx.get_transaction_taproot_digest(
        index,
        cache.get_script_pubkeys(),
        cache.get_amounts(),
        ext_flag,
        path.leaf_hash if ext_flag else None,
        sighash_type,
        cache.hashes,
    )
