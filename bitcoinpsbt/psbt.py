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

import base64
import copy
import logging
import struct
from io import BytesIO
from typing import Optional

from bitcoinpsbt.constants import (
    DEFAULT_TX_SEQUENCE,
    EMPTY_TX_SEQUENCE,
    LOCKTIME_THRESHOLD,
    PSBT_MAGIC_BYTES,
    PSBT_SEPARATOR,
    GlobalTypes,
    InputTypes,
    OutputTypes,
)
from bitcoinpsbt.errors import FormatError, IndexOutOfRange, ValidationError
from bitcoinpsbt.hashfunctions import PREIMAGE_HASHES
from bitcoinpsbt.psbt_utils import (
    KeyOriginInfo,
    decode_tap_bip32,
    decode_tap_tree,
    decode_uint32,
    decode_witness_stack,
    encode_tap_bip32,
    encode_tap_tree,
    encode_uint32,
    encode_witness_stack,
    is_valid_pubkey,
    read_map,
    write_key_value_pair,
)
from bitcoinpsbt.script import try_parse_script
from bitcoinpsbt.transactions import Transaction, TxInput, TxOutput
from bitcoinpsbt.utils import (
    ControlBlock,
    encode_varint,
    get_tap_tree_merkle_root,
    parse_compact_size,
    prepend_compact_size,
)

logger = logging.getLogger(__name__)


# preimage fields as (key type, name, hash length)
PREIMAGE_TYPES = (
    (InputTypes.RIPEMD160, "ripemd160", 20),
    (InputTypes.SHA256, "sha256", 32),
    (InputTypes.HASH160, "hash160", 20),
    (InputTypes.HASH256, "hash256", 32),
)
PREIMAGE_KEY_TYPES = frozenset(t for t, _, _ in PREIMAGE_TYPES)

# input fields that only exist in version 2 documents with their wire names
V2_INPUT_FIELDS = {
    "prev_txid": "PSBT_IN_PREVIOUS_TXID",
    "output_index": "PSBT_IN_OUTPUT_INDEX",
    "sequence": "PSBT_IN_SEQUENCE",
    "required_time_locktime": "PSBT_IN_REQUIRED_TIME_LOCKTIME",
    "required_height_locktime": "PSBT_IN_REQUIRED_HEIGHT_LOCKTIME",
}

V2_OUTPUT_FIELDS = {
    "amount": "PSBT_OUT_AMOUNT",
    "script": "PSBT_OUT_SCRIPT",
}

V2_GLOBAL_FIELDS = {
    "tx_version": "PSBT_GLOBAL_TX_VERSION",
    "fallback_locktime": "PSBT_GLOBAL_FALLBACK_LOCKTIME",
    "tx_modifiable": "PSBT_GLOBAL_TX_MODIFIABLE",
}

# presig input fields that a finalized input may not carry, with their empty value
PRESIG_INPUT_FIELDS = {
    "partial_sigs": dict,
    "sighash_type": lambda: None,
    "redeem_script": lambda: None,
    "witness_script": lambda: None,
    "bip32_derivations": dict,
    "ripemd160_preimages": dict,
    "sha256_preimages": dict,
    "hash160_preimages": dict,
    "hash256_preimages": dict,
    "tap_key_sig": lambda: None,
    "tap_script_sigs": dict,
    "tap_leaf_scripts": dict,
    "tap_bip32_derivations": dict,
    "tap_internal_key": lambda: None,
    "tap_merkle_root": lambda: None,
}


def _no_key_data(key_data: bytes, field: str) -> None:
    if key_data:
        raise FormatError(f"{field} key must not carry key data")


def _fixed_length(value: bytes, lengths: tuple, field: str) -> bytes:
    if len(value) not in lengths:
        raise FormatError(f"{field} has invalid length {len(value)}")
    return value


class PSBTInput:
    """The per-input map of a PSBT

    Attributes
    ----------
    non_witness_utxo : Transaction
        the full previous transaction
    witness_utxo : TxOutput
        the spent output (amount and scriptPubKey)
    partial_sigs : dict[bytes, bytes]
        public key -> DER signature with the sighash byte
    sighash_type : int
        the sighash type signers must use, kept verbatim
    redeem_script, witness_script : bytes
        the P2SH and P2WSH scripts of the spent output
    bip32_derivations : dict[bytes, KeyOriginInfo]
        public key -> key origin
    final_script_sig : bytes
        the finalized scriptSig
    final_script_witness : list[bytes]
        the finalized witness stack
    ripemd160_preimages, sha256_preimages, hash160_preimages, hash256_preimages : dict
        hash -> preimage
    prev_txid, output_index, sequence : str, int, int
        the spent outpoint and sequence (version 2 only)
    required_time_locktime, required_height_locktime : int
        lock time requirements of the input (version 2 only)
    tap_key_sig : bytes
        the taproot key path signature
    tap_script_sigs : dict[tuple[bytes, bytes], bytes]
        (x-only public key, leaf hash) -> signature
    tap_leaf_scripts : dict[bytes, tuple[bytes, int]]
        control block -> (script, leaf version)
    tap_bip32_derivations : dict[bytes, tuple[list[bytes], KeyOriginInfo]]
        x-only public key -> (leaf hashes, key origin)
    tap_internal_key, tap_merkle_root : bytes
        the taproot internal key and script tree root
    proprietary : dict[bytes, bytes]
        proprietary key data -> value
    unknown : dict[bytes, bytes]
        full unknown key -> value
    """

    def __init__(self) -> None:
        # BIP-174 defined fields
        self.non_witness_utxo: Optional[Transaction] = None
        self.witness_utxo: Optional[TxOutput] = None
        self.partial_sigs: dict[bytes, bytes] = {}
        self.sighash_type: Optional[int] = None
        self.redeem_script: Optional[bytes] = None
        self.witness_script: Optional[bytes] = None
        self.bip32_derivations: dict[bytes, KeyOriginInfo] = {}
        self.final_script_sig: Optional[bytes] = None
        self.final_script_witness: Optional[list[bytes]] = None
        self.ripemd160_preimages: dict[bytes, bytes] = {}
        self.sha256_preimages: dict[bytes, bytes] = {}
        self.hash160_preimages: dict[bytes, bytes] = {}
        self.hash256_preimages: dict[bytes, bytes] = {}

        # BIP-370 fields
        self.prev_txid: Optional[str] = None
        self.output_index: Optional[int] = None
        self.sequence: Optional[int] = None
        self.required_time_locktime: Optional[int] = None
        self.required_height_locktime: Optional[int] = None

        # BIP-371 fields
        self.tap_key_sig: Optional[bytes] = None
        self.tap_script_sigs: dict[tuple[bytes, bytes], bytes] = {}
        self.tap_leaf_scripts: dict[bytes, tuple[bytes, int]] = {}
        self.tap_bip32_derivations: dict[bytes, tuple[list[bytes], KeyOriginInfo]] = {}
        self.tap_internal_key: Optional[bytes] = None
        self.tap_merkle_root: Optional[bytes] = None

        self.proprietary: dict[bytes, bytes] = {}
        self.unknown: dict[bytes, bytes] = {}

    def is_finalized(self) -> bool:
        return self.final_script_sig is not None or self.final_script_witness is not None

    def has_presig_fields(self) -> bool:
        return any(getattr(self, name) not in (None, {}) for name in PRESIG_INPUT_FIELDS)

    def clear_presig_fields(self) -> None:
        """Removes the fields that are stale once the input is finalized"""
        for name, empty in PRESIG_INPUT_FIELDS.items():
            setattr(self, name, empty())

    def get_preimages(self, name: str) -> dict[bytes, bytes]:
        return getattr(self, f"{name}_preimages")


class PSBTOutput:
    """The per-output map of a PSBT

    Attributes
    ----------
    redeem_script, witness_script : bytes
        the P2SH and P2WSH scripts of the output
    bip32_derivations : dict[bytes, KeyOriginInfo]
        public key -> key origin
    amount : int
        the output value in satoshis (version 2 only)
    script : bytes
        the output scriptPubKey (version 2 only)
    tap_internal_key : bytes
        the taproot internal key
    tap_tree : list[tuple[int, int, bytes]]
        (depth, leaf version, script) leaves in depth-first order
    tap_bip32_derivations : dict[bytes, tuple[list[bytes], KeyOriginInfo]]
        x-only public key -> (leaf hashes, key origin)
    proprietary, unknown : dict[bytes, bytes]
        entries kept verbatim
    """

    def __init__(self) -> None:
        self.redeem_script: Optional[bytes] = None
        self.witness_script: Optional[bytes] = None
        self.bip32_derivations: dict[bytes, KeyOriginInfo] = {}
        self.amount: Optional[int] = None
        self.script: Optional[bytes] = None
        self.tap_internal_key: Optional[bytes] = None
        self.tap_tree: Optional[list[tuple[int, int, bytes]]] = None
        self.tap_bip32_derivations: dict[bytes, tuple[list[bytes], KeyOriginInfo]] = {}
        self.proprietary: dict[bytes, bytes] = {}
        self.unknown: dict[bytes, bytes] = {}


class PSBT:
    """Represents a Partially Signed Bitcoin Transaction (BIP-174/370/371)

    A version 0 document embeds the unsigned transaction while a version 2
    document carries the transaction fields in its global, input and output
    maps.

    Attributes
    ----------
    version : int
        the PSBT version, 0 or 2
    explicit_version : bool
        whether PSBT_GLOBAL_VERSION is serialized for a version 0 document
    tx : Transaction
        the unsigned transaction (version 0 only)
    tx_version : int
        the transaction version (version 2 only)
    fallback_locktime : int
        the lock time used when no input requires one (version 2 only)
    tx_modifiable : int
        the PSBT_GLOBAL_TX_MODIFIABLE bit flags (version 2 only)
    xpubs : dict[bytes, KeyOriginInfo]
        78 byte serialized extended public key -> key origin
    proprietary, unknown : dict[bytes, bytes]
        global entries kept verbatim
    inputs : list[PSBTInput]
        one record per transaction input
    outputs : list[PSBTOutput]
        one record per transaction output

    Methods
    -------
    from_bytes(data)
        decodes and validates a serialized PSBT (classmethod)
    from_base64(text)
        decodes a base64 PSBT (classmethod)
    to_bytes()
        serializes the PSBT deterministically
    to_base64()
        serializes the PSBT to base64
    validate()
        checks the structural invariants, raises ValidationError
    get_unsigned_tx()
        returns the unsigned transaction for either version
    get_spent_output(index)
        returns the output spent by an input, if known
    convert_to_v2() / convert_to_v0()
        returns a copy of the document in the other version
    unique_id()
        the version independent identifier of the document
    """

    def __init__(self, tx: Optional[Transaction] = None, version: int = 0) -> None:
        self.version = version
        self.explicit_version = version != 0
        self.tx = tx

        # version 2 global fields
        self.tx_version: Optional[int] = None
        self.fallback_locktime: Optional[int] = None
        self.tx_modifiable: Optional[int] = None

        self.xpubs: dict[bytes, KeyOriginInfo] = {}
        self.proprietary: dict[bytes, bytes] = {}
        self.unknown: dict[bytes, bytes] = {}

        if tx is not None:
            self.inputs = [PSBTInput() for _ in tx.inputs]
            self.outputs = [PSBTOutput() for _ in tx.outputs]
        else:
            self.inputs: list[PSBTInput] = []
            self.outputs: list[PSBTOutput] = []

    #
    # Decoding
    #
    @classmethod
    def from_base64(cls, psbt_str: str) -> "PSBT":
        try:
            data = base64.b64decode(psbt_str, validate=True)
        except ValueError as e:
            raise FormatError(f"Invalid base64 PSBT: {e}") from e
        return cls.from_bytes(data)

    @classmethod
    def from_bytes(cls, psbt_bytes: bytes) -> "PSBT":
        """Decodes a PSBT and validates it

        Raises
        ------
        FormatError
            if the bytes are malformed
        ValidationError
            if a structural or version rule is violated
        """
        stream = BytesIO(psbt_bytes)

        # Read and verify magic and separator
        magic = stream.read(len(PSBT_MAGIC_BYTES))
        if magic != PSBT_MAGIC_BYTES:
            raise FormatError(f"Invalid PSBT magic: {magic.hex()}")

        psbt = cls()
        input_count, output_count = psbt._parse_global_section(read_map(stream))

        for i in range(input_count):
            psbt.inputs.append(psbt._parse_input_section(read_map(stream), i))

        for i in range(output_count):
            psbt.outputs.append(psbt._parse_output_section(read_map(stream), i))

        if stream.read(1):
            raise FormatError("Trailing data after PSBT")

        psbt.validate()
        return psbt

    def _parse_global_section(self, pairs: list) -> tuple[int, int]:
        """Parses the global map, returns the declared input and output counts"""
        input_count = output_count = None

        for key_type, key_data, value in pairs:
            if key_type == GlobalTypes.UNSIGNED_TX:
                _no_key_data(key_data, "PSBT_GLOBAL_UNSIGNED_TX")
                self.tx = Transaction.from_bytes(value, allow_witness=False)
            elif key_type == GlobalTypes.XPUB:
                if len(key_data) != 78:
                    raise FormatError("PSBT_GLOBAL_XPUB key must be 78 bytes")
                self.xpubs[key_data] = KeyOriginInfo.from_bytes(value)
            elif key_type == GlobalTypes.TX_VERSION:
                _no_key_data(key_data, "PSBT_GLOBAL_TX_VERSION")
                _fixed_length(value, (4,), "PSBT_GLOBAL_TX_VERSION")
                self.tx_version = struct.unpack("<l", value)[0]
            elif key_type == GlobalTypes.FALLBACK_LOCKTIME:
                _no_key_data(key_data, "PSBT_GLOBAL_FALLBACK_LOCKTIME")
                self.fallback_locktime = decode_uint32(value, "PSBT_GLOBAL_FALLBACK_LOCKTIME")
            elif key_type in (GlobalTypes.INPUT_COUNT, GlobalTypes.OUTPUT_COUNT):
                if key_type == GlobalTypes.INPUT_COUNT:
                    field = "PSBT_GLOBAL_INPUT_COUNT"
                else:
                    field = "PSBT_GLOBAL_OUTPUT_COUNT"
                _no_key_data(key_data, field)
                count, size = parse_compact_size(value)
                if size != len(value):
                    raise FormatError(f"Trailing data after {field}")
                if key_type == GlobalTypes.INPUT_COUNT:
                    input_count = count
                else:
                    output_count = count
            elif key_type == GlobalTypes.TX_MODIFIABLE:
                _no_key_data(key_data, "PSBT_GLOBAL_TX_MODIFIABLE")
                self.tx_modifiable = _fixed_length(value, (1,), "PSBT_GLOBAL_TX_MODIFIABLE")[0]
            elif key_type == GlobalTypes.VERSION:
                _no_key_data(key_data, "PSBT_GLOBAL_VERSION")
                self.version = decode_uint32(value, "PSBT_GLOBAL_VERSION")
                self.explicit_version = True
            elif key_type == GlobalTypes.PROPRIETARY:
                self.proprietary[key_data] = value
            else:
                self.unknown[encode_varint(key_type) + key_data] = value

        # the version decides how the rest of the document is read
        if self.version not in (0, 2):
            raise ValidationError(
                None, "PSBT_GLOBAL_VERSION", f"unsupported version {self.version}"
            )

        if self.version == 0:
            if input_count is not None or output_count is not None:
                raise ValidationError(
                    None,
                    "PSBT_GLOBAL_INPUT_COUNT",
                    "input and output counts are not allowed in version 0",
                )
            if self.tx is None:
                raise ValidationError(
                    None, "PSBT_GLOBAL_UNSIGNED_TX", "required in version 0"
                )
            return len(self.tx.inputs), len(self.tx.outputs)

        if self.tx is not None:
            raise ValidationError(
                None, "PSBT_GLOBAL_UNSIGNED_TX", "not allowed in version 2"
            )
        if input_count is None:
            raise ValidationError(None, "PSBT_GLOBAL_INPUT_COUNT", "required in version 2")
        if output_count is None:
            raise ValidationError(None, "PSBT_GLOBAL_OUTPUT_COUNT", "required in version 2")
        return input_count, output_count

    def _parse_input_section(self, pairs: list, index: int) -> PSBTInput:
        """Parses an input map"""
        psbt_input = PSBTInput()

        for key_type, key_data, value in pairs:
            if key_type == InputTypes.NON_WITNESS_UTXO:
                _no_key_data(key_data, "PSBT_IN_NON_WITNESS_UTXO")
                psbt_input.non_witness_utxo = Transaction.from_bytes(value)
            elif key_type == InputTypes.WITNESS_UTXO:
                _no_key_data(key_data, "PSBT_IN_WITNESS_UTXO")
                psbt_input.witness_utxo = TxOutput.from_bytes(value)
            elif key_type == InputTypes.PARTIAL_SIG:
                if not is_valid_pubkey(key_data):
                    raise FormatError("PSBT_IN_PARTIAL_SIG key must be a public key")
                psbt_input.partial_sigs[key_data] = value
            elif key_type == InputTypes.SIGHASH_TYPE:
                _no_key_data(key_data, "PSBT_IN_SIGHASH_TYPE")
                psbt_input.sighash_type = decode_uint32(value, "PSBT_IN_SIGHASH_TYPE")
            elif key_type == InputTypes.REDEEM_SCRIPT:
                _no_key_data(key_data, "PSBT_IN_REDEEM_SCRIPT")
                psbt_input.redeem_script = value
            elif key_type == InputTypes.WITNESS_SCRIPT:
                _no_key_data(key_data, "PSBT_IN_WITNESS_SCRIPT")
                psbt_input.witness_script = value
            elif key_type == InputTypes.BIP32_DERIVATION:
                if not is_valid_pubkey(key_data):
                    raise FormatError("PSBT_IN_BIP32_DERIVATION key must be a public key")
                psbt_input.bip32_derivations[key_data] = KeyOriginInfo.from_bytes(value)
            elif key_type == InputTypes.FINAL_SCRIPTSIG:
                _no_key_data(key_data, "PSBT_IN_FINAL_SCRIPTSIG")
                psbt_input.final_script_sig = value
            elif key_type == InputTypes.FINAL_SCRIPTWITNESS:
                _no_key_data(key_data, "PSBT_IN_FINAL_SCRIPTWITNESS")
                psbt_input.final_script_witness = decode_witness_stack(value)
            elif key_type in PREIMAGE_KEY_TYPES:
                self._parse_preimage(psbt_input, key_type, key_data, value)
            elif key_type == InputTypes.PREVIOUS_TXID:
                _no_key_data(key_data, "PSBT_IN_PREVIOUS_TXID")
                _fixed_length(value, (32,), "PSBT_IN_PREVIOUS_TXID")
                psbt_input.prev_txid = value[::-1].hex()
            elif key_type == InputTypes.OUTPUT_INDEX:
                _no_key_data(key_data, "PSBT_IN_OUTPUT_INDEX")
                psbt_input.output_index = decode_uint32(value, "PSBT_IN_OUTPUT_INDEX")
            elif key_type == InputTypes.SEQUENCE:
                _no_key_data(key_data, "PSBT_IN_SEQUENCE")
                psbt_input.sequence = decode_uint32(value, "PSBT_IN_SEQUENCE")
            elif key_type == InputTypes.REQUIRED_TIME_LOCKTIME:
                _no_key_data(key_data, "PSBT_IN_REQUIRED_TIME_LOCKTIME")
                locktime = decode_uint32(value, "PSBT_IN_REQUIRED_TIME_LOCKTIME")
                if locktime < LOCKTIME_THRESHOLD:
                    raise FormatError("PSBT_IN_REQUIRED_TIME_LOCKTIME must be a timestamp")
                psbt_input.required_time_locktime = locktime
            elif key_type == InputTypes.REQUIRED_HEIGHT_LOCKTIME:
                _no_key_data(key_data, "PSBT_IN_REQUIRED_HEIGHT_LOCKTIME")
                locktime = decode_uint32(value, "PSBT_IN_REQUIRED_HEIGHT_LOCKTIME")
                if locktime >= LOCKTIME_THRESHOLD or locktime == 0:
                    raise FormatError("PSBT_IN_REQUIRED_HEIGHT_LOCKTIME must be a block height")
                psbt_input.required_height_locktime = locktime
            elif key_type == InputTypes.TAP_KEY_SIG:
                _no_key_data(key_data, "PSBT_IN_TAP_KEY_SIG")
                psbt_input.tap_key_sig = _fixed_length(value, (64, 65), "PSBT_IN_TAP_KEY_SIG")
            elif key_type == InputTypes.TAP_SCRIPT_SIG:
                _fixed_length(key_data, (64,), "PSBT_IN_TAP_SCRIPT_SIG key")
                _fixed_length(value, (64, 65), "PSBT_IN_TAP_SCRIPT_SIG")
                psbt_input.tap_script_sigs[(key_data[:32], key_data[32:])] = value
            elif key_type == InputTypes.TAP_LEAF_SCRIPT:
                control_block = ControlBlock.from_bytes(key_data)
                if not value:
                    raise FormatError("PSBT_IN_TAP_LEAF_SCRIPT is empty")
                if value[-1] != control_block.leaf_version:
                    raise FormatError(
                        "PSBT_IN_TAP_LEAF_SCRIPT leaf version does not match its control block"
                    )
                psbt_input.tap_leaf_scripts[key_data] = (value[:-1], value[-1])
            elif key_type == InputTypes.TAP_BIP32_DERIVATION:
                _fixed_length(key_data, (32,), "PSBT_IN_TAP_BIP32_DERIVATION key")
                psbt_input.tap_bip32_derivations[key_data] = decode_tap_bip32(value)
            elif key_type == InputTypes.TAP_INTERNAL_KEY:
                _no_key_data(key_data, "PSBT_IN_TAP_INTERNAL_KEY")
                psbt_input.tap_internal_key = _fixed_length(
                    value, (32,), "PSBT_IN_TAP_INTERNAL_KEY"
                )
            elif key_type == InputTypes.TAP_MERKLE_ROOT:
                _no_key_data(key_data, "PSBT_IN_TAP_MERKLE_ROOT")
                psbt_input.tap_merkle_root = _fixed_length(
                    value, (32,), "PSBT_IN_TAP_MERKLE_ROOT"
                )
            elif key_type == InputTypes.PROPRIETARY:
                psbt_input.proprietary[key_data] = value
            else:
                psbt_input.unknown[encode_varint(key_type) + key_data] = value

        logger.debug("Parsed input %d with %d fields", index, len(pairs))
        return psbt_input

    @staticmethod
    def _parse_preimage(
        psbt_input: PSBTInput, key_type: int, key_data: bytes, value: bytes
    ) -> None:
        for preimage_type, name, hash_length in PREIMAGE_TYPES:
            if preimage_type != key_type:
                continue
            field = f"PSBT_IN_{name.upper()}"
            _fixed_length(key_data, (hash_length,), f"{field} key")
            if PREIMAGE_HASHES[name](value) != key_data:
                raise FormatError(f"{field} preimage does not match its hash")
            psbt_input.get_preimages(name)[key_data] = value

    def _parse_output_section(self, pairs: list, index: int) -> PSBTOutput:
        """Parses an output map"""
        psbt_output = PSBTOutput()

        for key_type, key_data, value in pairs:
            if key_type == OutputTypes.REDEEM_SCRIPT:
                _no_key_data(key_data, "PSBT_OUT_REDEEM_SCRIPT")
                psbt_output.redeem_script = value
            elif key_type == OutputTypes.WITNESS_SCRIPT:
                _no_key_data(key_data, "PSBT_OUT_WITNESS_SCRIPT")
                psbt_output.witness_script = value
            elif key_type == OutputTypes.BIP32_DERIVATION:
                if not is_valid_pubkey(key_data):
                    raise FormatError("PSBT_OUT_BIP32_DERIVATION key must be a public key")
                psbt_output.bip32_derivations[key_data] = KeyOriginInfo.from_bytes(value)
            elif key_type == OutputTypes.AMOUNT:
                _no_key_data(key_data, "PSBT_OUT_AMOUNT")
                _fixed_length(value, (8,), "PSBT_OUT_AMOUNT")
                psbt_output.amount = struct.unpack("<q", value)[0]
            elif key_type == OutputTypes.SCRIPT:
                _no_key_data(key_data, "PSBT_OUT_SCRIPT")
                psbt_output.script = value
            elif key_type == OutputTypes.TAP_INTERNAL_KEY:
                _no_key_data(key_data, "PSBT_OUT_TAP_INTERNAL_KEY")
                psbt_output.tap_internal_key = _fixed_length(
                    value, (32,), "PSBT_OUT_TAP_INTERNAL_KEY"
                )
            elif key_type == OutputTypes.TAP_TREE:
                _no_key_data(key_data, "PSBT_OUT_TAP_TREE")
                leaves = decode_tap_tree(value)
                try:
                    get_tap_tree_merkle_root(leaves)
                except ValueError as e:
                    raise FormatError(f"PSBT_OUT_TAP_TREE: {e}") from e
                psbt_output.tap_tree = leaves
            elif key_type == OutputTypes.TAP_BIP32_DERIVATION:
                _fixed_length(key_data, (32,), "PSBT_OUT_TAP_BIP32_DERIVATION key")
                psbt_output.tap_bip32_derivations[key_data] = decode_tap_bip32(value)
            elif key_type == OutputTypes.PROPRIETARY:
                psbt_output.proprietary[key_data] = value
            else:
                psbt_output.unknown[encode_varint(key_type) + key_data] = value

        logger.debug("Parsed output %d with %d fields", index, len(pairs))
        return psbt_output

    #
    # Encoding
    #
    def to_base64(self) -> str:
        return base64.b64encode(self.to_bytes()).decode("ascii")

    def to_bytes(self) -> bytes:
        """Serializes the PSBT.

        Known fields are written in key type order and the entries of every
        map field are sorted by key, followed by the proprietary and the
        unknown entries, also sorted.
        """
        result = BytesIO()

        # Write magic and separator
        result.write(PSBT_MAGIC_BYTES)

        self._serialize_global_section(result)

        for psbt_input in self.inputs:
            self._serialize_input_section(result, psbt_input)

        for psbt_output in self.outputs:
            self._serialize_output_section(result, psbt_output)

        return result.getvalue()

    @staticmethod
    def _serialize_extra(result: BytesIO, proprietary_type: int, proprietary: dict, unknown: dict) -> None:
        for key_data in sorted(proprietary):
            result.write(write_key_value_pair(proprietary_type, key_data, proprietary[key_data]))
        for key in sorted(unknown):
            result.write(prepend_compact_size(key) + prepend_compact_size(unknown[key]))
        # Section separator
        result.write(PSBT_SEPARATOR)

    def _serialize_global_section(self, result: BytesIO) -> None:
        if self.tx is not None:
            result.write(
                write_key_value_pair(
                    GlobalTypes.UNSIGNED_TX, b"", self.tx.to_bytes(include_witness=False)
                )
            )

        for xpub in sorted(self.xpubs):
            result.write(write_key_value_pair(GlobalTypes.XPUB, xpub, self.xpubs[xpub].to_bytes()))

        if self.tx_version is not None:
            result.write(
                write_key_value_pair(
                    GlobalTypes.TX_VERSION, b"", struct.pack("<l", self.tx_version)
                )
            )
        if self.fallback_locktime is not None:
            result.write(
                write_key_value_pair(
                    GlobalTypes.FALLBACK_LOCKTIME, b"", encode_uint32(self.fallback_locktime)
                )
            )
        if self.version == 2:
            result.write(
                write_key_value_pair(
                    GlobalTypes.INPUT_COUNT, b"", encode_varint(len(self.inputs))
                )
            )
            result.write(
                write_key_value_pair(
                    GlobalTypes.OUTPUT_COUNT, b"", encode_varint(len(self.outputs))
                )
            )
        if self.tx_modifiable is not None:
            result.write(
                write_key_value_pair(GlobalTypes.TX_MODIFIABLE, b"", bytes([self.tx_modifiable]))
            )
        if self.version != 0 or self.explicit_version:
            result.write(
                write_key_value_pair(GlobalTypes.VERSION, b"", encode_uint32(self.version))
            )

        self._serialize_extra(result, GlobalTypes.PROPRIETARY, self.proprietary, self.unknown)

    def _serialize_input_section(self, result: BytesIO, psbt_input: PSBTInput) -> None:
        pairs = []

        if psbt_input.non_witness_utxo is not None:
            pairs.append(
                (InputTypes.NON_WITNESS_UTXO, b"", psbt_input.non_witness_utxo.to_bytes())
            )
        if psbt_input.witness_utxo is not None:
            pairs.append((InputTypes.WITNESS_UTXO, b"", psbt_input.witness_utxo.to_bytes()))
        for pubkey in sorted(psbt_input.partial_sigs):
            pairs.append((InputTypes.PARTIAL_SIG, pubkey, psbt_input.partial_sigs[pubkey]))
        if psbt_input.sighash_type is not None:
            pairs.append(
                (InputTypes.SIGHASH_TYPE, b"", encode_uint32(psbt_input.sighash_type))
            )
        if psbt_input.redeem_script is not None:
            pairs.append((InputTypes.REDEEM_SCRIPT, b"", psbt_input.redeem_script))
        if psbt_input.witness_script is not None:
            pairs.append((InputTypes.WITNESS_SCRIPT, b"", psbt_input.witness_script))
        for pubkey in sorted(psbt_input.bip32_derivations):
            pairs.append(
                (
                    InputTypes.BIP32_DERIVATION,
                    pubkey,
                    psbt_input.bip32_derivations[pubkey].to_bytes(),
                )
            )
        if psbt_input.final_script_sig is not None:
            pairs.append((InputTypes.FINAL_SCRIPTSIG, b"", psbt_input.final_script_sig))
        if psbt_input.final_script_witness is not None:
            pairs.append(
                (
                    InputTypes.FINAL_SCRIPTWITNESS,
                    b"",
                    encode_witness_stack(psbt_input.final_script_witness),
                )
            )
        for preimage_type, name, _ in PREIMAGE_TYPES:
            preimages = psbt_input.get_preimages(name)
            for hash_value in sorted(preimages):
                pairs.append((preimage_type, hash_value, preimages[hash_value]))

        if psbt_input.prev_txid is not None:
            pairs.append(
                (InputTypes.PREVIOUS_TXID, b"", bytes.fromhex(psbt_input.prev_txid)[::-1])
            )
        if psbt_input.output_index is not None:
            pairs.append(
                (InputTypes.OUTPUT_INDEX, b"", encode_uint32(psbt_input.output_index))
            )
        if psbt_input.sequence is not None:
            pairs.append((InputTypes.SEQUENCE, b"", encode_uint32(psbt_input.sequence)))
        if psbt_input.required_time_locktime is not None:
            pairs.append(
                (
                    InputTypes.REQUIRED_TIME_LOCKTIME,
                    b"",
                    encode_uint32(psbt_input.required_time_locktime),
                )
            )
        if psbt_input.required_height_locktime is not None:
            pairs.append(
                (
                    InputTypes.REQUIRED_HEIGHT_LOCKTIME,
                    b"",
                    encode_uint32(psbt_input.required_height_locktime),
                )
            )

        if psbt_input.tap_key_sig is not None:
            pairs.append((InputTypes.TAP_KEY_SIG, b"", psbt_input.tap_key_sig))
        for xonly, leaf_hash in sorted(psbt_input.tap_script_sigs):
            pairs.append(
                (
                    InputTypes.TAP_SCRIPT_SIG,
                    xonly + leaf_hash,
                    psbt_input.tap_script_sigs[(xonly, leaf_hash)],
                )
            )
        for control_block in sorted(psbt_input.tap_leaf_scripts):
            script, leaf_version = psbt_input.tap_leaf_scripts[control_block]
            pairs.append(
                (InputTypes.TAP_LEAF_SCRIPT, control_block, script + bytes([leaf_version]))
            )
        for xonly in sorted(psbt_input.tap_bip32_derivations):
            leaf_hashes, origin = psbt_input.tap_bip32_derivations[xonly]
            pairs.append(
                (InputTypes.TAP_BIP32_DERIVATION, xonly, encode_tap_bip32(leaf_hashes, origin))
            )
        if psbt_input.tap_internal_key is not None:
            pairs.append((InputTypes.TAP_INTERNAL_KEY, b"", psbt_input.tap_internal_key))
        if psbt_input.tap_merkle_root is not None:
            pairs.append((InputTypes.TAP_MERKLE_ROOT, b"", psbt_input.tap_merkle_root))

        for key_type, key_data, value in pairs:
            result.write(write_key_value_pair(key_type, key_data, value))
        self._serialize_extra(
            result, InputTypes.PROPRIETARY, psbt_input.proprietary, psbt_input.unknown
        )

    def _serialize_output_section(self, result: BytesIO, psbt_output: PSBTOutput) -> None:
        pairs = []

        if psbt_output.redeem_script is not None:
            pairs.append((OutputTypes.REDEEM_SCRIPT, b"", psbt_output.redeem_script))
        if psbt_output.witness_script is not None:
            pairs.append((OutputTypes.WITNESS_SCRIPT, b"", psbt_output.witness_script))
        for pubkey in sorted(psbt_output.bip32_derivations):
            pairs.append(
                (
                    OutputTypes.BIP32_DERIVATION,
                    pubkey,
                    psbt_output.bip32_derivations[pubkey].to_bytes(),
                )
            )
        if psbt_output.amount is not None:
            pairs.append((OutputTypes.AMOUNT, b"", struct.pack("<q", psbt_output.amount)))
        if psbt_output.script is not None:
            pairs.append((OutputTypes.SCRIPT, b"", psbt_output.script))
        if psbt_output.tap_internal_key is not None:
            pairs.append((OutputTypes.TAP_INTERNAL_KEY, b"", psbt_output.tap_internal_key))
        if psbt_output.tap_tree is not None:
            pairs.append((OutputTypes.TAP_TREE, b"", encode_tap_tree(psbt_output.tap_tree)))
        for xonly in sorted(psbt_output.tap_bip32_derivations):
            leaf_hashes, origin = psbt_output.tap_bip32_derivations[xonly]
            pairs.append(
                (OutputTypes.TAP_BIP32_DERIVATION, xonly, encode_tap_bip32(leaf_hashes, origin))
            )

        for key_type, key_data, value in pairs:
            result.write(write_key_value_pair(key_type, key_data, value))
        self._serialize_extra(
            result, OutputTypes.PROPRIETARY, psbt_output.proprietary, psbt_output.unknown
        )

    #
    # Validation
    #
    def validate(self) -> None:
        """Checks the structural invariants of the document

        Raises
        ------
        ValidationError
            naming the offending field and the input or output index, None
            for global fields
        """
        if self.version not in (0, 2):
            raise ValidationError(
                None, "PSBT_GLOBAL_VERSION", f"unsupported version {self.version}"
            )

        if self.version == 0:
            self._validate_v0_globals()
        else:
            self._validate_v2_globals()

        for index in range(len(self.inputs)):
            self._validate_input(index)
        for index in range(len(self.outputs)):
            self._validate_output(index)

        if self.version == 2:
            # raises if inputs require incompatible lock time types
            self.compute_lock_time()

    def _validate_v0_globals(self) -> None:
        if self.tx is None:
            raise ValidationError(None, "PSBT_GLOBAL_UNSIGNED_TX", "required in version 0")
        for name, field in V2_GLOBAL_FIELDS.items():
            if getattr(self, name) is not None:
                raise ValidationError(None, field, "not allowed in version 0")
        for txin in self.tx.inputs:
            if txin.script_sig:
                raise ValidationError(
                    None, "PSBT_GLOBAL_UNSIGNED_TX", "scriptSigs must be empty"
                )
        if self.tx.has_witness():
            raise ValidationError(None, "PSBT_GLOBAL_UNSIGNED_TX", "witnesses must be empty")
        if len(self.inputs) != len(self.tx.inputs):
            raise ValidationError(
                None,
                "PSBT_GLOBAL_UNSIGNED_TX",
                f"{len(self.tx.inputs)} inputs but {len(self.inputs)} input maps",
            )
        if len(self.outputs) != len(self.tx.outputs):
            raise ValidationError(
                None,
                "PSBT_GLOBAL_UNSIGNED_TX",
                f"{len(self.tx.outputs)} outputs but {len(self.outputs)} output maps",
            )

    def _validate_v2_globals(self) -> None:
        if self.tx is not None:
            raise ValidationError(None, "PSBT_GLOBAL_UNSIGNED_TX", "not allowed in version 2")
        if self.tx_version is None:
            raise ValidationError(None, "PSBT_GLOBAL_TX_VERSION", "required in version 2")
        if self.tx_modifiable is not None and not 0 <= self.tx_modifiable <= 0xFF:
            raise ValidationError(None, "PSBT_GLOBAL_TX_MODIFIABLE", "must be a single byte")

    def _validate_input(self, index: int) -> None:
        psbt_input = self.inputs[index]

        if self.version == 0:
            for name, field in V2_INPUT_FIELDS.items():
                if getattr(psbt_input, name) is not None:
                    raise ValidationError(index, field, "not allowed in version 0")
        else:
            if psbt_input.prev_txid is None:
                raise ValidationError(index, "PSBT_IN_PREVIOUS_TXID", "required in version 2")
            if psbt_input.output_index is None:
                raise ValidationError(index, "PSBT_IN_OUTPUT_INDEX", "required in version 2")
            time_lock = psbt_input.required_time_locktime
            if time_lock is not None and time_lock < LOCKTIME_THRESHOLD:
                raise ValidationError(
                    index, "PSBT_IN_REQUIRED_TIME_LOCKTIME", "must be a timestamp"
                )
            height_lock = psbt_input.required_height_locktime
            if height_lock is not None and not 0 < height_lock < LOCKTIME_THRESHOLD:
                raise ValidationError(
                    index, "PSBT_IN_REQUIRED_HEIGHT_LOCKTIME", "must be a block height"
                )

        if psbt_input.is_finalized() and psbt_input.has_presig_fields():
            raise ValidationError(
                index,
                "PSBT_IN_FINAL_SCRIPTSIG",
                "finalized input still carries signing fields",
            )

        txid, vout = self.get_outpoint(index)
        if psbt_input.non_witness_utxo is not None:
            utxo = psbt_input.non_witness_utxo
            if utxo.get_txid() != txid:
                raise ValidationError(
                    index, "PSBT_IN_NON_WITNESS_UTXO", "does not match the previous txid"
                )
            if vout >= len(utxo.outputs):
                raise ValidationError(
                    index, "PSBT_IN_NON_WITNESS_UTXO", f"has no output {vout}"
                )
            if (
                psbt_input.witness_utxo is not None
                and psbt_input.witness_utxo != utxo.outputs[vout]
            ):
                raise ValidationError(
                    index,
                    "PSBT_IN_WITNESS_UTXO",
                    "does not match the output of the previous transaction",
                )

        for pubkey in psbt_input.partial_sigs:
            if not is_valid_pubkey(pubkey):
                raise ValidationError(index, "PSBT_IN_PARTIAL_SIG", "invalid public key")
        for pubkey in psbt_input.bip32_derivations:
            if not is_valid_pubkey(pubkey):
                raise ValidationError(index, "PSBT_IN_BIP32_DERIVATION", "invalid public key")

        for _, name, _ in PREIMAGE_TYPES:
            for hash_value, preimage in psbt_input.get_preimages(name).items():
                if PREIMAGE_HASHES[name](preimage) != hash_value:
                    raise ValidationError(
                        index, f"PSBT_IN_{name.upper()}", "preimage does not match its hash"
                    )

        if psbt_input.tap_key_sig is not None and len(psbt_input.tap_key_sig) not in (64, 65):
            raise ValidationError(index, "PSBT_IN_TAP_KEY_SIG", "must be 64 or 65 bytes")
        for signature in psbt_input.tap_script_sigs.values():
            if len(signature) not in (64, 65):
                raise ValidationError(index, "PSBT_IN_TAP_SCRIPT_SIG", "must be 64 or 65 bytes")
        for control_block, (_, leaf_version) in psbt_input.tap_leaf_scripts.items():
            try:
                parsed = ControlBlock.from_bytes(control_block)
            except FormatError as e:
                raise ValidationError(index, "PSBT_IN_TAP_LEAF_SCRIPT", str(e)) from e
            if parsed.leaf_version != leaf_version:
                raise ValidationError(
                    index,
                    "PSBT_IN_TAP_LEAF_SCRIPT",
                    "leaf version does not match its control block",
                )
        if psbt_input.tap_internal_key is not None and len(psbt_input.tap_internal_key) != 32:
            raise ValidationError(index, "PSBT_IN_TAP_INTERNAL_KEY", "must be 32 bytes")
        if psbt_input.tap_merkle_root is not None and len(psbt_input.tap_merkle_root) != 32:
            raise ValidationError(index, "PSBT_IN_TAP_MERKLE_ROOT", "must be 32 bytes")

    def _validate_output(self, index: int) -> None:
        psbt_output = self.outputs[index]

        if self.version == 0:
            for name, field in V2_OUTPUT_FIELDS.items():
                if getattr(psbt_output, name) is not None:
                    raise ValidationError(index, field, "not allowed in version 0")
        else:
            for name, field in V2_OUTPUT_FIELDS.items():
                if getattr(psbt_output, name) is None:
                    raise ValidationError(index, field, "required in version 2")

        for pubkey in psbt_output.bip32_derivations:
            if not is_valid_pubkey(pubkey):
                raise ValidationError(index, "PSBT_OUT_BIP32_DERIVATION", "invalid public key")
        if psbt_output.tap_internal_key is not None and len(psbt_output.tap_internal_key) != 32:
            raise ValidationError(index, "PSBT_OUT_TAP_INTERNAL_KEY", "must be 32 bytes")
        if psbt_output.tap_tree is not None:
            try:
                get_tap_tree_merkle_root(psbt_output.tap_tree)
            except ValueError as e:
                raise ValidationError(index, "PSBT_OUT_TAP_TREE", str(e)) from e

    #
    # Accessors
    #
    def is_v2(self) -> bool:
        return self.version == 2

    def _check_input_index(self, index: int) -> None:
        if not 0 <= index < len(self.inputs):
            raise IndexOutOfRange(index, len(self.inputs))

    def _check_output_index(self, index: int) -> None:
        if not 0 <= index < len(self.outputs):
            raise IndexOutOfRange(index, len(self.outputs))

    def get_outpoint(self, index: int) -> tuple[str, int]:
        """Returns the (txid, output index) spent by an input"""
        self._check_input_index(index)
        if self.is_v2():
            psbt_input = self.inputs[index]
            return psbt_input.prev_txid, psbt_input.output_index
        txin = self.tx.inputs[index]
        return txin.txid, txin.txout_index

    def get_sequence(self, index: int) -> int:
        self._check_input_index(index)
        if self.is_v2():
            sequence = self.inputs[index].sequence
            return DEFAULT_TX_SEQUENCE if sequence is None else sequence
        return self.tx.inputs[index].sequence

    def get_output(self, index: int) -> TxOutput:
        """Returns the transaction output described by an output record"""
        self._check_output_index(index)
        if self.is_v2():
            psbt_output = self.outputs[index]
            return TxOutput(psbt_output.amount, psbt_output.script)
        return self.tx.outputs[index]

    def compute_lock_time(self) -> int:
        """Determines the lock time of the transaction (BIP-370)

        Without any input requirement the fallback lock time (or 0) is used.
        Otherwise the lock type that every constrained input supports is
        chosen, block heights being preferred, and the maximum required
        value of that type is returned.
        """
        if not self.is_v2():
            return self.tx.locktime

        has_requirement = False
        time_supported = height_supported = True
        max_time = max_height = 0
        for psbt_input in self.inputs:
            time_lock = psbt_input.required_time_locktime
            height_lock = psbt_input.required_height_locktime
            if time_lock is None and height_lock is None:
                continue
            has_requirement = True
            if time_lock is None:
                time_supported = False
            else:
                max_time = max(max_time, time_lock)
            if height_lock is None:
                height_supported = False
            else:
                max_height = max(max_height, height_lock)

        if not has_requirement:
            return self.fallback_locktime if self.fallback_locktime is not None else 0
        if height_supported:
            return max_height
        if time_supported:
            return max_time
        raise ValidationError(
            None,
            "PSBT_IN_REQUIRED_TIME_LOCKTIME",
            "inputs require incompatible lock time types",
        )

    def get_unsigned_tx(self) -> Transaction:
        """Returns a new unsigned transaction built from the document"""
        if not self.is_v2():
            return Transaction.copy(self.tx)

        inputs = [
            TxInput(*self.get_outpoint(i), sequence=self.get_sequence(i))
            for i in range(len(self.inputs))
        ]
        outputs = [self.get_output(i) for i in range(len(self.outputs))]
        return Transaction(inputs, outputs, self.compute_lock_time(), self.tx_version)

    def get_spent_output(self, index: int) -> Optional[TxOutput]:
        """Returns the output spent by an input or None if it is unknown"""
        self._check_input_index(index)
        psbt_input = self.inputs[index]
        if psbt_input.witness_utxo is not None:
            return psbt_input.witness_utxo
        if psbt_input.non_witness_utxo is not None:
            _, vout = self.get_outpoint(index)
            if vout < len(psbt_input.non_witness_utxo.outputs):
                return psbt_input.non_witness_utxo.outputs[vout]
        return None

    def get_effective_script(self, index: int) -> Optional[bytes]:
        """Returns the script that an input's signatures must satisfy.

        The spent scriptPubKey is resolved through the redeem script for
        P2SH and through the witness script for P2WSH, as far as the
        document carries them.
        """
        spent = self.get_spent_output(index)
        if spent is None:
            return None

        psbt_input = self.inputs[index]
        script = spent.script_pubkey
        parsed = try_parse_script(script)
        if parsed is not None and parsed.is_p2sh() and psbt_input.redeem_script is not None:
            script = psbt_input.redeem_script
            parsed = try_parse_script(script)
        if parsed is not None and parsed.is_p2wsh() and psbt_input.witness_script is not None:
            script = psbt_input.witness_script
        return script

    def get_derivations(self, index: int, pubkey: bytes) -> list[KeyOriginInfo]:
        """Returns the key origins recorded for a public key of an input.

        pubkey may be a SEC encoded or an x-only key; the latter also
        matches taproot derivations.
        """
        self._check_input_index(index)
        psbt_input = self.inputs[index]
        origins = []
        if pubkey in psbt_input.bip32_derivations:
            origins.append(psbt_input.bip32_derivations[pubkey])

        xonly = pubkey if len(pubkey) == 32 else pubkey[1:33] if len(pubkey) == 33 else None
        if xonly in psbt_input.tap_bip32_derivations:
            origin = psbt_input.tap_bip32_derivations[xonly][1]
            if origin not in origins:
                origins.append(origin)
        return origins

    def is_input_finalized(self, index: int) -> bool:
        self._check_input_index(index)
        return self.inputs[index].is_finalized()

    def is_finalized(self) -> bool:
        return all(psbt_input.is_finalized() for psbt_input in self.inputs)

    def unique_id(self) -> str:
        """The txid of the unsigned transaction with all sequences zeroed.

        Unlike the txid it does not change when sequences are updated and it
        is the same for the version 0 and version 2 forms of a document.
        """
        tx = self.get_unsigned_tx()
        for txin in tx.inputs:
            txin.sequence = EMPTY_TX_SEQUENCE
        return tx.get_txid()

    #
    # Conversions
    #
    def convert_to_v2(self) -> "PSBT":
        """Returns a version 2 copy of the document"""
        converted = PSBT.copy(self)
        if self.is_v2():
            return converted

        tx = converted.tx
        converted.tx = None
        converted.version = 2
        converted.explicit_version = True
        converted.tx_version = tx.version
        converted.fallback_locktime = tx.locktime

        for txin, psbt_input in zip(tx.inputs, converted.inputs):
            psbt_input.prev_txid = txin.txid
            psbt_input.output_index = txin.txout_index
            if txin.sequence != DEFAULT_TX_SEQUENCE:
                psbt_input.sequence = txin.sequence
        for txout, psbt_output in zip(tx.outputs, converted.outputs):
            psbt_output.amount = txout.amount
            psbt_output.script = txout.script_pubkey
        return converted

    def convert_to_v0(self) -> "PSBT":
        """Returns a version 0 copy of the document.

        The lock time requirements of the inputs are folded into the lock
        time of the embedded transaction.
        """
        converted = PSBT.copy(self)
        if not self.is_v2():
            return converted

        converted.tx = self.get_unsigned_tx()
        converted.version = 0
        converted.explicit_version = False
        for name in V2_GLOBAL_FIELDS:
            setattr(converted, name, None)
        for psbt_input in converted.inputs:
            for name in V2_INPUT_FIELDS:
                setattr(psbt_input, name, None)
        for psbt_output in converted.outputs:
            for name in V2_OUTPUT_FIELDS:
                setattr(psbt_output, name, None)
        return converted

    @classmethod
    def copy(cls, psbt: "PSBT") -> "PSBT":
        """Deep copy of PSBT"""
        return copy.deepcopy(psbt)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PSBT):
            return False
        return self.to_bytes() == other.to_bytes()

    def __repr__(self) -> str:
        return (
            f"PSBT(version={self.version}, inputs={len(self.inputs)}, "
            f"outputs={len(self.outputs)})"
        )


def encode(psbt: PSBT) -> bytes:
    """Serializes a PSBT"""
    return psbt.to_bytes()


def decode(data: bytes) -> PSBT:
    """Decodes and validates a serialized PSBT"""
    return PSBT.from_bytes(data)
