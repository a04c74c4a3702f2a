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

import struct
from io import BytesIO
from typing import Optional, Union

from bitcoinpsbt.constants import (
    DEFAULT_TX_LOCKTIME,
    DEFAULT_TX_SEQUENCE,
    DEFAULT_TX_VERSION,
    EMPTY_TX_SEQUENCE,
    NEGATIVE_SATOSHI,
    SIGHASH_ALL,
    SIGHASH_ANYONECANPAY,
    SIGHASH_DEFAULT,
    SIGHASH_NONE,
    SIGHASH_SINGLE,
)
from bitcoinpsbt.errors import FormatError
from bitcoinpsbt.hashfunctions import hash_double_sha256, hash_sha256
from bitcoinpsbt.script import Script
from bitcoinpsbt.utils import (
    b_to_h,
    encode_varint,
    h_to_b,
    prepend_compact_size,
    read_bytes,
    read_compact_size,
    read_var_bytes,
    tagged_hash,
)


def _script_bytes(script: Union[bytes, Script]) -> bytes:
    if isinstance(script, Script):
        return script.to_bytes()
    return bytes(script)


class TxInput:
    """Represents a transaction input.

    A transaction input requires a transaction id of a UTXO and the index of
    that UTXO.

    Attributes
    ----------
    txid : str
        the transaction id as a hex string (little-endian as displayed by
        tools)
    txout_index : int
        the index of the UTXO that we want to spend
    script_sig : bytes
        the script that satisfies the locking conditions (aka unlocking script)
    sequence : int
        the input sequence (for timelocks, RBF, etc.)

    Methods
    -------
    to_bytes()
        serializes TxInput to bytes
    get_outpoint()
        serializes the (txid, index) pair the input spends
    copy()
        creates a copy of the object (classmethod)
    from_stream()
        instantiates object from a stream of serialized data (classmethod)
    """

    def __init__(
        self,
        txid: str,
        txout_index: int,
        script_sig: Union[bytes, Script] = b"",
        sequence: int = DEFAULT_TX_SEQUENCE,
    ) -> None:
        """See TxInput description"""

        # expected in the format used for displaying Bitcoin hashes
        self.txid = txid
        self.txout_index = txout_index
        self.script_sig = _script_bytes(script_sig)
        self.sequence = sequence

    def get_outpoint(self) -> bytes:
        # Internally Bitcoin uses little-endian byte order while txids are
        # displayed reversed, thus we reverse the displayed hex
        return h_to_b(self.txid)[::-1] + struct.pack("<L", self.txout_index)

    def to_bytes(self) -> bytes:
        """Serializes to bytes"""
        return (
            self.get_outpoint()
            + prepend_compact_size(self.script_sig)
            + struct.pack("<L", self.sequence)
        )

    @classmethod
    def from_stream(cls, stream: BytesIO) -> "TxInput":
        """Parses an input, raises FormatError if data is truncated"""
        txid = b_to_h(read_bytes(stream, 32)[::-1])
        txout_index = struct.unpack("<L", read_bytes(stream, 4))[0]
        script_sig = read_var_bytes(stream)
        sequence = struct.unpack("<L", read_bytes(stream, 4))[0]
        return cls(txid, txout_index, script_sig, sequence)

    @classmethod
    def copy(cls, txin: "TxInput") -> "TxInput":
        """Deep copy of TxInput"""
        return cls(txin.txid, txin.txout_index, txin.script_sig, txin.sequence)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TxInput):
            return False
        return self.to_bytes() == other.to_bytes()

    def __str__(self) -> str:
        return str(
            {
                "txid": self.txid,
                "txout_index": self.txout_index,
                "script_sig": self.script_sig.hex(),
                "sequence": self.sequence,
            }
        )

    def __repr__(self) -> str:
        return self.__str__()


class TxWitnessInput:
    """A list of the witness items required to satisfy the locking conditions
       of a segwit input (aka witness stack).

    Attributes
    ----------
    stack : list[bytes]
        the witness items

    Methods
    -------
    to_bytes()
        returns a serialized byte version of the witness items list
    """

    def __init__(self, stack: Optional[list[bytes]] = None) -> None:
        """See description"""
        self.stack = list(stack) if stack is not None else []

    def to_bytes(self) -> bytes:
        """Converts to bytes, the item count followed by every item"""
        stack_bytes = encode_varint(len(self.stack))
        for item in self.stack:
            stack_bytes += prepend_compact_size(item)
        return stack_bytes

    @classmethod
    def from_stream(cls, stream: BytesIO) -> "TxWitnessInput":
        count = read_compact_size(stream)
        return cls([read_var_bytes(stream) for _ in range(count)])

    @classmethod
    def copy(cls, txwin: "TxWitnessInput") -> "TxWitnessInput":
        """Deep copy of TxWitnessInput"""
        return cls(txwin.stack)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TxWitnessInput):
            return False
        return self.stack == other.stack

    def __str__(self) -> str:
        return str({"witness_items": [item.hex() for item in self.stack]})

    def __repr__(self) -> str:
        return self.__str__()


class TxOutput:
    """Represents a transaction output

    Attributes
    ----------
    amount : int
        the value we want to send to this output in satoshis
    script_pubkey : bytes
        the script that will lock this amount

    Methods
    -------
    to_bytes()
        serializes TxOutput to bytes
    copy()
        creates a copy of the object (classmethod)
    """

    def __init__(self, amount: int, script_pubkey: Union[bytes, Script]) -> None:
        """See TxOutput description"""

        if not isinstance(amount, int):
            raise TypeError("Amount needs to be in satoshis as an integer")

        self.amount = amount
        self.script_pubkey = _script_bytes(script_pubkey)

    def to_bytes(self) -> bytes:
        """Serializes to bytes"""

        # internally all little-endian except hashes
        # note struct uses little-endian by default
        return struct.pack("<q", self.amount) + prepend_compact_size(self.script_pubkey)

    @classmethod
    def from_stream(cls, stream: BytesIO) -> "TxOutput":
        amount = struct.unpack("<q", read_bytes(stream, 8))[0]
        return cls(amount, read_var_bytes(stream))

    @classmethod
    def from_bytes(cls, data: bytes) -> "TxOutput":
        """Parses a serialized output, all of data must be consumed"""
        stream = BytesIO(data)
        txout = cls.from_stream(stream)
        if stream.read(1):
            raise FormatError("Trailing data after transaction output")
        return txout

    @classmethod
    def copy(cls, txout: "TxOutput") -> "TxOutput":
        """Deep copy of TxOutput"""
        return cls(txout.amount, txout.script_pubkey)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TxOutput):
            return False
        return (
            self.amount == other.amount and self.script_pubkey == other.script_pubkey
        )

    def __str__(self) -> str:
        return str(
            {"amount": self.amount, "script_pubkey": self.script_pubkey.hex()}
        )

    def __repr__(self) -> str:
        return self.__str__()


class SharedHashes:
    """Hashes over all inputs and outputs of a transaction that every
    segwit v0 and taproot digest of that transaction reuses.

    All are single SHA256; BIP-143 digests hash them once more.

    Attributes
    ----------
    prevouts : bytes
        SHA256 of all the outpoints
    sequences : bytes
        SHA256 of all the input sequences
    outputs : bytes
        SHA256 of all the serialized outputs
    amounts : bytes or None
        SHA256 of all the spent amounts, None if they were not provided
    script_pubkeys : bytes or None
        SHA256 of all the spent scriptPubKeys, None if they were not provided
    """

    def __init__(
        self,
        tx: "Transaction",
        amounts: Optional[list[int]] = None,
        script_pubkeys: Optional[list[bytes]] = None,
    ) -> None:
        self.prevouts = hash_sha256(b"".join(txin.get_outpoint() for txin in tx.inputs))
        self.sequences = hash_sha256(
            b"".join(struct.pack("<L", txin.sequence) for txin in tx.inputs)
        )
        self.outputs = hash_sha256(b"".join(txout.to_bytes() for txout in tx.outputs))

        self.amounts = None
        if amounts is not None:
            self.amounts = hash_sha256(b"".join(struct.pack("<q", a) for a in amounts))

        self.script_pubkeys = None
        if script_pubkeys is not None:
            self.script_pubkeys = hash_sha256(
                b"".join(prepend_compact_size(s) for s in script_pubkeys)
            )


class Transaction:
    """Represents a Bitcoin transaction

    Attributes
    ----------
    inputs : list (TxInput)
        A list of all the transaction inputs
    outputs : list (TxOutput)
        A list of all the transaction outputs
    locktime : int
        The transaction's locktime parameter
    version : int
        The transaction version
    witnesses : list (TxWitnessInput)
        The witness structure that corresponds to the inputs

    Methods
    -------
    to_bytes(include_witness)
        the network serialization, with or without the segwit fields
    to_hex()
        the network serialization as hex
    from_bytes(data, allow_witness) / from_raw(rawtxhex)
        parse a serialized transaction (classmethods)
    get_txid() / get_wtxid()
        the transaction ids, displayed byte-reversed
    copy()
        a deep copy (classmethod)
    get_transaction_digest(txin_index, script, sighash)
        legacy signature hash of an input
    get_transaction_segwit_digest(txin_index, script, amount, sighash, hashes)
        BIP-143 signature hash of a segwit v0 input
    get_transaction_taproot_digest(txin_index, script_pubkeys, amounts, ext_flag,
            leaf_hash, sighash, hashes)
        BIP-341 signature hash of a taproot input
    """

    def __init__(
        self,
        inputs: Optional[list[TxInput]] = None,
        outputs: Optional[list[TxOutput]] = None,
        locktime: int = DEFAULT_TX_LOCKTIME,
        version: int = DEFAULT_TX_VERSION,
        witnesses: Optional[list[TxWitnessInput]] = None,
    ) -> None:
        """See Transaction description"""

        # make sure default argument for inputs, outputs and witnesses is an empty list
        self.inputs = inputs if inputs is not None else []
        self.outputs = outputs if outputs is not None else []
        self.witnesses = witnesses if witnesses is not None else []
        self.locktime = locktime
        self.version = version

    def has_witness(self) -> bool:
        """True if any input carries witness items"""
        return any(witness.stack for witness in self.witnesses)

    def to_bytes(self, include_witness: bool = True) -> bytes:
        """Serializes transaction to bytes following the Bitcoin protocol serialization

        Parameters
        ----------
        include_witness : bool
            Whether to include witness data in serialization
        """
        data = struct.pack("<l", self.version)

        # segwit format includes marker and flag
        segwit = include_witness and self.has_witness()
        if segwit:
            data += b"\x00\x01"

        data += encode_varint(len(self.inputs))
        for txin in self.inputs:
            data += txin.to_bytes()

        data += encode_varint(len(self.outputs))
        for txout in self.outputs:
            data += txout.to_bytes()

        if segwit:
            for i in range(len(self.inputs)):
                # inputs without explicit witness get an empty one
                if i < len(self.witnesses):
                    data += self.witnesses[i].to_bytes()
                else:
                    data += b"\x00"

        data += struct.pack("<L", self.locktime)
        return data

    def to_hex(self) -> str:
        """Serializes transaction to hex string"""
        return b_to_h(self.to_bytes())

    def get_txid(self) -> str:
        """Calculates the transaction id (txid) and returns it"""
        # the txid never commits to witness data
        return b_to_h(hash_double_sha256(self.to_bytes(include_witness=False))[::-1])

    def get_wtxid(self) -> str:
        """Calculates the tx hash (wtxid) and returns it"""
        return b_to_h(hash_double_sha256(self.to_bytes())[::-1])

    @classmethod
    def from_bytes(cls, data: bytes, allow_witness: bool = True) -> "Transaction":
        """Instantiates a Transaction from serialized data

        Parameters
        ----------
        data : bytes
            the serialized transaction; all of it must be consumed
        allow_witness : bool
            whether the segwit marker is recognized; unsigned transactions in
            PSBTs are always serialized without it

        Raises
        ------
        FormatError
            if the data is truncated or malformed
        """
        stream = BytesIO(data)
        version = struct.unpack("<l", read_bytes(stream, 4))[0]

        segwit = False
        if allow_witness:
            position = stream.tell()
            marker_flag = stream.read(2)
            if len(marker_flag) == 2 and marker_flag[0] == 0 and marker_flag[1] != 0:
                if marker_flag[1] != 1:
                    raise FormatError("Unknown transaction optional data flag")
                segwit = True
            else:
                stream.seek(position)

        inputs = [TxInput.from_stream(stream) for _ in range(read_compact_size(stream))]
        outputs = [
            TxOutput.from_stream(stream) for _ in range(read_compact_size(stream))
        ]

        witnesses = []
        if segwit:
            witnesses = [TxWitnessInput.from_stream(stream) for _ in inputs]
            if not any(witness.stack for witness in witnesses):
                raise FormatError("Superfluous witness record")

        locktime = struct.unpack("<L", read_bytes(stream, 4))[0]
        if stream.read(1):
            raise FormatError("Trailing data after transaction")

        return cls(inputs, outputs, locktime, version, witnesses)

    @classmethod
    def from_raw(cls, rawtxhex: str) -> "Transaction":
        """Instantiates a Transaction from raw hexadecimal data"""
        return cls.from_bytes(h_to_b(rawtxhex))

    @classmethod
    def copy(cls, tx: "Transaction") -> "Transaction":
        """Deep copy of Transaction"""
        ins = [TxInput.copy(txin) for txin in tx.inputs]
        outs = [TxOutput.copy(txout) for txout in tx.outputs]
        wits = [TxWitnessInput.copy(witness) for witness in tx.witnesses]
        return cls(ins, outs, tx.locktime, tx.version, wits)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Transaction):
            return False
        return self.to_bytes() == other.to_bytes()

    def __str__(self) -> str:
        return str(
            {
                "inputs": self.inputs,
                "outputs": self.outputs,
                "witnesses": self.witnesses,
                "locktime": self.locktime,
                "version": self.version,
            }
        )

    def __repr__(self) -> str:
        return self.__str__()

    def get_transaction_digest(
        self,
        txin_index: int,
        script: Union[bytes, Script],
        sighash: int = SIGHASH_ALL,
    ) -> bytes:
        """Returns the pre-segwit digest that an ECDSA signature of an input
        commits to.

        The spent input carries the script code in place of its scriptSig and
        every other scriptSig is emptied. NONE drops the outputs and SINGLE
        keeps the outputs up to txin_index, blanking all but the last; both
        zero the sequence of the other inputs. ANYONECANPAY keeps only the
        spent input.

        Attributes
        ----------
        txin_index : int
            the input being signed
        script : bytes or Script
            the script code, i.e. the scriptPubKey or redeem script of the
            spent output
        sighash : int
            the sighash type, appended to the serialization as 4 bytes

        Raises
        ------
        ValueError
            for SIGHASH_SINGLE without an output at txin_index
        """
        base_type = sighash & 0x1F
        anyone_can_pay = bool(sighash & SIGHASH_ANYONECANPAY)
        script_code = _script_bytes(script)

        if base_type == SIGHASH_SINGLE and txin_index >= len(self.outputs):
            raise ValueError(f"No output {txin_index} to sign with SIGHASH_SINGLE")

        if anyone_can_pay:
            signed_inputs = [txin_index]
        else:
            signed_inputs = list(range(len(self.inputs)))

        inputs = []
        for i in signed_inputs:
            txin = self.inputs[i]
            sequence = txin.sequence
            if i != txin_index and base_type in (SIGHASH_NONE, SIGHASH_SINGLE):
                sequence = EMPTY_TX_SEQUENCE
            script_sig = script_code if i == txin_index else b""
            inputs.append(TxInput(txin.txid, txin.txout_index, script_sig, sequence))

        if base_type == SIGHASH_NONE:
            outputs = []
        elif base_type == SIGHASH_SINGLE:
            blank = TxOutput(NEGATIVE_SATOSHI, b"")
            outputs = [blank] * txin_index + [self.outputs[txin_index]]
        else:
            outputs = self.outputs

        stripped = Transaction(inputs, outputs, self.locktime, self.version)
        preimage = stripped.to_bytes(include_witness=False)
        preimage += struct.pack("<L", sighash)
        return hash_double_sha256(preimage)

    def get_transaction_segwit_preimage(
        self,
        txin_index: int,
        script: Union[bytes, Script],
        amount: int,
        sighash: int = SIGHASH_ALL,
        hashes: Optional[SharedHashes] = None,
    ) -> bytes:
        """Returns the segwit v0 serialization that is hashed for signing.
        https://github.com/bitcoin/bips/blob/master/bip-0143.mediawiki

        Attributes
        ----------
        txin_index : int
            the input being signed
        script : bytes or Script
            the BIP-143 script code of the spent output
        amount : int
            the value of the spent output in satoshis, committed to by v0
            signatures
        sighash : int
            the sighash type
        hashes : SharedHashes
            Precomputed hashes of the transaction, computed if not given
        """
        if hashes is None:
            hashes = SharedHashes(self)

        zero = bytes(32)
        hash_prevouts = hash_sequence = hash_outputs = zero

        basic_sig_hash_type = sighash & 0x1F
        anyone_can_pay = sighash & SIGHASH_ANYONECANPAY
        sign_all = basic_sig_hash_type not in (SIGHASH_SINGLE, SIGHASH_NONE)

        if not anyone_can_pay:
            hash_prevouts = hash_sha256(hashes.prevouts)

        if not anyone_can_pay and sign_all:
            hash_sequence = hash_sha256(hashes.sequences)

        if sign_all:
            hash_outputs = hash_sha256(hashes.outputs)
        elif basic_sig_hash_type == SIGHASH_SINGLE and txin_index < len(self.outputs):
            hash_outputs = hash_double_sha256(self.outputs[txin_index].to_bytes())

        txin = self.inputs[txin_index]

        return b"".join(
            [
                struct.pack("<l", self.version),
                hash_prevouts,
                hash_sequence,
                txin.get_outpoint(),
                prepend_compact_size(_script_bytes(script)),
                struct.pack("<q", amount),
                struct.pack("<L", txin.sequence),
                hash_outputs,
                struct.pack("<L", self.locktime),
                struct.pack("<L", sighash),
            ]
        )

    def get_transaction_segwit_digest(
        self,
        txin_index: int,
        script: Union[bytes, Script],
        amount: int,
        sighash: int = SIGHASH_ALL,
        hashes: Optional[SharedHashes] = None,
    ) -> bytes:
        """Returns the segwit v0 transaction's digest for signing."""
        return hash_double_sha256(
            self.get_transaction_segwit_preimage(
                txin_index, script, amount, sighash, hashes
            )
        )

    def get_transaction_taproot_preimage(
        self,
        txin_index: int,
        script_pubkeys: list[bytes],
        amounts: list[int],
        ext_flag: int = 0,
        leaf_hash: Optional[bytes] = None,
        sighash: int = SIGHASH_DEFAULT,
        hashes: Optional[SharedHashes] = None,
    ) -> bytes:
        """Returns the segwit v1 (taproot) signature message, epoch included.
        https://github.com/bitcoin/bips/blob/master/bip-0341.mediawiki

        Attributes
        ----------
        txin_index : int
            the input being signed
        script_pubkeys : list[bytes]
            the scriptPubKeys of every spent output, in input order
        amounts : list[int]
            the values of every spent output, in input order
        ext_flag : int
            0 for key path spends, 1 for tapscript (BIP-342) spends
        leaf_hash : bytes
            the tapleaf hash of the spent script, required when ext_flag is 1
        sighash : int
            the sighash type, SIGHASH_DEFAULT (0) included
        hashes : SharedHashes
            Precomputed hashes of the transaction, computed if not given
        """
        if hashes is None or hashes.amounts is None or hashes.script_pubkeys is None:
            hashes = SharedHashes(self, amounts, script_pubkeys)

        base_type = sighash & 0x03
        anyone_can_pay = bool(sighash & SIGHASH_ANYONECANPAY)

        # epoch, hash type, version and locktime
        parts = [
            bytes([0, sighash]),
            struct.pack("<l", self.version),
            struct.pack("<L", self.locktime),
        ]
        if not anyone_can_pay:
            parts += [
                hashes.prevouts,
                hashes.amounts,
                hashes.script_pubkeys,
                hashes.sequences,
            ]
        if base_type not in (SIGHASH_NONE, SIGHASH_SINGLE):
            parts.append(hashes.outputs)

        # spend type, annex is never present
        parts.append(bytes([ext_flag * 2]))
        if anyone_can_pay:
            txin = self.inputs[txin_index]
            parts += [
                txin.get_outpoint(),
                struct.pack("<q", amounts[txin_index]),
                prepend_compact_size(script_pubkeys[txin_index]),
                struct.pack("<L", txin.sequence),
            ]
        else:
            parts.append(struct.pack("<L", txin_index))

        if base_type == SIGHASH_SINGLE:
            parts.append(hash_sha256(self.outputs[txin_index].to_bytes()))

        if ext_flag == 1:
            if leaf_hash is None:
                raise ValueError("Script path spending requires the tapleaf hash")
            # leaf hash, key version 0 and no OP_CODESEPARATOR executed
            parts += [leaf_hash, bytes([0]), b"\xff\xff\xff\xff"]

        return b"".join(parts)

    def get_transaction_taproot_digest(
        self,
        txin_index: int,
        script_pubkeys: list[bytes],
        amounts: list[int],
        ext_flag: int = 0,
        leaf_hash: Optional[bytes] = None,
        sighash: int = SIGHASH_DEFAULT,
        hashes: Optional[SharedHashes] = None,
    ) -> bytes:
        """Returns the segwit v1 (taproot) transaction's digest for signing."""
        return tagged_hash(
            self.get_transaction_taproot_preimage(
                txin_index, script_pubkeys, amounts, ext_flag, leaf_hash, sighash, hashes
            ),
            "TapSighash",
        )
