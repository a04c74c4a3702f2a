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

import copy
import struct
from typing import Any, Optional, Union

from bitcoinpsbt.hashfunctions import hash_hash160, hash_sha256
from bitcoinpsbt.utils import b_to_h, h_to_b


# Bitcoin's op codes. Complete list at: https://en.bitcoin.it/wiki/Script
OP_CODES = {
    # constants
    "OP_0": b"\x00",
    "OP_FALSE": b"\x00",
    "OP_PUSHDATA1": b"\x4c",
    "OP_PUSHDATA2": b"\x4d",
    "OP_PUSHDATA4": b"\x4e",
    "OP_1NEGATE": b"\x4f",
    "OP_RESERVED": b"\x50",
    "OP_1": b"\x51",
    "OP_TRUE": b"\x51",
    "OP_2": b"\x52",
    "OP_3": b"\x53",
    "OP_4": b"\x54",
    "OP_5": b"\x55",
    "OP_6": b"\x56",
    "OP_7": b"\x57",
    "OP_8": b"\x58",
    "OP_9": b"\x59",
    "OP_10": b"\x5a",
    "OP_11": b"\x5b",
    "OP_12": b"\x5c",
    "OP_13": b"\x5d",
    "OP_14": b"\x5e",
    "OP_15": b"\x5f",
    "OP_16": b"\x60",
    # flow control
    "OP_NOP": b"\x61",
    "OP_VER": b"\x62",
    "OP_IF": b"\x63",
    "OP_NOTIF": b"\x64",
    "OP_VERIF": b"\x65",
    "OP_VERNOTIF": b"\x66",
    "OP_ELSE": b"\x67",
    "OP_ENDIF": b"\x68",
    "OP_VERIFY": b"\x69",
    "OP_RETURN": b"\x6a",
    # stack
    "OP_TOALTSTACK": b"\x6b",
    "OP_FROMALTSTACK": b"\x6c",
    "OP_2DROP": b"\x6d",
    "OP_2DUP": b"\x6e",
    "OP_3DUP": b"\x6f",
    "OP_2OVER": b"\x70",
    "OP_2ROT": b"\x71",
    "OP_2SWAP": b"\x72",
    "OP_IFDUP": b"\x73",
    "OP_DEPTH": b"\x74",
    "OP_DROP": b"\x75",
    "OP_DUP": b"\x76",
    "OP_NIP": b"\x77",
    "OP_OVER": b"\x78",
    "OP_PICK": b"\x79",
    "OP_ROLL": b"\x7a",
    "OP_ROT": b"\x7b",
    "OP_SWAP": b"\x7c",
    "OP_TUCK": b"\x7d",
    # splice
    "OP_CAT": b"\x7e",
    "OP_SUBSTR": b"\x7f",
    "OP_LEFT": b"\x80",
    "OP_RIGHT": b"\x81",
    "OP_SIZE": b"\x82",
    # bitwise logic
    "OP_INVERT": b"\x83",
    "OP_AND": b"\x84",
    "OP_OR": b"\x85",
    "OP_XOR": b"\x86",
    "OP_EQUAL": b"\x87",
    "OP_EQUALVERIFY": b"\x88",
    "OP_RESERVED1": b"\x89",
    "OP_RESERVED2": b"\x8a",
    # arithmetic
    "OP_1ADD": b"\x8b",
    "OP_1SUB": b"\x8c",
    "OP_2MUL": b"\x8d",
    "OP_2DIV": b"\x8e",
    "OP_NEGATE": b"\x8f",
    "OP_ABS": b"\x90",
    "OP_NOT": b"\x91",
    "OP_0NOTEQUAL": b"\x92",
    "OP_ADD": b"\x93",
    "OP_SUB": b"\x94",
    "OP_MUL": b"\x95",
    "OP_DIV": b"\x96",
    "OP_MOD": b"\x97",
    "OP_LSHIFT": b"\x98",
    "OP_RSHIFT": b"\x99",
    "OP_BOOLAND": b"\x9a",
    "OP_BOOLOR": b"\x9b",
    "OP_NUMEQUAL": b"\x9c",
    "OP_NUMEQUALVERIFY": b"\x9d",
    "OP_NUMNOTEQUAL": b"\x9e",
    "OP_LESSTHAN": b"\x9f",
    "OP_GREATERTHAN": b"\xa0",
    "OP_LESSTHANOREQUAL": b"\xa1",
    "OP_GREATERTHANOREQUAL": b"\xa2",
    "OP_MIN": b"\xa3",
    "OP_MAX": b"\xa4",
    "OP_WITHIN": b"\xa5",
    # crypto
    "OP_RIPEMD160": b"\xa6",
    "OP_SHA1": b"\xa7",
    "OP_SHA256": b"\xa8",
    "OP_HASH160": b"\xa9",
    "OP_HASH256": b"\xaa",
    "OP_CODESEPARATOR": b"\xab",
    "OP_CHECKSIG": b"\xac",
    "OP_CHECKSIGVERIFY": b"\xad",
    "OP_CHECKMULTISIG": b"\xae",
    "OP_CHECKMULTISIGVERIFY": b"\xaf",
    # expansion
    "OP_NOP1": b"\xb0",
    "OP_NOP2": b"\xb1",
    "OP_CHECKLOCKTIMEVERIFY": b"\xb1",
    "OP_NOP3": b"\xb2",
    "OP_CHECKSEQUENCEVERIFY": b"\xb2",
    "OP_NOP4": b"\xb3",
    "OP_NOP5": b"\xb4",
    "OP_NOP6": b"\xb5",
    "OP_NOP7": b"\xb6",
    "OP_NOP8": b"\xb7",
    "OP_NOP9": b"\xb8",
    "OP_NOP10": b"\xb9",
    # tapscript (BIP-342)
    "OP_CHECKSIGADD": b"\xba",
    "OP_INVALIDOPCODE": b"\xff",
}

# names that share an op code with a preferred name
_OP_ALIASES = {"OP_FALSE", "OP_TRUE", "OP_NOP2", "OP_NOP3"}

CODE_OPS = {code: name for name, code in OP_CODES.items() if name not in _OP_ALIASES}

# OP_PUSHDATA<n> op codes and the width of the length that follows them
_PUSHDATA_WIDTHS = {0x4C: 1, 0x4D: 2, 0x4E: 4}


def push_data(data: bytes) -> bytes:
    """Returns the op codes that push data on the stack"""
    if len(data) == 0:
        return b"\x00"
    elif len(data) < 0x4C:
        return bytes([len(data)]) + data
    elif len(data) <= 0xFF:
        return b"\x4c" + bytes([len(data)]) + data
    elif len(data) <= 0xFFFF:
        return b"\x4d" + struct.pack("<H", len(data)) + data
    elif len(data) <= 0xFFFFFFFF:
        return b"\x4e" + struct.pack("<I", len(data)) + data
    else:
        raise ValueError("Data too large. Cannot push into script")


def _small_int(token: Any) -> Optional[int]:
    """Returns the value of OP_0 .. OP_16 tokens, None for anything else"""
    if isinstance(token, int) and 0 <= token <= 16:
        return token
    if isinstance(token, str) and token.startswith("OP_"):
        suffix = token[3:]
        if suffix.isdigit() and 0 <= int(suffix) <= 16:
            return int(suffix)
    return None


def _script_num(token: Any) -> Optional[int]:
    """Decodes a small int op code or a pushed minimally encoded number"""
    value = _small_int(token)
    if value is not None:
        return value
    if not isinstance(token, str) or token.startswith("OP_"):
        return None
    data = h_to_b(token)
    if not data or len(data) > 4:
        return None
    number = int.from_bytes(data, "little")
    if data[-1] & 0x80:
        # sign bit set, negative numbers are not thresholds
        return None
    return number


def _is_data(token: Any, *lengths: int) -> bool:
    if not isinstance(token, str) or token.startswith("OP_"):
        return False
    return len(token) // 2 in lengths


class Script:
    """Represents any script in Bitcoin

    A Script contains just a list of OP_CODES and also knows how to serialize
    into bytes. Tokens are op code names, small integers or data as
    hexadecimal strings.

    Attributes
    ----------
    script : list
        the list with all the script OP_CODES and data

    Methods
    -------
    to_bytes()
        returns a serialized byte version of the script
    to_hex()
        returns a serialized version of the script in hex
    get_script()
        returns the list of strings that makes up this script
    copy()
        creates a copy of the object (classmethod)
    from_raw()
        parses a serialized script (staticmethod)
    to_p2sh_script_pub_key()
        converts script to p2sh scriptPubKey (locking script)
    to_p2wsh_script_pub_key()
        converts script to p2wsh scriptPubKey (locking script)
    is_p2pk(), is_p2pkh(), is_p2sh(), is_p2wpkh(), is_p2wsh(), is_p2tr()
        checks for the standard output templates
    get_witness_program()
        returns (version, program) for witness outputs
    is_multisig()
        checks if script is a CHECKMULTISIG script
    is_tapscript_p2pk(), is_multi_a()
        checks for the tapscript leaf templates
    get_public_keys()
        returns the public keys of p2pk, multisig and tapscript templates
    get_script_type()
        determines the type of script

    Raises
    ------
    ValueError
        If string data is too large or integer is negative
    """

    def __init__(self, script: list[Any]):
        """See Script description"""
        self.script: list[Any] = script

    @classmethod
    def copy(cls, script: "Script") -> "Script":
        """Deep copy of Script"""
        scripts = copy.deepcopy(script.script)
        return cls(scripts)

    def _op_push_data(self, data: str) -> bytes:
        """Converts data to appropriate OP_PUSHDATA OP code including length"""
        return push_data(h_to_b(data))

    def _push_integer(self, integer: int) -> bytes:
        """Converts integer to bytes; as signed little-endian integer"""
        if integer < 0:
            raise ValueError("Integer is currently required to be positive.")

        number_of_bytes = (integer.bit_length() + 7) // 8
        integer_bytes = integer.to_bytes(number_of_bytes, byteorder="little")

        if integer & (1 << number_of_bytes * 8 - 1):
            integer_bytes += b"\x00"

        return push_data(integer_bytes)

    def to_bytes(self) -> bytes:
        """Converts the script to bytes"""
        script_bytes = b""
        for token in self.script:
            if isinstance(token, str) and token in OP_CODES:
                script_bytes += OP_CODES[token]
            elif isinstance(token, int) and 0 <= token <= 16:
                script_bytes += OP_CODES["OP_" + str(token)]
            elif isinstance(token, int):
                script_bytes += self._push_integer(token)
            elif isinstance(token, bytes):
                script_bytes += push_data(token)
            else:
                script_bytes += self._op_push_data(token)
        return script_bytes

    def to_hex(self) -> str:
        """Converts the script to hexadecimal"""
        return b_to_h(self.to_bytes())

    @staticmethod
    def from_raw(scriptraw: Union[str, bytes]) -> "Script":
        """
        Imports a Script commands list from raw hexadecimal data or bytes

        Raises
        ------
        ValueError
            if a push runs past the end of the script or an op code is unknown
        """
        if isinstance(scriptraw, str):
            raw = h_to_b(scriptraw)
        elif isinstance(scriptraw, bytes):
            raw = scriptraw
        else:
            raise TypeError("Input must be a hexadecimal string or bytes")

        commands: list[Any] = []
        index = 0
        while index < len(raw):
            op = raw[index]
            index += 1
            if 0x01 <= op <= 0x4B:
                length = op
            elif op in _PUSHDATA_WIDTHS:
                width = _PUSHDATA_WIDTHS[op]
                if index + width > len(raw):
                    raise ValueError("Truncated OP_PUSHDATA length")
                length = int.from_bytes(raw[index : index + width], "little")
                index += width
            else:
                name = CODE_OPS.get(bytes([op]))
                if name is None:
                    raise ValueError(f"Unknown op code: 0x{op:02x}")
                commands.append(name)
                continue

            if index + length > len(raw):
                raise ValueError("Push data runs past the end of the script")
            commands.append(raw[index : index + length].hex())
            index += length

        return Script(commands)

    def get_script(self) -> list[Any]:
        """Returns script as array of strings"""
        return self.script

    def to_p2sh_script_pub_key(self) -> "Script":
        """Converts script to p2sh scriptPubKey (locking script)"""
        hex_hash160 = b_to_h(hash_hash160(self.to_bytes()))
        return Script(["OP_HASH160", hex_hash160, "OP_EQUAL"])

    def to_p2wsh_script_pub_key(self) -> "Script":
        """Converts script to p2wsh scriptPubKey (locking script)"""
        return Script(["OP_0", b_to_h(hash_sha256(self.to_bytes()))])

    def is_p2pk(self) -> bool:
        """P2PK format: <33 or 65 byte pubkey> OP_CHECKSIG"""
        ops = self.script
        return len(ops) == 2 and _is_data(ops[0], 33, 65) and ops[1] == "OP_CHECKSIG"

    def is_p2pkh(self) -> bool:
        """P2PKH format: OP_DUP OP_HASH160 <20-byte-key-hash> OP_EQUALVERIFY OP_CHECKSIG"""
        ops = self.script
        return (
            len(ops) == 5
            and ops[0] == "OP_DUP"
            and ops[1] == "OP_HASH160"
            and _is_data(ops[2], 20)
            and ops[3] == "OP_EQUALVERIFY"
            and ops[4] == "OP_CHECKSIG"
        )

    def is_p2sh(self) -> bool:
        """P2SH format: OP_HASH160 <20-byte-script-hash> OP_EQUAL"""
        ops = self.script
        return (
            len(ops) == 3
            and ops[0] == "OP_HASH160"
            and _is_data(ops[1], 20)
            and ops[2] == "OP_EQUAL"
        )

    def get_witness_program(self) -> Optional[tuple[int, bytes]]:
        """Returns (witness version, program) or None if not a witness output"""
        ops = self.script
        if len(ops) != 2 or not _is_data(ops[1], *range(2, 41)):
            return None
        version = _small_int(ops[0])
        if version is None:
            return None
        return version, h_to_b(ops[1])

    def is_p2wpkh(self) -> bool:
        """P2WPKH format: OP_0 <20-byte-key-hash>"""
        program = self.get_witness_program()
        return program is not None and program[0] == 0 and len(program[1]) == 20

    def is_p2wsh(self) -> bool:
        """P2WSH format: OP_0 <32-byte-script-hash>"""
        program = self.get_witness_program()
        return program is not None and program[0] == 0 and len(program[1]) == 32

    def is_p2tr(self) -> bool:
        """P2TR format: OP_1 <32-byte-key>"""
        program = self.get_witness_program()
        return program is not None and program[0] == 1 and len(program[1]) == 32

    def is_multisig(self) -> tuple[bool, Union[tuple[int, int], None]]:
        """
        Check if script is a multisig script.

        Multisig format: OP_M <pubkey1> ... <pubkeyN> OP_N OP_CHECKMULTISIG

        Returns:
            tuple: (bool, (M, N) if multisig, None otherwise)
        """
        ops = self.script
        if len(ops) < 4 or ops[-1] != "OP_CHECKMULTISIG":
            return False, None

        m = _small_int(ops[0])
        n = _small_int(ops[-2])
        if m is None or n is None or not 1 <= m <= n or len(ops) != n + 3:
            return False, None
        if not all(_is_data(op, 33, 65) for op in ops[1:-2]):
            return False, None
        return True, (m, n)

    def is_tapscript_p2pk(self) -> bool:
        """Tapscript single key format: <32-byte-x-only-key> OP_CHECKSIG"""
        ops = self.script
        return len(ops) == 2 and _is_data(ops[0], 32) and ops[1] == "OP_CHECKSIG"

    def is_multi_a(self) -> tuple[bool, Union[tuple[int, int], None]]:
        """
        Check if script is a tapscript k-of-n script (BIP-342).

        Format: <pk1> OP_CHECKSIG <pk2> OP_CHECKSIGADD ... <pkN> OP_CHECKSIGADD <k> OP_NUMEQUAL

        Returns:
            tuple: (bool, (k, N) if multi_a, None otherwise)
        """
        ops = self.script
        if len(ops) < 4 or len(ops) % 2 or ops[-1] != "OP_NUMEQUAL":
            return False, None

        n = (len(ops) - 2) // 2
        for i in range(n):
            expected = "OP_CHECKSIG" if i == 0 else "OP_CHECKSIGADD"
            if not _is_data(ops[2 * i], 32) or ops[2 * i + 1] != expected:
                return False, None

        k = _script_num(ops[-2])
        if k is None or not 1 <= k <= n:
            return False, None
        return True, (k, n)

    def get_public_keys(self) -> list[bytes]:
        """Returns the public keys of p2pk, multisig and tapscript templates"""
        ops = self.script
        if self.is_p2pk() or self.is_tapscript_p2pk():
            return [h_to_b(ops[0])]
        if self.is_multisig()[0]:
            return [h_to_b(op) for op in ops[1:-2]]
        if self.is_multi_a()[0]:
            return [h_to_b(ops[i]) for i in range(0, len(ops) - 2, 2)]
        return []

    def get_script_type(self) -> str:
        """
        Determine the type of script.

        Returns:
            str: Script type ('p2pk', 'p2pkh', 'p2sh', 'p2wpkh', 'p2wsh',
                 'p2tr', 'multisig', 'unknown')
        """
        if self.is_p2pk():
            return "p2pk"
        elif self.is_p2pkh():
            return "p2pkh"
        elif self.is_p2sh():
            return "p2sh"
        elif self.is_p2wpkh():
            return "p2wpkh"
        elif self.is_p2wsh():
            return "p2wsh"
        elif self.is_p2tr():
            return "p2tr"
        elif self.is_multisig()[0]:
            return "multisig"
        else:
            return "unknown"

    def __str__(self) -> str:
        return str(self.script)

    def __repr__(self) -> str:
        return self.__str__()

    def __eq__(self, _other: object) -> bool:
        if not isinstance(_other, Script):
            return False
        return self.to_bytes() == _other.to_bytes()


def try_parse_script(raw: bytes) -> Optional[Script]:
    """Parses script bytes, returns None when they do not decode as a script.

    scriptPubKeys are not required to be parsable; such scripts simply do not
    match any template.
    """
    try:
        return Script.from_raw(raw)
    except ValueError:
        return None
