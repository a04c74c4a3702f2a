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

NETWORK_WIF_PREFIXES = {
    "mainnet": b"\x80",
    "signet": b"\xef",
    "testnet": b"\xef",
    "regtest": b"\xef",
}

# version bytes of serialized extended public keys (BIP-32)
NETWORK_XPUB_PREFIXES = {
    "mainnet": b"\x04\x88\xb2\x1e",
    "signet": b"\x04\x35\x87\xcf",
    "testnet": b"\x04\x35\x87\xcf",
    "regtest": b"\x04\x35\x87\xcf",
}


# Constants related to transaction signature types
SIGHASH_DEFAULT = 0x00
SIGHASH_ALL = 0x01
SIGHASH_NONE = 0x02
SIGHASH_SINGLE = 0x03
SIGHASH_ANYONECANPAY = 0x80

ECDSA_SIGHASH_TYPES = frozenset(
    {
        SIGHASH_ALL,
        SIGHASH_NONE,
        SIGHASH_SINGLE,
        SIGHASH_ALL | SIGHASH_ANYONECANPAY,
        SIGHASH_NONE | SIGHASH_ANYONECANPAY,
        SIGHASH_SINGLE | SIGHASH_ANYONECANPAY,
    }
)
TAPROOT_SIGHASH_TYPES = ECDSA_SIGHASH_TYPES | {SIGHASH_DEFAULT}

# curves understood by signing backends
ECDSA = "ecdsa"
SCHNORR = "schnorr"


# Constants for transactions
DEFAULT_TX_VERSION = 2
DEFAULT_TX_LOCKTIME = 0
DEFAULT_TX_SEQUENCE = 0xFFFFFFFF
EMPTY_TX_SEQUENCE = 0x00000000

# lock times below this value are block heights, above are unix timestamps
LOCKTIME_THRESHOLD = 500000000


# Constants related to taproot
LEAF_VERSION_TAPSCRIPT = 0xC0
TAPROOT_CONTROL_BASE_SIZE = 33
TAPROOT_CONTROL_NODE_SIZE = 32
TAPROOT_CONTROL_MAX_NODE_COUNT = 128
ANNEX_TAG = 0x50


# Monetary constants
SATOSHIS_PER_BITCOIN = 100000000
NEGATIVE_SATOSHI = -1


# PSBT serialization (BIP-174, BIP-370 and BIP-371)
PSBT_MAGIC_BYTES = b"psbt\xff"
PSBT_SEPARATOR = b"\x00"


class GlobalTypes:
    UNSIGNED_TX = 0x00
    XPUB = 0x01
    TX_VERSION = 0x02
    FALLBACK_LOCKTIME = 0x03
    INPUT_COUNT = 0x04
    OUTPUT_COUNT = 0x05
    TX_MODIFIABLE = 0x06
    VERSION = 0xFB
    PROPRIETARY = 0xFC


class InputTypes:
    NON_WITNESS_UTXO = 0x00
    WITNESS_UTXO = 0x01
    PARTIAL_SIG = 0x02
    SIGHASH_TYPE = 0x03
    REDEEM_SCRIPT = 0x04
    WITNESS_SCRIPT = 0x05
    BIP32_DERIVATION = 0x06
    FINAL_SCRIPTSIG = 0x07
    FINAL_SCRIPTWITNESS = 0x08
    RIPEMD160 = 0x0A
    SHA256 = 0x0B
    HASH160 = 0x0C
    HASH256 = 0x0D
    PREVIOUS_TXID = 0x0E
    OUTPUT_INDEX = 0x0F
    SEQUENCE = 0x10
    REQUIRED_TIME_LOCKTIME = 0x11
    REQUIRED_HEIGHT_LOCKTIME = 0x12
    TAP_KEY_SIG = 0x13
    TAP_SCRIPT_SIG = 0x14
    TAP_LEAF_SCRIPT = 0x15
    TAP_BIP32_DERIVATION = 0x16
    TAP_INTERNAL_KEY = 0x17
    TAP_MERKLE_ROOT = 0x18
    PROPRIETARY = 0xFC


class OutputTypes:
    REDEEM_SCRIPT = 0x00
    WITNESS_SCRIPT = 0x01
    BIP32_DERIVATION = 0x02
    AMOUNT = 0x03
    SCRIPT = 0x04
    TAP_INTERNAL_KEY = 0x05
    TAP_TREE = 0x06
    TAP_BIP32_DERIVATION = 0x07
    PROPRIETARY = 0xFC


# PSBT_GLOBAL_TX_MODIFIABLE bit flags
TX_MODIFIABLE_INPUTS = 0x01
TX_MODIFIABLE_OUTPUTS = 0x02
TX_MODIFIABLE_SIGHASH_SINGLE = 0x04


# Merge policies for conflicting proprietary values in the Combiner
PROPRIETARY_MERGE_STRICT = "strict"
PROPRIETARY_MERGE_LOWEST = "lowest"
