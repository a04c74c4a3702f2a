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

import hashlib

from bitcoinpsbt.ripemd160 import ripemd160


def hash_sha256(b: bytes) -> bytes:
    """Computes SHA-256 hash of the given bytes."""
    return hashlib.sha256(b).digest()


def hash_double_sha256(b: bytes) -> bytes:
    """Computes SHA-256(SHA-256()) of the given bytes, aka HASH256."""
    return hashlib.sha256(hashlib.sha256(b).digest()).digest()


def hash_ripemd160(b: bytes) -> bytes:
    """Computes RIPEMD-160 hash of the given bytes."""
    return ripemd160(b)


def hash_hash160(b: bytes) -> bytes:
    """Computes RIPEMD-160(SHA-256()) of the given bytes, aka HASH160."""
    return ripemd160(hashlib.sha256(b).digest())


# preimage hash functions keyed by the name used in PSBT_IN_<NAME> fields
PREIMAGE_HASHES = {
    "ripemd160": hash_ripemd160,
    "sha256": hash_sha256,
    "hash160": hash_hash160,
    "hash256": hash_double_sha256,
}
