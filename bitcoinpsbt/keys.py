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
import logging
from abc import ABC, abstractmethod
from typing import Optional, Union

import coincurve
from base58check import b58decode, b58encode  # type: ignore

from bitcoinpsbt.constants import (
    ECDSA,
    NETWORK_WIF_PREFIXES,
    NETWORK_XPUB_PREFIXES,
    SCHNORR,
)
from bitcoinpsbt.errors import SignerBackendError
from bitcoinpsbt.hashfunctions import hash_hash160
from bitcoinpsbt.setup import get_network
from bitcoinpsbt.utils import b_to_i, calculate_tweak, h_to_b

logger = logging.getLogger(__name__)

# order of the secp256k1 group
SECP256K1_ORDER = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141

XPUB_LENGTH = 78


def _checksum(data: bytes) -> bytes:
    return hashlib.sha256(hashlib.sha256(data).digest()).digest()[0:4]


class PrivateKey:
    """Represents a secp256k1 private key.

    Attributes
    ----------
    key : coincurve.PrivateKey
        the underlying key

    Methods
    -------
    from_wif(wif)
        creates an object from a WIF of WIFC format (string)
    from_bytes()
        creates an object from raw 32 bytes
    to_wif(compressed=True)
        returns as WIFC (compressed) or WIF format (string)
    to_bytes()
        returns the key's raw bytes
    sign_ecdsa(digest)
        signs a 32 byte digest, returns a DER signature
    sign_schnorr(message, tweak=None)
        signs a 32 byte message (BIP-340), optionally with the taproot
        tweaked key
    get_public_key()
        returns the corresponding PublicKey object
    """

    def __init__(
        self,
        wif: Optional[str] = None,
        secret_exponent: Optional[int] = None,
        b: Optional[bytes] = None,
    ) -> None:
        """With no parameters a random key is created

        Parameters
        ----------
        wif : str, optional
            the key in WIF of WIFC format (default None)
        secret_exponent : int, optional
            used to create a specific key deterministically (default None)
        b : bytes, optional
            used to create a key from raw bytes
        """

        if not secret_exponent and not wif and not b:
            self.key = coincurve.PrivateKey()
        elif wif:
            self._from_wif(wif)
        elif b:
            self._from_bytes(b)
        else:
            if not 0 < secret_exponent < SECP256K1_ORDER:
                raise ValueError("Secret exponent is out of range")
            self.key = coincurve.PrivateKey.from_int(secret_exponent)

    def to_bytes(self) -> bytes:
        """Returns key's bytes"""

        return self.key.secret

    @classmethod
    def from_wif(cls, wif: str) -> "PrivateKey":
        """Creates key from WIFC or WIF format key"""

        return cls(wif=wif)

    @classmethod
    def from_bytes(cls, b: bytes) -> "PrivateKey":
        """Creates a key directly from 32 raw bytes"""

        return cls(b=b)

    def _from_bytes(self, b: bytes) -> None:
        if len(b) != 32:
            raise ValueError("Invalid key length: must be exactly 32 bytes.")
        self.key = coincurve.PrivateKey(b)

    def _from_wif(self, wif: str) -> None:
        """Creates key from WIFC or WIF format key

        Check to_wif for the detailed process. From WIF is the reverse.

        Raises
        ------
        ValueError
            if the checksum is wrong or if the WIF/WIFC is not from the
            configured network.
        """

        # decode base58check get key bytes plus checksum
        data_bytes = b58decode(wif.encode("utf-8"))
        key_bytes = data_bytes[:-4]
        checksum = data_bytes[-4:]

        # verify key with checksum
        if not checksum == _checksum(key_bytes):
            raise ValueError("Checksum is wrong. Possible mistype?")

        # get network prefix and check with current setup
        network_prefix = key_bytes[:1]
        if NETWORK_WIF_PREFIXES[get_network()] != network_prefix:
            raise ValueError("Using the wrong network!")

        # remove network prefix
        key_bytes = key_bytes[1:]

        # a trailing 0x01 marks a compressed key
        if len(key_bytes) == 33 and key_bytes[-1] == 0x01:
            key_bytes = key_bytes[:-1]
        self._from_bytes(key_bytes)

    def to_wif(self, compressed: bool = True) -> str:
        """Returns key in WIFC or WIF string

        |  Pseudocode:
        |      network_prefix = (1 byte version number)
        |      data = network_prefix + (32 bytes number/key) [ + 0x01 if compressed ]
        |      data_hash = SHA-256( SHA-256( data ) )
        |      checksum = (first 4 bytes of data_hash)
        |      wif = Base58CheckEncode( data + checksum )
        """

        # add network prefix to the key
        data = NETWORK_WIF_PREFIXES[get_network()] + self.to_bytes()

        if compressed is True:
            data += b"\x01"

        # suffix the key bytes with the checksum and encode to base58check
        return b58encode(data + _checksum(data)).decode("utf-8")

    def get_public_key(self) -> "PublicKey":
        """Returns the corresponding PublicKey"""

        return PublicKey(self.key.public_key.format(compressed=True))

    def sign_ecdsa(self, digest: bytes) -> bytes:
        """Signs a 32 byte digest.

        Nonces are derived deterministically (RFC6979) and S is always in
        the lower half of the order, as the standardness rules require.
        Returns the DER encoded signature without a sighash byte.
        """
        if len(digest) != 32:
            raise ValueError("Digest must be 32 bytes")
        return self.key.sign(digest, hasher=None)

    def _tweak(self, tweak: bytes) -> coincurve.PrivateKey:
        """Tweaks the private key for a taproot key path spend.

        The key is negated first if its public key has an odd y so that it
        matches the x-only internal key.
        """
        secret = self.key.to_int()
        if self.key.public_key.format(compressed=True)[0] == 0x03:
            secret = SECP256K1_ORDER - secret

        tweaked = (secret + b_to_i(tweak)) % SECP256K1_ORDER
        return coincurve.PrivateKey.from_int(tweaked)

    def sign_schnorr(self, message: bytes, tweak: Optional[bytes] = None) -> bytes:
        """Signs a 32 byte message with BIP-340 Schnorr.

        Auxiliary randomness is 32 zero bytes so signatures are
        deterministic. Returns the 64 byte signature.
        """
        if len(message) != 32:
            raise ValueError("Message must be 32 bytes")
        key = self._tweak(tweak) if tweak is not None else self.key
        return key.sign_schnorr(message, bytes(32))


class PublicKey:
    """Represents a secp256k1 public key.

    Attributes
    ----------
    key : coincurve.PublicKey
        the underlying point

    Methods
    -------
    to_bytes(compressed=True)
        returns the SEC encoded key
    to_hex(compressed=True)
        returns the SEC encoded key as hexadecimal
    to_x_only_bytes()
        returns the 32 byte x-only key (BIP-340)
    get_hash160(compressed=True)
        returns the hash160 of the SEC encoded key
    get_taproot_output_key(merkle_root=None)
        returns the tweaked x-only output key and its parity
    verify(signature, digest)
        verifies a DER ECDSA signature
    verify_schnorr(signature, message)
        verifies a BIP-340 signature against the x-only key
    """

    def __init__(self, key: Union[str, bytes]) -> None:
        """
        Parameters
        ----------
        key : str or bytes
            a SEC encoded (33 or 65 bytes) or x-only (32 bytes) key, as
            bytes or hexadecimal; x-only keys are taken with an even y
        """
        key_bytes = h_to_b(key) if isinstance(key, str) else key
        if len(key_bytes) == 32:
            key_bytes = b"\x02" + key_bytes
        try:
            self.key = coincurve.PublicKey(key_bytes)
        except ValueError as e:
            raise ValueError(f"Invalid public key: {key_bytes.hex()}") from e

    def to_bytes(self, compressed: bool = True) -> bytes:
        return self.key.format(compressed=compressed)

    def to_hex(self, compressed: bool = True) -> str:
        return self.to_bytes(compressed).hex()

    def to_x_only_bytes(self) -> bytes:
        return self.to_bytes()[1:]

    def is_y_even(self) -> bool:
        return self.to_bytes()[0] == 0x02

    def get_hash160(self, compressed: bool = True) -> bytes:
        return hash_hash160(self.to_bytes(compressed))

    def get_taproot_output_key(self, merkle_root: Optional[bytes] = None) -> tuple[bytes, int]:
        """Tweaks the key into a taproot output key (BIP-341)

        Returns the x-only output key and the parity of its y coordinate
        (1 when odd), which goes into control blocks.
        """
        xonly = self.to_x_only_bytes()
        tweak = calculate_tweak(xonly, merkle_root)
        output_key = coincurve.PublicKey(b"\x02" + xonly).add(tweak)
        output_bytes = output_key.format(compressed=True)
        return output_bytes[1:], 1 if output_bytes[0] == 0x03 else 0

    def verify(self, signature: bytes, digest: bytes) -> bool:
        return self.key.verify(signature, digest, hasher=None)

    def verify_schnorr(self, signature: bytes, message: bytes) -> bool:
        return coincurve.PublicKeyXOnly(self.to_x_only_bytes()).verify(signature, message)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PublicKey):
            return False
        return self.to_bytes() == other.to_bytes()

    def __hash__(self) -> int:
        return hash(self.to_bytes())

    def __repr__(self) -> str:
        return f"PublicKey({self.to_hex()})"


def encode_xpub(data: bytes) -> str:
    """Base58check encodes a 78 byte serialized extended key"""
    if len(data) != XPUB_LENGTH:
        raise ValueError(f"Extended key must be {XPUB_LENGTH} bytes")
    return b58encode(data + _checksum(data)).decode("utf-8")


def decode_xpub(xpub: str) -> bytes:
    """Decodes a base58check extended public key into its 78 bytes

    Raises
    ------
    ValueError
        if the checksum, the length or the version bytes are wrong
    """
    data_bytes = b58decode(xpub.encode("utf-8"))
    data, checksum = data_bytes[:-4], data_bytes[-4:]
    if checksum != _checksum(data):
        raise ValueError("Checksum is wrong. Possible mistype?")
    if len(data) != XPUB_LENGTH:
        raise ValueError(f"Extended key must be {XPUB_LENGTH} bytes")
    if data[:4] not in NETWORK_XPUB_PREFIXES.values():
        raise ValueError(f"Not an extended public key: version {data[:4].hex()}")
    return data


class SigningBackend(ABC):
    """Produces signatures for the Signer.

    Implementations may talk to hardware devices or remote services; every
    call is blocking and independent of the previous ones.
    """

    @abstractmethod
    def sign(
        self, message: bytes, pubkey: bytes, curve: str, tweak: Optional[bytes] = None
    ) -> bytes:
        """Signs a 32 byte message with the private key of pubkey.

        Parameters
        ----------
        message : bytes
            the sighash to sign
        pubkey : bytes
            the SEC encoded or x-only public key that must sign
        curve : str
            ECDSA returns a DER signature, SCHNORR a 64 byte BIP-340 one
        tweak : bytes
            the taproot tweak to apply to the key for key path spends

        Raises
        ------
        SignerBackendError
            if the key is unknown or the signature cannot be produced
        """


class PrivateKeySigner(SigningBackend):
    """A signing backend holding private keys in memory

    Keys are looked up by their compressed, uncompressed or x-only public
    key.
    """

    def __init__(self, keys: list[PrivateKey]) -> None:
        self.keys: dict[bytes, PrivateKey] = {}
        for key in keys:
            pubkey = key.get_public_key()
            self.keys[pubkey.to_bytes(compressed=True)] = key
            self.keys[pubkey.to_bytes(compressed=False)] = key
            self.keys[pubkey.to_x_only_bytes()] = key

    def has_key(self, pubkey: bytes) -> bool:
        return pubkey in self.keys

    def sign(
        self, message: bytes, pubkey: bytes, curve: str, tweak: Optional[bytes] = None
    ) -> bytes:
        key = self.keys.get(pubkey)
        if key is None:
            raise SignerBackendError(f"No private key for public key {pubkey.hex()}")

        try:
            if curve == ECDSA:
                return key.sign_ecdsa(message)
            if curve == SCHNORR:
                return key.sign_schnorr(message, tweak)
        except ValueError as e:
            raise SignerBackendError(str(e)) from e
        raise SignerBackendError(f"Unknown curve: {curve}")
