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

from typing import Optional


class PSBTError(Exception):
    """Base class of all the errors raised by this library"""


class FormatError(PSBTError, ValueError):
    """Malformed bytes found while deserializing.

    Decoding is all or nothing; no partially parsed document is returned.
    """


class ValidationError(PSBTError, ValueError):
    """A structural or version rule of a PSBT is violated.

    Attributes
    ----------
    index : int or None
        the index of the input or output the field belongs to, None for
        global fields
    field : str
        the BIP-174/370/371 name of the offending field
    reason : str
        a human readable description of the violation
    """

    def __init__(self, index: Optional[int], field: str, reason: str) -> None:
        self.index = index
        self.field = field
        self.reason = reason
        where = "global" if index is None else f"index {index}"
        super().__init__(f"{field} ({where}): {reason}")


#
# Sighash calculation
#
class SighashError(PSBTError):
    """Base class for errors raised while computing a signature hash"""


class MissingPrevoutInfo(SighashError):
    """The input lacks the data needed to resolve the spent amount or script"""

    def __init__(self, index: int, reason: str = "previous output is unknown") -> None:
        self.index = index
        self.reason = reason
        super().__init__(f"input {index}: {reason}")


class UnsupportedSighashType(SighashError):
    """The sighash flag is not valid for the input"""

    def __init__(self, index: int, sighash_type: int, reason: str = "") -> None:
        self.index = index
        self.sighash_type = sighash_type
        self.reason = reason
        message = f"input {index}: unsupported sighash type 0x{sighash_type:02x}"
        if reason:
            message += f" ({reason})"
        super().__init__(message)


class IndexOutOfRange(SighashError, IndexError):
    """An input or output index does not exist in the document"""

    def __init__(self, index: int, count: int) -> None:
        self.index = index
        self.count = count
        super().__init__(f"index {index} out of range (count is {count})")


class UnsupportedScript(SighashError):
    """The spent script does not map to a known spending path"""

    def __init__(self, index: int, reason: str) -> None:
        self.index = index
        self.reason = reason
        super().__init__(f"input {index}: {reason}")


#
# Signing
#
class SignerBackendError(PSBTError):
    """Raised by signing backends: unavailable, declined, unknown key"""


class SigningError(PSBTError):
    """Signing an input failed; the backend error is chained as __cause__"""

    def __init__(self, index: int, reason: str) -> None:
        self.index = index
        self.reason = reason
        super().__init__(f"input {index}: {reason}")


#
# Finalizing
#
class InputFinalizeError(PSBTError):
    """An input could not be finalized"""

    def __init__(self, index: int, reason: str) -> None:
        self.index = index
        self.reason = reason
        super().__init__(f"input {index}: {reason}")


class InsufficientSignatures(InputFinalizeError):
    """The spending script is known but not enough signatures are present"""


class UnsatisfiableScript(InputFinalizeError):
    """The spending script cannot be satisfied by the finalizer"""


class FinalizeError(PSBTError):
    """Aggregates the failures of all the inputs that could not be finalized

    Attributes
    ----------
    failures : list[InputFinalizeError]
        one entry per failing input, in input order
    """

    def __init__(self, failures: list[InputFinalizeError]) -> None:
        self.failures = failures
        indices = ", ".join(str(f.index) for f in failures)
        super().__init__(f"could not finalize inputs: {indices}")


#
# Combining
#
class CombineError(PSBTError):
    """Base class for errors raised by the Combiner"""


class IncompatibleBase(CombineError):
    """The documents do not describe the same unsigned transaction"""


class ConflictingField(CombineError, ValidationError):
    """The same non-mergeable field has different values in the documents.

    Also a ValidationError: the merged document would violate key uniqueness.
    """

    def __init__(self, index: Optional[int], field: str) -> None:
        ValidationError.__init__(self, index, field, "conflicting values")


#
# Extracting
#
class NotFinalized(PSBTError):
    """Extraction was attempted while some inputs are not finalized

    Attributes
    ----------
    indices : list[int]
        all the inputs lacking final fields
    index : int
        the first input lacking final fields
    """

    def __init__(self, indices: list[int]) -> None:
        self.indices = indices
        self.index = indices[0]
        super().__init__(f"inputs not finalized: {indices}")
