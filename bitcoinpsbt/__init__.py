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

__version__ = "0.1.0"

import logging

from bitcoinpsbt.setup import setup, get_network

from bitcoinpsbt.keys import PrivateKey, PublicKey, PrivateKeySigner, SigningBackend

from bitcoinpsbt.script import Script

from bitcoinpsbt.transactions import Transaction, TxInput, TxOutput, TxWitnessInput

from bitcoinpsbt.psbt import PSBT, PSBTInput, PSBTOutput, encode, decode

from bitcoinpsbt.sighash import SighashCache, compute_sighash, resolve_spending_path

from bitcoinpsbt.roles import Creator, Constructor, Updater, Signer

from bitcoinpsbt.combiner import combine

from bitcoinpsbt.finalizer import finalize, finalize_input, extract

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    'setup',
    'get_network',
    'PrivateKey',
    'PublicKey',
    'PrivateKeySigner',
    'SigningBackend',
    'Script',
    'Transaction',
    'TxInput',
    'TxOutput',
    'TxWitnessInput',
    'PSBT',
    'PSBTInput',
    'PSBTOutput',
    'encode',
    'decode',
    'SighashCache',
    'compute_sighash',
    'resolve_spending_path',
    'Creator',
    'Constructor',
    'Updater',
    'Signer',
    'combine',
    'finalize',
    'finalize_input',
    'extract',
]
