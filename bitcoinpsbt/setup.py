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

from bitcoinpsbt.constants import PROPRIETARY_MERGE_STRICT, PROPRIETARY_MERGE_LOWEST

NETWORK = "testnet"
networks = {"mainnet", "testnet", "signet", "regtest"}

# How the Combiner treats two different values for the same proprietary key
PROPRIETARY_MERGE = PROPRIETARY_MERGE_STRICT
proprietary_merge_policies = {PROPRIETARY_MERGE_STRICT, PROPRIETARY_MERGE_LOWEST}


def setup(
    network: str = "testnet", proprietary_merge: str = PROPRIETARY_MERGE_STRICT
) -> str:
    """Setup bitcoin psbt library with the specified network and options.

    Args:
        network: The network to use (mainnet, testnet, signet, regtest)
        proprietary_merge: PROPRIETARY_MERGE_STRICT raises on conflicting
                           proprietary values when combining, while
                           PROPRIETARY_MERGE_LOWEST keeps the lowest value
    """
    global NETWORK
    if network not in networks:
        raise ValueError(f"Unknown network: {network}")
    set_proprietary_merge(proprietary_merge)
    NETWORK = network
    return NETWORK


def get_network() -> str:
    global NETWORK
    return NETWORK


def is_mainnet() -> bool:
    global NETWORK
    if NETWORK == "mainnet":
        return True
    else:
        return False


def is_testnet() -> bool:
    global NETWORK
    if NETWORK == "testnet":
        return True
    else:
        return False


def is_regtest() -> bool:
    global NETWORK
    if NETWORK == "regtest":
        return True
    else:
        return False


def get_proprietary_merge() -> str:
    """Returns the policy used for conflicting proprietary values"""
    global PROPRIETARY_MERGE
    return PROPRIETARY_MERGE


def set_proprietary_merge(policy: str) -> None:
    """Sets the policy used for conflicting proprietary values"""
    global PROPRIETARY_MERGE
    if policy not in proprietary_merge_policies:
        raise ValueError(f"Unknown proprietary merge policy: {policy}")
    PROPRIETARY_MERGE = policy
