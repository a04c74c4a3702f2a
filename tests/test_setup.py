# Copyright (C) 2018-2025 The python-bitcoin-psbt developers
#
# This file is part of python-bitcoin-psbt
#
# It is subject to the license terms in the LICENSE file found in the top-level
# directory of this distribution.
#
# No part of python-bitcoin-psbt, including this file, may be copied,
# modified, propagated, or distributed except according to the terms contained
# in the LICENSE file.


import unittest

from bitcoinpsbt.setup import (
    get_network,
    get_proprietary_merge,
    is_mainnet,
    is_regtest,
    is_testnet,
    set_proprietary_merge,
    setup,
)
from bitcoinpsbt.constants import PROPRIETARY_MERGE_LOWEST, PROPRIETARY_MERGE_STRICT
from bitcoinpsbt.keys import PrivateKey


class TestSetup(unittest.TestCase):
    def setUp(self):
        setup("testnet")

    def tearDown(self):
        setup("testnet")

    def test_network(self):
        self.assertEqual(get_network(), "testnet")
        self.assertTrue(is_testnet())
        self.assertFalse(is_mainnet())

        self.assertEqual(setup("mainnet"), "mainnet")
        self.assertTrue(is_mainnet())
        setup("regtest")
        self.assertTrue(is_regtest())
        self.assertRaises(ValueError, setup, "litecoin")
        self.assertEqual(get_network(), "regtest")

    def test_network_selects_wif_prefix(self):
        wif = PrivateKey(secret_exponent=1).to_wif()
        self.assertTrue(wif.startswith("c"))
        setup("mainnet")
        self.assertRaises(ValueError, PrivateKey, wif)
        self.assertTrue(PrivateKey(secret_exponent=1).to_wif().startswith("K"))

    def test_proprietary_merge(self):
        self.assertEqual(get_proprietary_merge(), PROPRIETARY_MERGE_STRICT)
        set_proprietary_merge(PROPRIETARY_MERGE_LOWEST)
        self.assertEqual(get_proprietary_merge(), PROPRIETARY_MERGE_LOWEST)
        self.assertRaises(ValueError, set_proprietary_merge, "newest")
        self.assertEqual(get_proprietary_merge(), PROPRIETARY_MERGE_LOWEST)

        # every setup call starts again from the default policy
        setup("testnet")
        self.assertEqual(get_proprietary_merge(), PROPRIETARY_MERGE_STRICT)


if __name__ == "__main__":
    unittest.main()
