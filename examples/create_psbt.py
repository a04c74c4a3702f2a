#!/usr/bin/env python3

# Example: creating version 0 and version 2 PSBTs and adding UTXO information

from bitcoinpsbt.setup import setup
from bitcoinpsbt.hashfunctions import hash_hash160
from bitcoinpsbt.keys import PrivateKey
from bitcoinpsbt.psbt import PSBT
from bitcoinpsbt.psbt_utils import KeyOriginInfo
from bitcoinpsbt.roles import Constructor, Creator, Updater
from bitcoinpsbt.script import Script
from bitcoinpsbt.transactions import Transaction, TxInput, TxOutput
from bitcoinpsbt.constants import TX_MODIFIABLE_INPUTS, TX_MODIFIABLE_OUTPUTS


def main():
    # always remember to setup the network
    setup("testnet")

    private_key = PrivateKey("cTALNpTpRbbxTCJ2A5Vq88UxT44w1PE2cYqiB3n4hRvzyCev1Wwo")
    pubkey = private_key.get_public_key().to_bytes()
    p2wpkh = Script(["OP_0", hash_hash160(pubkey).hex()])

    # the output we are spending (replace with your own)
    txid = "b3ca1c4cc778380d1e5376a5517445104e46e97176e40741508a3b07a6483ad3"
    vout = 0
    spent_output = TxOutput(990000, p2wpkh)

    # version 0: the unsigned transaction is embedded in the PSBT
    tx = Transaction([TxInput(txid, vout)], [TxOutput(980000, p2wpkh)])
    psbt = Creator.create_v0(tx)

    updater = Updater(psbt)
    updater.add_witness_utxo(0, spent_output)
    updater.add_input_bip32_derivation(
        0, pubkey, KeyOriginInfo.from_string("d90c6a4f", "m/84'/1'/0'/0/0")
    )

    print("Version 0 PSBT (Base64):")
    print(psbt.to_base64())
    print(f"Unique id: {psbt.unique_id()}")

    # version 2: inputs and outputs can be added as long as they are modifiable
    psbt_v2 = Creator.create_v2(
        fallback_locktime=0, tx_modifiable=TX_MODIFIABLE_INPUTS | TX_MODIFIABLE_OUTPUTS
    )
    Constructor.add_input(psbt_v2, TxInput(txid, vout))
    Constructor.add_output(psbt_v2, TxOutput(980000, p2wpkh))
    Updater(psbt_v2).add_witness_utxo(0, spent_output)

    print("\nVersion 2 PSBT (Base64):")
    print(psbt_v2.to_base64())

    # both describe the same transaction
    print(f"Unique id: {psbt_v2.unique_id()}")
    print(f"Same transaction: {psbt_v2.unique_id() == psbt.unique_id()}")

    # PSBTs are exchanged as base64
    decoded = PSBT.from_base64(psbt.to_base64())
    print(f"\nDecoded: {decoded}")


if __name__ == "__main__":
    main()
