#!/usr/bin/env python3

# Example: two signers of a 2-of-3 P2WSH multisig sign their own copy of a
# PSBT, the copies are combined, finalized and the transaction is extracted

import logging

from bitcoinpsbt.setup import setup
from bitcoinpsbt.combiner import combine
from bitcoinpsbt.errors import FinalizeError
from bitcoinpsbt.finalizer import extract, finalize
from bitcoinpsbt.hashfunctions import hash_sha256
from bitcoinpsbt.keys import PrivateKey, PrivateKeySigner
from bitcoinpsbt.psbt import PSBT
from bitcoinpsbt.roles import Creator, Signer, Updater
from bitcoinpsbt.script import Script
from bitcoinpsbt.transactions import Transaction, TxInput, TxOutput


def main():
    setup("testnet")
    logging.basicConfig(level=logging.DEBUG)

    keys = [
        PrivateKey("cTALNpTpRbbxTCJ2A5Vq88UxT44w1PE2cYqiB3n4hRvzyCev1Wwo"),
        PrivateKey("cV3R88re3AZSBnWhBBNdiCKTfwpMKkYYjdiR13HQzsU7zoRNX7JL"),
        PrivateKey("cNxX8M7XU8VNa5ofd8yk1eiZxaxNrQQyb7xNpwAmsrzEhcVwtCjs"),
    ]
    pubkeys = [key.get_public_key().to_bytes() for key in keys]

    witness_script = Script(
        ["OP_2"] + [pubkey.hex() for pubkey in pubkeys] + ["OP_3", "OP_CHECKMULTISIG"]
    )
    p2wsh = Script(["OP_0", hash_sha256(witness_script.to_bytes()).hex()])

    # the coordinator creates the PSBT (replace the outpoint with your own)
    txin = TxInput("76464c2b9e2af4d63ef38a77964b3b77e629dddefc5cb9eb1a3645b1608b790f", 0)
    tx = Transaction([txin], [TxOutput(90000, p2wsh)])
    psbt = Creator.create_v0(tx)
    updater = Updater(psbt)
    updater.add_witness_utxo(0, TxOutput(100000, p2wsh))
    updater.add_witness_script(0, witness_script)
    shared = psbt.to_base64()

    # every signer works on its own copy
    signed = []
    for key, pubkey in zip(keys[:2], pubkeys[:2]):
        copy = PSBT.from_base64(shared)
        Signer(PrivateKeySigner([key])).sign_input(copy, 0, pubkey)
        signed.append(copy.to_base64())

    # a single signature is not enough
    try:
        finalize(PSBT.from_base64(signed[0]))
    except FinalizeError as e:
        print(f"Cannot finalize yet: {e}")

    combined = combine(*[PSBT.from_base64(s) for s in signed])
    print(f"\nSignatures: {len(combined.inputs[0].partial_sigs)}")

    finalize(combined)
    signed_tx = extract(combined)
    print("\nRaw signed transaction:")
    print(signed_tx.to_hex())
    print(f"\nTxId: {signed_tx.get_txid()}")


if __name__ == "__main__":
    main()
