#!/usr/bin/env python3

# Example: spending a taproot output with a single script leaf, once by the
# key path and once by the script path

from bitcoinpsbt.setup import setup
from bitcoinpsbt.finalizer import extract, finalize
from bitcoinpsbt.keys import PrivateKey, PrivateKeySigner
from bitcoinpsbt.roles import Creator, Signer, Updater
from bitcoinpsbt.script import Script
from bitcoinpsbt.transactions import Transaction, TxInput, TxOutput
from bitcoinpsbt.utils import ControlBlock, tapleaf_tagged_hash


def create_psbt(output_key):
    # the UTXO that we are spending (replace with your own)
    txin = TxInput("3d4c9d73c4c65772e645ff26493590ae4913d9c37125b72398222a553b73fa66", 0)
    txout = TxOutput(3000, Script(["OP_1", output_key.hex()]))
    psbt = Creator.create_v0(Transaction([txin], [txout]))
    Updater(psbt).add_witness_utxo(0, TxOutput(3500, Script(["OP_1", output_key.hex()])))
    return psbt


def main():
    setup("testnet")

    internal_priv = PrivateKey("cT33CWKwcV8afBs5NYzeSzeSoGETtAB8izjDjMEuGqyqPoF7fbQR")
    leaf_priv = PrivateKey("cSW2kQbqC9zkqagw8oTYKFTozKuZ214zd6CMTDs4V32cMfH3dgKa")
    internal_pub = internal_priv.get_public_key()
    leaf_xonly = leaf_priv.get_public_key().to_x_only_bytes()

    leaf_script = Script([leaf_xonly.hex(), "OP_CHECKSIG"])
    leaf_hash = tapleaf_tagged_hash(leaf_script.to_bytes())
    output_key, parity = internal_pub.get_taproot_output_key(leaf_hash)

    # key path: the internal key and the merkle root are needed to tweak the key
    psbt = create_psbt(output_key)
    updater = Updater(psbt)
    updater.set_tap_internal_key(0, internal_pub.to_x_only_bytes())
    updater.set_tap_merkle_root(0, leaf_hash)
    Signer(PrivateKeySigner([internal_priv])).sign_all(psbt, [internal_pub.to_bytes()])
    finalize(psbt)
    print("Key path spend:")
    print(extract(psbt).to_hex())

    # script path: the leaf script and its control block are needed
    psbt = create_psbt(output_key)
    control_block = ControlBlock(internal_pub.to_x_only_bytes(), [], 0xC0, parity)
    Updater(psbt).add_tap_leaf_script(0, control_block, leaf_script)
    Signer(PrivateKeySigner([leaf_priv])).sign_all(psbt, [leaf_xonly])
    finalize(psbt)
    print("\nScript path spend:")
    print(extract(psbt).to_hex())


if __name__ == "__main__":
    main()
