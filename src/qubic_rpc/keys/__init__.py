"""
Keys - Ed25519 wallet and K12 hashing for the Qubic client.

Wallets own their private key; every other component works with public
keys, addresses and signatures only.
"""
