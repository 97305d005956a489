"""
On-chain layer: account codec, PDA derivation, instruction builders and
transaction submission for the SAID program.
"""
