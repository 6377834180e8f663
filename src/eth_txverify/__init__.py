"""
Ethereum Transfer Verification

Reads Ethereum-style transactions and their receipts, checks that they
represent a confirmed coin transfer or ERC-20 transfer call to an expected
receiver and amount, and converts between decimal amounts and the scaled
hex integers used on-chain.
"""

__version__ = "0.1.0"
