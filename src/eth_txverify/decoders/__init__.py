"""
Call-data decoders for transfer verification.

Only the ERC-20 transfer(address,uint256) call shape is supported.
"""

from .erc20 import TRANSFER_METHOD_ID, DecodedInput, decode_transfer_input

__all__ = ["TRANSFER_METHOD_ID", "DecodedInput", "decode_transfer_input"]
