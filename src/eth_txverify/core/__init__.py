"""
Amount conversion, hex normalization, validators and provider utilities.
"""

from .codec import scaled_hex_to_decimal, to_scaled_hex
from .formatting import format_amount

__all__ = ["format_amount", "scaled_hex_to_decimal", "to_scaled_hex"]
