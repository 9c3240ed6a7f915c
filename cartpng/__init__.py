"""
cartpng - Cartridge PNG Codec

Stores a binary cart inside the pixels of an ordinary PNG and recovers it
exactly.

Subpackages:
    image: PNG decoding to canonical RGBA buffers and encoding back
    stego: Bit transfer, framing, packing and self-test

Usage:
    >>> import cartpng
    >>> png = cartpng.encode(2, cart_bytes)
    >>> assert cartpng.decode(2, png) == cart_bytes
"""

from .config import DEFAULT_SETTINGS, CodecSettings, load_settings
from .errors import CapacityExceeded, CartError, DecodeError, InvalidDensity, TruncatedPayload
from .stego import CartPacker, capacity, decode, encode, run_self_test

__all__ = [
    "CapacityExceeded",
    "CartError",
    "CartPacker",
    "CodecSettings",
    "DEFAULT_SETTINGS",
    "DecodeError",
    "InvalidDensity",
    "TruncatedPayload",
    "capacity",
    "decode",
    "encode",
    "load_settings",
    "run_self_test",
]

__version__ = "1.0.0"
