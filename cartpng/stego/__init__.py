"""
Steganographic storage of carts inside a cover image.

Modules:
    bits: Bit-granular copies between byte buffers
    framing: Length-prefixed payload framing
    packer: Embedding and extraction over the cover image
    selftest: Round-trip oracle across all densities

Usage:
    >>> from cartpng.stego import CartPacker
    >>> packer = CartPacker()
    >>> png = packer.encode(4, cart_bytes)
    >>> cart_bytes = packer.decode(4, png)
"""

from .bits import transfer_bit_groups, transfer_bits
from .framing import PREFIX_SIZE, frame, unframe
from .packer import CartPacker, capacity, decode, default_packer, encode, load_cover
from .selftest import SelfTestResult, all_passed, run_self_test

__all__ = [
    "CartPacker",
    "PREFIX_SIZE",
    "SelfTestResult",
    "all_passed",
    "capacity",
    "decode",
    "default_packer",
    "encode",
    "frame",
    "load_cover",
    "run_self_test",
    "transfer_bit_groups",
    "transfer_bits",
    "unframe",
]
