"""
Steganographic Cart Packer.

This module hides a binary cart inside the pixels of a fixed cover image and
recovers it again. The payload is framed with its length and spread over the
carrier one carrier byte at a time: carrier byte i receives framed bits
[i * bits, (i + 1) * bits) in its low `bits` bits, and its high bits are left
alone. Every carrier byte is touched at most once whatever the density, so
the disturbance stays spatially uniform and the density only controls how
many low bits of each byte change.

The density is never written into the image. Encoder and decoder must agree
on it out of band; decoding with another density yields garbage or a
TruncatedPayload error, never a reliable diagnosis.

Capacity for a carrier of C bytes at density `bits`:
    (C * bits) // 8 - 4 payload bytes

Example:
    >>> packer = CartPacker()
    >>> png = packer.encode(2, cart_bytes)
    >>> assert packer.decode(2, png) == cart_bytes
"""

import logging
from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import Optional

from ..config import DEFAULT_SETTINGS, CodecSettings
from ..errors import CapacityExceeded, TruncatedPayload, check_bits
from ..image import raster
from ..image.raster import RawImageBuffer
from .bits import transfer_bit_groups
from .framing import PREFIX_SIZE, frame, unframe

logger = logging.getLogger(__name__)


COVER_RESOURCE = "cover.png"


def _ceil_div(numerator: int, denominator: int) -> int:
    return -(-numerator // denominator)


def _freeze(raw: RawImageBuffer) -> RawImageBuffer:
    return RawImageBuffer(raw.width, raw.height, bytes(raw.pixels))


@lru_cache(maxsize=None)
def load_cover() -> RawImageBuffer:
    """
    Decode the built-in cover image.

    The result is cached for the life of the process. Its pixels are
    immutable bytes, so it can be shared freely; encoding always works on
    a copy.
    """
    data = (resources.files("cartpng") / "assets" / COVER_RESOURCE).read_bytes()
    cover = _freeze(raster.decode(data))
    logger.debug(f"Loaded built-in cover {cover.width}x{cover.height} ({cover.size} carrier bytes)")
    return cover


class CartPacker:
    """
    Embeds carts into a fixed cover image and extracts them back.

    Attributes:
        carrier: Decoded cover used by encode
        settings: Codec settings in effect
    """

    def __init__(self, cover: Optional[bytes] = None, settings: Optional[CodecSettings] = None):
        """
        Initialize the packer.

        Args:
            cover: PNG bytes of a substitute cover. Defaults to the cover
                named in settings, or the built-in one.
            settings: Codec settings, DEFAULT_SETTINGS when omitted

        Raises:
            DecodeError: If the substitute cover is not a decodable PNG
        """
        self._settings = settings or DEFAULT_SETTINGS

        if cover is not None:
            self._carrier = _freeze(raster.decode(cover))
        elif self._settings.cover_path:
            self._carrier = _freeze(raster.decode(Path(self._settings.cover_path).read_bytes()))
            logger.info(f"Using cover {self._settings.cover_path}")
        else:
            self._carrier = load_cover()

    @property
    def carrier(self) -> RawImageBuffer:
        return self._carrier

    @property
    def settings(self) -> CodecSettings:
        return self._settings

    def capacity(self, bits: int) -> int:
        """Largest payload in bytes that encode accepts at this density."""
        check_bits(bits)
        return max(0, self._carrier.size * bits // 8 - PREFIX_SIZE)

    def encode(self, bits: int, payload: bytes) -> bytes:
        """
        Embed payload into the cover.

        Args:
            bits: Bit density, 1-8 low bits per carrier byte
            payload: Cart bytes to hide

        Returns:
            PNG bytes of the stego image

        Raises:
            InvalidDensity: If bits is outside 1-8
            CapacityExceeded: If the framed payload does not fit
        """
        check_bits(bits)

        framed = frame(payload)
        groups = _ceil_div(len(framed) * 8, bits)

        if groups > self._carrier.size:
            raise CapacityExceeded(
                f"Data size ({len(payload)}) exceeds carrier capacity ({self.capacity(bits)}) at {bits} bits",
                details={"data_size": len(payload), "capacity": self.capacity(bits), "bits": bits},
            )

        logger.info(f"Embedding {len(payload)} bytes at {bits} bits, {groups}/{self._carrier.size} carrier bytes")

        carrier = self._carrier.copy()
        # The last group may run past the framed data; pad so it reads zeros
        padded = framed.ljust(_ceil_div(groups * bits, 8), b"\0")
        transfer_bit_groups(carrier.pixels, 0, 8, padded, 0, bits, bits, groups)

        return raster.encode(carrier, self._settings.compress_level)

    def decode(self, bits: int, image_bytes: bytes) -> bytes:
        """
        Extract a payload from a stego image.

        Args:
            bits: Bit density used at encode time
            image_bytes: PNG bytes produced by encode

        Returns:
            The recovered payload

        Raises:
            InvalidDensity: If bits is outside 1-8
            DecodeError: If image_bytes is not a decodable PNG
            TruncatedPayload: If the embedded length exceeds what the image holds
        """
        check_bits(bits)

        carrier = raster.decode(image_bytes)
        total_bits = carrier.size * bits

        if total_bits < PREFIX_SIZE * 8:
            raise TruncatedPayload(
                f"Image of {carrier.size} carrier bytes cannot hold a length prefix at {bits} bits",
                details={"available_bits": total_bits},
            )

        framed = bytearray(_ceil_div(total_bits, 8))
        transfer_bit_groups(framed, 0, bits, carrier.pixels, 0, 8, bits, carrier.size)

        length, payload = unframe(framed)
        if length * 8 + PREFIX_SIZE * 8 > total_bits:
            raise TruncatedPayload(
                f"Embedded length {length} exceeds the {total_bits} bits available at {bits} bits",
                details={"length": length, "available_bits": total_bits},
            )

        logger.info(f"Extracted {length} bytes at {bits} bits from {carrier.width}x{carrier.height} image")
        return payload


@lru_cache(maxsize=None)
def default_packer() -> CartPacker:
    """Shared packer over the built-in cover with default settings."""
    return CartPacker()


def encode(bits: int, payload: bytes) -> bytes:
    """Embed payload into the built-in cover. See CartPacker.encode."""
    return default_packer().encode(bits, payload)


def decode(bits: int, image_bytes: bytes) -> bytes:
    """Extract a payload embedded over the built-in cover. See CartPacker.decode."""
    return default_packer().decode(bits, image_bytes)


def capacity(bits: int) -> int:
    """Capacity of the built-in cover. See CartPacker.capacity."""
    return default_packer().capacity(bits)
