"""
Raster Codec Module.

This module converts PNG byte streams into a canonical raw pixel buffer and
back. Whatever color type and bit depth the source file uses, decoding
always yields 8 bits per channel, 4 channels (RGBA), row-major and
top-to-bottom, so the steganographic layer can treat every image as a flat
run of carrier bytes.

Normalization is an ordered pipeline of small transforms. Each transform
checks its own precondition and is a no-op otherwise, so running the whole
pipeline on any standard PNG converges to the same shape:

    1. strip_16              16-bit samples -> 8-bit (high byte kept); a tRNS
                             key is matched on all 16 bits first
    2. expand_palette        palette indices -> RGB
    3. expand_gray           1/2/4-bit gray -> 8-bit gray
    4. transparency_to_alpha tRNS key or palette alpha -> alpha channel
    5. add_opaque_alpha      gray/RGB without alpha -> alpha 0xFF
    6. gray_to_rgb           gray+alpha -> RGBA

Encoding always writes 8-bit RGBA, non-interlaced, with Pillow's default
filtering. The compressed bytes are not part of the contract, only the
decoded pixels are.
"""

import logging
import struct
from dataclasses import dataclass
from enum import IntEnum
from io import BytesIO
from typing import Any, Callable, NamedTuple, Tuple, Union

import numpy as np
import png
from PIL import Image

from ..errors import DecodeError

logger = logging.getLogger(__name__)


PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"
CHANNELS = 4

# length, type, width, height, depth, color type, compression, filter, interlace
_IHDR = struct.Struct(">I4sIIBBBBB")
_IHDR_LENGTH = 13


class ColorType(IntEnum):
    """PNG color types as stored in the IHDR chunk."""

    GRAY = 0
    RGB = 2
    PALETTE = 3
    GRAY_ALPHA = 4
    RGBA = 6


_VALID_DEPTHS = {
    ColorType.GRAY: (1, 2, 4, 8, 16),
    ColorType.RGB: (8, 16),
    ColorType.PALETTE: (1, 2, 4, 8),
    ColorType.GRAY_ALPHA: (8, 16),
    ColorType.RGBA: (8, 16),
}


class PngHeader(NamedTuple):
    """Fields of the IHDR chunk the codec cares about."""

    width: int
    height: int
    bit_depth: int
    color_type: ColorType
    interlaced: bool


@dataclass
class RawImageBuffer:
    """
    Canonical decoded image.

    Attributes:
        width: Image width in pixels
        height: Image height in pixels
        pixels: RGBA bytes, row-major, top-to-bottom. Immutable bytes for
            shared buffers, bytearray for buffers being modified.
    """

    width: int
    height: int
    pixels: Union[bytes, bytearray]

    def __post_init__(self):
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Invalid image dimensions {self.width}x{self.height}")

        expected = self.width * self.height * CHANNELS
        if len(self.pixels) != expected:
            raise ValueError(
                f"Pixel buffer holds {len(self.pixels)} bytes, "
                f"expected {expected} for {self.width}x{self.height} RGBA"
            )

    @property
    def size(self) -> int:
        """Number of carrier bytes (width * height * 4)."""
        return len(self.pixels)

    def copy(self) -> "RawImageBuffer":
        """Return a private, mutable copy of this buffer."""
        return RawImageBuffer(self.width, self.height, bytearray(self.pixels))

    def pixel(self, x: int, y: int) -> Tuple[int, int, int, int]:
        """Return the RGBA value at (x, y)."""
        offset = (y * self.width + x) * CHANNELS
        return tuple(self.pixels[offset:offset + CHANNELS])


@dataclass
class _Stage:
    """Intermediate state carried through the normalization pipeline."""

    image: Image.Image
    color_type: ColorType
    bit_depth: int
    # int gray key, (r, g, b) key, or a per-pixel alpha plane once a key has been matched
    transparency: Any = None
    source: bytes = b""


def read_header(image_bytes: bytes) -> PngHeader:
    """
    Validate the PNG signature and parse the IHDR chunk.

    Args:
        image_bytes: PNG file contents

    Returns:
        PngHeader with dimensions, bit depth and color type

    Raises:
        DecodeError: If the signature or IHDR chunk is missing or invalid
    """
    data = bytes(image_bytes[:len(PNG_SIGNATURE) + _IHDR.size])

    if data[:len(PNG_SIGNATURE)] != PNG_SIGNATURE:
        raise DecodeError(
            "Invalid PNG signature",
            details={"signature": data[:len(PNG_SIGNATURE)].hex()},
        )

    if len(data) < len(PNG_SIGNATURE) + _IHDR.size:
        raise DecodeError("PNG header is truncated", details={"size": len(image_bytes)})

    length, chunk_type, width, height, depth, color, _, _, interlace = _IHDR.unpack_from(
        data, len(PNG_SIGNATURE)
    )

    if chunk_type != b"IHDR" or length != _IHDR_LENGTH:
        raise DecodeError(f"Expected IHDR chunk, found {chunk_type!r}")

    try:
        color_type = ColorType(color)
    except ValueError:
        raise DecodeError(f"Unknown PNG color type {color}", details={"color_type": color}) from None

    if depth not in _VALID_DEPTHS[color_type]:
        raise DecodeError(
            f"Bit depth {depth} is not valid for color type {color_type.name}",
            details={"bit_depth": depth, "color_type": color},
        )

    if width == 0 or height == 0:
        raise DecodeError(f"Invalid image dimensions {width}x{height}")

    return PngHeader(width, height, depth, color_type, bool(interlace))


# =============================================================================
# NORMALIZATION PIPELINE
# =============================================================================

def _attach_alpha(stage: _Stage, alpha: np.ndarray) -> None:
    samples = np.asarray(stage.image)
    stage.image = Image.fromarray(np.dstack((samples, alpha)))
    stage.color_type = ColorType.GRAY_ALPHA if stage.color_type == ColorType.GRAY else ColorType.RGBA
    stage.transparency = None


def _read_wide_samples(source: bytes) -> np.ndarray:
    """Read every sample of a 16-bit PNG at full depth, shaped (height, width, planes)."""
    try:
        width, height, rows, _ = png.Reader(bytes=source).read()
        samples = np.vstack([np.asarray(row, dtype=np.uint32) for row in rows])
    except png.Error as e:
        raise DecodeError(f"Cannot read 16-bit samples: {e}") from e

    return samples.reshape(height, width, -1)


def _key_alpha(stage: _Stage) -> np.ndarray:
    """Alpha plane that is 0 where a 16-bit sample equals the tRNS key."""
    if stage.image.mode.startswith("I"):
        samples = np.asarray(stage.image).astype(np.uint32)[..., np.newaxis]
    else:
        # Pillow drops the low bytes of 16-bit RGB
        samples = _read_wide_samples(stage.source)

    key = np.atleast_1d(np.asarray(stage.transparency, dtype=np.uint32))
    matches = np.all(samples == key, axis=-1)
    return np.where(matches, 0, 0xFF).astype(np.uint8)


def _strip_16(stage: _Stage) -> _Stage:
    """Reduce 16-bit samples to 8 bits by keeping the high byte."""
    if stage.bit_depth != 16:
        return stage

    if stage.color_type in (ColorType.GRAY, ColorType.RGB) and stage.transparency is not None:
        stage.transparency = _key_alpha(stage)

    # Pillow already reduces 16-bit RGB, RGBA and gray+alpha; only gray stays wide
    if stage.image.mode.startswith("I"):
        samples = np.asarray(stage.image).astype(np.uint32)
        stage.image = Image.fromarray((samples >> 8).astype(np.uint8))

    stage.bit_depth = 8
    return stage


def _expand_palette(stage: _Stage) -> _Stage:
    """Replace palette indices by their RGB entries."""
    if stage.color_type != ColorType.PALETTE:
        return stage

    indices = np.asarray(stage.image)
    palette = np.zeros((256, 3), dtype=np.uint8)
    entries = np.array(stage.image.getpalette() or [], dtype=np.uint8).reshape(-1, 3)[:256]
    palette[:len(entries)] = entries

    if stage.transparency is not None:
        alpha_table = np.full(256, 0xFF, dtype=np.uint8)
        if isinstance(stage.transparency, int):
            alpha_table[stage.transparency] = 0
        else:
            table = np.frombuffer(bytes(stage.transparency), dtype=np.uint8)[:256]
            alpha_table[:len(table)] = table
        stage.transparency = alpha_table[indices]

    stage.image = Image.fromarray(palette[indices])
    stage.color_type = ColorType.RGB
    stage.bit_depth = 8
    return stage


def _expand_gray(stage: _Stage) -> _Stage:
    """Expand 1, 2 and 4-bit grayscale samples to the full 8-bit range."""
    if stage.color_type != ColorType.GRAY or stage.bit_depth >= 8:
        return stage

    # Pillow scales 2 and 4-bit samples on load; 1-bit arrives as mode "1"
    if stage.image.mode != "L":
        stage.image = stage.image.convert("L")

    if isinstance(stage.transparency, int):
        stage.transparency *= 0xFF // ((1 << stage.bit_depth) - 1)

    stage.bit_depth = 8
    return stage


def _transparency_to_alpha(stage: _Stage) -> _Stage:
    """Turn a tRNS key or palette alpha plane into a real alpha channel."""
    if stage.transparency is None:
        return stage

    if stage.color_type not in (ColorType.GRAY, ColorType.RGB):
        # tRNS is not allowed alongside a real alpha channel
        stage.transparency = None
        return stage

    if isinstance(stage.transparency, np.ndarray):
        alpha = stage.transparency
    else:
        samples = np.asarray(stage.image)
        if samples.ndim == 2:
            matches = samples == stage.transparency
        else:
            matches = np.all(samples == np.array(stage.transparency), axis=-1)
        alpha = np.where(matches, 0, 0xFF).astype(np.uint8)

    _attach_alpha(stage, alpha)
    return stage


def _add_opaque_alpha(stage: _Stage) -> _Stage:
    """Give gray and RGB images a fully opaque alpha channel."""
    if stage.color_type not in (ColorType.GRAY, ColorType.RGB):
        return stage

    width, height = stage.image.size
    _attach_alpha(stage, np.full((height, width), 0xFF, dtype=np.uint8))
    return stage


def _gray_to_rgb(stage: _Stage) -> _Stage:
    """Replicate gray samples across the three color channels."""
    if stage.color_type != ColorType.GRAY_ALPHA:
        return stage

    stage.image = stage.image.convert("RGBA")
    stage.color_type = ColorType.RGBA
    return stage


NORMALIZATION_PIPELINE: Tuple[Callable[[_Stage], _Stage], ...] = (
    _strip_16,
    _expand_palette,
    _expand_gray,
    _transparency_to_alpha,
    _add_opaque_alpha,
    _gray_to_rgb,
)


# =============================================================================
# PUBLIC API
# =============================================================================

def decode(image_bytes: bytes) -> RawImageBuffer:
    """
    Decode PNG bytes into a canonical RGBA buffer.

    Args:
        image_bytes: PNG file contents of any standard color type and depth

    Returns:
        RawImageBuffer with a fresh, caller-owned bytearray of pixels

    Raises:
        DecodeError: If the bytes are not a decodable PNG
    """
    header = read_header(image_bytes)
    source = bytes(image_bytes)

    try:
        image = Image.open(BytesIO(source), formats=["PNG"])
        image.load()
    except (OSError, SyntaxError, ValueError, Image.DecompressionBombError) as e:
        raise DecodeError(f"Cannot decode PNG data: {e}") from e

    with image:
        stage = _Stage(
            image=image,
            color_type=header.color_type,
            bit_depth=header.bit_depth,
            transparency=image.info.get("transparency"),
            source=source,
        )
        for step in NORMALIZATION_PIPELINE:
            stage = step(stage)

        if stage.image.mode != "RGBA":
            raise DecodeError(
                f"Image mode {stage.image.mode} did not normalize to RGBA",
                details={"color_type": header.color_type.name, "bit_depth": header.bit_depth},
            )
        pixels = bytearray(stage.image.tobytes())

    logger.debug(
        f"Decoded {header.width}x{header.height} PNG "
        f"({header.color_type.name}, {header.bit_depth}-bit) to RGBA"
    )
    return RawImageBuffer(header.width, header.height, pixels)


def encode(raw: RawImageBuffer, compress_level: int = 6) -> bytes:
    """
    Encode a canonical RGBA buffer as PNG bytes.

    Args:
        raw: Buffer to write
        compress_level: zlib compression level, 0-9

    Returns:
        PNG file contents, 8-bit RGBA, non-interlaced
    """
    image = Image.frombytes("RGBA", (raw.width, raw.height), bytes(raw.pixels))

    buffer = BytesIO()
    image.save(buffer, format="PNG", compress_level=compress_level)
    data = buffer.getvalue()

    logger.debug(f"Encoded {raw.width}x{raw.height} RGBA buffer into {len(data)} PNG bytes")
    return data
