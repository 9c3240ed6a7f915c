"""
Raster image handling for the cartridge codec.

Modules:
    raster: PNG decoding to canonical RGBA buffers and encoding back
"""

from .raster import (
    CHANNELS,
    PNG_SIGNATURE,
    ColorType,
    PngHeader,
    RawImageBuffer,
    decode,
    encode,
    read_header,
)

__all__ = [
    "CHANNELS",
    "PNG_SIGNATURE",
    "ColorType",
    "PngHeader",
    "RawImageBuffer",
    "decode",
    "encode",
    "read_header",
]
