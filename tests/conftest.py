# cartpng Test Configuration
# This file contains test settings and fixtures

import os
import struct
import sys
import zlib
from io import BytesIO

import pytest

# Add project root to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))


def _chunk(chunk_type: bytes, data: bytes) -> bytes:
    crc = zlib.crc32(chunk_type + data) & 0xFFFFFFFF
    return struct.pack(">I", len(data)) + chunk_type + data + struct.pack(">I", crc)


def build_png(width, height, bit_depth, color_type, rows, chunks=(), interlace=0):
    """
    Assemble a PNG by hand.

    rows are raw scanlines without the filter byte; chunks are
    (type, data) pairs placed between IHDR and IDAT (PLTE, tRNS, ...).
    With interlace=1, rows are the Adam7 pass scanlines in pass order.
    """
    header = struct.pack(">IIBBBBB", width, height, bit_depth, color_type, 0, 0, interlace)
    raw = b"".join(b"\x00" + bytes(row) for row in rows)

    data = b"\x89PNG\r\n\x1a\n" + _chunk(b"IHDR", header)
    for chunk_type, chunk_data in chunks:
        data += _chunk(chunk_type, chunk_data)
    data += _chunk(b"IDAT", zlib.compress(raw))
    data += _chunk(b"IEND", b"")
    return data


@pytest.fixture(scope="session")
def png_factory():
    """Return the hand-made PNG builder."""
    return build_png


@pytest.fixture(scope="session")
def packer():
    """Shared packer over the built-in cover."""
    from cartpng.stego.packer import default_packer
    return default_packer()


@pytest.fixture(scope="session")
def cover():
    """Decoded built-in cover image."""
    from cartpng.stego.packer import load_cover
    return load_cover()


@pytest.fixture
def small_cover_png():
    """A 16x16 RGB cover created with Pillow."""
    from PIL import Image
    import numpy as np

    img_array = np.zeros((16, 16, 3), dtype=np.uint8)
    img_array[:, :, 0] = 200
    img_array[4:12, 4:12, 1] = 90

    buffer = BytesIO()
    Image.fromarray(img_array).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def sample_payload():
    """Provide a 100-byte payload with every kind of byte value."""
    return bytes((i * 37 + 11) % 256 for i in range(100))
