"""
Payload Framing.

A framed payload is a 4-byte little-endian length followed by the payload
itself, so the exact payload boundary survives extraction from a carrier
that always yields more bits than were embedded.
"""

import struct
from typing import Tuple

from ..errors import CapacityExceeded, TruncatedPayload

_LENGTH = struct.Struct("<I")
PREFIX_SIZE = _LENGTH.size
MAX_PAYLOAD_SIZE = 0xFFFFFFFF


def frame(payload: bytes) -> bytes:
    """Prefix payload with its length."""
    if len(payload) > MAX_PAYLOAD_SIZE:
        raise CapacityExceeded(
            f"Payload of {len(payload)} bytes does not fit a 32-bit length field",
            details={"data_size": len(payload), "capacity": MAX_PAYLOAD_SIZE},
        )
    return _LENGTH.pack(len(payload)) + bytes(payload)


def unframe(data: bytes) -> Tuple[int, bytes]:
    """
    Split framed data into its length and payload.

    Bytes following the payload are ignored.

    Raises:
        TruncatedPayload: If the prefix or the payload it announces is cut short
    """
    if len(data) < PREFIX_SIZE:
        raise TruncatedPayload(
            f"Framed data holds {len(data)} bytes, too short for the length prefix",
            details={"available": len(data)},
        )

    (length,) = _LENGTH.unpack_from(data)
    available = len(data) - PREFIX_SIZE
    if length > available:
        raise TruncatedPayload(
            f"Length prefix announces {length} bytes but only {available} follow",
            details={"length": length, "available": available},
        )

    return length, bytes(data[PREFIX_SIZE:PREFIX_SIZE + length])
