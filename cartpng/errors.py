"""
Cartridge Codec Errors.

Every failure raised by the codec derives from CartError. Each carries a
human-readable message, a numeric code and a details dictionary holding
the sizes involved, so callers in the persistence layer can surface a
"file not saved" or "corrupt file" condition without parsing strings.

Codes:
    1001: DecodeError - not a decodable PNG
    1002: CapacityExceeded - payload does not fit into the carrier
    1003: TruncatedPayload - recovered length points past the carrier data
    1004: InvalidDensity - bit density outside 1..8
"""

from typing import Any, Dict, Optional


class CartError(Exception):
    """Base exception for cartridge codec errors."""

    default_code: Optional[int] = None

    def __init__(self, message: str, code: Optional[int] = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.code = code if code is not None else self.default_code
        self.details = details or {}

    def __str__(self) -> str:
        base = f"{type(self).__name__}: {self.message}"
        if self.code:
            base += f" (Code: {self.code})"
        return base


class DecodeError(CartError):
    """Raised when image bytes are not a PNG the codec can normalize."""

    default_code = 1001


class CapacityExceeded(CartError):
    """Raised when a framed payload needs more carrier bytes than available."""

    default_code = 1002


class TruncatedPayload(CartError):
    """Raised when an embedded length field implies more data than present."""

    default_code = 1003


class InvalidDensity(CartError, ValueError):
    """Raised when the bit density is outside the supported 1..8 range."""

    default_code = 1004


MIN_BITS = 1
MAX_BITS = 8


def check_bits(bits: int) -> int:
    """
    Validate a bit density.

    Args:
        bits: Number of low-order bits per carrier byte

    Returns:
        The validated density

    Raises:
        InvalidDensity: If bits is not an integer in [1, 8]
    """
    if isinstance(bits, bool) or not isinstance(bits, int) or not MIN_BITS <= bits <= MAX_BITS:
        raise InvalidDensity(
            f"Bit density must be between {MIN_BITS} and {MAX_BITS}, got {bits!r}",
            details={"bits": bits},
        )
    return bits
