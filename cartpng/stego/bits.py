"""
Bit-Plane Transfer.

Bit-granular copies between two independent byte buffers. Bits are
addressed little-endian within a byte: global bit index b lives in byte
b >> 3 at bit position b & 7.

transfer_bits copies one contiguous run of bits. transfer_bit_groups is the
batched form used by the packer: it performs many equally sized runs at a
fixed stride on each side in a single numpy pass, with exactly the result
of calling transfer_bits once per group in ascending order.
"""

import numpy as np


def _check_range(name: str, buffer_size: int, bit_offset: int, bit_count: int) -> None:
    if bit_offset < 0:
        raise ValueError(f"{name} bit offset must be non-negative, got {bit_offset}")
    if bit_offset + bit_count > buffer_size * 8:
        raise ValueError(
            f"{name} range [{bit_offset}, {bit_offset + bit_count}) exceeds "
            f"buffer of {buffer_size * 8} bits"
        )


def _unpack(buffer, first: int = 0, last: int = None) -> np.ndarray:
    view = np.frombuffer(buffer, dtype=np.uint8)
    return np.unpackbits(view[first:last], bitorder="little")


def transfer_bits(dst: bytearray, dst_bit_offset: int, src: bytes, src_bit_offset: int, bit_count: int) -> None:
    """
    Copy bit_count bits from src to dst.

    For every k in [0, bit_count) the bit at src position src_bit_offset + k
    is written to dst position dst_bit_offset + k. All other bits of dst,
    including the untouched bits of partially covered bytes, keep their
    values.

    Args:
        dst: Destination buffer, modified in place
        dst_bit_offset: First destination bit index
        src: Source buffer
        src_bit_offset: First source bit index
        bit_count: Number of bits to copy

    Raises:
        TypeError: If dst is not a bytearray
        ValueError: If either range falls outside its buffer
    """
    if not isinstance(dst, bytearray):
        raise TypeError(f"Destination must be a bytearray, got {type(dst).__name__}")
    if bit_count < 0:
        raise ValueError(f"Bit count must be non-negative, got {bit_count}")

    _check_range("Destination", len(dst), dst_bit_offset, bit_count)
    _check_range("Source", len(src), src_bit_offset, bit_count)

    if bit_count == 0:
        return

    dst_first = dst_bit_offset >> 3
    dst_last = (dst_bit_offset + bit_count + 7) >> 3
    src_first = src_bit_offset >> 3
    src_last = (src_bit_offset + bit_count + 7) >> 3

    window = _unpack(dst, dst_first, dst_last)
    source = _unpack(src, src_first, src_last)

    start = dst_bit_offset & 7
    src_start = src_bit_offset & 7
    window[start:start + bit_count] = source[src_start:src_start + bit_count]

    dst[dst_first:dst_last] = np.packbits(window, bitorder="little").tobytes()


def transfer_bit_groups(
    dst: bytearray,
    dst_bit_offset: int,
    dst_stride: int,
    src: bytes,
    src_bit_offset: int,
    src_stride: int,
    group_bits: int,
    group_count: int,
) -> None:
    """
    Copy group_count runs of group_bits bits at fixed strides.

    Equivalent to:

        for i in range(group_count):
            transfer_bits(dst, dst_bit_offset + i * dst_stride,
                          src, src_bit_offset + i * src_stride, group_bits)

    Destination groups must not overlap, i.e. dst_stride >= group_bits.

    Raises:
        TypeError: If dst is not a bytearray
        ValueError: If a group falls outside its buffer or groups overlap
    """
    if not isinstance(dst, bytearray):
        raise TypeError(f"Destination must be a bytearray, got {type(dst).__name__}")
    if group_bits < 0 or group_count < 0:
        raise ValueError("Group size and count must be non-negative")
    if group_count == 0 or group_bits == 0:
        return
    if dst_stride < group_bits or src_stride < 0:
        raise ValueError(
            f"Destination stride {dst_stride} would overlap groups of {group_bits} bits"
        )

    _check_range("Destination", len(dst), dst_bit_offset, (group_count - 1) * dst_stride + group_bits)
    _check_range("Source", len(src), src_bit_offset, (group_count - 1) * src_stride + group_bits)

    groups = np.arange(group_count, dtype=np.int64)[:, np.newaxis]
    lanes = np.arange(group_bits, dtype=np.int64)[np.newaxis, :]

    dst_bits = _unpack(dst)
    src_bits = _unpack(src)
    dst_bits[dst_bit_offset + groups * dst_stride + lanes] = src_bits[src_bit_offset + groups * src_stride + lanes]

    dst[:] = np.packbits(dst_bits, bitorder="little").tobytes()
