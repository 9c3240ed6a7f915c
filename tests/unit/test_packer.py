"""
Unit Tests for the Cart Packer

Covers capacity, the concrete 256x256 cover scenarios, the capacity
boundary, purity, density independence and the error taxonomy.
"""

import numpy as np
import pytest

from cartpng.config import CodecSettings
from cartpng.errors import CapacityExceeded, DecodeError, InvalidDensity, TruncatedPayload
from cartpng.image import raster
from cartpng.image.raster import RawImageBuffer
from cartpng.stego import packer as packer_module
from cartpng.stego.packer import CartPacker


class TestCover:
    """Test cases for the built-in cover."""

    def test_cover_dimensions(self, cover):
        """Test that the cover is 256x256 RGBA."""
        assert (cover.width, cover.height) == (256, 256)
        assert cover.size == 262144

    def test_cover_is_immutable_and_cached(self, cover):
        """Test that the cached cover is shared and read-only."""
        assert isinstance(cover.pixels, bytes)
        assert packer_module.load_cover() is cover


class TestCapacity:
    """Test cases for capacity calculation."""

    @pytest.mark.parametrize("bits", range(1, 9))
    def test_capacity_per_density(self, packer, bits):
        """Test capacity = C*bits/8 - 4 for the 256x256 cover."""
        assert packer.capacity(bits) == 32768 * bits - 4

    def test_module_level_capacity(self):
        """Test the default packer shortcut."""
        assert packer_module.capacity(1) == 32764

    @pytest.mark.parametrize("bits", [0, 9, -1, True, 2.0])
    def test_invalid_density(self, packer, bits):
        """Test that densities outside 1..8 are rejected."""
        with pytest.raises(InvalidDensity):
            packer.capacity(bits)

        with pytest.raises(ValueError):
            packer.encode(bits, b"x")


class TestRoundTrip:
    """Test cases for encode followed by decode."""

    def test_scenario_a_one_bit(self, packer, sample_payload):
        """Test 100 bytes at one bit per carrier byte."""
        image = packer.encode(1, sample_payload)

        assert packer.decode(1, image) == sample_payload

    def test_scenario_b_eight_bits(self, packer):
        """Test 262000 bytes at eight bits per carrier byte."""
        payload = np.random.default_rng(8).integers(0, 256, 262000, dtype=np.uint8).tobytes()

        assert packer.decode(8, packer.encode(8, payload)) == payload

    def test_scenario_b_overflow(self, packer):
        """Test that 262144 bytes no longer fit once framed."""
        with pytest.raises(CapacityExceeded) as exc_info:
            packer.encode(8, bytes(262144))

        assert exc_info.value.details["capacity"] == 262140

    def test_empty_payload(self, packer):
        """Test that an empty cart round-trips."""
        assert packer.decode(3, packer.encode(3, b"")) == b""

    @pytest.mark.parametrize("bits", [1, 3, 5, 8])
    def test_capacity_boundary(self, packer, bits):
        """Test that exactly full capacity works and one more byte fails."""
        size = packer.capacity(bits)
        payload = np.random.default_rng(bits).integers(0, 256, size, dtype=np.uint8).tobytes()

        assert packer.decode(bits, packer.encode(bits, payload)) == payload

        with pytest.raises(CapacityExceeded):
            packer.encode(bits, payload + b"\x00")

    def test_module_level_round_trip(self, sample_payload):
        """Test the module-level encode and decode helpers."""
        image = packer_module.encode(2, sample_payload)

        assert packer_module.decode(2, image) == sample_payload


class TestEmbedding:
    """Test cases for what encode does to the carrier."""

    def test_encode_is_deterministic(self, packer, sample_payload):
        """Test that equal inputs give equal decoded pixels."""
        first = raster.decode(packer.encode(4, sample_payload))
        second = raster.decode(packer.encode(4, sample_payload))

        assert bytes(first.pixels) == bytes(second.pixels)

    @pytest.mark.parametrize("bits", [1, 2, 7])
    def test_only_low_bits_change(self, packer, cover, bits):
        """Test that the high bits of every carrier byte are kept."""
        payload = bytes(range(256)) * 8
        stego = np.frombuffer(raster.decode(packer.encode(bits, payload)).pixels, dtype=np.uint8)
        original = np.frombuffer(cover.pixels, dtype=np.uint8)

        assert not np.any((stego ^ original) >> bits)

    def test_bytes_after_payload_untouched(self, packer, cover, sample_payload):
        """Test that carrier bytes past the last group are unchanged."""
        bits = 2
        groups = -(-(len(sample_payload) + 4) * 8 // bits)
        stego = raster.decode(packer.encode(bits, sample_payload))

        assert bytes(stego.pixels[groups:]) == cover.pixels[groups:]

    def test_cover_not_mutated(self, packer, cover, sample_payload):
        """Test that encoding leaves the shared cover intact."""
        before = bytes(cover.pixels)
        packer.encode(8, sample_payload)

        assert packer.carrier.pixels == before

    def test_density_independence(self, packer, sample_payload):
        """Test that each image only decodes with its own density."""
        one = packer.encode(1, sample_payload)
        two = packer.encode(2, sample_payload)

        assert raster.decode(one).pixels != raster.decode(two).pixels
        assert packer.decode(2, two) == sample_payload

        try:
            wrong = packer.decode(1, two)
        except TruncatedPayload:
            wrong = None
        assert wrong != sample_payload


class TestDecodeErrors:
    """Test cases for decode failures."""

    def test_not_a_png(self, packer):
        """Test that non-PNG input raises DecodeError."""
        with pytest.raises(DecodeError):
            packer.decode(1, b"not an image at all")

    def test_length_beyond_carrier(self, packer):
        """Test that an impossible length raises TruncatedPayload."""
        image = raster.encode(RawImageBuffer(8, 8, b"\xff" * 256))

        with pytest.raises(TruncatedPayload):
            packer.decode(8, image)

    def test_image_too_small_for_prefix(self, packer):
        """Test that a carrier smaller than the prefix is rejected."""
        image = raster.encode(RawImageBuffer(1, 1, b"\x00" * 4))

        with pytest.raises(TruncatedPayload):
            packer.decode(1, image)


class TestSubstituteCover:
    """Test cases for packers over other covers."""

    def test_explicit_cover(self, small_cover_png):
        """Test capacity and round trip over a 16x16 RGB cover."""
        packer = CartPacker(cover=small_cover_png)

        assert packer.carrier.size == 16 * 16 * 4
        assert packer.capacity(2) == 16 * 16 * 4 * 2 // 8 - 4

        payload = b"tiny cart"
        assert packer.decode(2, packer.encode(2, payload)) == payload

    def test_cover_path_setting(self, small_cover_png, tmp_path):
        """Test that settings.cover_path selects the carrier."""
        cover_file = tmp_path / "cover.png"
        cover_file.write_bytes(small_cover_png)

        packer = CartPacker(settings=CodecSettings(cover_path=str(cover_file)))

        assert (packer.carrier.width, packer.carrier.height) == (16, 16)

    def test_decode_is_carrier_agnostic(self, small_cover_png):
        """Test that any packer decodes an image made over another cover."""
        image = CartPacker(cover=small_cover_png).encode(4, b"portable")

        assert packer_module.decode(4, image) == b"portable"

    def test_invalid_cover(self):
        """Test that a bad substitute cover raises DecodeError."""
        with pytest.raises(DecodeError):
            CartPacker(cover=b"\x00" * 64)

    def test_small_cover_overflow(self, small_cover_png):
        """Test the capacity check on a small cover."""
        packer = CartPacker(cover=small_cover_png)

        with pytest.raises(CapacityExceeded):
            packer.encode(1, bytes(packer.capacity(1) + 1))
