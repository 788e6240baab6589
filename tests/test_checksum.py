"""
Pack Checksum Tests
===================

Tests for the CRC-16/CCITT checksum protecting each CD-Text pack.
"""

import pytest

from cdtext.packs import (
    calculate_pack_checksum,
    checksum_from_bytes,
    checksum_to_bytes,
    crc16_ccitt,
    verify_pack_checksum,
)
from cdtext.packs.checksum import CRC_TABLE


class TestCrc16Ccitt:
    """Tests for the plain CRC calculation."""

    def test_check_value(self):
        """The standard check string gives the CRC-16/XMODEM check value."""
        assert crc16_ccitt(b"123456789") == 0x31C3

    def test_empty(self):
        """No data leaves the initial value."""
        assert crc16_ccitt(b"") == 0

    def test_incremental(self):
        """Feeding data in two parts gives the same result."""
        whole = crc16_ccitt(b"123456789")
        part = crc16_ccitt(b"1234")
        assert crc16_ccitt(b"56789", part) == whole

    def test_table_size(self):
        assert len(CRC_TABLE) == 256
        assert CRC_TABLE[0] == 0
        assert CRC_TABLE[1] == 0x1021


class TestPackChecksum:
    """Tests for the inverted pack checksum."""

    def test_inverted(self):
        """The stored checksum is the bitwise inverse of the CRC."""
        body = bytes(range(16))
        assert calculate_pack_checksum(body) == crc16_ccitt(body) ^ 0xFFFF

    def test_only_first_16_bytes(self):
        """The checksum bytes themselves are not covered."""
        body = bytes(range(16))
        assert calculate_pack_checksum(body + b"\xAA\xBB") == calculate_pack_checksum(body)

    def test_too_short(self):
        with pytest.raises(ValueError):
            calculate_pack_checksum(bytes(15))

    def test_verify_valid(self, make_pack):
        pack = make_pack(0x80, 0, 0, b"Kind of Blue")
        assert verify_pack_checksum(pack)

    def test_verify_corrupt(self, make_pack):
        pack = make_pack(0x80, 0, 0, b"Kind of Blue", corrupt=True)
        assert not verify_pack_checksum(pack)

    def test_verify_flipped_payload_bit(self, make_pack):
        """A single changed bit in the payload is detected."""
        pack = bytearray(make_pack(0x80, 0, 0, b"Kind of Blue"))
        pack[6] ^= 0x01
        assert not verify_pack_checksum(bytes(pack))

    def test_verify_wrong_length(self):
        assert not verify_pack_checksum(bytes(17))
        assert not verify_pack_checksum(bytes(19))


class TestChecksumBytes:
    """Tests for checksum byte conversion."""

    def test_big_endian(self):
        assert checksum_to_bytes(0xCE3C) == b"\xCE\x3C"
        assert checksum_from_bytes(b"\xCE\x3C") == 0xCE3C

    def test_from_bytes_too_short(self):
        with pytest.raises(ValueError):
            checksum_from_bytes(b"\x01")
