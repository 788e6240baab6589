"""
CD-Text Pack Checksum
=====================

Every 18-byte CD-Text pack ends with a 16-bit CRC protecting the preceding
16 bytes (4-byte header + 12-byte payload).

Technical Details
-----------------
- Polynomial: x^16 + x^12 + x^5 + 1 (0x1021, CRC-CCITT)
- Initial value: 0x0000
- No bit reflection
- The stored value is the one's complement of the CRC (XOR 0xFFFF)
- Stored big-endian in pack bytes 16-17

Without the final inversion this is CRC-16/XMODEM, whose check value for
the ASCII string "123456789" is 0x31C3.

Usage
-----
    from cdtext.packs.checksum import calculate_pack_checksum, verify_pack_checksum

    crc = calculate_pack_checksum(pack[:16])
    ok = verify_pack_checksum(pack)
"""

from typing import Final

# =============================================================================
# CRC Constants
# =============================================================================

CRC_POLYNOMIAL: Final[int] = 0x1021
CRC_INITIAL: Final[int] = 0x0000
CRC_MASK: Final[int] = 0xFFFF

# Number of pack bytes covered by the checksum
CHECKSUM_COVERAGE: Final[int] = 16


# =============================================================================
# Lookup Table Generation
# =============================================================================

def _generate_crc_table() -> tuple[int, ...]:
    """
    Generate the 256-entry MSB-first lookup table for CRC_POLYNOMIAL.

    Returns:
        Tuple of 256 CRC values, one per possible leading byte.
    """
    table = []
    for byte_val in range(256):
        crc = byte_val << 8
        for _ in range(8):
            if crc & 0x8000:
                crc = ((crc << 1) ^ CRC_POLYNOMIAL) & CRC_MASK
            else:
                crc = (crc << 1) & CRC_MASK
        table.append(crc)
    return tuple(table)


# Pre-computed at import time
CRC_TABLE: Final[tuple[int, ...]] = _generate_crc_table()


# =============================================================================
# CRC Calculation
# =============================================================================

def crc16_ccitt(data: bytes, initial: int = CRC_INITIAL) -> int:
    """
    Calculate the plain (non-inverted) CRC-16/CCITT of some bytes.

    Args:
        data: Input bytes
        initial: Starting CRC, for incremental calculation

    Returns:
        16-bit CRC value

    Example:
        >>> hex(crc16_ccitt(b"123456789"))
        '0x31c3'
    """
    crc = initial
    for byte in data:
        crc = ((crc << 8) & CRC_MASK) ^ CRC_TABLE[((crc >> 8) ^ byte) & 0xFF]
    return crc


def calculate_pack_checksum(pack: bytes) -> int:
    """
    Calculate the checksum stored in the last two bytes of a pack.

    Args:
        pack: The pack bytes; only the first 16 are used, so either the
              16-byte header+payload or the full 18-byte pack is accepted

    Returns:
        The inverted CRC as stored on disc

    Raises:
        ValueError: If fewer than 16 bytes are given
    """
    if len(pack) < CHECKSUM_COVERAGE:
        raise ValueError(
            f"Pack too short for checksum: need {CHECKSUM_COVERAGE} bytes, got {len(pack)}"
        )
    return crc16_ccitt(pack[:CHECKSUM_COVERAGE]) ^ CRC_MASK


def verify_pack_checksum(pack: bytes) -> bool:
    """
    Verify the checksum of a complete 18-byte pack.

    Returns:
        True if the stored checksum matches, False otherwise (including
        when the pack is not 18 bytes long)
    """
    if len(pack) != CHECKSUM_COVERAGE + 2:
        return False
    stored = checksum_from_bytes(pack[CHECKSUM_COVERAGE:])
    return calculate_pack_checksum(pack) == stored


# =============================================================================
# Utility Functions
# =============================================================================

def checksum_to_bytes(checksum: int) -> bytes:
    """
    Convert a checksum to the big-endian byte pair stored in a pack.

    Example:
        >>> checksum_to_bytes(0xCE3C)
        b'\\xce<'
    """
    return bytes([(checksum >> 8) & 0xFF, checksum & 0xFF])


def checksum_from_bytes(data: bytes) -> int:
    """
    Read a big-endian checksum.

    Raises:
        ValueError: If fewer than 2 bytes are given
    """
    if len(data) < 2:
        raise ValueError(f"Checksum requires 2 bytes, got {len(data)}")
    return (data[0] << 8) | data[1]
