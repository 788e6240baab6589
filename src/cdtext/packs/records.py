"""
CD-Text Pack Definitions
========================

This module defines the raw pack structure read from the lead-in.

Pack Structure
--------------
CD-Text is stored as a sequence of 18-byte packs:

    Offset  Size    Description
    ------  ----    -----------
    0       1       ID1: pack type ($80-$8F)
    1       1       ID2: bit 7 extension flag, bits 0-6 track number
    2       1       ID3: sequence number
    3       1       ID4: bit 7 DBCC, bits 4-6 block number,
                         bits 0-3 character position
    4       12      Payload (text or binary data)
    16      2       CRC (big-endian, inverted CRC-16/CCITT)

Track number 0 refers to the whole disc. For text packs, the track number
is that of the first character in the payload, and the character position
counts how many characters of that track's field were carried by earlier
packs (15 meaning 15 or more).

Pack Types
----------
- $80-$85: Title, performer, songwriter, composer, arranger, message
- $86: Disc identification
- $87: Genre (2-byte genre code followed by text)
- $88, $89: TOC information (binary)
- $8A-$8C: Reserved
- $8D: Closed information
- $8E: UPC/EAN (disc) and ISRC (tracks)
- $8F: Block size information (binary)
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Optional

from cdtext.packs.checksum import calculate_pack_checksum, checksum_from_bytes


# =============================================================================
# Pack Layout Constants
# =============================================================================

PACK_SIZE = 18
HEADER_SIZE = 4
PAYLOAD_SIZE = 12
CHECKSUM_OFFSET = HEADER_SIZE + PAYLOAD_SIZE

# Character position saturates at 15 ("15 or more")
MAX_CHARACTER_POSITION = 15


# =============================================================================
# Pack Type
# =============================================================================

class PackType(IntEnum):
    """
    CD-Text pack type identifiers (ID1).

    Each type is either free text, decoded with the block's character set,
    or binary data passed through untouched.
    """
    TITLE = 0x80
    PERFORMER = 0x81
    SONGWRITER = 0x82
    COMPOSER = 0x83
    ARRANGER = 0x84
    MESSAGE = 0x85
    DISC_ID = 0x86
    GENRE = 0x87
    TOC_INFO = 0x88
    TOC_INFO2 = 0x89
    RESERVED_1 = 0x8A
    RESERVED_2 = 0x8B
    RESERVED_3 = 0x8C
    CLOSED_INFO = 0x8D
    UPC_EAN = 0x8E
    SIZE_INFO = 0x8F

    @classmethod
    def from_code(cls, code: int) -> Optional["PackType"]:
        """Convert an ID1 byte to a PackType, or None if it is not one."""
        try:
            return cls(code)
        except ValueError:
            return None

    @property
    def is_text(self) -> bool:
        """True if the payload carries null-terminated text fields."""
        return _IS_TEXT[self]

    @property
    def is_single_byte_only(self) -> bool:
        """True for types that are ISO 646 text even in double-byte blocks."""
        return self in (PackType.DISC_ID, PackType.UPC_EAN)

    @property
    def field_header_size(self) -> int:
        """Binary bytes preceding the text of each field."""
        return 2 if self is PackType.GENRE else 0

    def get_description(self) -> str:
        """Get a human-readable description of the pack type."""
        return _DESCRIPTIONS[self]


# Exhaustive over PackType: a new member without an entry fails at import.
_IS_TEXT = {
    PackType.TITLE: True,
    PackType.PERFORMER: True,
    PackType.SONGWRITER: True,
    PackType.COMPOSER: True,
    PackType.ARRANGER: True,
    PackType.MESSAGE: True,
    PackType.DISC_ID: True,
    PackType.GENRE: True,
    PackType.TOC_INFO: False,
    PackType.TOC_INFO2: False,
    PackType.RESERVED_1: False,
    PackType.RESERVED_2: False,
    PackType.RESERVED_3: False,
    PackType.CLOSED_INFO: False,
    PackType.UPC_EAN: True,
    PackType.SIZE_INFO: False,
}

_DESCRIPTIONS = {
    PackType.TITLE: "Title",
    PackType.PERFORMER: "Performer",
    PackType.SONGWRITER: "Songwriter",
    PackType.COMPOSER: "Composer",
    PackType.ARRANGER: "Arranger",
    PackType.MESSAGE: "Message",
    PackType.DISC_ID: "Disc Identification",
    PackType.GENRE: "Genre",
    PackType.TOC_INFO: "TOC Information",
    PackType.TOC_INFO2: "Second TOC Information",
    PackType.RESERVED_1: "Reserved (0x8A)",
    PackType.RESERVED_2: "Reserved (0x8B)",
    PackType.RESERVED_3: "Reserved (0x8C)",
    PackType.CLOSED_INFO: "Closed Information",
    PackType.UPC_EAN: "UPC/EAN or ISRC",
    PackType.SIZE_INFO: "Block Size Information",
}


# =============================================================================
# Raw Pack
# =============================================================================

@dataclass(frozen=True)
class RawPack:
    """
    One 18-byte pack as read from the buffer.

    Attributes:
        index: Position of the pack in the buffer (0-based)
        offset: Byte offset of the pack in the buffer
        type_code: The raw ID1 byte
        pack_type: ID1 as a PackType, or None for an unknown code
        track_number: Track number (0 = whole disc)
        extension_flag: Bit 7 of ID2 (always 0 on conforming discs)
        sequence_number: Sequence counter (ID3)
        block_number: Language block (0-7)
        character_position: Characters of the current field in earlier packs
        is_double_byte: DBCC flag, set for double-byte character blocks
        payload: The 12 data bytes
        checksum: The stored CRC
        checksum_invalid: True if verification ran and the CRC did not match
        raw_bytes: The exact 18 bytes from the buffer
    """
    index: int
    offset: int
    type_code: int
    pack_type: Optional[PackType]
    track_number: int
    extension_flag: bool
    sequence_number: int
    block_number: int
    character_position: int
    is_double_byte: bool
    payload: bytes = field(repr=False)
    checksum: int = 0
    checksum_invalid: bool = False
    raw_bytes: bytes = field(default=b"", repr=False)

    @classmethod
    def from_bytes(
        cls,
        data: bytes,
        index: int = 0,
        offset: int = 0,
        verify_checksum: bool = True,
    ) -> "RawPack":
        """
        Decode one pack.

        Args:
            data: Exactly 18 bytes
            index: Ordinal of the pack in its buffer
            offset: Byte offset of the pack in its buffer
            verify_checksum: Compare the stored CRC against a recomputed one

        Raises:
            ValueError: If data is not 18 bytes long
        """
        if len(data) != PACK_SIZE:
            raise ValueError(f"Pack must be {PACK_SIZE} bytes, got {len(data)}")

        data = bytes(data)
        id4 = data[3]
        checksum = checksum_from_bytes(data[CHECKSUM_OFFSET:])

        checksum_invalid = False
        if verify_checksum:
            checksum_invalid = calculate_pack_checksum(data) != checksum

        return cls(
            index=index,
            offset=offset,
            type_code=data[0],
            pack_type=PackType.from_code(data[0]),
            track_number=data[1] & 0x7F,
            extension_flag=bool(data[1] & 0x80),
            sequence_number=data[2],
            block_number=(id4 >> 4) & 0x07,
            character_position=id4 & 0x0F,
            is_double_byte=bool(id4 & 0x80),
            payload=data[HEADER_SIZE:CHECKSUM_OFFSET],
            checksum=checksum,
            checksum_invalid=checksum_invalid,
            raw_bytes=data,
        )

    @property
    def is_disc_level(self) -> bool:
        """True if the pack refers to the whole disc rather than a track."""
        return self.track_number == 0

    def get_type_name(self) -> str:
        """Get a human-readable name for this pack's type."""
        if self.pack_type is None:
            return f"Unknown (0x{self.type_code:02X})"
        return self.pack_type.get_description()
