"""
Block Size Information
======================

Each language block ends with three SIZE_INFO ($8F) packs whose track bytes
are 0, 1 and 2. Their payloads concatenate to a 36-byte summary:

    Offset  Size    Description
    ------  ----    -----------
    0       1       Character code of the block
    1       1       First track number
    2       1       Last track number
    3       1       Copyright / mode-2 flags
    4       16      Number of packs of each type $80-$8F
    20      8       Last sequence number of blocks 0-7
    28      8       Language code of blocks 0-7

Language codes follow the EBU table (EBU Tech 3264-E, Appendix 3).
"""

from dataclasses import dataclass, field
from typing import Iterable, Optional
import logging

from cdtext.charset import CharacterSet
from cdtext.packs.records import PAYLOAD_SIZE, PackType, RawPack

logger = logging.getLogger(__name__)

SIZE_INFO_LENGTH = 3 * PAYLOAD_SIZE

LANGUAGE_CODES = {
    0x00: "Unknown",
    0x01: "Albanian",
    0x02: "Breton",
    0x03: "Catalan",
    0x04: "Croatian",
    0x05: "Welsh",
    0x06: "Czech",
    0x07: "Danish",
    0x08: "German",
    0x09: "English",
    0x0A: "Spanish",
    0x0B: "Esperanto",
    0x0C: "Estonian",
    0x0D: "Basque",
    0x0E: "Faroese",
    0x0F: "French",
    0x10: "Frisian",
    0x11: "Irish",
    0x12: "Gaelic",
    0x13: "Galician",
    0x14: "Icelandic",
    0x15: "Italian",
    0x16: "Lappish",
    0x17: "Latin",
    0x18: "Latvian",
    0x19: "Luxembourgian",
    0x1A: "Lithuanian",
    0x1B: "Hungarian",
    0x1C: "Maltese",
    0x1D: "Dutch",
    0x1E: "Norwegian",
    0x1F: "Occitan",
    0x20: "Polish",
    0x21: "Portuguese",
    0x22: "Romanian",
    0x23: "Romansh",
    0x24: "Serbian",
    0x25: "Slovak",
    0x26: "Slovenian",
    0x27: "Finnish",
    0x28: "Swedish",
    0x29: "Turkish",
    0x2A: "Flemish",
    0x2B: "Wallon",
    0x56: "Russian",
    0x65: "Korean",
    0x69: "Japanese",
    0x75: "Chinese",
}


def language_name(code: int) -> str:
    """Get the name of an EBU language code."""
    return LANGUAGE_CODES.get(code, f"Unknown (0x{code:02X})")


@dataclass(frozen=True)
class BlockSizeInfo:
    """
    Decoded size information of one language block.

    Attributes:
        character_code: Raw character code byte
        first_track: First track number with CD-Text
        last_track: Last track number with CD-Text
        copyright_flags: Copyright / mode-2 flags byte
        pack_counts: Number of packs of each type $80-$8F
        last_sequence_numbers: Last sequence number of blocks 0-7
        language_codes: Language code of blocks 0-7
    """
    character_code: int
    first_track: int
    last_track: int
    copyright_flags: int
    pack_counts: tuple[int, ...] = field(default=(0,) * 16)
    last_sequence_numbers: tuple[int, ...] = field(default=(0,) * 8)
    language_codes: tuple[int, ...] = field(default=(0,) * 8)

    @classmethod
    def from_bytes(cls, data: bytes) -> "BlockSizeInfo":
        """
        Decode the 36 concatenated SIZE_INFO payload bytes.

        Raises:
            ValueError: If fewer than 36 bytes are given
        """
        if len(data) < SIZE_INFO_LENGTH:
            raise ValueError(
                f"Size information too short: need {SIZE_INFO_LENGTH} bytes, got {len(data)}"
            )
        return cls(
            character_code=data[0],
            first_track=data[1],
            last_track=data[2],
            copyright_flags=data[3],
            pack_counts=tuple(data[4:20]),
            last_sequence_numbers=tuple(data[20:28]),
            language_codes=tuple(data[28:36]),
        )

    @property
    def character_set(self) -> Optional[CharacterSet]:
        """The declared character set, or None for an unknown code."""
        return CharacterSet.from_code(self.character_code)

    @property
    def track_count(self) -> int:
        """Number of tracks covered by the block."""
        if self.last_track < self.first_track:
            return 0
        return self.last_track - self.first_track + 1

    def get_pack_count(self, pack_type: PackType) -> int:
        """Number of packs of one type declared for the block."""
        return self.pack_counts[pack_type - PackType.TITLE]

    def get_language(self, block_number: int) -> str:
        """Name of the language of a block."""
        return language_name(self.language_codes[block_number])


def collect_block_info(packs: Iterable[RawPack]) -> dict[int, BlockSizeInfo]:
    """
    Decode the size information of every block that carries a full set.

    Args:
        packs: Packs in buffer order

    Returns:
        Mapping of block number to its size information. Blocks missing one
        of the three SIZE_INFO packs are left out.
    """
    parts: dict[int, dict[int, bytes]] = {}
    for pack in packs:
        if pack.pack_type is PackType.SIZE_INFO and pack.track_number < 3:
            parts.setdefault(pack.block_number, {})[pack.track_number] = pack.payload

    blocks = {}
    for block_number, payloads in parts.items():
        if len(payloads) != 3:
            logger.debug(f"Block {block_number}: incomplete size information ({len(payloads)} of 3 packs)")
            continue
        data = b"".join(payloads[i] for i in range(3))
        blocks[block_number] = BlockSizeInfo.from_bytes(data)
    return blocks
