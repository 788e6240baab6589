"""
CD-Text Character Sets
======================

Each CD-Text language block declares the character code used by its text
packs (byte 0 of the block's size information). Single-byte codes store one
character per byte; double-byte codes store two bytes per character and
terminate a field with a 0x00 0x00 code unit.

    Code    Character set               Width
    ----    -------------               -----
    $00     ISO 8859-1                  1
    $01     ISO 646 (ASCII)             1
    $80     MS-JIS (Shift-JIS)          2
    $81     Korean                      2
    $82     Mandarin (standard Chinese) 2

Reference
---------
- IEC 61866, Annex J (character codes)
"""

from enum import IntEnum
from typing import Optional


class CharacterSet(IntEnum):
    """Character codes declared by the size information of a block."""
    ISO_8859_1 = 0x00
    ASCII = 0x01
    MS_JIS = 0x80
    KOREAN = 0x81
    MANDARIN = 0x82

    @classmethod
    def from_code(cls, code: int) -> Optional["CharacterSet"]:
        """Return the character set for a code byte, or None if unknown."""
        try:
            return cls(code)
        except ValueError:
            return None

    @classmethod
    def from_name(cls, name: str) -> "CharacterSet":
        """
        Look up a character set by member name (case-insensitive).

        Dashes are accepted in place of underscores, so "iso-8859-1" and
        "ms-jis" both work.

        Raises:
            ValueError: If no character set has that name
        """
        key = name.strip().upper().replace("-", "_")
        try:
            return cls[key]
        except KeyError:
            choices = ", ".join(member.name.lower() for member in cls)
            raise ValueError(f"Unknown character set '{name}' (choose from: {choices})")

    @property
    def codec(self) -> str:
        """Python codec name used to decode this character set."""
        return _CODECS[self]

    @property
    def width(self) -> int:
        """Bytes per character code unit."""
        return 2 if self.is_double_byte else 1

    @property
    def is_double_byte(self) -> bool:
        """True for the double-byte character codes ($80 and up)."""
        return self.value >= 0x80

    def decode(self, data: bytes) -> str:
        """Decode field bytes, replacing anything the codec cannot map."""
        return bytes(data).decode(self.codec, errors="replace")


_CODECS = {
    CharacterSet.ISO_8859_1: "latin-1",
    CharacterSet.ASCII: "ascii",
    CharacterSet.MS_JIS: "shift_jis",
    CharacterSet.KOREAN: "euc_kr",
    CharacterSet.MANDARIN: "gb2312",
}
