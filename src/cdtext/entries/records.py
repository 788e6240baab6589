"""
CD-Text Entry Definitions
=========================

A CDTextEntry is one reconstructed field: the text of a title, performer,
ISRC and so on for one track (or for the whole disc), assembled from the
payloads of one or more packs.
"""

from dataclasses import dataclass, field
from typing import Optional

from cdtext.charset import CharacterSet
from cdtext.packs.records import PackType


@dataclass(frozen=True)
class CDTextEntry:
    """
    One decoded CD-Text field.

    Attributes:
        pack_type: The kind of field (title, performer, ...)
        track_number: Track the field belongs to (0 = whole disc)
        text: Decoded text, or lowercase hex for binary pack types
        data: Raw field bytes (without terminator or genre code)
        sequence_numbers: Sequence numbers of the contributing packs
        block_number: Language block the field came from
        character_set: Character set the text was decoded with
        genre_code: Genre code (GENRE entries only)
        incomplete: Packs are missing (sequence gap or lost field start)
        truncated: The buffer ended before the field's terminator
        checksum_invalid: A contributing pack failed its CRC
        repeated: The field was the "same as previous track" marker and
            holds the previous track's text
    """
    pack_type: PackType
    track_number: int
    text: str
    data: bytes = field(default=b"", repr=False)
    sequence_numbers: tuple[int, ...] = ()
    block_number: int = 0
    character_set: CharacterSet = CharacterSet.ISO_8859_1
    genre_code: Optional[int] = None
    incomplete: bool = False
    truncated: bool = False
    checksum_invalid: bool = False
    repeated: bool = False

    @property
    def is_disc_level(self) -> bool:
        """True if the entry describes the whole disc."""
        return self.track_number == 0

    @property
    def is_text(self) -> bool:
        """True if text holds decoded characters rather than hex."""
        return self.pack_type.is_text

    @property
    def is_valid(self) -> bool:
        """True if no integrity problem affected this entry."""
        return not (self.incomplete or self.truncated or self.checksum_invalid)

    def get_track_label(self) -> str:
        """Label used when displaying the entry ("Album" or "Track #n")."""
        if self.is_disc_level:
            return "Album"
        return f"Track #{self.track_number}"

    def get_flags(self) -> list[str]:
        """Names of the flags set on this entry."""
        flags = []
        if self.incomplete:
            flags.append("incomplete")
        if self.truncated:
            flags.append("truncated")
        if self.checksum_invalid:
            flags.append("checksum-invalid")
        if self.repeated:
            flags.append("repeated")
        return flags
