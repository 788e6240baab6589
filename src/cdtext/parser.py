"""
CD-Text Parser
==============

This module ties the pack reader and the entry assembler together.

CDTextParser
------------
The CDTextParser class decodes a complete CD-Text buffer on construction
and keeps the packs, the entries, the per-block size information and every
condition found along the way. It can be built from bare pack data, from a
drive's READ TOC response, or from a file holding either.

Usage Examples
--------------
Decoding a captured dump:
    >>> from cdtext import CDTextParser, PackType
    >>> parser = CDTextParser.from_file("disc.cdt")
    >>> print(parser.get_text(PackType.TITLE))
    >>> for track in parser.list_tracks():
    ...     print(track, parser.get_text(PackType.TITLE, track))

Checking what went wrong:
    >>> for condition in parser.conditions:
    ...     print(condition)
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, Optional, Union
import logging

from cdtext.config import DecoderConfig
from cdtext.entries import (
    BlockSizeInfo,
    CDTextEntry,
    EntryAssembler,
    collect_block_info,
)
from cdtext.errors import (
    CDTextError,
    CDTextFormatError,
    ConditionCollector,
    ConditionKind,
    DecodeCondition,
)
from cdtext.packs import (
    PackType,
    RawPack,
    has_response_header,
    read_packs,
    split_response,
)

# Logger for this module
logger = logging.getLogger(__name__)


@dataclass
class CDTextParser:
    """
    Parser for a CD-Text buffer.

    Attributes:
        data: Bare pack data (response header already removed)
        declared_length: Usable length of data; None means all of it
        config: Decoder settings
        packs: Packs read from the buffer
        entries: Decoded entries
        block_info: Size information per language block
        conditions: Recoverable problems found while decoding

    Example:
        >>> parser = CDTextParser(data)
        >>> parser.get_text(PackType.PERFORMER)
        'Miles Davis'
    """
    # Raw pack data (private, not exposed in repr)
    data: bytes = field(repr=False)

    declared_length: Optional[int] = None
    config: DecoderConfig = field(default_factory=DecoderConfig)

    packs: list[RawPack] = field(default_factory=list, repr=False)
    entries: list[CDTextEntry] = field(default_factory=list)
    block_info: dict[int, BlockSizeInfo] = field(default_factory=dict)
    conditions: list[DecodeCondition] = field(default_factory=list)

    def __post_init__(self) -> None:
        """Decode the buffer after initialization."""
        self._parse()

    @classmethod
    def from_bytes(
        cls,
        data: bytes,
        declared_length: Optional[int] = None,
        config: Optional[DecoderConfig] = None,
    ) -> "CDTextParser":
        """
        Create a CDTextParser from bare pack data.

        Args:
            data: Pack data without a response header
            declared_length: Usable length; defaults to the whole buffer
            config: Decoder settings
        """
        return cls(data=data, declared_length=declared_length, config=config or DecoderConfig())

    @classmethod
    def from_response(
        cls,
        data: bytes,
        config: Optional[DecoderConfig] = None,
    ) -> "CDTextParser":
        """
        Create a CDTextParser from a READ TOC/PMA/ATIP response.

        The declared length is taken from the 4-byte response header.

        Raises:
            TruncatedInputError: If the header claims more data than present
        """
        packs, declared_length = split_response(data)
        return cls.from_bytes(packs, declared_length, config)

    @classmethod
    def from_file(
        cls,
        filepath: Union[str, Path],
        header: Optional[bool] = None,
        config: Optional[DecoderConfig] = None,
    ) -> "CDTextParser":
        """
        Create a CDTextParser from a dump file.

        Args:
            filepath: Path to the dump
            header: True if the file starts with a response header, False
                if it holds bare packs, None to detect it
            config: Decoder settings

        Raises:
            FileNotFoundError: If the file doesn't exist
        """
        filepath = Path(filepath)
        data = filepath.read_bytes()

        if header is None:
            header = has_response_header(data)
            logger.debug(f"{filepath}: response header {'detected' if header else 'not detected'}")

        if header:
            return cls.from_response(data, config)
        return cls.from_bytes(data, config=config)

    def _parse(self) -> None:
        """
        Decode the buffer.

        Called automatically during initialization. CDTextError subclasses
        (truncation, strict-mode failures) propagate as they are; anything
        unexpected is wrapped in CDTextFormatError.
        """
        collector = ConditionCollector()
        try:
            reader = read_packs(
                self.data,
                self.declared_length,
                verify_checksums=self.config.verify_checksums,
                strict=self.config.strict,
            )
            collector.extend(reader.conditions)
            self.packs = reader.packs

            assembler = EntryAssembler(self.config)
            self.entries = assembler.assemble(self.packs)
            collector.extend(assembler.conditions)

            self.block_info = collect_block_info(self.packs)
        except CDTextError as e:
            logger.error(f"Failed to decode CD-Text: {e}")
            raise
        except Exception as e:
            logger.error(f"Unexpected error decoding CD-Text: {e}")
            raise CDTextFormatError(f"Failed to decode CD-Text: {e}") from e

        self.conditions = collector.conditions
        logger.debug(
            f"Decoded {len(self.packs)} packs into {len(self.entries)} entries "
            f"({len(self.conditions)} conditions)"
        )

    # =========================================================================
    # Public Query Methods
    # =========================================================================

    def get_entry(self, pack_type: PackType, track: int = 0) -> Optional[CDTextEntry]:
        """
        Get the first entry of a type for a track.

        Args:
            pack_type: Kind of field
            track: Track number (0 = whole disc)

        Returns:
            The entry if present, None otherwise
        """
        for entry in self.entries:
            if entry.pack_type is pack_type and entry.track_number == track:
                return entry
        return None

    def get_text(self, pack_type: PackType, track: int = 0) -> Optional[str]:
        """
        Get the text of a field.

        Example:
            >>> parser.get_text(PackType.TITLE)       # album title
            >>> parser.get_text(PackType.TITLE, 3)    # title of track 3
        """
        entry = self.get_entry(pack_type, track)
        return entry.text if entry else None

    def list_tracks(self) -> list[int]:
        """
        List the track numbers that carry at least one text entry.

        Returns:
            Sorted track numbers, excluding 0 (the disc)
        """
        return sorted({
            entry.track_number
            for entry in self.entries
            if entry.is_text and not entry.is_disc_level
        })

    def iter_track_entries(self, track: int) -> Iterator[CDTextEntry]:
        """
        Iterate over the entries of one track.

        Yields:
            CDTextEntry instances for the track, in decode order
        """
        for entry in self.entries:
            if entry.track_number == track:
                yield entry

    def has_condition(self, kind: ConditionKind) -> bool:
        """Return True if a condition of this kind was found."""
        return any(c.kind is kind for c in self.conditions)

    @property
    def is_valid(self) -> bool:
        """True if decoding found no problems at all."""
        return not self.conditions

    def get_info(self) -> dict:
        """
        Get summary information about the decoded CD-Text.

        Returns:
            Dictionary with counts, tracks and block languages
        """
        languages = {}
        for block_number, info in sorted(self.block_info.items()):
            languages[block_number] = info.get_language(block_number)

        return {
            "pack_count": len(self.packs),
            "entry_count": len(self.entries),
            "invalid_checksums": sum(1 for p in self.packs if p.checksum_invalid),
            "album_title": self.get_text(PackType.TITLE),
            "album_performer": self.get_text(PackType.PERFORMER),
            "tracks": self.list_tracks(),
            "blocks": sorted({p.block_number for p in self.packs}),
            "languages": languages,
            "condition_count": len(self.conditions),
        }


# =============================================================================
# Convenience Functions
# =============================================================================

def parse_cdtext(
    data: bytes,
    declared_length: Optional[int] = None,
    config: Optional[DecoderConfig] = None,
) -> CDTextParser:
    """
    Decode bare CD-Text pack data.

    Args:
        data: Pack data without a response header
        declared_length: Usable length; defaults to the whole buffer
        config: Decoder settings

    Returns:
        A CDTextParser instance

    Raises:
        TruncatedInputError: If declared_length exceeds the buffer
    """
    return CDTextParser.from_bytes(data, declared_length, config)


def parse_cdtext_file(
    filepath: Union[str, Path],
    header: Optional[bool] = None,
    config: Optional[DecoderConfig] = None,
) -> CDTextParser:
    """
    Decode a CD-Text dump file.

    Raises:
        FileNotFoundError: If the file doesn't exist
        TruncatedInputError: If the file is shorter than it claims
    """
    return CDTextParser.from_file(filepath, header, config)
