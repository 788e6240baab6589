"""
cdtext - CD-Text Decoder
========================

This package decodes CD-Text, the text stored alongside the table of
contents in the lead-in of audio CDs, into titles, performers, songwriters,
ISRC codes and the other fields a disc can carry.

CD-Text arrives as a sequence of 18-byte packs, either bare or behind the
4-byte header of a drive's READ TOC/PMA/ATIP (format 5) response. Each pack
carries a 12-byte slice of one null-terminated text stream, so a single
field can span several packs and one pack can close one field and open the
next.

Main Components
---------------
- **packs**: Pack reading
    Splits a buffer into RawPack records and verifies their CRCs

- **entries**: Entry assembly
    Reassembles the payload streams into CDTextEntry records per track

- **parser**: The CDTextParser façade
    Reads, assembles and collects conditions in one step

Quick Start
-----------
Decode a dump file:
    >>> from cdtext import CDTextParser, PackType
    >>> parser = CDTextParser.from_file("disc.cdt")
    >>> parser.get_text(PackType.TITLE)
    'Kind of Blue'

Decode a buffer read from a drive:
    >>> parser = CDTextParser.from_response(response)
    >>> for entry in parser.entries:
    ...     print(entry.get_track_label(), entry.pack_type.name, entry.text)

Or use the command-line tool:
    $ cdtext dump disc.cdt
    $ cdtext validate disc.cdt

Version History
---------------
1.0.0 - Initial release with pack reader, entry assembler and CLI
"""

__version__ = "1.0.0"
__author__ = "cdtext contributors"

# =============================================================================
# Public API Exports
# =============================================================================

from cdtext.errors import (
    CDTextError,
    TruncatedInputError,
    CDTextFormatError,
    MalformedPackSizeError,
    ChecksumError,
    ConditionKind,
    DecodeCondition,
    ConditionCollector,
)
from cdtext.charset import CharacterSet
from cdtext.config import DecoderConfig
from cdtext.packs import (
    PackType,
    RawPack,
    PackReader,
    read_packs,
    split_response,
    has_response_header,
    calculate_pack_checksum,
    verify_pack_checksum,
)
from cdtext.entries import (
    CDTextEntry,
    EntryAssembler,
    assemble,
    BlockSizeInfo,
    collect_block_info,
)
from cdtext.parser import (
    CDTextParser,
    parse_cdtext,
    parse_cdtext_file,
)

__all__ = [
    # Version
    "__version__",
    # Errors
    "CDTextError",
    "TruncatedInputError",
    "CDTextFormatError",
    "MalformedPackSizeError",
    "ChecksumError",
    "ConditionKind",
    "DecodeCondition",
    "ConditionCollector",
    # Configuration
    "CharacterSet",
    "DecoderConfig",
    # Packs
    "PackType",
    "RawPack",
    "PackReader",
    "read_packs",
    "split_response",
    "has_response_header",
    "calculate_pack_checksum",
    "verify_pack_checksum",
    # Entries
    "CDTextEntry",
    "EntryAssembler",
    "assemble",
    "BlockSizeInfo",
    "collect_block_info",
    # Parser
    "CDTextParser",
    "parse_cdtext",
    "parse_cdtext_file",
]
