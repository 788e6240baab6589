"""
CD-Text Entry Assembly
======================

This package turns raw packs into decoded fields:

- **assemble / EntryAssembler**: Fold packs into CDTextEntry records
- **CDTextEntry**: One decoded field with its integrity flags
- **BlockSizeInfo**: The per-block summary carried by SIZE_INFO packs
"""

from cdtext.entries.records import CDTextEntry
from cdtext.entries.assembler import EntryAssembler, assemble
from cdtext.entries.size_info import (
    SIZE_INFO_LENGTH,
    LANGUAGE_CODES,
    BlockSizeInfo,
    collect_block_info,
    language_name,
)

__all__ = [
    "CDTextEntry",
    "EntryAssembler",
    "assemble",
    "SIZE_INFO_LENGTH",
    "LANGUAGE_CODES",
    "BlockSizeInfo",
    "collect_block_info",
    "language_name",
]
