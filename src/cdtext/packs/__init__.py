"""
CD-Text Pack Reading
====================

This package turns a raw CD-Text buffer into RawPack objects:

- **read_packs / PackReader**: Walk the buffer in 18-byte strides
- **RawPack / PackType**: The decoded pack header, payload and CRC
- **Checksum utilities**: The inverted CRC-16/CCITT protecting each pack
- **split_response**: Strip the READ TOC/PMA/ATIP response header

Quick Start
-----------
    >>> from cdtext.packs import read_packs, split_response
    >>> data, length = split_response(response)
    >>> for pack in read_packs(data, length):
    ...     print(pack.get_type_name(), pack.track_number)
"""

from cdtext.packs.records import (
    PACK_SIZE,
    HEADER_SIZE,
    PAYLOAD_SIZE,
    MAX_CHARACTER_POSITION,
    PackType,
    RawPack,
)
from cdtext.packs.checksum import (
    crc16_ccitt,
    calculate_pack_checksum,
    verify_pack_checksum,
    checksum_to_bytes,
    checksum_from_bytes,
)
from cdtext.packs.reader import (
    RESPONSE_HEADER_SIZE,
    PackReader,
    read_packs,
    split_response,
    has_response_header,
)

__all__ = [
    # Layout
    "PACK_SIZE",
    "HEADER_SIZE",
    "PAYLOAD_SIZE",
    "MAX_CHARACTER_POSITION",
    "RESPONSE_HEADER_SIZE",
    # Records
    "PackType",
    "RawPack",
    # Checksum
    "crc16_ccitt",
    "calculate_pack_checksum",
    "verify_pack_checksum",
    "checksum_to_bytes",
    "checksum_from_bytes",
    # Reader
    "PackReader",
    "read_packs",
    "split_response",
    "has_response_header",
]
