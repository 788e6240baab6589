"""
CD-Text Pack Reader
===================

This module walks a CD-Text buffer in fixed 18-byte strides and produces
RawPack objects in buffer order.

Buffer Formats
--------------
The reader works on bare pack data. Drives answer READ TOC/PMA/ATIP
(format 5) with a 4-byte header in front of the packs:

    Offset  Size    Description
    ------  ----    -----------
    0       2       Data length (big-endian), excluding these 2 bytes
    2       2       Reserved
    4       n*18    Packs

split_response() removes that header and returns the usable pack length.

Usage Examples
--------------
    >>> from cdtext.packs import read_packs
    >>> reader = read_packs(data)
    >>> for pack in reader:
    ...     print(pack.index, pack.get_type_name(), pack.checksum_invalid)

A buffer whose length is not a multiple of 18 is still read; the trailing
bytes are ignored and reported:

    >>> reader = read_packs(data, 18 * 3 + 5)
    >>> len(reader), reader.remainder
    (3, 5)
"""

from dataclasses import dataclass, field
from typing import Iterator, Optional
import logging

from cdtext.errors import (
    ChecksumError,
    ConditionKind,
    DecodeCondition,
    MalformedPackSizeError,
    TruncatedInputError,
)
from cdtext.packs.checksum import calculate_pack_checksum
from cdtext.packs.records import PACK_SIZE, RawPack

logger = logging.getLogger(__name__)

# READ TOC/PMA/ATIP response header (length word + 2 reserved bytes)
RESPONSE_HEADER_SIZE = 4


# =============================================================================
# Response Header
# =============================================================================

def split_response(data: bytes) -> tuple[bytes, int]:
    """
    Strip the 4-byte READ TOC response header.

    Args:
        data: The drive response, header included

    Returns:
        Tuple of (pack bytes, declared pack length). The declared length is
        taken from the header and may exceed the bytes present, in which
        case read_packs() raises TruncatedInputError.

    Raises:
        TruncatedInputError: If the header itself is incomplete
    """
    if len(data) < RESPONSE_HEADER_SIZE:
        raise TruncatedInputError(
            RESPONSE_HEADER_SIZE, len(data),
            f"response header needs {RESPONSE_HEADER_SIZE} bytes, got {len(data)}",
        )

    length_field = (data[0] << 8) | data[1]
    # The length field counts the 2 reserved bytes as well
    declared_length = max(0, length_field - 2)
    logger.debug(f"Response header: length field {length_field}, {declared_length} bytes of packs")
    return bytes(data[RESPONSE_HEADER_SIZE:]), declared_length


def has_response_header(data: bytes) -> bool:
    """
    Guess whether a buffer starts with a READ TOC response header.

    The header is assumed present when its length field accounts for the
    whole buffer and what follows is a whole number of packs.
    """
    if len(data) < RESPONSE_HEADER_SIZE + PACK_SIZE:
        return False
    length_field = (data[0] << 8) | data[1]
    body = len(data) - RESPONSE_HEADER_SIZE
    return length_field + 2 == len(data) and body % PACK_SIZE == 0


# =============================================================================
# Pack Reader
# =============================================================================

@dataclass
class PackReader:
    """
    Lazy, restartable sequence of the packs in a buffer.

    Construction validates the declared length; iteration decodes packs on
    demand. Each iteration starts again at offset 0 and yields identical
    packs.

    Attributes:
        data: The usable bytes (a copy of buffer[:declared_length])
        declared_length: Length the caller declared
        verify_checksums: Flag packs whose CRC does not match
        strict: Raise instead of recording conditions
        remainder: Trailing bytes ignored because they do not fill a pack
        conditions: Problems found while validating the buffer
    """
    data: bytes = field(repr=False)
    declared_length: int
    verify_checksums: bool = True
    strict: bool = False
    remainder: int = 0
    conditions: list[DecodeCondition] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.remainder = self.declared_length % PACK_SIZE
        if self.remainder:
            if self.strict:
                raise MalformedPackSizeError(self.declared_length, self.remainder)
            message = (
                f"declared length {self.declared_length} is not a multiple of "
                f"{PACK_SIZE}; ignoring {self.remainder} trailing bytes"
            )
            logger.warning(message)
            self.conditions.append(
                DecodeCondition(ConditionKind.MALFORMED_PACK_SIZE, message)
            )

    def __len__(self) -> int:
        return self.declared_length // PACK_SIZE

    def __iter__(self) -> Iterator[RawPack]:
        for index in range(len(self)):
            offset = index * PACK_SIZE
            pack = RawPack.from_bytes(
                self.data[offset:offset + PACK_SIZE],
                index=index,
                offset=offset,
                verify_checksum=self.verify_checksums,
            )
            if pack.checksum_invalid:
                expected = calculate_pack_checksum(pack.raw_bytes)
                if self.strict:
                    raise ChecksumError(expected, pack.checksum, pack_index=index)
                logger.debug(
                    f"Pack {index}: CRC mismatch (stored {pack.checksum:04X}, "
                    f"calculated {expected:04X})"
                )
            yield pack

    @property
    def packs(self) -> list[RawPack]:
        """All packs as a list."""
        return list(self)

    @property
    def is_malformed(self) -> bool:
        """True if trailing bytes were ignored."""
        return self.remainder != 0


def read_packs(
    buffer: bytes,
    declared_length: Optional[int] = None,
    *,
    verify_checksums: bool = True,
    strict: bool = False,
) -> PackReader:
    """
    Read the 18-byte packs of a CD-Text buffer.

    Args:
        buffer: Raw pack data (without the READ TOC response header)
        declared_length: Usable length; defaults to the whole buffer
        verify_checksums: Flag packs whose CRC does not match
        strict: Raise MalformedPackSizeError / ChecksumError instead of
            recording conditions

    Returns:
        A PackReader yielding RawPack objects in buffer order

    Raises:
        ValueError: If declared_length is negative
        TruncatedInputError: If declared_length exceeds the buffer
        MalformedPackSizeError: In strict mode, if declared_length is not a
            multiple of 18
    """
    if declared_length is None:
        declared_length = len(buffer)
    if declared_length < 0:
        raise ValueError(f"declared length must not be negative, got {declared_length}")
    if declared_length > len(buffer):
        raise TruncatedInputError(declared_length, len(buffer))

    return PackReader(
        data=bytes(buffer[:declared_length]),
        declared_length=declared_length,
        verify_checksums=verify_checksums,
        strict=strict,
    )
