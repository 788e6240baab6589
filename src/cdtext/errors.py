"""
CD-Text Error Hierarchy
=======================

This module defines the exceptions and the non-fatal decode conditions used
throughout the CD-Text decoder.

Exception Hierarchy
-------------------
CDTextError (base)
├── TruncatedInputError - declared length exceeds the buffer (always fatal)
└── CDTextFormatError - malformed CD-Text data
    ├── MalformedPackSizeError - length not a multiple of 18 (strict mode)
    └── ChecksumError - pack CRC mismatch (strict mode)

Decode Conditions
-----------------
CD-Text read from real discs is frequently imperfect. Apart from a truncated
buffer, problems are not raised by default: they are recorded as
DecodeCondition values (and as flags on the affected packs and entries) so
that as much metadata as possible is recovered from a damaged lead-in.

    >>> collector = ConditionCollector()
    >>> collector.add(ConditionKind.SEQUENCE_GAP, "expected 3, got 5", pack_index=4)
    >>> collector.has(ConditionKind.SEQUENCE_GAP)
    True
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


# =============================================================================
# Base Exception Class
# =============================================================================

class CDTextError(Exception):
    """
    Base exception for all CD-Text decoder errors.

    Callers can catch every decoder error with a single except clause:

        try:
            parser = parse_cdtext(data)
        except CDTextError as e:
            print(f"Error: {e}")
    """
    pass


class TruncatedInputError(CDTextError):
    """
    The declared length exceeds the size of the buffer.

    This is the only condition that aborts a decode: reading past the end of
    the buffer would produce garbage, so no partial result is returned.

    Attributes:
        declared_length: Number of bytes the caller claimed were available
        buffer_length: Number of bytes actually present
    """

    def __init__(self, declared_length: int, buffer_length: int, message: str = ""):
        self.declared_length = declared_length
        self.buffer_length = buffer_length
        if not message:
            message = (
                f"declared length {declared_length} exceeds buffer size "
                f"{buffer_length}"
            )
        super().__init__(message)


class CDTextFormatError(CDTextError):
    """
    Malformed CD-Text data.

    Raised for structural problems in the pack data. By default the decoder
    reports these as conditions instead; strict mode turns them into
    exceptions.
    """
    pass


class MalformedPackSizeError(CDTextFormatError):
    """
    The declared length is not a multiple of the 18-byte pack size.

    Only raised in strict mode. Otherwise the trailing bytes are ignored and
    a MALFORMED_PACK_SIZE condition is recorded.
    """

    def __init__(self, declared_length: int, remainder: int):
        self.declared_length = declared_length
        self.remainder = remainder
        super().__init__(
            f"declared length {declared_length} is not a multiple of 18 "
            f"({remainder} trailing bytes)"
        )


class ChecksumError(CDTextFormatError):
    """
    A pack's CRC does not match its contents.

    Only raised in strict mode. Otherwise the pack is flagged with
    checksum_invalid and still decoded.
    """

    def __init__(self, expected: int, actual: int, pack_index: Optional[int] = None):
        self.expected = expected
        self.actual = actual
        self.pack_index = pack_index
        location = f"pack {pack_index}: " if pack_index is not None else ""
        super().__init__(
            f"{location}CRC mismatch: expected {expected:04X}, got {actual:04X}"
        )


# =============================================================================
# Non-fatal Decode Conditions
# =============================================================================

class ConditionKind(Enum):
    """Kinds of recoverable problems found while decoding."""
    MALFORMED_PACK_SIZE = "malformed-pack-size"
    CHECKSUM_INVALID = "checksum-invalid"
    SEQUENCE_GAP = "sequence-gap"
    UNTERMINATED_FIELD = "unterminated-field"
    UNKNOWN_PACK_TYPE = "unknown-pack-type"
    CHARACTER_POSITION_MISMATCH = "character-position-mismatch"


@dataclass(frozen=True)
class DecodeCondition:
    """
    A recoverable problem found while decoding.

    Attributes:
        kind: What went wrong
        message: Human-readable description
        pack_index: Index of the pack involved, when there is one
    """
    kind: ConditionKind
    message: str
    pack_index: Optional[int] = None

    def __str__(self) -> str:
        if self.pack_index is not None:
            return f"pack {self.pack_index}: {self.kind.value}: {self.message}"
        return f"{self.kind.value}: {self.message}"


class ConditionCollector:
    """
    Collects decode conditions for reporting alongside the result.

    Example:
        collector = ConditionCollector()
        collector.add(ConditionKind.UNTERMINATED_FIELD, "TITLE track 3")
        if collector.has(ConditionKind.UNTERMINATED_FIELD):
            print(collector.report())
    """

    def __init__(self) -> None:
        self.conditions: list[DecodeCondition] = []

    def add(
        self,
        kind: ConditionKind,
        message: str,
        pack_index: Optional[int] = None,
    ) -> DecodeCondition:
        """Record a condition and return it."""
        condition = DecodeCondition(kind=kind, message=message, pack_index=pack_index)
        self.conditions.append(condition)
        return condition

    def extend(self, conditions: list[DecodeCondition]) -> None:
        """Record conditions gathered elsewhere."""
        self.conditions.extend(conditions)

    def has(self, kind: ConditionKind) -> bool:
        """Return True if a condition of this kind was recorded."""
        return any(c.kind is kind for c in self.conditions)

    def of_kind(self, kind: ConditionKind) -> list[DecodeCondition]:
        """Return the recorded conditions of one kind."""
        return [c for c in self.conditions if c.kind is kind]

    def count(self) -> int:
        """Return the number of recorded conditions."""
        return len(self.conditions)

    def report(self) -> str:
        """
        Format all conditions for display.

        Returns:
            One line per condition followed by a summary line
        """
        lines = [str(condition) for condition in self.conditions]
        word = "condition" if len(self.conditions) == 1 else "conditions"
        lines.append(f"{len(self.conditions)} {word}")
        return "\n".join(lines)

    def clear(self) -> None:
        """Forget all recorded conditions."""
        self.conditions.clear()
