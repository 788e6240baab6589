"""
CD-Text Decoder Configuration
=============================

Decoder settings with their defaults. Configuration can come from:
- Default values (defined here)
- Keyword arguments / with_overrides()
- Environment variables (DecoderConfig.from_env())

Environment variables (all optional):
    CDTEXT_VERIFY_CHECKSUMS: Verify pack CRCs (default: on)
    CDTEXT_SKIP_INVALID: Drop packs that fail their CRC (default: off)
    CDTEXT_STRICT: Raise on malformed size and CRC errors (default: off)
    CDTEXT_CHARSET: Character set when a block declares none (default: iso_8859_1)
"""

from dataclasses import dataclass, replace
from typing import Optional
import logging
import os

from cdtext.charset import CharacterSet

logger = logging.getLogger(__name__)

_TRUE_VALUES = ("1", "true", "yes", "on")
_FALSE_VALUES = ("0", "false", "no", "off")


def _parse_bool(value: str) -> Optional[bool]:
    """Parse an environment flag, returning None for unrecognised values."""
    value = value.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    return None


@dataclass(frozen=True)
class DecoderConfig:
    """
    Settings for one decode run.

    Attributes:
        verify_checksums: Check each pack's CRC and flag mismatches
        skip_invalid_checksums: Leave packs with a bad CRC out of the entries
            (they are still reported as conditions)
        strict: Raise MalformedPackSizeError / ChecksumError instead of
            recording conditions
        default_character_set: Character set for blocks that declare none
        resolve_repeat_markers: Replace the TAB "same as previous track"
            marker with the previous track's text
    """
    verify_checksums: bool = True
    skip_invalid_checksums: bool = False
    strict: bool = False
    default_character_set: CharacterSet = CharacterSet.ISO_8859_1
    resolve_repeat_markers: bool = True

    @classmethod
    def from_env(cls) -> "DecoderConfig":
        """
        Create a DecoderConfig from CDTEXT_* environment variables.

        Unset or invalid values leave the default in place.
        """
        changes = {}

        for name, attr in (
            ("CDTEXT_VERIFY_CHECKSUMS", "verify_checksums"),
            ("CDTEXT_SKIP_INVALID", "skip_invalid_checksums"),
            ("CDTEXT_STRICT", "strict"),
        ):
            if raw := os.environ.get(name):
                flag = _parse_bool(raw)
                if flag is None:
                    logger.warning(f"Ignoring invalid {name} value {raw!r}")
                else:
                    changes[attr] = flag

        if charset := os.environ.get("CDTEXT_CHARSET"):
            try:
                changes["default_character_set"] = CharacterSet.from_name(charset)
            except ValueError as e:
                logger.warning(f"Ignoring CDTEXT_CHARSET: {e}")

        return cls(**changes)

    def with_overrides(self, **changes) -> "DecoderConfig":
        """Return a copy with the given fields replaced."""
        return replace(self, **changes)
