"""
CD-Text Entry Assembler
=======================

This module folds the packs produced by the pack reader into CDTextEntry
records.

How Fields Are Laid Out
-----------------------
Text of one pack type is written as one continuous byte stream per language
block: the disc field first, then track 1, track 2, and so on, each field
terminated by a null (0x00, or 0x00 0x00 for double-byte blocks). The
stream is cut into 12-byte payloads, so a field can span several packs and
a single pack can hold the end of one field and the start of the next:

    pack  track  payload
    ----  -----  ---------------------------
    0     0      "Kind of Blue"
    1     0      "\\0So What\\0Fred"
    2     2      "die Freeloa"...

The pack's track number belongs to the first character of its payload; a
field started after a terminator belongs to the next track.

Assembly Rules
--------------
- Bytes accumulate per (block, pack type) stream; finished fields are
  grouped by (pack type, track) in the order each group is first seen.
- Empty fields are kept only if more text follows; trailing nulls at the end
  of a stream are padding.
- A field that is a single TAB means "same as the previous track".
- A sequence gap marks the affected field incomplete; a field still open
  when the packs run out is emitted as truncated.
- A pack whose track differs from the open field's means the terminator
  was lost; the open field is emitted as truncated and a new one starts.
- A block's SIZE_INFO character code applies to the whole block, wherever
  its SIZE_INFO packs sit in the buffer.
- Binary pack types are not split on nulls: consecutive packs of the same
  track are concatenated and shown as hex.

Usage
-----
    >>> from cdtext.entries import assemble
    >>> for entry in assemble(read_packs(data)):
    ...     print(entry.get_track_label(), entry.pack_type.name, entry.text)
"""

from dataclasses import dataclass, field
from typing import Iterable, Optional
import logging

from cdtext.charset import CharacterSet
from cdtext.config import DecoderConfig
from cdtext.entries.records import CDTextEntry
from cdtext.errors import ConditionCollector, ConditionKind, DecodeCondition
from cdtext.packs.records import MAX_CHARACTER_POSITION, PackType, RawPack

logger = logging.getLogger(__name__)

# "Same as previous track" marker, by character width
_REPEAT_MARKERS = {1: b"\t", 2: b"\t\t"}


# =============================================================================
# Accumulator State
# =============================================================================

@dataclass
class _Field:
    """Bytes of one field while its packs are being visited."""
    pack_type: PackType
    track_number: int
    block_number: int
    character_set: CharacterSet
    data: bytearray = field(default_factory=bytearray)
    sequence_numbers: list[int] = field(default_factory=list)
    incomplete: bool = False
    checksum_invalid: bool = False
    truncated: bool = False
    entry: Optional[CDTextEntry] = None

    @property
    def header_size(self) -> int:
        return self.pack_type.field_header_size

    @property
    def text_bytes(self) -> bytes:
        return bytes(self.data[self.header_size:])

    @property
    def character_count(self) -> int:
        return len(self.text_bytes) // self.character_set.width

    @property
    def is_empty(self) -> bool:
        return len(self.data) <= self.header_size and not any(self.data)

    @property
    def genre_code(self) -> Optional[int]:
        if self.pack_type is not PackType.GENRE or len(self.data) < 2:
            return None
        return (self.data[0] << 8) | self.data[1]

    def add_pack(self, pack: RawPack) -> None:
        """Note that a pack contributed bytes to this field."""
        if not self.sequence_numbers or self.sequence_numbers[-1] != pack.sequence_number:
            self.sequence_numbers.append(pack.sequence_number)
        if pack.checksum_invalid:
            self.checksum_invalid = True

    def feed(self, chunk: bytes) -> tuple[int, bool]:
        """
        Append bytes up to and including the field terminator.

        Returns:
            Tuple of (bytes consumed from chunk, terminator found). The
            terminator itself is not kept.
        """
        width = self.character_set.width
        for index, byte in enumerate(chunk):
            self.data.append(byte)
            body = len(self.data) - self.header_size
            if body <= 0 or body % width:
                continue
            if not any(self.data[-width:]):
                del self.data[-width:]
                return index + 1, True
        return len(chunk), False


@dataclass
class _Stream:
    """Assembly state of one (block, pack type) byte stream."""
    block_number: int
    pack_type: PackType
    current: Optional[_Field] = None
    last_sequence: Optional[int] = None
    next_track: int = 0
    held_empty: list[_Field] = field(default_factory=list)
    previous_text: Optional[str] = None


# =============================================================================
# Entry Assembler
# =============================================================================

class EntryAssembler:
    """
    Folds raw packs into CDTextEntry records.

    One assembler can be reused; every call to assemble() starts from a
    clean state.

    Attributes:
        config: Decoder settings
        collector: Conditions found by the last assemble() call
    """

    def __init__(self, config: Optional[DecoderConfig] = None):
        self.config = config or DecoderConfig()
        self.collector = ConditionCollector()
        self._reset()

    def _reset(self) -> None:
        self._streams: dict[tuple[int, PackType], _Stream] = {}
        self._groups: dict[tuple[PackType, int], list[_Field]] = {}
        self._charsets: dict[int, CharacterSet] = {}

    @property
    def conditions(self) -> list[DecodeCondition]:
        """Conditions found by the last assemble() call."""
        return self.collector.conditions

    def assemble(self, packs: Iterable[RawPack]) -> list[CDTextEntry]:
        """
        Assemble entries from packs in buffer order.

        Args:
            packs: Raw packs, e.g. a PackReader

        Returns:
            Entries grouped by (pack type, track) in first-seen order
        """
        self._reset()
        self.collector.clear()

        packs = list(packs)
        self._scan_size_info(packs)
        for pack in packs:
            self._visit(pack)
        self._finish_streams()

        entries = []
        for fields in self._groups.values():
            entries.extend(f.entry for f in fields if f.entry is not None)
        logger.debug(f"Assembled {len(entries)} entries")
        return entries

    # =========================================================================
    # Pack Dispatch
    # =========================================================================

    def _visit(self, pack: RawPack) -> None:
        if pack.checksum_invalid:
            self.collector.add(
                ConditionKind.CHECKSUM_INVALID,
                f"CRC mismatch in {pack.get_type_name()} pack (stored {pack.checksum:04X})",
                pack.index,
            )
            if self.config.skip_invalid_checksums:
                logger.warning(f"Pack {pack.index}: CRC mismatch, pack skipped")
                return
            logger.warning(f"Pack {pack.index}: CRC mismatch, decoding anyway")

        if pack.pack_type is None:
            self.collector.add(
                ConditionKind.UNKNOWN_PACK_TYPE,
                f"unknown pack type 0x{pack.type_code:02X}",
                pack.index,
            )
            logger.warning(f"Pack {pack.index}: unknown pack type 0x{pack.type_code:02X}, skipped")
            return

        stream = self._get_stream(pack)
        gap = self._check_sequence(stream, pack)

        if pack.pack_type.is_text:
            self._feed_text(stream, pack, gap)
        else:
            self._feed_raw(stream, pack, gap)

    def _get_stream(self, pack: RawPack) -> _Stream:
        key = (pack.block_number, pack.pack_type)
        stream = self._streams.get(key)
        if stream is None:
            stream = _Stream(block_number=pack.block_number, pack_type=pack.pack_type)
            self._streams[key] = stream
        return stream

    def _check_sequence(self, stream: _Stream, pack: RawPack) -> bool:
        """Record a sequence gap; returns True if one was found."""
        previous = stream.last_sequence
        stream.last_sequence = pack.sequence_number
        if previous is None:
            return False

        expected = (previous + 1) & 0xFF
        if pack.sequence_number == expected:
            return False

        message = (
            f"{pack.pack_type.name} block {pack.block_number}: expected sequence "
            f"{expected}, got {pack.sequence_number}"
        )
        self.collector.add(ConditionKind.SEQUENCE_GAP, message, pack.index)
        logger.warning(f"Pack {pack.index}: {message}")
        return True

    # =========================================================================
    # Character Sets
    # =========================================================================

    def _scan_size_info(self, packs: list[RawPack]) -> None:
        """Read each block's declared character set before any field is folded."""
        for pack in packs:
            if pack.pack_type is not PackType.SIZE_INFO or pack.track_number != 0:
                continue
            if pack.checksum_invalid and self.config.skip_invalid_checksums:
                continue
            self._apply_size_info(pack)

    def _apply_size_info(self, pack: RawPack) -> None:
        """Take the block's character set from its first SIZE_INFO pack."""
        code = pack.payload[0]
        charset = CharacterSet.from_code(code)
        if charset is None:
            logger.warning(f"Block {pack.block_number}: unknown character code 0x{code:02X}")
            return
        if self._charsets.get(pack.block_number) is not charset:
            logger.info(f"Block {pack.block_number}: character set {charset.name}")
        self._charsets[pack.block_number] = charset

    def _character_set_for(self, pack: RawPack) -> CharacterSet:
        if pack.pack_type.is_single_byte_only:
            return CharacterSet.ASCII

        charset = self._charsets.get(pack.block_number, self.config.default_character_set)
        if pack.is_double_byte and not charset.is_double_byte:
            logger.info(f"Block {pack.block_number}: DBCC flag set, switching to {CharacterSet.MS_JIS.name}")
            charset = CharacterSet.MS_JIS
            self._charsets[pack.block_number] = charset
        return charset

    # =========================================================================
    # Field Bookkeeping
    # =========================================================================

    def _open_field(self, stream: _Stream, track_number: int, pack: RawPack) -> _Field:
        fld = _Field(
            pack_type=stream.pack_type,
            track_number=track_number,
            block_number=stream.block_number,
            character_set=self._character_set_for(pack),
        )
        stream.current = fld
        self._groups.setdefault((fld.pack_type, track_number), []).append(fld)
        return fld

    def _check_character_position(self, fld: _Field, pack: RawPack) -> None:
        if fld.header_size:
            return
        expected = min(fld.character_count, MAX_CHARACTER_POSITION)
        if pack.character_position != expected:
            message = (
                f"{fld.pack_type.name} track {fld.track_number}: character position "
                f"{pack.character_position}, expected {expected}"
            )
            self.collector.add(ConditionKind.CHARACTER_POSITION_MISMATCH, message, pack.index)
            logger.debug(f"Pack {pack.index}: {message}")

    def _release_held(self, stream: _Stream) -> None:
        """Emit held empty fields now that text follows them."""
        for held in stream.held_empty:
            self._emit_text(stream, held)
        stream.held_empty.clear()

    # =========================================================================
    # Text Fields
    # =========================================================================

    def _feed_text(self, stream: _Stream, pack: RawPack, gap: bool) -> None:
        payload = pack.payload
        position = 0

        while position < len(payload):
            fld = stream.current
            if fld is None:
                track = pack.track_number if position == 0 else stream.next_track
                fld = self._open_field(stream, track, pack)
                if position == 0 and pack.character_position > 0:
                    fld.incomplete = True
                    message = (
                        f"{fld.pack_type.name} track {track}: field starts at character "
                        f"{pack.character_position}, beginning is missing"
                    )
                    self.collector.add(ConditionKind.CHARACTER_POSITION_MISMATCH, message, pack.index)
                    logger.warning(f"Pack {pack.index}: {message}")
            elif position == 0 and fld.track_number != pack.track_number:
                self._cut_text_field(stream, fld, pack)
                continue
            elif position == 0:
                self._check_character_position(fld, pack)

            if position == 0 and gap:
                fld.incomplete = True

            fld.add_pack(pack)
            consumed, terminated = fld.feed(payload[position:])
            position += consumed
            if terminated:
                self._finish_text_field(stream, fld)

    def _cut_text_field(self, stream: _Stream, fld: _Field, pack: RawPack) -> None:
        """Close a field whose terminator was lost before a pack of another track."""
        fld.truncated = True
        fld.incomplete = True
        message = (
            f"{fld.pack_type.name} track {fld.track_number} block {fld.block_number}: "
            f"no terminator before track {pack.track_number}"
        )
        self.collector.add(ConditionKind.UNTERMINATED_FIELD, message, pack.index)
        logger.warning(f"Pack {pack.index}: {message}")
        self._finish_text_field(stream, fld)

    def _finish_text_field(self, stream: _Stream, fld: _Field) -> None:
        stream.current = None
        stream.next_track = fld.track_number + 1

        if fld.is_empty:
            stream.held_empty.append(fld)
            return

        self._release_held(stream)
        self._emit_text(stream, fld)

    def _emit_text(self, stream: _Stream, fld: _Field) -> None:
        text = fld.character_set.decode(fld.text_bytes)
        repeated = False

        marker = _REPEAT_MARKERS[fld.character_set.width]
        if (
            self.config.resolve_repeat_markers
            and fld.text_bytes == marker
            and stream.previous_text is not None
        ):
            text = stream.previous_text
            repeated = True

        stream.previous_text = text
        fld.entry = CDTextEntry(
            pack_type=fld.pack_type,
            track_number=fld.track_number,
            text=text,
            data=fld.text_bytes,
            sequence_numbers=tuple(fld.sequence_numbers),
            block_number=fld.block_number,
            character_set=fld.character_set,
            genre_code=fld.genre_code,
            incomplete=fld.incomplete,
            truncated=fld.truncated,
            checksum_invalid=fld.checksum_invalid,
            repeated=repeated,
        )
        logger.debug(
            f"{fld.pack_type.name} track {fld.track_number} block {fld.block_number}: {text!r}"
        )

    # =========================================================================
    # Binary Fields
    # =========================================================================

    def _feed_raw(self, stream: _Stream, pack: RawPack, gap: bool) -> None:
        fld = stream.current
        if fld is not None and fld.track_number != pack.track_number:
            self._emit_raw(stream, fld)
            fld = None
        if fld is None:
            fld = self._open_field(stream, pack.track_number, pack)

        if gap:
            fld.incomplete = True
        fld.add_pack(pack)
        fld.data.extend(pack.payload)

    def _emit_raw(self, stream: _Stream, fld: _Field) -> None:
        stream.current = None
        data = bytes(fld.data)
        fld.entry = CDTextEntry(
            pack_type=fld.pack_type,
            track_number=fld.track_number,
            text=data.hex(),
            data=data,
            sequence_numbers=tuple(fld.sequence_numbers),
            block_number=fld.block_number,
            character_set=fld.character_set,
            incomplete=fld.incomplete,
            checksum_invalid=fld.checksum_invalid,
        )

    # =========================================================================
    # End of Buffer
    # =========================================================================

    def _finish_streams(self) -> None:
        for stream in self._streams.values():
            fld = stream.current
            if fld is not None:
                if not stream.pack_type.is_text:
                    self._emit_raw(stream, fld)
                elif not fld.is_empty:
                    fld.truncated = True
                    message = (
                        f"{fld.pack_type.name} track {fld.track_number} block "
                        f"{fld.block_number}: no terminator before end of data"
                    )
                    self.collector.add(ConditionKind.UNTERMINATED_FIELD, message)
                    logger.warning(message)
                    self._release_held(stream)
                    self._emit_text(stream, fld)
            stream.current = None

            if stream.held_empty:
                logger.debug(
                    f"{stream.pack_type.name} block {stream.block_number}: "
                    f"dropping {len(stream.held_empty)} padding fields"
                )
                stream.held_empty.clear()


def assemble(
    packs: Iterable[RawPack],
    config: Optional[DecoderConfig] = None,
) -> list[CDTextEntry]:
    """
    Assemble CDTextEntry records from raw packs.

    This is a convenience function around EntryAssembler; use the class to
    also get at the conditions found.

    Args:
        packs: Raw packs in buffer order
        config: Decoder settings (defaults apply when omitted)

    Returns:
        The decoded entries
    """
    return EntryAssembler(config).assemble(packs)
