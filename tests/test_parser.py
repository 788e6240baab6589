"""
CD-Text Parser Tests
====================

Tests for the CDTextParser façade, the convenience functions and the
condition types it reports.
"""

import pytest

from cdtext import (
    CDTextError,
    CDTextFormatError,
    CDTextParser,
    ChecksumError,
    ConditionCollector,
    ConditionKind,
    DecodeCondition,
    DecoderConfig,
    MalformedPackSizeError,
    PackType,
    TruncatedInputError,
    parse_cdtext,
    parse_cdtext_file,
)
from cdtext.packs import PACK_SIZE


# =============================================================================
# Construction Tests
# =============================================================================

class TestConstruction:
    """Tests for the CDTextParser constructors."""

    def test_from_bytes(self, album_packs):
        parser = CDTextParser.from_bytes(album_packs)
        assert len(parser.packs) == len(album_packs) // PACK_SIZE
        assert parser.get_text(PackType.TITLE) == "Kind of Blue"
        assert parser.is_valid

    def test_from_response(self, album_packs, make_response):
        parser = CDTextParser.from_response(make_response(album_packs))
        assert parser.get_text(PackType.TITLE, 2) == "Freddie Freeloader"

    def test_from_file_detects_header(self, album_file):
        parser = CDTextParser.from_file(album_file)
        assert parser.get_text(PackType.PERFORMER) == "Miles Davis"
        assert parser.conditions == []

    def test_from_file_bare(self, tmp_path, album_packs):
        path = tmp_path / "bare.bin"
        path.write_bytes(album_packs)
        parser = CDTextParser.from_file(path)
        assert parser.get_text(PackType.TITLE, 1) == "So What"

    def test_from_file_forced_header(self, tmp_path, album_packs, make_response):
        """An explicit header flag overrides detection."""
        path = tmp_path / "album.cdt"
        path.write_bytes(make_response(album_packs) + b"\x00")
        parser = CDTextParser.from_file(path, header=True)
        assert parser.get_text(PackType.TITLE) == "Kind of Blue"

    def test_from_file_missing(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            CDTextParser.from_file(tmp_path / "missing.cdt")

    def test_convenience_functions(self, album_packs, album_file):
        assert parse_cdtext(album_packs).entries == parse_cdtext_file(album_file).entries


# =============================================================================
# Error Propagation Tests
# =============================================================================

class TestErrors:
    """Tests for fatal errors and strict mode."""

    def test_truncated_input(self, album_packs):
        """Nothing is decoded when the declared length is too long."""
        with pytest.raises(TruncatedInputError):
            CDTextParser.from_bytes(album_packs, len(album_packs) + PACK_SIZE)

    def test_truncated_response(self, album_packs, make_response):
        response = make_response(album_packs)[:-PACK_SIZE]
        with pytest.raises(TruncatedInputError):
            CDTextParser.from_response(response)

    def test_malformed_size_reported(self, album_packs):
        parser = CDTextParser.from_bytes(album_packs, PACK_SIZE * 3 + 5)
        assert len(parser.packs) == 3
        assert parser.has_condition(ConditionKind.MALFORMED_PACK_SIZE)

    def test_strict_malformed_size(self, album_packs):
        config = DecoderConfig(strict=True)
        with pytest.raises(MalformedPackSizeError):
            CDTextParser.from_bytes(album_packs, PACK_SIZE * 3 + 5, config)

    def test_strict_checksum(self, make_pack):
        data = make_pack(0x80, 0, 0, b"Album\x00", corrupt=True)
        with pytest.raises(ChecksumError):
            parse_cdtext(data, config=DecoderConfig(strict=True))

    def test_negative_length_wrapped(self, album_packs):
        """Unexpected errors surface as CDTextFormatError."""
        with pytest.raises(CDTextFormatError):
            CDTextParser.from_bytes(album_packs, -1)

    def test_hierarchy(self):
        assert issubclass(TruncatedInputError, CDTextError)
        assert issubclass(MalformedPackSizeError, CDTextFormatError)
        assert issubclass(ChecksumError, CDTextFormatError)


# =============================================================================
# Query Tests
# =============================================================================

class TestQueries:
    """Tests for the query methods."""

    def test_get_entry(self, album_packs):
        parser = parse_cdtext(album_packs)
        entry = parser.get_entry(PackType.PERFORMER, 2)
        assert entry is not None
        assert entry.repeated
        assert parser.get_entry(PackType.COMPOSER) is None
        assert parser.get_text(PackType.TITLE, 9) is None

    def test_list_tracks(self, album_packs):
        assert parse_cdtext(album_packs).list_tracks() == [1, 2]

    def test_iter_track_entries(self, album_packs):
        parser = parse_cdtext(album_packs)
        entries = list(parser.iter_track_entries(1))
        assert [(e.pack_type, e.text) for e in entries] == [
            (PackType.TITLE, "So What"),
            (PackType.PERFORMER, "Miles Davis"),
        ]

    def test_conditions_collected(self, make_pack):
        """Reader and assembler conditions end up in one list."""
        data = (
            make_pack(0x80, 0, 0, b"Kind of Blue")
            + make_pack(0x80, 0, 1, b"ABCDEFGHIJKL", character_position=12, corrupt=True)
            + b"\x00" * 4
        )
        parser = parse_cdtext(data)
        kinds = {c.kind for c in parser.conditions}
        assert kinds == {
            ConditionKind.MALFORMED_PACK_SIZE,
            ConditionKind.CHECKSUM_INVALID,
            ConditionKind.UNTERMINATED_FIELD,
        }
        assert not parser.is_valid

    def test_get_info(self, album_packs):
        info = parse_cdtext(album_packs).get_info()
        assert info["pack_count"] == len(album_packs) // PACK_SIZE
        assert info["entry_count"] == 6
        assert info["invalid_checksums"] == 0
        assert info["album_title"] == "Kind of Blue"
        assert info["album_performer"] == "Miles Davis"
        assert info["tracks"] == [1, 2]
        assert info["blocks"] == [0]
        assert info["languages"] == {}
        assert info["condition_count"] == 0

    def test_idempotent(self, album_packs):
        assert parse_cdtext(album_packs).entries == parse_cdtext(album_packs).entries


# =============================================================================
# Condition Tests
# =============================================================================

class TestConditionCollector:
    """Tests for DecodeCondition and ConditionCollector."""

    def test_add_and_query(self):
        collector = ConditionCollector()
        condition = collector.add(ConditionKind.SEQUENCE_GAP, "expected 3, got 5", pack_index=4)

        assert isinstance(condition, DecodeCondition)
        assert collector.has(ConditionKind.SEQUENCE_GAP)
        assert not collector.has(ConditionKind.CHECKSUM_INVALID)
        assert collector.of_kind(ConditionKind.SEQUENCE_GAP) == [condition]
        assert collector.count() == 1

    def test_str(self):
        with_pack = DecodeCondition(ConditionKind.SEQUENCE_GAP, "expected 3, got 5", 4)
        without = DecodeCondition(ConditionKind.UNTERMINATED_FIELD, "TITLE track 3")
        assert str(with_pack) == "pack 4: sequence-gap: expected 3, got 5"
        assert str(without) == "unterminated-field: TITLE track 3"

    def test_report(self):
        collector = ConditionCollector()
        collector.add(ConditionKind.UNKNOWN_PACK_TYPE, "unknown pack type 0x90", 0)
        collector.add(ConditionKind.UNTERMINATED_FIELD, "TITLE track 1")
        lines = collector.report().splitlines()
        assert len(lines) == 3
        assert lines[-1] == "2 conditions"

    def test_clear(self):
        collector = ConditionCollector()
        collector.add(ConditionKind.SEQUENCE_GAP, "gap")
        collector.clear()
        assert collector.count() == 0
