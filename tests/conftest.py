"""
CD-Text Tests - Shared Fixtures
===============================

Fixtures for building synthetic CD-Text packs with valid checksums.

- **make_pack**: one 18-byte pack from header fields and a payload
- **make_text_packs**: cut a list of (track, text) fields into packs the way
  a disc stores them, with track numbers and character positions filled in
- **make_response**: prepend a READ TOC response header to pack data
"""

from typing import Callable

import pytest

from cdtext.packs import PAYLOAD_SIZE, calculate_pack_checksum, checksum_to_bytes


def build_pack(
    pack_type: int,
    track: int,
    sequence: int,
    payload: bytes,
    block: int = 0,
    character_position: int = 0,
    double_byte: bool = False,
    corrupt: bool = False,
) -> bytes:
    """Build one pack; corrupt=True stores a wrong checksum."""
    payload = bytes(payload).ljust(PAYLOAD_SIZE, b"\x00")
    assert len(payload) == PAYLOAD_SIZE
    id4 = (0x80 if double_byte else 0) | ((block & 0x07) << 4) | (character_position & 0x0F)
    body = bytes([pack_type, track, sequence & 0xFF, id4]) + payload
    crc = calculate_pack_checksum(body)
    if corrupt:
        crc ^= 0xFFFF
    return body + checksum_to_bytes(crc)


def build_text_packs(
    pack_type: int,
    fields: list[tuple[int, bytes]],
    first_sequence: int = 0,
    block: int = 0,
    double_byte: bool = False,
) -> list[bytes]:
    """
    Lay out text fields as a disc would.

    Each field is followed by its terminator, the stream is padded with
    zeros to whole payloads, and each pack gets the track and character
    position of the field its first byte belongs to.
    """
    width = 2 if double_byte else 1
    header_size = 2 if pack_type == 0x87 else 0

    stream = bytearray()
    starts = []
    for track, text in fields:
        starts.append((len(stream), track))
        stream.extend(text)
        stream.extend(b"\x00" * width)
    stream.extend(b"\x00" * (-len(stream) % PAYLOAD_SIZE))

    packs = []
    for number, offset in enumerate(range(0, len(stream), PAYLOAD_SIZE)):
        start, track = max((s for s in starts if s[0] <= offset), default=(0, 0))
        characters = max(0, offset - start - header_size) // width
        packs.append(build_pack(
            pack_type,
            track,
            first_sequence + number,
            bytes(stream[offset:offset + PAYLOAD_SIZE]),
            block=block,
            character_position=min(characters, 15),
            double_byte=double_byte,
        ))
    return packs


def build_response(data: bytes) -> bytes:
    """Prepend the 4-byte READ TOC/PMA/ATIP response header."""
    length = len(data) + 2
    return bytes([(length >> 8) & 0xFF, length & 0xFF, 0, 0]) + data


@pytest.fixture
def make_pack() -> Callable[..., bytes]:
    """Fixture: builder for a single pack."""
    return build_pack


@pytest.fixture
def make_text_packs() -> Callable[..., list[bytes]]:
    """Fixture: builder for the packs of a text stream."""
    return build_text_packs


@pytest.fixture
def make_response() -> Callable[[bytes], bytes]:
    """Fixture: builder for a READ TOC response."""
    return build_response


@pytest.fixture
def album_packs() -> bytes:
    """
    A small single-block disc: title and performer for the album and two
    tracks, the second performer given as the "same as previous" TAB.
    """
    titles = build_text_packs(0x80, [
        (0, b"Kind of Blue"),
        (1, b"So What"),
        (2, b"Freddie Freeloader"),
    ])
    performers = build_text_packs(0x81, [
        (0, b"Miles Davis"),
        (1, b"Miles Davis"),
        (2, b"\t"),
    ], first_sequence=len(titles))
    return b"".join(titles + performers)


@pytest.fixture
def album_file(tmp_path, album_packs: bytes):
    """The album packs written to a file with a response header."""
    path = tmp_path / "album.cdt"
    path.write_bytes(build_response(album_packs))
    return path
