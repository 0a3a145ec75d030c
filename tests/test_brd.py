import pytest

from boardfiles.base import BoardFormatError, PartMountingSide, PartType, PinSide, Point
from boardfiles.brd import BRDFile, decode_brd

PLAIN = (
    b"\n".join(
        [
            b"str_length:",
            b"1 2 3",
            b"var_data:",
            b"4 2 3 1",
            b"Format:",
            b"0 0",
            b"100 0",
            b"100 100",
            b"0 100",
            b"Parts:",
            b"U1 5 2",
            b"J1 2 3",
            b"Pins:",
            b"10 20 -99 1 GND",
            b"30 40 7 1 ",
            b"50 60 -99 2 VCC",
            b"Nails:",
            b"7 30 40 1 SIG",
        ]
    )
    + b"\n"
)


def _encode(text: bytes) -> bytes:
    inverse = {decode_brd(bytes([b]))[0]: b for b in range(256) if b not in (0, 10, 13)}
    return bytes(c if c in (10, 13) else inverse[c] for c in text)


def test_parse_plain_board():
    board = BRDFile(PLAIN)
    assert board.format == [Point(0, 0), Point(100, 0), Point(100, 100), Point(0, 100)]
    assert [p.name for p in board.parts] == ["U1", "J1"]
    assert board.parts[0].part_type is PartType.SMD
    assert board.parts[0].mounting_side is PartMountingSide.TOP
    assert board.parts[1].part_type is PartType.THROUGH_HOLE
    assert board.parts[1].mounting_side is PartMountingSide.BOTTOM
    assert [p.end_of_pins for p in board.parts] == [2, 3]
    assert (board.num_format, board.num_parts, board.num_pins, board.num_nails) == (4, 2, 3, 1)


def test_pins_take_side_from_part_and_net_from_nail():
    board = BRDFile(PLAIN)
    assert [p.net for p in board.pins] == ["GND", "SIG", "VCC"]
    assert [p.side for p in board.pins] == [PinSide.TOP, PinSide.TOP, PinSide.BOTTOM]
    assert board.pins[0].probe == -99
    assert board.pins[2].pos == Point(50, 60)


def test_nails():
    board = BRDFile(PLAIN)
    assert len(board.nails) == 1
    nail = board.nails[0]
    assert (nail.probe, nail.pos, nail.side, nail.net) == (7, Point(30, 40), PartMountingSide.TOP, "SIG")


def test_decode_preserves_line_breaks_and_nul():
    assert decode_brd(b"\r\n\0") == b"\r\n\0"


def test_decode_is_a_bijection_on_other_bytes():
    others = bytes(b for b in range(256) if b not in (0, 10, 13))
    decoded = decode_brd(others)
    assert len(set(decoded)) == len(others)


def test_encoded_file_starts_with_signature_and_parses_like_plain():
    encoded = _encode(PLAIN)
    assert encoded[:4] == bytes((0x23, 0xE2, 0x63, 0x28))
    assert BRDFile.verify_format(encoded)
    plain = BRDFile(PLAIN)
    decoded = BRDFile(encoded)
    assert decoded.pins == plain.pins
    assert decoded.parts == plain.parts
    assert decoded.format == plain.format


def test_verify_format():
    assert BRDFile.verify_format(PLAIN)
    assert not BRDFile.verify_format(b"str_length:\nonly")
    assert not BRDFile.verify_format(b"")


def test_too_short_raises():
    with pytest.raises(BoardFormatError):
        BRDFile(b"abc")


def test_no_sections_raises():
    with pytest.raises(BoardFormatError):
        BRDFile(b"hello world\n")


def test_too_many_points_raises():
    data = b"var_data:\n1 0 0 0\nFormat:\n0 0\n1 1\n"
    with pytest.raises(BoardFormatError):
        BRDFile(data)


def test_pin_with_unknown_part_raises():
    data = b"var_data:\n0 1 1 0\nParts:\nU1 5 1\nPins:\n0 0 1 2 GND\n"
    with pytest.raises(BoardFormatError):
        BRDFile(data)


def test_negative_count_raises():
    with pytest.raises(BoardFormatError):
        BRDFile(b"var_data:\n-1 0 0 0\n")