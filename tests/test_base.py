import pytest

from boardfiles.base import (
    BoardFile,
    BoardFormatError,
    FieldReader,
    Nail,
    PartMountingSide,
    Part,
    Pin,
    PinSide,
    Point,
    fix_to_utf8,
    outline_from_pins,
    pin_side_for,
    split_lines,
)


def test_split_lines_handles_crlf_and_lf():
    assert split_lines(b"a\r\nb\nc") == [b"a", b"b", b"c"]


def test_split_lines_trailing_newline_adds_no_line():
    assert split_lines(b"a\n") == [b"a"]


def test_split_lines_empty_buffer():
    assert split_lines(b"") == [b""]


def test_split_lines_stops_at_nul():
    assert split_lines(b"a\nb\0c\nd") == [b"a", b"b"]


def test_split_lines_triple_break_keeps_break_in_next_line():
    lines = split_lines(b"a\n\n\nb")
    assert lines[0] == b"a"
    assert lines[1].lstrip() == b"b"
    assert len(lines) == 2


def test_fix_to_utf8_valid_and_latin1():
    assert fix_to_utf8(b"caf\xc3\xa9") == "caf\u00e9"
    assert fix_to_utf8(b"caf\xe9") == "caf\u00e9"


def test_reader_ints_and_strings():
    reader = FieldReader(b"  12 -7 x")
    assert reader.read_int() == 12
    assert reader.read_int() == -7
    before = reader.pos
    assert reader.read_int() == 0
    assert reader.pos == before
    assert reader.read_str() == "x"


def test_reader_uint_rejects_negative():
    with pytest.raises(BoardFormatError):
        FieldReader(b"-3").read_uint()


def test_reader_doubles():
    reader = FieldReader(b"-0.25 1e2 abc")
    assert reader.read_double() == -0.25
    assert reader.read_double() == 100.0
    before = reader.pos
    assert reader.read_double() == 0.0
    assert reader.pos == before


def test_reader_str_sequence_and_end():
    reader = FieldReader(b"GND  VCC")
    assert reader.read_str() == "GND"
    assert reader.read_str() == "VCC"
    assert reader.read_str() == ""


def test_reader_skip():
    reader = FieldReader(b"NETS: 5")
    reader.skip(5)
    assert reader.read_uint() == 5


def test_pin_sorting_by_part_then_snum():
    pins = [Pin(part=2, snum="1"), Pin(part=1, snum="2"), Pin(part=1, snum="10")]
    ordered = sorted(pins)
    assert [(p.part, p.snum) for p in ordered] == [(1, "10"), (1, "2"), (2, "1")]


def test_add_nails_as_pins():
    board = BoardFile()
    board.parts = [Part(name="..."), Part(name="...")]
    board.nails = [
        Nail(probe=3, pos=Point(1, 2), side=PartMountingSide.TOP, net="A"),
        Nail(probe=4, pos=Point(5, 6), side=PartMountingSide.BOTTOM, net="B"),
    ]
    board.add_nails_as_pins()
    assert [(p.part, p.side, p.net, p.probe) for p in board.pins] == [
        (2, PinSide.TOP, "A", 3),
        (1, PinSide.BOTTOM, "B", 4),
    ]
    assert board.pins[1].pos == Point(5, 6)


def test_update_counts():
    board = BoardFile()
    board.format = [Point(), Point()]
    board.pins = [Pin()]
    board.update_counts()
    assert (board.num_format, board.num_pins, board.num_parts, board.num_nails) == (2, 1, 0, 0)


def test_outline_from_pins_is_closed_and_contains_pins():
    pins = [Pin(pos=Point(0, 0)), Pin(pos=Point(100, 50))]
    outline = outline_from_pins(pins)
    assert len(outline) == 5
    assert outline[0] == outline[-1]
    assert outline[0] == Point(-20, -20)
    xs = [p.x for p in outline]
    ys = [p.y for p in outline]
    assert min(xs) < 0 and max(xs) > 100
    assert min(ys) < 0 and max(ys) > 50


def test_outline_from_no_pins_raises():
    with pytest.raises(BoardFormatError):
        outline_from_pins([])


@pytest.mark.parametrize(
    "side, expected",
    [
        (PartMountingSide.TOP, PinSide.TOP),
        (PartMountingSide.BOTTOM, PinSide.BOTTOM),
        (PartMountingSide.BOTH, PinSide.BOTH),
    ],
)
def test_pin_side_for(side, expected):
    assert pin_side_for(side) is expected