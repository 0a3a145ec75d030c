import pytest

from boardfiles.base import BoardFormatError, PartMountingSide, PinSide, Point
from boardfiles.bdv import BDVFile, decode_bdv

FILLER = ["x"] * 8


def _plain(lines):
    return ("\r\n".join(lines) + "\r\n").encode("ascii")


def _sample_lines():
    return (
        ["<<format.asc>>"]
        + FILLER
        + ["1 2", "3 4"]
        + ["<<pins.asc>>"]
        + FILLER
        + [
            "Part U1 (T)",
            "1 A 1 2 1 GND 3",
            "2 B 3 4 1 VCC 4",
            "Part R1 (B)",
            "1 1 5 6 2 GND 5",
        ]
        + ["<<nails.asc>>"]
        + FILLER[:7]
        + ["#5 1 2 1 A1 (T) 7 GND"]
    )


def _encoded(lines):
    # Decoding is its own inverse for printable text with CR LF line ends.
    return decode_bdv(_plain(lines))


def test_decode_is_involution_on_printable_text():
    plain = _plain(_sample_lines())
    assert decode_bdv(decode_bdv(plain)) == plain


def test_decode_keeps_line_breaks_and_nul():
    assert decode_bdv(b"\r\n\0\n") == b"\r\n\0\n"


def test_decode_first_key():
    assert decode_bdv(b"A") == b"_"


def test_decode_key_grows_after_crlf():
    assert decode_bdv(b"\r\nA") == b"\r\n`"


def test_verify_format():
    assert BDVFile.verify_format(b"junk dd:1.3?,r?-=bb junk")
    assert BDVFile.verify_format(b"<<format.asc>> and <<pins.asc>>")
    assert not BDVFile.verify_format(b"<<format.asc>> only")


def test_parses_outline():
    board = BDVFile(_encoded(_sample_lines()))
    assert board.format == [Point(1000, 2000), Point(3000, 4000)]
    assert board.num_format == len(board.format)


def test_parses_parts_and_pins():
    board = BDVFile(_encoded(_sample_lines()))
    assert [part.name for part in board.parts] == ["U1", "R1"]
    assert board.parts[0].mounting_side is PartMountingSide.TOP
    assert board.parts[1].mounting_side is PartMountingSide.BOTTOM
    assert [pin.net for pin in board.pins] == ["GND", "VCC", "GND"]
    assert [pin.probe for pin in board.pins] == [3, 4, 5]
    assert [pin.side for pin in board.pins] == [PinSide.TOP, PinSide.TOP, PinSide.BOTTOM]
    assert board.parts[-1].end_of_pins == len(board.pins)
    assert board.pins[-1].part == len(board.parts)
    assert board.num_pins == len(board.pins)


def test_parses_nails():
    board = BDVFile(_encoded(_sample_lines()))
    assert len(board.nails) == board.num_nails
    nail = board.nails[0]
    assert nail.probe == 5
    assert nail.net == "GND"
    assert nail.side is PartMountingSide.TOP


def test_too_short_raises():
    with pytest.raises(BoardFormatError):
        BDVFile(b"abc")


def test_no_sections_raises():
    with pytest.raises(BoardFormatError):
        BDVFile(_encoded(["nothing", "here"]))


def test_negative_probe_raises():
    lines = ["<<pins.asc>>"] + FILLER + ["Part U1 (T)", "1 A 1 2 1 GND -3"]
    with pytest.raises(BoardFormatError):
        BDVFile(_encoded(lines))


def test_pin_before_part_raises():
    lines = ["<<pins.asc>>"] + FILLER + ["1 A 1 2 1 GND 3"]
    with pytest.raises(BoardFormatError):
        BDVFile(_encoded(lines))