import pytest

from boardfiles.asc import ASCFile, lookup_file_insensitive
from boardfiles.base import BoardFormatError, PartMountingSide, PinSide, Point

FORMAT = ["FORMAT header"] + ["x"] * 7 + ["1 2", "3 4"]
PINS = ["PINS header"] + ["x"] * 7 + [
    "Part U1 (T)",
    "1 A 1 2 1 GND 5",
    "2 B 3 4 1 VCC 6",
    "Part C1 (B)",
    "1 1 5 6 2 GND 7",
]
NAILS = ["NAILS header"] + ["x"] * 6 + ["#9 1 2 1 A1 (B) 3 GND"]


def _write(path, lines):
    path.write_text("\n".join(lines) + "\n", encoding="ascii")


@pytest.fixture
def board_dir(tmp_path):
    _write(tmp_path / "format.asc", FORMAT)
    _write(tmp_path / "PINS.ASC", PINS)
    _write(tmp_path / "Nails.asc", NAILS)
    return tmp_path


def test_lookup_exact(board_dir):
    assert lookup_file_insensitive(board_dir, "format.asc") == board_dir / "format.asc"


def test_lookup_ignores_case(board_dir):
    assert lookup_file_insensitive(board_dir, "pins.asc").name.lower() == "pins.asc"


def test_lookup_missing_raises(board_dir):
    with pytest.raises(FileNotFoundError):
        lookup_file_insensitive(board_dir, "parts.asc")


def test_reads_outline(board_dir):
    board = ASCFile(b"", board_dir / "pins.asc")
    assert board.format == [Point(1000, 2000), Point(3000, 4000)]


def test_reads_parts_and_pins(board_dir):
    board = ASCFile(b"", board_dir / "format.asc")
    assert [part.name for part in board.parts] == ["U1", "C1"]
    assert board.parts[0].mounting_side is PartMountingSide.TOP
    assert board.parts[1].mounting_side is PartMountingSide.BOTTOM
    assert [pin.net for pin in board.pins] == ["GND", "VCC", "GND"]
    assert [pin.probe for pin in board.pins] == [5, 6, 7]
    assert [pin.side for pin in board.pins] == [PinSide.TOP, PinSide.TOP, PinSide.BOTTOM]
    assert board.parts[-1].end_of_pins == len(board.pins)
    assert board.num_pins == len(board.pins)
    assert board.num_parts == len(board.parts)


def test_reads_nails(board_dir):
    board = ASCFile(b"", board_dir / "nails.asc")
    assert board.num_nails == len(board.nails)
    nail = board.nails[0]
    assert nail.probe == 9
    assert nail.net == "GND"
    assert nail.side is PartMountingSide.BOTTOM


def test_missing_file_raises(tmp_path):
    _write(tmp_path / "format.asc", FORMAT)
    _write(tmp_path / "pins.asc", PINS)
    with pytest.raises(BoardFormatError):
        ASCFile(b"", tmp_path / "pins.asc")


def test_missing_directory_raises(tmp_path):
    with pytest.raises(BoardFormatError):
        ASCFile(b"", tmp_path / "absent" / "pins.asc")


def test_short_file_raises(board_dir):
    (board_dir / "format.asc").write_bytes(b"ab")
    with pytest.raises(BoardFormatError):
        ASCFile(b"", board_dir / "pins.asc")


def test_pin_before_part_raises(board_dir):
    _write(board_dir / "PINS.ASC", ["PINS header"] + ["x"] * 7 + ["1 A 1 2 1 GND 5"])
    with pytest.raises(BoardFormatError):
        ASCFile(b"", board_dir / "pins.asc")