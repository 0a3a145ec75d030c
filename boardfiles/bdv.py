"""Reader for the obfuscated BDV board format."""

from __future__ import annotations

from .base import (
    BoardFile,
    BoardFormatError,
    FieldReader,
    Nail,
    Part,
    PartMountingSide,
    PartType,
    Pin,
    Point,
    pin_side_for,
    split_lines,
)

_FIRST_KEY = 0xA0
_KEY_LIMIT = 285
_KEY_RESTART = 159
_SCALE = 1000.0  # coordinates are stored in inches, boards use mils
_KEPT_BYTES = (0, 10, 13)

# Section marker -> (block name, number of unused lines following the marker)
_SECTIONS = {
    b"<<format.asc>>": ("format", 8),
    b"<<pins.asc>>": ("pins", 8),
    b"<<nails.asc>>": ("nails", 7),
}


def decode_bdv(data: bytes) -> bytes:
    """Undo the rolling-key obfuscation of BDV files.

    The key starts at 0xa0 and grows by one on every CR LF pair; CR, LF and
    NUL bytes are left as they are.
    """
    src = bytes(data)
    out = bytearray(len(src))
    count = _FIRST_KEY
    for i, byte in enumerate(src):
        if byte == 13 and src[i + 1:i + 2] == b"\n":
            count += 1
        if byte not in _KEPT_BYTES:
            byte = (count - byte) & 0xFF
        if count > _KEY_LIMIT:
            count = _KEY_RESTART
        out[i] = byte
    return bytes(out)


def _parse_point(board: BoardFile, line: bytes) -> None:
    reader = FieldReader(line)
    x = reader.read_double()
    y = reader.read_double()
    board.format.append(Point(int(x * _SCALE), int(y * _SCALE)))


def _parse_part_or_pin(board: BoardFile, line: bytes) -> None:
    if line.startswith(b"Part"):
        reader = FieldReader(line, 4)
        name = reader.read_str()
        location = reader.read_str()
        side = PartMountingSide.TOP if location == "(T)" else PartMountingSide.BOTTOM
        board.parts.append(Part(name=name, part_type=PartType.SMD, mounting_side=side, end_of_pins=0))
        return

    if not board.parts:
        raise BoardFormatError("pin listed before any part")
    reader = FieldReader(line)
    pin = Pin(part=len(board.parts))
    reader.read_int()  # pin id
    reader.read_str()  # pin name
    pos_x = reader.read_double()
    pos_y = reader.read_double()
    pin.pos = Point(int(pos_x * _SCALE), int(pos_y * _SCALE))
    reader.read_int()  # layer
    pin.net = reader.read_str()
    pin.probe = reader.read_uint()
    pin.side = pin_side_for(board.parts[-1].mounting_side)
    board.pins.append(pin)
    board.parts[-1].end_of_pins = len(board.pins)


def _parse_nail(board: BoardFile, line: bytes) -> None:
    reader = FieldReader(line)
    reader.skip(1)
    nail = Nail()
    nail.probe = reader.read_uint()
    pos_x = reader.read_double()
    pos_y = reader.read_double()
    nail.pos = Point(int(pos_x * _SCALE), int(pos_y * _SCALE))
    reader.read_int()  # type
    reader.read_str()  # grid
    location = reader.read_str()
    nail.side = PartMountingSide.TOP if location == "(T)" else PartMountingSide.BOTTOM
    reader.read_str()  # net id
    nail.net = reader.read_str()
    board.nails.append(nail)


_PARSERS = {
    "format": _parse_point,
    "pins": _parse_part_or_pin,
    "nails": _parse_nail,
}


class BDVFile(BoardFile):
    """A board read from BDV data."""

    def __init__(self, buf: bytes) -> None:
        super().__init__()
        data = bytes(buf)
        if len(data) <= 4:
            raise BoardFormatError("BDV data is too short")

        lines = split_lines(decode_bdv(data))
        block = None
        index = 0
        while index < len(lines):
            line = lines[index].lstrip()
            index += 1
            if not line:
                continue
            section = _SECTIONS.get(line)
            if section is not None:
                block, unused = section
                index += unused
                continue
            if block is not None:
                _PARSERS[block](self, line)

        self.update_counts()
        if block is None:
            raise BoardFormatError("no BDV sections found")

    @staticmethod
    def verify_format(buf: bytes) -> bool:
        """Return True if the data looks like a BDV file."""
        data = bytes(buf)
        return b"dd:1.3?,r?-=bb" in data or (b"<<format.asc>>" in data and b"<<pins.asc>>" in data)