"""Reader for the tab separated BVR (BVRAW_FORMAT_1) board format."""

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

_SCALE = 1000  # coordinates are stored in inches, boards use mils
_PART_NAME_LIMIT = 99  # bytes of the previous part name kept for comparison

# Section marker -> block name; each marker is followed by one unused line.
_SECTIONS = {
    b"<<Layout>>": "format",
    b"<<Pin>>": "pins",
    b"<<Nail>>": "nails",
}


def _next_field(line: bytes) -> int:
    """Position just after the first tab, or the end of the line."""
    tab = line.find(b"\t")
    return len(line) if tab < 0 else tab + 1


class BVRFile(BoardFile):
    """A board read from BVR data."""

    def __init__(self, buf: bytes) -> None:
        super().__init__()
        data = bytes(buf)
        if len(data) <= 4:
            raise BoardFormatError("BVR data is too short")

        self._previous_part = b""
        lines = split_lines(data)
        block = None
        index = 0
        while index < len(lines):
            line = lines[index].lstrip()
            index += 1
            if not line:
                continue
            if line in _SECTIONS:
                block = _SECTIONS[line]
                index += 1
                continue
            if block == "format":
                self._read_point(line)
            elif block == "pins":
                self._read_pin(line)
            elif block == "nails":
                self._read_nail(line)

        self.update_counts()
        if block is None:
            raise BoardFormatError("no BVR sections found")

    @staticmethod
    def verify_format(buf: bytes) -> bool:
        """Return True if the data looks like a BVR file."""
        return b"BVRAW_FORMAT_1" in bytes(buf)

    def _read_point(self, line: bytes) -> None:
        reader = FieldReader(line)
        x = reader.read_double()
        if reader.line[reader.pos:reader.pos + 1] == b",":
            reader.skip(1)
        y = reader.read_double()
        self.format.append(Point(int(x * _SCALE), int(y * _SCALE)))

    def _read_pin(self, line: bytes) -> None:
        reader = FieldReader(line)
        name = reader.read_str()
        location = reader.read_str()
        side = PartMountingSide.TOP if location == "(T)" else PartMountingSide.BOTTOM
        part = Part(name=name, part_type=PartType.SMD, mounting_side=side, end_of_pins=0)

        # Consecutive pins of one part repeat its name; a new name starts a new part.
        encoded = name.encode("utf-8")
        if encoded != self._previous_part:
            self.parts.append(part)
            self._previous_part = encoded[:_PART_NAME_LIMIT]
        if not self.parts:
            raise BoardFormatError("pin listed before any part")

        pin = Pin(part=len(self.parts))
        reader.read_int()  # pin id
        pin.name = reader.read_str()
        pos_x = reader.read_double()
        pos_y = reader.read_double()
        pin.pos = Point(int(pos_x * _SCALE), int(pos_y * _SCALE))
        reader.read_int()  # layer
        pin.net = reader.read_str()
        pin.side = pin_side_for(part.mounting_side)
        self.pins.append(pin)
        self.parts[-1].end_of_pins = len(self.pins)

    def _read_nail(self, line: bytes) -> None:
        reader = FieldReader(line, _next_field(line))
        nail = Nail()
        pos_x = reader.read_double()
        pos_y = reader.read_double()
        nail.pos = Point(int(pos_x * _SCALE), int(pos_y * _SCALE))
        reader.read_int()  # type
        reader.read_str()  # grid
        location = reader.read_str()
        nail.side = PartMountingSide.TOP if location == "(T)" else PartMountingSide.BOTTOM
        reader.read_str()  # net id
        nail.net = reader.read_str()
        self.nails.append(nail)