"""Shared data model and low-level text helpers for board file readers."""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass, field

_WHITESPACE = b" \t\n\r\x0b\x0c"
_INT_RE = re.compile(rb"[ \t\n\r\x0b\x0c]*([+-]?[0-9]+)")
_FLOAT_RE = re.compile(
    rb"[ \t\n\r\x0b\x0c]*([+-]?(?:(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?"
    rb"|inf(?:inity)?|nan))",
    re.IGNORECASE,
)
OUTLINE_MARGIN = 20


class BoardFormatError(ValueError):
    """Raised when board data is malformed or of an unsupported kind."""


@dataclass
class Point:
    """A board coordinate in mils."""

    x: int = 0
    y: int = 0


class PartMountingSide(enum.Enum):
    BOTH = 0
    BOTTOM = 1
    TOP = 2


class PartType(enum.Enum):
    SMD = 0
    THROUGH_HOLE = 1


class PinSide(enum.Enum):
    BOTH = 0
    BOTTOM = 1
    TOP = 2


@dataclass
class Part:
    name: str | None = None
    mfgcode: str = ""
    mounting_side: PartMountingSide = PartMountingSide.BOTH
    part_type: PartType = PartType.SMD
    end_of_pins: int = 0
    p1: Point = field(default_factory=Point)
    p2: Point = field(default_factory=Point)


@dataclass
class Pin:
    pos: Point = field(default_factory=Point)
    probe: int = 0
    part: int = 0
    side: PinSide = PinSide.BOTH
    net: str = "UNCONNECTED"
    radius: float = 0.5
    snum: str | None = None
    name: str | None = None

    def __lt__(self, other: Pin) -> bool:
        """Order by part number, then by pin number as text."""
        if self.part == other.part:
            return (self.snum or "") < (other.snum or "")
        return self.part < other.part


@dataclass
class Nail:
    probe: int = 0
    pos: Point = field(default_factory=Point)
    side: PartMountingSide = PartMountingSide.BOTH
    net: str = "UNCONNECTED"


def split_lines(data: bytes) -> list[bytes]:
    """Split a buffer into lines; a pair of CR/LF characters counts as one break.

    Reading stops at the first NUL byte.
    """
    data = bytes(data).split(b"\0", 1)[0]
    size = len(data)
    lines: list[bytes] = []
    start = 0
    i = 0
    while i < size:
        if data[i] in (10, 13):
            lines.append(data[start:i])
            i += 1
            if i < size and data[i] in (10, 13):
                i += 1
            if i >= size:
                return lines
            start = i
        i += 1
    lines.append(data[start:])
    return lines


def fix_to_utf8(raw: bytes) -> str:
    """Decode as UTF-8, falling back to Latin-1 for invalid sequences."""
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError:
        return raw.decode("latin-1")


class FieldReader:
    """Reads whitespace separated fields from one line, like the C number parsers."""

    def __init__(self, line: bytes, pos: int = 0) -> None:
        self.line = bytes(line)
        self.pos = pos

    def read_int(self) -> int:
        """Read a decimal integer; returns 0 without moving when none is present."""
        match = _INT_RE.match(self.line, self.pos)
        if match is None:
            return 0
        self.pos = match.end()
        return int(match.group(1))

    def read_uint(self) -> int:
        """Read an integer that must not be negative."""
        value = self.read_int()
        if value < 0:
            raise BoardFormatError(f"expected a non-negative integer, got {value}")
        return value

    def read_double(self) -> float:
        """Read a floating point number; returns 0.0 without moving when none is present."""
        match = _FLOAT_RE.match(self.line, self.pos)
        if match is None:
            return 0.0
        self.pos = match.end()
        return float(match.group(1))

    def read_str(self) -> str:
        """Read the next whitespace delimited word and skip the delimiter after it."""
        line = self.line
        size = len(line)
        p = self.pos
        while p < size and line[p] in _WHITESPACE:
            p += 1
        start = p
        while p < size and line[p] not in _WHITESPACE:
            p += 1
        self.pos = min(p + 1, size)
        return fix_to_utf8(line[start:p])

    def skip(self, count: int) -> None:
        """Advance the read position by ``count`` bytes."""
        self.pos = min(self.pos + count, len(self.line))


class BoardFile:
    """Parsed board: outline, parts, pins and test nails."""

    def __init__(self) -> None:
        self.num_format = 0
        self.num_parts = 0
        self.num_pins = 0
        self.num_nails = 0
        self.format: list[Point] = []
        self.outline_segments: list[tuple[Point, Point]] = []
        self.parts: list[Part] = []
        self.pins: list[Pin] = []
        self.nails: list[Nail] = []

    def add_nails_as_pins(self) -> None:
        """Append a pin for every nail, attached to the trailing dummy parts."""
        for nail in self.nails:
            if nail.side is PartMountingSide.BOTTOM:
                part, side = len(self.parts) - 1, PinSide.BOTTOM
            elif nail.side is PartMountingSide.TOP:
                part, side = len(self.parts), PinSide.TOP
            else:
                part, side = len(self.parts), PinSide.BOTH
            self.pins.append(
                Pin(pos=Point(nail.pos.x, nail.pos.y), part=part, side=side, probe=nail.probe, net=nail.net)
            )

    def update_counts(self) -> None:
        """Set the element counts from the collected lists."""
        self.num_parts = len(self.parts)
        self.num_pins = len(self.pins)
        self.num_format = len(self.format)
        self.num_nails = len(self.nails)


def outline_from_pins(pins: list[Pin]) -> list[Point]:
    """Build a closed rectangular outline around the pins with a margin."""
    if not pins:
        raise BoardFormatError("cannot derive a board outline without pins")
    min_x = min(pin.pos.x for pin in pins) - OUTLINE_MARGIN
    max_x = max(pin.pos.x for pin in pins) + OUTLINE_MARGIN
    min_y = min(pin.pos.y for pin in pins) - OUTLINE_MARGIN
    max_y = max(pin.pos.y for pin in pins) + OUTLINE_MARGIN
    return [
        Point(min_x, min_y),
        Point(max_x, min_y),
        Point(max_x, max_y),
        Point(min_x, max_y),
        Point(min_x, min_y),
    ]


def pin_side_for(mounting_side: PartMountingSide) -> PinSide:
    """Return the pin side matching a part's mounting side."""
    return PinSide[mounting_side.name]