"""Reader for the keyword based BVR3 (BVRAW_FORMAT_3) board format."""

from __future__ import annotations

import math
from collections.abc import Iterable

from .base import (
    BoardFile,
    BoardFormatError,
    FieldReader,
    Part,
    PartMountingSide,
    PartType,
    Pin,
    PinSide,
    Point,
    split_lines,
)

Segment = tuple[Point, Point]

_PART_SIDES = {"T": PartMountingSide.TOP, "B": PartMountingSide.BOTTOM, "O": PartMountingSide.BOTH}
_PIN_SIDES = {"T": PinSide.TOP, "B": PinSide.BOTTOM, "O": PinSide.BOTH}

# Keywords whose values are recognised but not used.
_IGNORED = (
    b"PART_ORIGIN ",
    b"PART_OUTLINE_RELATIVE ",
    b"PIN_ID ",
    b"PIN_TYPE ",
    b"PIN_COMMENT ",
    b"PIN_OUTLINE_RELATIVE ",
)


def manhattan_distance(p1: Point, p2: Point) -> int:
    """Sum of the absolute coordinate differences of two points."""
    return abs(p1.x - p2.x) + abs(p1.y - p2.y)


def _nearest_distance(end: Point, segment: Segment) -> int:
    return min(manhattan_distance(end, segment[0]), manhattan_distance(end, segment[1]))


def chain_outline_segments(segments: Iterable[Segment]) -> tuple[list[Point], list[Segment]]:
    """Join outline segments into a path of points.

    Starts from the first segment and keeps following segments that share an
    end point; when none does, jumps to the nearest one, or closes the path
    when its start is nearer. Returns the points and the segments left unused.
    """
    remaining = list(segments)
    if not remaining:
        return [], []
    first = remaining.pop(0)
    points = [first[0], first[1]]
    start, end = first

    while start != end and remaining:
        match = next(
            (seg for seg in remaining if end == seg[0] or end == seg[1]),
            None,
        )
        if match is not None:
            end = match[1] if end == match[0] else match[0]
            points.append(end)
            remaining.remove(match)
            continue

        nearest = min(remaining, key=lambda seg: _nearest_distance(end, seg))
        start_distance = manhattan_distance(end, start)
        first_distance = manhattan_distance(end, nearest[0])
        second_distance = manhattan_distance(end, nearest[1])

        # The start being nearer means the path is most likely complete.
        if start_distance <= first_distance and start_distance <= second_distance:
            points.append(start)
            break

        if first_distance <= second_distance:
            points.extend((nearest[0], nearest[1]))
            end = nearest[1]
        else:
            points.extend((nearest[1], nearest[0]))
            end = nearest[0]
        remaining.remove(nearest)

    return points, remaining


def _read_truncated_point(reader: FieldReader) -> Point:
    x = reader.read_double()
    y = reader.read_double()
    return Point(math.trunc(x), math.trunc(y))


class BVR3File(BoardFile):
    """A board read from BVR3 data."""

    def __init__(self, buf: bytes) -> None:
        super().__init__()
        data = bytes(buf)
        if len(data) <= 4:
            raise BoardFormatError("BVR3 data is too short")

        self._part = Part()
        self._pin = Pin()
        self._pending_segments: list[Segment] = []

        for raw in split_lines(data):
            line = raw.lstrip()
            if line:
                self._handle_line(line)

        self.update_counts()
        if not (self.num_parts > 0 or self.num_format > 0):
            raise BoardFormatError("BVR3 data holds neither parts nor an outline")

    @staticmethod
    def verify_format(buf: bytes) -> bool:
        """Return True if the data looks like a BVR3 file."""
        return b"BVRAW_FORMAT_3" in bytes(buf)

    def _handle_line(self, line: bytes) -> None:
        if line.startswith(_IGNORED):
            return
        if line.startswith(b"PART_NAME "):
            self._part.name = FieldReader(line, 10).read_str()
        elif line.startswith(b"PART_SIDE "):
            side = FieldReader(line, 10).read_str()
            self._part.mounting_side = _PART_SIDES.get(side, self._part.mounting_side)
        elif line.startswith(b"PART_MOUNT "):
            mount = FieldReader(line, 11).read_str()
            self._part.part_type = PartType.SMD if mount == "SMD" else PartType.THROUGH_HOLE
        elif line.startswith(b"PIN_NUMBER "):
            self._pin.snum = FieldReader(line, 11).read_str()
        elif line.startswith(b"PIN_NAME "):
            self._pin.name = FieldReader(line, 9).read_str()
        elif line.startswith(b"PIN_SIDE "):
            side = FieldReader(line, 9).read_str()
            self._pin.side = _PIN_SIDES.get(side, self._pin.side)
        elif line.startswith(b"PIN_ORIGIN "):
            self._pin.pos = _read_truncated_point(FieldReader(line, 11))
        elif line.startswith(b"PIN_RADIUS "):
            self._pin.radius = FieldReader(line, 11).read_double()
        elif line.startswith(b"PIN_NET "):
            self._pin.net = FieldReader(line, 8).read_str()
        elif line == b"PIN_END":
            # The pin belongs to the part being read, which is not yet in the list.
            self._pin.part = len(self.parts) + 1
            self.pins.append(self._pin)
            self._pin = Pin()
        elif line == b"PART_END":
            self._part.end_of_pins = len(self.pins)
            self.parts.append(self._part)
            self._part = Part()
        elif line.startswith(b"OUTLINE_POINTS "):
            self._read_outline_points(FieldReader(line, 15))
        elif line.startswith(b"OUTLINE_SEGMENTED "):
            self._read_outline_segments(FieldReader(line, 18))

    def _read_outline_points(self, reader: FieldReader) -> None:
        while reader.pos < len(reader.line):
            before = reader.pos
            point = _read_truncated_point(reader)
            if reader.pos == before:
                break
            self.format.append(point)

    def _read_outline_segments(self, reader: FieldReader) -> None:
        while reader.pos < len(reader.line):
            before = reader.pos
            first = _read_truncated_point(reader)
            second = _read_truncated_point(reader)
            if reader.pos == before:
                break
            self._pending_segments.append((first, second))

        if not self._pending_segments:
            return
        points, self._pending_segments = chain_outline_segments(self._pending_segments)
        self.format.extend(points)