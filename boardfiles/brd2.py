"""Reader for the BRD2 (BRDOUT/NETS) board format."""

from __future__ import annotations

import logging

from .base import (
    BoardFile,
    BoardFormatError,
    FieldReader,
    Nail,
    Part,
    PartMountingSide,
    PartType,
    Pin,
    PinSide,
    Point,
    split_lines,
)

logger = logging.getLogger(__name__)

_HEADERS = (
    (b"BRDOUT:", "format"),
    (b"NETS:", "nets"),
    (b"PARTS:", "parts"),
    (b"PINS:", "pins"),
    (b"NAILS:", "nails"),
)


def _side_code(code: int) -> str:
    return {1: "TOP", 2: "BOTTOM"}.get(code, "BOTH")


class BRD2File(BoardFile):
    """A board read from BRD2 data."""

    def __init__(self, buf: bytes) -> None:
        super().__init__()
        data = bytes(buf)
        if len(data) <= 4:
            raise BoardFormatError("BRD2 data is too short")

        self._nets: dict[int, str] = {}
        self._num_nets = 0
        self._max = Point(0, 0)

        block = None
        for raw in split_lines(data):
            line = raw.lstrip()
            if not line:
                continue
            header = next(((prefix, name) for prefix, name in _HEADERS if line.startswith(prefix)), None)
            if header is not None:
                prefix, block = header
                self._read_header(block, FieldReader(line, len(prefix)))
                continue
            reader = FieldReader(line)
            if block == "format":
                self._read_point(reader)
            elif block == "nets":
                self._read_net(reader)
            elif block == "parts":
                self._read_part(reader)
            elif block == "pins":
                self._read_pin(reader)
            elif block == "nails":
                self._read_nail(reader)

        for declared, actual, what in (
            (self.num_format, len(self.format), "outline points"),
            (self._num_nets, len(self._nets), "nets"),
            (self.num_parts, len(self.parts), "parts"),
            (self.num_pins, len(self.pins), "pins"),
            (self.num_nails, len(self.nails), "nails"),
        ):
            if declared != actual:
                raise BoardFormatError(f"declared {declared} {what} but found {actual}")
        if block is None:
            raise BoardFormatError("no BRD2 sections found")

        self._assign_pins_to_parts()
        # Dummy parts for probe points: first on the bottom, last on the top.
        self.parts.append(Part(name="...", mounting_side=PartMountingSide.BOTTOM))
        self.parts.append(Part(name="...", mounting_side=PartMountingSide.TOP))
        self.add_nails_as_pins()

    @staticmethod
    def verify_format(buf: bytes) -> bool:
        """Return True if the data looks like a BRD2 file."""
        data = bytes(buf)
        return b"BRDOUT:" in data and b"NETS:" in data

    def _read_header(self, block: str, reader: FieldReader) -> None:
        if block == "format":
            self.num_format = reader.read_uint()
            self._max.x = reader.read_int()
            self._max.y = reader.read_int()
        elif block == "nets":
            self._num_nets = reader.read_uint()
        elif block == "parts":
            self.num_parts = reader.read_uint()
        elif block == "pins":
            self.num_pins = reader.read_uint()
        else:
            self.num_nails = reader.read_uint()

    def _read_point(self, reader: FieldReader) -> None:
        if len(self.format) >= self.num_format:
            raise BoardFormatError("more outline points than declared")
        point = Point(reader.read_int(), reader.read_int())
        if point.x > self._max.x or point.y > self._max.y:
            raise BoardFormatError("outline point lies beyond the board boundary")
        self.format.append(point)

    def _read_net(self, reader: FieldReader) -> None:
        if len(self._nets) >= self._num_nets:
            raise BoardFormatError("more nets than declared")
        net_id = reader.read_uint()
        self._nets[net_id] = reader.read_str()

    def _read_part(self, reader: FieldReader) -> None:
        if len(self.parts) >= self.num_parts:
            raise BoardFormatError("more parts than declared")
        part = Part(name=reader.read_str())
        part.p1 = Point(reader.read_int(), reader.read_int())
        part.p2 = Point(reader.read_int(), reader.read_int())
        part.end_of_pins = reader.read_uint()  # first pin index in this format
        part.part_type = PartType.SMD
        part.mounting_side = PartMountingSide[_side_code(reader.read_uint())]
        self.parts.append(part)

    def _read_pin(self, reader: FieldReader) -> None:
        if len(self.pins) >= self.num_pins:
            raise BoardFormatError("more pins than declared")
        pin = Pin()
        pin.pos = Point(reader.read_int(), reader.read_int())
        net_id = reader.read_uint()
        pin.side = PinSide[_side_code(reader.read_uint())]
        pin.net = self._nets.get(net_id, "")
        pin.probe = 1
        pin.part = 0
        self.pins.append(pin)

    def _read_nail(self, reader: FieldReader) -> None:
        if len(self.nails) >= self.num_nails:
            raise BoardFormatError("more nails than declared")
        nail = Nail()
        nail.probe = reader.read_uint()
        nail.pos = Point(reader.read_int(), reader.read_int())
        net_id = reader.read_uint()
        if net_id in self._nets:
            nail.net = self._nets[net_id]
        else:
            nail.net = "UNCONNECTED"
            logger.warning("Missing net id: %d", net_id)
        if reader.read_uint() == 1:
            nail.side = PartMountingSide.TOP
        else:
            nail.side = PartMountingSide.BOTTOM
            nail.pos.y = self._max.y - nail.pos.y
        self.nails.append(nail)

    def _assign_pins_to_parts(self) -> None:
        max_y = self._max.y
        current = 0
        for index, part in enumerate(self.parts):
            through_hole = True
            if part.mounting_side is PartMountingSide.BOTTOM:
                part.p1.y = max_y - part.p1.y
                part.p2.y = max_y - part.p2.y
            if index == len(self.parts) - 1:
                end = len(self.pins)
            else:
                end = self.parts[index + 1].end_of_pins
            if end > len(self.pins):
                raise BoardFormatError("part pin range exceeds pin list")
            first_side = self.pins[current].side if current < len(self.pins) else None
            for pin in self.pins[current:end]:
                pin.part = index + 1
                if pin.side is not PinSide.TOP:
                    pin.pos.y = max_y - pin.pos.y
                if (pin.side is PinSide.TOP and part.mounting_side is PartMountingSide.TOP) or (
                    pin.side is PinSide.BOTTOM and part.mounting_side is PartMountingSide.BOTTOM
                ):
                    through_hole = False
                # Pins on both sides make the part two-sided even if SMD.
                if pin.side is not first_side:
                    part.mounting_side = PartMountingSide.BOTH
            current = max(current, end)
            if through_hole:
                part.part_type = PartType.THROUGH_HOLE
                part.mounting_side = PartMountingSide.BOTH
            else:
                part.part_type = PartType.SMD