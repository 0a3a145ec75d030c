"""Reader for the CAD (COMP / C_PIN / NET / N_VIA) board format."""

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
    outline_from_pins,
    pin_side_for,
    split_lines,
)

_MULTIPLIER = 1000.0  # coordinates are stored in inches, boards use mils

_RECORDS = (
    (b"COMP", "parts"),
    (b"C_PIN", "pins"),
    (b"NET ", "nets"),
    (b"N_VIA", "vias"),
)


def _strip_net(name: str) -> str:
    """Net names holding a '/' lose their first character."""
    return name[1:] if "/" in name else name


class CADFile(BoardFile):
    """A board read from CAD data; the outline is derived from the pins."""

    def __init__(self, buf: bytes) -> None:
        super().__init__()
        data = bytes(buf)
        if len(data) <= 4:
            raise BoardFormatError("CAD data is too short")

        self._part_ids: dict[str, int] = {}
        self._via_net: str | None = None

        for raw in split_lines(data):
            line = raw.lstrip()
            if not line:
                continue
            record = next((name for prefix, name in _RECORDS if line.startswith(prefix)), None)
            if record is None:
                continue
            reader = FieldReader(line)
            if record == "parts":
                self._read_part(reader)
            elif record == "pins":
                self._read_pin(reader)
            elif record == "nets":
                self._read_net(reader)
            else:
                self._read_via(reader)

        self.format.extend(outline_from_pins(self.pins))
        self.update_counts()

    @staticmethod
    def verify_format(buf: bytes) -> bool:
        """Return True if the data looks like a CAD file."""
        data = bytes(buf)
        return b"###Panel Added" in data and b"C_PIN" in data

    def _read_part(self, reader: FieldReader) -> None:
        reader.read_str()  # record type
        part = Part(name=reader.read_str(), part_type=PartType.SMD, end_of_pins=0)
        for _ in range(5):  # part number, two unknown fields, x, y
            reader.read_str()
        location = reader.read_str()
        reader.read_str()  # unknown
        part.mounting_side = PartMountingSide.TOP if location == "1" else PartMountingSide.BOTTOM
        self.parts.append(part)
        self._part_ids[part.name] = len(self.parts)

    def _read_pin(self, reader: FieldReader) -> None:
        reader.read_str()  # record type
        part_name = reader.read_str().split("-", 1)[0]
        if part_name not in self._part_ids:
            raise BoardFormatError(f"pin refers to unknown part {part_name!r}")
        pin = Pin(part=self._part_ids[part_name])
        pos_x = reader.read_double()
        pos_y = reader.read_double()
        pin.pos = Point(int(pos_x * _MULTIPLIER), int(pos_y * _MULTIPLIER))
        for _ in range(3):
            reader.read_double()
        reader.read_str()
        pin.net = _strip_net(reader.read_str())
        pin.side = pin_side_for(self.parts[pin.part - 1].mounting_side)
        self.pins.append(pin)

    def _read_net(self, reader: FieldReader) -> None:
        reader.read_str()  # record type
        self._via_net = _strip_net(reader.read_str())

    def _read_via(self, reader: FieldReader) -> None:
        if self._via_net is None:
            raise BoardFormatError("via listed before any net")
        nail = Nail(net=self._via_net)
        reader.read_str()  # record type
        pos_x = reader.read_double()
        pos_y = reader.read_double()
        nail.pos = Point(int(pos_x * _MULTIPLIER), int(pos_y * _MULTIPLIER))
        reader.read_str()
        nail.side = PartMountingSide.TOP if reader.read_double() == 1 else PartMountingSide.BOTTOM
        reader.read_double()
        self.nails.append(nail)