"""Reader for the plain and obfuscated BRD board format."""

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

SIGNATURE = bytes((0x23, 0xE2, 0x63, 0x28))

_DECODE_TABLE = bytes(
    b if b in (0, 10, 13) else (~(((b >> 6) & 3) | (b << 2))) & 0xFF for b in range(256)
)

_SECTIONS = {
    b"str_length:": "str_length",
    b"var_data:": "var_data",
    b"Format:": "format",
    b"format:": "format",
    b"Parts:": "parts",
    b"Pins1:": "parts",
    b"Pins:": "pins",
    b"Pins2:": "pins",
    b"Nails:": "nails",
}


def decode_brd(data: bytes) -> bytes:
    """Undo the byte obfuscation of encoded BRD files; CR, LF and NUL are kept."""
    return bytes(data).translate(_DECODE_TABLE)


class BRDFile(BoardFile):
    """A board read from BRD data."""

    def __init__(self, buf: bytes) -> None:
        super().__init__()
        data = bytes(buf)
        if len(data) <= 4:
            raise BoardFormatError("BRD data is too short")
        if data.startswith(SIGNATURE):
            data = decode_brd(data)

        block = None
        for raw in split_lines(data):
            line = raw.lstrip()
            if not line:
                continue
            if line in _SECTIONS:
                block = _SECTIONS[line]
                continue
            reader = FieldReader(line)
            if block == "var_data":
                self.num_format = reader.read_uint()
                self.num_parts = reader.read_uint()
                self.num_pins = reader.read_uint()
                self.num_nails = reader.read_uint()
            elif block == "format":
                self._read_point(reader)
            elif block == "parts":
                self._read_part(reader)
            elif block == "pins":
                self._read_pin(reader)
            elif block == "nails":
                self._read_nail(reader)

        if block is None:
            raise BoardFormatError("no BRD sections found")
        self._resolve_pins()

    @staticmethod
    def verify_format(buf: bytes) -> bool:
        """Return True if the data looks like a BRD file."""
        data = bytes(buf)
        if data.startswith(SIGNATURE):
            return True
        return b"str_length:" in data and b"var_data:" in data

    def _read_point(self, reader: FieldReader) -> None:
        if len(self.format) >= self.num_format:
            raise BoardFormatError("more outline points than declared")
        x = reader.read_int()
        y = reader.read_int()
        self.format.append(Point(x, y))

    def _read_part(self, reader: FieldReader) -> None:
        if len(self.parts) >= self.num_parts:
            raise BoardFormatError("more parts than declared")
        part = Part(name=reader.read_str())
        kind = reader.read_uint()  # type and layer combined
        part.part_type = PartType.SMD if kind & 0xC else PartType.THROUGH_HOLE
        if kind == 1 or 4 <= kind < 8:
            part.mounting_side = PartMountingSide.TOP
        if kind == 2 or kind >= 8:
            part.mounting_side = PartMountingSide.BOTTOM
        part.end_of_pins = reader.read_uint()
        if part.end_of_pins > self.num_pins:
            raise BoardFormatError("part pin range exceeds declared pin count")
        self.parts.append(part)

    def _read_pin(self, reader: FieldReader) -> None:
        if len(self.pins) >= self.num_pins:
            raise BoardFormatError("more pins than declared")
        pin = Pin()
        pin.pos.x = reader.read_int()
        pin.pos.y = reader.read_int()
        pin.probe = reader.read_int()  # may be negative
        pin.part = reader.read_uint()
        if pin.part > self.num_parts:
            raise BoardFormatError("pin refers to an undeclared part")
        pin.net = reader.read_str()
        self.pins.append(pin)

    def _read_nail(self, reader: FieldReader) -> None:
        if len(self.nails) >= self.num_nails:
            raise BoardFormatError("more nails than declared")
        nail = Nail()
        nail.probe = reader.read_uint()
        nail.pos.x = reader.read_int()
        nail.pos.y = reader.read_int()
        nail.side = PartMountingSide.TOP if reader.read_uint() == 1 else PartMountingSide.BOTTOM
        nail.net = reader.read_str()
        self.nails.append(nail)

    def _resolve_pins(self) -> None:
        # Some variants leave pin nets empty; take them from the nail with the same probe.
        nets_by_probe = {nail.probe: nail.net for nail in self.nails}
        for pin in self.pins:
            if pin.net == "":
                pin.net = nets_by_probe.get(pin.probe, "")
            if not 1 <= pin.part <= len(self.parts):
                raise BoardFormatError(f"pin refers to missing part {pin.part}")
            pin.side = pin_side_for(self.parts[pin.part - 1].mounting_side)