"""Reader for the binary CST board format."""

from __future__ import annotations

import struct

from .base import (
    BoardFile,
    BoardFormatError,
    Part,
    PartMountingSide,
    PartType,
    Pin,
    Point,
    fix_to_utf8,
    outline_from_pins,
    pin_side_for,
)

_SHORT = struct.Struct("<h")
_BYTE = struct.Struct("<b")
_LAYER_TOP = 0x0C
_LAYER_BOTTOM = 0x01
_PIN_SECTION = b"CPad"


class _Cursor:
    """Sequential little-endian reader over the file data."""

    def __init__(self, data: bytes) -> None:
        self.data = data
        self.pos = 0

    def _check(self, size: int) -> None:
        if size < 0 or self.pos < 0 or self.pos + size > len(self.data):
            raise BoardFormatError("CST data ends unexpectedly")

    def short(self) -> int:
        self._check(2)
        (value,) = _SHORT.unpack_from(self.data, self.pos)
        self.pos += 2
        return value

    def byte(self) -> int:
        self._check(1)
        (value,) = _BYTE.unpack_from(self.data, self.pos)
        self.pos += 1
        return value

    def name(self, size: int) -> str:
        self._check(size)
        raw = self.data[self.pos:self.pos + size]
        self.pos += size
        return fix_to_utf8(raw.split(b"\0", 1)[0])

    def skip(self, size: int) -> None:
        self.pos += size


class CSTFile(BoardFile):
    """A board read from CST data; the outline is derived from the pins."""

    def __init__(self, buf: bytes) -> None:
        super().__init__()
        data = bytes(buf)
        if len(data) <= 4:
            raise BoardFormatError("CST data is too short")

        cursor = _Cursor(data)
        self._read_parts(cursor)
        self._nets = self._read_nets(cursor)

        # Dummy part for pins that belong to no part.
        self.parts.append(
            Part(name="...", mounting_side=PartMountingSide.BOTH, part_type=PartType.THROUGH_HOLE, end_of_pins=0)
        )

        # The byte after the last net name is cleared, so the search starts past it.
        section = data.find(_PIN_SECTION, cursor.pos + 1)
        if section < 0:
            raise BoardFormatError("CST data has no CPad section")
        cursor.pos = section - 8
        pin_count = cursor.short()
        cursor.skip(10)
        for _ in range(pin_count):
            self._read_pin(cursor)

        self.format.extend(outline_from_pins(self.pins))
        self.update_counts()

    def _read_parts(self, cursor: _Cursor) -> None:
        part_count = cursor.short()
        cursor.skip(4)  # section signature
        cursor.skip(cursor.short())  # section name
        for _ in range(part_count):
            name = cursor.name(cursor.byte())
            cursor.skip(4)
            layer = cursor.byte()
            part = Part(name=name, part_type=PartType.SMD, end_of_pins=0)
            if layer == _LAYER_TOP:
                part.mounting_side = PartMountingSide.TOP
            elif layer == _LAYER_BOTTOM:
                part.mounting_side = PartMountingSide.BOTTOM
            self.parts.append(part)
            cursor.skip(6)

    @staticmethod
    def _read_nets(cursor: _Cursor) -> list[str]:
        cursor.skip(-2)  # the net count closes the last part record
        net_count = cursor.short()
        return [cursor.name(cursor.byte()) for _ in range(net_count)]

    def _read_pin(self, cursor: _Cursor) -> None:
        part_id = cursor.short()
        pin = Pin(part=part_id + 1 if part_id >= 0 else len(self.parts))
        pin.probe = cursor.short()
        net_id = cursor.short()
        if not 0 <= net_id < len(self._nets):
            raise BoardFormatError(f"pin refers to unknown net {net_id}")
        pin.net = self._nets[net_id]
        x = cursor.short()
        y = cursor.short()
        pin.pos = Point(x, y)
        if pin.part > len(self.parts):
            raise BoardFormatError(f"pin refers to unknown part {part_id}")
        pin.side = pin_side_for(self.parts[pin.part - 1].mounting_side)
        cursor.short()  # shape
        self.pins.append(pin)
        cursor.skip(4)