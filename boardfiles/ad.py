"""Reader for the ASCII Altium Designer (Protel Advanced PCB) board format."""

from __future__ import annotations

from dataclasses import dataclass

from .base import (
    BoardFile,
    BoardFormatError,
    FieldReader,
    Part,
    PartMountingSide,
    PartType,
    Pin,
    Point,
    fix_to_utf8,
    pin_side_for,
    split_lines,
)

_WHITESPACE = b" \t\n\r\x0b\x0c"

# Record markers, checked in this order; a later match wins.
_RECORDS = (
    (b"RECORD=Track", "tracks"),
    (b"RECORD=Net", "nets"),
    (b"RECORD=Component", "components"),
    (b"RECORD=Pad", "pads"),
)

_MULTILAYER_PAD = 1


@dataclass
class ADNet:
    id: int = 0
    name: str = ""


@dataclass
class ADPart:
    name: str = ""
    description: str = ""
    layer: str = ""
    part_id: int = 0
    x: float = 0.0
    y: float = 0.0
    orientation: float = 0.0


@dataclass
class ADPad:
    id: int = 0
    net_id: int = 0
    part_id: int = 0
    snum: str | None = None
    x: float = 0.0
    y: float = 0.0
    drill: float = 0.0
    radius: float = 0.0
    x_size: float = 0.0
    y_size: float = 0.0
    rotation: float = 0.0
    type: int = 0  # 0 for SMD, 1 for through hole
    unique_id: str = ""
    layer: str = ""


def _find(line: bytes, key: bytes, start: int = 0) -> int | None:
    """Position just after ``key`` in ``line``, or None when absent."""
    index = line.find(key, start)
    return None if index < 0 else index + len(key)


def _require(line: bytes, key: bytes, start: int = 0) -> int:
    pos = _find(line, key, start)
    if pos is None:
        raise BoardFormatError(f"record lacks {key.decode('ascii')!r}")
    return pos


def _read_item(line: bytes, pos: int) -> str:
    """Read a value ending at whitespace or '|'."""
    size = len(line)
    while pos < size and line[pos] in _WHITESPACE:
        pos += 1
    end = pos
    while end < size and line[end] not in _WHITESPACE and line[end] != 0x7C:
        end += 1
    return fix_to_utf8(line[pos:end])


def _snum_value(snum: str | None) -> float:
    if not snum:
        return 0.0
    return FieldReader(snum.encode("utf-8")).read_double()


def order_segment_points(points: list[Point]) -> list[Point]:
    """Turn consecutive segment end point pairs into a connected, closed path.

    Raises BoardFormatError when fewer than two points are given.
    """
    if len(points) < 2:
        raise BoardFormatError("board outline has no segments")
    source = list(points)
    ordered = [source.pop(0), source.pop(0)]

    while len(source) > 1:
        last = ordered[-1]
        for i in range(0, len(source) - 1, 2):
            first, second = source[i], source[i + 1]
            if first == last:
                ordered.append(second)
                del source[i:i + 2]
                break
            if second == last:
                ordered.append(first)
                del source[i:i + 2]
                break
        else:
            ordered.append(source.pop(0))
            ordered.append(source.pop(0))

    ordered.append(Point(ordered[0].x, ordered[0].y))  # close the loop
    return ordered


class ADFile(BoardFile):
    """A board read from ASCII Altium Designer data."""

    def __init__(self, buf: bytes) -> None:
        super().__init__()
        data = bytes(buf)
        if len(data) <= 4:
            raise BoardFormatError("AD data is too short")

        self.ad_nets: list[ADNet] = []
        self.ad_parts: list[ADPart] = []
        self.ad_pads: list[ADPad] = []

        block = None
        for raw in split_lines(data):
            line = raw.lstrip()
            if not line:
                continue
            for marker, name in _RECORDS:
                if marker in line:
                    block = name
            if block == "tracks":
                block = self._read_track(line)
            elif block == "nets":
                self._read_net(line)
                block = None
            elif block == "components":
                self._read_component(line)
                block = None
            elif block == "pads":
                self._read_pad(line)
                block = None

        # The format has no unconnected net, so one is added last.
        self.ad_nets.append(ADNet(id=len(self.ad_nets) + 1, name="NC"))
        self._build_parts_and_pins()
        self.pins.sort(key=lambda pin: _snum_value(pin.snum))

        # Outlines come as segments; the board wants a path of points.
        self.format = order_segment_points(self.format)
        self.update_counts()

    @staticmethod
    def verify_format(buf: bytes) -> bool:
        """Return True for ASCII (not binary) Altium PCB data."""
        data = bytes(buf)
        return b"|KIND=Protel_Advanced_PCB" in data and b"Binary" not in data

    def _read_track(self, line: bytes) -> str | None:
        """Read a track; returns the block to stay in for the next line."""
        pos = _find(line, b"|LAYER=")
        layer = _read_item(line, pos) if pos is not None else ""

        coords = []
        start = 0
        for key in (b"X1=", b"Y1=", b"X2=", b"Y2="):
            pos = _find(line, key, start)
            if pos is None:
                return None
            reader = FieldReader(line, pos)
            coords.append(int(reader.read_double()))
            start = reader.pos
        x1, y1, x2, y2 = coords

        if layer == "KEEPOUT":
            # The board outline is usually kept on the keepout layer.
            self.format.append(Point(x1, y1))
            self.format.append(Point(x2, y2))
        elif "OVERLAY" in layer or layer.startswith("MECHANICAL"):
            pass
        else:
            return "tracks"
        return None

    def _read_net(self, line: bytes) -> None:
        reader = FieldReader(line, _require(line, b"|ID="))
        net_id = reader.read_int() + 1
        name = _read_item(line, _require(line, b"|NAME=", reader.pos))
        self.ad_nets.append(ADNet(id=net_id, name=name))

    def _read_component(self, line: bytes) -> None:
        pos = _find(line, b"|ID=")
        if pos is None:
            return
        part = ADPart()
        reader = FieldReader(line, pos)
        part.part_id = reader.read_int() + 1

        pos = _require(line, b"|LAYER=", reader.pos)
        part.layer = _read_item(line, pos)
        reader = FieldReader(line, _require(line, b"|X=", pos))
        part.x = reader.read_double()
        reader = FieldReader(line, _require(line, b"|Y=", reader.pos))
        part.y = reader.read_double()
        reader = FieldReader(line, _require(line, b"|ROTATION=", reader.pos))
        part.orientation = reader.read_double()

        pos = _find(line, b"|SOURCEDESIGNATOR=", reader.pos)
        if pos is None:
            part.name = f"UNKNOWN-{part.part_id}"
        else:
            part.name = _read_item(line, pos)
            pos = _find(line, b"|SOURCEDESCRIPTION=", pos)
            if pos is not None:
                part.description = _read_item(line, pos)
        self.ad_parts.append(part)

    def _read_pad(self, line: bytes) -> None:
        pad = ADPad()

        pos = _find(line, b"|NET=")
        if pos is not None:
            pad.net_id = FieldReader(line, pos).read_int() + 1

        pos = _find(line, b"|NAME=")
        if pos is not None:
            pad.snum = _read_item(line, pos)

        pos = _find(line, b"|COMPONENT=")
        if pos is None:
            return
        pad.part_id = FieldReader(line, pos).read_int() + 1

        pos = _find(line, b"|X=")
        if pos is None:
            return
        pad.x = FieldReader(line, pos).read_double()

        pos = _find(line, b"|Y=")
        if pos is None:
            return
        pad.y = FieldReader(line, pos).read_double()

        pos = _find(line, b"|ROTATION=")
        if pos is not None:
            pad.rotation = FieldReader(line, pos).read_double()
        pos = _find(line, b"|XSIZE=")
        if pos is not None:
            pad.x_size = FieldReader(line, pos).read_double()
        pos = _find(line, b"|YSIZE=")
        if pos is not None:
            pad.y_size = FieldReader(line, pos).read_double()
        pos = _find(line, b"|INDEXFORSAVE=")
        if pos is not None:
            pad.id = FieldReader(line, pos).read_int()
        pos = _find(line, b"|UNIQUEID=")
        if pos is not None:
            pad.unique_id = _read_item(line, pos)
        pos = _find(line, b"|LAYER=")
        if pos is not None:
            pad.layer = _read_item(line, pos)
            if pad.layer == "MULTILAYER":
                pad.type = _MULTILAYER_PAD

        if pad.x_size > 0.0 and pad.y_size > 0.0:
            pad.radius = min(pad.x_size, pad.y_size) / 2
        self.ad_pads.append(pad)

    def _build_parts_and_pins(self) -> None:
        nc_id = len(self.ad_nets)
        for ad_part in self.ad_parts:
            if not ad_part.name:
                ad_part.name = "UNKNOWN"
            if ad_part.layer == "TOP":
                side = PartMountingSide.TOP
            elif ad_part.layer == "BOTTOM":
                side = PartMountingSide.BOTTOM
            else:
                side = PartMountingSide.BOTH
            part = Part(name=ad_part.name, mounting_side=side)

            for pad in self.ad_pads:
                if pad.part_id != ad_part.part_id:
                    continue
                net_id = pad.net_id or nc_id  # pads without a net join the NC net
                pin = Pin(
                    pos=Point(int(pad.x), int(pad.y)),
                    part=ad_part.part_id,
                    snum=pad.snum,
                    radius=pad.radius,
                    side=pin_side_for(side),
                )
                net = next((n for n in self.ad_nets if n.id == net_id), None)
                if net is not None:
                    pin.net = net.name
                if pad.type == _MULTILAYER_PAD:
                    part.part_type = PartType.THROUGH_HOLE
                self.pins.append(pin)
            part.end_of_pins = len(self.pins)
            self.parts.append(part)