import struct

import pytest

from boardfiles.base import BoardFormatError, PartMountingSide, PartType, PinSide, Point, outline_from_pins
from boardfiles.cst import CSTFile


def build_cst(parts, nets, pins, with_pad_section=True):
    out = bytearray(struct.pack("<h", len(parts)))
    out += b"\0\0\0\0"
    out += struct.pack("<h", 4) + b"CDev"
    for index, (name, layer) in enumerate(parts):
        out += bytes([len(name)]) + name + b"\0" * 4 + bytes([layer])
        last = index == len(parts) - 1
        out += b"\0" * 4 + (struct.pack("<h", len(nets)) if last else b"\0\0")
    for net in nets:
        out += bytes([len(net)]) + net
    out += b"\0"
    if with_pad_section:
        out += struct.pack("<h", len(pins)) + b"\0" * 6 + b"CPad"
        for part_id, probe, net_id, x, y in pins:
            out += struct.pack("<hhhhhh", part_id, probe, net_id, x, y, 0) + b"\0" * 4
    return bytes(out)


PARTS = [(b"C1", 0x0C), (b"R1", 0x01), (b"X7", 0x05)]
NETS = [b"GND", b"VCC"]
PINS = [
    (0, 5, 1, 100, 200),
    (1, 6, 0, 300, 50),
    (-1, 7, 0, 10, 400),
    (2, 8, 1, 250, 250),
]


def test_parts_and_dummy():
    board = CSTFile(build_cst(PARTS, NETS, PINS))
    assert [part.name for part in board.parts] == ["C1", "R1", "X7", "..."]
    assert board.parts[0].mounting_side is PartMountingSide.TOP
    assert board.parts[1].mounting_side is PartMountingSide.BOTTOM
    assert board.parts[2].mounting_side is PartMountingSide.BOTH
    assert board.parts[3].part_type is PartType.THROUGH_HOLE
    assert board.num_parts == 4


def test_pins():
    board = CSTFile(build_cst(PARTS, NETS, PINS))
    assert board.num_pins == 4
    assert [pin.part for pin in board.pins] == [1, 2, 4, 3]
    assert [pin.net for pin in board.pins] == ["VCC", "GND", "GND", "VCC"]
    assert [pin.probe for pin in board.pins] == [5, 6, 7, 8]
    assert board.pins[0].pos == Point(100, 200)
    assert [pin.side for pin in board.pins] == [PinSide.TOP, PinSide.BOTTOM, PinSide.BOTH, PinSide.BOTH]


def test_outline_from_pins():
    board = CSTFile(build_cst(PARTS, NETS, PINS))
    assert board.format == outline_from_pins(board.pins)
    assert board.num_format == 5


def test_unknown_net_is_rejected():
    with pytest.raises(BoardFormatError):
        CSTFile(build_cst(PARTS, NETS, [(0, 1, 2, 0, 0)]))


def test_unknown_part_is_rejected():
    with pytest.raises(BoardFormatError):
        CSTFile(build_cst(PARTS, NETS, [(9, 1, 0, 0, 0)]))


def test_missing_pad_section_is_rejected():
    with pytest.raises(BoardFormatError):
        CSTFile(build_cst(PARTS, NETS, PINS, with_pad_section=False))


def test_truncated_pins_are_rejected():
    data = build_cst(PARTS, NETS, PINS)
    with pytest.raises(BoardFormatError):
        CSTFile(data[:-20])


def test_short_data_is_rejected():
    with pytest.raises(BoardFormatError):
        CSTFile(b"\x01\x00")