"""Reader for the FZ board format: RC6 stream encrypted, zlib compressed text."""

from __future__ import annotations

import logging
import struct
import zlib
from collections.abc import Sequence
from dataclasses import dataclass, field

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
    fix_to_utf8,
    outline_from_pins,
    pin_side_for,
    split_lines,
)

logger = logging.getLogger(__name__)

KEY_WORDS = 44
KEY_PARITY = (
    0, 1, 1, 0, 1, 0, 1, 0, 0, 0, 1, 0, 0, 1, 1, 0, 1, 1, 0, 1, 0, 0,
    0, 1, 1, 1, 0, 0, 0, 1, 0, 0, 0, 1, 0, 0, 0, 1, 0, 0, 1, 1, 0, 1,
)

_MASK = 0xFFFFFFFF
_ROUNDS = 20
_LOG_W = 5
_WINDOW = struct.Struct("<4I")
_WHITESPACE = b" \t\n\r\x0b\x0c"
_CONTENT_DELIMITER = ord("!")
_DESCR_DELIMITER = ord("\t")
_ZLIB_SIGNATURES = (b"\x78\x9c", b"\x78\xda")
# Millimetre files are scaled by the single precision value of 25.4.
_MILLIMETERS = struct.unpack("<f", struct.pack("<f", 25.4))[0]
_MIN_RADIUS = 0.5

# Block header prefix (after "A!") -> block name; unknown headers give "other".
_BLOCKS = (
    (b"REFDES", "parts"),
    (b"NET_NAME", "pins"),
    (b"TESTVIA", "nails"),
    (b"GRAPHIC_DATA_NAME", "drawing"),
    (b"CLASS", "class"),
    (b"LOGOInfo", "logo"),
    (b"UnDrawSym", "undraw"),
)


@dataclass
class FZPartDesc:
    """One row of the parts description table."""

    partno: str = ""
    description: str = ""
    quantity: int = 0
    locations: list[str] = field(default_factory=list)
    partno2: str = ""


def fz_key_to_string(key: Sequence[int]) -> str:
    """Format a key as hexadecimal words, four to a line."""
    words = [" 0x%08x" % (word & _MASK) for word in key]
    return "".join("".join(words[i:i + 4]) + "\n" for i in range(0, len(words), 4))


def _word_parity(word: int) -> int:
    """1 when the word has an even number of set bits, else 0."""
    return 1 - bin(word & _MASK).count("1") % 2


def check_fz_key(key: Sequence[int]) -> bool:
    """Check the parity of every key word against the known parity pattern."""
    words = list(key)
    if len(words) != KEY_WORDS:
        return False
    return all(_word_parity(word) == parity for word, parity in zip(words, KEY_PARITY))


def _key_words(key: Sequence[int]) -> list[int]:
    words = [word & _MASK for word in key]
    if len(words) != KEY_WORDS:
        raise BoardFormatError(f"an FZ key has {KEY_WORDS} words, got {len(words)}")
    return words


def _rotl(value: int, shift: int) -> int:
    shift &= 31
    return ((value << shift) | (value >> (32 - shift))) & _MASK


def decode(data: bytes, key: Sequence[int]) -> bytes:
    """Decrypt data encrypted with RC6 in 8-bit cipher feedback mode."""
    words = _key_words(key)
    first_b, first_d = words[0], words[1]
    round_keys = [(words[2 * i], words[2 * i + 1]) for i in range(1, _ROUNDS + 1)]
    final_a = words[2 * _ROUNDS + 2]

    src = bytes(data)
    out = bytearray(len(src))
    window = bytearray(16)
    a = b = c = d = 0
    for pos, byte in enumerate(src):
        b = (b + first_b) & _MASK
        d = (d + first_d) & _MASK
        for key_a, key_c in round_keys:
            t = _rotl((b * (2 * b + 1)) & _MASK, _LOG_W)
            u = _rotl((d * (2 * d + 1)) & _MASK, _LOG_W)
            a = (_rotl(a ^ t, u) + key_a) & _MASK
            c = (_rotl(c ^ u, t) + key_c) & _MASK
            a, b, c, d = b, c, d, a
        a = (a + final_a) & _MASK
        out[pos] = byte ^ (a & 0xFF)

        # The next block input is the last 16 cipher bytes.
        del window[0]
        window.append(byte)
        a, b, c, d = _WINDOW.unpack(window)
    return bytes(out)


def split(data: bytes) -> tuple[bytes, bytes]:
    """Split decrypted data into the compressed content and description parts.

    The last four bytes hold the description size, little endian.
    """
    data = bytes(data)
    size = len(data)
    if size < 4:
        raise BoardFormatError("FZ data is too short to split")
    descr_size = int.from_bytes(data[-4:], "little", signed=True)
    if descr_size < 0 or descr_size > size:
        raise BoardFormatError(f"invalid FZ description size {descr_size}")
    if descr_size == 0:
        raise BoardFormatError("FZ data has an empty description part")
    content_size = size - descr_size + 4
    content = data[4:4 + content_size]
    descr = data[content_size:content_size + descr_size]
    return content, descr


def decompress(data: bytes) -> bytes:
    """Inflate a zlib stream; bytes after the stream end are ignored."""
    data = bytes(data)
    if not data:
        raise BoardFormatError("nothing to decompress")
    inflater = zlib.decompressobj()
    try:
        output = inflater.decompress(data)
    except zlib.error as exc:
        raise BoardFormatError(f"cannot decompress FZ data: {exc}") from exc
    if not inflater.eof:
        logger.warning("FZ data ends before the end of its compressed stream")
    return output


class _DelimitedReader(FieldReader):
    """Field reader where each value may be followed by one delimiter byte."""

    def __init__(self, line: bytes, delimiter: int, pos: int = 0) -> None:
        super().__init__(line, pos)
        self.delimiter = delimiter

    def _skip_delimiter(self) -> None:
        if self.pos < len(self.line) and self.line[self.pos] == self.delimiter:
            self.pos += 1

    def read_int(self) -> int:
        value = super().read_int()
        self._skip_delimiter()
        return value

    def read_double(self) -> float:
        value = super().read_double()
        self._skip_delimiter()
        return value

    def read_str(self) -> str:
        line = self.line
        size = len(line)
        p = self.pos
        while p < size and line[p] in _WHITESPACE and line[p] != self.delimiter:
            p += 1
        start = p
        while p < size and line[p] != self.delimiter:
            p += 1
        self.pos = min(p + 1, size)
        return fix_to_utf8(line[start:p])


class FZFile(BoardFile):
    """A board read from FZ data with the given 44-word key."""

    def __init__(self, buf: bytes, key: Sequence[int]) -> None:
        super().__init__()
        words = [int(word) for word in key]
        if not check_fz_key(words):
            raise BoardFormatError("Invalid FZ key\nFZ Key:\n" + fz_key_to_string(words))

        data = bytes(buf)
        if len(data) <= 4:
            raise BoardFormatError("FZ data is too short")
        # Some files are compressed but not encrypted; they start with a zlib header.
        if data[4:6] not in _ZLIB_SIGNATURES:
            data = decode(data, words)

        content_raw, descr_raw = split(data)
        content = decompress(content_raw)
        descr = decompress(descr_raw)

        self.parts_desc: list[FZPartDesc] = []
        self._part_ids: dict[str, int] = {}
        self._multiplier = 1.0

        # Some boards use commas as decimal separators.
        if not self._parse_content(content.replace(b",", b".")):
            raise BoardFormatError("FZ data holds no known blocks\nFZ Key:\n" + fz_key_to_string(words))
        self._parse_descr(descr)

        for pdesc in self.parts_desc:
            for location in pdesc.locations:
                part_id = self._part_ids.get(location)
                if part_id is not None:  # descriptions may name parts not on the board
                    self.parts[part_id - 1].mfgcode = pdesc.description

        for index, pin in enumerate(self.pins):
            if pin.part > 0:
                self.parts[pin.part - 1].end_of_pins = index

        self.format.extend(outline_from_pins(self.pins))
        self.update_counts()

    def _parse_content(self, content: bytes) -> bool:
        """Read parts, pins and nails; returns whether any block header was seen."""
        block = None
        for raw in split_lines(content):
            line = raw.lstrip()
            if not line:
                continue
            if line == b"UNIT:millimeters":
                self._multiplier = _MILLIMETERS
            if line[:1] == b"A":
                header = line[2:]
                block = next((name for prefix, name in _BLOCKS if header.startswith(prefix)), "other")
                continue
            if line[:1] != b"S":
                continue
            reader = _DelimitedReader(line, _CONTENT_DELIMITER, 2)
            if block == "parts":
                self._read_part(reader)
            elif block == "pins":
                self._read_pin(reader)
            elif block == "nails":
                self._read_nail(reader)
        return block is not None

    def _scaled(self, value: float) -> int:
        return int(value * self._multiplier)

    def _read_part(self, reader: _DelimitedReader) -> None:
        part = Part(name=reader.read_str(), part_type=PartType.SMD, end_of_pins=0)
        reader.read_str()  # insertion code
        reader.read_str()  # symbol name
        mirror = reader.read_str()
        reader.read_str()  # rotation
        part.mounting_side = PartMountingSide.TOP if mirror == "YES" else PartMountingSide.BOTTOM
        self.parts.append(part)
        self._part_ids[part.name] = len(self.parts)

    def _read_pin(self, reader: _DelimitedReader) -> None:
        pin = Pin(net=reader.read_str())
        part_name = reader.read_str()
        if part_name not in self._part_ids:
            raise BoardFormatError(f"pin refers to unknown part {part_name!r}")
        pin.part = self._part_ids[part_name]
        pin.snum = reader.read_str()
        reader.read_str()  # pin name
        x = reader.read_double()
        y = reader.read_double()
        pin.pos = Point(self._scaled(x), self._scaled(y))
        pin.probe = reader.read_uint()
        radius = max(reader.read_double() / 100, _MIN_RADIUS)
        pin.radius = radius * self._multiplier
        pin.side = pin_side_for(self.parts[pin.part - 1].mounting_side)
        self.pins.append(pin)

    def _read_nail(self, reader: _DelimitedReader) -> None:
        reader.skip(2)  # "Y!"
        nail = Nail(net=reader.read_str())
        reader.read_str()  # reference designator
        reader.read_int()  # pin number
        reader.read_str()  # pin name
        x = reader.read_double()
        y = reader.read_double()
        nail.pos = Point(self._scaled(x), self._scaled(y))
        location = reader.read_str()
        nail.side = PartMountingSide.TOP if location == "T" else PartMountingSide.BOTTOM
        reader.read_double()  # radius
        self.nails.append(nail)

    def _parse_descr(self, descr: bytes) -> None:
        # The first two lines are the board description and the column names.
        for raw in split_lines(descr)[2:]:
            line = raw.lstrip()
            if not line or line[:1] == b"s":
                continue
            reader = _DelimitedReader(line, _DESCR_DELIMITER)
            pdesc = FZPartDesc()
            pdesc.partno = reader.read_str()
            pdesc.description = reader.read_str()
            pdesc.quantity = reader.read_uint()
            pdesc.locations = reader.read_str().split()
            pdesc.partno2 = reader.read_str()
            self.parts_desc.append(pdesc)