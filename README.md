# boardfiles

Readers for boardview files. A boardview file lists a circuit board's
outline, its parts and pins, and its test points (nails).

Supported formats:

| Module                 | Class         | Format                                                    |
|------------------------|---------------|-----------------------------------------------------------|
| `boardfiles.brd`       | `BRDFile`     | BRD, plain or with the `23 e2 63 28` encoding             |
| `boardfiles.brd2`      | `BRD2File`    | BRD2 (`BRDOUT:` / `NETS:` sections)                       |
| `boardfiles.allegro`   | `AllegroFile` | Allegro files: detected, then rejected                    |
| `boardfiles.bdv`       | `BDVFile`     | Encoded BDV                                               |
| `boardfiles.asc`       | `ASCFile`     | A directory of `format.asc`, `pins.asc` and `nails.asc`   |
| `boardfiles.bvr`       | `BVRFile`     | `BVRAW_FORMAT_1`                                          |
| `boardfiles.bvr3`      | `BVR3File`    | `BVRAW_FORMAT_3`                                          |
| `boardfiles.cad`       | `CADFile`     | CAD text exports (`COMP`, `C_PIN`, `NET`, `N_VIA` records) |
| `boardfiles.cst`       | `CSTFile`     | Binary CST                                                |
| `boardfiles.ad`        | `ADFile`      | Altium ASCII PCB exports                                  |
| `boardfiles.fz`        | `FZFile`      | FZ, encrypted and zlib-compressed; needs a 44-word key    |

## Installation

```
pip install .
```

To run the tests, install the test extra:

```
pip install .[test]
pytest
```

## Usage

Most readers take the raw bytes of a file. To check whether some data
looks like a given format, use the static `verify_format(buf)` method.
`BRDFile`, `BRD2File`, `AllegroFile`, `BDVFile`, `BVRFile`, `BVR3File`,
`CADFile` and `ADFile` have it. `ASCFile`, `CSTFile` and `FZFile` do not.

```python
from pathlib import Path

from boardfiles.brd import BRDFile

data = Path("board.brd").read_bytes()
if BRDFile.verify_format(data):
    board = BRDFile(data)
    for part in board.parts:
        print(part.name, part.mounting_side, part.part_type)
    for pin in board.pins:
        print(pin.part, pin.pos.x, pin.pos.y, pin.net)
```

Every reader is a subclass of `boardfiles.base.BoardFile`, which has these attributes:

- `format`: the board outline, a list of `Point`
- `outline_segments`: a list of `(Point, Point)` pairs; none of the readers here fill it
- `parts`, `pins`, `nails`: lists of `Part`, `Pin` and `Nail`
- `num_format`, `num_parts`, `num_pins`, `num_nails`: the element counts

Coordinates are integers in mils (thousandths of an inch). `Pin.part` is
the 1-based index of the pin's part in `parts`. Malformed or unsupported
data raises `boardfiles.base.BoardFormatError`, which is a subclass of
`ValueError`. When you construct an `AllegroFile`, it always raises this
error.

Some formats give no outline: CAD, CST and FZ. For these, the reader
draws a rectangle around the pins with a margin of 20 mils.

BRD2 and BRDFile-style readers that list nails separately are handled as
follows. `BRD2File` appends two dummy `"..."` parts, one for the bottom
and one for the top, and adds each nail as a pin on one of them.

### ASC directories

An ASC board is spread over several files. `ASCFile` therefore takes a
`buf` argument, which it does not use, and the path of any file in the
set. It finds the sibling files whatever their letter case:

```python
from boardfiles.asc import ASCFile

board = ASCFile(b"", "dump/pins.asc")
```

If one of the files is missing, this raises `BoardFormatError`.
`boardfiles.asc.lookup_file_insensitive(directory, filename)` can also be
used on its own. If it finds no match, it raises `FileNotFoundError`.

### FZ files

`FZFile(buf, key)` needs the decryption key, given as a sequence of 44
unsigned 32-bit words. First the key's parity is checked with
`boardfiles.fz.check_fz_key`. If the check fails, the error message
includes the key as formatted by `fz_key_to_string`. Data whose bytes 4–5
already form a zlib header is not decrypted. The module also exposes the
steps on their own:

- `decode(data, key)`
- `split(data)`
- `decompress(data)`

## What this package does not do

- It does not display or render boards. It only reads them into Python objects.
- It has no command-line program.
- It does not detect the format for you. Call each class's `verify_format` yourself.
- It cannot read Allegro files. It does not read GenCAD files or binary Altium files either.