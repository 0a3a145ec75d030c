"""Reader for boards stored as a set of ASC text files in one directory."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

from .base import BoardFile, BoardFormatError, split_lines
from .bdv import _parse_nail, _parse_part_or_pin, _parse_point

# File name, line parser and number of unused lines after the first one.
_FILES: tuple[tuple[str, Callable[[BoardFile, bytes], None], int], ...] = (
    ("format.asc", _parse_point, 7),
    ("pins.asc", _parse_part_or_pin, 7),
    ("nails.asc", _parse_nail, 6),
)


def lookup_file_insensitive(directory: str | Path, filename: str) -> Path:
    """Find ``filename`` in ``directory`` ignoring letter case.

    Raises FileNotFoundError when no such file exists.
    """
    directory = Path(directory)
    candidate = directory / filename
    if candidate.is_file():
        return candidate
    wanted = filename.lower()
    try:
        entries = sorted(directory.iterdir())
    except OSError as exc:
        raise FileNotFoundError(f"cannot list directory {directory}: {exc}") from exc
    for entry in entries:
        if entry.name.lower() == wanted and entry.is_file():
            return entry
    raise FileNotFoundError(f"{filename} not found in {directory}")


class ASCFile(BoardFile):
    """A board read from format.asc, pins.asc and nails.asc next to ``filepath``.

    ``buf`` is accepted for uniformity with the other readers and not used.
    """

    def __init__(self, buf: bytes, filepath: str | Path) -> None:
        super().__init__()
        directory = Path(filepath).resolve().parent
        try:
            for filename, parser, unused in _FILES:
                path = lookup_file_insensitive(directory, filename)
                self._read_asc(path, parser, unused)
        finally:
            self.update_counts()

    def _read_asc(self, path: Path, parser: Callable[[BoardFile, bytes], None], unused: int) -> None:
        data = path.read_bytes()
        if len(data) <= 4:
            raise BoardFormatError(f"{path.name} is too short")
        lines = split_lines(data)
        first = True
        index = 0
        while index < len(lines):
            line = lines[index].lstrip()
            index += 1
            if not line:
                continue
            if first:
                first = False
                index += unused
                continue
            parser(self, line)


def _wrap_missing(exc: FileNotFoundError) -> BoardFormatError:
    return BoardFormatError(str(exc))


_original_init = ASCFile.__init__


def _init(self: ASCFile, buf: bytes, filepath: str | Path) -> None:
    try:
        _original_init(self, buf, filepath)
    except FileNotFoundError as exc:
        raise _wrap_missing(exc) from exc


ASCFile.__init__ = _init  # type: ignore[method-assign]