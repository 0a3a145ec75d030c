"""Detection of Allegro board files, which cannot be read."""

from __future__ import annotations

from .base import BoardFile, BoardFormatError

_MARKER_OFFSET = 0xF8


class AllegroFile(BoardFile):
    """Allegro boards are recognised but not supported; constructing one raises."""

    def __init__(self, buf: bytes) -> None:
        super().__init__()
        raise BoardFormatError(
            "Allegro format is not supported. Please use Allegro\u00ae FREE Physical Viewer."
        )

    @staticmethod
    def verify_format(buf: bytes) -> bool:
        """Allegro files hold "all" followed by a version number at offset 0xf8."""
        data = bytes(buf)
        return len(data) >= 0xFA and data[_MARKER_OFFSET:_MARKER_OFFSET + 3] == b"all"