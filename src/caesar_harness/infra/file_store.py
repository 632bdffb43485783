"""Infrastructure: whole-file reads and writes.

Implements :class:`~caesar_harness.core.protocols.FileStore` on top of
:mod:`pathlib`.  Every ``OSError`` is translated into
:class:`~caesar_harness.exceptions.FileIOError`; file handles are closed
before either method returns.
"""

from __future__ import annotations

import os
from pathlib import Path

from caesar_harness.exceptions import FileIOError


def _describe(exc: OSError) -> str:
    return exc.strerror or str(exc)


class PathFileStore:
    """Concrete :class:`FileStore` reading and writing local files."""

    def read_all(self, path: str) -> bytes:
        """Read *path* completely.

        The size is taken up front and exactly that many bytes must come
        back; an empty file returns ``b""`` without a read call.
        """
        try:
            with Path(path).open("rb") as fh:
                size = fh.seek(0, os.SEEK_END)
                fh.seek(0, os.SEEK_SET)
                if size == 0:
                    return b""
                data = fh.read(size)
        except OSError as exc:
            raise FileIOError(
                f"Failed to read input file: {path} ({_describe(exc)})",
            ) from exc

        if len(data) != size:
            raise FileIOError(
                f"Failed to read input file: {path} "
                f"(expected {size} bytes, got {len(data)})",
            )
        return data

    def write_all(self, path: str, data: bytes) -> None:
        """Create or truncate *path* and write *data* to it."""
        try:
            with Path(path).open("wb") as fh:
                if not data:
                    return
                written = fh.write(data)
        except OSError as exc:
            raise FileIOError(
                f"Failed to write output file: {path} ({_describe(exc)})",
            ) from exc

        if written != len(data):
            raise FileIOError(
                f"Failed to write output file: {path} "
                f"(wrote {written} of {len(data)} bytes)",
            )
