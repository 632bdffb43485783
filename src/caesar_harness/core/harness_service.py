"""Core harness service — the load, resolve, transform, write sequence.

The service is handed a :class:`~caesar_harness.core.protocols.LibraryLoader`
and a :class:`~caesar_harness.core.protocols.FileStore` at construction
time.  It is responsible for:

* Running the steps in order with early exit on the first error.
* Releasing the library handle exactly once, whatever happens after it
  was acquired.
* Refusing inputs whose length the collaborator's ``int`` cannot carry.

Guarantees
----------
* Pure orchestration — no filesystem access, no ``print()``.
* No cffi import.
"""

from __future__ import annotations

from collections.abc import Callable

from caesar_harness.core.models import (
    CipherEntryPoints,
    HarnessRequest,
    HarnessResult,
    Key,
    TransformBuffers,
)
from caesar_harness.core.protocols import FileStore, LibraryLoader
from caesar_harness.exceptions import InputTooLargeError

INT_MAX: int = 2**31 - 1
"""Largest length the collaborator's signed ``int`` parameter can hold."""

StepCallback = Callable[[str], None]


def _ignore_step(_message: str) -> None:
    pass


def apply_transform(
    entry_points: CipherEntryPoints,
    key: Key,
    buffers: TransformBuffers,
) -> None:
    """Call ``set_key`` then ``caesar`` over *buffers*.

    The collaborator's effect on ``buffers.destination`` is not checked.

    Raises
    ------
    InputTooLargeError
        When ``buffers.length`` exceeds :data:`INT_MAX`.  Nothing is
        called in that case.
    """
    if buffers.length > INT_MAX:
        raise InputTooLargeError(
            f"Input is {buffers.length} bytes; the cipher library accepts at most {INT_MAX}.",
        )
    entry_points.set_key(key.value)
    entry_points.caesar(buffers.source, buffers.destination, buffers.length)


class HarnessService:
    """Drives one load-use-unload cycle of a cipher library.

    Parameters
    ----------
    loader:
        Any object satisfying the :class:`LibraryLoader` protocol.
    files:
        Any object satisfying the :class:`FileStore` protocol.
    """

    def __init__(self, loader: LibraryLoader, files: FileStore) -> None:
        self._loader: LibraryLoader = loader
        self._files: FileStore = files

    def run(
        self,
        request: HarnessRequest,
        *,
        step_callback: StepCallback | None = None,
    ) -> HarnessResult:
        """Transform ``request.input_path`` into ``request.output_path``.

        Parameters
        ----------
        request:
            Parsed library path, key, and file paths.
        step_callback:
            Optional callable invoked with a short description before
            each step.  May be ``None``.

        Raises
        ------
        LibraryLoadError
            When the library cannot be opened.
        SymbolResolutionError
            When ``set_key`` or ``caesar`` cannot be resolved.
        FileIOError
            When the input cannot be read or the output cannot be written.
        """
        notify = step_callback or _ignore_step

        notify(f"Opening library {request.library_path}")
        with self._loader.load(request.library_path) as library:
            notify("Resolving set_key and caesar")
            entry_points = library.resolve_entry_points()

            notify(f"Reading {request.input_path}")
            buffers = TransformBuffers.for_source(
                self._files.read_all(request.input_path),
            )

            notify(f"Transforming {buffers.length} bytes with key {request.key.value}")
            apply_transform(entry_points, request.key, buffers)

            notify(f"Writing {request.output_path}")
            self._files.write_all(request.output_path, buffers.result())

        return HarnessResult(
            bytes_processed=buffers.length,
            output_path=request.output_path,
        )
