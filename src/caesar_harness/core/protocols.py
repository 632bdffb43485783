"""Protocols (interfaces) consumed by the core layer.

These define the contracts that infrastructure adapters must satisfy.
Core code depends ONLY on these protocols — never on concrete
implementations — so the Loader-Invoker can be exercised with plain
Python fakes as well as with a real shared library.
"""

from __future__ import annotations

from types import TracebackType
from typing import Protocol

from caesar_harness.core.models import CipherEntryPoints


class CipherLibrary(Protocol):
    """An opened cipher library that owns its native handle.

    Used as a context manager: leaving the ``with`` block releases the
    handle.  Releasing is idempotent — the native handle is freed at
    most once no matter how often :meth:`close` is called.
    """

    def __enter__(self) -> CipherLibrary:
        ...  # pragma: no cover

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        ...  # pragma: no cover

    def resolve_entry_points(self) -> CipherEntryPoints:
        """Resolve ``set_key`` then ``caesar``.

        Raises
        ------
        SymbolResolutionError
            When either symbol is missing or resolves to a null address.
        """
        ...  # pragma: no cover

    def close(self) -> None:
        """Release the native handle."""
        ...  # pragma: no cover


class LibraryLoader(Protocol):
    """Contract for opening a cipher library by path."""

    def load(self, library_path: str) -> CipherLibrary:
        """Open *library_path* and hand ownership of it to the caller.

        Raises
        ------
        LibraryLoadError
            When the platform loader rejects the path.
        """
        ...  # pragma: no cover


class FileStore(Protocol):
    """Contract for whole-file reads and writes."""

    def read_all(self, path: str) -> bytes:
        """Return the complete contents of *path*.

        Raises
        ------
        FileIOError
            When the file cannot be opened, sized, or fully read.
        """
        ...  # pragma: no cover

    def write_all(self, path: str, data: bytes) -> None:
        """Replace the contents of *path* with *data*.

        Raises
        ------
        FileIOError
            When the file cannot be opened or not every byte is written.
        """
        ...  # pragma: no cover
