"""Infrastructure: open a cipher library with cffi and bind its entry points.

This module is the **only** place in the codebase that imports ``cffi``.
The collaborator ABI is declared once in :data:`CIPHER_CDEF`; the library
is opened in ABI mode (no compiler involved) with lazy binding.

Rules
-----
* cffi's ``OSError`` (open) and ``AttributeError`` (lookup) are
  translated into :class:`LibraryLoadError` / :class:`SymbolResolutionError`.
* A :class:`DynamicLibrary` releases its handle at most once.
* Entry points must not be called after the library is closed.
"""

from __future__ import annotations

import functools
import os
from types import TracebackType
from typing import Any

from caesar_harness.core.models import CipherEntryPoints
from caesar_harness.exceptions import (
    EnvironmentError,
    LibraryLoadError,
    SymbolResolutionError,
)

CIPHER_CDEF: str = """
    void set_key(char key);
    void caesar(const void *input, void *output, int length);
"""

REQUIRED_SYMBOLS: tuple[str, ...] = ("set_key", "caesar")


def explicit_path(library_path: str) -> str:
    """Return *library_path* with a directory part, so no search path applies.

    A bare name such as ``libcaesar.so`` is taken relative to the current
    directory, never looked up in the system library paths.
    """
    separators = (os.sep, os.altsep) if os.altsep else (os.sep,)
    if any(sep in library_path for sep in separators):
        return library_path
    return os.path.join(os.curdir, library_path)


@functools.lru_cache(maxsize=1)
def get_ffi() -> Any:
    """Return the shared ``cffi.FFI`` carrying :data:`CIPHER_CDEF`.

    Raises
    ------
    EnvironmentError
        When cffi is not installed.
    """
    try:
        from cffi import FFI
    except ModuleNotFoundError as exc:
        raise EnvironmentError(
            "cffi is not installed. Install with: pip install cffi",
        ) from exc

    ffi = FFI()
    ffi.cdef(CIPHER_CDEF)
    return ffi


class DynamicLibrary:
    """An open cipher library.  Satisfies :class:`CipherLibrary`.

    Usage::

        with CffiLibraryLoader().load("./libcaesar.so") as library:
            entry_points = library.resolve_entry_points()
    """

    def __init__(self, path: str, handle: Any, ffi: Any) -> None:
        self.path: str = path
        self._handle: Any = handle
        self._ffi: Any = ffi

    def __enter__(self) -> DynamicLibrary:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    @property
    def closed(self) -> bool:
        return self._handle is None

    def close(self) -> None:
        """Release the native handle; later calls do nothing."""
        if self._handle is None:
            return
        handle, self._handle = self._handle, None
        self._ffi.dlclose(handle)

    # ------------------------------------------------------------------
    # Symbol resolution
    # ------------------------------------------------------------------

    def resolve(self, symbol: str) -> Any:
        """Look up *symbol* and return it typed per :data:`CIPHER_CDEF`.

        A lookup that reports no error but yields a null address is
        still a failure.
        """
        if self._handle is None:
            raise SymbolResolutionError(
                f"Cannot resolve '{symbol}': library '{self.path}' is closed.",
            )

        try:
            function = getattr(self._handle, symbol)
        except AttributeError as exc:
            detail = str(exc) or "unknown error"
            raise SymbolResolutionError(
                f"Failed to resolve symbol '{symbol}': {detail}",
                hint=f"The library must export both {' and '.join(REQUIRED_SYMBOLS)}.",
            ) from exc

        if function is None or self._ffi.cast("void *", function) == self._ffi.NULL:
            raise SymbolResolutionError(
                f"Failed to resolve symbol '{symbol}': unknown error",
            )
        return function

    def resolve_entry_points(self) -> CipherEntryPoints:
        """Resolve ``set_key`` then ``caesar`` and wrap them for Python callers."""
        set_key_fn = self.resolve("set_key")
        caesar_fn = self.resolve("caesar")
        ffi = self._ffi

        def set_key(key: int) -> None:
            set_key_fn(bytes((key,)))

        def caesar(source: bytes, destination: bytearray, length: int) -> None:
            # destination is borrowed for the duration of the call only.
            caesar_fn(ffi.from_buffer(source), ffi.from_buffer(destination), length)

        return CipherEntryPoints(set_key=set_key, caesar=caesar)


class CffiLibraryLoader:
    """Concrete :class:`LibraryLoader` backed by ``cffi.FFI.dlopen``."""

    def load(self, library_path: str) -> DynamicLibrary:
        """Open the file at *library_path* with ``RTLD_LAZY``.

        Only that file is ever opened: bare names go through
        :func:`explicit_path`, and a path that does not exist is rejected
        before cffi can fall back to ``ctypes.util.find_library``.

        Raises
        ------
        LibraryLoadError
            When the file is missing or the platform loader rejects it.
            The message carries the loader's own diagnostic.
        """
        ffi = get_ffi()
        path = explicit_path(library_path)
        if not os.path.exists(path):
            raise LibraryLoadError(
                f"dlopen('{library_path}') failed: {path}: No such file or directory",
                hint="Pass the path of the shared library file; libraries are not searched for.",
            )
        try:
            handle = ffi.dlopen(path, ffi.RTLD_LAZY)
        except OSError as exc:
            raise LibraryLoadError(
                f"dlopen('{library_path}') failed: {exc}",
                hint="Check that the path points to a shared library built for this platform.",
            ) from exc
        return DynamicLibrary(library_path, handle, ffi)
