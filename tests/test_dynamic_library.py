"""Tests for cffi library loading (infra/dynamic_library.py).

The first half mocks the FFI object, so it needs neither a compiler nor
a real library.  The second half loads stub collaborators built by the
``stub_libraries`` fixture and is skipped without a C compiler.

Coverage:
* ``dlopen`` is called with ``RTLD_LAZY``; failures become ``LibraryLoadError``.
* Missing and null symbols become ``SymbolResolutionError``.
* ``close`` releases the handle once, however often it is called.
* Entry-point wrappers marshal the key and the buffers.
* Bare names open from the current directory; no library search path.
* Real stub libraries: transform, missing symbols, closed library.
"""

from __future__ import annotations

import os
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from caesar_harness.core.harness_service import apply_transform
from caesar_harness.core.models import Key, TransformBuffers
from caesar_harness.exceptions import LibraryLoadError, SymbolResolutionError
from caesar_harness.infra.dynamic_library import (
    CIPHER_CDEF,
    REQUIRED_SYMBOLS,
    CffiLibraryLoader,
    DynamicLibrary,
    explicit_path,
)


class _Handle:
    """Stand-in for a cffi library object exporting only ``set_key``."""

    def __init__(self) -> None:
        self.set_key = MagicMock(name="set_key")


# ---------------------------------------------------------------------------
# Declarations
# ---------------------------------------------------------------------------

class TestDeclarations:
    def test_required_symbols(self) -> None:
        assert REQUIRED_SYMBOLS == ("set_key", "caesar")

    def test_cdef_declares_both_signatures(self) -> None:
        assert "void set_key(char key);" in CIPHER_CDEF
        assert "void caesar(const void *input, void *output, int length);" in CIPHER_CDEF


# ---------------------------------------------------------------------------
# CffiLibraryLoader (mocked ffi)
# ---------------------------------------------------------------------------

class TestLoaderMocked:
    @patch("caesar_harness.infra.dynamic_library.get_ffi")
    def test_opens_with_lazy_binding(self, mock_get_ffi: MagicMock, tmp_path: Path) -> None:
        ffi = mock_get_ffi.return_value
        target = tmp_path / "libcaesar.so"
        target.write_bytes(b"")
        library = CffiLibraryLoader().load(str(target))

        ffi.dlopen.assert_called_once_with(str(target), ffi.RTLD_LAZY)
        assert isinstance(library, DynamicLibrary)
        assert library.path == str(target)
        assert library.closed is False

    @patch("caesar_harness.infra.dynamic_library.get_ffi")
    def test_open_failure_carries_platform_message(
        self, mock_get_ffi: MagicMock, tmp_path: Path,
    ) -> None:
        target = tmp_path / "libnope.so"
        target.write_bytes(b"")
        mock_get_ffi.return_value.dlopen.side_effect = OSError(
            f"cannot load library '{target}': invalid ELF header",
        )
        with pytest.raises(LibraryLoadError, match="invalid ELF header") as exc_info:
            CffiLibraryLoader().load(str(target))
        assert f"dlopen('{target}') failed" in str(exc_info.value)
        assert isinstance(exc_info.value.__cause__, OSError)

    @patch("caesar_harness.infra.dynamic_library.get_ffi")
    def test_bare_name_opens_from_current_directory(
        self,
        mock_get_ffi: MagicMock,
        tmp_path: Path,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        monkeypatch.chdir(tmp_path)
        (tmp_path / "libcaesar.so").write_bytes(b"")
        ffi = mock_get_ffi.return_value

        library = CffiLibraryLoader().load("libcaesar.so")

        ffi.dlopen.assert_called_once_with(os.path.join(os.curdir, "libcaesar.so"), ffi.RTLD_LAZY)
        assert library.path == "libcaesar.so"

    @patch("caesar_harness.infra.dynamic_library.get_ffi")
    def test_missing_file_never_reaches_dlopen(
        self,
        mock_get_ffi: MagicMock,
        tmp_path: Path,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        monkeypatch.chdir(tmp_path)

        with pytest.raises(LibraryLoadError, match="No such file or directory"):
            CffiLibraryLoader().load("m")
        mock_get_ffi.return_value.dlopen.assert_not_called()


class TestExplicitPath:
    @pytest.mark.parametrize("name", ["m", "libm.so.6", "libcaesar.so"])
    def test_bare_names_gain_current_directory(self, name: str) -> None:
        assert explicit_path(name) == os.path.join(os.curdir, name)

    @pytest.mark.parametrize("path", ["./libcaesar.so", "/usr/lib/libm.so.6", "build/lib.so"])
    def test_paths_are_unchanged(self, path: str) -> None:
        assert explicit_path(path) == path


# ---------------------------------------------------------------------------
# DynamicLibrary (mocked ffi)
# ---------------------------------------------------------------------------

class TestDynamicLibraryMocked:
    def test_close_releases_once(self) -> None:
        ffi = MagicMock()
        handle = _Handle()
        library = DynamicLibrary("lib.so", handle, ffi)

        library.close()
        library.close()

        ffi.dlclose.assert_called_once_with(handle)
        assert library.closed is True

    def test_context_manager_closes_on_error(self) -> None:
        ffi = MagicMock()
        handle = _Handle()

        with pytest.raises(RuntimeError):
            with DynamicLibrary("lib.so", handle, ffi):
                raise RuntimeError("boom")

        ffi.dlclose.assert_called_once_with(handle)

    def test_resolve_present_symbol(self) -> None:
        handle = _Handle()
        library = DynamicLibrary("lib.so", handle, MagicMock())
        assert library.resolve("set_key") is handle.set_key

    def test_resolve_missing_symbol(self) -> None:
        library = DynamicLibrary("lib.so", _Handle(), MagicMock())
        with pytest.raises(SymbolResolutionError, match="'caesar'") as exc_info:
            library.resolve("caesar")
        assert exc_info.value.hint is not None
        assert "set_key and caesar" in exc_info.value.hint

    def test_resolve_missing_symbol_without_message(self) -> None:
        class _Silent:
            def __getattr__(self, name: str) -> object:
                raise AttributeError()

        library = DynamicLibrary("lib.so", _Silent(), MagicMock())
        with pytest.raises(SymbolResolutionError, match="unknown error"):
            library.resolve("caesar")

    def test_resolve_null_symbol(self) -> None:
        ffi = MagicMock()
        ffi.cast.return_value = ffi.NULL
        library = DynamicLibrary("lib.so", _Handle(), ffi)

        with pytest.raises(SymbolResolutionError, match="unknown error"):
            library.resolve("set_key")
        ffi.cast.assert_called_once()

    def test_resolve_after_close(self) -> None:
        library = DynamicLibrary("lib.so", _Handle(), MagicMock())
        library.close()
        with pytest.raises(SymbolResolutionError, match="is closed"):
            library.resolve("set_key")

    def test_entry_points_marshal_arguments(self) -> None:
        ffi = MagicMock()
        ffi.from_buffer.side_effect = lambda buf: ("ptr", id(buf))
        handle = _Handle()
        handle.caesar = MagicMock(name="caesar")  # type: ignore[attr-defined]
        library = DynamicLibrary("lib.so", handle, ffi)

        entry_points = library.resolve_entry_points()
        source = b"ABC"
        destination = bytearray(3)
        entry_points.set_key(0x4B)
        entry_points.caesar(source, destination, 3)

        handle.set_key.assert_called_once_with(b"K")
        handle.caesar.assert_called_once_with(  # type: ignore[attr-defined]
            ("ptr", id(source)), ("ptr", id(destination)), 3,
        )

    def test_entry_points_stop_at_first_missing_symbol(self) -> None:
        library = DynamicLibrary("lib.so", _Handle(), MagicMock())
        with pytest.raises(SymbolResolutionError, match="'caesar'"):
            library.resolve_entry_points()


# ---------------------------------------------------------------------------
# Real stub libraries
# ---------------------------------------------------------------------------

class TestStubLibraries:
    def test_xor_transform(self, stub_libraries: dict[str, Path]) -> None:
        with CffiLibraryLoader().load(str(stub_libraries["xor"])) as library:
            entry_points = library.resolve_entry_points()
            buffers = TransformBuffers.for_source(b"\x41\x42\x43")
            apply_transform(entry_points, Key(ord("K")), buffers)
        assert buffers.result() == b"\x0a\x09\x08"
        assert library.closed

    def test_shift_transform_wraps(self, stub_libraries: dict[str, Path]) -> None:
        with CffiLibraryLoader().load(str(stub_libraries["shift"])) as library:
            buffers = TransformBuffers.for_source(b"\x00\x01\xff")
            apply_transform(library.resolve_entry_points(), Key(2), buffers)
        assert buffers.result() == b"\x02\x03\x01"

    def test_empty_buffer(self, stub_libraries: dict[str, Path]) -> None:
        with CffiLibraryLoader().load(str(stub_libraries["xor"])) as library:
            buffers = TransformBuffers.for_source(b"")
            apply_transform(library.resolve_entry_points(), Key(1), buffers)
        assert buffers.result() == b""

    def test_high_key_byte(self, stub_libraries: dict[str, Path]) -> None:
        with CffiLibraryLoader().load(str(stub_libraries["xor"])) as library:
            buffers = TransformBuffers.for_source(b"\x00\x0f")
            apply_transform(library.resolve_entry_points(), Key(0xFF), buffers)
        assert buffers.result() == b"\xff\xf0"

    @pytest.mark.parametrize(
        ("stub", "symbol"),
        [("no_caesar", "caesar"), ("no_set_key", "set_key")],
    )
    def test_missing_symbol(
        self, stub_libraries: dict[str, Path], stub: str, symbol: str,
    ) -> None:
        library = CffiLibraryLoader().load(str(stub_libraries[stub]))
        with library:
            with pytest.raises(SymbolResolutionError, match=symbol):
                library.resolve_entry_points()
        assert library.closed

    def test_nonexistent_path(self, tmp_path: Path) -> None:
        with pytest.raises(LibraryLoadError):
            CffiLibraryLoader().load(str(tmp_path / "libmissing.so"))

    def test_system_library_name_is_not_searched(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        monkeypatch.chdir(tmp_path)
        with pytest.raises(LibraryLoadError):
            CffiLibraryLoader().load("m")

    def test_bare_name_in_current_directory(
        self, stub_libraries: dict[str, Path], monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        monkeypatch.chdir(stub_libraries["xor"].parent)
        with CffiLibraryLoader().load(stub_libraries["xor"].name) as library:
            buffers = TransformBuffers.for_source(b"A")
            apply_transform(library.resolve_entry_points(), Key(1), buffers)
        assert buffers.result() == b"@"

    def test_not_a_library(self, tmp_path: Path) -> None:
        bogus = tmp_path / "libbogus.so"
        bogus.write_bytes(b"definitely not ELF")
        with pytest.raises(LibraryLoadError):
            CffiLibraryLoader().load(str(bogus))
