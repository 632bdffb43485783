"""Shared pytest fixtures and configuration for the caesar-harness test suite.

Guidelines
----------
* Core tests must be pure — fake loaders and file stores, no native code.
* Tests that need a real shared library use :func:`stub_libraries`,
  which compiles small C collaborators once per session and skips when
  no C compiler is available.
* Every file a test writes lives under ``tmp_path``.
"""

from __future__ import annotations

import os
import shutil
import subprocess
from collections.abc import Iterator
from pathlib import Path

import pytest

from caesar_harness.infra.dynamic_library import get_ffi

# ---------------------------------------------------------------------------
# Stub collaborator sources
# ---------------------------------------------------------------------------

_SET_KEY = """
static unsigned char g_key;

void set_key(char key)
{
    g_key = (unsigned char)key;
}
"""

STUB_SOURCES: dict[str, str] = {
    # XOR with the key byte; its own inverse.
    "xor": _SET_KEY
    + """
void caesar(void *input, void *output, int length)
{
    const unsigned char *in = (const unsigned char *)input;
    unsigned char *out = (unsigned char *)output;
    for (int i = 0; i < length; ++i) {
        out[i] = in[i] ^ g_key;
    }
}
""",
    # Add the key byte mod 256; inverse is the key 256 - k.
    "shift": _SET_KEY
    + """
void caesar(void *input, void *output, int length)
{
    const unsigned char *in = (const unsigned char *)input;
    unsigned char *out = (unsigned char *)output;
    for (int i = 0; i < length; ++i) {
        out[i] = (unsigned char)(in[i] + g_key);
    }
}
""",
    "no_caesar": _SET_KEY,
    "no_set_key": """
void caesar(void *input, void *output, int length)
{
    (void)input;
    (void)output;
    (void)length;
}
""",
}


def _find_c_compiler() -> str | None:
    for candidate in (os.environ.get("CC"), "cc", "gcc", "clang"):
        if candidate:
            found = shutil.which(candidate)
            if found is not None:
                return found
    return None


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture(scope="session")
def stub_libraries(tmp_path_factory: pytest.TempPathFactory) -> dict[str, Path]:
    """Compile every stub in :data:`STUB_SOURCES` into a shared library."""
    compiler = _find_c_compiler()
    if compiler is None:
        pytest.skip("no C compiler available to build stub libraries")

    build_dir = tmp_path_factory.mktemp("stub_libs")
    libraries: dict[str, Path] = {}
    for name, source in STUB_SOURCES.items():
        source_path = build_dir / f"{name}.c"
        source_path.write_text(source, encoding="utf-8")
        library_path = build_dir / f"lib{name}.so"
        completed = subprocess.run(
            [compiler, "-std=c99", "-shared", "-fPIC", "-o", str(library_path), str(source_path)],
            capture_output=True,
            text=True,
            check=False,
        )
        if completed.returncode != 0:
            pytest.skip(f"could not build stub library {name}: {completed.stderr.strip()}")
        libraries[name] = library_path
    return libraries


@pytest.fixture
def fresh_ffi() -> Iterator[None]:
    """Drop the cached FFI before and after the test."""
    get_ffi.cache_clear()
    yield
    get_ffi.cache_clear()
