"""Infrastructure layer — native library loading and file access.

This layer wraps all interaction with cffi and the filesystem.  Every
raw third-party or OS exception must be caught here and re-raised as a
:class:`~caesar_harness.exceptions.HarnessError` subclass.

Rules
-----
* No imports from ``cli``.
* No user-facing output (no ``print()``, no Rich rendering).
* Must expose clean, typed interfaces consumed by the core layer.
"""

from caesar_harness.infra.dynamic_library import CffiLibraryLoader, DynamicLibrary
from caesar_harness.infra.file_store import PathFileStore

__all__: list[str] = [
    "CffiLibraryLoader",
    "DynamicLibrary",
    "PathFileStore",
]
