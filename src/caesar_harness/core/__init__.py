"""Core / service layer — key parsing, buffer models, and run orchestration.

Rules
-----
* No ``print()`` calls.
* No filesystem access and no native library calls of its own.
* No imports from ``cli`` or ``infra``.
* All functions must be fully typed and deterministic.
"""

from caesar_harness.core.harness_service import HarnessService, apply_transform
from caesar_harness.core.key_parser import parse_key
from caesar_harness.core.models import (
    CipherEntryPoints,
    HarnessRequest,
    HarnessResult,
    Key,
    TransformBuffers,
)
from caesar_harness.core.protocols import CipherLibrary, FileStore, LibraryLoader

__all__: list[str] = [
    "CipherEntryPoints",
    "CipherLibrary",
    "FileStore",
    "HarnessRequest",
    "HarnessResult",
    "HarnessService",
    "Key",
    "LibraryLoader",
    "TransformBuffers",
    "apply_transform",
    "parse_key",
]
