"""Custom exception hierarchy for caesar-harness.

All exceptions that cross layer boundaries must inherit from
:class:`HarnessError`.  Raw third-party and OS exceptions (cffi's
``OSError`` / ``AttributeError``, file ``OSError``) must NEVER propagate
beyond the infrastructure layer — they must be caught and re-raised as a
typed subclass defined here.

Hierarchy
---------
HarnessError
├── InvalidArgumentsError
├── InvalidKeyError
├── LibraryLoadError
├── SymbolResolutionError
├── FileIOError
│   └── InputTooLargeError
└── EnvironmentError
"""

from __future__ import annotations


class HarnessError(Exception):
    """Base exception for all caesar-harness errors.

    Every user-visible error condition must map to a subclass of this
    exception so that the CLI error boundary can render a clean message
    and exit with status 1.
    """

    def __init__(self, message: str, *, hint: str | None = None) -> None:
        super().__init__(message)
        self.hint: str | None = hint
        """Optional actionable guidance shown below the error message."""


# --- Command line ----------------------------------------------------------

class InvalidArgumentsError(HarnessError):
    """Raised when the command line has the wrong shape."""


class InvalidKeyError(HarnessError):
    """Raised when the key string is not a single byte or an integer 0..255."""


# --- Dynamic library -------------------------------------------------------

class LibraryLoadError(HarnessError):
    """Raised when the shared library cannot be opened."""


class SymbolResolutionError(HarnessError):
    """Raised when a required entry point cannot be resolved."""


# --- File I/O --------------------------------------------------------------

class FileIOError(HarnessError):
    """Raised when the input or output file cannot be read or written."""


class InputTooLargeError(FileIOError):
    """Raised when the input length does not fit the collaborator's ``int``."""


# --- Environment / tooling -------------------------------------------------

class EnvironmentError(HarnessError):
    """Raised when a required runtime dependency is not available."""
