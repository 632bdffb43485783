"""Domain models for caesar-harness.

All models are **frozen** dataclasses.  They carry zero I/O and no
dependencies on external packages.  :class:`TransformBuffers` is the one
model that owns mutable state: its ``destination`` buffer is the region
the collaborator library writes into.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from caesar_harness.exceptions import InvalidKeyError

KEY_MIN: int = 0
KEY_MAX: int = 255


# ---------------------------------------------------------------------------
# Key
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class Key:
    """A single-byte cipher key."""

    value: int
    """Byte value in ``[0, 255]``."""

    def __post_init__(self) -> None:
        if not KEY_MIN <= self.value <= KEY_MAX:
            raise InvalidKeyError(
                f"Key value {self.value} is outside {KEY_MIN}..{KEY_MAX}.",
            )


# ---------------------------------------------------------------------------
# Buffers handed to the collaborator
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class TransformBuffers:
    """Input bytes plus an equally sized, zero-filled output buffer.

    The collaborator receives ``source`` read-only and ``destination``
    writable, together with :attr:`length`.  It is trusted to write
    exactly ``length`` bytes; nothing here can detect a write past the
    end of ``destination``.
    """

    source: bytes
    destination: bytearray

    @classmethod
    def for_source(cls, data: bytes) -> TransformBuffers:
        """Wrap *data* with a zero-filled destination of the same length."""
        return cls(source=bytes(data), destination=bytearray(len(data)))

    @property
    def length(self) -> int:
        return len(self.source)

    def result(self) -> bytes:
        """Snapshot of the destination buffer."""
        return bytes(self.destination)


# ---------------------------------------------------------------------------
# Resolved entry points
# ---------------------------------------------------------------------------

SetKeyFunc = Callable[[int], None]
"""``set_key(key)`` — records a one-byte key inside the collaborator."""

CaesarFunc = Callable[[bytes, bytearray, int], None]
"""``caesar(source, destination, length)`` — transforms *length* bytes."""


@dataclass(frozen=True, slots=True)
class CipherEntryPoints:
    """The two functions resolved from a loaded cipher library.

    Valid only while the library they were resolved from is open.
    """

    set_key: SetKeyFunc
    caesar: CaesarFunc


# ---------------------------------------------------------------------------
# Run request / result
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class HarnessRequest:
    """Everything a single harness run needs, parsed from the command line."""

    library_path: str
    key: Key
    input_path: str
    output_path: str


@dataclass(frozen=True, slots=True)
class HarnessResult:
    """Outcome of a successful run."""

    bytes_processed: int
    output_path: str
