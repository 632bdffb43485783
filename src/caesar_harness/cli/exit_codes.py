"""Process exit codes for ``caesar-harness``.

Every failure the harness knows about (bad arguments, bad key, load,
symbol, or file errors) collapses to :data:`GENERAL_ERROR`; callers and
scripts only need to test for zero.
"""

from __future__ import annotations

SUCCESS: int = 0
"""Output file written, library released."""

GENERAL_ERROR: int = 1
"""A HarnessError was reported on stderr."""

UNEXPECTED_ERROR: int = 2
"""Something outside the HarnessError hierarchy escaped."""

KEYBOARD_INTERRUPT: int = 130
"""Interrupted with Ctrl+C (128 + SIGINT)."""
