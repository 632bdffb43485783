"""Allow ``python -m caesar_harness`` invocation.

This module simply delegates to the CLI error-boundary entry point so
that ``python -m caesar_harness`` behaves identically to the
``caesar-harness`` console script.
"""

from __future__ import annotations

from caesar_harness.cli.app import cli

if __name__ == "__main__":
    cli()
