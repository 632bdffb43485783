"""CLI application entry point and command routing for caesar-harness.

This module is the **sole error boundary** for the entire application.
It catches :class:`~caesar_harness.exceptions.HarnessError`,
``KeyboardInterrupt``, and any unexpected ``Exception``, rendering a
single diagnostic on stderr and returning well-defined exit codes.

Architecture notes
------------------
* No business logic lives here — the run itself is delegated to
  :class:`~caesar_harness.core.harness_service.HarnessService` wired
  with the infra adapters.
* ``print()`` is forbidden outside the CLI layer; the stderr console is
  used exclusively.
* This module is the only place that translates between the domain world
  and the OS process exit code.
"""

from __future__ import annotations

import argparse
import sys
from typing import NoReturn

from caesar_harness.cli import exit_codes
from caesar_harness.cli.console import console, escape
from caesar_harness.core.key_parser import parse_key
from caesar_harness.core.models import HarnessRequest
from caesar_harness.exceptions import HarnessError, InvalidArgumentsError
from caesar_harness.version import __version__

PROG: str = "caesar-harness"

USAGE: str = (
    f"{PROG} [-v] <library_path> <key> <input_file> <output_file>\n"
    f"       {PROG} doctor [library_path]"
)

EXAMPLES: str = (
    "examples:\n"
    f"  {PROG} ./libcaesar.so K input.txt output.bin\n"
    f"  {PROG} ./libcaesar.so 75 input.txt output.bin\n"
    f"  {PROG} ./libcaesar.so 0x4B input.txt output.bin\n"
    f"  {PROG} -- -weird-name.so K input.txt output.bin\n"
    "\n"
    "key is a single character (its byte value) or an integer 0..255\n"
    "in decimal, 0x-prefixed hex, or 0-prefixed octal."
)


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------

class _HarnessArgumentParser(argparse.ArgumentParser):
    """Argument parser that reports mistakes as :class:`InvalidArgumentsError`.

    argparse would otherwise exit with status 2 on its own.
    """

    def error(self, message: str) -> NoReturn:
        raise InvalidArgumentsError(message, hint=f"Usage: {USAGE}")


def _build_parser() -> argparse.ArgumentParser:
    """Construct the top-level argument parser.

    The CLI supports:
    * ``caesar-harness <library_path> <key> <input_file> <output_file>``
    * ``caesar-harness doctor [library_path]``
    * ``caesar-harness --version``

    Everything from the first positional on is an argument, so a key such
    as ``-0x0`` or a file named ``-in.bin`` is never read as an option.
    """
    parser = _HarnessArgumentParser(
        prog=PROG,
        usage=USAGE,
        description="Load a Caesar-cipher shared library and run it over a file.",
        epilog=EXAMPLES,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "-V",
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Report each step on stderr.",
    )
    parser.add_argument(
        "arguments",
        nargs=argparse.REMAINDER,
        metavar="ARG",
        help=(
            "library_path key input_file output_file, or 'doctor' [library_path]. "
            "Options are only read before the first of these."
        ),
    )
    return parser


# ---------------------------------------------------------------------------
# Command dispatch
# ---------------------------------------------------------------------------

def _handle_run(request: HarnessRequest, *, verbose: bool) -> int:
    """Run one load-transform-unload cycle.

    Flow:
    1. Instantiate infra adapters + the core service.
    2. Open the library, resolve ``set_key`` / ``caesar``.
    3. Read, transform, and write.
    4. Release the library.
    """
    from caesar_harness.core.harness_service import HarnessService
    from caesar_harness.infra.dynamic_library import CffiLibraryLoader
    from caesar_harness.infra.file_store import PathFileStore

    service = HarnessService(CffiLibraryLoader(), PathFileStore())

    def report_step(message: str) -> None:
        console.print(f"[dim]{escape(message)}…[/dim]")

    result = service.run(request, step_callback=report_step if verbose else None)

    if verbose:
        console.print(
            f"[bold green]Done.[/bold green] "
            f"{result.bytes_processed} bytes written to {escape(result.output_path)}"
        )
    return exit_codes.SUCCESS


def _handle_doctor(library_path: str | None) -> int:
    """Dispatch the ``doctor`` diagnostics command."""
    from caesar_harness.cli.doctor import run_doctor

    return run_doctor(library_path)


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------

def main(argv: list[str] | None = None) -> int:
    """Run the caesar-harness CLI.

    Parameters
    ----------
    argv:
        Explicit argument list.  When ``None`` (default), ``sys.argv[1:]``
        is used.  Accepting *argv* enables deterministic testing without
        monkeypatching.

    Returns
    -------
    int
        OS process exit code.

    Raises
    ------
    HarnessError
        Any subclass, for :func:`cli` to report.
    """
    parser = _build_parser()
    args = parser.parse_args(argv)
    positionals: list[str] = args.arguments
    if positionals[:1] == ["--"]:
        positionals = positionals[1:]

    if positionals and positionals[0].lower() == "doctor" and len(positionals) <= 2:
        return _handle_doctor(positionals[1] if len(positionals) == 2 else None)

    if len(positionals) != 4:
        raise InvalidArgumentsError(
            f"Expected 4 arguments, got {len(positionals)}.",
            hint=f"Usage: {USAGE}",
        )

    library_path, key_text, input_path, output_path = positionals
    request = HarnessRequest(
        library_path=library_path,
        key=parse_key(key_text),
        input_path=input_path,
        output_path=output_path,
    )
    return _handle_run(request, verbose=args.verbose)


# ---------------------------------------------------------------------------
# Script-level error boundary
# ---------------------------------------------------------------------------

def cli(argv: list[str] | None = None) -> None:
    """Top-level error boundary invoked by the console-script entry point.

    This function wraps :func:`main` and guarantees the process never
    exits with a raw stack trace during normal usage.
    """
    try:
        code = main(argv)
        sys.exit(code)
    except HarnessError as exc:
        console.print(f"[bold red]Error:[/bold red] {escape(str(exc))}")
        if exc.hint:
            console.print(f"[yellow]Hint:[/yellow] {escape(exc.hint)}")
        sys.exit(exit_codes.GENERAL_ERROR)
    except KeyboardInterrupt:
        console.print("\n[yellow]Aborted by user.[/yellow]")
        sys.exit(exit_codes.KEYBOARD_INTERRUPT)
    except Exception as exc:  # noqa: BLE001
        console.print(
            "[bold red]Unexpected error.[/bold red] "
            "Please report this issue.\n"
            f"  {type(exc).__name__}: {escape(str(exc))}"
        )
        sys.exit(exit_codes.UNEXPECTED_ERROR)
