"""``caesar-harness doctor`` — environment and library diagnostics.

Gathers system information and renders a Rich table summarising
whether the runtime can load cipher libraries.  Given a library path it
also opens that library and checks both entry points, releasing it
before returning.

This module lives in the CLI layer — it may import from ``infra``
and ``core``, and it renders via Rich.
"""

from __future__ import annotations

import platform
import sys

from caesar_harness.cli import exit_codes
from caesar_harness.cli.console import console, escape, strip_markup
from caesar_harness.exceptions import HarnessError
from caesar_harness.version import __version__

Check = tuple[str, str, str]

_OK = "[green]OK[/green]"
_FAIL = "[red]FAIL[/red]"


# ---------------------------------------------------------------------------
# Diagnostic collectors
# ---------------------------------------------------------------------------

def _harness_version_check() -> Check:
    """Return (label, value, status) for the caesar-harness version row."""
    return "caesar-harness", __version__, _OK


def _python_version_check() -> Check:
    """Return (label, value, status) for the Python version row."""
    version = platform.python_version()
    ok = sys.version_info[:2] >= (3, 10)
    status = _OK if ok else "[red]FAIL (>=3.10 required)[/red]"
    return "Python", version, status


def _cffi_version_check() -> Check:
    """Return (label, value, status) for the cffi row."""
    try:
        import cffi
    except ImportError:
        return "cffi", "NOT INSTALLED", _FAIL
    return "cffi", getattr(cffi, "__version__", "unknown"), _OK


def _rich_check() -> Check:
    """Return (label, value, status) for the rich row.  Optional for output."""
    try:
        import rich  # noqa: F401
    except ImportError:
        return "rich", "not installed", "[yellow]WARN[/yellow]"
    return "rich", "installed", _OK


def _os_check() -> Check:
    """Return (label, value, status) for the OS row."""
    system_raw = platform.system()
    system_display = {"Darwin": "macOS"}.get(system_raw, system_raw)
    value = f"{system_display} {platform.release()} ({platform.machine()})"
    return "OS", value, _OK


def _library_checks(library_path: str) -> list[Check]:
    """Open *library_path* and try to resolve each required symbol.

    One row for the load itself, then one per symbol.  Symbol rows are
    skipped when the library cannot be opened.
    """
    from caesar_harness.infra.dynamic_library import REQUIRED_SYMBOLS, CffiLibraryLoader

    try:
        library = CffiLibraryLoader().load(library_path)
    except HarnessError as exc:
        return [("library", f"{library_path}: {exc}", _FAIL)]

    rows: list[Check] = [("library", library_path, _OK)]
    with library:
        for symbol in REQUIRED_SYMBOLS:
            try:
                library.resolve(symbol)
            except HarnessError:
                rows.append((symbol, "missing", _FAIL))
            else:
                rows.append((symbol, "resolved", _OK))
    return rows


def collect_checks(library_path: str | None = None) -> list[Check]:
    """Run every collector; library rows only when *library_path* is given."""
    cffi_check = _cffi_version_check()
    checks = [
        _harness_version_check(),
        _python_version_check(),
        cffi_check,
        _rich_check(),
        _os_check(),
    ]
    if library_path is not None and "FAIL" not in cffi_check[2]:
        checks.extend(_library_checks(library_path))
    return checks


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------

def _print_plain_doctor_table(checks: list[Check]) -> None:
    """Render doctor output without Rich."""
    print("\ncaesar-harness doctor", file=sys.stderr)
    print("=" * 64, file=sys.stderr)
    print(f"{'Component':<16} {'Value':<38} {'Status':<8}", file=sys.stderr)
    print("-" * 64, file=sys.stderr)
    for label, value, status in checks:
        print(f"{label:<16} {value:<38} {strip_markup(status):<8}", file=sys.stderr)
    print(file=sys.stderr)


def _print_rich_doctor_table(checks: list[Check]) -> None:
    from rich.table import Table

    table = Table(
        title="caesar-harness doctor",
        show_header=True,
        header_style="bold cyan",
        border_style="dim",
    )
    table.add_column("Component", style="bold", min_width=14)
    table.add_column("Value", min_width=20)
    table.add_column("Status", justify="center", min_width=8)
    for label, value, status in checks:
        table.add_row(label, escape(value), status)

    console.print()
    console.print(table)
    console.print()


# ---------------------------------------------------------------------------
# Public entry point
# ---------------------------------------------------------------------------

def run_doctor(library_path: str | None = None) -> int:
    """Execute all diagnostic checks and render a summary table.

    Returns
    -------
    int
        :data:`exit_codes.SUCCESS` when no check failed,
        :data:`exit_codes.GENERAL_ERROR` otherwise.
    """
    checks = collect_checks(library_path)
    has_failure = any("FAIL" in status for _, _, status in checks)

    try:
        _print_rich_doctor_table(checks)
    except ModuleNotFoundError:
        _print_plain_doctor_table(checks)

    if has_failure:
        console.print("[bold red]Some checks failed.[/bold red]")
        return exit_codes.GENERAL_ERROR

    console.print("[bold green]All checks passed.[/bold green]")
    return exit_codes.SUCCESS
