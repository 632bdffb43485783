"""Stderr console for all harness diagnostics, Rich when available.

Rich is imported on first use rather than at module import so that
``--help`` and ``--version`` keep working without it.  Markup such as
``[red]`` is stripped when falling back to plain ``print``.
"""

from __future__ import annotations

import re
import sys
from typing import Any

from caesar_harness.exceptions import EnvironmentError

_MARKUP = re.compile(r"\[/?[a-z][a-z ]*\]")


def _load_rich_console_class() -> type[Any]:
	"""Return ``rich.console.Console`` class or raise ``EnvironmentError``."""
	try:
		from rich.console import Console
	except ModuleNotFoundError as exc:
		raise EnvironmentError(
			"rich is not installed. Install with: pip install rich",
		) from exc
	return Console


def get_rich_console() -> Any:
	"""Create a Rich console bound to the current ``sys.stderr``."""
	console_class = _load_rich_console_class()
	return console_class(stderr=True, highlight=False, soft_wrap=True)


def escape(text: str) -> str:
	"""Escape *text* so Rich prints brackets in paths and messages literally."""
	try:
		from rich.markup import escape as rich_escape
	except ModuleNotFoundError:
		return text
	return rich_escape(text)


def strip_markup(text: str) -> str:
	"""Drop Rich style tags from *text*."""
	return _MARKUP.sub("", text)


class _ConsoleProxy:
	"""``print``-compatible proxy writing to stderr."""

	def print(self, *objects: object) -> None:
		"""Render with Rich when available, else plain stderr print."""
		try:
			rich_console = get_rich_console()
		except EnvironmentError:
			print(
				*(strip_markup(o) if isinstance(o, str) else o for o in objects),
				file=sys.stderr,
			)
			return
		rich_console.print(*objects)


console = _ConsoleProxy()
