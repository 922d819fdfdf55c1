"""CLI console and logging helpers built on Rich.

Rich is imported lazily so that ``--help`` and ``--version`` never pay
for it, and a missing install surfaces as a clean
:class:`~notes_client.exceptions.EnvironmentError`.
"""

from __future__ import annotations

import logging
from typing import Any

from notes_client.exceptions import EnvironmentError


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
	"""Create a Rich console instance targeting stderr."""
	console_class = _load_rich_console_class()
	return console_class(stderr=True)


def configure_logging(verbose: bool = False) -> None:
	"""Route library logging through a Rich handler on stderr."""
	from rich.logging import RichHandler

	handler = RichHandler(
		console=get_rich_console(),
		show_path=False,
		rich_tracebacks=verbose,
	)
	logging.basicConfig(
		level=logging.DEBUG if verbose else logging.WARNING,
		format="%(message)s",
		datefmt="[%X]",
		handlers=[handler],
		force=True,
	)
	# httpx logs every request at INFO; keep it quiet unless debugging.
	logging.getLogger("httpx").setLevel(logging.DEBUG if verbose else logging.WARNING)


class _ConsoleProxy:
	"""``print``-compatible proxy that creates the Rich console on first use."""

	def __init__(self) -> None:
		self._console: Any = None

	def print(self, *objects: object, **kwargs: Any) -> None:
		if self._console is None:
			self._console = get_rich_console()
		self._console.print(*objects, **kwargs)


console = _ConsoleProxy()
