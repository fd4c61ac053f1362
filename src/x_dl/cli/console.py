"""CLI console and logging helpers with optional Rich support.

This module intentionally avoids module-level imports of optional UI
dependencies so bootstrap paths (``--help``, ``--version``) remain
functional even when Rich is not installed.
"""

from __future__ import annotations

import logging
import sys
from typing import Any

from x_dl.exceptions import EnvironmentError


_LOG_FORMAT = "%(message)s"
_PLAIN_LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"


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


class _ConsoleProxy:
	"""Minimal ``print``-compatible proxy with Rich fallback."""

	def print(self, *objects: object) -> None:
		"""Render with Rich when available, else plain stderr print."""
		try:
			rich_console = get_rich_console()
		except EnvironmentError:
			print(*objects, file=sys.stderr)
			return
		rich_console.print(*objects)


console = _ConsoleProxy()


def _build_log_handler() -> logging.Handler:
	"""RichHandler on stderr, or a plain ``StreamHandler`` without Rich."""
	try:
		from rich.logging import RichHandler
	except ModuleNotFoundError:
		handler: logging.Handler = logging.StreamHandler(sys.stderr)
		handler.setFormatter(logging.Formatter(_PLAIN_LOG_FORMAT))
		return handler
	handler = RichHandler(
		console=get_rich_console(),
		show_path=False,
		markup=False,
		rich_tracebacks=False,
	)
	handler.setFormatter(logging.Formatter(_LOG_FORMAT, datefmt="[%X]"))
	return handler


def configure_logging(verbose: bool = False) -> logging.Handler:
	"""Route the ``x_dl`` logger hierarchy to stderr.

	INFO by default, DEBUG with *verbose*.  Calling it again replaces the
	previously installed handler instead of stacking a second one.
	"""
	logger = logging.getLogger("x_dl")
	for existing in list(logger.handlers):
		if getattr(existing, "_x_dl_handler", False):
			logger.removeHandler(existing)

	handler = _build_log_handler()
	handler._x_dl_handler = True  # type: ignore[attr-defined]
	logger.addHandler(handler)
	logger.setLevel(logging.DEBUG if verbose else logging.INFO)
	return handler
