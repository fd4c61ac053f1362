"""Process exit codes returned by :func:`x_dl.cli.app.main`.

``--verify-auth`` reuses :data:`GENERAL_ERROR` for a profile that is not
logged in, so scripts can branch on the session state.
"""

from __future__ import annotations

SUCCESS: int = 0
"""Video saved, URL printed, or diagnostics passed."""

GENERAL_ERROR: int = 1
"""A known XdlError was caught (or an extraction failed). User-facing message was displayed."""

KEYBOARD_INTERRUPT: int = 130
"""User pressed Ctrl+C.  Follows POSIX convention (128 + SIGINT=2)."""

UNEXPECTED_ERROR: int = 2
"""An unhandled exception escaped all known error boundaries."""
