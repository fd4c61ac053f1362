"""Allow ``python -m x_dl`` invocation.

This module simply delegates to the CLI error-boundary entry point so
that ``python -m x_dl`` behaves identically to the ``x-dl`` console
script.
"""

from __future__ import annotations

from x_dl.cli.app import cli

if __name__ == "__main__":
    cli()
