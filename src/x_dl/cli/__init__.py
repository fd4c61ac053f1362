"""CLI layer: argument parsing, the login flow, diagnostics, and the error boundary.

This is the outermost layer.  It wires ``infra`` implementations into
``core`` services; nothing in ``core``, ``infra`` or ``utils`` imports
from ``cli``.
"""
