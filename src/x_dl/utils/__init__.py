"""Shared helpers for atomic file writes and human-readable log values.

Rules
-----
* No business logic.
* Importable by any layer.
"""
