"""Filesystem helpers shared by the download paths."""

from __future__ import annotations

import os
from pathlib import Path


def partial_path(output_path: Path) -> Path:
    """Sibling temp path used while a download is in flight."""
    return output_path.with_name(output_path.name + ".part")


def write_bytes_atomic(output_path: Path, data: bytes) -> Path:
    """Write *data* to *output_path* via a temp file and ``os.replace``.

    Readers never observe a half-written destination.
    """
    output_path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = partial_path(output_path)
    try:
        tmp_path.write_bytes(data)
        os.replace(tmp_path, output_path)
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise
    return output_path
