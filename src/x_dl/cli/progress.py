"""Rich progress bar fed by the downloader's progress callback.

The HTTP client reports progress as plain dicts (see
:data:`~x_dl.core.protocols.ProgressCallback`)::

    {"status": "downloading", "downloaded_bytes": 1048576,
     "total_bytes": 5242880, "filename": "/tmp/user_1.mp4"}
    {"status": "finished", "filename": "/tmp/user_1.mp4"}

``total_bytes`` may be ``None`` when the server sends no
``Content-Length``; the bar then renders as indeterminate.  Calls made
while the display is stopped are ignored, so a late callback during
shutdown is harmless.
"""

from __future__ import annotations

from pathlib import PurePath
from typing import Any

from x_dl.cli.console import get_rich_console
from x_dl.exceptions import EnvironmentError


_MAX_LABEL_LENGTH = 50


class RichProgressHook:
    """Callable progress adapter for Rich.

    Usage::

        with RichProgressHook() as hook:
            transfer_service.transfer(media, path, progress_callback=hook)
    """

    def __init__(self) -> None:
        try:
            from rich.progress import (
                BarColumn,
                DownloadColumn,
                Progress,
                SpinnerColumn,
                TextColumn,
                TimeRemainingColumn,
                TransferSpeedColumn,
            )
        except ModuleNotFoundError as exc:
            raise EnvironmentError(
                "rich is not installed. Install with: pip install rich",
            ) from exc

        self._progress: Any = Progress(
            SpinnerColumn(),
            TextColumn("[bold blue]{task.description}"),
            BarColumn(),
            DownloadColumn(),
            TransferSpeedColumn(),
            TimeRemainingColumn(),
            console=get_rich_console(),
            transient=False,
        )
        self._task_id: int | None = None
        self._started: bool = False

    def __enter__(self) -> RichProgressHook:
        self.start()
        return self

    def __exit__(self, *_args: object) -> None:
        self.stop()

    def start(self) -> None:
        if not self._started:
            self._progress.start()
            self._started = True

    def stop(self) -> None:
        """Stop the display (idempotent)."""
        if self._started:
            self._progress.stop()
            self._started = False

    # ------------------------------------------------------------------
    # Callback
    # ------------------------------------------------------------------

    def __call__(self, update: dict[str, Any]) -> None:
        if not self._started:
            return

        status = update.get("status", "")
        if status == "downloading":
            self._on_downloading(update)
        elif status == "finished":
            self._on_finished()

    def _on_downloading(self, update: dict[str, Any]) -> None:
        total = _safe_int(update.get("total_bytes"))
        downloaded = _safe_int(update.get("downloaded_bytes")) or 0

        if self._task_id is None:
            self._task_id = self._progress.add_task(
                _display_name(update.get("filename")),
                total=total,
            )

        if total is not None:
            self._progress.update(self._task_id, total=total, completed=downloaded)
        else:
            self._progress.update(self._task_id, completed=downloaded)

    def _on_finished(self) -> None:
        if self._task_id is None:
            return
        task = self._progress.tasks[self._task_id]
        if task.total is not None:
            self._progress.update(self._task_id, completed=task.total)


# ---------------------------------------------------------------------------
# Utility
# ---------------------------------------------------------------------------

def _display_name(filename: object) -> str:
    """Base name of *filename*, shortened for the bar label."""
    if not filename:
        return "Downloading"
    name = PurePath(str(filename).replace("\\", "/")).name or "Downloading"
    if len(name) > _MAX_LABEL_LENGTH:
        name = name[: _MAX_LABEL_LENGTH - 3] + "..."
    return name


def _safe_int(value: object) -> int | None:
    """Convert *value* to ``int`` or return ``None``."""
    if value is None or isinstance(value, bool):
        return None
    if not isinstance(value, (int, float, str)):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None
