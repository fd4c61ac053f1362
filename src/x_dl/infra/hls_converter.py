"""ffmpeg-backed implementation of :class:`~x_dl.core.protocols.PlaylistConverter`.

The playlist is remuxed (no re-encode) into a single MP4 with a fixed
argument list.  ffmpeg has no cooperative cancellation, so two guards
run while it works and kill it when tripped:

* an absolute wall-clock budget (:data:`DEFAULT_TIMEOUT_SECONDS`);
* a no-progress window (:data:`DEFAULT_NO_PROGRESS_SECONDS`) during
  which the output file must grow, checked every
  :data:`DEFAULT_POLL_SECONDS`.

ffmpeg's stderr goes to an anonymous temp file rather than a pipe so a
chatty process can never block on a full pipe buffer.
"""

from __future__ import annotations

import logging
import subprocess
import tempfile
import time
from collections.abc import Callable
from pathlib import Path
from typing import IO, Any

from x_dl.exceptions import (
    ConversionFailedError,
    ConversionStalledError,
    ConversionTimeoutError,
    FfmpegNotFoundError,
)


logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS: float = 120.0
DEFAULT_NO_PROGRESS_SECONDS: float = 30.0
DEFAULT_POLL_SECONDS: float = 2.0
_KILL_WAIT_SECONDS: float = 5.0


def build_ffmpeg_args(ffmpeg: str, playlist_url: str, output_path: Path) -> list[str]:
    """Fixed command line: overwrite, quiet, copy streams, fix ADTS audio."""
    return [
        ffmpeg,
        "-y",
        "-hide_banner",
        "-loglevel", "error",
        "-i", playlist_url,
        "-c", "copy",
        "-bsf:a", "aac_adtstoasc",
        str(output_path),
    ]


def _file_size(path: Path) -> int:
    try:
        return path.stat().st_size
    except OSError:
        return 0


def _read_diagnostics(stream: IO[bytes]) -> str:
    stream.seek(0)
    return stream.read().decode("utf-8", errors="replace").strip()


class FfmpegHlsConverter:
    """Runs ffmpeg under the two liveness guards.

    Parameters
    ----------
    ffmpeg:
        Binary name or path.
    timeout:
        Absolute seconds before ffmpeg is killed.
    no_progress_timeout:
        Seconds without output growth before ffmpeg is killed.
    poll_interval:
        Seconds between size checks.
    popen, clock:
        Injectable for tests.
    """

    def __init__(
        self,
        ffmpeg: str = "ffmpeg",
        *,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        no_progress_timeout: float = DEFAULT_NO_PROGRESS_SECONDS,
        poll_interval: float = DEFAULT_POLL_SECONDS,
        popen: Callable[..., Any] = subprocess.Popen,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._ffmpeg = ffmpeg
        self._timeout = timeout
        self._no_progress_timeout = no_progress_timeout
        self._poll_interval = poll_interval
        self._popen = popen
        self._clock = clock

    # ------------------------------------------------------------------
    # Protocol method
    # ------------------------------------------------------------------

    def convert(self, playlist_url: str, output_path: Path) -> Path:
        """Remux *playlist_url* into *output_path*.

        A leftover file at *output_path* is deleted first; a partial
        file from an earlier run can confuse ffmpeg despite ``-y``.

        Raises
        ------
        FfmpegNotFoundError
            When the ffmpeg binary cannot be started.
        ConversionTimeoutError
            When the absolute budget is exceeded.
        ConversionStalledError
            When the output stops growing.
        ConversionFailedError
            When ffmpeg exits non-zero.
        """
        logger.info("Downloading HLS video via ffmpeg...")

        if output_path.exists():
            logger.warning("File already exists, removing: %s", output_path)
            output_path.unlink()
        output_path.parent.mkdir(parents=True, exist_ok=True)

        args = build_ffmpeg_args(self._ffmpeg, playlist_url, output_path)

        with tempfile.TemporaryFile() as stderr_file:
            try:
                process = self._popen(
                    args,
                    stdin=subprocess.DEVNULL,
                    stdout=subprocess.DEVNULL,
                    stderr=stderr_file,
                )
            except FileNotFoundError as exc:
                raise FfmpegNotFoundError(
                    "ffmpeg is not installed or not on PATH.",
                    hint="Run 'x-dl doctor' for install instructions.",
                ) from exc
            except OSError as exc:
                raise ConversionFailedError(f"Failed to start ffmpeg: {exc}") from exc

            try:
                returncode = self._supervise(process, output_path, stderr_file)
            except ConversionFailedError:
                raise
            except BaseException:
                self._kill(process)
                raise
            if returncode != 0:
                detail = _read_diagnostics(stderr_file)
                raise ConversionFailedError(
                    f"Failed to download HLS: {detail or f'ffmpeg exited with code {returncode}'}",
                )

        logger.info("HLS download completed")
        return output_path

    # ------------------------------------------------------------------
    # Guards
    # ------------------------------------------------------------------

    def _supervise(self, process: Any, output_path: Path, stderr_file: IO[bytes]) -> int:
        started = self._clock()
        last_size = 0
        last_progress = started

        while True:
            try:
                return int(process.wait(timeout=self._poll_interval))
            except subprocess.TimeoutExpired:
                pass

            now = self._clock()
            if now - started >= self._timeout:
                self._kill(process)
                raise ConversionTimeoutError(
                    self._failure_message(
                        f"FFMPEG download timed out after {self._timeout:g} seconds",
                        stderr_file,
                    )
                )

            size = _file_size(output_path)
            if size > last_size:
                last_size = size
                last_progress = now
            elif now - last_progress >= self._no_progress_timeout:
                self._kill(process)
                raise ConversionStalledError(
                    self._failure_message(
                        f"FFMPEG stuck: no progress for {self._no_progress_timeout:g} seconds",
                        stderr_file,
                    )
                )

    @staticmethod
    def _failure_message(summary: str, stderr_file: IO[bytes]) -> str:
        detail = _read_diagnostics(stderr_file)
        return f"{summary}\n{detail}" if detail else summary

    @staticmethod
    def _kill(process: Any) -> None:
        logger.debug("Killing ffmpeg (pid %s)", getattr(process, "pid", "?"))
        process.kill()
        try:
            process.wait(timeout=_KILL_WAIT_SECONDS)
        except subprocess.TimeoutExpired:
            logger.warning("ffmpeg did not exit after SIGKILL")
