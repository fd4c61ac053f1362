"""``requests``-backed HTTP capability.

Implements both :class:`~x_dl.core.protocols.ContentLengthProbe` (HEAD
probes for the selector) and :class:`~x_dl.core.protocols.DirectDownloader`
(streamed GET for progressive files).  ``requests`` exceptions never
escape this module: probe failures mean "unknown size", download
failures become :class:`~x_dl.exceptions.DownloadFailedError`.
"""

from __future__ import annotations

import logging
import os
import time
from collections.abc import Callable
from pathlib import Path

import requests

from x_dl.core.protocols import ProgressCallback
from x_dl.exceptions import DownloadFailedError, HttpStatusError
from x_dl.utils.files import partial_path
from x_dl.utils.formatting import format_bytes, format_time


logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT: str = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
)


def parse_content_length(value: str | None) -> int | None:
    """Header value → non-negative int, or ``None`` when missing/garbled."""
    if value is None:
        return None
    try:
        parsed = int(value.strip())
    except ValueError:
        return None
    return parsed if parsed >= 0 else None


class RequestsHttpClient:
    """HEAD probes and streamed downloads over a shared ``requests.Session``.

    Parameters
    ----------
    session:
        Session to reuse; a new one with a browser-like User-Agent is
        created when omitted.
    chunk_size:
        Bytes per ``iter_content`` read.
    progress_interval:
        Minimum seconds between progress callbacks.
    timeout:
        ``(connect, read)`` timeout for downloads.
    """

    def __init__(
        self,
        session: requests.Session | None = None,
        *,
        chunk_size: int = 64 * 1024,
        progress_interval: float = 0.5,
        timeout: tuple[float, float] = (10.0, 60.0),
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if session is None:
            session = requests.Session()
            session.headers["User-Agent"] = DEFAULT_USER_AGENT
        self._session: requests.Session = session
        self._chunk_size = chunk_size
        self._progress_interval = progress_interval
        self._timeout = timeout
        self._clock = clock

    # ------------------------------------------------------------------
    # ContentLengthProbe
    # ------------------------------------------------------------------

    def content_length(self, url: str, *, timeout: float) -> int | None:
        """HEAD *url* and return its declared size, or ``None``."""
        try:
            response = self._session.head(url, timeout=timeout, allow_redirects=True)
        except requests.RequestException as exc:
            logger.debug("HEAD %s failed: %s", url, exc)
            return None
        if not response.ok:
            return None
        return parse_content_length(response.headers.get("Content-Length"))

    # ------------------------------------------------------------------
    # DirectDownloader
    # ------------------------------------------------------------------

    def download(
        self,
        url: str,
        output_path: Path,
        *,
        progress_callback: ProgressCallback | None = None,
    ) -> Path:
        """Stream *url* into *output_path*.

        Bytes land in a ``.part`` sibling that replaces the destination
        only after the body has been read completely.

        Raises
        ------
        HttpStatusError
            For non-2xx responses.
        DownloadFailedError
            For network or filesystem failures.
        """
        logger.info("Downloading video from: %s", url)
        logger.info("Output path: %s", output_path)
        started = self._clock()
        tmp_path = partial_path(output_path)

        try:
            output_path.parent.mkdir(parents=True, exist_ok=True)
            with self._session.get(url, stream=True, timeout=self._timeout) as response:
                if not response.ok:
                    raise HttpStatusError(response.status_code)
                total = parse_content_length(response.headers.get("Content-Length"))
                if total:
                    logger.info("Total size: %s", format_bytes(total))
                downloaded = self._write_body(response, tmp_path, output_path, total, progress_callback)
            os.replace(tmp_path, output_path)
        except HttpStatusError:
            tmp_path.unlink(missing_ok=True)
            raise
        except requests.RequestException as exc:
            tmp_path.unlink(missing_ok=True)
            raise DownloadFailedError(
                f"Download failed: {exc}",
                hint="Check your network connection and retry.",
            ) from exc
        except OSError as exc:
            tmp_path.unlink(missing_ok=True)
            raise DownloadFailedError(f"Could not write {output_path}: {exc}") from exc

        if progress_callback is not None:
            progress_callback({
                "status": "downloading",
                "downloaded_bytes": downloaded,
                "total_bytes": total if total else downloaded,
                "filename": str(output_path),
            })
            progress_callback({"status": "finished", "filename": str(output_path)})

        logger.info("Download completed in %s", format_time(self._clock() - started))
        logger.info("Final size: %s", format_bytes(downloaded))
        return output_path

    def _write_body(
        self,
        response: requests.Response,
        tmp_path: Path,
        output_path: Path,
        total: int | None,
        progress_callback: ProgressCallback | None,
    ) -> int:
        downloaded = 0
        last_update: float | None = None
        with tmp_path.open("wb") as handle:
            for chunk in response.iter_content(chunk_size=self._chunk_size):
                if not chunk:
                    continue
                handle.write(chunk)
                downloaded += len(chunk)

                if progress_callback is None:
                    continue
                now = self._clock()
                if last_update is not None and now - last_update < self._progress_interval:
                    continue
                last_update = now
                progress_callback({
                    "status": "downloading",
                    "downloaded_bytes": downloaded,
                    "total_bytes": total,
                    "filename": str(output_path),
                })
        return downloaded
