"""Protocols (interfaces) consumed by the core layer.

These define the contracts that infrastructure adapters must satisfy.
Core code depends ONLY on these protocols — never on concrete
implementations — preserving the dependency inversion principle.

The page/locator protocols are the small subset of Playwright's sync
``Page`` API the extractor drives, so a real Playwright page satisfies
them structurally and tests can pass a plain in-memory fake.
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Any, Protocol


ProgressCallback = Callable[[dict[str, Any]], None]
"""Receives ``{"status": "downloading" | "finished", ...}`` dicts."""


# ---------------------------------------------------------------------------
# Browser
# ---------------------------------------------------------------------------

class Locator(Protocol):
    """Element query result (Playwright ``Locator`` subset)."""

    @property
    def first(self) -> Locator: ...  # pragma: no cover

    def count(self) -> int: ...  # pragma: no cover

    def click(self, *, timeout: float | None = None) -> None: ...  # pragma: no cover


class BrowserPage(Protocol):
    """A driven page (Playwright ``Page`` subset)."""

    def on(self, event: str, handler: Callable[[Any], None]) -> None:
        """Subscribe to page events; ``"response"`` handlers get an object with ``.url``."""
        ...  # pragma: no cover

    def goto(self, url: str, *, wait_until: str, timeout: float) -> Any: ...  # pragma: no cover

    def wait_for_timeout(self, timeout: float) -> None:
        """Sleep *timeout* ms while still delivering page events."""
        ...  # pragma: no cover

    def content(self) -> str: ...  # pragma: no cover

    def evaluate(self, expression: str) -> Any: ...  # pragma: no cover

    def locator(self, selector: str) -> Locator: ...  # pragma: no cover

    def screenshot(self, *, path: str, full_page: bool) -> bytes: ...  # pragma: no cover


class BrowserSession(Protocol):
    """One open browsing context with a single page.

    :meth:`close` must be idempotent — a second call is a no-op.
    """

    @property
    def page(self) -> BrowserPage: ...  # pragma: no cover

    def cookies(self) -> list[dict[str, Any]]:
        """Return the context's cookies as Playwright cookie dicts."""
        ...  # pragma: no cover

    def fetch_bytes(self, url: str) -> bytes:
        """GET *url* with the context's cookies.

        Raises
        ------
        HttpStatusError
            When the response status is not 2xx.
        """
        ...  # pragma: no cover

    def close(self) -> None: ...  # pragma: no cover


class BrowserLauncher(Protocol):
    """Opens fresh or persistent-profile browsing sessions."""

    def open(self, *, profile_dir: Path | None, headless: bool) -> BrowserSession:
        """Launch a context; attach to *profile_dir* when given.

        Raises
        ------
        EnvironmentError
            When the browser engine is not installed.
        """
        ...  # pragma: no cover


# ---------------------------------------------------------------------------
# HTTP
# ---------------------------------------------------------------------------

class ContentLengthProbe(Protocol):
    """HEAD-based size probe used by the selector."""

    def content_length(self, url: str, *, timeout: float) -> int | None:
        """Return the declared ``Content-Length`` or ``None`` if unknown.

        Must never raise for network problems — those mean "unknown".
        """
        ...  # pragma: no cover


class DirectDownloader(Protocol):
    """Streams a progressive file to disk."""

    def download(
        self,
        url: str,
        output_path: Path,
        *,
        progress_callback: ProgressCallback | None = None,
    ) -> Path:
        """Download *url* to *output_path* atomically.

        Raises
        ------
        HttpStatusError
            For non-2xx responses.
        DownloadFailedError
            For any other transfer failure.
        """
        ...  # pragma: no cover


class PlaylistConverter(Protocol):
    """Turns a segmented playlist into a single file."""

    def convert(self, playlist_url: str, output_path: Path) -> Path:
        """Remux *playlist_url* into *output_path*.

        Raises
        ------
        ConversionFailedError
            On non-zero exit, stall, or timeout.
        FfmpegNotFoundError
            When the converter binary is missing.
        """
        ...  # pragma: no cover
