"""Playwright-backed implementation of :class:`~x_dl.core.protocols.BrowserLauncher`.

This module is the **only** place in the codebase that imports
``playwright``.  It uses the synchronous API: response events are
delivered on the calling thread whenever the extractor is inside a
Playwright call (``goto``, ``wait_for_timeout`` …), which is what the
candidate aggregator's polling loop relies on.
"""

from __future__ import annotations

import logging
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path
from typing import Any

from x_dl.exceptions import (
    DownloadFailedError,
    EnvironmentError,
    HttpStatusError,
    append_browser_install_suggestion,
)


logger = logging.getLogger(__name__)

BROWSER_CHANNELS: tuple[str, ...] = ("chrome", "chromium", "msedge")


class PlaywrightSession:
    """One Playwright browsing context plus its page.

    Satisfies :class:`~x_dl.core.protocols.BrowserSession`.  A fresh
    context owns its ``browser``; a persistent-profile context has
    ``browser=None`` and closes through the context alone.
    """

    def __init__(self, playwright: Any, browser: Any | None, context: Any, page: Any) -> None:
        self._playwright = playwright
        self._browser = browser
        self._context = context
        self._page = page
        self._closed: bool = False

    @property
    def page(self) -> Any:
        return self._page

    def cookies(self) -> list[dict[str, Any]]:
        return [dict(cookie) for cookie in self._context.cookies()]

    def fetch_bytes(self, url: str) -> bytes:
        """GET *url* through the context's request API (cookies included)."""
        from playwright.sync_api import Error as PlaywrightError

        try:
            response = self._context.request.get(url)
        except PlaywrightError as exc:
            raise DownloadFailedError(f"Authenticated request failed: {exc}") from exc
        if not response.ok:
            raise HttpStatusError(
                response.status,
                hint="The profile may be logged out; run x-dl --login again.",
            )
        return response.body()

    def close(self) -> None:
        """Close context, browser, and driver (idempotent)."""
        if self._closed:
            return
        self._closed = True

        closers = [self._context.close]
        if self._browser is not None:
            closers.append(self._browser.close)
        closers.append(self._playwright.stop)
        for closer in closers:
            try:
                closer()
            except Exception as exc:  # noqa: BLE001
                logger.debug("Ignoring error during browser shutdown: %s", exc)


class PlaywrightBrowserLauncher:
    """Concrete :class:`BrowserLauncher` backed by Playwright Chromium.

    Parameters
    ----------
    channel:
        ``chrome``, ``chromium`` or ``msedge``; ignored when
        *executable_path* is given.
    executable_path:
        Explicit browser binary.
    """

    def __init__(
        self,
        *,
        channel: str | None = None,
        executable_path: Path | None = None,
    ) -> None:
        self._channel: str | None = channel
        self._executable_path: Path | None = executable_path

    def _launch_options(self, headless: bool) -> dict[str, Any]:
        options: dict[str, Any] = {"headless": headless}
        if self._executable_path is not None:
            options["executable_path"] = str(self._executable_path)
        elif self._channel is not None:
            options["channel"] = self._channel
        return options

    # ------------------------------------------------------------------
    # Protocol method
    # ------------------------------------------------------------------

    def open(self, *, profile_dir: Path | None, headless: bool) -> PlaywrightSession:
        """Launch Chromium and return a session with one new page.

        Raises
        ------
        EnvironmentError
            When Playwright or its browser binary is unavailable.
        """
        try:
            from playwright.sync_api import Error as PlaywrightError
            from playwright.sync_api import sync_playwright
        except ModuleNotFoundError as exc:
            raise EnvironmentError(
                "playwright is not installed. Install with: pip install playwright",
                hint=append_browser_install_suggestion("Playwright drives the headless browser."),
            ) from exc

        options = self._launch_options(headless)
        playwright = sync_playwright().start()
        browser: Any | None = None
        try:
            if profile_dir is not None:
                logger.debug("Launching persistent context at %s", profile_dir)
                context = playwright.chromium.launch_persistent_context(
                    str(profile_dir), **options,
                )
            else:
                browser = playwright.chromium.launch(**options)
                context = browser.new_context()
            page = context.new_page()
        except PlaywrightError as exc:
            if browser is not None:
                try:
                    browser.close()
                except PlaywrightError as close_exc:
                    logger.debug("Ignoring error during browser shutdown: %s", close_exc)
            playwright.stop()
            raise EnvironmentError(
                f"Failed to launch browser: {exc}",
                hint=append_browser_install_suggestion("Check --browser-channel / --browser-executable-path."),
            ) from exc

        return PlaywrightSession(playwright, browser, context, page)


def playwright_version() -> str | None:
    """Installed Playwright version, or ``None`` when it is missing."""
    try:
        return version("playwright")
    except PackageNotFoundError:
        return None
