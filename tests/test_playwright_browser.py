"""Tests for the Playwright adapter (infra/playwright_browser.py).

``playwright.sync_api`` is replaced in ``sys.modules`` by a stand-in
module whose ``sync_playwright`` hands back ``MagicMock`` objects — no
browser is launched.

Coverage:
* Launch options: headless flag, channel, executable path precedence.
* Ephemeral vs persistent-profile contexts.
* Launch failure closes browser and driver before ``EnvironmentError``.
* ``close`` order, idempotence, and persistent contexts without a browser.
* ``fetch_bytes``: body on success, ``HttpStatusError`` on 401/403,
  ``DownloadFailedError`` on request errors.
* ``cookies`` returns plain dicts.
"""

from __future__ import annotations

import sys
import types
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from x_dl.exceptions import DownloadFailedError, EnvironmentError, HttpStatusError
from x_dl.infra.playwright_browser import PlaywrightBrowserLauncher, PlaywrightSession


class _PlaywrightError(Exception):
    """Stand-in for ``playwright.sync_api.Error``."""


@pytest.fixture
def driver(monkeypatch: pytest.MonkeyPatch) -> MagicMock:
    """Install a fake ``playwright.sync_api`` and return the started driver."""
    playwright = MagicMock(name="playwright")
    sync_api = types.ModuleType("playwright.sync_api")
    sync_api.Error = _PlaywrightError  # type: ignore[attr-defined]
    sync_api.sync_playwright = MagicMock(  # type: ignore[attr-defined]
        return_value=MagicMock(start=MagicMock(return_value=playwright)),
    )
    package = types.ModuleType("playwright")
    package.sync_api = sync_api  # type: ignore[attr-defined]
    monkeypatch.setitem(sys.modules, "playwright", package)
    monkeypatch.setitem(sys.modules, "playwright.sync_api", sync_api)
    return playwright


def _session(*, browser: MagicMock | None = None) -> tuple[PlaywrightSession, MagicMock, MagicMock]:
    playwright, context = MagicMock(name="playwright"), MagicMock(name="context")
    return PlaywrightSession(playwright, browser, context, context.new_page()), playwright, context


# ---------------------------------------------------------------------------
# Launch
# ---------------------------------------------------------------------------

class TestLaunch:
    def test_ephemeral_context(self, driver: MagicMock) -> None:
        session = PlaywrightBrowserLauncher().open(profile_dir=None, headless=True)

        driver.chromium.launch.assert_called_once_with(headless=True)
        browser = driver.chromium.launch.return_value
        browser.new_context.assert_called_once_with()
        assert session.page is browser.new_context.return_value.new_page.return_value
        driver.chromium.launch_persistent_context.assert_not_called()

    def test_persistent_context(self, driver: MagicMock, tmp_path: Path) -> None:
        session = PlaywrightBrowserLauncher(channel="chrome").open(profile_dir=tmp_path, headless=False)

        driver.chromium.launch_persistent_context.assert_called_once_with(
            str(tmp_path), headless=False, channel="chrome",
        )
        driver.chromium.launch.assert_not_called()
        context = driver.chromium.launch_persistent_context.return_value
        assert session.page is context.new_page.return_value

    def test_executable_path_overrides_channel(self, driver: MagicMock) -> None:
        launcher = PlaywrightBrowserLauncher(channel="msedge", executable_path=Path("/opt/chrome/chrome"))

        launcher.open(profile_dir=None, headless=True)

        driver.chromium.launch.assert_called_once_with(headless=True, executable_path="/opt/chrome/chrome")

    def test_failure_closes_browser_and_driver(self, driver: MagicMock) -> None:
        browser = driver.chromium.launch.return_value
        browser.new_context.side_effect = _PlaywrightError("context refused")

        with pytest.raises(EnvironmentError, match="Failed to launch browser: context refused") as exc_info:
            PlaywrightBrowserLauncher().open(profile_dir=None, headless=True)

        browser.close.assert_called_once_with()
        driver.stop.assert_called_once_with()
        assert exc_info.value.hint is not None
        assert "playwright install chromium" in exc_info.value.hint

    def test_persistent_failure_stops_driver(self, driver: MagicMock, tmp_path: Path) -> None:
        driver.chromium.launch_persistent_context.side_effect = _PlaywrightError("profile locked")

        with pytest.raises(EnvironmentError, match="profile locked"):
            PlaywrightBrowserLauncher().open(profile_dir=tmp_path, headless=True)

        driver.chromium.launch.assert_not_called()
        driver.stop.assert_called_once_with()


# ---------------------------------------------------------------------------
# Session lifecycle
# ---------------------------------------------------------------------------

class TestSessionClose:
    def test_closes_context_browser_then_driver(self) -> None:
        order = MagicMock()
        browser = order.browser
        session = PlaywrightSession(order.playwright, browser, order.context, MagicMock())

        session.close()

        assert [c[0] for c in order.mock_calls] == ["context.close", "browser.close", "playwright.stop"]

    def test_second_close_is_noop(self) -> None:
        browser = MagicMock(name="browser")
        session, playwright, context = _session(browser=browser)

        session.close()
        session.close()

        context.close.assert_called_once_with()
        browser.close.assert_called_once_with()
        playwright.stop.assert_called_once_with()

    def test_persistent_context_closes_without_browser(self) -> None:
        session, playwright, context = _session(browser=None)

        session.close()

        context.close.assert_called_once_with()
        playwright.stop.assert_called_once_with()

    def test_shutdown_errors_do_not_stop_cleanup(self) -> None:
        browser = MagicMock(name="browser")
        session, playwright, context = _session(browser=browser)
        context.close.side_effect = RuntimeError("target closed")

        session.close()

        browser.close.assert_called_once_with()
        playwright.stop.assert_called_once_with()


# ---------------------------------------------------------------------------
# Authenticated requests and cookies
# ---------------------------------------------------------------------------

class TestFetchBytes:
    URL = "https://video.twimg.com/ext_tw_video/1/pu/vid/720x1280/a.mp4"

    def test_returns_body(self, driver: MagicMock) -> None:
        session, _, context = _session()
        context.request.get.return_value = MagicMock(ok=True, status=200, body=MagicMock(return_value=b"video"))

        assert session.fetch_bytes(self.URL) == b"video"
        context.request.get.assert_called_once_with(self.URL)

    @pytest.mark.parametrize("status", [401, 403])
    def test_auth_refusal_maps_to_http_status(self, driver: MagicMock, status: int) -> None:
        session, _, context = _session()
        context.request.get.return_value = MagicMock(ok=False, status=status)

        with pytest.raises(HttpStatusError) as exc_info:
            session.fetch_bytes(self.URL)

        assert exc_info.value.status_code == status
        assert exc_info.value.is_auth_failure
        assert "--login" in (exc_info.value.hint or "")

    def test_request_error_maps_to_download_failed(self, driver: MagicMock) -> None:
        session, _, context = _session()
        context.request.get.side_effect = _PlaywrightError("net::ERR_CONNECTION_RESET")

        with pytest.raises(DownloadFailedError, match="ERR_CONNECTION_RESET") as exc_info:
            session.fetch_bytes(self.URL)
        assert not isinstance(exc_info.value, HttpStatusError)


class TestCookies:
    def test_plain_dicts(self) -> None:
        session, _, context = _session()
        context.cookies.return_value = [{"name": "auth_token", "value": "t", "domain": ".x.com"}]

        cookies = session.cookies()

        assert cookies == [{"name": "auth_token", "value": "t", "domain": ".x.com"}]
        assert cookies[0] is not context.cookies.return_value[0]
