"""Extraction orchestrator — one post URL in, one classified outcome out.

Stages run strictly in order::

    validate → navigate → wall check → trigger playback
             → await candidates → select → success | failure

Guarantees
----------
* :meth:`VideoExtractor.extract` never raises for page-level problems;
  every failure becomes an :class:`ExtractionFailure` with a fixed
  :class:`ErrorClassification`.
* Validation failures never launch a browser.
* The browser session is closed exactly once on every path.
* Debug-artifact saving and playback nudging are best-effort and can
  never change the outcome.
* Browser and HTTP work goes only through the protocols in
  :mod:`x_dl.core.protocols`.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from datetime import datetime, timezone
from pathlib import Path

from x_dl.core.access_wall import has_login_wall, is_private_account
from x_dl.core.candidate_aggregator import CandidateAggregator
from x_dl.core.models import (
    AuthStatus,
    DebugArtifacts,
    ErrorClassification,
    ExtractionFailure,
    ExtractionOutcome,
    ExtractionSuccess,
    PostInfo,
)
from x_dl.core.options import ExtractOptions
from x_dl.core.post_url import filename_stem, is_valid_post_url, parse_post_url
from x_dl.core.protocols import BrowserLauncher, BrowserPage, BrowserSession, ContentLengthProbe
from x_dl.core.selector import CandidateSelector
from x_dl.exceptions import AuthenticationRequiredError, DownloadFailedError, XdlError
from x_dl.utils.files import write_bytes_atomic


logger = logging.getLogger(__name__)

PLAY_SCRIPT: str = """() => {
    for (const video of document.querySelectorAll('video')) {
        try {
            video.muted = true;
            const pending = video.play && video.play();
            if (pending && pending.catch) pending.catch(() => undefined);
        } catch (e) {}
    }
}"""

PLAY_SELECTORS: tuple[str, ...] = (
    '[data-testid="videoPlayer"]',
    "video",
    'div[role="button"][aria-label*="Play"]',
    'div[role="button"][aria-label*="play"]',
)
PLAY_CLICK_TIMEOUT_MS: int = 750

AUTH_TOKEN_COOKIE: str = "auth_token"
AUTH_COOKIE_NAMES: tuple[str, ...] = (
    "auth_token",
    "auth_multi_select",
    "personalization_id",
    "ct0",
)

LOGIN_HINT: str = (
    "Log in once with: x-dl --login --profile ~/.x-dl-profile\n"
    "Then retry with: x-dl --profile ~/.x-dl-profile <url>"
)


class VideoExtractor:
    """Drives a browser to find the best media URL for a post.

    Parameters
    ----------
    launcher:
        Any object satisfying :class:`BrowserLauncher`.
    probe:
        HEAD-size probe handed to the :class:`CandidateSelector`.
    options:
        Timeouts, profile, hosts, and detection phrases.
    clock:
        Monotonic seconds source for the candidate wait; injectable
        for tests.
    """

    def __init__(
        self,
        launcher: BrowserLauncher,
        probe: ContentLengthProbe,
        options: ExtractOptions | None = None,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._launcher: BrowserLauncher = launcher
        self._options: ExtractOptions = options or ExtractOptions()
        self._selector = CandidateSelector(probe)
        self._clock = clock

    @property
    def options(self) -> ExtractOptions:
        return self._options

    # ------------------------------------------------------------------
    # Extraction
    # ------------------------------------------------------------------

    def extract(self, url: str) -> ExtractionOutcome:
        """Run one complete extraction attempt for *url*."""
        logger.info("Extracting video from: %s", url)
        opts = self._options

        if not is_valid_post_url(url, opts.post_hosts):
            return ExtractionFailure(
                classification=ErrorClassification.INVALID_URL,
                message="Invalid X/Twitter URL. Please provide a valid post URL.",
                hint="Expected something like https://x.com/user/status/123456",
            )

        post = parse_post_url(url, opts.post_hosts)
        if post is None:
            return ExtractionFailure(
                classification=ErrorClassification.PARSE_ERROR,
                message="Failed to parse post URL.",
            )

        logger.info("Post: @%s (ID: %s)", post.author, post.id)

        session: BrowserSession | None = None
        try:
            session = self._launcher.open(
                profile_dir=opts.profile_dir,
                headless=not opts.headed,
            )
            return self._run(session.page, url, post)
        except Exception as exc:  # noqa: BLE001
            logger.debug("Extraction aborted", exc_info=True)
            debug = (
                self._save_debug_artifacts(session.page, None, "extraction-error")
                if session is not None
                else None
            )
            return ExtractionFailure(
                classification=ErrorClassification.EXTRACTION_ERROR,
                message=str(exc) or "Unknown error occurred",
                hint=exc.hint if isinstance(exc, XdlError) else None,
                debug=debug,
            )
        finally:
            if session is not None:
                self._safe_close(session)

    def _run(self, page: BrowserPage, url: str, post: PostInfo) -> ExtractionOutcome:
        opts = self._options
        aggregator = CandidateAggregator(opts.media_host, clock=self._clock)
        aggregator.attach(page)

        logger.info("Opening post in browser...")
        page.goto(url, wait_until="domcontentloaded", timeout=opts.timeout_ms)
        page.wait_for_timeout(opts.settle_ms)

        html = page.content()

        if is_private_account(html, opts.access_wall_phrases):
            return ExtractionFailure(
                classification=ErrorClassification.PROTECTED_ACCOUNT,
                message=(
                    "This post is private or protected. "
                    "Only public posts can be extracted."
                ),
                debug=self._save_debug_artifacts(page, html, "protected-account"),
            )

        login_wall = has_login_wall(html, opts.access_wall_phrases)
        if login_wall:
            logger.warning(
                "Login wall detected; trying to extract anyway "
                "(use --login/--profile for best results)"
            )

        self._trigger_playback(page)
        aggregator.wait_for_candidates(
            page,
            max_wait_ms=opts.candidate_wait_ms,
            poll_interval_ms=opts.poll_interval_ms,
        )

        logger.info("Looking for video...")
        media = self._selector.select(aggregator.collect(page))

        if media is None:
            if login_wall:
                return ExtractionFailure(
                    classification=ErrorClassification.LOGIN_WALL,
                    message=(
                        "No video URL found. "
                        "This post likely requires authentication."
                    ),
                    hint=LOGIN_HINT,
                    debug=self._save_debug_artifacts(page, html, "login-wall"),
                )
            return ExtractionFailure(
                classification=ErrorClassification.NO_VIDEO_FOUND,
                message="Failed to extract video URL.",
                hint="Make sure the post contains a video, or retry with --headed to watch the page.",
                debug=self._save_debug_artifacts(page, html, "no-video-found"),
            )

        stem = filename_stem(post)
        logger.info("Video extracted: %s", media.url)
        logger.info("Suggested filename: %s", stem)
        return ExtractionSuccess(media=media, post=post, filename_stem=stem)

    # ------------------------------------------------------------------
    # Best-effort helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _trigger_playback(page: BrowserPage) -> None:
        """Nudge the player into fetching media; every failure is ignored."""
        try:
            page.evaluate(PLAY_SCRIPT)
        except Exception as exc:  # noqa: BLE001
            logger.debug("Muted autoplay failed: %s", exc)

        for selector in PLAY_SELECTORS:
            try:
                locator = page.locator(selector).first
                if locator.count() == 0:
                    continue
                locator.click(timeout=PLAY_CLICK_TIMEOUT_MS)
            except Exception as exc:  # noqa: BLE001
                logger.debug("Click on %s failed: %s", selector, exc)
                continue
            return

    def _save_debug_artifacts(
        self,
        page: BrowserPage,
        html: str | None,
        error_type: str,
    ) -> DebugArtifacts | None:
        """Write an HTML snapshot and full-page screenshot, if configured."""
        directory = self._options.debug_artifacts_dir
        if directory is None:
            return None

        try:
            directory.mkdir(parents=True, exist_ok=True)
            timestamp = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H-%M-%S")
            prefix = f"{error_type}_{timestamp}"

            html_path: Path | None = None
            if html:
                html_path = directory / f"{prefix}.html"
                html_path.write_text(html, encoding="utf-8", errors="replace")
                logger.info("HTML saved to: %s", html_path)

            screenshot_path: Path | None = directory / f"{prefix}.png"
            try:
                page.screenshot(path=str(screenshot_path), full_page=True)
                logger.info("Screenshot saved to: %s", screenshot_path)
            except Exception as exc:  # noqa: BLE001
                logger.debug("Screenshot failed: %s", exc)
                screenshot_path = None
        except Exception as exc:  # noqa: BLE001
            logger.warning("Failed to save debug artifacts: %s", exc)
            return None

        return DebugArtifacts(html_path=html_path, screenshot_path=screenshot_path)

    @staticmethod
    def _safe_close(session: BrowserSession) -> None:
        try:
            session.close()
        except Exception as exc:  # noqa: BLE001
            logger.debug("Browser close failed: %s", exc)

    # ------------------------------------------------------------------
    # Profile-backed operations
    # ------------------------------------------------------------------

    def _require_profile(self) -> Path:
        if self._options.profile_dir is None:
            raise AuthenticationRequiredError(
                "Authenticated download requested but no profile directory was provided.",
                hint="Pass --profile <dir> pointing at a logged-in profile.",
            )
        return self._options.profile_dir

    def download_authenticated(self, url: str, output_path: Path) -> Path:
        """Fetch *url* through the persistent profile's browser context.

        Used when an anonymous download is refused with 401/403.

        Raises
        ------
        AuthenticationRequiredError
            If no profile directory was configured.
        HttpStatusError
            If the authenticated request is refused too.
        DownloadFailedError
            For any other failure.
        """
        profile_dir = self._require_profile()
        logger.info("Authenticated download via browser session: %s", url)
        started = self._clock()

        session = self._launcher.open(profile_dir=profile_dir, headless=True)
        try:
            data = session.fetch_bytes(url)
            write_bytes_atomic(output_path, data)
        except XdlError:
            raise
        except Exception as exc:
            raise DownloadFailedError(
                f"Unexpected authenticated download error: {exc}",
            ) from exc
        finally:
            self._safe_close(session)

        logger.info("Download completed in %.1fs", self._clock() - started)
        return output_path

    def verify_auth(self) -> AuthStatus:
        """Report whether the configured profile looks logged in.

        Read-only: cookies are inspected and the home page is loaded,
        nothing else.
        """
        profile_dir = self._options.profile_dir
        if profile_dir is None:
            return AuthStatus(
                has_auth_token=False,
                can_access_home=False,
                auth_cookies=(),
                message="No profile directory specified",
            )

        session = self._launcher.open(profile_dir=profile_dir, headless=True)
        try:
            names = [str(cookie.get("name", "")) for cookie in session.cookies()]
            has_auth_token = AUTH_TOKEN_COOKIE in names
            auth_cookies = tuple(
                dict.fromkeys(name for name in names if name in AUTH_COOKIE_NAMES)
            )
            can_access_home, message = self._check_home(session.page, has_auth_token)
        finally:
            self._safe_close(session)

        return AuthStatus(
            has_auth_token=has_auth_token,
            can_access_home=can_access_home,
            auth_cookies=auth_cookies,
            message=message,
        )

    def _check_home(self, page: BrowserPage, has_auth_token: bool) -> tuple[bool, str]:
        home_url = self._options.home_url
        try:
            page.goto(home_url, wait_until="domcontentloaded", timeout=self._options.timeout_ms)
            html = page.content()
        except Exception as exc:  # noqa: BLE001
            return False, f"Failed to access {home_url}: {exc}"

        if has_login_wall(html, self._options.access_wall_phrases):
            return False, (
                f"Login wall detected at {home_url} - "
                "authentication may be invalid or expired"
            )
        if "Home" in html and has_auth_token:
            return True, f"Authentication is valid and {home_url} is accessible"
        if "Home" in html:
            return True, f"{home_url} loaded successfully (no auth token present)"
        return True, f"{home_url} loaded (no login wall detected)"
