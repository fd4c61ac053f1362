"""Candidate collection across network, timeline, and DOM channels.

The network channel is push-based: the browser calls
:meth:`CandidateAggregator.on_response` for every response while the
extractor is inside a Playwright call (navigation, ``wait_for_timeout``).
URLs are appended under a lock and readers only ever see snapshots, so
polling never iterates a list a callback is growing.

The timeline and DOM channels are one-shot reads.  Any failure there
degrades to an empty contribution.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable, Iterable
from typing import Any
from urllib.parse import urlsplit

from x_dl.core.format_classifier import classify_format, strip_fragment
from x_dl.core.protocols import BrowserPage


logger = logging.getLogger(__name__)

TIMELINE_SCRIPT: str = (
    "() => performance.getEntriesByType('resource').map((entry) => String(entry.name))"
)

DOM_SCRIPT: str = """() => {
    const urls = [];
    for (const video of document.querySelectorAll('video')) {
        if (video.currentSrc) urls.push(video.currentSrc);
        if (video.src) urls.push(video.src);
    }
    for (const source of document.querySelectorAll('video source')) {
        if (source.src) urls.push(source.src);
    }
    return urls;
}"""


class CandidateAggregator:
    """Accumulates media-host URLs observed during one page load.

    Parameters
    ----------
    media_host:
        Only URLs on this host (or its subdomains) are kept.
    clock:
        Monotonic seconds source; injectable for tests.
    """

    def __init__(
        self,
        media_host: str,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._media_host: str = media_host.lower()
        self._clock = clock
        self._lock = threading.Lock()
        self._network: list[str] = []
        self._network_seen: set[str] = set()

    # ------------------------------------------------------------------
    # Filtering
    # ------------------------------------------------------------------

    def is_media_url(self, url: object) -> bool:
        """Return ``True`` when *url* is a string on the media host."""
        if not isinstance(url, str) or not url:
            return False
        try:
            hostname = urlsplit(url).hostname
        except ValueError:
            return False
        if hostname is None:
            return False
        return hostname == self._media_host or hostname.endswith("." + self._media_host)

    def _filter(self, urls: Iterable[object]) -> list[str]:
        return [str(url) for url in urls if self.is_media_url(url)]

    # ------------------------------------------------------------------
    # Network channel
    # ------------------------------------------------------------------

    def attach(self, page: BrowserPage) -> None:
        """Start collecting response URLs from *page*."""
        page.on("response", self.on_response)

    def on_response(self, response: Any) -> None:
        """Response-event callback; never raises into the browser loop."""
        try:
            url = response.url
        except Exception:  # noqa: BLE001
            return
        self.add(url)

    def add(self, url: object) -> None:
        """Record one observed URL if it belongs to the media host."""
        if not self.is_media_url(url):
            return
        clean = strip_fragment(str(url))
        with self._lock:
            if clean in self._network_seen:
                return
            self._network_seen.add(clean)
            self._network.append(clean)

    def network_snapshot(self) -> list[str]:
        """Copy of the URLs collected so far, in arrival order."""
        with self._lock:
            return list(self._network)

    # ------------------------------------------------------------------
    # One-shot channels
    # ------------------------------------------------------------------

    def timeline_candidates(self, page: BrowserPage) -> list[str]:
        """Media URLs from the performance resource timeline."""
        return self._evaluate_urls(page, TIMELINE_SCRIPT, "timeline")

    def dom_candidates(self, page: BrowserPage) -> list[str]:
        """Media URLs declared on ``<video>``/``<source>`` elements."""
        return self._evaluate_urls(page, DOM_SCRIPT, "dom")

    def _evaluate_urls(self, page: BrowserPage, script: str, channel: str) -> list[str]:
        try:
            result = page.evaluate(script)
        except Exception as exc:  # noqa: BLE001
            logger.debug("%s channel unavailable: %s", channel, exc)
            return []
        if not isinstance(result, list):
            return []
        return self._filter(result)

    # ------------------------------------------------------------------
    # Union
    # ------------------------------------------------------------------

    def collect(self, page: BrowserPage) -> list[str]:
        """Union of all three channels, fragment-stripped and de-duplicated.

        First-seen order is kept: network, then timeline, then DOM.
        """
        merged = [
            *self.network_snapshot(),
            *self.timeline_candidates(page),
            *self.dom_candidates(page),
        ]
        unique = list(dict.fromkeys(strip_fragment(url) for url in merged))
        logger.debug("Collected %d unique candidate(s)", len(unique))
        return unique

    # ------------------------------------------------------------------
    # Bounded wait
    # ------------------------------------------------------------------

    def has_acceptable_candidate(self) -> bool:
        """Whether the network channel already holds a video or playlist URL."""
        for url in self.network_snapshot():
            fmt = classify_format(url)
            if fmt.is_progressive or fmt.is_playlist:
                return True
        return False

    def wait_for_candidates(
        self,
        page: BrowserPage,
        *,
        max_wait_ms: int,
        poll_interval_ms: int,
    ) -> bool:
        """Poll until an acceptable candidate appears or *max_wait_ms* elapses.

        The sleep goes through ``page.wait_for_timeout`` so the browser
        keeps delivering response events meanwhile.  Returns whether a
        candidate was seen; callers proceed either way.
        """
        deadline = self._clock() + max_wait_ms / 1000
        while self._clock() < deadline:
            if self.has_acceptable_candidate():
                return True
            try:
                page.wait_for_timeout(poll_interval_ms)
            except Exception as exc:  # noqa: BLE001
                logger.debug("Candidate wait interrupted: %s", exc)
                break
        return self.has_acceptable_candidate()
