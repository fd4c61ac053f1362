"""Candidate ranking and selection.

Pipeline (enforced by :meth:`CandidateSelector.select`):

1. **Parse** — raw URLs become scored :class:`MediaCandidate` objects.
2. **Partition** — playlists vs. non-audio progressive files; transport
   segments and audio-only renditions never enter the video pool.
3. **Rank** — progressive files carrying the progressive-delivery
   marker first, then by score.
4. **Probe** — HEAD the top :data:`PROBE_LIMIT` ranked files; those
   whose ``Content-Length`` reaches :data:`MIN_PROGRESSIVE_BYTES` are
   "verified".  The best-ranked verified file wins, larger size breaking
   ties between equal ranks.  Without any verified file the top-ranked
   one is kept.
5. **Decoy guard** — a winner known to be smaller than the floor is
   swapped for the best playlist when one exists.

Unknown sizes (no or unparseable header, failed probe) never verify a
candidate but never disqualify it either.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from concurrent.futures import ThreadPoolExecutor

from x_dl.core.format_classifier import (
    PROGRESSIVE_DELIVERY_MARKER,
    extract_bitrate,
    to_candidate,
)
from x_dl.core.models import MediaCandidate, SelectedMedia
from x_dl.core.protocols import ContentLengthProbe


logger = logging.getLogger(__name__)

PROBE_LIMIT: int = 6
PROBE_TIMEOUT_SECONDS: float = 5.0
MIN_PROGRESSIVE_BYTES: int = 100 * 1024


def _rank_key(candidate: MediaCandidate) -> tuple[int, int]:
    """Ascending sort key: progressive-delivery marker first, then score desc."""
    marker_rank = 0 if PROGRESSIVE_DELIVERY_MARKER in candidate.url else 1
    return (marker_rank, -candidate.score)


class CandidateSelector:
    """Picks one media URL from an extraction's candidate set.

    Parameters
    ----------
    probe:
        Any object satisfying :class:`ContentLengthProbe`.
    max_workers:
        Parallel HEAD probes; ``1`` probes sequentially.
    """

    def __init__(
        self,
        probe: ContentLengthProbe,
        *,
        max_workers: int = PROBE_LIMIT,
        probe_timeout: float = PROBE_TIMEOUT_SECONDS,
    ) -> None:
        self._probe: ContentLengthProbe = probe
        self._max_workers: int = max(1, max_workers)
        self._probe_timeout: float = probe_timeout

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def select(self, urls: Iterable[str]) -> SelectedMedia | None:
        """Return the best candidate among *urls*, or ``None``."""
        candidates = self._parse(urls)

        playlists = sorted(
            (c for c in candidates if c.format.is_playlist),
            key=lambda c: -c.score,
        )
        best_playlist = playlists[0] if playlists else None

        progressive = [
            c for c in candidates
            if c.format.is_progressive and not c.is_audio_only
        ]

        if progressive:
            best, size = self._pick_progressive(progressive)
            if size is not None and size < MIN_PROGRESSIVE_BYTES and best_playlist is not None:
                logger.info(
                    "Progressive candidate is only %d bytes; using playlist instead", size,
                )
                return SelectedMedia(url=best_playlist.url, format=best_playlist.format)
            return SelectedMedia(
                url=best.url,
                format=best.format,
                bitrate=extract_bitrate(best.url),
                width=best.width,
                height=best.height,
            )

        if best_playlist is not None:
            return SelectedMedia(url=best_playlist.url, format=best_playlist.format)

        # Audio-only renditions are the last thing worth returning.
        fallback = next((c for c in candidates if c.format.is_progressive), None)
        if fallback is not None:
            return SelectedMedia(url=fallback.url, format=fallback.format)

        return None

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @staticmethod
    def _parse(urls: Iterable[str]) -> list[MediaCandidate]:
        candidates: list[MediaCandidate] = []
        for url in urls:
            try:
                candidates.append(to_candidate(url))
            except ValueError as exc:
                logger.debug("Skipping unparseable candidate %r: %s", url, exc)
        return candidates

    def _pick_progressive(
        self,
        candidates: Sequence[MediaCandidate],
    ) -> tuple[MediaCandidate, int | None]:
        ranked = sorted(candidates, key=_rank_key)
        probed = ranked[:PROBE_LIMIT]
        sizes = self._probe_sizes([c.url for c in probed])

        verified = [
            c for c in probed
            if (sizes.get(c.url) or 0) >= MIN_PROGRESSIVE_BYTES
        ]
        if verified:
            best = min(
                verified,
                key=lambda c: (*_rank_key(c), -(sizes.get(c.url) or 0)),
            )
            return best, sizes.get(best.url)

        top = ranked[0]
        return top, sizes.get(top.url)

    def _probe_sizes(self, urls: Sequence[str]) -> dict[str, int | None]:
        workers = min(self._max_workers, len(urls))
        if workers <= 1:
            results = [self._probe_one(url) for url in urls]
        else:
            with ThreadPoolExecutor(max_workers=workers) as pool:
                results = list(pool.map(self._probe_one, urls))
        return dict(zip(urls, results))

    def _probe_one(self, url: str) -> int | None:
        try:
            size = self._probe.content_length(url, timeout=self._probe_timeout)
        except Exception as exc:  # noqa: BLE001
            logger.debug("HEAD probe failed for %s: %s", url, exc)
            return None
        logger.debug("HEAD %s -> %s bytes", url, size if size is not None else "unknown")
        return size
