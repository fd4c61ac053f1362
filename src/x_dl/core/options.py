"""Explicit configuration for one :class:`~x_dl.core.extractor.VideoExtractor`.

Nothing here is read from the environment or from global state; the
CLI builds an :class:`ExtractOptions` from its flags and passes it in.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from x_dl.core.access_wall import DEFAULT_PHRASES, AccessWallPhrases
from x_dl.core.post_url import DEFAULT_POST_HOSTS


DEFAULT_MEDIA_HOST: str = "video.twimg.com"
DEFAULT_HOME_URL: str = "https://x.com/home"


@dataclass(frozen=True, slots=True)
class ExtractOptions:
    """Tunables for navigation, waiting, and detection."""

    timeout_ms: int = 30_000
    """Page navigation timeout."""

    headed: bool = False
    """Show the browser window."""

    profile_dir: Path | None = None
    """Persistent authenticated profile; ``None`` for a fresh context."""

    debug_artifacts_dir: Path | None = None
    """Where HTML snapshots and screenshots of failures are written."""

    media_host: str = DEFAULT_MEDIA_HOST
    post_hosts: tuple[str, ...] = DEFAULT_POST_HOSTS
    home_url: str = DEFAULT_HOME_URL

    settle_ms: int = 1_500
    """Fixed delay after DOM ready for client-side hydration."""

    candidate_wait_ms: int = 8_000
    poll_interval_ms: int = 250

    access_wall_phrases: AccessWallPhrases = DEFAULT_PHRASES
