"""Pure URL → format classification and resolution parsing.

Every function in this module is a **pure** transformation — no I/O,
no side effects, fully deterministic, and trivially unit-testable.
"""

from __future__ import annotations

import re
from urllib.parse import urlsplit

from x_dl.core.models import MediaCandidate, MediaFormat


AUDIO_ONLY_MARKERS: tuple[str, ...] = ("/aud/", "/mp4a/", "mp4a")
"""Path fragments identifying audio-only renditions."""

PROGRESSIVE_DELIVERY_MARKER: str = "/pu/vid/"
"""Path fragment used by progressive (non-segmented) endpoints."""

MASTER_PLAYLIST_MARKER: str = "variant_version"
"""Query/path fragment carried by master (multi-variant) playlists."""

PROGRESSIVE_BONUS: int = 1_000_000_000
MASTER_PLAYLIST_BONUS: int = 2_000_000_000

_RESOLUTION_RE = re.compile(r"/(\d+)x(\d+)/")

_EXTENSIONS: dict[str, MediaFormat] = {
    fmt.value: fmt for fmt in MediaFormat if fmt is not MediaFormat.UNKNOWN
}

# Known media markers used by the HTML helpers below.
_HTML_VIDEO_MARKERS: tuple[str, ...] = (
    "<video",
    "video.twimg.com",
    "tweet_video",
    "ext_tw_video",
)
_HTML_MEDIA_URL_RE = re.compile(r"https?://video\.twimg\.com/[^\s\"'<>]+", re.IGNORECASE)


# ---------------------------------------------------------------------------
# Normalisation
# ---------------------------------------------------------------------------

def strip_fragment(url: str) -> str:
    """Drop everything from the first ``#``."""
    return url.split("#", 1)[0]


def _path_suffix(url: str) -> str:
    """Lower-cased extension of the last path segment, or ``""``."""
    path = urlsplit(strip_fragment(url)).path
    last_segment = path.rsplit("/", 1)[-1]
    if "." not in last_segment:
        return ""
    return last_segment.rsplit(".", 1)[-1].lower()


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------

def classify_format(url: str) -> MediaFormat:
    """Map *url* to a :class:`MediaFormat` tag.

    Query strings and fragments are ignored; the match is
    case-insensitive.  Anything unrecognised is
    :attr:`MediaFormat.UNKNOWN` — this never raises.
    """
    return _EXTENSIONS.get(_path_suffix(url), MediaFormat.UNKNOWN)


def is_audio_only(url: str) -> bool:
    """Return ``True`` when *url* carries an audio-track marker."""
    clean = strip_fragment(url)
    return any(marker in clean for marker in AUDIO_ONLY_MARKERS)


def extract_resolution(url: str) -> tuple[int, int] | None:
    """Parse an embedded ``/WIDTHxHEIGHT/`` marker."""
    match = _RESOLUTION_RE.search(url)
    if match is None:
        return None
    return int(match.group(1)), int(match.group(2))


def extract_bitrate(url: str) -> int | None:
    """Return the resolution area as a quality proxy, if a marker exists."""
    resolution = extract_resolution(url)
    if resolution is None:
        return None
    width, height = resolution
    return width * height


def to_candidate(url: str) -> MediaCandidate:
    """Build a scored :class:`MediaCandidate` from a raw URL string.

    Scoring
    -------
    * Base score is the resolution area when a marker is present.
    * Non-audio progressive containers get :data:`PROGRESSIVE_BONUS`
      so they outrank any unscored playlist.
    * Non-audio playlists carrying :data:`MASTER_PLAYLIST_MARKER` get
      :data:`MASTER_PLAYLIST_BONUS`.
    """
    clean = strip_fragment(url)
    fmt = classify_format(clean)
    audio_only = is_audio_only(clean)

    width: int | None = None
    height: int | None = None
    score = 0
    resolution = extract_resolution(clean)
    if resolution is not None:
        width, height = resolution
        score = width * height

    if fmt.is_progressive and not audio_only:
        score += PROGRESSIVE_BONUS
    if fmt.is_playlist and not audio_only and MASTER_PLAYLIST_MARKER in clean:
        score += MASTER_PLAYLIST_BONUS

    return MediaCandidate(
        url=clean,
        format=fmt,
        width=width,
        height=height,
        score=score,
        is_audio_only=audio_only,
    )


# ---------------------------------------------------------------------------
# HTML helpers
# ---------------------------------------------------------------------------

def has_video_markers(html: str) -> bool:
    """Cheap check for any sign of embedded video in raw HTML."""
    return any(marker in html for marker in _HTML_VIDEO_MARKERS)


def extract_media_urls_from_html(html: str) -> list[str]:
    """Return unique media-host URLs found in *html*, in first-seen order."""
    return list(dict.fromkeys(_HTML_MEDIA_URL_RE.findall(html)))
