"""Domain models for x-dl.

All models are **frozen** dataclasses — immutable value objects with no
behaviour beyond data access and a few derived properties.  They carry
zero I/O and zero dependencies on external packages.

Result shapes are explicit variants rather than nullable fields:

* a selection is either a :class:`SelectedMedia` or ``None``;
* an extraction is either an :class:`ExtractionSuccess` or an
  :class:`ExtractionFailure` (see :data:`ExtractionOutcome`).
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Union


# ---------------------------------------------------------------------------
# Format tags
# ---------------------------------------------------------------------------

class MediaFormat(str, Enum):
    """Semantic format tag derived from a media URL's path suffix."""

    MP4 = "mp4"
    WEBM = "webm"
    MOV = "mov"
    MKV = "mkv"
    GIF = "gif"
    M3U8 = "m3u8"
    M4S = "m4s"
    M4A = "m4a"
    TS = "ts"
    UNKNOWN = "unknown"

    @property
    def is_progressive(self) -> bool:
        """Single-file container downloadable with one GET."""
        return self in _PROGRESSIVE

    @property
    def is_playlist(self) -> bool:
        """Segmented-stream manifest that needs ffmpeg."""
        return self is MediaFormat.M3U8

    @property
    def is_segment(self) -> bool:
        """Low-level chunk referenced by a playlist; never a final pick."""
        return self in _SEGMENTS


_PROGRESSIVE: frozenset[MediaFormat] = frozenset(
    {MediaFormat.MP4, MediaFormat.WEBM, MediaFormat.MOV, MediaFormat.MKV, MediaFormat.GIF}
)
_SEGMENTS: frozenset[MediaFormat] = frozenset(
    {MediaFormat.M4S, MediaFormat.M4A, MediaFormat.TS}
)


class ErrorClassification(str, Enum):
    """Closed set of extraction failure tags."""

    INVALID_URL = "invalid_url"
    PARSE_ERROR = "parse_error"
    PROTECTED_ACCOUNT = "protected_account"
    LOGIN_WALL = "login_wall"
    NO_VIDEO_FOUND = "no_video_found"
    EXTRACTION_ERROR = "extraction_error"


# ---------------------------------------------------------------------------
# Post / candidate / selection
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class PostInfo:
    """Author and numeric id parsed from a post URL."""

    id: str
    """Numeric post id (e.g. ``1234567890``)."""

    author: str
    """Account handle without the leading ``@``."""

    url: str
    """Canonical post URL — origin plus path, no query or fragment."""


@dataclass(frozen=True, slots=True)
class MediaCandidate:
    """A media URL discovered during one page inspection."""

    url: str
    """Fragment-stripped URL; unique key within an extraction."""

    format: MediaFormat

    width: int | None
    """Width from a ``/WIDTHxHEIGHT/`` path marker, or ``None``."""

    height: int | None
    """Height from a ``/WIDTHxHEIGHT/`` path marker, or ``None``."""

    score: int
    """Ranking weight; an ordering proxy only."""

    is_audio_only: bool


@dataclass(frozen=True, slots=True)
class SelectedMedia:
    """The single candidate chosen by the selector."""

    url: str
    format: MediaFormat
    bitrate: int | None = None
    """Resolution-area proxy, not a real bitrate."""

    width: int | None = None
    height: int | None = None


# ---------------------------------------------------------------------------
# Extraction outcome
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class DebugArtifacts:
    """Paths of artifacts saved when an extraction fails."""

    html_path: Path | None = None
    screenshot_path: Path | None = None


@dataclass(frozen=True, slots=True)
class ExtractionSuccess:
    """A media URL was found for the post."""

    media: SelectedMedia
    post: PostInfo
    filename_stem: str
    """Suggested output name without extension (``<author>_<id>``)."""

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True, slots=True)
class ExtractionFailure:
    """The extraction ended in one of the fixed failure classifications."""

    classification: ErrorClassification
    message: str
    hint: str | None = None
    debug: DebugArtifacts | None = None

    @property
    def ok(self) -> bool:
        return False


ExtractionOutcome = Union[ExtractionSuccess, ExtractionFailure]


# ---------------------------------------------------------------------------
# Auth diagnostics
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class AuthStatus:
    """Read-only report on a persistent profile's login state."""

    has_auth_token: bool
    can_access_home: bool
    auth_cookies: tuple[str, ...]
    message: str

    @property
    def is_valid(self) -> bool:
        return self.has_auth_token and self.can_access_home
