"""Infrastructure layer — external system integration.

This layer wraps all interaction with Playwright, ``requests``, the
operating system, and ffmpeg.  Every raw third-party exception must be
caught here and re-raised as a :class:`~x_dl.exceptions.XdlError`
subclass.

Rules
-----
* No imports from ``cli``.
* No user-facing output (no ``print()``, no Rich rendering).
* Must expose clean, typed interfaces consumed by the core layer.
"""

from x_dl.infra.ffmpeg_detector import (
    FfmpegCapabilities,
    FfmpegStatus,
    check_ffmpeg_capabilities,
    detect_ffmpeg,
    missing_ffmpeg_capabilities,
    require_ffmpeg,
)
from x_dl.infra.hls_converter import FfmpegHlsConverter
from x_dl.infra.http_client import RequestsHttpClient
from x_dl.infra.playwright_browser import PlaywrightBrowserLauncher, PlaywrightSession

__all__: list[str] = [
    "FfmpegCapabilities",
    "FfmpegHlsConverter",
    "FfmpegStatus",
    "PlaywrightBrowserLauncher",
    "PlaywrightSession",
    "RequestsHttpClient",
    "check_ffmpeg_capabilities",
    "detect_ffmpeg",
    "missing_ffmpeg_capabilities",
    "require_ffmpeg",
]
