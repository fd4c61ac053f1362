"""Infrastructure: ffmpeg detection, capability probing, and platform guidance.

This module is responsible for locating ffmpeg on the system PATH,
checking that the build can remux HLS into MP4, and providing
platform-specific installation guidance when it is missing.

Rules
-----
* Location via :func:`shutil.which`; capability listing via short
  ``ffmpeg -hide_banner -<listing>`` runs.
* No permanent PATH modification.
* No automatic installation.
* No ``print()`` — callers handle user-facing output.
"""

from __future__ import annotations

import platform
import shutil
import subprocess
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from x_dl.exceptions import FfmpegNotFoundError


# ---------------------------------------------------------------------------
# Detection result
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class FfmpegStatus:
    """Result of an ffmpeg detection probe.

    Attributes
    ----------
    found : bool
        Whether ffmpeg was located on PATH.
    path : Path | None
        Absolute path to the ffmpeg binary, or ``None``.
    version_hint : str
        Human-readable status string (e.g. ``"found at …"`` or ``"not found"``).
    install_commands : tuple[str, ...]
        Suggested shell commands for installing ffmpeg on the current
        platform.  Empty when ffmpeg is already present.
    """

    found: bool
    path: Path | None
    version_hint: str
    install_commands: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class FfmpegCapabilities:
    """What the installed ffmpeg build can read, write, and filter."""

    available: bool
    protocols: tuple[str, ...] = ()
    demuxers: tuple[str, ...] = ()
    muxers: tuple[str, ...] = ()
    bitstream_filters: tuple[str, ...] = ()
    error: str | None = None


REQUIRED_PROTOCOL: str = "https"
REQUIRED_DEMUXER: str = "hls"
REQUIRED_MUXER: str = "mp4"
REQUIRED_BITSTREAM_FILTER: str = "aac_adtstoasc"


# ---------------------------------------------------------------------------
# Detection logic
# ---------------------------------------------------------------------------

def detect_ffmpeg() -> FfmpegStatus:
    """Probe the system for an ffmpeg binary.

    Returns a :class:`FfmpegStatus` regardless of whether ffmpeg is
    present — the caller decides whether to abort or merely warn.
    """
    result = shutil.which("ffmpeg")

    if result is not None:
        resolved = Path(result).resolve()
        return FfmpegStatus(
            found=True,
            path=resolved,
            version_hint=f"found at {resolved}",
            install_commands=(),
        )

    return FfmpegStatus(
        found=False,
        path=None,
        version_hint="not found",
        install_commands=_platform_install_commands(),
    )


def require_ffmpeg() -> Path:
    """Locate ffmpeg or raise :class:`FfmpegNotFoundError`.

    Used by code paths that **require** ffmpeg to proceed (HLS
    playlist downloads).
    """
    status = detect_ffmpeg()
    if not status.found or status.path is None:
        raise FfmpegNotFoundError(
            "ffmpeg is required to download HLS (m3u8) videos.",
            hint=install_hint(status),
        )
    return status.path


def install_hint(status: FfmpegStatus) -> str | None:
    """Multi-line install guidance for a missing ffmpeg, if any."""
    if not status.install_commands:
        return None
    lines = ["Install ffmpeg using one of:"]
    lines.extend(f"  {cmd}" for cmd in status.install_commands)
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Capability probing
# ---------------------------------------------------------------------------

def _parse_name_list(output: str) -> tuple[str, ...]:
    """Names from ``-protocols``/``-bsfs`` output (section headers dropped)."""
    names: list[str] = []
    for line in output.splitlines():
        stripped = line.strip()
        if not stripped or stripped.endswith(":"):
            continue
        names.append(stripped)
    return tuple(names)


def _parse_format_table(output: str) -> tuple[str, ...]:
    """Names from ``-demuxers``/``-muxers`` output.

    Rows follow a ``--`` separator and read ``<flags> <name[,alias…]> <description>``.
    """
    names: list[str] = []
    in_table = False
    for line in output.splitlines():
        stripped = line.strip()
        if stripped == "--":
            in_table = True
            continue
        if not in_table or not stripped:
            continue
        parts = stripped.split()
        if len(parts) < 2:
            continue
        names.extend(name for name in parts[1].split(",") if name)
    return tuple(names)


def check_ffmpeg_capabilities(
    ffmpeg: str = "ffmpeg",
    *,
    run: Callable[..., Any] = subprocess.run,
) -> FfmpegCapabilities:
    """List the protocols, formats, and bitstream filters of *ffmpeg*."""

    def listing(flag: str) -> str:
        completed = run(
            [ffmpeg, "-hide_banner", flag],
            capture_output=True,
            text=True,
            timeout=10,
            check=True,
        )
        return str(completed.stdout or "")

    try:
        listing("-version")
        return FfmpegCapabilities(
            available=True,
            protocols=_parse_name_list(listing("-protocols")),
            demuxers=_parse_format_table(listing("-demuxers")),
            muxers=_parse_format_table(listing("-muxers")),
            bitstream_filters=_parse_name_list(listing("-bsfs")),
        )
    except (OSError, subprocess.SubprocessError) as exc:
        return FfmpegCapabilities(available=False, error=str(exc))


def missing_ffmpeg_capabilities(capabilities: FfmpegCapabilities) -> list[str]:
    """Human-readable list of what HLS → MP4 remuxing still needs."""
    missing: list[str] = []
    if REQUIRED_PROTOCOL not in capabilities.protocols:
        missing.append(f"protocol: {REQUIRED_PROTOCOL}")
    if REQUIRED_DEMUXER not in capabilities.demuxers:
        missing.append(f"demuxer: {REQUIRED_DEMUXER}")
    if REQUIRED_MUXER not in capabilities.muxers:
        missing.append(f"muxer: {REQUIRED_MUXER}")
    if REQUIRED_BITSTREAM_FILTER not in capabilities.bitstream_filters:
        missing.append(f"bitstream filter: {REQUIRED_BITSTREAM_FILTER}")
    return missing


# ---------------------------------------------------------------------------
# Platform-specific install guidance
# ---------------------------------------------------------------------------

def _platform_install_commands() -> tuple[str, ...]:
    """Return install commands appropriate for the current OS."""
    system = platform.system().lower()
    if system == "windows":
        return (
            "winget install Gyan.FFmpeg",
            "choco install ffmpeg",
        )
    if system == "linux":
        return (
            "sudo apt install ffmpeg",
            "sudo dnf install ffmpeg",
            "sudo pacman -S ffmpeg",
        )
    if system == "darwin":
        return ("brew install ffmpeg",)
    # Fallback: generic guidance.
    return ("Please install ffmpeg from https://ffmpeg.org/download.html",)
