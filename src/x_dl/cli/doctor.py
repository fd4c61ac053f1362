"""``x-dl doctor`` — environment diagnostics command.

Gathers system information and renders a Rich table summarising
whether the runtime environment satisfies x-dl's requirements.

This module lives in the CLI layer — it may import from ``infra``
and ``core``, and it renders via Rich.  No business logic resides
here; it purely collects and displays diagnostic data.
"""

from __future__ import annotations

import platform
import sys

from x_dl.cli import exit_codes
from x_dl.cli.console import console
from x_dl.infra.ffmpeg_detector import (
    FfmpegStatus,
    check_ffmpeg_capabilities,
    detect_ffmpeg,
    missing_ffmpeg_capabilities,
)
from x_dl.infra.playwright_browser import playwright_version
from x_dl.version import __version__


OK = "[green]OK[/green]"
WARN = "[yellow]WARN[/yellow]"
FAIL = "[red]FAIL[/red]"

Check = tuple[str, str, str]


# ---------------------------------------------------------------------------
# Diagnostic collectors
# ---------------------------------------------------------------------------

def _xdl_version_check() -> Check:
    return "x-dl", __version__, OK


def _python_version_check() -> Check:
    """Return (label, value, status) for the Python version row."""
    version = platform.python_version()
    ok = sys.version_info[:2] >= (3, 10)
    status = OK if ok else "[red]FAIL (>=3.10 required)[/red]"
    return "Python", version, status


def _playwright_check() -> Check:
    """Playwright is mandatory: without it nothing can be extracted."""
    installed = playwright_version()
    if installed is None:
        return "Playwright", "NOT INSTALLED", FAIL
    return "Playwright", installed, OK


def _ffmpeg_check(status: FfmpegStatus) -> Check:
    """ffmpeg only matters for HLS playlists, so a miss is a warning."""
    if status.found:
        return "ffmpeg", str(status.path) if status.path else "found", OK
    return "ffmpeg", "not found", WARN


def _ffmpeg_capabilities_check(status: FfmpegStatus) -> Check:
    if not status.found or status.path is None:
        return "ffmpeg HLS", "skipped", WARN
    capabilities = check_ffmpeg_capabilities(str(status.path))
    if not capabilities.available:
        return "ffmpeg HLS", capabilities.error or "ffmpeg did not run", WARN
    missing = missing_ffmpeg_capabilities(capabilities)
    if missing:
        return "ffmpeg HLS", "missing " + ", ".join(missing), WARN
    return "ffmpeg HLS", "https, hls, mp4, aac_adtstoasc", OK


def _os_check() -> Check:
    """Return (label, value, status) for the OS row."""
    system_raw = platform.system()
    system_display = {
        "Windows": "Windows",
        "Linux": "Linux",
        "Darwin": "macOS",
    }.get(system_raw, system_raw)
    value = f"{system_display} {platform.release()} ({platform.machine()})"
    return "OS", value, OK


def collect_checks(ffmpeg_status: FfmpegStatus | None = None) -> list[Check]:
    """Run every diagnostic and return the rows in display order."""
    if ffmpeg_status is None:
        ffmpeg_status = detect_ffmpeg()
    return [
        _xdl_version_check(),
        _python_version_check(),
        _playwright_check(),
        _ffmpeg_check(ffmpeg_status),
        _ffmpeg_capabilities_check(ffmpeg_status),
        _os_check(),
    ]


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------

def _status_plain(status: str) -> str:
    """Convert rich-markup status to plain text."""
    for word in ("FAIL", "WARN", "OK"):
        if word in status:
            return word
    return status


def _print_plain_doctor_table(checks: list[Check]) -> None:
    """Render doctor output without Rich."""
    print("\nx-dl doctor", file=sys.stderr)
    print("=" * 64, file=sys.stderr)
    print(f"{'Component':<12} {'Value':<40} {'Status':<8}", file=sys.stderr)
    print("-" * 64, file=sys.stderr)
    for label, value, status in checks:
        print(f"{label:<12} {value:<40} {_status_plain(status):<8}", file=sys.stderr)
    print(file=sys.stderr)


def _print_rich_doctor_table(checks: list[Check]) -> None:
    from rich.table import Table

    table = Table(
        title="x-dl doctor",
        show_header=True,
        header_style="bold cyan",
        border_style="dim",
    )
    table.add_column("Component", style="bold", min_width=12)
    table.add_column("Value", min_width=20)
    table.add_column("Status", justify="center", min_width=8)
    for label, value, status in checks:
        table.add_row(label, value, status)

    console.print()
    console.print(table)
    console.print()


# ---------------------------------------------------------------------------
# Public entry point
# ---------------------------------------------------------------------------

def run_doctor() -> int:
    """Execute all diagnostic checks and render a summary table.

    Returns
    -------
    int
        :data:`exit_codes.SUCCESS` when all critical checks pass,
        :data:`exit_codes.GENERAL_ERROR` if a critical check fails.
    """
    ffmpeg_status = detect_ffmpeg()
    checks = collect_checks(ffmpeg_status)
    has_failure = any("FAIL" in status for _, _, status in checks)

    try:
        _print_rich_doctor_table(checks)
        rich_available = True
    except ModuleNotFoundError:
        _print_plain_doctor_table(checks)
        rich_available = False

    lines: list[str] = []
    if not ffmpeg_status.found and ffmpeg_status.install_commands:
        lines.append("ffmpeg is not installed (needed for HLS videos).")
        lines.append("Install using one of the following commands:\n")
        lines.extend(f"  {cmd}" for cmd in ffmpeg_status.install_commands)
        lines.append("")
    if playwright_version() is None:
        lines.append("Install Playwright and its Chromium build:")
        lines.append("  pip install playwright")
        lines.append("  python -m playwright install chromium")
        lines.append("")

    if has_failure:
        lines.append("Some checks failed.")
    else:
        lines.append("All checks passed.")

    for line in lines:
        if rich_available:
            console.print(line)
        else:
            print(line, file=sys.stderr)

    return exit_codes.GENERAL_ERROR if has_failure else exit_codes.SUCCESS
