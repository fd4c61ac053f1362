"""CLI application entry point and command routing for x-dl.

This module is the **sole error boundary** for the entire application.
It catches :class:`~x_dl.exceptions.XdlError`, ``KeyboardInterrupt``,
and any unexpected ``Exception``, rendering user-friendly messages via Rich
and returning well-defined exit codes.

Architecture notes
------------------
* No business logic lives here — extraction, selection and transfer are
  delegated to the core layer, wired to the infra implementations.
* A classified :class:`~x_dl.core.models.ExtractionFailure` is turned
  into :class:`~x_dl.exceptions.ExtractionFailedError` (or
  :class:`~x_dl.exceptions.InvalidURLError`) so every failure leaves
  through the same boundary.
* ``print()`` is reserved for machine-readable stdout (``--url-only``);
  everything else goes through the Rich console or the logger.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import TYPE_CHECKING

from x_dl.cli import exit_codes
from x_dl.cli.console import configure_logging, console
from x_dl.exceptions import EnvironmentError, XdlError
from x_dl.version import __version__

if TYPE_CHECKING:
    from x_dl.core.extractor import VideoExtractor
    from x_dl.core.models import SelectedMedia
    from x_dl.core.transfer_service import TransferService
    from x_dl.infra.playwright_browser import PlaywrightBrowserLauncher


BROWSER_CHANNEL_CHOICES: tuple[str, ...] = ("chrome", "chromium", "msedge")


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------

def _positive_int(value: str) -> int:
    try:
        parsed = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"expected a whole number of seconds, got {value!r}") from exc
    if parsed <= 0:
        raise argparse.ArgumentTypeError("must be greater than zero")
    return parsed


def _build_parser() -> argparse.ArgumentParser:
    """Construct the top-level argument parser.

    Sub-commands are not used; the CLI supports:
    * ``x-dl <url> [options]`` — extract and download one video
    * ``x-dl doctor``          — environment diagnostics
    * ``x-dl --login`` / ``x-dl --verify-auth`` — profile management
    """
    from x_dl.cli.output_path import DEFAULT_PROFILE_DIR

    parser = argparse.ArgumentParser(
        prog="x-dl",
        description="Extract and download videos from X/Twitter posts.",
        epilog=(
            "examples:\n"
            "  x-dl https://x.com/user/status/123456\n"
            "  x-dl https://x.com/user/status/123456 -o ~/Videos\n"
            "  x-dl --login --profile ~/.x-dl-profile\n"
            "  x-dl https://x.com/user/status/123456 --profile"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "-V",
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "target",
        nargs="?",
        default=None,
        help="Post URL to download, or 'doctor' to run diagnostics.",
    )
    parser.add_argument("-u", "--url", default=None, help="Post URL (alternative to the positional form).")
    parser.add_argument(
        "-o",
        "--output",
        default=None,
        help="Output directory or file path (default: ~/Downloads).",
    )
    parser.add_argument(
        "--url-only",
        action="store_true",
        help="Print the selected video URL and exit without downloading.",
    )
    parser.add_argument(
        "--timeout",
        type=_positive_int,
        default=30,
        metavar="SECONDS",
        help="Page navigation timeout (default: 30).",
    )
    parser.add_argument("--headed", action="store_true", help="Show the browser window.")
    parser.add_argument(
        "--profile",
        nargs="?",
        const=str(DEFAULT_PROFILE_DIR),
        default=None,
        metavar="DIR",
        help=f"Use a persistent browser profile (default when bare: {DEFAULT_PROFILE_DIR}).",
    )
    parser.add_argument(
        "--login",
        action="store_true",
        help="Open X in the profile and wait for you to log in.",
    )
    parser.add_argument(
        "--verify-auth",
        action="store_true",
        help="Check whether the profile holds a working X session.",
    )
    parser.add_argument(
        "--browser-channel",
        choices=BROWSER_CHANNEL_CHOICES,
        default=None,
        help="Installed browser channel to drive instead of bundled Chromium.",
    )
    parser.add_argument(
        "--browser-executable-path",
        default=None,
        metavar="PATH",
        help="Explicit browser binary (overrides --browser-channel).",
    )
    parser.add_argument(
        "--debug-artifacts",
        default=None,
        metavar="DIR",
        help="Save HTML and a screenshot here when extraction fails.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    return parser


# ---------------------------------------------------------------------------
# Wiring helpers
# ---------------------------------------------------------------------------

def _profile_dir(args: argparse.Namespace) -> Path | None:
    from x_dl.cli.output_path import expand_path

    return expand_path(args.profile) if args.profile else None


def _build_launcher(args: argparse.Namespace) -> PlaywrightBrowserLauncher:
    from x_dl.cli.output_path import expand_path
    from x_dl.infra.playwright_browser import PlaywrightBrowserLauncher

    executable = expand_path(args.browser_executable_path) if args.browser_executable_path else None
    return PlaywrightBrowserLauncher(channel=args.browser_channel, executable_path=executable)


def _build_extractor(args: argparse.Namespace, profile_dir: Path | None) -> VideoExtractor:
    from x_dl.cli.output_path import expand_path
    from x_dl.core.extractor import VideoExtractor
    from x_dl.core.options import ExtractOptions
    from x_dl.infra.http_client import RequestsHttpClient

    options = ExtractOptions(
        timeout_ms=args.timeout * 1000,
        headed=args.headed,
        profile_dir=profile_dir,
        debug_artifacts_dir=expand_path(args.debug_artifacts) if args.debug_artifacts else None,
    )
    return VideoExtractor(_build_launcher(args), RequestsHttpClient(), options)


# ---------------------------------------------------------------------------
# Command dispatch
# ---------------------------------------------------------------------------

def _handle_extract(url: str, args: argparse.Namespace) -> int:
    """Extract the video from *url* and download it.

    Flow:
    1. Drive the browser and select the best media URL.
    2. ``--url-only``: print it and stop.
    3. Resolve the output path from the post and the media format.
    4. Download directly, or remux through ffmpeg for playlists.
    5. On a 401/403 with a profile, retry through the browser session.
    """
    from x_dl.cli.output_path import resolve_output_path
    from x_dl.core.models import ErrorClassification
    from x_dl.core.transfer_service import TransferService
    from x_dl.exceptions import ExtractionFailedError, HttpStatusError, InvalidURLError
    from x_dl.infra.ffmpeg_detector import require_ffmpeg
    from x_dl.infra.hls_converter import FfmpegHlsConverter
    from x_dl.infra.http_client import RequestsHttpClient

    profile_dir = _profile_dir(args)
    extractor = _build_extractor(args, profile_dir)

    outcome = extractor.extract(url)
    if not outcome.ok:
        if outcome.classification is ErrorClassification.INVALID_URL:
            raise InvalidURLError(outcome.message, hint=outcome.hint)
        raise ExtractionFailedError(outcome.message, outcome.classification, hint=outcome.hint)

    media = outcome.media
    if args.url_only:
        print(media.url)
        return exit_codes.SUCCESS

    output_path = resolve_output_path(url, args.output, TransferService.output_extension(media))

    ffmpeg = "ffmpeg"
    if media.format.is_playlist:
        ffmpeg = str(require_ffmpeg())

    service = TransferService(RequestsHttpClient(), FfmpegHlsConverter(ffmpeg))
    try:
        _run_transfer(service, media, output_path)
    except HttpStatusError as exc:
        if not exc.is_auth_failure or profile_dir is None:
            raise
        console.print(
            "\n[yellow]Direct download was blocked; "
            "retrying with authenticated browser request...[/yellow]"
        )
        extractor.download_authenticated(media.url, output_path)

    console.print(f"\n[bold green]Video saved to:[/bold green] {output_path}")
    return exit_codes.SUCCESS


def _run_transfer(service: TransferService, media: SelectedMedia, output_path: Path) -> Path:
    """Transfer with a Rich progress bar when one can be shown."""
    from x_dl.cli.progress import RichProgressHook

    if media.format.is_playlist:
        return service.transfer(media, output_path)

    try:
        hook = RichProgressHook()
    except EnvironmentError:
        return service.transfer(media, output_path)

    with hook:
        return service.transfer(media, output_path, progress_callback=hook)


def _handle_login(args: argparse.Namespace) -> int:
    from x_dl.cli.login import run_login_flow
    from x_dl.cli.output_path import DEFAULT_PROFILE_DIR, expand_path

    profile_dir = _profile_dir(args) or expand_path(DEFAULT_PROFILE_DIR)
    run_login_flow(_build_launcher(args), profile_dir)
    return exit_codes.SUCCESS


def _handle_verify_auth(args: argparse.Namespace) -> int:
    """Print the profile's auth status; exit 0 only for a working session."""
    from x_dl.cli.output_path import DEFAULT_PROFILE_DIR, expand_path

    profile_dir = _profile_dir(args) or expand_path(DEFAULT_PROFILE_DIR)
    status = _build_extractor(args, profile_dir).verify_auth()

    def yes_no(flag: bool) -> str:
        return "Yes" if flag else "No"

    console.print("\n[bold]Auth Status:[/bold]")
    console.print(f"- Auth token present: {yes_no(status.has_auth_token)}")
    console.print(f"- Can access X.com/home: {yes_no(status.can_access_home)}")
    console.print(f"- Auth cookies found: {', '.join(status.auth_cookies) or 'None'}")
    console.print(f"\n{status.message}\n")
    return exit_codes.SUCCESS if status.is_valid else exit_codes.GENERAL_ERROR


def _handle_doctor() -> int:
    """Dispatch the ``doctor`` diagnostics command."""
    from x_dl.cli.doctor import run_doctor

    return run_doctor()


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------

def main(argv: list[str] | None = None) -> int:
    """Run the x-dl CLI.

    Parameters
    ----------
    argv:
        Explicit argument list.  When ``None`` (default), ``sys.argv[1:]``
        is used.  Accepting *argv* enables deterministic testing without
        monkeypatching.

    Returns
    -------
    int
        OS process exit code.
    """
    from x_dl.exceptions import InvalidURLError

    if argv is None:
        argv = sys.argv[1:]

    parser = _build_parser()
    args = parser.parse_args(argv)

    if not argv:
        parser.print_help()
        return exit_codes.SUCCESS

    configure_logging(args.verbose)

    if args.login:
        return _handle_login(args)
    if args.verify_auth:
        return _handle_verify_auth(args)

    url: str | None = args.url or args.target
    if url is None:
        raise InvalidURLError(
            "No URL provided.",
            hint="Usage: x-dl <url> (see x-dl --help for options)",
        )

    if args.url is None and url.lower() == "doctor":
        return _handle_doctor()

    return _handle_extract(url, args)


# ---------------------------------------------------------------------------
# Script-level error boundary
# ---------------------------------------------------------------------------

def cli() -> None:
    """Top-level error boundary invoked by the console-script entry point.

    This function wraps :func:`main` and guarantees the process never
    exits with a raw stack trace during normal usage.
    """
    try:
        code = main()
        sys.exit(code)
    except XdlError as exc:
        console.print(f"[bold red]Error:[/bold red] {exc}")
        if exc.hint:
            console.print(f"[yellow]Hint:[/yellow] {exc.hint}")
        sys.exit(exit_codes.GENERAL_ERROR)
    except KeyboardInterrupt:
        console.print("\n[yellow]Aborted by user.[/yellow]")
        sys.exit(exit_codes.KEYBOARD_INTERRUPT)
    except Exception as exc:  # noqa: BLE001
        console.print(
            "[bold red]Unexpected error.[/bold red] "
            "Please report this issue.\n"
            f"  {type(exc).__name__}: {exc}"
        )
        sys.exit(exit_codes.UNEXPECTED_ERROR)
