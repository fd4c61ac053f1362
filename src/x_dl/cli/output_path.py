"""Where a downloaded video lands on disk."""

from __future__ import annotations

import platform
from pathlib import Path

from x_dl.core.post_url import generate_filename, parse_post_url


DEFAULT_PROFILE_DIR: Path = Path("~/.x-dl-profile")


def expand_path(value: str | Path) -> Path:
    """Expand a leading ``~`` without resolving anything else."""
    return Path(value).expanduser()


def default_downloads_dir() -> Path:
    """``~/Downloads`` on macOS and Linux, the working directory elsewhere."""
    if platform.system() in ("Darwin", "Linux"):
        return Path.home() / "Downloads"
    return Path.cwd()


def resolve_output_path(
    post_url: str,
    output: str | None,
    extension: str = "mp4",
) -> Path:
    """Destination file for *post_url*.

    * No *output*: ``<downloads>/<author>_<id>.<ext>``.
    * *output* with a file extension: used verbatim.
    * Any other *output*: treated as a directory for the generated name.

    An unparsable post URL falls back to ``video.<ext>``.
    """
    post = parse_post_url(post_url)
    filename = generate_filename(post, extension) if post is not None else f"video.{extension}"

    if not output:
        return default_downloads_dir() / filename

    target = expand_path(output)
    if target.suffix and not output.endswith(("/", "\\")):
        return target
    return target / filename
