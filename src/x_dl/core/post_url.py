"""Post URL validation, parsing, and filename helpers (pure)."""

from __future__ import annotations

import re
from collections.abc import Sequence
from functools import lru_cache
from urllib.parse import urlsplit

from x_dl.core.models import PostInfo


DEFAULT_POST_HOSTS: tuple[str, ...] = (
    "x.com",
    "twitter.com",
    "localhost",
    "127.0.0.1",
)

_UNSAFE_FILENAME_CHARS = re.compile(r"[^a-zA-Z0-9._-]")
_REPEATED_UNDERSCORES = re.compile(r"_{2,}")
_MAX_FILENAME_LENGTH = 255


@lru_cache(maxsize=16)
def _post_url_pattern(hosts: tuple[str, ...]) -> re.Pattern[str]:
    host_group = "|".join(re.escape(host) for host in hosts)
    return re.compile(
        rf"^https?://(www\.)?({host_group})(:\d+)?/\w+/status/\d+",
        re.IGNORECASE,
    )


def is_valid_post_url(url: str, hosts: Sequence[str] = DEFAULT_POST_HOSTS) -> bool:
    """Return ``True`` when *url* has the ``<host>/<author>/status/<id>`` shape."""
    return bool(_post_url_pattern(tuple(hosts)).match(url.strip()))


def parse_post_url(url: str, hosts: Sequence[str] = DEFAULT_POST_HOSTS) -> PostInfo | None:
    """Extract author and id from a post URL.

    Returns ``None`` when the URL fails validation or when the shape
    matches but the segments around ``status`` are unusable (e.g. an
    empty author).
    """
    if not is_valid_post_url(url, hosts):
        return None

    parts = urlsplit(url.strip())
    segments = parts.path.split("/")
    try:
        status_index = segments.index("status")
    except ValueError:
        return None

    if status_index < 1 or status_index + 1 >= len(segments):
        return None

    author = segments[status_index - 1]
    post_id = segments[status_index + 1]
    if not author or not post_id.isdigit():
        return None

    return PostInfo(
        id=post_id,
        author=author,
        url=f"{parts.scheme}://{parts.netloc}{parts.path}",
    )


def filename_stem(post: PostInfo) -> str:
    """``<author>_<id>`` — the suggested name without extension."""
    return f"{post.author}_{post.id}"


def generate_filename(post: PostInfo, extension: str = "mp4") -> str:
    """``<author>_<id>.<extension>``, made safe for any filesystem."""
    return sanitize_filename(f"{filename_stem(post)}.{extension}")


def sanitize_filename(filename: str) -> str:
    """Replace unsafe characters with ``_`` and cap the length."""
    cleaned = _UNSAFE_FILENAME_CHARS.sub("_", filename)
    cleaned = _REPEATED_UNDERSCORES.sub("_", cleaned)
    return cleaned[:_MAX_FILENAME_LENGTH]
