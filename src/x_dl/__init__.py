"""x-dl — extract and download videos from X/Twitter posts.

Drives a headless browser to discover media URLs, ranks them, and
fetches the winner directly or through ffmpeg for HLS playlists.
"""

from x_dl.version import __version__

__all__: list[str] = ["__version__"]
