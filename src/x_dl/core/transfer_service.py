"""Core transfer service — fetches the selected media to disk.

This service delegates to a :class:`~x_dl.core.protocols.DirectDownloader`
for progressive files and a :class:`~x_dl.core.protocols.PlaylistConverter`
for HLS playlists, both injected at construction time.  It is
responsible for:

* Choosing the path from the selected media's format.
* Choosing the output extension.
* Ensuring only :class:`~x_dl.exceptions.XdlError` subclasses escape.

Authenticated retries after a 401/403 are the caller's decision; the
:class:`~x_dl.exceptions.HttpStatusError` is propagated unchanged so the
caller can inspect it.
"""

from __future__ import annotations

from pathlib import Path

from x_dl.core.models import MediaFormat, SelectedMedia
from x_dl.core.protocols import DirectDownloader, PlaylistConverter, ProgressCallback
from x_dl.exceptions import DownloadFailedError, XdlError


class TransferService:
    """Stateless service that drives the download pipeline.

    Parameters
    ----------
    downloader:
        Any object satisfying the :class:`DirectDownloader` protocol.
    converter:
        Any object satisfying the :class:`PlaylistConverter` protocol.
    """

    def __init__(self, downloader: DirectDownloader, converter: PlaylistConverter) -> None:
        self._downloader: DirectDownloader = downloader
        self._converter: PlaylistConverter = converter

    # ------------------------------------------------------------------
    # Output naming (pure)
    # ------------------------------------------------------------------

    @staticmethod
    def output_extension(media: SelectedMedia) -> str:
        """Extension for the file the transfer will produce.

        Playlists are remuxed to ``mp4``; unknown formats default to
        ``mp4``; progressive containers keep their own extension.
        """
        if media.format.is_playlist or media.format is MediaFormat.UNKNOWN:
            return "mp4"
        return media.format.value

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def transfer(
        self,
        media: SelectedMedia,
        output_path: Path,
        *,
        progress_callback: ProgressCallback | None = None,
    ) -> Path:
        """Fetch *media* into *output_path* and return the written path.

        Raises
        ------
        HttpStatusError
            When a direct download is refused.
        ConversionFailedError
            When the playlist conversion fails, stalls, or times out.
        DownloadFailedError
            For any other failure.
        """
        try:
            if media.format.is_playlist:
                return self._converter.convert(media.url, output_path)
            return self._downloader.download(
                media.url,
                output_path,
                progress_callback=progress_callback,
            )
        except XdlError:
            # Already one of ours; propagate unchanged.
            raise
        except Exception as exc:
            raise DownloadFailedError(
                f"Unexpected download error: {exc}",
            ) from exc
