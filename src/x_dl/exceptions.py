"""Custom exception hierarchy for x-dl.

All exceptions that cross layer boundaries must inherit from
:class:`XdlError`.  Raw third-party exceptions (Playwright, requests,
subprocess) must NEVER propagate beyond the infrastructure layer — they
must be caught and re-raised as a typed subclass defined here.

The extractor itself never raises for page-level problems; it returns a
classified :class:`~x_dl.core.models.ExtractionFailure`.  The CLI turns
that into :class:`ExtractionFailedError` so a single error boundary
renders every failure.

Hierarchy
---------
XdlError
├── InvalidURLError
├── ExtractionFailedError
├── AuthenticationRequiredError
├── DownloadFailedError
│   ├── HttpStatusError
│   └── ConversionFailedError
│       ├── ConversionStalledError
│       └── ConversionTimeoutError
├── FfmpegNotFoundError
└── EnvironmentError
    └── EnvironmentCheckError
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from x_dl.core.models import ErrorClassification


class XdlError(Exception):
    """Base exception for all x-dl errors.

    Every user-visible error condition must map to a subclass of this
    exception so that the CLI error boundary can render a clean message
    without leaking internal stack traces.
    """

    def __init__(self, message: str, *, hint: str | None = None) -> None:
        super().__init__(message)
        self.hint: str | None = hint
        """Optional actionable guidance shown below the error message."""


# --- URL validation --------------------------------------------------------

class InvalidURLError(XdlError):
    """Raised when the provided post URL fails validation."""


# --- Extraction ------------------------------------------------------------

class ExtractionFailedError(XdlError):
    """Raised by the CLI when an extraction attempt ends in a classified failure."""

    def __init__(
        self,
        message: str,
        classification: ErrorClassification,
        *,
        hint: str | None = None,
    ) -> None:
        super().__init__(message, hint=hint)
        self.classification: ErrorClassification = classification


class AuthenticationRequiredError(XdlError):
    """Raised when an operation needs a persistent profile and none was given."""


# --- Transfer --------------------------------------------------------------

class DownloadFailedError(XdlError):
    """Raised when fetching the selected media fails."""


class HttpStatusError(DownloadFailedError):
    """Raised when the media host answers with a non-success HTTP status."""

    def __init__(self, status_code: int, *, hint: str | None = None) -> None:
        super().__init__(f"HTTP error! status: {status_code}", hint=hint)
        self.status_code: int = status_code

    @property
    def is_auth_failure(self) -> bool:
        """``True`` for 401/403, the statuses worth an authenticated retry."""
        return self.status_code in (401, 403)


class ConversionFailedError(DownloadFailedError):
    """Raised when the ffmpeg playlist conversion exits unsuccessfully."""


class ConversionStalledError(ConversionFailedError):
    """Raised when ffmpeg stops growing the output file and is killed."""


class ConversionTimeoutError(ConversionFailedError):
    """Raised when ffmpeg exceeds the absolute wall-clock budget and is killed."""


# --- Environment / tooling -------------------------------------------------

class EnvironmentError(XdlError):
    """Raised when a required runtime dependency is not available."""


class FfmpegNotFoundError(XdlError):
    """Raised when ffmpeg cannot be located on the system PATH."""


class EnvironmentCheckError(EnvironmentError):
    """Raised when a required environment precondition is not met."""


def append_browser_install_suggestion(hint: str) -> str:
    """Append Playwright browser-install guidance to an existing hint text.

    The suggestion is appended only once and preserves the original
    hint content verbatim.
    """
    marker = "Also make sure Chromium is installed:"
    if marker in hint:
        return hint
    return "\n".join(
        (
            hint,
            marker,
            "    python -m playwright install chromium",
        )
    )
