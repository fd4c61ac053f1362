"""Core / service layer — extraction and transfer logic.

Rules
-----
* No ``print()`` calls.
* No imports from ``cli`` or ``infra``; browsers, HTTP, and ffmpeg are
  reached only through the protocols in :mod:`x_dl.core.protocols`.
* Page-level problems are returned as classified outcomes, not raised.
"""

from x_dl.core.access_wall import AccessWallPhrases, has_login_wall, is_private_account
from x_dl.core.candidate_aggregator import CandidateAggregator
from x_dl.core.extractor import VideoExtractor
from x_dl.core.format_classifier import classify_format, to_candidate
from x_dl.core.models import (
    AuthStatus,
    DebugArtifacts,
    ErrorClassification,
    ExtractionFailure,
    ExtractionOutcome,
    ExtractionSuccess,
    MediaCandidate,
    MediaFormat,
    PostInfo,
    SelectedMedia,
)
from x_dl.core.options import ExtractOptions
from x_dl.core.selector import CandidateSelector
from x_dl.core.transfer_service import TransferService

__all__: list[str] = [
    "AccessWallPhrases",
    "AuthStatus",
    "CandidateAggregator",
    "CandidateSelector",
    "DebugArtifacts",
    "ErrorClassification",
    "ExtractOptions",
    "ExtractionFailure",
    "ExtractionOutcome",
    "ExtractionSuccess",
    "MediaCandidate",
    "MediaFormat",
    "PostInfo",
    "SelectedMedia",
    "TransferService",
    "VideoExtractor",
    "classify_format",
    "has_login_wall",
    "is_private_account",
    "to_candidate",
]
