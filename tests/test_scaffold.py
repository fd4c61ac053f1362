"""Smoke tests for package wiring and CLI routing.

These tests prove that:
* The CLI entry point is importable and callable.
* The exception hierarchy is correctly structured.
* Version is accessible.
* Exit codes are defined.
* ``main`` dispatches URLs, ``--url-only``, auth retries and the
  ``cli()`` error boundary behaves.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any
from unittest.mock import MagicMock, patch

import pytest

from x_dl import __version__
from x_dl.cli import exit_codes
from x_dl.cli.app import cli, main
from x_dl.core.models import (
    ErrorClassification,
    ExtractionFailure,
    ExtractionSuccess,
    MediaFormat,
    PostInfo,
    SelectedMedia,
)
from x_dl.exceptions import (
    AuthenticationRequiredError,
    ConversionFailedError,
    DownloadFailedError,
    EnvironmentCheckError,
    EnvironmentError,
    ExtractionFailedError,
    FfmpegNotFoundError,
    HttpStatusError,
    InvalidURLError,
    XdlError,
    append_browser_install_suggestion,
)


POST_URL = "https://x.com/jack/status/20"
MEDIA = SelectedMedia(url="https://video.twimg.com/ext_tw_video/20/pu/vid/1280x720/a.mp4", format=MediaFormat.MP4)
POST = PostInfo(id="20", author="jack", url=POST_URL)


def _success(media: SelectedMedia = MEDIA) -> ExtractionSuccess:
    return ExtractionSuccess(media, POST, "jack_20")


# ---------------------------------------------------------------------------
# Version
# ---------------------------------------------------------------------------

class TestVersion:
    def test_version_is_semver_like(self) -> None:
        parts = __version__.split(".")
        assert len(parts) == 3
        assert all(part.isdigit() for part in parts)


# ---------------------------------------------------------------------------
# Exception hierarchy
# ---------------------------------------------------------------------------

class TestExceptions:
    @pytest.mark.parametrize(
        "exc_class",
        [
            InvalidURLError,
            ExtractionFailedError,
            AuthenticationRequiredError,
            DownloadFailedError,
            HttpStatusError,
            ConversionFailedError,
            FfmpegNotFoundError,
            EnvironmentError,
            EnvironmentCheckError,
        ],
    )
    def test_all_exceptions_inherit_from_base(self, exc_class: type[XdlError]) -> None:
        assert issubclass(exc_class, XdlError)

    def test_hint_is_stored(self) -> None:
        err = XdlError("boom", hint="try this")
        assert str(err) == "boom"
        assert err.hint == "try this"

    def test_hint_defaults_to_none(self) -> None:
        assert XdlError("boom").hint is None

    def test_extraction_failed_keeps_classification(self) -> None:
        err = ExtractionFailedError("walled", ErrorClassification.LOGIN_WALL, hint="log in")
        assert err.classification is ErrorClassification.LOGIN_WALL

    def test_browser_install_suggestion_appended_once(self) -> None:
        once = append_browser_install_suggestion("Base hint.")
        assert once.startswith("Base hint.\n")
        assert "python -m playwright install chromium" in once
        assert append_browser_install_suggestion(once) == once


# ---------------------------------------------------------------------------
# Exit codes
# ---------------------------------------------------------------------------

class TestExitCodes:
    def test_values(self) -> None:
        assert exit_codes.SUCCESS == 0
        assert exit_codes.GENERAL_ERROR == 1
        assert exit_codes.UNEXPECTED_ERROR == 2
        assert exit_codes.KEYBOARD_INTERRUPT == 130


# ---------------------------------------------------------------------------
# CLI routing
# ---------------------------------------------------------------------------

class TestCLIRouting:
    def test_no_args_returns_success(self, capsys: pytest.CaptureFixture[str]) -> None:
        """No arguments should print help and exit 0."""
        assert main([]) == exit_codes.SUCCESS
        assert "x-dl" in capsys.readouterr().out

    def test_version_flag(self) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["--version"])
        assert exc_info.value.code == 0

    def test_flags_without_url_raise(self) -> None:
        with pytest.raises(InvalidURLError, match="No URL provided"):
            main(["--headed"])

    @patch("x_dl.cli.doctor.run_doctor", return_value=exit_codes.SUCCESS)
    def test_doctor_returns_success(self, _mock_doc: object) -> None:
        assert main(["doctor"]) == exit_codes.SUCCESS

    @pytest.mark.parametrize("argv", [[POST_URL], ["--url", POST_URL], ["-u", POST_URL]])
    def test_url_routes_to_extract(self, monkeypatch: pytest.MonkeyPatch, argv: list[str]) -> None:
        from x_dl.cli import app as app_module

        seen: list[str] = []
        monkeypatch.setattr(
            app_module, "_handle_extract", lambda url, args: seen.append(url) or exit_codes.SUCCESS,
        )
        assert main(argv) == exit_codes.SUCCESS
        assert seen == [POST_URL]

    def test_timeout_is_positive_seconds(self) -> None:
        with pytest.raises(SystemExit):
            main([POST_URL, "--timeout", "0"])

    def test_bare_profile_uses_default_dir(self) -> None:
        from x_dl.cli.app import _build_parser

        args = _build_parser().parse_args([POST_URL, "--profile"])
        assert args.profile.endswith(".x-dl-profile")


# ---------------------------------------------------------------------------
# Extraction command
# ---------------------------------------------------------------------------

class _StubExtractor:
    def __init__(self, outcome: Any) -> None:
        self.outcome = outcome
        self.authenticated: list[tuple[str, Path]] = []

    def extract(self, url: str) -> Any:
        return self.outcome

    def download_authenticated(self, url: str, output_path: Path) -> Path:
        self.authenticated.append((url, output_path))
        return output_path


def _install_extractor(monkeypatch: pytest.MonkeyPatch, outcome: Any) -> _StubExtractor:
    from x_dl.cli import app as app_module

    extractor = _StubExtractor(outcome)
    monkeypatch.setattr(app_module, "_build_extractor", lambda args, profile_dir: extractor)
    return extractor


class TestExtractCommand:
    def test_url_only_prints_media_url(
        self, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str],
    ) -> None:
        _install_extractor(monkeypatch, _success())

        assert main([POST_URL, "--url-only"]) == exit_codes.SUCCESS
        assert capsys.readouterr().out.strip() == MEDIA.url

    def test_failure_becomes_extraction_error(self, monkeypatch: pytest.MonkeyPatch) -> None:
        failure = ExtractionFailure(ErrorClassification.LOGIN_WALL, "Login wall detected", hint="Use --profile")
        _install_extractor(monkeypatch, failure)

        with pytest.raises(ExtractionFailedError, match="Login wall detected") as exc_info:
            main([POST_URL])
        assert exc_info.value.classification is ErrorClassification.LOGIN_WALL
        assert exc_info.value.hint == "Use --profile"

    def test_invalid_url_failure_becomes_invalid_url_error(self, monkeypatch: pytest.MonkeyPatch) -> None:
        _install_extractor(monkeypatch, ExtractionFailure(ErrorClassification.INVALID_URL, "Invalid X/Twitter URL"))

        with pytest.raises(InvalidURLError):
            main(["https://example.com/nope"])

    def test_download_writes_to_output(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        from x_dl.cli import app as app_module

        _install_extractor(monkeypatch, _success())
        transfers: list[Path] = []
        monkeypatch.setattr(
            app_module, "_run_transfer", lambda service, media, path: transfers.append(path) or path,
        )

        assert main([POST_URL, "-o", str(tmp_path)]) == exit_codes.SUCCESS
        assert transfers == [tmp_path / "jack_20.mp4"]

    def test_auth_failure_retries_with_profile(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        from x_dl.cli import app as app_module

        extractor = _install_extractor(monkeypatch, _success())

        def refuse(service: object, media: object, path: Path) -> Path:
            raise HttpStatusError(403)

        monkeypatch.setattr(app_module, "_run_transfer", refuse)

        code = main([POST_URL, "-o", str(tmp_path / "clip.mp4"), "--profile", str(tmp_path / "profile")])
        assert code == exit_codes.SUCCESS
        assert extractor.authenticated == [(MEDIA.url, tmp_path / "clip.mp4")]

    def test_auth_failure_without_profile_propagates(
        self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path,
    ) -> None:
        from x_dl.cli import app as app_module

        extractor = _install_extractor(monkeypatch, _success())

        def refuse(service: object, media: object, path: Path) -> Path:
            raise HttpStatusError(403)

        monkeypatch.setattr(app_module, "_run_transfer", refuse)

        with pytest.raises(HttpStatusError):
            main([POST_URL, "-o", str(tmp_path)])
        assert extractor.authenticated == []

    def test_playlist_requires_ffmpeg(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        playlist = SelectedMedia(url="https://video.twimg.com/v/master.m3u8", format=MediaFormat.M3U8)
        _install_extractor(monkeypatch, _success(playlist))

        with patch("x_dl.infra.ffmpeg_detector.shutil.which", return_value=None):
            with pytest.raises(FfmpegNotFoundError):
                main([POST_URL, "-o", str(tmp_path)])


# ---------------------------------------------------------------------------
# Auth commands
# ---------------------------------------------------------------------------

class TestAuthCommands:
    def test_verify_auth_exit_code_follows_status(self, monkeypatch: pytest.MonkeyPatch) -> None:
        from x_dl.cli import app as app_module
        from x_dl.core.models import AuthStatus

        status = AuthStatus(
            has_auth_token=True,
            can_access_home=True,
            auth_cookies=("auth_token", "ct0"),
            message="Authentication is valid",
        )
        extractor = MagicMock()
        extractor.verify_auth.return_value = status
        monkeypatch.setattr(app_module, "_build_extractor", lambda args, profile_dir: extractor)

        assert main(["--verify-auth"]) == exit_codes.SUCCESS

    def test_login_routes_to_flow(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        calls: list[Path] = []
        monkeypatch.setattr("x_dl.cli.login.run_login_flow", lambda launcher, profile_dir: calls.append(profile_dir))

        assert main(["--login", "--profile", str(tmp_path)]) == exit_codes.SUCCESS
        assert calls == [tmp_path]


# ---------------------------------------------------------------------------
# Error boundary
# ---------------------------------------------------------------------------

class TestErrorBoundary:
    @pytest.mark.parametrize(
        ("error", "expected"),
        [
            (InvalidURLError("bad", hint="fix it"), exit_codes.GENERAL_ERROR),
            (KeyboardInterrupt(), exit_codes.KEYBOARD_INTERRUPT),
            (RuntimeError("kaboom"), exit_codes.UNEXPECTED_ERROR),
        ],
    )
    def test_exit_codes(self, error: BaseException, expected: int) -> None:
        with patch("x_dl.cli.app.main", side_effect=error):
            with pytest.raises(SystemExit) as exc_info:
                cli()
        assert exc_info.value.code == expected

    def test_success_exits_zero(self) -> None:
        with patch("x_dl.cli.app.main", return_value=exit_codes.SUCCESS):
            with pytest.raises(SystemExit) as exc_info:
                cli()
        assert exc_info.value.code == 0

