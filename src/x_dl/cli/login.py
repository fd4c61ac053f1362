"""Interactive ``--login`` flow.

Opens a visible browser on a persistent profile so the user can sign in
to X by hand; the cookies stay in the profile for later headless runs.
"""

from __future__ import annotations

import sys
from collections.abc import Callable
from pathlib import Path

from x_dl.cli.console import console
from x_dl.core.options import DEFAULT_HOME_URL
from x_dl.core.protocols import BrowserLauncher
from x_dl.exceptions import EnvironmentCheckError


LOGIN_NAVIGATION_TIMEOUT_MS: int = 60_000


def wait_for_enter() -> None:
    """Block until the user presses Enter on an interactive terminal."""
    if not sys.stdin.isatty():
        raise EnvironmentCheckError(
            "--login needs an interactive terminal.",
            hint="Run it from a terminal so you can press Enter after logging in.",
        )
    input()


def run_login_flow(
    launcher: BrowserLauncher,
    profile_dir: Path,
    *,
    home_url: str = DEFAULT_HOME_URL,
    wait: Callable[[], None] = wait_for_enter,
) -> None:
    """Open *home_url* headed on *profile_dir* and close after Enter."""
    console.print("\n[bold]Login mode[/bold]")
    console.print(f"Profile: {profile_dir}")
    console.print(f"Opening {home_url} ...")
    console.print("\nLog in to X in the opened browser, then press Enter here to close.\n")

    profile_dir.mkdir(parents=True, exist_ok=True)
    session = launcher.open(profile_dir=profile_dir, headless=False)
    try:
        session.page.goto(
            home_url,
            wait_until="domcontentloaded",
            timeout=LOGIN_NAVIGATION_TIMEOUT_MS,
        )
        wait()
    finally:
        session.close()

    console.print(f"[green]Session saved to {profile_dir}[/green]")
