"""Heuristic access-wall detection over rendered page HTML.

Both checks scan the *full* HTML (markup included), not just visible
text, so prose that discusses logging in or protected accounts can
still produce the rare false positive or negative.

:func:`has_login_wall` needs two independent signals at once: a
login/sign-up phrase (case-insensitive) **and** an explicit
``Sign in``/``Log in`` call to action (case-sensitive).  A genuine wall
carries both; marketing or help copy usually carries only one.
"""

from __future__ import annotations

from dataclasses import dataclass


PRIVATE_ACCOUNT_PHRASES: tuple[str, ...] = (
    "this tweet is from an account that is",
    "protected tweets",
    "you are not authorized to view",
    "these tweets are protected",
    "only followers can see",
    "this tweet is protected",
)

LOGIN_WALL_PHRASES: tuple[str, ...] = (
    "log in",
    "sign up",
    "join the conversation",
    "sign in to view",
)

LOGIN_CALL_TO_ACTION: tuple[str, ...] = (
    "Sign in",
    "Log in",
)


@dataclass(frozen=True, slots=True)
class AccessWallPhrases:
    """Phrase lists driving the two detectors."""

    private_account: tuple[str, ...] = PRIVATE_ACCOUNT_PHRASES
    login_wall: tuple[str, ...] = LOGIN_WALL_PHRASES
    call_to_action: tuple[str, ...] = LOGIN_CALL_TO_ACTION


DEFAULT_PHRASES = AccessWallPhrases()


def is_private_account(html: str, phrases: AccessWallPhrases = DEFAULT_PHRASES) -> bool:
    """Return ``True`` if *html* shows a protected/private-account notice."""
    if not html.strip():
        return False
    lowered = html.lower()
    return any(phrase.lower() in lowered for phrase in phrases.private_account)


def has_login_wall(html: str, phrases: AccessWallPhrases = DEFAULT_PHRASES) -> bool:
    """Return ``True`` if *html* looks like an authentication gate."""
    if not html.strip():
        return False
    lowered = html.lower()
    has_login_phrase = any(phrase.lower() in lowered for phrase in phrases.login_wall)
    has_call_to_action = any(cta in html for cta in phrases.call_to_action)
    return has_login_phrase and has_call_to_action
