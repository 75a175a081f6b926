"""
Centralized configuration for the NewsHub content tools.

All settings come from environment variables (loaded from .env / .env.local
by the entry points) and are read through small getter functions so tests
can patch os.environ.
"""

import os
from dataclasses import dataclass

DEFAULT_API_URL = "https://api.github.com"
DEFAULT_BRANCH = "main"
DEFAULT_HTTP_TIMEOUT = 30.0
DEFAULT_COUNTER_URL = "https://api.countapi.xyz"


class ContentStoreNotConfiguredError(Exception):
    """Raised when a required content store setting is missing or invalid."""

    pass


def get_repository() -> tuple[str, str]:
    """Get (owner, repo) from NEWSHUB_REPO.

    Raises:
        ContentStoreNotConfiguredError: If NEWSHUB_REPO is not set or is not
            in "owner/repo" form.
    """
    value = os.getenv("NEWSHUB_REPO", "").strip()
    if not value:
        raise ContentStoreNotConfiguredError(
            "NEWSHUB_REPO environment variable is required (e.g. 'octocat/newshub')."
        )
    owner, sep, repo = value.partition("/")
    if not sep or not owner or not repo or "/" in repo:
        raise ContentStoreNotConfiguredError(
            f"NEWSHUB_REPO must look like 'owner/repo', got {value!r}"
        )
    return owner, repo


def get_token() -> str:
    """Get the GitHub token (NEWSHUB_GITHUB_TOKEN, falling back to GITHUB_TOKEN).

    Raises:
        ContentStoreNotConfiguredError: If neither variable is set.
    """
    token = os.getenv("NEWSHUB_GITHUB_TOKEN") or os.getenv("GITHUB_TOKEN")
    if not token:
        raise ContentStoreNotConfiguredError(
            "NEWSHUB_GITHUB_TOKEN (or GITHUB_TOKEN) environment variable is required."
        )
    return token.strip()


def get_branch() -> str:
    """Get the branch that content writes are attributed to."""
    return os.getenv("NEWSHUB_BRANCH", "").strip() or DEFAULT_BRANCH


def get_api_url() -> str:
    """Get the GitHub API base URL (overridable for GitHub Enterprise)."""
    return (os.getenv("NEWSHUB_API_URL", "").strip() or DEFAULT_API_URL).rstrip("/")


def get_http_timeout() -> float:
    """Get the per-request HTTP timeout in seconds."""
    raw = os.getenv("NEWSHUB_HTTP_TIMEOUT", "").strip()
    if not raw:
        return DEFAULT_HTTP_TIMEOUT
    try:
        timeout = float(raw)
    except ValueError:
        raise ContentStoreNotConfiguredError(
            f"NEWSHUB_HTTP_TIMEOUT must be a number of seconds, got {raw!r}"
        )
    if timeout <= 0:
        raise ContentStoreNotConfiguredError("NEWSHUB_HTTP_TIMEOUT must be positive")
    return timeout


def get_counter_namespace() -> str | None:
    """Get the view counter namespace, or None if view counting is disabled."""
    return os.getenv("NEWSHUB_COUNTER_NAMESPACE") or None


def get_counter_url() -> str:
    """Get the view counter service base URL."""
    return (
        os.getenv("NEWSHUB_COUNTER_URL", "").strip() or DEFAULT_COUNTER_URL
    ).rstrip("/")


@dataclass(frozen=True)
class ContentStoreSettings:
    """Connection settings for the GitHub-backed content store."""

    owner: str
    repo: str
    token: str
    branch: str = DEFAULT_BRANCH
    api_url: str = DEFAULT_API_URL
    timeout: float = DEFAULT_HTTP_TIMEOUT

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"

    @classmethod
    def from_env(cls) -> "ContentStoreSettings":
        """Build settings from environment variables.

        Raises:
            ContentStoreNotConfiguredError: If a required variable is missing.
        """
        owner, repo = get_repository()
        return cls(
            owner=owner,
            repo=repo,
            token=get_token(),
            branch=get_branch(),
            api_url=get_api_url(),
            timeout=get_http_timeout(),
        )
