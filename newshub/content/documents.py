"""Document types and the fixed layout of the content repository."""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable

POSTS_PATH = "data/posts.json"
CATEGORIES_PATH = "data/categories.json"
SITE_PATH = "data/site.json"
IMAGES_FOLDER = "assets/images"

# path -> factory for the document body used when the file does not exist yet
EMPTY_DOCUMENTS: dict[str, Callable[[], Any]] = {
    POSTS_PATH: lambda: {"posts": []},
    CATEGORIES_PATH: lambda: {"categories": []},
    SITE_PATH: lambda: {},
}


@dataclass
class Document:
    """A JSON document read from the content repository.

    version is the blob SHA GitHub assigned on the last write, or None if the
    document has never been written. Supplying it on write is what prevents
    lost updates.
    """

    path: str
    version: str | None
    body: Any

    @property
    def exists(self) -> bool:
        return self.version is not None


@dataclass
class WriteResult:
    """Outcome of a successful create/update through the Contents API."""

    path: str
    version: str
    commit_sha: str | None = None
    html_url: str | None = None
    download_url: str | None = None

    @classmethod
    def from_response(cls, path: str, data: dict) -> "WriteResult":
        content = data.get("content") or {}
        commit = data.get("commit") or {}
        return cls(
            path=content.get("path", path),
            version=content.get("sha", ""),
            commit_sha=commit.get("sha"),
            html_url=content.get("html_url"),
            download_url=content.get("download_url"),
        )


def empty_document(path: str) -> Any | None:
    """Get a fresh empty body for a known document path, or None if unknown."""
    factory = EMPTY_DOCUMENTS.get(path)
    return factory() if factory else None


def utc_timestamp(now: datetime | None = None) -> str:
    """ISO-8601 UTC timestamp in the form the website expects for lastUpdated."""
    now = now or datetime.now(timezone.utc)
    return now.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace(
        "+00:00", "Z"
    )
