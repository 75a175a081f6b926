"""Session-owned cache of documents read from the content repository."""

from dataclasses import dataclass, field
from datetime import datetime

from .documents import Document
from .repository import RepositoryClient


@dataclass
class CachedDocument:
    document: Document
    loaded_at: datetime


@dataclass
class DocumentCache:
    """In-memory cache of documents for one session.

    The cache is owned by whoever creates it and is passed to mutators that
    should keep it consistent. Mutators invalidate the path they wrote, so
    the next load() sees the new version.
    """

    entries: dict[str, CachedDocument] = field(default_factory=dict)

    def get(self, path: str) -> Document | None:
        entry = self.entries.get(path)
        return entry.document if entry else None

    def set(self, document: Document) -> None:
        self.entries[document.path] = CachedDocument(
            document=document, loaded_at=datetime.now()
        )

    def invalidate(self, path: str) -> None:
        """Drop one document so the next load re-reads it."""
        self.entries.pop(path, None)

    def clear(self) -> None:
        """Drop every cached document."""
        self.entries.clear()

    def __contains__(self, path: str) -> bool:
        return path in self.entries

    async def load(self, client: RepositoryClient, path: str) -> Document:
        """Return the cached document, reading it through the client on a miss."""
        document = self.get(path)
        if document is None:
            document = await client.fetch_document(path)
            self.set(document)
        return document
