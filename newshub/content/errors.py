"""Exceptions raised by the content store client and document mutators."""


class ContentStoreError(Exception):
    """Base class for all content store failures."""

    pass


class AuthenticationError(ContentStoreError):
    """Raised when the GitHub token is missing, invalid, or lacks access."""

    pass


class NotFoundError(ContentStoreError):
    """Raised when a document or record is absent but the operation needs it."""

    pass


class ConflictError(ContentStoreError):
    """Raised when a write was based on a stale version of the document.

    Another writer updated the path between our read and our write. The
    caller must re-read and redo the whole read-mutate-write cycle.
    """

    def __init__(self, path: str, message: str = ""):
        self.path = path
        super().__init__(
            f"Conflict writing {path}: document changed since it was read"
            + (f" ({message})" if message else "")
        )


class MalformedDocumentError(ContentStoreError):
    """Raised when document content cannot be decoded or has the wrong shape."""

    pass


class DuplicateSlugError(ContentStoreError):
    """Raised when a mutation would give two records the same slug."""

    def __init__(self, slug: str):
        self.slug = slug
        super().__init__(f"A record with slug {slug!r} already exists")


class InvalidRecordError(ContentStoreError):
    """Raised when record data cannot be turned into a valid record."""

    pass


class RepositoryError(ContentStoreError):
    """Raised for any other non-success response from GitHub."""

    def __init__(self, status: int, message: str):
        self.status = status
        self.message = message
        super().__init__(f"GitHub API error: HTTP {status}: {message}")


class TransportError(ContentStoreError):
    """Raised when the request failed before any response was received."""

    pass
