"""Content documents stored in GitHub: client, mutators and helpers."""

from .batch import (
    BatchFailure,
    BatchResult,
    PostUpdate,
    bulk_delete,
    bulk_update,
    import_many,
)
from .cache import DocumentCache
from .documents import (
    CATEGORIES_PATH,
    IMAGES_FOLDER,
    POSTS_PATH,
    SITE_PATH,
    Document,
    WriteResult,
)
from .errors import (
    AuthenticationError,
    ConflictError,
    ContentStoreError,
    DuplicateSlugError,
    InvalidRecordError,
    MalformedDocumentError,
    NotFoundError,
    RepositoryError,
    TransportError,
)
from .mutators import (
    CATEGORIES,
    POSTS,
    CategoryManager,
    CollectionMutator,
    CollectionSpec,
    PostManager,
    SiteSettingsManager,
)
from .repository import RepositoryClient
from .retry import retry_on_conflict
from .slugs import generate_slug
from .sync import ContentSnapshot, sync_all

__all__ = [
    "BatchFailure",
    "BatchResult",
    "PostUpdate",
    "bulk_delete",
    "bulk_update",
    "import_many",
    "DocumentCache",
    "CATEGORIES_PATH",
    "IMAGES_FOLDER",
    "POSTS_PATH",
    "SITE_PATH",
    "Document",
    "WriteResult",
    "AuthenticationError",
    "ConflictError",
    "ContentStoreError",
    "DuplicateSlugError",
    "InvalidRecordError",
    "MalformedDocumentError",
    "NotFoundError",
    "RepositoryError",
    "TransportError",
    "CATEGORIES",
    "POSTS",
    "CategoryManager",
    "CollectionMutator",
    "CollectionSpec",
    "PostManager",
    "SiteSettingsManager",
    "RepositoryClient",
    "retry_on_conflict",
    "generate_slug",
    "ContentSnapshot",
    "sync_all",
]
