"""Post, category and site settings managers.

Each mutation reads the whole JSON document, changes one record in memory
and writes the whole document back, passing the version it read so that a
concurrent writer makes the write fail with ConflictError instead of being
silently overwritten. Within one session (one RepositoryClient) the cycles
on a path run one at a time under the client's per-path lock. Nothing here
retries; see retry.retry_on_conflict for the opt-in caller-side loop.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable

from .cache import DocumentCache
from .documents import (
    CATEGORIES_PATH,
    POSTS_PATH,
    SITE_PATH,
    Document,
    WriteResult,
    utc_timestamp,
)
from .errors import (
    DuplicateSlugError,
    InvalidRecordError,
    MalformedDocumentError,
    NotFoundError,
)
from .repository import RepositoryClient
from .slugs import generate_slug

logger = logging.getLogger(__name__)


def _post_defaults(now: datetime) -> dict:
    return {
        "date": now.date().isoformat(),
        "views": 0,
        "featured": False,
        "tags": [],
    }


def _no_defaults(now: datetime) -> dict:
    return {}


@dataclass(frozen=True)
class CollectionSpec:
    """Where a record collection lives and how its records are keyed."""

    path: str
    list_key: str  # top-level key holding the record list
    label: str  # used in commit messages ("post", "category")
    title_field: str  # field the slug is derived from
    defaults: Callable[[datetime], dict] = _no_defaults


POSTS = CollectionSpec(
    path=POSTS_PATH,
    list_key="posts",
    label="post",
    title_field="title",
    defaults=_post_defaults,
)

CATEGORIES = CollectionSpec(
    path=CATEGORIES_PATH,
    list_key="categories",
    label="category",
    title_field="name",
)


def extract_records(spec: CollectionSpec, document: Document) -> list[dict]:
    """Get a copy of the record list from a collection document.

    Raises:
        MalformedDocumentError: If the document does not hold a list of objects
    """
    body = document.body
    if not isinstance(body, dict):
        raise MalformedDocumentError(f"{spec.path} must contain a JSON object")
    records = body.get(spec.list_key, [])
    if not isinstance(records, list) or not all(isinstance(r, dict) for r in records):
        raise MalformedDocumentError(
            f"{spec.path}: '{spec.list_key}' must be a list of objects"
        )
    return list(records)


def find_index(records: list[dict], slug: str) -> int:
    """Index of the record with this slug, or -1."""
    for i, record in enumerate(records):
        if record.get("slug") == slug:
            return i
    return -1


def _title_of(spec: CollectionSpec, record: dict) -> str:
    return str(record.get(spec.title_field) or record.get("slug") or "")


def _next_id(records: list[dict], now: datetime) -> int:
    """Millisecond timestamp id, bumped past existing ids so none is reused."""
    candidate = int(now.timestamp() * 1000)
    existing = [r["id"] for r in records if isinstance(r.get("id"), int)]
    if existing and candidate <= max(existing):
        candidate = max(existing) + 1
    return candidate


def _check_slug(slug: Any) -> str:
    if not isinstance(slug, str) or not slug:
        raise InvalidRecordError(f"Invalid slug: {slug!r}")
    return slug


def _check_views(record: dict) -> None:
    views = record.get("views", 0)
    if isinstance(views, bool) or not isinstance(views, int) or views < 0:
        raise InvalidRecordError(f"views must be a non-negative integer, got {views!r}")


def build_record(
    spec: CollectionSpec,
    data: dict,
    records: list[dict],
    now: datetime | None = None,
) -> dict:
    """Create a new record from caller data, filling identity and defaults.

    Fields supplied by the caller win over defaults. The slug is derived from
    the title field unless given. The new slug must not already be taken.

    Raises:
        InvalidRecordError: If the title is missing or the data is invalid
        DuplicateSlugError: If the slug is already used by another record
    """
    if not isinstance(data, dict):
        raise InvalidRecordError(f"A {spec.label} must be a JSON object, got {data!r}")
    now = now or datetime.now(timezone.utc)
    title = data.get(spec.title_field)
    if not isinstance(title, str) or not title.strip():
        raise InvalidRecordError(f"A {spec.label} needs a non-empty '{spec.title_field}'")

    record = {
        "id": _next_id(records, now),
        "slug": generate_slug(title),
        **spec.defaults(now),
        **data,
    }
    if record.get("id") is None:
        record["id"] = _next_id(records, now)
    if record.get("slug") is None:
        record["slug"] = generate_slug(title)
    _check_slug(record["slug"])
    _check_views(record)

    if any(r.get("id") == record["id"] for r in records):
        raise InvalidRecordError(f"{spec.label} id {record['id']!r} is already in use")
    if find_index(records, record["slug"]) != -1:
        raise DuplicateSlugError(record["slug"])
    return record


def apply_patch(
    spec: CollectionSpec, records: list[dict], key: str, patch: dict
) -> tuple[int, dict]:
    """Merge a patch into the record with slug == key.

    Shallow merge: fields in the patch replace, others are kept. The id never
    changes. If the patch changes the title and carries no slug, the slug is
    regenerated from the new title, which changes the record's URL; pass the
    current slug in the patch to keep it.

    Returns:
        (index, merged_record). records itself is not modified.

    Raises:
        NotFoundError: If no record has this slug
        DuplicateSlugError: If the resulting slug belongs to another record
        InvalidRecordError: If the patch is not an object or the result is invalid
    """
    if not isinstance(patch, dict):
        raise InvalidRecordError(f"A {spec.label} patch must be a JSON object, got {patch!r}")
    index = find_index(records, key)
    if index == -1:
        raise NotFoundError(f"{spec.label.capitalize()} with slug {key!r} not found")

    existing = records[index]
    merged = {**existing, **patch}
    if "id" in existing:
        merged["id"] = existing["id"]

    if "slug" in patch:
        merged["slug"] = _check_slug(patch["slug"])
    elif spec.title_field in patch and patch[spec.title_field] != existing.get(
        spec.title_field
    ):
        new_slug = generate_slug(str(patch[spec.title_field] or ""))
        merged["slug"] = _check_slug(new_slug)
        logger.info(f"{spec.label} slug changed by title edit: {key} -> {new_slug}")
    _check_views(merged)

    other = find_index(records, merged["slug"])
    if other not in (-1, index):
        raise DuplicateSlugError(merged["slug"])
    return index, merged


class CollectionMutator:
    """Read-mutate-write operations on one record collection document.

    Args:
        client: Repository client used for reads and writes
        spec: Which collection this manager edits
        cache: Optional session cache; the written path is invalidated after
            every successful write
    """

    spec: CollectionSpec

    def __init__(
        self,
        client: RepositoryClient,
        spec: CollectionSpec | None = None,
        cache: DocumentCache | None = None,
    ):
        self.client = client
        if spec is not None:
            self.spec = spec
        self.cache = cache

    @property
    def path(self) -> str:
        return self.spec.path

    async def read(self) -> tuple[Document, list[dict]]:
        """Read the current document (never from cache) and its records.

        Callers pairing read() with write() should hold client.lock(path)
        across both, as insert/update/remove do.
        """
        document = await self.client.fetch_document(self.path)
        return document, extract_records(self.spec, document)

    async def write(
        self, document: Document, records: list[dict], commit_message: str
    ) -> WriteResult:
        """Write records back over the document they were read from."""
        body = dict(document.body) if isinstance(document.body, dict) else {}
        body[self.spec.list_key] = records
        body["lastUpdated"] = utc_timestamp()
        result = await self.client.write_document(
            self.path, body, commit_message, base=document
        )
        self.invalidate()
        return result

    def invalidate(self) -> None:
        """Drop this collection from the attached session cache."""
        if self.cache is not None:
            self.cache.invalidate(self.path)

    async def list_records(self) -> list[dict]:
        """All records, through the session cache when one is attached."""
        if self.cache is not None:
            document = await self.cache.load(self.client, self.path)
        else:
            document = await self.client.fetch_document(self.path)
        return extract_records(self.spec, document)

    async def get(self, key: str) -> dict | None:
        records = await self.list_records()
        index = find_index(records, key)
        return records[index] if index != -1 else None

    async def insert(self, data: dict, commit_message: str | None = None) -> dict:
        """Create a record and put it at the head of the list.

        Returns:
            The finished record, including generated id/slug/defaults.
        """
        async with self.client.lock(self.path):
            document, records = await self.read()
            record = build_record(self.spec, data, records)
            records.insert(0, record)

            message = commit_message or f"Add {self.spec.label}: {_title_of(self.spec, record)}"
            await self.write(document, records, message)
        return record

    async def update(
        self, key: str, patch: dict, commit_message: str | None = None
    ) -> dict:
        """Merge a patch into the record with this slug and return the result."""
        async with self.client.lock(self.path):
            document, records = await self.read()
            index, merged = apply_patch(self.spec, records, key, patch)
            records[index] = merged

            message = commit_message or f"Update {self.spec.label}: {_title_of(self.spec, merged)}"
            await self.write(document, records, message)
        return merged

    async def remove(self, key: str, commit_message: str | None = None) -> dict:
        """Delete the record with this slug and return it.

        Raises:
            NotFoundError: If no record has this slug
        """
        async with self.client.lock(self.path):
            document, records = await self.read()
            index = find_index(records, key)
            if index == -1:
                raise NotFoundError(
                    f"{self.spec.label.capitalize()} with slug {key!r} not found"
                )
            removed = records.pop(index)

            message = commit_message or f"Delete {self.spec.label}: {_title_of(self.spec, removed)}"
            await self.write(document, records, message)
        return removed


class PostManager(CollectionMutator):
    spec = POSTS


class CategoryManager(CollectionMutator):
    spec = CATEGORIES


class SiteSettingsManager:
    """Reads and writes the single site settings document."""

    path = SITE_PATH

    def __init__(self, client: RepositoryClient, cache: DocumentCache | None = None):
        self.client = client
        self.cache = cache

    @staticmethod
    def _settings(document: Document) -> dict:
        if not isinstance(document.body, dict):
            raise MalformedDocumentError(f"{SITE_PATH} must contain a JSON object")
        return dict(document.body)

    def invalidate(self) -> None:
        if self.cache is not None:
            self.cache.invalidate(self.path)

    async def get(self) -> dict:
        if self.cache is not None:
            document = await self.cache.load(self.client, self.path)
        else:
            document = await self.client.fetch_document(self.path)
        return self._settings(document)

    async def _write(
        self, document: Document, settings: dict, commit_message: str
    ) -> dict:
        settings["lastUpdated"] = utc_timestamp()
        await self.client.write_document(
            self.path, settings, commit_message, base=document
        )
        self.invalidate()
        return settings

    async def replace(
        self, settings: dict, commit_message: str = "Update site settings"
    ) -> dict:
        """Overwrite all settings with the given object."""
        async with self.client.lock(self.path):
            document = await self.client.fetch_document(self.path)
            self._settings(document)
            return await self._write(document, dict(settings), commit_message)

    async def update(
        self, patch: dict, commit_message: str = "Update site settings"
    ) -> dict:
        """Shallow-merge a patch into the current settings."""
        async with self.client.lock(self.path):
            document = await self.client.fetch_document(self.path)
            settings = {**self._settings(document), **patch}
            return await self._write(document, settings, commit_message)
