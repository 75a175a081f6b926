"""Load every content document at once."""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime

from .cache import DocumentCache
from .documents import CATEGORIES_PATH, POSTS_PATH, SITE_PATH
from .mutators import CATEGORIES, POSTS, extract_records
from .repository import RepositoryClient

logger = logging.getLogger(__name__)


@dataclass
class ContentSnapshot:
    posts: list[dict]
    categories: list[dict]
    site: dict
    synced_at: datetime


async def sync_all(
    client: RepositoryClient, cache: DocumentCache | None = None
) -> ContentSnapshot:
    """Fetch posts, categories and site settings in parallel.

    When a cache is given it is refreshed with the documents just read.
    """
    posts_doc, categories_doc, site_doc = await asyncio.gather(
        client.fetch_document(POSTS_PATH),
        client.fetch_document(CATEGORIES_PATH),
        client.fetch_document(SITE_PATH),
    )
    if cache is not None:
        for document in (posts_doc, categories_doc, site_doc):
            cache.set(document)

    snapshot = ContentSnapshot(
        posts=extract_records(POSTS, posts_doc),
        categories=extract_records(CATEGORIES, categories_doc),
        site=site_doc.body if isinstance(site_doc.body, dict) else {},
        synced_at=datetime.now(),
    )
    logger.info(
        f"Synced {len(snapshot.posts)} posts, {len(snapshot.categories)} categories"
    )
    return snapshot
