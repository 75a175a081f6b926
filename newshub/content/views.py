"""View counts: the seeded count stored in posts.json plus a live counter.

The two numbers are kept apart. seed_views is edited by hand in the post
record; live_views comes from an external counting service keyed by slug and
is never written back into the document.
"""

import logging
from dataclasses import dataclass, field

import httpx

from newshub.config import get_counter_namespace, get_counter_url

logger = logging.getLogger(__name__)


def combine_views(seed_views: int, live_views: int | None) -> int:
    """Total shown to readers. An unavailable live count counts as zero."""
    return max(seed_views, 0) + max(live_views or 0, 0)


def format_views(num: int) -> str:
    """Compact display form: 950, 1.2K, 3.5M."""
    if num >= 1_000_000:
        return f"{num / 1_000_000:.1f}M"
    if num >= 1000:
        return f"{num / 1000:.1f}K"
    return str(num)


@dataclass(frozen=True)
class ViewCount:
    seed_views: int
    live_views: int | None = None  # None when the counter could not be reached

    @property
    def total(self) -> int:
        return combine_views(self.seed_views, self.live_views)

    @property
    def display(self) -> str:
        return format_views(self.total)


def seed_views_of(post: dict) -> int:
    views = post.get("views")
    return views if isinstance(views, int) and not isinstance(views, bool) and views > 0 else 0


@dataclass
class ViewCounterClient:
    """Client for the external per-slug hit counter.

    One instance is one browsing session: hit() increments a slug at most
    once per instance. Counter failures are logged and reported as None
    rather than raised, since the seeded count is still usable on its own.
    """

    namespace: str
    base_url: str = field(default_factory=get_counter_url)
    timeout: float = 5.0
    _seen: set[str] = field(default_factory=set, init=False, repr=False)

    @classmethod
    def from_env(cls) -> "ViewCounterClient | None":
        namespace = get_counter_namespace()
        return cls(namespace=namespace) if namespace else None

    async def _fetch_value(self, action: str, slug: str) -> int | None:
        url = f"{self.base_url}/{action}/{self.namespace}/{slug}"
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.get(url)
            if response.status_code != 200:
                logger.warning(f"View counter {action} {slug}: HTTP {response.status_code}")
                return None
            value = response.json().get("value")
        except (httpx.HTTPError, ValueError, AttributeError) as e:
            logger.warning(f"View counter {action} {slug} failed: {e}")
            return None
        return value if isinstance(value, int) else None

    async def get_live_views(self, slug: str) -> int | None:
        return await self._fetch_value("get", slug)

    async def hit(self, slug: str) -> int | None:
        """Count a view of slug, once per session. Returns the live count.

        A hit that fails is not remembered, so the next call tries again.
        """
        if slug in self._seen:
            return await self.get_live_views(slug)
        value = await self._fetch_value("hit", slug)
        if value is not None:
            self._seen.add(slug)
        return value

    async def view_count(self, post: dict) -> ViewCount:
        return ViewCount(
            seed_views=seed_views_of(post),
            live_views=await self.get_live_views(str(post.get("slug", ""))),
        )
