"""Read-only projections over loaded posts, as the website presents them."""

from datetime import date

from .views import seed_views_of


def _date_key(post: dict) -> date:
    try:
        return date.fromisoformat(str(post.get("date", ""))[:10])
    except ValueError:
        return date.min


def find_by_slug(posts: list[dict], slug: str) -> dict | None:
    for post in posts:
        if post.get("slug") == slug:
            return post
    return None


def by_category(posts: list[dict], category: str) -> list[dict]:
    return [p for p in posts if p.get("category") == category]


def featured(posts: list[dict], count: int = 5) -> list[dict]:
    return [p for p in posts if p.get("featured")][:count]


def latest(posts: list[dict], count: int = 12) -> list[dict]:
    """Newest first by date."""
    return sorted(posts, key=_date_key, reverse=True)[:count]


def trending(posts: list[dict], count: int = 4) -> list[dict]:
    """Most viewed first, by the seeded view count."""
    return sorted(posts, key=seed_views_of, reverse=True)[:count]


def related(posts: list[dict], current_slug: str, category: str, count: int = 4) -> list[dict]:
    return [
        p
        for p in posts
        if p.get("slug") != current_slug and p.get("category") == category
    ][:count]


def search(posts: list[dict], query: str) -> list[dict]:
    """Case-insensitive substring match over title, excerpt and content."""
    needle = query.lower()
    return [
        p
        for p in posts
        if any(needle in str(p.get(f) or "").lower() for f in ("title", "excerpt", "content"))
    ]


def paginate(items: list, page: int, per_page: int = 12) -> list:
    """One 1-based page of items; out-of-range pages are empty."""
    if page < 1 or per_page < 1:
        return []
    start = (page - 1) * per_page
    return items[start : start + per_page]
