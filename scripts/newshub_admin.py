#!/usr/bin/env python
"""
Manage NewsHub content stored in the GitHub repository.

Requires NEWSHUB_REPO and NEWSHUB_GITHUB_TOKEN (see .env.example).

Examples:
  python scripts/newshub_admin.py check
  python scripts/newshub_admin.py list --search election --limit 5
  python scripts/newshub_admin.py add post.json
  python scripts/newshub_admin.py update my-post --set featured=true --set views=42
  python scripts/newshub_admin.py delete my-post
  python scripts/newshub_admin.py import posts.json
  python scripts/newshub_admin.py bulk-delete old-post another-post
  python scripts/newshub_admin.py upload-image photo.jpg
"""

import argparse
import asyncio
import json
import logging
import os
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from dotenv import load_dotenv

load_dotenv(".env")
load_dotenv(".env.local", override=True)

import httpx
import sentry_sdk

from newshub.config import ContentStoreNotConfiguredError, ContentStoreSettings
from newshub.content import (
    CategoryManager,
    ContentStoreError,
    PostManager,
    PostUpdate,
    RepositoryClient,
    SiteSettingsManager,
    bulk_delete,
    bulk_update,
    import_many,
    retry_on_conflict,
    sync_all,
)
from newshub.content import queries
from newshub.content.assets import upload_image
from newshub.content.views import ViewCount, format_views, seed_views_of


def _parse_assignments(pairs: list[str]) -> dict:
    """Turn ["views=42", "title=Hello"] into {"views": 42, "title": "Hello"}.

    Values are parsed as JSON when possible, otherwise kept as strings.
    """
    patch = {}
    for pair in pairs:
        key, sep, raw = pair.partition("=")
        if not sep or not key:
            raise SystemExit(f"Expected key=value, got {pair!r}")
        try:
            patch[key] = json.loads(raw)
        except ValueError:
            patch[key] = raw
    return patch


def _load_json(path: str):
    with open(path, encoding="utf-8") as f:
        return json.load(f)


def _print_post(post: dict) -> None:
    views = ViewCount(seed_views=seed_views_of(post))
    flag = "*" if post.get("featured") else " "
    print(
        f"{flag} {post.get('date', '?'):10}  {views.display:>7}  "
        f"{post.get('slug')}  ({post.get('category', '-')})"
    )


async def cmd_check(client: RepositoryClient, args) -> int:
    user = await client.validate_token()
    repo = await client.get_repository_info()
    print(f"Authenticated as: {user.get('login')}")
    print(f"Repository:       {repo.get('full_name')}")
    print(f"Default branch:   {repo.get('default_branch')}")
    print(f"Writing to:       {client.branch}")
    return 0


async def cmd_sync(client: RepositoryClient, args) -> int:
    snapshot = await sync_all(client)
    print(f"Posts:      {len(snapshot.posts)}")
    print(f"Categories: {len(snapshot.categories)}")
    print(f"Site:       {snapshot.site.get('name', '(unnamed)')}")
    print(f"Updated:    {snapshot.site.get('lastUpdated', 'never')}")
    return 0


async def cmd_list(client: RepositoryClient, args) -> int:
    posts = await PostManager(client).list_records()
    if args.category:
        posts = queries.by_category(posts, args.category)
    if args.search:
        posts = queries.search(posts, args.search)
    if args.featured:
        posts = queries.featured(posts, count=len(posts))
    if args.sort == "latest":
        posts = queries.latest(posts, count=len(posts))
    elif args.sort == "trending":
        posts = queries.trending(posts, count=len(posts))
    posts = queries.paginate(posts, args.page, args.limit)
    for post in posts:
        _print_post(post)
    total_views = sum(seed_views_of(p) for p in posts)
    print(f"{len(posts)} posts, {format_views(total_views)} seeded views")
    return 0


async def cmd_add(client: RepositoryClient, args) -> int:
    manager = CategoryManager(client) if args.category else PostManager(client)
    record = await manager.insert(_load_json(args.file))
    print(f"Created {record['slug']} (id {record['id']})")
    return 0


async def cmd_update(client: RepositoryClient, args) -> int:
    patch = _load_json(args.json) if args.json else {}
    patch.update(_parse_assignments(args.set or []))
    if args.keep_slug:
        patch.setdefault("slug", args.slug)
    manager = CategoryManager(client) if args.category else PostManager(client)
    record = await retry_on_conflict(
        lambda: manager.update(args.slug, patch), attempts=args.retries + 1
    )
    print(f"Updated {record['slug']}")
    return 0


async def cmd_delete(client: RepositoryClient, args) -> int:
    manager = CategoryManager(client) if args.category else PostManager(client)
    record = await manager.remove(args.slug)
    print(f"Deleted {record['slug']}")
    return 0


def _report(result, label: str) -> int:
    print(f"{label}: {len(result.succeeded)} of {result.total}")
    for failure in result.failed:
        print(f"  failed: {failure.item!r}: {failure.error_type}: {failure.error}")
    return 1 if result.failed else 0


async def cmd_import(client: RepositoryClient, args) -> int:
    data = _load_json(args.file)
    items = data.get("posts", []) if isinstance(data, dict) else data
    result = await import_many(PostManager(client), items)
    return _report(result, "Imported")


async def cmd_bulk_update(client: RepositoryClient, args) -> int:
    updates = [
        PostUpdate(slug=item["slug"], data=item.get("data", {}))
        for item in _load_json(args.file)
    ]
    result = await bulk_update(PostManager(client), updates)
    return _report(result, "Updated")


async def cmd_bulk_delete(client: RepositoryClient, args) -> int:
    result = await bulk_delete(PostManager(client), args.slugs)
    return _report(result, "Deleted")


async def cmd_settings(client: RepositoryClient, args) -> int:
    manager = SiteSettingsManager(client)
    if args.set:
        settings = await manager.update(_parse_assignments(args.set))
    else:
        settings = await manager.get()
    print(json.dumps(settings, indent=2, ensure_ascii=False))
    return 0


async def cmd_upload_image(client: RepositoryClient, args) -> int:
    path = Path(args.file)
    asset = await upload_image(client, path.name, path.read_bytes(), folder=args.folder)
    print(f"Uploaded {asset.path}")
    print(f"URL: {asset.url}")
    return 0


COMMANDS = {
    "check": cmd_check,
    "sync": cmd_sync,
    "list": cmd_list,
    "add": cmd_add,
    "update": cmd_update,
    "delete": cmd_delete,
    "import": cmd_import,
    "bulk-update": cmd_bulk_update,
    "bulk-delete": cmd_bulk_delete,
    "settings": cmd_settings,
    "upload-image": cmd_upload_image,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Manage NewsHub content on GitHub")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("check", help="Validate token and repository access")
    sub.add_parser("sync", help="Load all documents and print a summary")

    p = sub.add_parser("list", help="List posts")
    p.add_argument("--category", help="Only posts in this category slug")
    p.add_argument("--search", help="Case-insensitive text search")
    p.add_argument("--featured", action="store_true", help="Only featured posts")
    p.add_argument("--sort", choices=["stored", "latest", "trending"], default="stored")
    p.add_argument("--page", type=int, default=1)
    p.add_argument("--limit", type=int, default=20)

    p = sub.add_parser("add", help="Create a record from a JSON file")
    p.add_argument("file", help="JSON object with the record fields")
    p.add_argument("--category", action="store_true", help="Create a category")

    p = sub.add_parser("update", help="Patch a record by slug")
    p.add_argument("slug")
    p.add_argument("--set", action="append", metavar="KEY=VALUE")
    p.add_argument("--json", help="JSON file with the patch")
    p.add_argument(
        "--keep-slug",
        action="store_true",
        help="Keep the current slug even if the title changes",
    )
    p.add_argument("--category", action="store_true", help="Update a category")
    p.add_argument(
        "--retries", type=int, default=0, help="Re-run the update on write conflicts"
    )

    p = sub.add_parser("delete", help="Delete a record by slug")
    p.add_argument("slug")
    p.add_argument("--category", action="store_true", help="Delete a category")

    p = sub.add_parser("import", help="Import posts from a JSON file")
    p.add_argument("file", help='List of posts, or {"posts": [...]}')

    p = sub.add_parser("bulk-update", help="Apply many patches in one commit")
    p.add_argument("file", help='JSON list of {"slug": ..., "data": {...}}')

    p = sub.add_parser("bulk-delete", help="Delete many posts in one commit")
    p.add_argument("slugs", nargs="+")

    p = sub.add_parser("settings", help="Show or update site settings")
    p.add_argument("--set", action="append", metavar="KEY=VALUE")

    p = sub.add_parser("upload-image", help="Upload an image file")
    p.add_argument("file")
    p.add_argument("--folder", default="assets/images")

    return parser


async def run(args) -> int:
    settings = ContentStoreSettings.from_env()
    async with httpx.AsyncClient(timeout=settings.timeout) as http_client:
        client = RepositoryClient(settings, http_client=http_client)
        return await COMMANDS[args.command](client, args)


def main():
    args = build_parser().parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    if os.getenv("SENTRY_DSN"):
        sentry_sdk.init(dsn=os.getenv("SENTRY_DSN"))

    try:
        sys.exit(asyncio.run(run(args)))
    except ContentStoreNotConfiguredError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(2)
    except ContentStoreError as e:
        print(f"Error: {type(e).__name__}: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
