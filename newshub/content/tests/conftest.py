"""Pytest fixtures for content store tests.

FakeContentStore answers GitHub Contents API requests from memory, including
the sha checks GitHub applies to writes, so mutators can be exercised end to
end without network access.
"""

import asyncio
import base64
import hashlib
import json
from typing import Callable

import httpx
import pytest
import respx

from newshub.config import ContentStoreSettings
from newshub.content.repository import RepositoryClient

OWNER = "octo"
REPO = "newshub-site"
CONTENTS_PREFIX = f"/repos/{OWNER}/{REPO}/contents/"


def _wrap_base64(data: bytes) -> str:
    """Base64 with a newline every 60 characters, as GitHub returns it."""
    encoded = base64.b64encode(data).decode("ascii")
    return "\n".join(encoded[i : i + 60] for i in range(0, len(encoded), 60)) + "\n"


class FakeContentStore:
    def __init__(self):
        self.files: dict[str, tuple[str, bytes]] = {}  # path -> (sha, raw bytes)
        self.requests: list[tuple[str, str]] = []  # (method, path)
        self.commits: list[str] = []
        self._counter = 0
        # Called with the path just before a PUT is applied
        self.before_write: Callable[[str], None] | None = None

    # --- helpers for tests ---

    def _new_sha(self, data: bytes) -> str:
        self._counter += 1
        return hashlib.sha1(data + str(self._counter).encode()).hexdigest()

    def put_json(self, path: str, body) -> str:
        """Seed or overwrite a file directly (as another writer would)."""
        data = json.dumps(body, indent=2).encode("utf-8")
        sha = self._new_sha(data)
        self.files[path] = (sha, data)
        return sha

    def put_raw(self, path: str, data: bytes) -> str:
        sha = self._new_sha(data)
        self.files[path] = (sha, data)
        return sha

    def read_json(self, path: str):
        return json.loads(self.files[path][1].decode("utf-8"))

    def sha(self, path: str) -> str | None:
        entry = self.files.get(path)
        return entry[0] if entry else None

    def count(self, method: str) -> int:
        return sum(1 for m, _ in self.requests if m == method)

    # --- request handling ---

    def handle(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        self.requests.append((request.method, path))

        if path == "/user":
            return httpx.Response(200, json={"login": "editor"})
        if path == f"/repos/{OWNER}/{REPO}":
            return httpx.Response(
                200, json={"full_name": f"{OWNER}/{REPO}", "default_branch": "main"}
            )
        if not path.startswith(CONTENTS_PREFIX):
            return httpx.Response(404, json={"message": "Not Found"})

        file_path = path[len(CONTENTS_PREFIX) :]
        if request.method == "GET":
            return self._get(file_path)
        body = json.loads(request.content or b"{}")
        if request.method == "PUT":
            return self._put(file_path, body)
        if request.method == "DELETE":
            return self._delete(file_path, body)
        return httpx.Response(405, json={"message": "Method Not Allowed"})

    def _get(self, path: str) -> httpx.Response:
        if path not in self.files:
            return httpx.Response(404, json={"message": "Not Found"})
        sha, data = self.files[path]
        return httpx.Response(
            200,
            json={
                "type": "file",
                "path": path,
                "sha": sha,
                "encoding": "base64",
                "content": _wrap_base64(data),
            },
        )

    def _put(self, path: str, body: dict) -> httpx.Response:
        if self.before_write is not None:
            hook, self.before_write = self.before_write, None
            hook(path)

        current = self.sha(path)
        supplied = body.get("sha")
        if current is not None and supplied is None:
            return httpx.Response(
                422, json={"message": 'Invalid request.\n\n"sha" wasn\'t supplied.'}
            )
        if current is not None and supplied != current:
            return httpx.Response(
                409, json={"message": f"{path} does not match {supplied}"}
            )
        if current is None and supplied is not None:
            return httpx.Response(404, json={"message": "Not Found"})

        data = base64.b64decode(body["content"])
        sha = self._new_sha(data)
        self.files[path] = (sha, data)
        self.commits.append(body["message"])
        return httpx.Response(
            201 if current is None else 200,
            json={
                "content": {
                    "path": path,
                    "sha": sha,
                    "html_url": f"https://github.com/{OWNER}/{REPO}/blob/main/{path}",
                    "download_url": f"https://raw.githubusercontent.com/{OWNER}/{REPO}/main/{path}",
                },
                "commit": {"sha": hashlib.sha1(sha.encode()).hexdigest()},
            },
        )

    def _delete(self, path: str, body: dict) -> httpx.Response:
        current = self.sha(path)
        if current is None:
            return httpx.Response(404, json={"message": "Not Found"})
        if body.get("sha") != current:
            return httpx.Response(409, json={"message": "sha does not match"})
        del self.files[path]
        self.commits.append(body["message"])
        return httpx.Response(200, json={"commit": {"sha": "d" * 40}, "content": None})


@pytest.fixture
def settings():
    return ContentStoreSettings(owner=OWNER, repo=REPO, token="test-token")


@pytest.fixture
def store():
    """In-memory GitHub content store intercepting api.github.com."""
    fake = FakeContentStore()
    with respx.mock(assert_all_called=False) as router:
        router.route(host="api.github.com").mock(side_effect=fake.handle)
        yield fake


@pytest.fixture
def slow_store():
    """Like store, but each response is delayed so concurrent calls interleave."""
    fake = FakeContentStore()

    async def handle(request: httpx.Request) -> httpx.Response:
        await asyncio.sleep(0.01)
        return fake.handle(request)

    with respx.mock(assert_all_called=False) as router:
        router.route(host="api.github.com").mock(side_effect=handle)
        yield fake


@pytest.fixture
def client(settings, store):
    return RepositoryClient(settings)
