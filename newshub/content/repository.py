"""Read and write content documents through the GitHub Contents API."""

import asyncio
import base64
import binascii
import json
import logging
from typing import Any

import httpx

from newshub.config import ContentStoreSettings
from .documents import Document, WriteResult, empty_document
from .errors import (
    AuthenticationError,
    ConflictError,
    MalformedDocumentError,
    NotFoundError,
    RepositoryError,
    TransportError,
)

logger = logging.getLogger(__name__)


def _error_message(response: httpx.Response) -> str:
    """Extract GitHub's error message from a response body."""
    try:
        data = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(data, dict) and data.get("message"):
        return str(data["message"])
    return response.reason_phrase


def _raise_for_status(response: httpx.Response, path: str, operation: str) -> None:
    """Map a non-success GitHub response to a content store error.

    Raises:
        AuthenticationError: 401, or 403 that is not rate limiting
        NotFoundError: 404
        ConflictError: 409, or 422 about a stale/missing sha
        RepositoryError: anything else
    """
    status = response.status_code
    if 200 <= status < 300:
        return

    message = _error_message(response)
    logger.warning(f"GitHub {operation} {path} failed: HTTP {status}: {message}")

    if status == 401:
        raise AuthenticationError(f"Failed to {operation} {path}: {message}")
    if status == 403 and "rate limit" not in message.lower():
        raise AuthenticationError(f"Failed to {operation} {path}: {message}")
    if status == 404:
        raise NotFoundError(f"Failed to {operation} {path}: not found")
    if status == 409:
        raise ConflictError(path, message)
    # GitHub reports "sha wasn't supplied" / "does not match" as 422 when the
    # file was created or changed behind our back.
    if status == 422 and "sha" in message.lower():
        raise ConflictError(path, message)
    raise RepositoryError(status, message)


def _response_json(response: httpx.Response, path: str) -> Any:
    """Parse the JSON body of a successful response."""
    try:
        return response.json()
    except ValueError:
        raise RepositoryError(
            response.status_code, f"Response for {path} is not valid JSON"
        )


def _decode_content(path: str, data: Any) -> Any:
    """Decode a Contents API file response into parsed JSON."""
    if not isinstance(data, dict) or data.get("type", "file") != "file":
        raise MalformedDocumentError(f"{path} is not a file")

    encoding = data.get("encoding", "base64")
    content = data.get("content")
    if encoding != "base64" or not isinstance(content, str):
        # Files over 1 MB come back without inline content
        raise MalformedDocumentError(
            f"{path} has no inline content (encoding={encoding!r})"
        )

    try:
        raw = base64.b64decode(content.replace("\n", ""), validate=True)
        return json.loads(raw.decode("utf-8"))
    except (binascii.Error, UnicodeDecodeError, ValueError) as e:
        raise MalformedDocumentError(f"{path} is not valid JSON: {e}")


def encode_json(body: Any) -> str:
    """Serialize a document body the way it is committed: pretty JSON, base64."""
    text = json.dumps(body, indent=2, ensure_ascii=False)
    return base64.b64encode(text.encode("utf-8")).decode("ascii")


class RepositoryClient:
    """Client for the JSON documents and assets stored in a GitHub repository.

    Every call is a single request/response (or a version lookup followed by
    one write). Nothing is retried: conflicts and failures go straight to the
    caller.

    Args:
        settings: Repository coordinates and credentials
        http_client: Optional shared httpx.AsyncClient. When omitted each call
            opens its own client.
    """

    def __init__(
        self,
        settings: ContentStoreSettings,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.settings = settings
        self._http_client = http_client
        self._locks: dict[str, asyncio.Lock] = {}

    @property
    def branch(self) -> str:
        return self.settings.branch

    def lock(self, path: str) -> asyncio.Lock:
        """Lock serializing this session's read-mutate-write cycles on path.

        Only operations sharing this client wait on each other. Other
        sessions are still caught by the version check on write.
        """
        if path not in self._locks:
            self._locks[path] = asyncio.Lock()
        return self._locks[path]

    def _repo_url(self) -> str:
        return f"{self.settings.api_url}/repos/{self.settings.owner}/{self.settings.repo}"

    def _contents_url(self, path: str) -> str:
        return f"{self._repo_url()}/contents/{path}"

    def _get_headers(self) -> dict[str, str]:
        return {
            "Accept": "application/vnd.github+json",
            "Authorization": f"Bearer {self.settings.token}",
            "X-GitHub-Api-Version": "2022-11-28",
        }

    def raw_url(self, path: str) -> str:
        """Public read-only URL the website uses for a committed file."""
        s = self.settings
        return f"https://raw.githubusercontent.com/{s.owner}/{s.repo}/{s.branch}/{path}"

    async def _request(
        self,
        method: str,
        url: str,
        *,
        params: dict | None = None,
        json_body: dict | None = None,
    ) -> httpx.Response:
        """Send one request, turning network failures into TransportError."""
        headers = self._get_headers()
        try:
            if self._http_client is not None:
                return await self._http_client.request(
                    method, url, params=params, json=json_body, headers=headers
                )
            async with httpx.AsyncClient(timeout=self.settings.timeout) as client:
                return await client.request(
                    method, url, params=params, json=json_body, headers=headers
                )
        except httpx.TransportError as e:
            logger.warning(f"GitHub {method} {url} failed before a response: {e}")
            raise TransportError(f"{method} {url} failed: {e}") from e

    async def _get_contents(self, path: str) -> httpx.Response:
        return await self._request(
            "GET", self._contents_url(path), params={"ref": self.branch}
        )

    async def fetch_document(self, path: str) -> Document:
        """Fetch and parse a JSON document.

        A document that does not exist yet comes back as the empty default
        for its path (e.g. {"posts": []}) with version None.

        Args:
            path: File path relative to repo root (e.g. "data/posts.json")

        Raises:
            NotFoundError: If the file is missing and the path has no default
            MalformedDocumentError: If the content is not valid JSON
            AuthenticationError, RepositoryError, TransportError
        """
        response = await self._get_contents(path)
        if response.status_code == 404:
            body = empty_document(path)
            if body is None:
                raise NotFoundError(f"Document {path} does not exist")
            logger.info(f"{path} not found, using empty default")
            return Document(path=path, version=None, body=body)

        _raise_for_status(response, path, "fetch")
        data = _response_json(response, path)
        body = _decode_content(path, data)
        return Document(path=path, version=data.get("sha"), body=body)

    async def fetch_version(self, path: str) -> str | None:
        """Get the current blob SHA of a file, or None if it does not exist."""
        response = await self._get_contents(path)
        if response.status_code == 404:
            return None
        _raise_for_status(response, path, "fetch version of")
        data = _response_json(response, path)
        if not isinstance(data, dict):
            raise MalformedDocumentError(f"{path} is not a file")
        return data.get("sha")

    async def _put(
        self, path: str, content: str, commit_message: str, version: str | None
    ) -> WriteResult:
        body = {
            "message": commit_message,
            "content": content,
            "branch": self.branch,
        }
        if version:
            body["sha"] = version

        response = await self._request("PUT", self._contents_url(path), json_body=body)
        _raise_for_status(response, path, "write")
        data = _response_json(response, path)
        if not isinstance(data, dict):
            raise RepositoryError(response.status_code, f"Unexpected write response for {path}")
        result = WriteResult.from_response(path, data)
        logger.info(
            f"Committed {path} ({commit_message!r}) -> {result.version[:8] or '?'}"
        )
        return result

    async def write_document(
        self,
        path: str,
        body: Any,
        commit_message: str,
        *,
        base: Document | None = None,
    ) -> WriteResult:
        """Create or update a JSON document.

        Args:
            path: File path relative to repo root
            body: JSON-serializable document body
            commit_message: Commit message for the write
            base: The Document this write was derived from. Its version is
                sent so the write fails if someone else changed the file in
                between. Without it the current version is looked up first.

        Raises:
            ConflictError: If the supplied version is stale
            AuthenticationError, RepositoryError, TransportError
        """
        version = base.version if base is not None else await self.fetch_version(path)
        return await self._put(path, encode_json(body), commit_message, version)

    async def upload_binary(
        self, path: str, content: bytes | str, commit_message: str
    ) -> WriteResult:
        """Create or update a binary file (e.g. an image).

        Args:
            content: Raw bytes, or text that is already base64-encoded
        """
        if isinstance(content, bytes):
            encoded = base64.b64encode(content).decode("ascii")
        else:
            encoded = content
        version = await self.fetch_version(path)
        return await self._put(path, encoded, commit_message, version)

    async def delete_document(self, path: str, commit_message: str) -> None:
        """Delete a file.

        Raises:
            NotFoundError: If the file does not exist
            ConflictError: If the file changed between lookup and delete
        """
        version = await self.fetch_version(path)
        if version is None:
            raise NotFoundError(f"Document {path} does not exist")

        response = await self._request(
            "DELETE",
            self._contents_url(path),
            json_body={
                "message": commit_message,
                "sha": version,
                "branch": self.branch,
            },
        )
        _raise_for_status(response, path, "delete")
        logger.info(f"Deleted {path} ({commit_message!r})")

    async def get_repository_info(self) -> dict:
        """Fetch repository metadata (also a cheap connectivity check)."""
        response = await self._request("GET", self._repo_url())
        _raise_for_status(response, self.settings.full_name, "fetch repository")
        return _response_json(response, self.settings.full_name)

    async def validate_token(self) -> dict:
        """Return the authenticated user for the configured token.

        Raises:
            AuthenticationError: If the token is rejected
        """
        response = await self._request("GET", f"{self.settings.api_url}/user")
        _raise_for_status(response, "user", "validate token for")
        return _response_json(response, "user")
