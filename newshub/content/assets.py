"""Image uploads into the content repository."""

import logging
import re
from dataclasses import dataclass
from datetime import datetime, timezone

import sentry_sdk

from .documents import IMAGES_FOLDER
from .errors import ContentStoreError
from .repository import RepositoryClient

logger = logging.getLogger(__name__)

_UNSAFE_FILENAME_CHARS = re.compile(r"[^a-zA-Z0-9.]")


@dataclass
class UploadedAsset:
    path: str
    filename: str
    url: str  # public raw URL the website can link to


@dataclass
class FailedUpload:
    filename: str
    error: str


def asset_filename(name: str, now: datetime | None = None) -> str:
    """Timestamped, URL-safe file name: "1736899200000-my-photo.jpg"."""
    now = now or datetime.now(timezone.utc)
    safe = _UNSAFE_FILENAME_CHARS.sub("-", name).lower()
    return f"{int(now.timestamp() * 1000)}-{safe}"


async def upload_image(
    client: RepositoryClient,
    name: str,
    data: bytes | str,
    folder: str = IMAGES_FOLDER,
    now: datetime | None = None,
) -> UploadedAsset:
    """Upload one image under folder with a timestamped name.

    Args:
        name: Original file name, used for the safe name
        data: Raw bytes or base64 text
    """
    filename = asset_filename(name, now)
    path = f"{folder.rstrip('/')}/{filename}"
    await client.upload_binary(path, data, f"Upload image: {filename}")
    return UploadedAsset(path=path, filename=filename, url=client.raw_url(path))


async def upload_images(
    client: RepositoryClient,
    files: list[tuple[str, bytes | str]],
    folder: str = IMAGES_FOLDER,
) -> tuple[list[UploadedAsset], list[FailedUpload]]:
    """Upload images one after another; a failed file does not stop the rest.

    Returns:
        (uploaded, failed)
    """
    uploaded: list[UploadedAsset] = []
    failed: list[FailedUpload] = []
    for name, data in files:
        try:
            uploaded.append(await upload_image(client, name, data, folder))
        except ContentStoreError as e:
            logger.error(f"Failed to upload {name}: {e}")
            sentry_sdk.capture_exception(e)
            failed.append(FailedUpload(filename=name, error=str(e)))
    return uploaded, failed
