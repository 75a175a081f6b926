"""Batch post operations: one read and at most one write per batch."""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

import sentry_sdk

from .documents import WriteResult
from .errors import ContentStoreError, NotFoundError
from .mutators import CollectionMutator, apply_patch, build_record, find_index

logger = logging.getLogger(__name__)


@dataclass
class BatchFailure:
    """One item of a batch that could not be applied."""

    item: Any
    error: str
    error_type: str


@dataclass
class BatchResult:
    """Partition of a batch into applied and skipped items.

    write is the single combined write, or None when nothing changed and so
    nothing was written.
    """

    succeeded: list[Any] = field(default_factory=list)
    failed: list[BatchFailure] = field(default_factory=list)
    write: WriteResult | None = None

    @property
    def total(self) -> int:
        return len(self.succeeded) + len(self.failed)

    def _fail(self, item: Any, error: ContentStoreError) -> None:
        logger.warning(f"Batch item skipped: {error}")
        sentry_sdk.capture_exception(error)
        self.failed.append(
            BatchFailure(item=item, error=str(error), error_type=type(error).__name__)
        )


@dataclass
class PostUpdate:
    """One instruction for bulk_update: patch the record with this slug."""

    slug: str
    data: dict


async def import_many(mutator: CollectionMutator, items: list[dict]) -> BatchResult:
    """Create many records with one read and one write.

    Records keep the order given, ahead of the existing ones. An item that
    cannot be built (not an object, no title, duplicate slug, ...) is
    reported as failed and the rest are still imported.
    """
    result = BatchResult()
    created: list[dict] = []
    now = datetime.now(timezone.utc)

    async with mutator.client.lock(mutator.path):
        document, records = await mutator.read()
        for item in items:
            try:
                # created first so slug/id checks see earlier items of this batch
                record = build_record(mutator.spec, item, created + records, now=now)
            except ContentStoreError as e:
                result._fail(item, e)
                continue
            created.append(record)
            result.succeeded.append(record)

        if created:
            result.write = await mutator.write(
                document,
                created + records,
                f"Import {len(created)} {mutator.spec.list_key}",
            )
    logger.info(f"Imported {len(created)} of {len(items)} {mutator.spec.list_key}")
    return result


async def bulk_update(
    mutator: CollectionMutator, updates: list[PostUpdate]
) -> BatchResult:
    """Apply many patches with one read and one write.

    Instructions whose slug matches no record, or whose data is not an
    object, are reported as failed; the others are applied in order, so a
    later instruction sees the result of an earlier one.
    """
    result = BatchResult()

    async with mutator.client.lock(mutator.path):
        document, records = await mutator.read()
        for update in updates:
            try:
                index, merged = apply_patch(
                    mutator.spec, records, update.slug, update.data
                )
            except ContentStoreError as e:
                result._fail(update, e)
                continue
            records[index] = merged
            result.succeeded.append(merged)

        if result.succeeded:
            result.write = await mutator.write(
                document,
                records,
                f"Bulk update {len(result.succeeded)} {mutator.spec.list_key}",
            )
    logger.info(
        f"Bulk updated {len(result.succeeded)} of {len(updates)} {mutator.spec.list_key}"
    )
    return result


async def bulk_delete(mutator: CollectionMutator, slugs: list[str]) -> BatchResult:
    """Delete many records with one read and one write.

    Slugs that match nothing are reported as failed with NotFoundError.
    """
    result = BatchResult()

    async with mutator.client.lock(mutator.path):
        document, records = await mutator.read()
        for slug in slugs:
            index = find_index(records, slug)
            if index == -1:
                result._fail(
                    slug,
                    NotFoundError(
                        f"{mutator.spec.label.capitalize()} with slug {slug!r} not found"
                    ),
                )
                continue
            result.succeeded.append(records.pop(index))

        if result.succeeded:
            result.write = await mutator.write(
                document,
                records,
                f"Delete {len(result.succeeded)} {mutator.spec.list_key}",
            )
    logger.info(
        f"Deleted {len(result.succeeded)} of {len(slugs)} {mutator.spec.list_key}"
    )
    return result
