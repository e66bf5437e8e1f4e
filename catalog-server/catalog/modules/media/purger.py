"""Best-effort removal of blobs no product references any more."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Iterable

from catalog.infrastructure.storage.blob_store import DeleteOutcome, LocalBlobStore

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class PurgeReport:
    deleted: list[str] = field(default_factory=list)
    missing: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)


@dataclass(slots=True)
class BlobPurger:
    blob_store: LocalBlobStore

    async def purge(self, orphaned: Iterable[str]) -> PurgeReport:
        """Delete every orphan; never raises.

        Must only run after the commit that dropped the references.
        """
        references = sorted(set(orphaned))
        if not references:
            return PurgeReport()
        return await asyncio.to_thread(self._purge_sync, references)

    def _purge_sync(self, references: list[str]) -> PurgeReport:
        report = PurgeReport()
        for reference in references:
            try:
                outcome = self.blob_store.delete(reference)
            except Exception as exc:  # pylint: disable=broad-except
                logger.error("Unexpected error deleting %s: %s", reference, exc)
                outcome = DeleteOutcome.IO_ERROR

            if outcome is DeleteOutcome.OK:
                report.deleted.append(reference)
            elif outcome is DeleteOutcome.NOT_FOUND:
                report.missing.append(reference)
            else:
                report.failed.append(reference)
                logger.error("Could not delete orphaned image %s", reference)
        if report.deleted:
            logger.info("Purged %d orphaned image(s)", len(report.deleted))
        return report


__all__ = ["BlobPurger", "PurgeReport"]
