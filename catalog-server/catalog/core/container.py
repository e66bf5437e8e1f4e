"""Dependency container wiring the catalog's shared services."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from catalog.core.config import Settings
from catalog.infrastructure.cache.query_cache import QueryCache
from catalog.infrastructure.database.session import build_engine, build_session_factory, init_db
from catalog.infrastructure.storage.blob_store import LocalBlobStore
from catalog.interfaces.ws.notifier import ChangeNotifier
from catalog.modules.media.purger import BlobPurger
from catalog.modules.media.staging import UploadStager
from catalog.modules.media.upload_gate import DeclaredTypeFilter, UploadGate

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class CatalogContainer:
    """Process-wide services shared by every request handler.

    Created once at startup and disposed at shutdown; request handlers get it
    injected rather than reaching for module-level singletons.
    """

    settings: Settings
    engine: AsyncEngine
    session_factory: async_sessionmaker[AsyncSession]
    blob_store: LocalBlobStore
    stager: UploadStager
    gate: UploadGate
    purger: BlobPurger
    notifier: ChangeNotifier
    cache: Optional[QueryCache] = None

    @classmethod
    def build(cls, settings: Settings) -> "CatalogContainer":
        engine = build_engine(settings)
        blob_store = LocalBlobStore(settings.storage.photo_dir, settings.storage.public_url_prefix)
        stager = UploadStager(settings.storage.staging_dir, settings.uploads.max_file_bytes)
        gate = UploadGate(
            stager=stager,
            declared_filter=DeclaredTypeFilter.from_lists(
                settings.uploads.allowed_extensions,
                settings.uploads.allowed_mime_types,
            ),
            max_files=settings.uploads.max_files,
        )
        cache = None
        if settings.cache.enabled:
            cache = QueryCache(
                ttl_seconds=settings.cache.ttl_seconds,
                check_period_seconds=settings.cache.check_period_seconds,
            )
        return cls(
            settings=settings,
            engine=engine,
            session_factory=build_session_factory(engine),
            blob_store=blob_store,
            stager=stager,
            gate=gate,
            purger=BlobPurger(blob_store),
            notifier=ChangeNotifier(queue_size=settings.notifier.queue_size),
            cache=cache,
        )

    async def start(self) -> None:
        if self.settings.is_production:
            # production schemas are managed by Alembic
            logger.info("Skipping create_all in production; run migrations instead")
        else:
            await init_db(self.engine)
        logger.info("Catalog storage ready at %s", self.blob_store.root)

    async def shutdown(self) -> None:
        await self.notifier.close()
        if self.cache is not None:
            self.cache.clear()
        await self.engine.dispose()


__all__ = ["CatalogContainer"]
