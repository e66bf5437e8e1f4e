"""Application service sequencing catalog reads and mutations.

A mutation walks through: validate input, admit uploads, reconcile images,
write and commit, invalidate cache, purge orphans, notify subscribers. Any
exit before the commit leaves no file behind: staged uploads are discarded
and blobs already promoted for the request are deleted again.
"""

from __future__ import annotations

import asyncio
import json
import logging
import math
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from catalog.infrastructure.cache.query_cache import (
    LISTING_PREFIX,
    QueryCache,
    listing_key,
    product_key,
)
from catalog.infrastructure.database.repositories.product_repository import SqlProductRepository
from catalog.infrastructure.storage.blob_store import LocalBlobStore
from catalog.interfaces.ws.notifier import ChangeNotifier, MutationAction, MutationEvent
from catalog.modules.media.exceptions import BlobStoreError
from catalog.modules.media.models import UploadedFile
from catalog.modules.media.purger import BlobPurger
from catalog.modules.media.reconciler import reconcile
from catalog.modules.media.staging import UploadStager
from catalog.modules.media.upload_gate import UploadGate
from catalog.schemas import (
    ProductDetailResponse,
    ProductPageResponse,
    ProductSummaryResponse,
)

from .exceptions import ProductNotFoundError, StoreError, ValidationError
from .models import (
    MutationResult,
    Product,
    ProductFields,
    ProductForm,
    decode_images,
    encode_images,
)
from .repository import ProductRepository

if TYPE_CHECKING:
    from catalog.core.container import CatalogContainer

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class CatalogService:
    repository: ProductRepository
    stager: UploadStager
    gate: UploadGate
    blob_store: LocalBlobStore
    purger: BlobPurger
    notifier: ChangeNotifier
    cache: Optional[QueryCache] = None
    strict_kept_images: bool = False

    @classmethod
    def with_session(cls, session: AsyncSession, container: "CatalogContainer") -> "CatalogService":
        return cls(
            repository=SqlProductRepository(session),
            stager=container.stager,
            gate=container.gate,
            blob_store=container.blob_store,
            purger=container.purger,
            notifier=container.notifier,
            cache=container.cache,
            strict_kept_images=container.settings.uploads.strict_kept_images,
        )

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def list_page(self, page: int, limit: int) -> bytes:
        key = listing_key(page, limit)
        cached = self._cache_get(key)
        if cached is not None:
            return cached

        fill_epoch = self._cache_begin_fill()
        total = await self.repository.count()
        rows = await self.repository.page(limit, limit * (page - 1))
        payload = ProductPageResponse(
            page=page,
            limit=limit,
            total_items=total,
            data=[_to_summary(Product.from_orm(row)) for row in rows],
        ).model_dump_json(by_alias=True).encode("utf-8")
        self._cache_set(key, payload, fill_epoch)
        return payload

    async def get_product(self, product_id: int) -> bytes:
        key = product_key(product_id)
        cached = self._cache_get(key)
        if cached is not None:
            return cached

        fill_epoch = self._cache_begin_fill()
        model = await self.repository.get_by_id(product_id)
        if model is None:
            raise ProductNotFoundError(product_id)
        product = Product.from_orm(model)
        payload = ProductDetailResponse(
            **_to_summary(product).model_dump(),
            image_urls=[self.blob_store.public_url_for(ref) for ref in product.images],
            created_at=product.created_at,
            updated_at=product.updated_at,
        ).model_dump_json(by_alias=True).encode("utf-8")
        self._cache_set(key, payload, fill_epoch)
        return payload

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def create_product(self, form: ProductForm, uploads: Sequence[UploadedFile]) -> MutationResult:
        promoted: list[str] = []
        committed = False
        try:
            fields = validate_create(form)
            admitted = await self.gate.admit(uploads)
            promoted = await self._promote(admitted)
            plan = reconcile([], [], promoted)
            product_id = await self.repository.insert(
                name=fields.name,
                price=fields.price,
                description=fields.description or "",
                images=encode_images(plan.final_images),
                status=fields.status if fields.status is not None else 1,
            )
            await self._commit()
            committed = True
        except StoreError:
            await self._rollback()
            raise
        finally:
            await self._cleanup(uploads, promoted, committed)

        logger.info("Created product %s with %d image(s)", product_id, len(plan.final_images))
        self._invalidate(product_id)
        self._notify(MutationAction.CREATE, product_id)
        return MutationResult(product_id=product_id, images=plan.final_images)

    async def update_product(
        self,
        product_id: int,
        form: ProductForm,
        kept_images: Optional[str],
        uploads: Sequence[UploadedFile],
    ) -> MutationResult:
        promoted: list[str] = []
        committed = False
        try:
            fields = validate_update(form)
            kept = parse_kept_images(kept_images)
            current = await self.repository.get_by_id(product_id)
            if current is None:
                raise ProductNotFoundError(product_id)
            previous = decode_images(current.images)

            admitted = await self.gate.admit(uploads)
            promoted = await self._promote(admitted)
            plan = reconcile(previous, kept, promoted, strict=self.strict_kept_images)

            affected = await self.repository.update(
                product_id,
                name=fields.name,
                price=fields.price,
                description=fields.description,
                images=encode_images(plan.final_images),
                status=fields.status,
            )
            if not affected:
                raise ProductNotFoundError(product_id)
            await self._commit()
            committed = True
        except (ProductNotFoundError, StoreError):
            await self._rollback()
            raise
        finally:
            await self._cleanup(uploads, promoted, committed)

        logger.info(
            "Updated product %s: %d image(s), %d orphaned",
            product_id,
            len(plan.final_images),
            len(plan.orphaned),
        )
        self._invalidate(product_id)
        await self.purger.purge(plan.orphaned)
        self._notify(MutationAction.UPDATE, product_id)
        return MutationResult(product_id=product_id, images=plan.final_images)

    async def delete_product(self, product_id: int) -> MutationResult:
        current = await self.repository.get_by_id(product_id)
        if current is None:
            raise ProductNotFoundError(product_id)
        images = decode_images(current.images)

        affected = await self.repository.delete(product_id)
        if not affected:
            await self._rollback()
            raise ProductNotFoundError(product_id)
        await self._commit()

        logger.info("Deleted product %s", product_id)
        self._invalidate(product_id)
        await self.purger.purge(images)
        self._notify(MutationAction.DELETE, product_id)
        return MutationResult(product_id=product_id, images=[])

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _promote(self, admitted: Sequence[UploadedFile]) -> list[str]:
        promoted: list[str] = []
        try:
            for item in admitted:
                suggested = Path(item.file_name).stem or "image"
                if item.detected_type is not None:
                    suggested += item.detected_type.extension
                reference = await asyncio.to_thread(self.blob_store.promote, item.staged_path, suggested)
                promoted.append(reference)
        except OSError as exc:
            logger.error("Failed to move uploads into blob store: %s", exc)
            await self.purger.purge(promoted)
            raise BlobStoreError("Failed to store uploaded images") from exc
        return promoted

    async def _commit(self) -> None:
        try:
            await self.repository.commit()
        except StoreError:
            logger.exception("Commit failed, rolling back")
            await self._rollback()
            raise

    async def _rollback(self) -> None:
        try:
            await self.repository.rollback()
        except Exception as exc:  # pylint: disable=broad-except
            logger.error("Rollback failed: %s", exc)

    async def _cleanup(
        self,
        uploads: Sequence[UploadedFile],
        promoted: list[str],
        committed: bool,
    ) -> None:
        if not committed:
            if promoted:
                logger.warning("Mutation aborted, removing %d promoted image(s)", len(promoted))
                await self.purger.purge(promoted)
        await self.stager.discard(uploads)

    def _invalidate(self, product_id: int) -> None:
        if self.cache is None:
            return
        try:
            self.cache.invalidate(product_key(product_id))
            self.cache.invalidate_prefix(LISTING_PREFIX)
        except Exception as exc:  # pylint: disable=broad-except
            logger.error("Cache invalidation failed for product %s: %s", product_id, exc)

    def _notify(self, action: MutationAction, product_id: int) -> None:
        try:
            self.notifier.broadcast(MutationEvent(action=action, product_id=product_id))
        except Exception as exc:  # pylint: disable=broad-except
            logger.error("Broadcast of %s/%s failed: %s", action.value, product_id, exc)

    def _cache_get(self, key: str) -> Optional[bytes]:
        if self.cache is None:
            return None
        try:
            return self.cache.get(key)
        except Exception as exc:  # pylint: disable=broad-except
            logger.warning("Cache read failed for %s: %s", key, exc)
            return None

    def _cache_begin_fill(self) -> Optional[int]:
        if self.cache is None:
            return None
        return self.cache.begin_fill()

    def _cache_set(self, key: str, payload: bytes, fill_epoch: Optional[int]) -> None:
        if self.cache is None:
            return
        try:
            self.cache.set(key, payload, fill_epoch=fill_epoch)
        except Exception as exc:  # pylint: disable=broad-except
            logger.warning("Cache write failed for %s: %s", key, exc)


def _to_summary(product: Product) -> ProductSummaryResponse:
    return ProductSummaryResponse(
        id=product.id,
        name=product.name,
        price=product.price,
        description=product.description,
        status=product.status,
        images=product.images,
    )


def _blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


def _parse_price(raw: str) -> float:
    try:
        price = float(raw)
    except (TypeError, ValueError) as exc:
        raise ValidationError("Price must be a number") from exc
    if not math.isfinite(price) or price < 0:
        raise ValidationError("Price must be a non-negative number")
    return price


def _parse_status(raw: str) -> int:
    try:
        return int(raw)
    except (TypeError, ValueError) as exc:
        raise ValidationError("Status must be an integer") from exc


def validate_create(form: ProductForm) -> ProductFields:
    if _blank(form.name) or _blank(form.price):
        raise ValidationError("Name and price are required")
    return ProductFields(
        name=form.name.strip(),
        price=_parse_price(form.price),
        description=form.description or "",
        status=1 if _blank(form.status) else _parse_status(form.status),
    )


def validate_update(form: ProductForm) -> ProductFields:
    """Fields left out of an update keep their stored values."""
    return ProductFields(
        name=None if _blank(form.name) else form.name.strip(),
        price=None if _blank(form.price) else _parse_price(form.price),
        description=form.description,
        status=None if _blank(form.status) else _parse_status(form.status),
    )


def parse_kept_images(raw: Optional[str]) -> list[str]:
    """Parse the client's JSON list of images to retain."""
    if raw is None or not raw.strip():
        return []
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValidationError("Kept images must be a JSON list") from exc
    if not isinstance(parsed, list) or not all(isinstance(item, str) for item in parsed):
        raise ValidationError("Kept images must be a JSON list of strings")
    return parsed


__all__ = [
    "CatalogService",
    "parse_kept_images",
    "validate_create",
    "validate_update",
]
