"""Product listing and mutation endpoints."""
from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Response, UploadFile, status

from catalog.api.deps import get_catalog_service, get_container
from catalog.core.container import CatalogContainer
from catalog.core.exceptions import CatalogError, StoreError, ValidationError
from catalog.modules.media.exceptions import TooManyFilesError, UploadRejectedError
from catalog.modules.media.models import UploadedFile
from catalog.modules.products import CatalogService, ProductForm, ProductNotFoundError
from catalog.schemas import ErrorResponse, ProductDeleteResponse, ProductMutationResponse

logger = logging.getLogger(__name__)

router = APIRouter()

ERROR_RESPONSES = {
    status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse},
    status.HTTP_404_NOT_FOUND: {"model": ErrorResponse},
    status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": ErrorResponse},
}


# Largest value an SQLite INTEGER column or bound parameter can hold.
MAX_SQL_INT = 2**63 - 1


def _parse_positive_int(raw: Optional[str], default: int, maximum: int = MAX_SQL_INT) -> int:
    """Lenient integer parsing: anything unusable falls back to ``default``."""
    try:
        value = int(raw) if raw is not None else default
    except ValueError:
        return default
    return value if 1 <= value <= maximum else default


def _parse_product_id(raw: str) -> int:
    try:
        product_id = int(raw)
    except ValueError:
        product_id = 0
    if not 1 <= product_id <= MAX_SQL_INT:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found")
    return product_id


async def _stage_uploads(service: CatalogService, images: Optional[list[UploadFile]]) -> list[UploadedFile]:
    """Refuse oversized batches before anything is written to staging."""
    uploads = images or []
    if len(uploads) > service.gate.max_files:
        raise TooManyFilesError(f"At most {service.gate.max_files} images per request")
    return await service.stager.stage_all(uploads)


def _to_http_exception(exc: CatalogError) -> HTTPException:
    if isinstance(exc, ProductNotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found")
    if isinstance(exc, UploadRejectedError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    if isinstance(exc, ValidationError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    if isinstance(exc, StoreError):
        logger.error("Record store failure: %s", exc)
        return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Database error")
    logger.error("Unhandled catalog error: %s", exc)
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Internal server error")


@router.get("/home", summary="Paginated product listing", responses=ERROR_RESPONSES)
async def list_products(
    page: Optional[str] = None,
    limit: Optional[str] = None,
    container: CatalogContainer = Depends(get_container),
    service: CatalogService = Depends(get_catalog_service),
) -> Response:
    catalog_settings = container.settings.catalog
    page_size = min(_parse_positive_int(limit, catalog_settings.default_page_size), catalog_settings.max_page_size)
    # the row offset limit * (page - 1) must stay a valid SQL integer
    page_number = _parse_positive_int(page, 1, maximum=MAX_SQL_INT // page_size)
    try:
        payload = await service.list_page(page_number, page_size)
    except CatalogError as exc:
        raise _to_http_exception(exc) from exc
    return Response(content=payload, media_type="application/json")


@router.get("/products/{product_id}", summary="Product detail", responses=ERROR_RESPONSES)
async def get_product(
    product_id: str,
    service: CatalogService = Depends(get_catalog_service),
) -> Response:
    try:
        payload = await service.get_product(_parse_product_id(product_id))
    except CatalogError as exc:
        raise _to_http_exception(exc) from exc
    return Response(content=payload, media_type="application/json")


@router.post(
    "/products",
    response_model=ProductMutationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a product with up to ten images",
    responses=ERROR_RESPONSES,
)
async def create_product(
    name: Optional[str] = Form(None),
    price: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    product_status: Optional[str] = Form(None, alias="status"),
    images: Optional[list[UploadFile]] = File(None),
    service: CatalogService = Depends(get_catalog_service),
) -> ProductMutationResponse:
    form = ProductForm(name=name, price=price, description=description, status=product_status)
    try:
        staged = await _stage_uploads(service, images)
        result = await service.create_product(form, staged)
    except CatalogError as exc:
        raise _to_http_exception(exc) from exc
    return ProductMutationResponse(message="Product created", id=result.product_id, images=result.images)


@router.put(
    "/products/{product_id}",
    response_model=ProductMutationResponse,
    summary="Update a product, keeping the listed images and adding new uploads",
    responses=ERROR_RESPONSES,
)
async def update_product(
    product_id: str,
    name: Optional[str] = Form(None),
    price: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    product_status: Optional[str] = Form(None, alias="status"),
    kept_images: Optional[str] = Form(None),
    images: Optional[list[UploadFile]] = File(None),
    service: CatalogService = Depends(get_catalog_service),
) -> ProductMutationResponse:
    form = ProductForm(name=name, price=price, description=description, status=product_status)
    try:
        target_id = _parse_product_id(product_id)
        staged = await _stage_uploads(service, images)
        result = await service.update_product(target_id, form, kept_images, staged)
    except CatalogError as exc:
        raise _to_http_exception(exc) from exc
    return ProductMutationResponse(message="Product updated", id=result.product_id, images=result.images)


@router.delete(
    "/products/{product_id}",
    response_model=ProductDeleteResponse,
    summary="Delete a product and its images",
    responses=ERROR_RESPONSES,
)
async def delete_product(
    product_id: str,
    service: CatalogService = Depends(get_catalog_service),
) -> ProductDeleteResponse:
    try:
        result = await service.delete_product(_parse_product_id(product_id))
    except CatalogError as exc:
        raise _to_http_exception(exc) from exc
    return ProductDeleteResponse(message="Product deleted", id=result.product_id)
