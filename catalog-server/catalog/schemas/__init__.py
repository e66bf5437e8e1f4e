"""Pydantic schemas used across the project."""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class ProductSummaryResponse(BaseModel):
    id: int
    name: str
    price: float
    description: str
    status: int
    images: list[str] = Field(default_factory=list)


class ProductDetailResponse(ProductSummaryResponse):
    image_urls: list[str] = Field(default_factory=list, serialization_alias="imageUrls")
    created_at: Optional[datetime] = Field(default=None, serialization_alias="createdAt")
    updated_at: Optional[datetime] = Field(default=None, serialization_alias="updatedAt")


class ProductPageResponse(BaseModel):
    page: int
    limit: int
    total_items: int = Field(serialization_alias="totalItems")
    data: list[ProductSummaryResponse] = Field(default_factory=list)


class ProductMutationResponse(BaseModel):
    message: str
    id: int
    images: list[str] = Field(default_factory=list)


class ProductDeleteResponse(BaseModel):
    message: str
    id: int


class ErrorResponse(BaseModel):
    error: str


__all__ = [
    "ErrorResponse",
    "ProductDeleteResponse",
    "ProductDetailResponse",
    "ProductMutationResponse",
    "ProductPageResponse",
    "ProductSummaryResponse",
]
