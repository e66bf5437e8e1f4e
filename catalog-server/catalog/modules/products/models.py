"""Product domain models."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from catalog.db import models as orm

logger = logging.getLogger(__name__)


def decode_images(raw: Optional[str]) -> list[str]:
    """Decode the stored image column, treating anything malformed as empty."""
    if not raw:
        return []
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning("Discarding malformed image list: %r", raw)
        return []
    if not isinstance(parsed, list):
        return []
    return [str(item) for item in parsed]


def encode_images(images: list[str]) -> str:
    return json.dumps(list(images), ensure_ascii=False)


@dataclass(slots=True)
class Product:
    id: int
    name: str
    price: float
    description: str
    status: int
    images: list[str]
    created_at: Optional[datetime]
    updated_at: Optional[datetime]

    @classmethod
    def from_orm(cls, instance: orm.Product) -> "Product":
        return cls(
            id=int(instance.id),
            name=instance.name,
            price=float(instance.price),
            description=instance.description or "",
            status=int(instance.status if instance.status is not None else 1),
            images=decode_images(instance.images),
            created_at=instance.created_at,
            updated_at=instance.updated_at,
        )


@dataclass(slots=True)
class ProductForm:
    """Raw, unvalidated non-file fields of a create/update request."""

    name: Optional[str] = None
    price: Optional[str] = None
    description: Optional[str] = None
    status: Optional[str] = None


@dataclass(slots=True)
class ProductFields:
    """Validated field values ready to be written to the store."""

    name: Optional[str] = None
    price: Optional[float] = None
    description: Optional[str] = None
    status: Optional[int] = None


@dataclass(slots=True)
class MutationResult:
    product_id: int
    images: list[str] = field(default_factory=list)
