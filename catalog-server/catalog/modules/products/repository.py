"""Repository protocol for product persistence."""

from __future__ import annotations

from typing import Protocol, Sequence

from catalog.db.models import Product as ProductModel


class ProductRepository(Protocol):
    async def count(self) -> int:
        ...

    async def page(self, limit: int, offset: int) -> Sequence[ProductModel]:
        ...

    async def get_by_id(self, product_id: int) -> ProductModel | None:
        ...

    async def insert(
        self,
        *,
        name: str,
        price: float,
        description: str,
        images: str,
        status: int,
    ) -> int:
        ...

    async def update(
        self,
        product_id: int,
        *,
        name: str | None = None,
        price: float | None = None,
        description: str | None = None,
        images: str | None = None,
        status: int | None = None,
    ) -> int:
        ...

    async def delete(self, product_id: int) -> int:
        ...

    async def commit(self) -> None:
        ...

    async def rollback(self) -> None:
        ...
