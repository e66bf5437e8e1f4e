"""SQLAlchemy implementation for the product repository."""

from __future__ import annotations

from typing import Any, Optional, Sequence

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from catalog.db.models import Product
from catalog.core.exceptions import StoreError


class SqlProductRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def count(self) -> int:
        stmt = select(func.count()).select_from(Product)
        try:
            result = await self.session.execute(stmt)
        except SQLAlchemyError as exc:
            raise StoreError("Failed to count products") from exc
        return int(result.scalar_one())

    async def page(self, limit: int, offset: int) -> Sequence[Product]:
        stmt = select(Product).order_by(Product.id.desc()).limit(limit).offset(offset)
        try:
            result = await self.session.execute(stmt)
        except SQLAlchemyError as exc:
            raise StoreError("Failed to load product page") from exc
        return result.scalars().all()

    async def get_by_id(self, product_id: int) -> Product | None:
        stmt = select(Product).where(Product.id == product_id)
        try:
            result = await self.session.execute(stmt)
        except SQLAlchemyError as exc:
            raise StoreError(f"Failed to load product {product_id}") from exc
        return result.scalars().first()

    async def insert(
        self,
        *,
        name: str,
        price: float,
        description: str,
        images: str,
        status: int,
    ) -> int:
        product = Product(
            name=name,
            price=price,
            description=description,
            images=images,
            status=status,
        )
        self.session.add(product)
        try:
            await self.session.flush()
        except SQLAlchemyError as exc:
            raise StoreError("Failed to insert product") from exc
        return int(product.id)

    async def update(
        self,
        product_id: int,
        *,
        name: Optional[str] = None,
        price: Optional[float] = None,
        description: Optional[str] = None,
        images: Optional[str] = None,
        status: Optional[int] = None,
    ) -> int:
        values: dict[str, Any] = {}
        if name is not None:
            values["name"] = name
        if price is not None:
            values["price"] = price
        if description is not None:
            values["description"] = description
        if images is not None:
            values["images"] = images
        if status is not None:
            values["status"] = status
        if not values:
            return 1 if await self.get_by_id(product_id) is not None else 0
        stmt = (
            update(Product)
            .where(Product.id == product_id)
            .values(**values)
            .execution_options(synchronize_session="fetch")
        )
        try:
            result = await self.session.execute(stmt)
        except SQLAlchemyError as exc:
            raise StoreError(f"Failed to update product {product_id}") from exc
        return result.rowcount or 0

    async def delete(self, product_id: int) -> int:
        stmt = delete(Product).where(Product.id == product_id)
        try:
            result = await self.session.execute(stmt)
        except SQLAlchemyError as exc:
            raise StoreError(f"Failed to delete product {product_id}") from exc
        return result.rowcount or 0

    async def commit(self) -> None:
        try:
            await self.session.commit()
        except SQLAlchemyError as exc:
            raise StoreError("Failed to commit transaction") from exc

    async def rollback(self) -> None:
        await self.session.rollback()
