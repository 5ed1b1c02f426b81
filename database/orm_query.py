from typing import Iterable

from sqlalchemy import select, update, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from database.models import Product, ProductImage


############ Каталог: чтение ########################

def _product_filters(
    category: str | None = None,
    vendor: str | None = None,
    sku: str | None = None,
    active_only: bool = False,
) -> list:
    conditions = []
    if category:
        conditions.append(Product.category == category)
    if vendor:
        conditions.append(Product.vendor == vendor)
    if sku:
        conditions.append(Product.sku.like(f"%{sku}%"))
    if active_only:
        conditions.append(Product.is_active.is_(True))
    return conditions


async def orm_get_products(
    session: AsyncSession,
    category: str | None = None,
    vendor: str | None = None,
    sku: str | None = None,
    active_only: bool = False,
    page: int = 1,
    limit: int = 50,
) -> tuple[list[Product], int]:
    """Страница товаров (свежие сверху) и общее число под фильтр."""
    conditions = _product_filters(category, vendor, sku, active_only)

    query = (
        select(Product)
        .where(*conditions)
        .options(selectinload(Product.images))
        .execution_options(populate_existing=True)
        .order_by(Product.last_updated.desc(), Product.id)
        .limit(limit)
        .offset((page - 1) * limit)
    )
    result = await session.execute(query)
    items = list(result.scalars().all())

    total = await session.execute(select(func.count(Product.id)).where(*conditions))
    return items, total.scalar() or 0


async def orm_get_product(session: AsyncSession, product_id: str) -> Product | None:
    query = (
        select(Product)
        .where(Product.id == product_id)
        .options(selectinload(Product.images))
        .execution_options(populate_existing=True)
    )
    result = await session.execute(query)
    return result.scalar()


############ Каталог: запись ########################

async def orm_add_product(session: AsyncSession, data: dict) -> Product:
    obj = Product(
        id=data["id"],
        name=data["name"],
        sku=data.get("sku"),
        vendor=data.get("vendor", "SignatureSolar"),
        category=data.get("category"),
        unit=data.get("unit", "ea"),
        price=data.get("price"),
        currency=data.get("currency", "USD"),
        url=data.get("url"),
        primary_image_url=data.get("primary_image_url"),
        is_active=data.get("is_active", True),
    )
    session.add(obj)
    await session.commit()
    return obj


async def orm_add_product_images(
    session: AsyncSession, product_id: str, images: Iterable
) -> list[ProductImage]:
    """Добавляет изображения после уже существующих, продолжая нумерацию позиций."""
    last = await session.execute(
        select(func.max(ProductImage.position)).where(ProductImage.product_id == product_id)
    )
    max_position = last.scalar()
    position = 0 if max_position is None else max_position + 1

    rows = []
    for image in images:
        row = ProductImage(
            product_id=product_id,
            url=image.url,
            local_path=image.local_path,
            alt=getattr(image, "alt", None),
            is_primary=bool(image.is_primary),
            position=position,
            mime_type=getattr(image, "mime_type", None),
            file_size=getattr(image, "file_size", None),
        )
        session.add(row)
        rows.append(row)
        position += 1

    await session.commit()
    return rows


async def orm_set_product_primary_image_url(
    session: AsyncSession, product_id: str, url: str | None
) -> None:
    query = (
        update(Product)
        .where(Product.id == product_id)
        .values(primary_image_url=url, last_updated=func.now())
    )
    await session.execute(query)
    await session.commit()
