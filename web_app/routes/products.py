import logging
import math
import os

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, ConfigDict
from sqlalchemy.ext.asyncio import AsyncSession

from database.models import Product
from database.orm_query import orm_get_product, orm_get_products
from utils.product_media import DEFAULT_PLACEHOLDER, resolve_product_image_src

from ..dependencies import get_session

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/products")


class ProductImageOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    url: str | None = None
    local_path: str | None = None
    alt: str | None = None
    is_primary: bool = False
    position: int = 0


def get_placeholder() -> str:
    return os.getenv("IMAGE_PLACEHOLDER") or DEFAULT_PLACEHOLDER


def serialize_product(product: Product, placeholder: str = DEFAULT_PLACEHOLDER) -> dict:
    """Поля товара для JSON + ``image_src``, уже выбранный для отображения."""
    return {
        "id": product.id,
        "name": product.name,
        "sku": product.sku,
        "vendor": product.vendor,
        "category": product.category,
        "unit": product.unit,
        "price": float(product.price) if product.price is not None else None,
        "currency": product.currency,
        "url": product.url,
        "is_active": product.is_active,
        "last_updated": product.last_updated.isoformat() if product.last_updated else None,
        "primary_image_url": product.primary_image_url,
        "images": [
            ProductImageOut.model_validate(image).model_dump() for image in product.images
        ],
        "image_src": resolve_product_image_src(
            primary_image_url=product.primary_image_url,
            images=product.images,
            placeholder=placeholder,
        ),
    }


@router.get("")
async def list_products(
    category: str | None = None,
    vendor: str | None = None,
    sku: str | None = None,
    active_only: bool = False,
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=100),
    session: AsyncSession = Depends(get_session),
):
    logger.info(
        "Fetching products category=%s vendor=%s sku=%s page=%s limit=%s",
        category, vendor, sku, page, limit,
    )
    items, total = await orm_get_products(
        session,
        category=category,
        vendor=vendor,
        sku=sku,
        active_only=active_only,
        page=page,
        limit=limit,
    )
    placeholder = get_placeholder()
    return {
        "success": True,
        "data": {
            "items": [serialize_product(p, placeholder) for p in items],
            "pagination": {
                "page": page,
                "limit": limit,
                "total": total,
                "total_pages": math.ceil(total / limit),
            },
        },
    }


@router.get("/{product_id}")
async def product_detail(
    product_id: str,
    session: AsyncSession = Depends(get_session),
):
    product = await orm_get_product(session, product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return {"success": True, "data": serialize_product(product, get_placeholder())}
