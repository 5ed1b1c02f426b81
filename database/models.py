from sqlalchemy import (
    DateTime,
    ForeignKey,
    Numeric,
    String,
    Text,
    func,
    Boolean, Integer,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    created: Mapped[DateTime] = mapped_column(
        DateTime,
        default=func.now(),
        server_default=func.now(),
    )
    updated: Mapped[DateTime] = mapped_column(
        DateTime,
        default=func.now(),
        onupdate=func.now(),
        server_default=func.now(),
    )


class Product(Base):
    __tablename__ = 'product'

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    sku: Mapped[str | None] = mapped_column(String(100), nullable=True)
    vendor: Mapped[str] = mapped_column(String(50), nullable=False, default='SignatureSolar')
    category: Mapped[str | None] = mapped_column(String(150), nullable=True)
    unit: Mapped[str] = mapped_column(String(10), default='ea')
    price: Mapped[float | None] = mapped_column(Numeric(12, 2), nullable=True)
    currency: Mapped[str] = mapped_column(String(3), default='USD')
    url: Mapped[str | None] = mapped_column(Text, nullable=True)
    primary_image_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    last_updated: Mapped[DateTime] = mapped_column(
        DateTime,
        default=func.now(),
        server_default=func.now(),
    )

    images: Mapped[list['ProductImage']] = relationship(
        back_populates='product',
        order_by='ProductImage.position',
        cascade='all, delete-orphan',
    )


class ProductImage(Base):
    __tablename__ = 'product_image'

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    product_id: Mapped[str] = mapped_column(
        ForeignKey('product.id', ondelete='CASCADE'), nullable=False
    )
    url: Mapped[str | None] = mapped_column(Text, nullable=True)
    local_path: Mapped[str | None] = mapped_column(Text, nullable=True)
    alt: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_primary: Mapped[bool] = mapped_column(Boolean, default=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    mime_type: Mapped[str | None] = mapped_column(String(50), nullable=True)
    file_size: Mapped[int | None] = mapped_column(Integer, nullable=True)

    product: Mapped['Product'] = relationship(back_populates='images')
