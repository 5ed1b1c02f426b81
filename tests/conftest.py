"""
Фикстуры для асинхронных тестов с чистой SQLite (aiosqlite).
Создаёт таблицы на каждый тест и выдаёт новую сессию.
"""

import sys
from pathlib import Path
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

# Добавляем корень проекта в sys.path для импортов пакета database и прочих модулей
sys.path.append(str(Path(__file__).resolve().parents[1]))

from database.models import Base, Product, ProductImage


@pytest_asyncio.fixture(scope="function")
async def engine():
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    try:
        yield engine
    finally:
        await engine.dispose()


@pytest_asyncio.fixture
async def session(engine):
    maker = async_sessionmaker(bind=engine, expire_on_commit=False, class_=AsyncSession)
    async with maker() as s:
        yield s


@pytest_asyncio.fixture
async def sample_data(session: AsyncSession):
    """Три товара: с локальным главным фото, только с удалённой ссылкой и без фото."""
    inverter = Product(
        id="inv-6000",
        name="Hybrid Inverter 6000W",
        sku="INV-6000",
        category="inverters",
        price=1499.99,
        primary_image_url="https://cdn.example.com/inv-6000.jpg",
    )
    inverter.images = [
        ProductImage(url="https://cdn.example.com/inv-side.jpg", local_path="public/images/products/full/inv-6000/side.jpg", position=0),
        ProductImage(url="https://cdn.example.com/inv-6000.jpg", local_path="images/products/full/inv-6000/main.jpg", is_primary=True, position=1),
    ]

    battery = Product(
        id="bat-48v",
        name="48V Lithium Battery",
        sku="BAT-48V-100",
        category="batteries",
        price=2100,
    )
    battery.images = [ProductImage(url="https://cdn.example.com/bat.jpg", position=0)]

    cable = Product(
        id="cab-10",
        name="PV Cable 10AWG",
        sku="CAB-10",
        category="cables",
        unit="ft",
        price=1.25,
        is_active=False,
    )

    session.add_all([inverter, battery, cable])
    await session.commit()
    return inverter, battery, cable
