from sqlalchemy.ext.asyncio import AsyncSession

from database.engine import session_maker


async def get_session() -> AsyncSession:
    async with session_maker() as session:
        yield session
