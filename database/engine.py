import os

from dotenv import load_dotenv
load_dotenv()  # загрузит переменные из .env

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine


db_url = os.getenv("DB_URL")
if not db_url:
    raise RuntimeError("DB_URL environment variable is not set")

echo = os.getenv("DB_ECHO", "").lower() in {"1", "true", "yes"}
engine = create_async_engine(db_url, echo=echo)

session_maker = async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)
