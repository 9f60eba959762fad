from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker

from restaurant_pos.config import settings

# Асинхронный движок
engine = create_async_engine(settings.DATABASE_URL, echo=settings.DATABASE_ECHO, future=True)

# Фабрика сессий
AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
)
