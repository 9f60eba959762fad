from typing import List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from restaurant_pos.crud.utils import commit
from restaurant_pos.exceptions import ConflictError
from restaurant_pos.models import User
from restaurant_pos.schemas.user import UserCreate


async def get_users(db: AsyncSession) -> List[User]:
    result = await db.execute(select(User).order_by(User.id))
    return result.scalars().all()


async def create_user(db: AsyncSession, user_in: UserCreate) -> User:
    existing = await db.execute(select(User).where(User.username == user_in.username))
    if existing.scalars().first():
        raise ConflictError(f"User '{user_in.username}' already exists")

    user = User(username=user_in.username, role=user_in.role)
    db.add(user)
    await commit(db, "create user")
    return user
