from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List

from ..crud.user import create_user, get_users
from ..db.deps import get_async_session
from ..schemas.user import UserCreate, UserOut

router = APIRouter(prefix="/users", tags=["users"])

@router.get("/", response_model=List[UserOut])
async def list_users(session: AsyncSession = Depends(get_async_session)):
    return await get_users(session)


@router.post("/", response_model=UserOut, status_code=201)
async def create_user_endpoint(user_in: UserCreate, session: AsyncSession = Depends(get_async_session)):
    return await create_user(session, user_in)
