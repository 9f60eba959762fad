from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from restaurant_pos.crud.settings import get_store_settings, update_store_settings
from restaurant_pos.db.deps import get_async_session
from restaurant_pos.schemas.settings import StoreSettingsRead, StoreSettingsUpdate


router = APIRouter(prefix="/settings", tags=["settings"])


@router.get("/", response_model=StoreSettingsRead)
async def read_settings(db: AsyncSession = Depends(get_async_session)):
    return await get_store_settings(db)


@router.put("/", response_model=StoreSettingsRead)
async def save_settings(settings_in: StoreSettingsUpdate, db: AsyncSession = Depends(get_async_session)):
    return await update_store_settings(db, settings_in)
