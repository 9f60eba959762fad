from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from restaurant_pos.crud.menu import (
    create_category,
    create_menu_item,
    delete_menu_item,
    get_categories,
    get_menu_item_by_id,
    get_menu_items,
    update_menu_item,
)
from restaurant_pos.db.deps import get_async_session
from restaurant_pos.schemas.menu import CategoryCreate, CategoryRead, MenuItemCreate, MenuItemRead, MenuItemUpdate


router = APIRouter(prefix="/menu", tags=["menu"])


@router.get("/categories", response_model=List[CategoryRead])
async def list_categories(db: AsyncSession = Depends(get_async_session)):
    return await get_categories(db)


@router.post("/categories", response_model=CategoryRead, status_code=201)
async def create_category_endpoint(category_in: CategoryCreate, db: AsyncSession = Depends(get_async_session)):
    return await create_category(db, category_in)


@router.get("/items", response_model=List[MenuItemRead])
async def list_menu_items(
    category_id: Optional[int] = Query(None, description="Фильтр по категории"),
    available_only: bool = Query(False, description="Только доступные для заказа"),
    db: AsyncSession = Depends(get_async_session),
):
    return await get_menu_items(db, category_id=category_id, available_only=available_only)


@router.post("/items", response_model=MenuItemRead, status_code=201)
async def create_menu_item_endpoint(item_in: MenuItemCreate, db: AsyncSession = Depends(get_async_session)):
    return await create_menu_item(db, item_in)


@router.get("/items/{menu_item_id}", response_model=MenuItemRead)
async def get_menu_item(menu_item_id: int, db: AsyncSession = Depends(get_async_session)):
    return await get_menu_item_by_id(db, menu_item_id)


@router.patch("/items/{menu_item_id}", response_model=MenuItemRead)
async def patch_menu_item(
    menu_item_id: int,
    item_in: MenuItemUpdate,
    db: AsyncSession = Depends(get_async_session),
):
    """
    Частичное обновление позиции меню.
    """
    return await update_menu_item(db, menu_item_id, item_in)


@router.delete("/items/{menu_item_id}", status_code=204)
async def remove_menu_item(menu_item_id: int, db: AsyncSession = Depends(get_async_session)):
    """
    Удаляет позицию меню.
    """
    deleted = await delete_menu_item(db, menu_item_id)
    if not deleted:
        raise HTTPException(status_code=404, detail="Menu item not found")
