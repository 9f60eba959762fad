from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from restaurant_pos.crud.inventory import (
    adjust_quantity,
    create_inventory_item,
    get_inventory,
    get_inventory_item_by_id,
    get_low_stock_items,
    get_transactions,
    update_inventory_item,
)
from restaurant_pos.db.deps import get_async_session
from restaurant_pos.schemas.inventory import (
    InventoryAdjust,
    InventoryItemCreate,
    InventoryItemRead,
    InventoryItemUpdate,
    InventoryTransactionRead,
)


router = APIRouter(prefix="/inventory", tags=["inventory"])


@router.get("/", response_model=List[InventoryItemRead])
async def list_inventory(db: AsyncSession = Depends(get_async_session)):
    return await get_inventory(db)


@router.get("/low-stock", response_model=List[InventoryItemRead])
async def list_low_stock(db: AsyncSession = Depends(get_async_session)):
    """
    Позиции на пороге дозаказа или ниже.
    """
    return await get_low_stock_items(db)


@router.post("/", response_model=InventoryItemRead, status_code=201)
async def create_inventory_item_endpoint(item_in: InventoryItemCreate, db: AsyncSession = Depends(get_async_session)):
    return await create_inventory_item(db, item_in)


@router.get("/{item_id}", response_model=InventoryItemRead)
async def get_inventory_item(item_id: int, db: AsyncSession = Depends(get_async_session)):
    return await get_inventory_item_by_id(db, item_id)


@router.patch("/{item_id}", response_model=InventoryItemRead)
async def patch_inventory_item(
    item_id: int,
    item_in: InventoryItemUpdate,
    db: AsyncSession = Depends(get_async_session),
):
    """
    Обновление карточки. Изменение остатка попадает в журнал.
    """
    return await update_inventory_item(db, item_id, item_in)


@router.post("/{item_id}/adjust", response_model=InventoryTransactionRead, status_code=201)
async def adjust_inventory_endpoint(
    item_id: int,
    adjust_in: InventoryAdjust,
    db: AsyncSession = Depends(get_async_session),
):
    """
    Приход / расход / корректировка остатка с записью в журнал.
    """
    return await adjust_quantity(db, item_id, adjust_in)


@router.get("/{item_id}/transactions", response_model=List[InventoryTransactionRead])
async def list_transactions(
    item_id: int,
    limit: int = Query(100, ge=1, le=1000),
    db: AsyncSession = Depends(get_async_session),
):
    return await get_transactions(db, item_id, limit=limit)
