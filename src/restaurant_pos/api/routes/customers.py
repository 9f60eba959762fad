from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from restaurant_pos.crud.customer import (
    find_customer_by_phone,
    find_or_create_customer,
    get_customers,
    update_customer,
    update_customer_stats,
)
from restaurant_pos.db.deps import get_async_session
from restaurant_pos.schemas.customer import CustomerCreate, CustomerRead, CustomerUpdate


router = APIRouter(prefix="/customers", tags=["customers"])


@router.get("/", response_model=List[CustomerRead])
async def list_customers(db: AsyncSession = Depends(get_async_session)):
    return await get_customers(db)


@router.get("/by-phone/{phone}", response_model=CustomerRead)
async def get_customer_by_phone(phone: str, db: AsyncSession = Depends(get_async_session)):
    customer = await find_customer_by_phone(db, phone)
    if not customer:
        raise HTTPException(status_code=404, detail="Customer not found")
    return customer


@router.post("/", response_model=CustomerRead)
async def create_customer_endpoint(customer_in: CustomerCreate, db: AsyncSession = Depends(get_async_session)):
    """
    Создаёт клиента; если телефон уже известен, возвращает существующего.
    """
    return await find_or_create_customer(db, customer_in)


@router.patch("/{customer_id}", response_model=CustomerRead)
async def patch_customer(
    customer_id: int,
    customer_in: CustomerUpdate,
    db: AsyncSession = Depends(get_async_session),
):
    return await update_customer(db, customer_id, customer_in)


@router.post("/{customer_id}/refresh-stats", response_model=CustomerRead)
async def refresh_customer_stats_endpoint(customer_id: int, db: AsyncSession = Depends(get_async_session)):
    """
    Пересчитывает количество заказов и сумму покупок клиента.
    """
    return await update_customer_stats(db, customer_id)
