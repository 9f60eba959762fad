from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Path, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from restaurant_pos.crud.inventory import consume_recipe_for_order
from restaurant_pos.crud.order import create_order, get_active_orders, get_order_by_id, get_orders
from restaurant_pos.crud.order import update_order_status
from restaurant_pos.crud.settings import get_store_settings
from restaurant_pos.db.deps import get_async_session, get_session_factory
from restaurant_pos.models import OrderStatusEnum, TERMINAL_STATUSES
from restaurant_pos.schemas.inventory import InventoryTransactionRead
from restaurant_pos.schemas.invoice import Invoice
from restaurant_pos.schemas.order import OrderCreate, OrderRead, OrderStatusUpdate
from restaurant_pos.services.customer_stats import refresh_customer_stats
from restaurant_pos.services.invoice import build_invoice, render_invoice_pdf


router = APIRouter(prefix="/orders", tags=["orders"])


@router.get("/", response_model=List[OrderRead])
async def list_orders(
    status: Optional[OrderStatusEnum] = Query(None, description="Фильтр по статусу"),
    table_id: Optional[int] = Query(None, description="Фильтр по столу"),
    date_from: Optional[datetime] = Query(None, description="Начальная дата"),
    date_to: Optional[datetime] = Query(None, description="Конечная дата"),
    limit: Optional[int] = Query(None, description="Количество записей для вывода"),
    offset: Optional[int] = Query(None, description="Смещение для пагинации"),
    db: AsyncSession = Depends(get_async_session),
):
    """
    Возвращает список заказов.
    Поддерживает фильтрацию по статусу, столу и диапазону дат, пагинацию.
    """
    orders = await get_orders(
        db, status=status, table_id=table_id, date_from=date_from, date_to=date_to, limit=limit, offset=offset
    )
    return [OrderRead.from_orm_with_items(o) for o in orders]


@router.get("/active", response_model=List[OrderRead])
async def list_active_orders(db: AsyncSession = Depends(get_async_session)):
    """
    Незавершённые и неотменённые заказы, старые первыми.
    """
    return [OrderRead.from_orm_with_items(o) for o in await get_active_orders(db)]


@router.get("/{order_id}", response_model=OrderRead)
async def get_order(
    order_id: int = Path(..., description="ID заказа"),
    db: AsyncSession = Depends(get_async_session),
):
    """
    Возвращает детализацию заказа по id.
    """
    return OrderRead.from_orm_with_items(await get_order_by_id(db, order_id))


@router.post("/", response_model=OrderRead, status_code=201)
async def create_order_endpoint(
    order_in: OrderCreate,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_async_session),
    session_factory: async_sessionmaker = Depends(get_session_factory),
):
    """
    Создаёт заказ. Статистика клиента пересчитывается в фоне после ответа.
    """
    order = await create_order(db, order_in)
    if order.customer_id is not None:
        background_tasks.add_task(refresh_customer_stats, session_factory, order.customer_id)
    return OrderRead.from_orm_with_items(order)


@router.patch("/{order_id}/status", response_model=OrderRead)
async def update_order_status_endpoint(
    order_id: int,
    status_in: OrderStatusUpdate,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_async_session),
    session_factory: async_sessionmaker = Depends(get_session_factory),
):
    """
    Смена статуса заказа. Завершённые и отменённые заказы не меняются.
    """
    order = await update_order_status(db, order_id, status_in.status)
    if order.customer_id is not None and order.status in TERMINAL_STATUSES:
        background_tasks.add_task(refresh_customer_stats, session_factory, order.customer_id)
    return OrderRead.from_orm_with_items(order)


@router.post("/{order_id}/consume-inventory", response_model=List[InventoryTransactionRead])
async def consume_inventory_endpoint(order_id: int, db: AsyncSession = Depends(get_async_session)):
    """
    Списывает со склада ингредиенты по рецептам позиций заказа (один раз на заказ).
    """
    return await consume_recipe_for_order(db, order_id)


@router.get("/{order_id}/invoice", response_model=Invoice)
async def get_invoice(order_id: int, db: AsyncSession = Depends(get_async_session)):
    """
    Счёт по заказу в виде данных.
    """
    order = await get_order_by_id(db, order_id)
    return build_invoice(order, await get_store_settings(db))


@router.get("/{order_id}/invoice.pdf", response_class=Response)
async def get_invoice_pdf(order_id: int, db: AsyncSession = Depends(get_async_session)):
    """
    Счёт по заказу для печати (PDF).
    """
    order = await get_order_by_id(db, order_id)
    invoice = build_invoice(order, await get_store_settings(db))
    pdf = render_invoice_pdf(invoice)
    return Response(
        content=pdf,
        media_type="application/pdf",
        headers={"Content-Disposition": f'inline; filename="invoice-{invoice.order_number}.pdf"'},
    )
