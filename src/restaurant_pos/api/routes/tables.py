from typing import List

from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from restaurant_pos.crud.order import get_order_by_id
from restaurant_pos.crud.table import (
    annotate_table,
    create_section,
    create_table,
    get_active_orders_by_table,
    get_sections,
    get_table_view,
    list_tables,
    rename_section,
    update_table_position,
)
from restaurant_pos.db.deps import get_async_session, get_session_factory
from restaurant_pos.schemas.table import (
    SectionCreate,
    SectionRead,
    SectionUpdate,
    SectionWithTables,
    TableCreate,
    TablePositionUpdate,
    TableStatusResult,
    TableStatusUpdate,
    TableView,
)
from restaurant_pos.services.customer_stats import refresh_customer_stats
from restaurant_pos.services.occupancy import set_table_status


router = APIRouter(prefix="/tables", tags=["tables"])


@router.get("/", response_model=List[TableView])
async def list_tables_endpoint(db: AsyncSession = Depends(get_async_session)):
    """
    Столы с вычисленной занятостью (effective_status) и id активного заказа.
    """
    return await list_tables(db)


@router.post("/", response_model=TableView, status_code=201)
async def create_table_endpoint(table_in: TableCreate, db: AsyncSession = Depends(get_async_session)):
    table = await create_table(db, table_in)
    return annotate_table(table, None)


@router.get("/sections", response_model=List[SectionWithTables])
async def list_sections_endpoint(db: AsyncSession = Depends(get_async_session)):
    """
    Секции зала со своими столами.
    """
    sections = await get_sections(db)
    active = await get_active_orders_by_table(db)
    return [
        SectionWithTables(
            id=s.id,
            name=s.name,
            order_index=s.order_index,
            created_at=s.created_at,
            tables=[annotate_table(t, active.get(t.id)) for t in s.tables],
        )
        for s in sections
    ]


@router.post("/sections", response_model=SectionRead, status_code=201)
async def create_section_endpoint(section_in: SectionCreate, db: AsyncSession = Depends(get_async_session)):
    return await create_section(db, section_in)


@router.patch("/sections/{section_id}", response_model=SectionRead)
async def rename_section_endpoint(
    section_id: int, section_in: SectionUpdate, db: AsyncSession = Depends(get_async_session)
):
    return await rename_section(db, section_id, section_in.name)


@router.get("/{table_id}", response_model=TableView)
async def get_table_endpoint(table_id: int, db: AsyncSession = Depends(get_async_session)):
    return await get_table_view(db, table_id)


@router.patch("/{table_id}/status", response_model=TableStatusResult)
async def set_table_status_endpoint(
    table_id: int,
    status_in: TableStatusUpdate,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_async_session),
    session_factory: async_sessionmaker = Depends(get_session_factory),
):
    """
    Ручная смена статуса стола.
    Освобождение стола с активным заказом требует confirm=true и завершает заказ.
    """
    table, completed_order_id = await set_table_status(db, table_id, status_in.status, status_in.confirm)
    if completed_order_id is not None:
        order = await get_order_by_id(db, completed_order_id)
        if order.customer_id is not None:
            background_tasks.add_task(refresh_customer_stats, session_factory, order.customer_id)
    return TableStatusResult(table=table, completed_order_id=completed_order_id)


@router.patch("/{table_id}/position", response_model=TableView)
async def update_table_position_endpoint(
    table_id: int,
    position_in: TablePositionUpdate,
    db: AsyncSession = Depends(get_async_session),
):
    """
    Перемещение стола на схеме зала.
    """
    await update_table_position(db, table_id, position_in.position_x, position_in.position_y)
    return await get_table_view(db, table_id)
