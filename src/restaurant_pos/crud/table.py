from typing import Dict, List, Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from restaurant_pos.crud.utils import commit
from restaurant_pos.exceptions import ConflictError, NotFoundError
from restaurant_pos.models import DiningTable, Order, TableSection, TableStatusEnum, TERMINAL_STATUSES
from restaurant_pos.schemas.table import SectionCreate, TableCreate, TableView


async def get_sections(db: AsyncSession) -> List[TableSection]:
    stmt = (
        select(TableSection)
        .options(selectinload(TableSection.tables))
        .order_by(TableSection.order_index, TableSection.name)
        .execution_options(populate_existing=True)
    )
    result = await db.execute(stmt)
    return result.scalars().all()


async def get_section_by_id(db: AsyncSession, section_id: int) -> TableSection:
    section = await db.get(TableSection, section_id)
    if not section:
        raise NotFoundError(f"Section with id={section_id} not found")
    return section


async def create_section(db: AsyncSession, section_in: SectionCreate) -> TableSection:
    existing = await db.execute(select(TableSection).where(TableSection.name == section_in.name))
    if existing.scalars().first():
        raise ConflictError(f"Section '{section_in.name}' already exists")

    section = TableSection(name=section_in.name, order_index=section_in.order_index)
    db.add(section)
    await commit(db, "create section")
    return section


async def rename_section(db: AsyncSession, section_id: int, name: str) -> TableSection:
    """
    Переименовывает секцию. Столы видят новое имя сразу: оно берётся через связь.
    """
    section = await get_section_by_id(db, section_id)
    clash = await db.execute(
        select(TableSection).where(TableSection.name == name, TableSection.id != section_id)
    )
    if clash.scalars().first():
        raise ConflictError(f"Section '{name}' already exists")

    section.name = name
    await commit(db, "rename section")
    return section


async def get_tables(db: AsyncSession) -> List[DiningTable]:
    stmt = select(DiningTable).order_by(DiningTable.name).execution_options(populate_existing=True)
    result = await db.execute(stmt)
    return result.scalars().all()


async def get_table_by_id(db: AsyncSession, table_id: int) -> DiningTable:
    stmt = select(DiningTable).where(DiningTable.id == table_id).execution_options(populate_existing=True)
    table = (await db.execute(stmt)).scalars().first()
    if not table:
        raise NotFoundError(f"Table with id={table_id} not found")
    return table


async def create_table(db: AsyncSession, table_in: TableCreate) -> DiningTable:
    # секция обязательна
    await get_section_by_id(db, table_in.section_id)

    table = DiningTable(
        name=table_in.name,
        capacity=table_in.capacity,
        section_id=table_in.section_id,
        status=TableStatusEnum.available,
        position_x=table_in.position_x,
        position_y=table_in.position_y,
    )
    db.add(table)
    await commit(db, "create table")
    return await get_table_by_id(db, table.id)


async def save_table_status(db: AsyncSession, table: DiningTable, status: TableStatusEnum) -> DiningTable:
    table.status = status
    await commit(db, f"set table {table.id} status to {status.value}")
    return table


async def update_table_position(db: AsyncSession, table_id: int, x: float, y: float) -> DiningTable:
    """
    Сохраняет положение стола на схеме зала. Побеждает последняя запись:
    обновление идёт мимо версии строки и не конфликтует со сменой статуса.
    """
    await get_table_by_id(db, table_id)
    stmt = (
        update(DiningTable)
        .where(DiningTable.id == table_id)
        .values(position_x=x, position_y=y)
        .execution_options(synchronize_session=False)
    )
    await db.execute(stmt)
    await commit(db, "move table")
    return await get_table_by_id(db, table_id)


async def get_active_orders_by_table(db: AsyncSession) -> Dict[int, Order]:
    """
    Активные заказы (не завершённые и не отменённые), сгруппированные по столу.
    Если на столе их несколько, берётся самый ранний.
    """
    stmt = (
        select(Order)
        .where(Order.table_id.is_not(None))
        .where(Order.status.not_in(TERMINAL_STATUSES))
        .order_by(Order.created_at, Order.id)
    )
    result = await db.execute(stmt)
    by_table: Dict[int, Order] = {}
    for order in result.scalars().all():
        by_table.setdefault(order.table_id, order)
    return by_table


async def get_active_order_for_table(db: AsyncSession, table_id: int) -> Optional[Order]:
    stmt = (
        select(Order)
        .where(Order.table_id == table_id)
        .where(Order.status.not_in(TERMINAL_STATUSES))
        .order_by(Order.created_at, Order.id)
        .limit(1)
        .execution_options(populate_existing=True)
    )
    result = await db.execute(stmt)
    return result.scalars().first()


def effective_status(table: DiningTable, active_order: Optional[Order]) -> TableStatusEnum:
    """
    Занятость выводится из наличия активного заказа, независимо от
    сохранённого статуса. Результат в БД не записывается.
    """
    if active_order is not None:
        return TableStatusEnum.occupied
    return table.status


def annotate_table(table: DiningTable, active_order: Optional[Order]) -> TableView:
    return TableView(
        id=table.id,
        name=table.name,
        capacity=table.capacity,
        section_id=table.section_id,
        section_name=table.section_name,
        status=table.status,
        position_x=table.position_x,
        position_y=table.position_y,
        effective_status=effective_status(table, active_order),
        active_order_id=active_order.id if active_order else None,
    )


async def list_tables(db: AsyncSession) -> List[TableView]:
    tables = await get_tables(db)
    active = await get_active_orders_by_table(db)
    return [annotate_table(t, active.get(t.id)) for t in tables]


async def get_table_view(db: AsyncSession, table_id: int) -> TableView:
    table = await get_table_by_id(db, table_id)
    return annotate_table(table, await get_active_order_for_table(db, table_id))
