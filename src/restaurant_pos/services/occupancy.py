"""
Согласование статуса стола с активными заказами.

Занятость стола - вычисляемое значение (см. crud.table.effective_status).
Хранимый статус меняется только явным действием персонала. Единственное
место, где заказ и стол меняются вместе, - освобождение стола с активным
заказом: заказ завершается, затем стол становится available. Это два
отдельных коммита; если второй не прошёл, первый остаётся в силе и
об этом сообщается через PartialUpdateError.
"""
import logging
from typing import Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from restaurant_pos.crud.order import update_order_status
from restaurant_pos.crud.table import (
    annotate_table,
    get_active_order_for_table,
    get_table_by_id,
    save_table_status,
)
from restaurant_pos.exceptions import (
    ConfirmationRequiredError,
    ConflictError,
    PartialUpdateError,
    PersistenceError,
)
from restaurant_pos.models import OrderStatusEnum, TableStatusEnum
from restaurant_pos.schemas.table import TableView

logger = logging.getLogger(__name__)


async def set_table_status(
    db: AsyncSession,
    table_id: int,
    status: TableStatusEnum,
    confirm: bool = False,
) -> Tuple[TableView, Optional[int]]:
    """
    Ручная смена статуса стола.

    Возвращает (стол, id завершённого заказа или None).
    """
    table = await get_table_by_id(db, table_id)
    active = await get_active_order_for_table(db, table_id)

    if active is None or status == TableStatusEnum.occupied:
        table = await save_table_status(db, table, status)
        logger.info("Table %s status set to %s", table.name, status.value)
        return annotate_table(table, active), None

    if status == TableStatusEnum.reserved:
        raise ConflictError(
            f"Table {table.name} has an active order {active.order_number} and cannot be reserved",
            title="Table occupied",
            active_order_id=active.id,
        )

    # status == available при активном заказе
    if not confirm:
        raise ConfirmationRequiredError(
            f"Table {table.name} has an active order {active.order_number}. "
            "Marking it available will complete the order.",
            active_order_id=active.id,
        )

    order_id = active.id
    order_number = active.order_number
    table_name = table.name

    # шаг 1: завершаем заказ; при ошибке стол не трогаем
    await update_order_status(db, order_id, OrderStatusEnum.completed)

    # шаг 2: освобождаем стол
    try:
        table = await get_table_by_id(db, table_id)
        table = await save_table_status(db, table, TableStatusEnum.available)
    except (PersistenceError, ConflictError) as e:
        logger.error(
            "Order %s was completed but table %s could not be made available: %s",
            order_number, table_name, e.detail,
        )
        raise PartialUpdateError(
            f"Order {order_number} was completed, but table {table_name} could not be marked available: {e.detail}",
            completed_order_id=order_id,
            table_id=table_id,
            table_updated=False,
        ) from e

    logger.info("Table %s freed, order %s completed", table_name, order_number)
    return annotate_table(table, None), order_id
