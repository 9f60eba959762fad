import logging
import uuid
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from restaurant_pos.config import settings
from restaurant_pos.crud.customer import find_or_create_customer
from restaurant_pos.crud.menu import get_menu_items_by_ids
from restaurant_pos.crud.settings import get_store_settings
from restaurant_pos.crud.table import get_active_order_for_table, get_table_by_id
from restaurant_pos.crud.utils import commit
from restaurant_pos.exceptions import ConflictError, NotFoundError, ValidationError
from restaurant_pos.models import (
    Order,
    OrderItem,
    OrderStatusEnum,
    OrderTypeEnum,
    TERMINAL_STATUSES,
    User,
)
from restaurant_pos.schemas.customer import CustomerCreate
from restaurant_pos.schemas.order import OrderCreate, OrderItemCreate

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")

# основной путь заказа; cancelled доступен из любого незавершённого статуса
STATUS_PROGRESSION = [
    OrderStatusEnum.pending,
    OrderStatusEnum.preparing,
    OrderStatusEnum.ready,
    OrderStatusEnum.served,
    OrderStatusEnum.completed,
]

# переходы для строгого режима: только вперёд (с пропусками) или отмена
ORDER_TRANSITIONS: Dict[OrderStatusEnum, set] = {
    status: set(STATUS_PROGRESSION[i + 1:]) | {OrderStatusEnum.cancelled}
    for i, status in enumerate(STATUS_PROGRESSION[:-1])
}
ORDER_TRANSITIONS[OrderStatusEnum.completed] = set()
ORDER_TRANSITIONS[OrderStatusEnum.cancelled] = set()


def next_status(status: OrderStatusEnum) -> Optional[OrderStatusEnum]:
    """
    Следующий статус по основному пути (то, что предлагается официанту одной кнопкой).
    """
    if status not in STATUS_PROGRESSION:
        return None
    idx = STATUS_PROGRESSION.index(status)
    if idx + 1 >= len(STATUS_PROGRESSION):
        return None
    return STATUS_PROGRESSION[idx + 1]


def is_transition_allowed(current: OrderStatusEnum, new: OrderStatusEnum, strict: bool) -> bool:
    if current in TERMINAL_STATUSES:
        return False
    if not strict:
        return True
    return new in ORDER_TRANSITIONS[current]


def merge_line_items(items: List[OrderItemCreate]) -> List[OrderItemCreate]:
    """
    Повторное добавление той же позиции увеличивает количество в существующей
    строке, а не создаёт новую. Строки с разными комментариями или разной
    ценой не сливаются: цена каждой строки сохраняется такой, как пришла.
    """
    merged: Dict[Tuple[int, Optional[str], Decimal], OrderItemCreate] = {}
    for item in items:
        price = Decimal(item.price).quantize(CENT, ROUND_HALF_UP)
        key = (item.menu_item_id, item.notes or None, price)
        if key in merged:
            merged[key] = merged[key].model_copy(
                update={"quantity": merged[key].quantity + item.quantity}
            )
        else:
            merged[key] = item.model_copy(update={"price": price, "notes": item.notes or None})
    return list(merged.values())


def calculate_total(items: List[OrderItemCreate]) -> Decimal:
    """
    Сумма заказа: цена x количество по строкам. Скидка сюда не входит,
    она применяется в счёте (см. services.invoice).
    """
    return sum((Decimal(i.price) * i.quantity for i in items), Decimal("0")).quantize(CENT, ROUND_HALF_UP)


def generate_order_number(now: Optional[datetime] = None) -> str:
    now = now or datetime.now(timezone.utc)
    return f"ORD-{now:%Y%m%d}-{uuid.uuid4().hex[:6].upper()}"


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


async def get_orders(
    db: AsyncSession,
    status: Optional[OrderStatusEnum] = None,
    table_id: Optional[int] = None,
    date_from: Optional[datetime] = None,
    date_to: Optional[datetime] = None,
    limit: Optional[int] = None,
    offset: Optional[int] = None,
) -> List[Order]:
    """
    Возвращает список заказов с опциональной фильтрацией по статусу, столу и дате.
    Сортируем по created_at (новые первыми).
    """
    stmt = select(Order).order_by(Order.created_at.desc(), Order.id.desc())

    if status:
        stmt = stmt.where(Order.status == status)
    if table_id is not None:
        stmt = stmt.where(Order.table_id == table_id)
    if date_from:
        stmt = stmt.where(Order.created_at >= date_from)
    if date_to:
        stmt = stmt.where(Order.created_at <= date_to)
    if limit:
        stmt = stmt.limit(limit)
    if offset:
        stmt = stmt.offset(offset)

    result = await db.execute(stmt)
    return result.scalars().unique().all()


async def get_active_orders(db: AsyncSession) -> List[Order]:
    stmt = (
        select(Order)
        .where(Order.status.not_in(TERMINAL_STATUSES))
        .order_by(Order.created_at, Order.id)
    )
    result = await db.execute(stmt)
    return result.scalars().unique().all()


async def get_order_by_id(db: AsyncSession, order_id: int) -> Order:
    """
    Возвращает заказ по ID с подгруженными строками и столом.
    populate_existing перечитывает объект, даже если он уже есть в сессии.
    """
    stmt = select(Order).where(Order.id == order_id).execution_options(populate_existing=True)
    result = await db.execute(stmt)
    order = result.scalars().unique().first()
    if not order:
        raise NotFoundError(f"Order with id={order_id} not found")
    return order


async def create_order(
    db: AsyncSession,
    order_in: OrderCreate,
    require_customer_details: Optional[bool] = None,
) -> Order:
    """
    Создаёт заказ в статусе pending.

    Проверки выполняются до любой записи. Цена строки берётся из запроса как есть
    (цена на момент заказа), название - снимок из меню. Шапка и строки
    пишутся одной транзакцией. Клиент по телефону ищется или создаётся заранее.
    Пересчёт статистики клиента - забота вызывающего (фоновая задача).
    """
    if not order_in.items:
        raise ValidationError("Please add at least one item to the order", title="Empty order")

    if require_customer_details is None:
        require_customer_details = (await get_store_settings(db)).require_customer_details

    customer_name = _clean(order_in.customer_name)
    customer_phone = _clean(order_in.customer_phone)
    if require_customer_details and not (customer_name and customer_phone):
        raise ValidationError(
            "Please provide customer name and phone number",
            title="Customer information required",
        )

    lines = merge_line_items(order_in.items)

    menu = await get_menu_items_by_ids(db, (line.menu_item_id for line in lines))
    missing = sorted({line.menu_item_id for line in lines} - set(menu))
    if missing:
        raise NotFoundError(f"Menu items not found: {', '.join(map(str, missing))}")
    names = {item_id: item.name for item_id, item in menu.items()}

    if order_in.table_id is not None:
        table = await get_table_by_id(db, order_in.table_id)
        active = await get_active_order_for_table(db, table.id)
        if active is not None:
            raise ConflictError(
                f"Table {table.name} already has an active order {active.order_number}",
                title="Table occupied",
                active_order_id=active.id,
            )

    if order_in.created_by is not None and not await db.get(User, order_in.created_by):
        raise NotFoundError(f"User with id={order_in.created_by} not found")

    customer = None
    if customer_phone:
        customer = await find_or_create_customer(
            db,
            CustomerCreate(
                name=customer_name or "Guest",
                phone=customer_phone,
                email=_clean(order_in.customer_email),
            ),
        )

    total = calculate_total(lines)

    order = Order(
        order_number=generate_order_number(),
        table_id=order_in.table_id,
        order_type=OrderTypeEnum.dine_in if order_in.table_id is not None else OrderTypeEnum.takeout,
        customer_id=customer.id if customer else None,
        customer_name=customer_name or (customer.name if customer else None),
        customer_phone=customer_phone,
        created_by=order_in.created_by,
        status=OrderStatusEnum.pending,
        discount_percent=order_in.discount_percent,
        total=total,
        items=[
            OrderItem(
                menu_item_id=line.menu_item_id,
                name=names[line.menu_item_id],
                quantity=line.quantity,
                price=line.price,
                notes=line.notes,
            )
            for line in lines
        ],
    )
    db.add(order)
    await commit(db, "create order")

    logger.info(
        "Created order %s (id=%s, table=%s, total=%s)",
        order.order_number, order.id, order.table_id, order.total,
    )
    return await get_order_by_id(db, order.id)


async def update_order_status(
    db: AsyncSession,
    order_id: int,
    new_status: OrderStatusEnum,
    strict: Optional[bool] = None,
) -> Order:
    """
    Меняет статус заказа.

    Завершённый или отменённый заказ больше не меняется. По умолчанию допускается
    любой целевой статус; в строгом режиме (STRICT_STATUS_TRANSITIONS) - только
    движение вперёд или отмена. Списание склада при завершении не выполняется,
    для этого есть consume_recipe_for_order.
    """
    if strict is None:
        strict = settings.STRICT_STATUS_TRANSITIONS

    order = await get_order_by_id(db, order_id)
    current = OrderStatusEnum(order.status)

    if current == new_status:
        return order

    if current in TERMINAL_STATUSES:
        raise ConflictError(
            f"Order {order.order_number} is already {current.value} and can no longer change",
            title="Order closed",
        )
    if not is_transition_allowed(current, new_status, strict):
        raise ValidationError(
            f"Cannot change order status from {current.value} to {new_status.value}",
            title="Invalid status change",
        )

    order.status = new_status
    if new_status in TERMINAL_STATUSES:
        order.closed_at = datetime.now(timezone.utc)

    await commit(db, f"set order {order_id} status to {new_status.value}")

    if new_status == OrderStatusEnum.completed:
        logger.info(
            "Order %s completed; items not deducted from inventory: %s",
            order.order_number,
            ", ".join(f"{item.name} x{item.quantity}" for item in order.items),
        )
    else:
        logger.info("Order %s status %s -> %s", order.order_number, current.value, new_status.value)

    return await get_order_by_id(db, order_id)
