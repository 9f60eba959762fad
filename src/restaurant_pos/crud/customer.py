import logging
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from restaurant_pos.crud.utils import commit
from restaurant_pos.exceptions import ConflictError, NotFoundError
from restaurant_pos.models import Customer, Order, OrderStatusEnum
from restaurant_pos.schemas.customer import CustomerCreate, CustomerUpdate

logger = logging.getLogger(__name__)


async def get_customers(db: AsyncSession) -> List[Customer]:
    result = await db.execute(select(Customer).order_by(Customer.name))
    return result.scalars().all()


async def get_customer_by_id(db: AsyncSession, customer_id: int) -> Customer:
    customer = await db.get(Customer, customer_id)
    if not customer:
        raise NotFoundError(f"Customer with id={customer_id} not found")
    return customer


async def find_customer_by_phone(db: AsyncSession, phone: str) -> Optional[Customer]:
    result = await db.execute(select(Customer).where(Customer.phone == phone))
    return result.scalars().first()


async def find_or_create_customer(db: AsyncSession, customer_in: CustomerCreate) -> Customer:
    """
    Ищет клиента по телефону, при отсутствии создаёт.

    Уникальность телефона держит индекс в БД: если параллельный запрос успел
    вставить того же клиента, вставка падает и мы перечитываем его строку.
    """
    existing = await find_customer_by_phone(db, customer_in.phone)
    if existing:
        return existing

    customer = Customer(
        name=customer_in.name,
        phone=customer_in.phone,
        email=customer_in.email,
        address=customer_in.address,
        notes=customer_in.notes,
        total_orders=0,
        total_spent=Decimal("0"),
    )
    db.add(customer)
    try:
        await commit(db, "create customer")
    except ConflictError:
        logger.info("Customer with phone %s was created concurrently, reusing it", customer_in.phone)
        existing = await find_customer_by_phone(db, customer_in.phone)
        if existing is None:
            raise
        return existing

    logger.info("Created customer id=%s", customer.id)
    return customer


async def update_customer(db: AsyncSession, customer_id: int, customer_in: CustomerUpdate) -> Customer:
    customer = await get_customer_by_id(db, customer_id)
    for key, value in customer_in.model_dump(exclude_unset=True).items():
        setattr(customer, key, value)
    await commit(db, "update customer")
    await db.refresh(customer)
    return customer


async def update_customer_stats(db: AsyncSession, customer_id: int) -> Customer:
    """
    Пересчитывает агрегаты клиента по его заказам (отменённые не считаются).
    """
    customer = await get_customer_by_id(db, customer_id)

    stmt = (
        select(
            func.count(Order.id).label("total_orders"),
            func.sum(Order.total).label("total_spent"),
        )
        .where(Order.customer_id == customer_id)
        .where(Order.status != OrderStatusEnum.cancelled)
    )
    row = (await db.execute(stmt)).first()

    customer.total_orders = int(row.total_orders or 0)
    customer.total_spent = Decimal(str(row.total_spent or 0)).quantize(Decimal("0.01"))
    await commit(db, "update customer stats")
    await db.refresh(customer)
    return customer
