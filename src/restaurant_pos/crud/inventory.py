import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from restaurant_pos.crud.utils import commit
from restaurant_pos.exceptions import ConflictError, NotFoundError, ValidationError
from restaurant_pos.models import (
    InventoryItem,
    InventoryTransaction,
    Order,
    OrderStatusEnum,
    Recipe,
    TransactionTypeEnum,
)
from restaurant_pos.schemas.inventory import InventoryAdjust, InventoryItemCreate, InventoryItemUpdate

logger = logging.getLogger(__name__)


async def get_inventory(db: AsyncSession) -> List[InventoryItem]:
    result = await db.execute(select(InventoryItem).order_by(InventoryItem.name))
    return result.scalars().all()


async def get_low_stock_items(db: AsyncSession) -> List[InventoryItem]:
    """
    Позиции, у которых остаток на пороге дозаказа или ниже (quantity <= threshold).
    """
    stmt = (
        select(InventoryItem)
        .where(InventoryItem.quantity <= InventoryItem.threshold)
        .order_by(InventoryItem.name)
    )
    result = await db.execute(stmt)
    return result.scalars().all()


async def get_inventory_item_by_id(db: AsyncSession, item_id: int) -> InventoryItem:
    stmt = select(InventoryItem).where(InventoryItem.id == item_id).execution_options(populate_existing=True)
    item = (await db.execute(stmt)).scalars().first()
    if not item:
        raise NotFoundError(f"Inventory item with id={item_id} not found")
    return item


async def create_inventory_item(db: AsyncSession, item_in: InventoryItemCreate) -> InventoryItem:
    item = InventoryItem(**item_in.model_dump())
    db.add(item)
    await commit(db, "create inventory item")
    return item


def _record_change(
    db: AsyncSession,
    item: InventoryItem,
    new_quantity: Decimal,
    transaction_type: TransactionTypeEnum,
    notes: Optional[str] = None,
    created_by: Optional[int] = None,
) -> InventoryTransaction:
    """
    Меняет остаток и добавляет ровно одну запись в журнал. Коммит - на вызывающем.
    """
    if new_quantity < 0:
        raise ValidationError(
            f"Not enough {item.name} in stock: {item.quantity} {item.unit} available",
            title="Insufficient stock",
        )
    transaction = InventoryTransaction(
        inventory_id=item.id,
        previous_quantity=item.quantity,
        new_quantity=new_quantity,
        transaction_type=transaction_type,
        notes=notes,
        created_by=created_by,
    )
    item.quantity = new_quantity
    db.add(transaction)
    return transaction


async def update_inventory_item(db: AsyncSession, item_id: int, item_in: InventoryItemUpdate) -> InventoryItem:
    """
    Обновляет карточку склада. Изменение остатка пишется в журнал как adjustment.
    """
    item = await get_inventory_item_by_id(db, item_id)
    update_data = item_in.model_dump(exclude_unset=True)
    notes = update_data.pop("notes", None)
    new_quantity = update_data.pop("quantity", None)

    for key, value in update_data.items():
        setattr(item, key, value)

    if new_quantity is not None and Decimal(new_quantity) != item.quantity:
        _record_change(db, item, Decimal(new_quantity), TransactionTypeEnum.adjustment, notes)

    await commit(db, "update inventory item")
    return await get_inventory_item_by_id(db, item_id)


async def adjust_quantity(db: AsyncSession, item_id: int, adjust_in: InventoryAdjust) -> InventoryTransaction:
    """
    Приход, расход или ручная корректировка остатка.
    """
    item = await get_inventory_item_by_id(db, item_id)
    if adjust_in.new_quantity is not None:
        new_quantity = Decimal(adjust_in.new_quantity)
    else:
        new_quantity = item.quantity + Decimal(adjust_in.delta)

    transaction = _record_change(
        db, item, new_quantity, adjust_in.transaction_type, adjust_in.notes, adjust_in.created_by
    )
    await commit(db, "adjust inventory")

    if item.is_low_stock:
        logger.warning("Low stock: %s is at %s %s (threshold %s)", item.name, item.quantity, item.unit, item.threshold)
    return transaction


async def get_transactions(db: AsyncSession, item_id: int, limit: int = 100) -> List[InventoryTransaction]:
    await get_inventory_item_by_id(db, item_id)
    stmt = (
        select(InventoryTransaction)
        .where(InventoryTransaction.inventory_id == item_id)
        .order_by(InventoryTransaction.created_at.desc(), InventoryTransaction.id.desc())
        .limit(limit)
    )
    result = await db.execute(stmt)
    return result.scalars().all()


async def consume_recipe_for_order(db: AsyncSession, order_id: int) -> List[InventoryTransaction]:
    """
    Списывает ингредиенты по рецептам позиций заказа.

    Вызывается явно и только один раз на заказ. Позиции без рецепта пропускаются.
    Все списания - одной транзакцией: не хватает одного ингредиента - не
    списывается ничего.
    """
    stmt = select(Order).where(Order.id == order_id).execution_options(populate_existing=True)
    order = (await db.execute(stmt)).scalars().first()
    if not order:
        raise NotFoundError(f"Order with id={order_id} not found")
    if order.status == OrderStatusEnum.cancelled:
        raise ConflictError(f"Order {order.order_number} is cancelled", title="Order cancelled")
    if order.inventory_consumed_at is not None:
        raise ConflictError(
            f"Inventory for order {order.order_number} was already consumed",
            title="Already consumed",
        )

    menu_item_ids = {line.menu_item_id for line in order.items if line.menu_item_id is not None}
    stmt = (
        select(Recipe)
        .where(Recipe.menu_item_id.in_(menu_item_ids))
        .execution_options(populate_existing=True)
    )
    result = await db.execute(stmt)
    recipes = {recipe.menu_item_id: recipe for recipe in result.scalars().all()}

    # суммарный расход по каждой позиции склада
    required: dict[int, Decimal] = {}
    for line in order.items:
        recipe = recipes.get(line.menu_item_id)
        if recipe is None:
            logger.debug("No recipe for %s, skipping", line.name)
            continue
        for ingredient in recipe.ingredients:
            required[ingredient.inventory_id] = (
                required.get(ingredient.inventory_id, Decimal("0")) + ingredient.quantity * line.quantity
            )

    # сначала проверяем все остатки, сессию до этого не трогаем
    items = []
    for inventory_id, amount in sorted(required.items()):
        item = await get_inventory_item_by_id(db, inventory_id)
        if item.quantity < amount:
            raise ValidationError(
                f"Not enough {item.name} in stock: {item.quantity} {item.unit} available, {amount} required",
                title="Insufficient stock",
            )
        items.append((item, amount))

    notes = f"Order {order.order_number}"
    transactions = [
        _record_change(db, item, item.quantity - amount, TransactionTypeEnum.usage, notes) for item, amount in items
    ]

    order.inventory_consumed_at = datetime.now(timezone.utc)
    await commit(db, f"consume inventory for order {order_id}")
    logger.info("Consumed inventory for order %s: %d item(s)", order.order_number, len(transactions))
    return transactions
