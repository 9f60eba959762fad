"""
Склад: журнал изменений, низкий остаток, списание по рецептам.
"""
from decimal import Decimal

import pytest
from pydantic import ValidationError as SchemaValidationError

from restaurant_pos.crud.inventory import (
    adjust_quantity,
    consume_recipe_for_order,
    get_inventory_item_by_id,
    get_low_stock_items,
    get_transactions,
    update_inventory_item,
)
from restaurant_pos.crud.order import create_order, get_order_by_id, update_order_status
from restaurant_pos.crud.recipe import add_ingredient, get_or_create_recipe, remove_ingredient
from restaurant_pos.exceptions import ConflictError, ValidationError
from restaurant_pos.models import OrderStatusEnum, TransactionTypeEnum
from restaurant_pos.schemas.inventory import InventoryAdjust, InventoryItemUpdate
from restaurant_pos.schemas.order import OrderCreate, OrderItemCreate
from restaurant_pos.schemas.recipe import IngredientCreate


@pytest.mark.asyncio
class TestInventoryAdjustments:
    """Изменения остатка"""

    async def test_restock_writes_one_transaction(self, db, flour):
        transaction = await adjust_quantity(
            db, flour.id, InventoryAdjust(transaction_type=TransactionTypeEnum.restock, delta=Decimal("5"))
        )

        assert transaction.previous_quantity == Decimal("10")
        assert transaction.new_quantity == Decimal("15")
        history = await get_transactions(db, flour.id)
        assert len(history) == 1
        assert history[0].transaction_type == TransactionTypeEnum.restock

    async def test_negative_stock_rejected(self, db, flour):
        flour_id = flour.id
        with pytest.raises(ValidationError) as exc_info:
            await adjust_quantity(
                db, flour_id, InventoryAdjust(transaction_type=TransactionTypeEnum.usage, delta=Decimal("-11"))
            )

        assert exc_info.value.title == "Insufficient stock"
        item = await get_inventory_item_by_id(db, flour_id)
        assert item.quantity == Decimal("10"), "Rejected adjustment must not change stock"
        assert await get_transactions(db, flour_id) == []

    async def test_low_stock(self, db, flour):
        assert await get_low_stock_items(db) == []

        await adjust_quantity(
            db,
            flour.id,
            InventoryAdjust(transaction_type=TransactionTypeEnum.adjustment, new_quantity=Decimal("2")),
        )

        low = await get_low_stock_items(db)
        assert [i.name for i in low] == ["Flour"]
        assert low[0].is_low_stock

    async def test_quantity_edit_logged_as_adjustment(self, db, flour):
        await update_inventory_item(
            db, flour.id, InventoryItemUpdate(quantity=Decimal("7"), notes="stock take")
        )

        history = await get_transactions(db, flour.id)
        assert len(history) == 1
        assert history[0].transaction_type == TransactionTypeEnum.adjustment
        assert history[0].notes == "stock take"

    async def test_non_quantity_edit_not_logged(self, db, flour):
        await update_inventory_item(db, flour.id, InventoryItemUpdate(threshold=Decimal("3")))
        assert await get_transactions(db, flour.id) == []


@pytest.mark.asyncio
class TestRecipeConsumption:
    """Списание ингредиентов по заказу"""

    async def _order_with_recipe(self, db, menu_items, flour, per_portion="0.25", quantity=2):
        item_a, item_b = menu_items
        recipe = await get_or_create_recipe(db, item_a.id)
        await add_ingredient(
            db, recipe.id, IngredientCreate(inventory_id=flour.id, quantity=Decimal(per_portion), unit="kg")
        )
        order_in = OrderCreate(
            items=[
                OrderItemCreate(menu_item_id=item_a.id, price=Decimal("7.99"), quantity=quantity),
                OrderItemCreate(menu_item_id=item_b.id, price=Decimal("5.99"), quantity=1),
            ],
        )
        return await create_order(db, order_in, require_customer_details=False)

    async def test_recipe_is_unique_per_menu_item(self, db, menu_items):
        first = await get_or_create_recipe(db, menu_items[0].id)
        second = await get_or_create_recipe(db, menu_items[0].id)
        assert first.id == second.id

    async def test_consume_deducts_ingredients(self, db, menu_items, flour):
        order = await self._order_with_recipe(db, menu_items, flour)

        transactions = await consume_recipe_for_order(db, order.id)

        assert len(transactions) == 1, "Item B has no recipe and is skipped"
        assert transactions[0].transaction_type == TransactionTypeEnum.usage
        item = await get_inventory_item_by_id(db, flour.id)
        assert item.quantity == Decimal("9.5")

    async def test_consume_only_once(self, db, menu_items, flour):
        order = await self._order_with_recipe(db, menu_items, flour)
        await consume_recipe_for_order(db, order.id)

        with pytest.raises(ConflictError):
            await consume_recipe_for_order(db, order.id)

        item = await get_inventory_item_by_id(db, flour.id)
        assert item.quantity == Decimal("9.5")

    async def test_consume_cancelled_order_rejected(self, db, menu_items, flour):
        order = await self._order_with_recipe(db, menu_items, flour)
        await update_order_status(db, order.id, OrderStatusEnum.cancelled)

        with pytest.raises(ConflictError):
            await consume_recipe_for_order(db, order.id)

    async def test_consume_insufficient_stock_writes_nothing(self, db, menu_items, flour):
        order = await self._order_with_recipe(db, menu_items, flour, per_portion="6", quantity=2)
        flour_id, order_id = flour.id, order.id

        with pytest.raises(ValidationError) as exc_info:
            await consume_recipe_for_order(db, order_id)

        assert exc_info.value.title == "Insufficient stock"
        item = await get_inventory_item_by_id(db, flour_id)
        assert item.quantity == Decimal("10"), "Shortfall must leave stock untouched"
        assert await get_transactions(db, flour_id) == []
        reloaded = await get_order_by_id(db, order_id)
        assert reloaded.inventory_consumed_at is None, "Order must not be marked as consumed"

    async def test_removed_ingredient_not_consumed(self, db, menu_items, flour):
        order = await self._order_with_recipe(db, menu_items, flour)
        recipe = await get_or_create_recipe(db, menu_items[0].id)
        assert await remove_ingredient(db, recipe.ingredients[0].id) is True

        assert await consume_recipe_for_order(db, order.id) == []


def test_adjust_requires_exactly_one_value():
    with pytest.raises(SchemaValidationError):
        InventoryAdjust(transaction_type=TransactionTypeEnum.restock)
    with pytest.raises(SchemaValidationError):
        InventoryAdjust(transaction_type=TransactionTypeEnum.restock, delta=Decimal("1"), new_quantity=Decimal("2"))
