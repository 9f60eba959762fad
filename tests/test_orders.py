"""
Заказы: расчёт суммы, слияние строк, проверки до записи, смена статусов.
"""
from decimal import Decimal

import pytest
from sqlalchemy import func, select

from restaurant_pos.crud.menu import update_menu_item
from restaurant_pos.crud.order import (
    calculate_total,
    create_order,
    get_order_by_id,
    is_transition_allowed,
    merge_line_items,
    next_status,
    update_order_status,
)
from restaurant_pos.crud.settings import update_store_settings
from restaurant_pos.crud.table import get_table_view
from restaurant_pos.exceptions import ConflictError, NotFoundError, ValidationError
from restaurant_pos.models import (
    Customer,
    Order,
    OrderItem,
    OrderStatusEnum,
    OrderTypeEnum,
    TableStatusEnum,
)
from restaurant_pos.schemas.menu import MenuItemUpdate
from restaurant_pos.schemas.order import OrderCreate, OrderItemCreate
from restaurant_pos.schemas.settings import StoreSettingsUpdate


def _order_for(table, menu_items, **kwargs) -> OrderCreate:
    item_a, item_b = menu_items
    return OrderCreate(
        table_id=table.id if table is not None else None,
        items=[
            OrderItemCreate(menu_item_id=item_a.id, price=Decimal("7.99"), quantity=2),
            OrderItemCreate(menu_item_id=item_b.id, price=Decimal("5.99"), quantity=1),
        ],
        **kwargs,
    )


async def _count(db, model) -> int:
    return (await db.execute(select(func.count()).select_from(model))).scalar_one()


@pytest.mark.asyncio
class TestOrderCreation:
    """Оформление заказа"""

    async def test_total_and_table_becomes_occupied(self, db, table, menu_items):
        """
        T1 свободен, заказ A x2 по 7.99 и B x1 по 5.99: сумма 21.97, стол занят.
        """
        order = await create_order(db, _order_for(table, menu_items), require_customer_details=False)

        assert order.total == Decimal("21.97"), f"Total incorrect: {order.total}"
        assert order.status == OrderStatusEnum.pending
        assert order.order_type == OrderTypeEnum.dine_in
        assert order.order_number.startswith("ORD-")
        assert len(order.items) == 2

        view = await get_table_view(db, table.id)
        assert view.effective_status == TableStatusEnum.occupied
        assert view.active_order_id == order.id
        # хранимый статус не трогаем, занятость вычисляется
        assert view.status == TableStatusEnum.available

    async def test_total_unchanged_after_catalog_price_change(self, db, table, menu_items):
        order = await create_order(db, _order_for(table, menu_items), require_customer_details=False)

        await update_menu_item(db, menu_items[0].id, MenuItemUpdate(price=Decimal("12.50")))

        reloaded = await get_order_by_id(db, order.id)
        assert reloaded.total == Decimal("21.97")
        line_a = next(i for i in reloaded.items if i.menu_item_id == menu_items[0].id)
        assert line_a.price == Decimal("7.99"), "Line price must stay as captured at order time"

    async def test_line_price_taken_from_request(self, db, table, menu_items):
        item_a, _ = menu_items
        order_in = OrderCreate(
            table_id=table.id,
            items=[OrderItemCreate(menu_item_id=item_a.id, price=Decimal("6.50"), quantity=1)],
        )
        order = await create_order(db, order_in, require_customer_details=False)

        assert order.items[0].price == Decimal("6.50")
        assert order.items[0].name == "A"
        assert order.total == Decimal("6.50")

    async def test_repeated_adds_merge_into_one_line(self, db, table, menu_items):
        item_a, _ = menu_items
        order_in = OrderCreate(
            table_id=table.id,
            items=[
                OrderItemCreate(menu_item_id=item_a.id, price=Decimal("7.99"), quantity=1),
                OrderItemCreate(menu_item_id=item_a.id, price=Decimal("7.99"), quantity=1),
            ],
        )
        order = await create_order(db, order_in, require_customer_details=False)

        assert len(order.items) == 1, "Same item added twice should be one line"
        assert order.items[0].quantity == 2
        assert order.total == Decimal("15.98")

    async def test_takeout_order_without_table(self, db, menu_items):
        order = await create_order(db, _order_for(None, menu_items), require_customer_details=False)

        assert order.table_id is None
        assert order.order_type == OrderTypeEnum.takeout

    async def test_discount_does_not_change_order_total(self, db, table, menu_items):
        """
        Скидка хранится процентом и уходит в счёт, сумма заказа остаётся суммой строк.
        """
        order = await create_order(
            db, _order_for(table, menu_items, discount_percent=Decimal("10")), require_customer_details=False
        )

        assert order.total == Decimal("21.97"), f"Total must equal sum of lines: {order.total}"
        assert order.discount_percent == Decimal("10")

    async def test_same_item_with_different_price_stays_separate(self, db, table, menu_items):
        """
        A по 7.99 и A по 9.99: две строки, сумма 17.98, ни одна цена не теряется.
        """
        item_a, _ = menu_items
        order_in = OrderCreate(
            table_id=table.id,
            items=[
                OrderItemCreate(menu_item_id=item_a.id, price=Decimal("7.99"), quantity=1),
                OrderItemCreate(menu_item_id=item_a.id, price=Decimal("9.99"), quantity=1),
            ],
        )
        order = await create_order(db, order_in, require_customer_details=False)

        assert len(order.items) == 2, "Lines with different prices must not merge"
        assert sorted(i.price for i in order.items) == [Decimal("7.99"), Decimal("9.99")]
        assert order.total == Decimal("17.98"), f"Total incorrect: {order.total}"
        assert await _count(db, OrderItem) == 2

    async def test_order_on_reserved_table_is_allowed(self, db, table, menu_items):
        table.status = TableStatusEnum.reserved
        await db.commit()

        order = await create_order(db, _order_for(table, menu_items), require_customer_details=False)

        view = await get_table_view(db, table.id)
        assert view.effective_status == TableStatusEnum.occupied
        assert view.active_order_id == order.id


@pytest.mark.asyncio
class TestOrderValidation:
    """Отказы до любой записи в БД"""

    async def test_empty_order_rejected(self, db, table):
        with pytest.raises(ValidationError) as exc_info:
            await create_order(db, OrderCreate(table_id=table.id, items=[]), require_customer_details=False)

        assert exc_info.value.title == "Empty order"
        assert await _count(db, Order) == 0
        assert await _count(db, OrderItem) == 0

    async def test_customer_details_required(self, db, table, menu_items):
        order_in = _order_for(table, menu_items, customer_name="Bob")

        with pytest.raises(ValidationError) as exc_info:
            await create_order(db, order_in, require_customer_details=True)

        assert exc_info.value.title == "Customer information required"
        assert await _count(db, Order) == 0
        assert await _count(db, Customer) == 0

    async def test_customer_details_required_from_store_settings(self, db, table, menu_items):
        await update_store_settings(db, StoreSettingsUpdate(require_customer_details=True))

        with pytest.raises(ValidationError):
            await create_order(db, _order_for(table, menu_items))
        assert await _count(db, Order) == 0

    async def test_unknown_menu_item(self, db, table):
        order_in = OrderCreate(
            table_id=table.id,
            items=[OrderItemCreate(menu_item_id=999, price=Decimal("1.00"))],
        )
        with pytest.raises(NotFoundError):
            await create_order(db, order_in, require_customer_details=False)
        assert await _count(db, Order) == 0

    async def test_unknown_table(self, db, menu_items):
        item_a, _ = menu_items
        order_in = OrderCreate(
            table_id=999,
            items=[OrderItemCreate(menu_item_id=item_a.id, price=Decimal("7.99"))],
        )
        with pytest.raises(NotFoundError):
            await create_order(db, order_in, require_customer_details=False)

    async def test_second_active_order_on_table_rejected(self, db, table, menu_items):
        first = await create_order(db, _order_for(table, menu_items), require_customer_details=False)

        with pytest.raises(ConflictError) as exc_info:
            await create_order(db, _order_for(table, menu_items), require_customer_details=False)

        assert exc_info.value.extra["active_order_id"] == first.id
        assert await _count(db, Order) == 1

    async def test_new_order_after_previous_closed(self, db, table, menu_items):
        first = await create_order(db, _order_for(table, menu_items), require_customer_details=False)
        await update_order_status(db, first.id, OrderStatusEnum.completed)

        second = await create_order(db, _order_for(table, menu_items), require_customer_details=False)
        assert second.id != first.id


@pytest.mark.asyncio
class TestOrderCustomer:
    """Клиент по телефону"""

    async def test_customer_found_or_created_by_phone(self, db, table, menu_items):
        order = await create_order(
            db,
            _order_for(table, menu_items, customer_name="Bob", customer_phone="555-0101"),
            require_customer_details=True,
        )
        await update_order_status(db, order.id, OrderStatusEnum.completed)

        second = await create_order(
            db,
            _order_for(table, menu_items, customer_name="Robert", customer_phone="555-0101"),
            require_customer_details=True,
        )

        assert order.customer_id is not None
        assert second.customer_id == order.customer_id, "Same phone must map to the same customer"
        assert await _count(db, Customer) == 1
        assert second.customer_name == "Robert", "Order keeps the name given at order time"


@pytest.mark.asyncio
class TestOrderStatus:
    """Смена статуса заказа"""

    async def test_status_flow_to_completed(self, db, table, menu_items):
        order = await create_order(db, _order_for(table, menu_items), require_customer_details=False)

        for status in (OrderStatusEnum.preparing, OrderStatusEnum.ready, OrderStatusEnum.served):
            order = await update_order_status(db, order.id, status)
            assert order.status == status
            assert order.closed_at is None

        order = await update_order_status(db, order.id, OrderStatusEnum.completed)
        assert order.status == OrderStatusEnum.completed
        assert order.closed_at is not None

        view = await get_table_view(db, table.id)
        assert view.effective_status == TableStatusEnum.available

    async def test_completed_order_is_immutable(self, db, table, menu_items):
        order = await create_order(db, _order_for(table, menu_items), require_customer_details=False)
        await update_order_status(db, order.id, OrderStatusEnum.completed)

        with pytest.raises(ConflictError):
            await update_order_status(db, order.id, OrderStatusEnum.pending)

        reloaded = await get_order_by_id(db, order.id)
        assert reloaded.status == OrderStatusEnum.completed

    async def test_same_status_is_noop(self, db, table, menu_items):
        order = await create_order(db, _order_for(table, menu_items), require_customer_details=False)
        same = await update_order_status(db, order.id, OrderStatusEnum.pending)
        assert same.status == OrderStatusEnum.pending

    async def test_backward_move_allowed_unless_strict(self, db, table, menu_items):
        order = await create_order(db, _order_for(table, menu_items), require_customer_details=False)
        await update_order_status(db, order.id, OrderStatusEnum.ready)

        with pytest.raises(ValidationError):
            await update_order_status(db, order.id, OrderStatusEnum.pending, strict=True)

        order = await update_order_status(db, order.id, OrderStatusEnum.pending, strict=False)
        assert order.status == OrderStatusEnum.pending

    async def test_completion_does_not_touch_inventory(self, db, table, menu_items, flour):
        order = await create_order(db, _order_for(table, menu_items), require_customer_details=False)
        order = await update_order_status(db, order.id, OrderStatusEnum.completed)

        assert order.inventory_consumed_at is None
        await db.refresh(flour)
        assert flour.quantity == Decimal("10")

    async def test_unknown_order(self, db):
        with pytest.raises(NotFoundError):
            await update_order_status(db, 12345, OrderStatusEnum.ready)


class TestOrderHelpers:
    """Чистые функции без БД"""

    def test_next_status(self):
        assert next_status(OrderStatusEnum.pending) == OrderStatusEnum.preparing
        assert next_status(OrderStatusEnum.served) == OrderStatusEnum.completed
        assert next_status(OrderStatusEnum.completed) is None
        assert next_status(OrderStatusEnum.cancelled) is None

    def test_strict_transitions(self):
        assert is_transition_allowed(OrderStatusEnum.pending, OrderStatusEnum.ready, strict=True)
        assert is_transition_allowed(OrderStatusEnum.served, OrderStatusEnum.cancelled, strict=True)
        assert not is_transition_allowed(OrderStatusEnum.ready, OrderStatusEnum.preparing, strict=True)
        assert not is_transition_allowed(OrderStatusEnum.cancelled, OrderStatusEnum.pending, strict=False)

    def test_merge_keeps_lines_with_different_notes(self):
        lines = merge_line_items([
            OrderItemCreate(menu_item_id=1, price=Decimal("3"), quantity=1, notes="no onion"),
            OrderItemCreate(menu_item_id=1, price=Decimal("3"), quantity=2),
            OrderItemCreate(menu_item_id=1, price=Decimal("3"), quantity=1),
        ])
        assert [(line.notes, line.quantity) for line in lines] == [("no onion", 1), (None, 3)]

    def test_merge_keeps_lines_with_different_price(self):
        lines = merge_line_items([
            OrderItemCreate(menu_item_id=1, price=Decimal("7.99"), quantity=1),
            OrderItemCreate(menu_item_id=1, price=Decimal("9.99"), quantity=1),
            OrderItemCreate(menu_item_id=1, price=Decimal("7.990"), quantity=2),
        ])
        assert [(line.price, line.quantity) for line in lines] == [(Decimal("7.99"), 3), (Decimal("9.99"), 1)]

    def test_calculate_total_is_sum_of_lines(self):
        total = calculate_total([
            OrderItemCreate(menu_item_id=1, price=Decimal("7.99"), quantity=2),
            OrderItemCreate(menu_item_id=2, price=Decimal("5.99"), quantity=1),
        ])
        assert total == Decimal("21.97")
