"""
HTTP-уровень: маршруты, коды ответов и формат ошибок {title, detail}.
"""
from decimal import Decimal

import pytest

from restaurant_pos.models import OrderStatusEnum


def _order_payload(table, menu_items, **extra):
    item_a, item_b = menu_items
    payload = {
        "table_id": table.id if table is not None else None,
        "items": [
            {"menu_item_id": item_a.id, "price": "7.99", "quantity": 2},
            {"menu_item_id": item_b.id, "price": "5.99", "quantity": 1},
        ],
    }
    payload.update(extra)
    return payload


@pytest.mark.asyncio
class TestOrdersApi:
    """Заказы через API"""

    async def test_create_and_read_order(self, client, table, menu_items):
        response = await client.post("/orders/", json=_order_payload(table, menu_items))

        assert response.status_code == 201, response.text
        body = response.json()
        assert Decimal(body["total"]) == Decimal("21.97")
        assert body["status"] == OrderStatusEnum.pending.value
        assert body["next_status"] == OrderStatusEnum.preparing.value
        assert body["count_items"] == 3
        assert body["table_name"] == "T1"

        fetched = await client.get(f"/orders/{body['id']}")
        assert fetched.status_code == 200
        assert fetched.json()["order_number"] == body["order_number"]

        table_view = (await client.get(f"/tables/{table.id}")).json()
        assert table_view["effective_status"] == "occupied"
        assert table_view["active_order_id"] == body["id"]

    async def test_empty_order_error_shape(self, client, table):
        response = await client.post("/orders/", json={"table_id": table.id, "items": []})

        assert response.status_code == 422
        assert response.json() == {
            "title": "Empty order",
            "detail": "Please add at least one item to the order",
        }

    async def test_table_occupied_conflict(self, client, table, menu_items):
        first = (await client.post("/orders/", json=_order_payload(table, menu_items))).json()

        response = await client.post("/orders/", json=_order_payload(table, menu_items))

        assert response.status_code == 409
        body = response.json()
        assert body["title"] == "Table occupied"
        assert body["active_order_id"] == first["id"]

    async def test_unknown_order_is_404(self, client):
        response = await client.get("/orders/777")
        assert response.status_code == 404
        assert response.json()["title"] == "Not found"

    async def test_status_update_and_closed_order(self, client, table, menu_items):
        order = (await client.post("/orders/", json=_order_payload(table, menu_items))).json()

        done = await client.patch(f"/orders/{order['id']}/status", json={"status": "completed"})
        assert done.status_code == 200
        assert done.json()["closed_at"] is not None

        reopen = await client.patch(f"/orders/{order['id']}/status", json={"status": "pending"})
        assert reopen.status_code == 409
        assert reopen.json()["title"] == "Order closed"

    async def test_active_orders(self, client, table, menu_items):
        order = (await client.post("/orders/", json=_order_payload(table, menu_items))).json()
        takeout = (await client.post("/orders/", json=_order_payload(None, menu_items))).json()
        await client.patch(f"/orders/{takeout['id']}/status", json={"status": "cancelled"})

        active = (await client.get("/orders/active")).json()
        assert [o["id"] for o in active] == [order["id"]]

        by_status = (await client.get("/orders/", params={"status": "cancelled"})).json()
        assert [o["id"] for o in by_status] == [takeout["id"]]

    async def test_customer_stats_refreshed_in_background(self, client, menu_items):
        payload = _order_payload(None, menu_items, customer_name="Dana", customer_phone="555-0100")
        response = await client.post("/orders/", json=payload)
        assert response.status_code == 201

        customer = (await client.get("/customers/by-phone/555-0100")).json()
        assert customer["total_orders"] == 1
        assert Decimal(customer["total_spent"]) == Decimal("21.97")

    async def test_invoice_endpoints(self, client, table, menu_items):
        await client.put("/settings/", json={"tax_rate": "10", "restaurant_name": "Bistro"})
        order = (await client.post("/orders/", json=_order_payload(table, menu_items))).json()

        invoice = (await client.get(f"/orders/{order['id']}/invoice")).json()
        assert invoice["restaurant_name"] == "Bistro"
        assert Decimal(invoice["grand_total"]) == Decimal("24.17")

        pdf = await client.get(f"/orders/{order['id']}/invoice.pdf")
        assert pdf.status_code == 200
        assert pdf.headers["content-type"] == "application/pdf"
        assert pdf.content.startswith(b"%PDF")


@pytest.mark.asyncio
class TestTablesApi:
    """Столы через API"""

    async def test_free_table_flow(self, client, table, menu_items):
        order = (await client.post("/orders/", json=_order_payload(table, menu_items))).json()

        unconfirmed = await client.patch(f"/tables/{table.id}/status", json={"status": "available"})
        assert unconfirmed.status_code == 409
        assert unconfirmed.json()["title"] == "Confirmation required"
        assert unconfirmed.json()["active_order_id"] == order["id"]

        confirmed = await client.patch(
            f"/tables/{table.id}/status", json={"status": "available", "confirm": True}
        )
        assert confirmed.status_code == 200
        body = confirmed.json()
        assert body["completed_order_id"] == order["id"]
        assert body["table"]["effective_status"] == "available"

        reread = (await client.get(f"/orders/{order['id']}")).json()
        assert reread["status"] == "completed"

    async def test_sections_and_position(self, client, section, table):
        renamed = await client.patch(f"/tables/sections/{section.id}", json={"name": "Patio"})
        assert renamed.status_code == 200

        moved = await client.patch(f"/tables/{table.id}/position", json={"position_x": 10, "position_y": 20})
        assert moved.status_code == 200
        assert moved.json()["position_x"] == 10

        sections = (await client.get("/tables/sections")).json()
        assert sections[0]["name"] == "Patio"
        assert [t["section_name"] for t in sections[0]["tables"]] == ["Patio"]

    async def test_create_table(self, client, section):
        response = await client.post("/tables/", json={"name": "T7", "section_id": section.id, "capacity": 2})
        assert response.status_code == 201
        assert response.json()["effective_status"] == "available"


@pytest.mark.asyncio
class TestCatalogApi:
    """Меню, склад, рецепты, настройки, пользователи"""

    async def test_menu_crud(self, client):
        category = (await client.post("/menu/categories", json={"name": "Drinks"})).json()
        created = await client.post(
            "/menu/items", json={"name": "Tea", "price": "2.50", "category_id": category["id"]}
        )
        assert created.status_code == 201
        item = created.json()
        assert item["category_name"] == "Drinks"

        patched = await client.patch(f"/menu/items/{item['id']}", json={"is_available": False})
        assert patched.json()["is_available"] is False

        available = (await client.get("/menu/items", params={"available_only": True})).json()
        assert available == []

        assert (await client.delete(f"/menu/items/{item['id']}")).status_code == 204
        assert (await client.delete(f"/menu/items/{item['id']}")).status_code == 404

    async def test_deleted_menu_item_keeps_order_lines(self, client, table, menu_items):
        order = (await client.post("/orders/", json=_order_payload(table, menu_items))).json()

        assert (await client.delete(f"/menu/items/{menu_items[0].id}")).status_code == 204

        reread = (await client.get(f"/orders/{order['id']}")).json()
        line = next(i for i in reread["items"] if i["name"] == "A")
        assert line["menu_item_id"] is None
        assert Decimal(reread["total"]) == Decimal("21.97")

    async def test_inventory_and_recipe(self, client, menu_items):
        flour = (await client.post("/inventory/", json={"name": "Flour", "quantity": "5", "unit": "kg"})).json()

        adjusted = await client.post(
            f"/inventory/{flour['id']}/adjust", json={"transaction_type": "usage", "delta": "-5"}
        )
        assert adjusted.status_code == 201
        low = (await client.get("/inventory/low-stock")).json()
        assert [i["name"] for i in low] == ["Flour"]

        too_much = await client.post(
            f"/inventory/{flour['id']}/adjust", json={"transaction_type": "usage", "delta": "-1"}
        )
        assert too_much.status_code == 422
        assert too_much.json()["title"] == "Insufficient stock"

        recipe = (await client.post("/recipes/", json={"menu_item_id": menu_items[0].id})).json()
        with_ingredient = await client.post(
            f"/recipes/{recipe['id']}/ingredients",
            json={"inventory_id": flour["id"], "quantity": "0.2", "unit": "kg"},
        )
        assert with_ingredient.status_code == 201
        assert with_ingredient.json()["ingredients"][0]["inventory_name"] == "Flour"

    async def test_settings_defaults_and_update(self, client):
        defaults = (await client.get("/settings/")).json()
        assert defaults["require_customer_details"] is False

        saved = await client.put("/settings/", json={"require_customer_details": True, "receipt_footer": "Bye"})
        assert saved.status_code == 200
        assert saved.json()["receipt_footer"] == "Bye"
        assert (await client.get("/settings/")).json()["require_customer_details"] is True

    async def test_users(self, client):
        created = await client.post("/users/", json={"username": "max", "role": "cashier"})
        assert created.status_code == 201
        duplicate = await client.post("/users/", json={"username": "max"})
        assert duplicate.status_code == 409
        assert [u["username"] for u in (await client.get("/users/")).json()] == ["max"]

    async def test_health(self, client):
        response = await client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"
        assert response.json()["database"] == "ok"
