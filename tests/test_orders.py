# =============================================================================
# tests/test_orders.py - Order computation, snapshots and ownership
# =============================================================================

from decimal import Decimal

from sqlalchemy import func, select

from helpers import bearer, create_product
from services.order_service.models import Order, OrderItem
from services.order_service.service import BAD_QUANTITY, EMPTY_ORDER, TOTAL_TOO_LARGE, OrderService
from shared.config.database import AsyncSessionLocal
from shared.errors import ErrorKind, Failure
from shared.security import Identity


async def count_rows(model):
    async with AsyncSessionLocal() as session:
        return (await session.execute(select(func.count()).select_from(model))).scalar_one()


async def place_order(client, token, items):
    return await client.post("/orders", json={"items": items}, headers=bearer(token))


class TestCreateOrder:

    async def test_total_and_snapshot_survive_price_change(self, client, alice_token):
        product = await create_product(client, alice_token, name="Parka", price="100.00")

        resp = await place_order(client, alice_token, [{"productId": product["id"], "quantity": 2}])
        assert resp.status_code == 201
        order = resp.json()
        assert resp.headers["Location"] == f"/orders/{order['id']}"
        assert order["status"] == "pending"
        assert order["totalAmount"] == "200.00"
        assert len(order["items"]) == 1
        assert order["items"][0]["unitPrice"] == "100.00"
        assert order["items"][0]["productName"] == "Parka"

        await client.put(
            f"/products/{product['id']}",
            json={"name": "Parka (new)", "price": "150.00"},
            headers=bearer(alice_token),
        )

        stored = (await client.get(f"/orders/{order['id']}", headers=bearer(alice_token))).json()
        assert stored["totalAmount"] == "200.00"
        assert stored["items"][0]["unitPrice"] == "100.00"
        assert stored["items"][0]["productName"] == "Parka"

    async def test_exact_decimal_total(self, client, alice_token):
        a = await create_product(client, alice_token, name="A", price="0.10")
        b = await create_product(client, alice_token, name="B", price="0.20")
        c = await create_product(client, alice_token, name="C", price="19.99")
        resp = await place_order(
            client,
            alice_token,
            [
                {"productId": a["id"], "quantity": 3},
                {"productId": b["id"], "quantity": 1},
                {"productId": c["id"], "quantity": 7},
            ],
        )
        assert resp.status_code == 201
        assert resp.json()["totalAmount"] == "140.43"

    async def test_duplicate_product_lines_kept(self, client, alice_token):
        p = await create_product(client, alice_token, price="5.00")
        resp = await place_order(
            client,
            alice_token,
            [{"productId": p["id"], "quantity": 1}, {"productId": p["id"], "quantity": 2}],
        )
        assert resp.status_code == 201
        assert len(resp.json()["items"]) == 2
        assert resp.json()["totalAmount"] == "15.00"

    async def test_unknown_product_creates_nothing(self, client, alice_token):
        p = await create_product(client, alice_token)
        resp = await place_order(
            client,
            alice_token,
            [{"productId": p["id"], "quantity": 1}, {"productId": 9999, "quantity": 1}],
        )
        assert resp.status_code == 400
        assert "9999" in resp.json()["detail"]
        assert await count_rows(Order) == 0
        assert await count_rows(OrderItem) == 0

    async def test_empty_items(self, client, alice_token):
        resp = await place_order(client, alice_token, [])
        assert resp.status_code == 400
        assert await count_rows(Order) == 0

    async def test_non_positive_quantity(self, client, alice_token):
        p = await create_product(client, alice_token)
        resp = await place_order(client, alice_token, [{"productId": p["id"], "quantity": 0}])
        assert resp.status_code == 400

    async def test_huge_quantity_rejected(self, client, alice_token):
        p = await create_product(client, alice_token)
        resp = await place_order(client, alice_token, [{"productId": p["id"], "quantity": 10**30}])
        assert resp.status_code == 400
        assert await count_rows(Order) == 0

    async def test_total_beyond_column_range_rejected(self, client, alice_token):
        p = await create_product(client, alice_token, name="Yacht", price="100000000.00")
        resp = await place_order(client, alice_token, [{"productId": p["id"], "quantity": 10_000}])
        assert resp.status_code == 400
        assert resp.json()["detail"] == TOTAL_TOO_LARGE.message
        assert await count_rows(Order) == 0
        assert await count_rows(OrderItem) == 0

    async def test_requires_token(self, client):
        resp = await client.post("/orders", json={"items": [{"productId": 1, "quantity": 1}]})
        assert resp.status_code == 401

    async def test_service_rejections(self, db):
        identity = Identity(user_id=1, email="a@example.com")
        assert await OrderService.create_order(db, identity, []) == EMPTY_ORDER
        result = await OrderService.create_order(db, identity, [(1, -1)])
        assert isinstance(result, Failure)
        assert result.kind is ErrorKind.MALFORMED_INPUT
        assert await OrderService.create_order(db, identity, [(1, 10**30)]) == BAD_QUANTITY
        result = await OrderService.create_order(db, identity, [(12345, 1)])
        assert result.kind is ErrorKind.MALFORMED_INPUT
        assert await count_rows(Order) == 0

    async def test_service_computes_decimal_total(self, db, client, alice_token, token_service):
        p = await create_product(client, alice_token, price="33.33")
        identity = token_service.verify(alice_token)
        order = await OrderService.create_order(db, identity, [(p["id"], 3)])
        assert order.total_amount == Decimal("99.99")
        assert order.user_id == identity.user_id
        assert [item.quantity for item in order.items] == [3]


class TestReadOrders:

    async def test_list_own_orders_newest_first(self, client, alice_token):
        p = await create_product(client, alice_token)
        ids = []
        for qty in (1, 2, 3):
            resp = await place_order(client, alice_token, [{"productId": p["id"], "quantity": qty}])
            ids.append(resp.json()["id"])

        resp = await client.get("/orders", headers=bearer(alice_token))
        assert resp.status_code == 200
        assert [o["id"] for o in resp.json()] == list(reversed(ids))

    async def test_users_never_see_each_others_orders(self, client, alice_token, bob_token):
        p = await create_product(client, alice_token)
        alice_order = (await place_order(client, alice_token, [{"productId": p["id"], "quantity": 1}])).json()
        bob_order = (await place_order(client, bob_token, [{"productId": p["id"], "quantity": 1}])).json()

        alice_list = (await client.get("/orders", headers=bearer(alice_token))).json()
        bob_list = (await client.get("/orders", headers=bearer(bob_token))).json()
        assert [o["id"] for o in alice_list] == [alice_order["id"]]
        assert [o["id"] for o in bob_list] == [bob_order["id"]]

        foreign = await client.get(f"/orders/{bob_order['id']}", headers=bearer(alice_token))
        missing = await client.get("/orders/424242", headers=bearer(alice_token))
        assert foreign.status_code == missing.status_code == 404
        assert foreign.json() == missing.json()

    async def test_reads_require_token(self, client):
        assert (await client.get("/orders")).status_code == 401
        assert (await client.get("/orders/1")).status_code == 401
