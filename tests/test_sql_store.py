"""Tests for SqlOrderStore on in-memory SQLite."""
import uuid
from decimal import Decimal

import pytest
from sqlalchemy.pool import StaticPool

from orderdesk.orders import (
    CatalogGateway,
    FindAllOrders,
    Order,
    OrderCoordinator,
    OrderStatus,
    PaidOrder,
    PaymentGateway,
    Product,
    SqlOrderStore,
)
from orderdesk.rpc import BadRequestError

from conftest import FIXED_NOW, new_order

CATALOG = {
    1: Product(id=1, name="A", price=Decimal("10")),
    2: Product(id=2, name="B", price=Decimal("5")),
    3: Product(id=3, name="Keyboard", price=Decimal("79.99")),
}


@pytest.fixture
async def sql_store():
    store = SqlOrderStore.from_url("sqlite+aiosqlite://", poolclass=StaticPool)
    await store.connect()
    yield store
    await store.close()


def placed(*pairs):
    return Order.place(pairs, CATALOG)


class TestSqlOrderStore:
    async def test_add_and_get(self, sql_store):
        order = placed((1, 2), (3, 1))
        await sql_store.add(order)

        loaded = await sql_store.get(order.id)

        assert loaded.id == order.id
        assert loaded.total_amount == Decimal("99.99")
        assert loaded.total_items == 3
        assert loaded.status == OrderStatus.PENDING
        assert loaded.paid is False
        assert loaded.receipt is None
        assert [(i.product_id, i.quantity, i.price) for i in loaded.items] == [
            (1, 2, Decimal("10")),
            (3, 1, Decimal("79.99")),
        ]
        assert loaded.created_at == order.created_at

    async def test_get_missing(self, sql_store):
        assert await sql_store.get(str(uuid.uuid4())) is None

    async def test_count_and_pages(self, sql_store):
        orders = [placed((1, 1)) for _ in range(5)]
        for order in orders:
            await sql_store.add(order)
        orders[0].change_status(OrderStatus.CANCELLED)
        await sql_store.save(orders[0])

        assert await sql_store.count() == 5
        assert await sql_store.count(OrderStatus.CANCELLED) == 1
        assert await sql_store.count(OrderStatus.PENDING) == 4

        first = await sql_store.find_page(None, 0, 3)
        rest = await sql_store.find_page(None, 3, 3)
        assert len(first) == 3
        assert len(rest) == 2
        assert {o.id for o in first + rest} == {o.id for o in orders}

        cancelled = await sql_store.find_page(OrderStatus.CANCELLED, 0, 10)
        assert [o.id for o in cancelled] == [orders[0].id]

    async def test_save_missing_order(self, sql_store):
        with pytest.raises(KeyError):
            await sql_store.save(placed((1, 1)))

    async def test_mark_paid_once(self, sql_store):
        order = placed((2, 2))
        await sql_store.add(order)

        paid = await sql_store.mark_paid(order.id, "ch_1", "https://receipts.example.com/1", FIXED_NOW)
        again = await sql_store.mark_paid(order.id, "ch_2", "https://receipts.example.com/2", FIXED_NOW)

        assert again is None
        assert paid.status == OrderStatus.PAID
        assert paid.paid is True
        assert paid.paid_at == FIXED_NOW
        assert paid.stripe_charge_id == "ch_1"
        assert paid.receipt.receipt_url == "https://receipts.example.com/1"
        assert (await sql_store.get(order.id)).receipt.id == paid.receipt.id

    async def test_mark_paid_missing_order(self, sql_store):
        assert await sql_store.mark_paid(str(uuid.uuid4()), "ch_1", "https://r", FIXED_NOW) is None


class TestCoordinatorWithSql:
    @pytest.fixture
    def sql_coordinator(self, sql_store, client):
        return OrderCoordinator(
            store=sql_store,
            catalog=CatalogGateway(client),
            payments=PaymentGateway(client),
            clock=lambda: FIXED_NOW,
        )

    async def test_lifecycle(self, sql_coordinator):
        created = await sql_coordinator.create(new_order((1, 2), (2, 1)))
        assert created.total_amount == Decimal("25")

        found = await sql_coordinator.find_one(created.id)
        assert [item.name for item in found.items] == ["A", "B"]

        paid = await sql_coordinator.paid_order(PaidOrder(created.id, "ch_9", "https://receipts.example.com/9"))
        assert paid.status == OrderStatus.PAID

        listing = await sql_coordinator.find_all(FindAllOrders(status=OrderStatus.PAID))
        assert listing.total == 1

    async def test_unknown_product_writes_no_row(self, sql_coordinator, sql_store):
        with pytest.raises(BadRequestError):
            await sql_coordinator.create(new_order((1, 1), (42, 1)))

        assert await sql_store.count() == 0

    async def test_sub_cent_prices_survive_a_round_trip(self, sql_coordinator, catalog):
        catalog.products[1]["price"] = 0.125

        created = await sql_coordinator.create(new_order((1, 3)))
        found = await sql_coordinator.find_one(created.id)

        assert created.total_amount == Decimal("0.375")
        assert found.total_amount == created.total_amount
        assert found.items[0].price == Decimal("0.125")
        assert found.total_amount == sum(item.price * item.quantity for item in found.items)
