"""Shared fixtures: fake products/payments services wired through the in-process transport."""
from __future__ import annotations

from datetime import datetime, timezone

import pytest

from orderdesk.discovery import StaticDiscovery
from orderdesk.orders import (
    CatalogGateway,
    CreateOrder,
    InMemoryOrderStore,
    OrderCoordinator,
    OrderLine,
    PaymentGateway,
)
from orderdesk.rpc import BadRequestError, LocalRpcTransport, RpcClient, RpcServer, ServiceUnavailableError

FIXED_NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)

PRODUCTS = [
    {"id": 1, "name": "A", "price": 10},
    {"id": 2, "name": "B", "price": 5},
    {"id": 3, "name": "Keyboard", "price": 79.99},
]

SERVICES = {"products": "local://products", "payments": "local://payments"}


class FakeCatalog(RpcServer):
    """products service: validate_product fails when any id is unknown."""

    def __init__(self, products=PRODUCTS):
        self.products = {p["id"]: dict(p) for p in products}
        self.calls: list[list[int]] = []
        self.down = False

    def validate_product(self, ids):
        self.calls.append(ids)
        if self.down:
            raise ServiceUnavailableError("products service is down")
        missing = [i for i in ids if i not in self.products]
        if missing:
            raise BadRequestError(f"Some products were not found: {missing}")
        return [self.products[i] for i in ids]


class FakePayments(RpcServer):
    def __init__(self):
        self.sessions: list[dict] = []

    def create_payment_session(self, params):
        self.sessions.append(params)
        session_id = f"cs_test_{len(self.sessions)}"
        return {
            "sessionId": session_id,
            "sessionUrl": f"https://pay.example.com/{session_id}",
            "cancelUrl": "https://shop.example.com/cancel",
            "successUrl": "https://shop.example.com/success",
        }


def new_order(*pairs: tuple[int, int]) -> CreateOrder:
    return CreateOrder(items=[OrderLine(product_id=p, quantity=q) for p, q in pairs])


@pytest.fixture
def catalog():
    return FakeCatalog()


@pytest.fixture
def payments():
    return FakePayments()


@pytest.fixture
def transport(catalog, payments):
    return LocalRpcTransport({SERVICES["products"]: catalog, SERVICES["payments"]: payments})


@pytest.fixture
def client(transport):
    return RpcClient(StaticDiscovery(SERVICES), transport, timeout=1.0)


@pytest.fixture
def store():
    return InMemoryOrderStore()


@pytest.fixture
def coordinator(store, client):
    return OrderCoordinator(
        store=store,
        catalog=CatalogGateway(client),
        payments=PaymentGateway(client),
        clock=lambda: FIXED_NOW,
    )
