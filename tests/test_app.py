"""End-to-end tests of the orders RPC surface over HTTP (Starlette TestClient)."""
import uuid

import pytest
from starlette.testclient import TestClient

from orderdesk.core import Settings
from orderdesk.main import build_app
from orderdesk.orders import InMemoryOrderStore, OrderCoordinator, OrdersRpcServer

from conftest import SERVICES


@pytest.fixture
def http(transport):
    app = build_app(Settings(services=SERVICES), store=InMemoryOrderStore(), transport=transport)
    with TestClient(app.asgi) as client:
        yield client


def rpc(http, method, params):
    response = http.post(f"/rpc/{method}", json=params)
    assert response.status_code == 200
    return response.json()


def test_create_order_returns_order_and_payment_session(http, payments):
    reply = rpc(http, "createOrder", {"items": [{"productId": 1, "quantity": 2}, {"productId": 2, "quantity": 1}]})

    order = reply["order"]
    assert order["totalAmount"] == 25.0
    assert order["totalItems"] == 3
    assert order["status"] == "PENDING"
    assert order["OrderItems"] == [
        {"price": 10.0, "productId": 1, "quantity": 2, "name": "A"},
        {"price": 5.0, "productId": 2, "quantity": 1, "name": "B"},
    ]
    assert reply["paymentSession"]["sessionUrl"] == "https://pay.example.com/cs_test_1"
    assert payments.sessions[0]["orderId"] == order["id"]


def test_create_order_with_unknown_product(http):
    reply = rpc(http, "createOrder", {"items": [{"productId": 77, "quantity": 1}]})

    assert reply["error"]["code"] == "BAD_REQUEST"
    assert reply["error"]["statusCode"] == 400
    assert rpc(http, "findAllOrders", {})["meta"]["total"] == 0


def test_transport_envelope_is_unwrapped(http):
    reply = rpc(http, "createOrder", {"method": "createOrder", "params": {"items": [{"productId": 2, "quantity": 4}]}})

    assert reply["order"]["totalAmount"] == 20.0


def test_order_lifecycle(http):
    order = rpc(http, "createOrder", {"items": [{"productId": 1, "quantity": 1}]})["order"]

    found = rpc(http, "findOneOrder", {"id": order["id"]})
    assert found["OrderItems"][0]["name"] == "A"

    changed = rpc(http, "changeOrderStatus", {"id": order["id"], "status": "DELIVERED"})
    assert changed["status"] == "DELIVERED"

    again = rpc(http, "changeOrderStatus", {"id": order["id"], "status": "DELIVERED"})
    assert again["error"]["code"] == "BAD_REQUEST"

    paid = rpc(
        http,
        "payment.succeeded",
        {"orderId": order["id"], "stripePaymentId": "ch_42", "receiptUrl": "https://receipts.example.com/42"},
    )
    assert paid["status"] == "PAID"
    assert paid["paid"] is True
    assert paid["paidAt"] is not None
    assert paid["OrderReceipt"]["receiptUrl"] == "https://receipts.example.com/42"

    listing = rpc(http, "findAllOrders", {"status": "PAID", "page": 1, "limit": 5})
    assert listing["meta"] == {"total": 1, "page": 1, "lastPage": 1}
    assert listing["data"][0]["id"] == order["id"]


def test_find_one_not_found(http):
    reply = rpc(http, "findOneOrder", {"id": str(uuid.uuid4())})

    assert reply["error"]["code"] == "NOT_FOUND"
    assert reply["error"]["statusCode"] == 404


def test_unknown_pattern(http):
    assert rpc(http, "deleteOrder", {})["error"]["code"] == "NOT_FOUND"


def test_malformed_body(http):
    response = http.post("/rpc/createOrder", content=b"{oops", headers={"content-type": "application/json"})

    assert response.json()["error"]["code"] == "BAD_REQUEST"


def test_without_payments(transport):
    app = build_app(Settings(services=SERVICES), store=InMemoryOrderStore(), transport=transport, payments=False)

    assert app.container.resolve(OrderCoordinator).accepts_payments is False
    assert isinstance(app.container.resolve(OrdersRpcServer), OrdersRpcServer)
    with TestClient(app.asgi) as client:
        reply = rpc(client, "createOrder", {"items": [{"productId": 1, "quantity": 1}]})

    assert reply["paymentSession"] is None
    assert reply["order"]["totalAmount"] == 10.0
