"""Orders bounded context."""
from orderdesk.orders.application import ChangeOrderStatus, CreateOrder, FindAllOrders, FindOrder, OrderLine, PaidOrder
from orderdesk.orders.domain import Order, OrderItem, OrderReceipt, OrderStatus, Product
from orderdesk.orders.gateways import (
    CatalogGateway,
    CatalogNameResolver,
    LastKnownNameResolver,
    NameResolver,
    PaymentGateway,
)
from orderdesk.orders.infrastructure import InMemoryOrderStore, OrderStore
from orderdesk.orders.module import OrdersModule
from orderdesk.orders.rpc import OrdersRpcServer
from orderdesk.orders.service import OrderCoordinator, OrderPage
from orderdesk.orders.sql import SqlOrderStore

__all__ = [
    "CatalogGateway",
    "CatalogNameResolver",
    "ChangeOrderStatus",
    "CreateOrder",
    "FindAllOrders",
    "FindOrder",
    "InMemoryOrderStore",
    "LastKnownNameResolver",
    "NameResolver",
    "Order",
    "OrderCoordinator",
    "OrderItem",
    "OrderLine",
    "OrderPage",
    "OrderReceipt",
    "OrderStatus",
    "OrderStore",
    "OrdersModule",
    "OrdersRpcServer",
    "PaidOrder",
    "PaymentGateway",
    "Product",
    "SqlOrderStore",
]
