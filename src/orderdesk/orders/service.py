"""
Order lifecycle coordinator.

Reconciles stored orders with the product catalog: prices are copied from the
catalog when an order is placed, names are looked up again on every read.
Holds no mutable state of its own; every operation issues at most one store write.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Optional

from orderdesk.orders.application import ChangeOrderStatus, CreateOrder, FindAllOrders, PaidOrder
from orderdesk.orders.domain import Order, utcnow
from orderdesk.orders.gateways import CatalogGateway, CatalogNameResolver, NameResolver, PaymentGateway
from orderdesk.orders.infrastructure import OrderStore
from orderdesk.rpc.protocol import BadRequestError, NotFoundError, RpcError

logger = logging.getLogger(__name__)


@dataclass
class OrderPage:
    data: list[Order]
    total: int
    page: int
    last_page: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "data": [order.to_dict(include_items=False) for order in self.data],
            "meta": {"total": self.total, "page": self.page, "lastPage": self.last_page},
        }


class OrderCoordinator:
    """
    Orchestrates order creation, reads, status changes and payment.
    payments is optional: without it create_payment_session is rejected.
    """

    def __init__(
        self,
        store: OrderStore,
        catalog: CatalogGateway,
        payments: Optional[PaymentGateway] = None,
        names: Optional[NameResolver] = None,
        currency: str = "usd",
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._store = store
        self._catalog = catalog
        self._payments = payments
        self._names = names or CatalogNameResolver(catalog)
        self._currency = currency
        self._clock = clock

    @property
    def accepts_payments(self) -> bool:
        return self._payments is not None

    async def create(self, cmd: CreateOrder) -> Order:
        try:
            products = await self._catalog.validate_products(cmd.product_ids)
            order = Order.place(cmd.lines, products)
            await self._store.add(order)
        except BadRequestError:
            raise
        except RpcError as e:
            raise BadRequestError(e.message) from e
        except Exception as e:
            raise BadRequestError(str(e)) from e

        logger.info("Order %s created: %s items, total %s", order.id, order.total_items, order.total_amount)
        names = {pid: product.name for pid, product in products.items()}
        self._names.remember(names)
        return order.with_names(names)

    async def find_all(self, query: FindAllOrders) -> OrderPage:
        total = await self._store.count(query.status)
        orders = await self._store.find_page(query.status, query.offset, query.limit)
        return OrderPage(
            data=orders,
            total=total,
            page=query.page,
            last_page=math.ceil(total / query.limit),
        )

    async def find_one(self, id: str) -> Order:
        order = await self._get(id)
        names = await self._names.resolve_names(order.product_ids)
        return order.with_names(names)

    async def change_order_status(self, cmd: ChangeOrderStatus) -> Order:
        order = await self._get(cmd.id)
        if order.status == cmd.status:
            raise BadRequestError(f"Order with id {cmd.id} already has status {cmd.status.value}")

        previous = order.status
        order.change_status(cmd.status, self._clock())
        await self._store.save(order)
        logger.info("Order %s status changed: %s -> %s", order.id, previous.value, order.status.value)
        return order

    async def create_payment_session(self, order: Order) -> dict[str, Any]:
        if self._payments is None:
            raise BadRequestError("Payments are not enabled for this service")
        items = [{"name": item.name, "price": float(item.price), "quantity": item.quantity} for item in order.items]
        return await self._payments.create_session(order.id, self._currency, items)

    async def paid_order(self, cmd: PaidOrder) -> Order:
        order = await self._get(cmd.order_id)
        if order.paid:
            # At-least-once delivery: a repeated confirmation must not create a second receipt.
            logger.warning("Order %s is already paid; ignoring confirmation %s", order.id, cmd.stripe_payment_id)
            return order

        updated = await self._store.mark_paid(cmd.order_id, cmd.stripe_payment_id, cmd.receipt_url, self._clock())
        if updated is None:
            # Lost a race with a concurrent confirmation.
            logger.warning("Order %s was paid concurrently; keeping the stored payment", order.id)
            return await self._get(cmd.order_id)
        logger.info("Order %s paid (charge %s)", updated.id, cmd.stripe_payment_id)
        return updated

    async def _get(self, id: str) -> Order:
        order = await self._store.get(id)
        if order is None:
            raise NotFoundError(f"Order with id {id} not found")
        return order
