"""RPC surface of the orders service: message patterns -> coordinator operations."""
from __future__ import annotations

from typing import Any

from orderdesk.orders.application import ChangeOrderStatus, CreateOrder, FindAllOrders, FindOrder, PaidOrder
from orderdesk.orders.service import OrderCoordinator
from orderdesk.rpc.rpc_module import RpcServer


class OrdersRpcServer(RpcServer):
    """
    createOrder, findAllOrders, findOneOrder, changeOrderStatus and the
    payment.succeeded event emitted by the payments service.
    """

    def __init__(self, coordinator: OrderCoordinator) -> None:
        self._coordinator = coordinator

    async def create_order(self, params: Any) -> dict[str, Any]:
        order = await self._coordinator.create(CreateOrder.from_payload(params))
        session = None
        if self._coordinator.accepts_payments:
            session = await self._coordinator.create_payment_session(order)
        return {"order": order.to_dict(), "paymentSession": session}

    async def find_all_orders(self, params: Any) -> dict[str, Any]:
        page = await self._coordinator.find_all(FindAllOrders.from_payload(params))
        return page.to_dict()

    async def find_one_order(self, params: Any) -> dict[str, Any]:
        order = await self._coordinator.find_one(FindOrder.from_payload(params).id)
        return order.to_dict()

    async def change_order_status(self, params: Any) -> dict[str, Any]:
        order = await self._coordinator.change_order_status(ChangeOrderStatus.from_payload(params))
        return order.to_dict(include_items=False)

    async def payment_succeeded(self, params: Any) -> dict[str, Any]:
        order = await self._coordinator.paid_order(PaidOrder.from_payload(params))
        return order.to_dict(include_items=False)
