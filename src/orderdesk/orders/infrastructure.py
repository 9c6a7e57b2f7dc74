"""Infrastructure: order store interface and in-memory implementation."""
from __future__ import annotations

import copy
from abc import abstractmethod
from datetime import datetime
from typing import Optional

from orderdesk.domain import Repository
from orderdesk.orders.domain import Order, OrderStatus


class OrderStore(Repository[Order]):
    """
    Persistence for orders with their items and receipt.
    add() writes an order and all its items atomically; save() only persists the status.
    Every write touches one order.
    """

    @abstractmethod
    async def count(self, status: Optional[OrderStatus] = None) -> int:
        ...

    @abstractmethod
    async def find_page(self, status: Optional[OrderStatus], offset: int, limit: int) -> list[Order]:
        """Orders in creation order, optionally filtered by exact status."""
        ...

    @abstractmethod
    async def mark_paid(self, id: str, charge_id: str, receipt_url: str, at: datetime) -> Optional[Order]:
        """
        Set PAID fields and create the receipt in one write, only if the order is not paid yet.
        Returns the updated order, or None when no unpaid order with this id exists.
        """
        ...


class InMemoryOrderStore(OrderStore):
    """Dict-backed store. Copies on the way in and out so callers never share state with it."""

    def __init__(self) -> None:
        self._store: dict[str, Order] = {}

    async def get(self, id: str) -> Optional[Order]:
        order = self._store.get(id)
        return copy.deepcopy(order) if order is not None else None

    async def add(self, aggregate: Order) -> None:
        if aggregate.id in self._store:
            raise KeyError(f"Order {aggregate.id} already exists")
        stored = copy.deepcopy(aggregate)
        for item in stored.items:
            item.name = None
        self._store[aggregate.id] = stored

    async def save(self, aggregate: Order) -> None:
        stored = self._store.get(aggregate.id)
        if stored is None:
            raise KeyError(f"Order {aggregate.id} does not exist")
        stored.status = aggregate.status
        stored.updated_at = aggregate.updated_at

    async def count(self, status: Optional[OrderStatus] = None) -> int:
        return sum(1 for order in self._store.values() if status is None or order.status == status)

    async def find_page(self, status: Optional[OrderStatus], offset: int, limit: int) -> list[Order]:
        matching = [order for order in self._store.values() if status is None or order.status == status]
        return [copy.deepcopy(order) for order in matching[offset : offset + limit]]

    async def mark_paid(self, id: str, charge_id: str, receipt_url: str, at: datetime) -> Optional[Order]:
        stored = self._store.get(id)
        if stored is None or stored.paid:
            return None
        stored.mark_paid(charge_id, receipt_url, at)
        return copy.deepcopy(stored)
