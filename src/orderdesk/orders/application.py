"""Application layer: commands and queries accepted by the order coordinator."""
from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Any, Optional

from orderdesk.ddd import Command, Query
from orderdesk.ddd.commands import payload_dict, positive_int, required_str
from orderdesk.orders.domain import OrderStatus
from orderdesk.rpc.protocol import BadRequestError

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10


def _order_id(value: Any) -> str:
    try:
        return str(uuid.UUID(str(value)))
    except ValueError:
        raise BadRequestError(f"Invalid order id {value!r}: expected a UUID") from None


def _status(value: Any) -> OrderStatus:
    try:
        return OrderStatus(value)
    except ValueError:
        allowed = ", ".join(s.value for s in OrderStatus)
        raise BadRequestError(f"Invalid status {value!r}; expected one of: {allowed}") from None


@dataclass
class OrderLine:
    product_id: int
    quantity: int


@dataclass
class CreateOrder(Command):
    items: list[OrderLine] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not self.items:
            raise BadRequestError("An order needs at least one item")

    @property
    def product_ids(self) -> list[int]:
        return sorted({line.product_id for line in self.items})

    @property
    def lines(self) -> list[tuple[int, int]]:
        return [(line.product_id, line.quantity) for line in self.items]

    @classmethod
    def from_payload(cls, payload: Any) -> CreateOrder:
        items = payload_dict(payload).get("items")
        if not isinstance(items, list):
            raise BadRequestError("items must be a list")
        lines = []
        for i, raw in enumerate(items):
            raw = payload_dict(raw)
            lines.append(
                OrderLine(
                    product_id=positive_int(raw.get("productId"), f"items[{i}].productId"),
                    quantity=positive_int(raw.get("quantity"), f"items[{i}].quantity"),
                )
            )
        return cls(items=lines)


@dataclass
class FindAllOrders(Query):
    status: Optional[OrderStatus] = None
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT

    def __post_init__(self) -> None:
        positive_int(self.page, "page")
        positive_int(self.limit, "limit")

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    @classmethod
    def from_payload(cls, payload: Any) -> FindAllOrders:
        data = payload_dict(payload)
        status = data.get("status")
        return cls(
            status=_status(status) if status is not None else None,
            page=data.get("page", DEFAULT_PAGE),
            limit=data.get("limit", DEFAULT_LIMIT),
        )


@dataclass
class FindOrder(Query):
    id: str

    @classmethod
    def from_payload(cls, payload: Any) -> FindOrder:
        # findOneOrder is sent either as a bare id or as {"id": ...}
        if isinstance(payload, str):
            return cls(id=_order_id(payload))
        return cls(id=_order_id(payload_dict(payload).get("id")))


@dataclass
class ChangeOrderStatus(Command):
    id: str
    status: OrderStatus

    @classmethod
    def from_payload(cls, payload: Any) -> ChangeOrderStatus:
        data = payload_dict(payload)
        return cls(id=_order_id(data.get("id")), status=_status(data.get("status")))


@dataclass
class PaidOrder(Command):
    """Payment confirmation from the payments service webhook."""

    order_id: str
    stripe_payment_id: str
    receipt_url: str

    @classmethod
    def from_payload(cls, payload: Any) -> PaidOrder:
        data = payload_dict(payload)
        return cls(
            order_id=_order_id(data.get("orderId")),
            stripe_payment_id=required_str(data.get("stripePaymentId"), "stripePaymentId"),
            receipt_url=required_str(data.get("receiptUrl"), "receiptUrl"),
        )
