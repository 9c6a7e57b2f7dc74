"""Orders domain: order aggregate, its items and receipt, catalog product snapshot."""
from __future__ import annotations

import dataclasses
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Iterable, Mapping, Optional


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


MONEY_SCALE = 6
_MONEY_QUANTUM = Decimal(1).scaleb(-MONEY_SCALE)


def to_money(value: Any) -> Decimal:
    """
    Catalog prices arrive as JSON numbers; go through str so 0.1 stays 0.1.
    Quantized to MONEY_SCALE places, the precision the store keeps, so totals
    computed here match what is read back.
    """
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(_MONEY_QUANTUM)


class OrderStatus(str, Enum):
    PENDING = "PENDING"
    PAID = "PAID"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"


class UnknownProductError(LookupError):
    def __init__(self, product_id: int) -> None:
        self.product_id = product_id
        super().__init__(f"Product with id {product_id} not found")


@dataclass(frozen=True)
class Product:
    """Catalog record as returned by the products service at a point in time."""

    id: int
    name: str
    price: Decimal

    @classmethod
    def from_catalog(cls, record: Mapping[str, Any]) -> Product:
        return cls(id=int(record["id"]), name=str(record["name"]), price=to_money(record["price"]))


@dataclass
class OrderItem:
    product_id: int
    quantity: int
    price: Decimal
    # Display-time enrichment from the catalog; never persisted.
    name: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "price": float(self.price),
            "productId": self.product_id,
            "quantity": self.quantity,
        }
        if self.name is not None:
            data["name"] = self.name
        return data


@dataclass
class OrderReceipt:
    receipt_url: str
    created_at: datetime = field(default_factory=utcnow)
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "receiptUrl": self.receipt_url, "createdAt": self.created_at.isoformat()}


@dataclass
class Order:
    """
    Order aggregate. Items and totals are fixed at placement;
    afterwards only status and payment fields change.
    """

    total_amount: Decimal
    total_items: int
    items: list[OrderItem]
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    status: OrderStatus = OrderStatus.PENDING
    paid: bool = False
    paid_at: Optional[datetime] = None
    stripe_charge_id: Optional[str] = None
    receipt: Optional[OrderReceipt] = None
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    @classmethod
    def place(cls, lines: Iterable[tuple[int, int]], products: Mapping[int, Product]) -> Order:
        """Price (product_id, quantity) lines against a catalog snapshot. Raises UnknownProductError."""
        items: list[OrderItem] = []
        for product_id, quantity in lines:
            product = products.get(product_id)
            if product is None:
                raise UnknownProductError(product_id)
            items.append(OrderItem(product_id=product_id, quantity=quantity, price=product.price))
        total_amount = sum((item.price * item.quantity for item in items), Decimal("0"))
        total_items = sum(item.quantity for item in items)
        return cls(total_amount=total_amount, total_items=total_items, items=items)

    @property
    def product_ids(self) -> list[int]:
        return sorted({item.product_id for item in self.items})

    def with_names(self, names: Mapping[int, str]) -> Order:
        """Copy of the order whose items carry the given product names."""
        items = [dataclasses.replace(item, name=names.get(item.product_id)) for item in self.items]
        return dataclasses.replace(self, items=items)

    def change_status(self, status: OrderStatus, at: Optional[datetime] = None) -> None:
        self.status = status
        self.updated_at = at or utcnow()

    def mark_paid(self, charge_id: str, receipt_url: str, at: Optional[datetime] = None) -> None:
        at = at or utcnow()
        self.status = OrderStatus.PAID
        self.paid = True
        self.paid_at = at
        self.stripe_charge_id = charge_id
        self.receipt = OrderReceipt(receipt_url=receipt_url, created_at=at)
        self.updated_at = at

    def to_dict(self, include_items: bool = True) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "totalAmount": float(self.total_amount),
            "totalItems": self.total_items,
            "status": self.status.value,
            "paid": self.paid,
            "paidAt": self.paid_at.isoformat() if self.paid_at else None,
            "stripeChargeId": self.stripe_charge_id,
            "createdAt": self.created_at.isoformat(),
            "updatedAt": self.updated_at.isoformat(),
        }
        if include_items:
            data["OrderItems"] = [item.to_dict() for item in self.items]
        if self.receipt is not None:
            data["OrderReceipt"] = self.receipt.to_dict()
        return data
