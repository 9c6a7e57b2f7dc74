"""SQLAlchemy (async) order store: orders, order_items and order_receipts tables."""
from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, Numeric, String, func, select, update
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship, selectinload

from orderdesk.orders.domain import MONEY_SCALE, Order, OrderItem, OrderReceipt, OrderStatus
from orderdesk.orders.infrastructure import OrderStore

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    pass


class OrderRow(Base):
    __tablename__ = "orders"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    total_amount: Mapped[Decimal] = mapped_column(Numeric(18, MONEY_SCALE))
    total_items: Mapped[int] = mapped_column(Integer)
    status: Mapped[str] = mapped_column(String(16), default=OrderStatus.PENDING.value, index=True)
    paid: Mapped[bool] = mapped_column(Boolean, default=False)
    paid_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    stripe_charge_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))

    items: Mapped[list[OrderItemRow]] = relationship(
        back_populates="order", cascade="all, delete-orphan", order_by="OrderItemRow.id"
    )
    receipt: Mapped[Optional[OrderReceiptRow]] = relationship(back_populates="order", cascade="all, delete-orphan")


class OrderItemRow(Base):
    __tablename__ = "order_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    order_id: Mapped[str] = mapped_column(ForeignKey("orders.id", ondelete="CASCADE"), index=True)
    product_id: Mapped[int] = mapped_column(Integer)
    quantity: Mapped[int] = mapped_column(Integer)
    price: Mapped[Decimal] = mapped_column(Numeric(18, MONEY_SCALE))

    order: Mapped[OrderRow] = relationship(back_populates="items")


class OrderReceiptRow(Base):
    __tablename__ = "order_receipts"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    order_id: Mapped[str] = mapped_column(ForeignKey("orders.id", ondelete="CASCADE"), unique=True)
    receipt_url: Mapped[str] = mapped_column(String(2048))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))

    order: Mapped[OrderRow] = relationship(back_populates="receipt")


def _aware(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite hands back naive datetimes; everything stored here is UTC.
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _to_row(order: Order) -> OrderRow:
    return OrderRow(
        id=order.id,
        total_amount=order.total_amount,
        total_items=order.total_items,
        status=order.status.value,
        paid=order.paid,
        paid_at=order.paid_at,
        stripe_charge_id=order.stripe_charge_id,
        created_at=order.created_at,
        updated_at=order.updated_at,
        items=[
            OrderItemRow(product_id=item.product_id, quantity=item.quantity, price=item.price)
            for item in order.items
        ],
    )


def _to_domain(row: OrderRow) -> Order:
    receipt = None
    if row.receipt is not None:
        receipt = OrderReceipt(
            id=row.receipt.id,
            receipt_url=row.receipt.receipt_url,
            created_at=_aware(row.receipt.created_at),
        )
    return Order(
        id=row.id,
        total_amount=Decimal(row.total_amount),
        total_items=row.total_items,
        items=[
            OrderItem(product_id=item.product_id, quantity=item.quantity, price=Decimal(item.price))
            for item in row.items
        ],
        status=OrderStatus(row.status),
        paid=row.paid,
        paid_at=_aware(row.paid_at),
        stripe_charge_id=row.stripe_charge_id,
        receipt=receipt,
        created_at=_aware(row.created_at),
        updated_at=_aware(row.updated_at),
    )


_LOAD = (selectinload(OrderRow.items), selectinload(OrderRow.receipt))


class SqlOrderStore(OrderStore):
    """Each public method runs in its own session; writes in their own transaction."""

    def __init__(self, engine: AsyncEngine) -> None:
        self._engine = engine
        self._sessions = async_sessionmaker(engine, expire_on_commit=False)

    @classmethod
    def from_url(cls, url: str, **engine_kwargs: Any) -> SqlOrderStore:
        return cls(create_async_engine(url, **engine_kwargs))

    async def connect(self) -> None:
        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Connected to the database")

    async def close(self) -> None:
        await self._engine.dispose()

    async def get(self, id: str) -> Optional[Order]:
        async with self._sessions() as session:
            row = await session.get(OrderRow, id, options=_LOAD)
            return _to_domain(row) if row is not None else None

    async def add(self, aggregate: Order) -> None:
        async with self._sessions.begin() as session:
            session.add(_to_row(aggregate))

    async def save(self, aggregate: Order) -> None:
        async with self._sessions.begin() as session:
            result = await session.execute(
                update(OrderRow)
                .where(OrderRow.id == aggregate.id)
                .values(status=aggregate.status.value, updated_at=aggregate.updated_at)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                raise KeyError(f"Order {aggregate.id} does not exist")

    async def count(self, status: Optional[OrderStatus] = None) -> int:
        stmt = select(func.count()).select_from(OrderRow)
        if status is not None:
            stmt = stmt.where(OrderRow.status == status.value)
        async with self._sessions() as session:
            return int(await session.scalar(stmt) or 0)

    async def find_page(self, status: Optional[OrderStatus], offset: int, limit: int) -> list[Order]:
        stmt = select(OrderRow).options(*_LOAD).order_by(OrderRow.created_at, OrderRow.id)
        if status is not None:
            stmt = stmt.where(OrderRow.status == status.value)
        stmt = stmt.offset(offset).limit(limit)
        async with self._sessions() as session:
            rows = (await session.scalars(stmt)).all()
            return [_to_domain(row) for row in rows]

    async def mark_paid(self, id: str, charge_id: str, receipt_url: str, at: datetime) -> Optional[Order]:
        async with self._sessions.begin() as session:
            result = await session.execute(
                update(OrderRow)
                .where(OrderRow.id == id, OrderRow.paid.is_(False))
                .values(
                    status=OrderStatus.PAID.value,
                    paid=True,
                    paid_at=at,
                    stripe_charge_id=charge_id,
                    updated_at=at,
                )
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                return None
            session.add(OrderReceiptRow(id=str(uuid.uuid4()), order_id=id, receipt_url=receipt_url, created_at=at))
        return await self.get(id)
