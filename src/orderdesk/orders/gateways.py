"""Gateways to the products and payments services, and read-time name enrichment."""
from __future__ import annotations

import logging
from collections import OrderedDict
from typing import Any, Iterable, Mapping, Protocol, runtime_checkable

from orderdesk.orders.domain import Product
from orderdesk.rpc.protocol import RpcError
from orderdesk.rpc.rpc_module import RpcClient

logger = logging.getLogger(__name__)

PRODUCTS_SERVICE = "products"
PAYMENTS_SERVICE = "payments"


class CatalogGateway:
    """validate_product on the products service: ids -> product records, fails if any id is unknown."""

    def __init__(self, client: RpcClient) -> None:
        self._client = client

    async def validate_products(self, ids: Iterable[int]) -> dict[int, Product]:
        ids = sorted(set(ids))
        records = await self._client.call(PRODUCTS_SERVICE, "validate_product", ids)
        if not isinstance(records, list):
            raise RpcError("BAD_RESPONSE", "validate_product returned no product list")
        return {product.id: product for product in map(Product.from_catalog, records)}


class PaymentGateway:
    """create.payment.session on the payments service."""

    def __init__(self, client: RpcClient) -> None:
        self._client = client

    async def create_session(self, order_id: str, currency: str, items: list[dict[str, Any]]) -> dict[str, Any]:
        return await self._client.call(
            PAYMENTS_SERVICE,
            "create.payment.session",
            {"orderId": order_id, "currency": currency, "items": items},
        )


@runtime_checkable
class NameResolver(Protocol):
    """Resolves product ids to display names at read time."""

    async def resolve_names(self, ids: Iterable[int]) -> dict[int, str]:
        ...

    def remember(self, names: Mapping[int, str]) -> None:
        """Names already fetched elsewhere (e.g. while placing an order)."""
        ...


class CatalogNameResolver:
    """Asks the catalog on every call."""

    def __init__(self, catalog: CatalogGateway) -> None:
        self._catalog = catalog

    async def resolve_names(self, ids: Iterable[int]) -> dict[int, str]:
        products = await self._catalog.validate_products(ids)
        return {pid: product.name for pid, product in products.items()}

    def remember(self, names: Mapping[int, str]) -> None:
        pass


class LastKnownNameResolver:
    """
    Wraps another resolver and remembers every name it returns or is told.
    When the inner resolver fails and all requested names have been seen before,
    the remembered names are returned instead of the error.
    Keeps at most max_names entries, evicting the least recently used.
    """

    def __init__(self, inner: NameResolver, max_names: int = 10_000) -> None:
        if max_names < 1:
            raise ValueError("max_names must be >= 1")
        self._inner = inner
        self._max_names = max_names
        self._names: OrderedDict[int, str] = OrderedDict()

    def remember(self, names: Mapping[int, str]) -> None:
        for pid, name in names.items():
            self._names[pid] = name
            self._names.move_to_end(pid)
        while len(self._names) > self._max_names:
            self._names.popitem(last=False)

    async def resolve_names(self, ids: Iterable[int]) -> dict[int, str]:
        ids = sorted(set(ids))
        try:
            names = await self._inner.resolve_names(ids)
        except RpcError as e:
            if not all(pid in self._names for pid in ids):
                raise
            logger.warning("Catalog unavailable (%s); using last known names for %s", e.code, ids)
            for pid in ids:
                self._names.move_to_end(pid)
            return {pid: self._names[pid] for pid in ids}
        self.remember(names)
        return names
