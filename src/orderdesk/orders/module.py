"""One object = full bounded context «orders»: store, gateways, coordinator, RPC server."""
from __future__ import annotations

from typing import Optional

from orderdesk.core.app import Application
from orderdesk.core.config import Settings
from orderdesk.core.module import Module
from orderdesk.orders.gateways import (
    CatalogGateway,
    CatalogNameResolver,
    LastKnownNameResolver,
    NameResolver,
    PaymentGateway,
)
from orderdesk.orders.infrastructure import OrderStore
from orderdesk.orders.rpc import OrdersRpcServer
from orderdesk.orders.service import OrderCoordinator
from orderdesk.orders.sql import SqlOrderStore


class OrdersModule(Module):
    """
    Registers the orders context into the app container. Needs an RpcClient
    (RpcModule.client) to be registered before the first request.
    Payments are enabled unless payments=False.
    """

    def __init__(self, settings: Settings, store: Optional[OrderStore] = None, payments: bool = True) -> None:
        self._settings = settings
        self._store = store
        self._payments = payments

    def register_into(self, app: Application) -> None:
        container = app.container
        settings = self._settings
        store = self._store or SqlOrderStore.from_url(settings.database_url)

        container.register_instance(OrderStore, store)
        container.register_class(CatalogGateway)
        container.register_class(PaymentGateway)

        def names() -> NameResolver:
            resolver: NameResolver = CatalogNameResolver(container.resolve(CatalogGateway))
            if settings.name_fallback:
                resolver = LastKnownNameResolver(resolver)
            return resolver

        container.register(NameResolver, names)
        container.register(
            OrderCoordinator,
            lambda: OrderCoordinator(
                store=container.resolve(OrderStore),
                catalog=container.resolve(CatalogGateway),
                payments=container.resolve(PaymentGateway) if self._payments else None,
                names=container.resolve(NameResolver),
                currency=settings.currency,
            ),
        )
        container.register_class(OrdersRpcServer)

        app.on_startup(store.connect)
        app.on_shutdown(store.close)
