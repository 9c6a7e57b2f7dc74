"""
App composition: everything via module objects and app.register().
"""
from __future__ import annotations

from typing import Optional

from orderdesk.core import Application, Settings
from orderdesk.discovery import DiscoveryModule
from orderdesk.orders.infrastructure import OrderStore
from orderdesk.orders.module import OrdersModule
from orderdesk.orders.rpc import OrdersRpcServer
from orderdesk.rpc import JsonHttpRpcTransport, RpcModule, RpcTransport


def build_app(
    settings: Optional[Settings] = None,
    *,
    store: Optional[OrderStore] = None,
    transport: Optional[RpcTransport] = None,
    payments: bool = True,
) -> Application:
    """Orders service app. Defaults: settings from env, SQL store, HTTP+JSON transport."""
    settings = settings or Settings.from_env()
    app = Application(config=settings)

    discovery = DiscoveryModule().static(settings.services)
    app.register(discovery)

    app.register(OrdersModule(settings, store=store, payments=payments))

    rpc = (
        RpcModule()
        .server(path="/rpc", handler=OrdersRpcServer)
        .client(
            discovery=discovery.discovery,
            transport=transport or JsonHttpRpcTransport(timeout=settings.rpc_timeout),
            timeout=settings.rpc_timeout,
        )
    )
    app.register(rpc)
    return app
