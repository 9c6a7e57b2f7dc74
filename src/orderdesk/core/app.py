"""Application: composed from modules via app.register(module). Served as a Starlette ASGI app."""
from __future__ import annotations

import contextlib
import logging
from typing import Any, AsyncIterator, Awaitable, Callable

import uvicorn
from starlette.applications import Starlette
from starlette.routing import Route

from orderdesk.core.container import Container
from orderdesk.core.module import Module

logger = logging.getLogger(__name__)

Hook = Callable[[], Awaitable[None]]


class Application:
    """
    Application. Composed from modules via register(module).
    Routes and lifecycle hooks collected from modules are turned into a Starlette app on first use.
    """

    def __init__(self, config: Any = None) -> None:
        self._modules: list[Module] = []
        self._container = Container()
        self._routes: list[Route] = []
        self._startup: list[Hook] = []
        self._shutdown: list[Hook] = []
        self._asgi: Starlette | None = None
        if config is not None:
            self._container.register_instance(type(config), config)
            self._container.register_instance("config", config)

    def register(self, module: Module) -> Application:
        """Register a module (OrdersModule, RpcModule, etc.). Returns self for chaining."""
        module.register_into(self)
        self._modules.append(module)
        return self

    def add_route(self, path: str, endpoint: Any, methods: list[str] | None = None) -> None:
        """Add an HTTP route. endpoint: async (request) -> Response."""
        if self._asgi is not None:
            raise RuntimeError("Routes must be added before the app is served")
        self._routes.append(Route(path, endpoint, methods=methods or ["GET"]))

    def on_startup(self, hook: Hook) -> None:
        self._startup.append(hook)

    def on_shutdown(self, hook: Hook) -> None:
        self._shutdown.append(hook)

    async def startup(self) -> None:
        for hook in self._startup:
            await hook()

    async def shutdown(self) -> None:
        # Reverse order: last started, first stopped.
        for hook in reversed(self._shutdown):
            await hook()

    @contextlib.asynccontextmanager
    async def _lifespan(self, _: Starlette) -> AsyncIterator[None]:
        await self.startup()
        try:
            yield
        finally:
            await self.shutdown()

    @property
    def asgi(self) -> Starlette:
        """ASGI app built from the registered routes and hooks."""
        if self._asgi is None:
            self._asgi = Starlette(routes=list(self._routes), lifespan=self._lifespan)
        return self._asgi

    @property
    def container(self) -> Container:
        """DI container: registration and resolution of dependencies."""
        return self._container

    def run(self, host: str = "127.0.0.1", port: int = 8000, log_level: str = "info") -> None:
        """Run HTTP server (blocks)."""
        logger.info("Serving on %s:%s", host, port)
        uvicorn.run(self.asgi, host=host, port=port, log_level=log_level.lower())
