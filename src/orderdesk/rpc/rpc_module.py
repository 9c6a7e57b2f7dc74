"""
RpcModule: building block for RPC: server (accept calls) and client (call other services).
Configure via .server(...) and .client(...); register with app.register(rpc).
Requests and replies are JSON; errors travel as the standard envelope (see RpcError.to_envelope).
"""
from __future__ import annotations

import asyncio
import json
import logging
import re
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Callable

import httpx
from starlette.requests import Request
from starlette.responses import Response

from orderdesk.core.app import Application
from orderdesk.core.module import Module
from orderdesk.discovery.protocol import ServiceDiscovery
from orderdesk.rpc.protocol import (
    BadRequestError,
    NotFoundError,
    RpcError,
    RpcServerHandler,
    RpcTransport,
    ServiceUnavailableError,
)

logger = logging.getLogger(__name__)


def _json_default(value: Any) -> Any:
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def dumps(data: Any) -> bytes:
    return json.dumps(data, default=_json_default).encode()


def method_attr(method: str) -> str:
    """Message pattern -> handler attribute: 'createOrder' -> 'create_order', 'payment.succeeded' -> 'payment_succeeded'."""
    name = re.sub(r"[./\-]", "_", (method or "").strip())
    return re.sub(r"(?<!^)(?<!_)(?=[A-Z])", "_", name).lower()


class RpcModule(Module):
    """
    RPC as object: .server(path, handler) and .client(discovery, transport).
    One object describes both accepting calls and calling other services.
    """

    def __init__(self) -> None:
        self._server_path: str | None = None
        self._server_handler: RpcServerHandler | type | None = None
        self._client_discovery: ServiceDiscovery | None = None
        self._client_transport: RpcTransport | None = None
        self._client_timeout: float = 5.0

    def server(self, path: str = "/rpc", handler: RpcServerHandler | type | None = None) -> RpcModule:
        """Route for incoming RPC. handler: instance or class (then resolved from container)."""
        self._server_path = path.rstrip("/")
        self._server_handler = handler
        return self

    def client(
        self,
        discovery: ServiceDiscovery,
        transport: RpcTransport,
        timeout: float = 5.0,
    ) -> RpcModule:
        """Client: discovery (resolve name -> URL), transport and per-call timeout in seconds."""
        self._client_discovery = discovery
        self._client_transport = transport
        self._client_timeout = timeout
        return self

    def register_into(self, app: Application) -> None:
        if self._server_path is not None and self._server_handler is not None:
            if isinstance(self._server_handler, type) and not app.container.has(self._server_handler):
                app.container.register_class(self._server_handler)
            app.add_route(f"{self._server_path}/{{method}}", self._make_endpoint(app), methods=["POST"])
        if self._client_transport is not None and self._client_discovery is not None:
            discovery, transport, timeout = self._client_discovery, self._client_transport, self._client_timeout
            app.container.register_instance(ServiceDiscovery, discovery)
            app.container.register_instance(RpcTransport, transport)
            app.container.register(RpcClient, lambda: RpcClient(discovery, transport, timeout=timeout))

    def _make_endpoint(self, app: Application) -> Callable:
        async def endpoint(request: Request) -> Response:
            method = request.path_params["method"]
            body = await request.body()
            # JsonHttpRpcTransport wraps params as {"method": ..., "params": ...}.
            try:
                data = json.loads(body) if body else {}
            except ValueError:
                return Response(dumps(BadRequestError("Malformed JSON body").to_envelope()), media_type="application/json")
            if isinstance(data, dict) and "params" in data:
                data = data["params"]
            h = app.container.resolve(self._server_handler) if isinstance(self._server_handler, type) else self._server_handler
            result = await h.handle(method, dumps(data))
            return Response(result, media_type="application/json")

        return endpoint


class RpcServer:
    """
    Server facade: implement methods like create_order(self, params) -> dict.
    handle() maps the message pattern to a method (see method_attr), parses the JSON params,
    calls self.<method>(params) and serializes the result.
    Raise RpcError (or a subclass) for errors; they are returned as the standard envelope.
    """

    async def handle(self, method: str, payload: bytes) -> bytes:
        try:
            params = json.loads(payload.decode() or "null") if payload else None
        except ValueError:
            return dumps(BadRequestError("Malformed JSON params").to_envelope())

        name = method_attr(method)
        handler_fn = getattr(self, name, None) if name and not name.startswith("_") and name != "handle" else None
        if not callable(handler_fn):
            return dumps(NotFoundError(f"unknown method {method!r}").to_envelope())

        try:
            result = handler_fn(params)
            if hasattr(result, "__await__"):
                result = await result
        except RpcError as e:
            return dumps(e.to_envelope())
        except Exception as e:
            logger.exception("RPC method %s failed", method)
            return dumps(RpcError("INTERNAL", str(e)).to_envelope())

        return dumps(result)


def _is_error_response(data: Any) -> bool:
    return isinstance(data, dict) and "error" in data


class RpcClient:
    """
    Facade: call(service_name, method, params) -> decoded result.
    Uses ServiceDiscovery + RpcTransport; JSON encode/decode inside.
    Server error envelopes are raised as the matching RpcError subclass;
    transport failures and timeouts as ServiceUnavailableError.
    """

    def __init__(self, discovery: ServiceDiscovery, transport: RpcTransport, timeout: float = 5.0) -> None:
        self._discovery = discovery
        self._transport = transport
        self._timeout = timeout

    async def call(self, service_name: str, method: str, params: Any) -> Any:
        urls = self._discovery.resolve(service_name)
        if not urls:
            raise ServiceUnavailableError(f"Service {service_name!r} not found")
        try:
            result = await asyncio.wait_for(
                self._transport.call(urls[0], method, dumps(params)),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError as e:
            raise ServiceUnavailableError(
                f"Service {service_name!r} did not answer {method!r} within {self._timeout}s"
            ) from e
        except (OSError, httpx.HTTPError) as e:
            raise ServiceUnavailableError(f"Service {service_name!r} unreachable: {e}") from e
        try:
            data = json.loads(result.decode()) if result else None
        except ValueError as e:
            raise RpcError("BAD_RESPONSE", f"Service {service_name!r} returned malformed JSON") from e
        if _is_error_response(data):
            raise RpcError.from_envelope(data["error"])
        return data


class JsonHttpRpcTransport:
    """HTTP + JSON transport: POST {url}{base_path}/{method} with {"method", "params"}."""

    def __init__(self, base_path: str = "/rpc", timeout: float = 5.0) -> None:
        self._base_path = base_path
        self._timeout = timeout

    async def call(self, url: str, method: str, payload: bytes) -> bytes:
        full_url = url.rstrip("/") + self._base_path + "/" + method
        body = {"method": method, "params": json.loads(payload.decode() or "null")}
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            r = await client.post(full_url, json=body)
            return r.content


class LocalRpcTransport:
    """In-process transport: service URL -> RpcServerHandler. For tests and single-process setups."""

    def __init__(self, handlers: dict[str, RpcServerHandler] | None = None) -> None:
        self._handlers: dict[str, RpcServerHandler] = dict(handlers or {})

    def mount(self, url: str, handler: RpcServerHandler) -> LocalRpcTransport:
        self._handlers[url] = handler
        return self

    async def call(self, url: str, method: str, payload: bytes) -> bytes:
        handler = self._handlers.get(url)
        if handler is None:
            raise ConnectionRefusedError(f"No handler mounted at {url!r}")
        return await handler.handle(method, payload)
