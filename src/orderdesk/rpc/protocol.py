"""RPC protocols and the error taxonomy shared by client and server."""
from __future__ import annotations

from http import HTTPStatus
from typing import Any, Protocol, runtime_checkable


class RpcError(Exception):
    """RPC call failed: server returned error envelope or transport failed."""

    status_code: int = HTTPStatus.INTERNAL_SERVER_ERROR

    def __init__(self, code: str, message: str, status_code: int | None = None) -> None:
        self.code = code
        self.message = message
        if status_code is not None:
            self.status_code = int(status_code)
        super().__init__(f"[{code}] {message}")

    def to_envelope(self) -> dict[str, Any]:
        """Standard error envelope: {"error": {"code", "message", "statusCode"}}."""
        return {"error": {"code": self.code, "message": self.message, "statusCode": int(self.status_code)}}

    @classmethod
    def from_envelope(cls, error: Any) -> RpcError:
        """Rebuild the matching exception from a server error envelope."""
        if not isinstance(error, dict):
            return RpcError("UNKNOWN", str(error))
        code = error.get("code", "UNKNOWN")
        message = error.get("message", str(error))
        known = _BY_CODE.get(code)
        if known is not None:
            return known(message)
        return RpcError(code, message, error.get("statusCode"))


class BadRequestError(RpcError):
    """Client-caused failure: invalid input, unknown product, no-op transition."""

    status_code = HTTPStatus.BAD_REQUEST

    def __init__(self, message: str) -> None:
        super().__init__("BAD_REQUEST", message)


class NotFoundError(RpcError):
    status_code = HTTPStatus.NOT_FOUND

    def __init__(self, message: str) -> None:
        super().__init__("NOT_FOUND", message)


class ServiceUnavailableError(RpcError):
    """Downstream service could not be reached or did not answer in time."""

    status_code = HTTPStatus.SERVICE_UNAVAILABLE

    def __init__(self, message: str) -> None:
        super().__init__("SERVICE_UNAVAILABLE", message)


_BY_CODE: dict[str, type[RpcError]] = {
    "BAD_REQUEST": BadRequestError,
    "NOT_FOUND": NotFoundError,
    "SERVICE_UNAVAILABLE": ServiceUnavailableError,
}


@runtime_checkable
class RpcTransport(Protocol):
    """RPC transport: send request, get response. User implements (HTTP, NATS, in-process)."""

    async def call(self, url: str, method: str, payload: bytes) -> bytes:
        ...


@runtime_checkable
class RpcServerHandler(Protocol):
    """Incoming RPC handler: method + body -> response."""

    async def handle(self, method: str, payload: bytes) -> bytes:
        ...
