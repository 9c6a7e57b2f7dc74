from orderdesk.rpc.protocol import (
    BadRequestError,
    NotFoundError,
    RpcError,
    RpcServerHandler,
    RpcTransport,
    ServiceUnavailableError,
)
from orderdesk.rpc.rpc_module import (
    JsonHttpRpcTransport,
    LocalRpcTransport,
    RpcClient,
    RpcModule,
    RpcServer,
)

__all__ = [
    "BadRequestError",
    "NotFoundError",
    "RpcClient",
    "RpcError",
    "RpcModule",
    "RpcServer",
    "RpcServerHandler",
    "RpcTransport",
    "ServiceUnavailableError",
    "JsonHttpRpcTransport",
    "LocalRpcTransport",
]
