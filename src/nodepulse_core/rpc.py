from __future__ import annotations

from typing import Any, Literal, Protocol

from pydantic import BaseModel, ConfigDict, Field

JSONRPC_VERSION = "2.0"
DEFAULT_METHOD = "eth_blockNumber"
DEFAULT_REQUEST_ID = 1


class RpcError(Exception):
    """Base class for failures talking to the node."""


class RpcTransportError(RpcError):
    """No usable HTTP response: connection refused, timeout, DNS or non-2xx."""


class RpcProtocolError(RpcError):
    """The node answered, but not with a JSON-RPC response object."""


class JsonRpcRequest(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    jsonrpc: Literal["2.0"] = JSONRPC_VERSION
    method: str = Field(min_length=1)
    params: list[Any] = Field(default_factory=list)
    id: int = DEFAULT_REQUEST_ID


class JsonRpcResponse(BaseModel):
    # Nodes disagree on optional members; keep whatever else they send.
    model_config = ConfigDict(extra="allow")

    jsonrpc: str | None = None
    id: int | str | None = None
    result: Any = None
    error: Any = None

    @property
    def is_error(self) -> bool:
        return self.error is not None


class NodeRpc(Protocol):
    def probe(self) -> bool:
        ...

    def call(self, method: str | None = None) -> JsonRpcResponse:
        ...
