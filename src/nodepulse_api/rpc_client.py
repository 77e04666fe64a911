from __future__ import annotations

import logging
from typing import Any

import requests
from pydantic import ValidationError

from nodepulse_core.config import NodeSettings
from nodepulse_core.rpc import (
    DEFAULT_METHOD,
    DEFAULT_REQUEST_ID,
    JsonRpcRequest,
    JsonRpcResponse,
    RpcError,
    RpcProtocolError,
    RpcTransportError,
)

logger = logging.getLogger(__name__)


class RequestsJsonRpcClient:
    """JSON-RPC 2.0 over HTTP POST, one request per call, no retries."""

    def __init__(
        self,
        url: str,
        *,
        method: str = DEFAULT_METHOD,
        request_id: int = DEFAULT_REQUEST_ID,
        timeout_seconds: float = 2.0,
        session: Any | None = None,
    ) -> None:
        self.url = url
        self.method = method
        self.request_id = request_id
        self.timeout = (timeout_seconds, timeout_seconds)
        self.session = session if session is not None else requests.Session()

    @classmethod
    def from_settings(cls, settings: NodeSettings, *, session: Any | None = None) -> RequestsJsonRpcClient:
        return cls(
            settings.rpc_url,
            method=settings.rpc_method,
            timeout_seconds=settings.rpc_timeout_seconds,
            session=session,
        )

    def envelope(self, method: str | None = None) -> JsonRpcRequest:
        return JsonRpcRequest(method=method or self.method, params=[], id=self.request_id)

    def call(self, method: str | None = None) -> JsonRpcResponse:
        body = self.envelope(method).model_dump()
        try:
            response = self.session.post(self.url, json=body, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as exc:
            raise RpcTransportError(f"{body['method']} to {self.url} failed: {exc}") from exc
        try:
            payload = response.json()
        except ValueError as exc:
            raise RpcProtocolError(f"{body['method']} returned non-JSON body") from exc
        if not isinstance(payload, dict):
            raise RpcProtocolError(f"{body['method']} returned {type(payload).__name__}, expected object")
        try:
            return JsonRpcResponse.model_validate(payload)
        except ValidationError as exc:
            raise RpcProtocolError(f"{body['method']} returned invalid envelope: {exc}") from exc

    def probe(self) -> bool:
        try:
            response = self.call()
        except RpcError as exc:
            logger.debug("probe failed: %s", exc)
            return False
        return not response.is_error

    def close(self) -> None:
        self.session.close()
