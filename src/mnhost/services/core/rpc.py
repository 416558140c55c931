"""JSON-RPC client for a node's local daemon."""

from __future__ import annotations

import logging
from typing import Any, Protocol, Sequence

import httpx

from mnhost.config import const
from mnhost.services.errors import RpcProtocolError, RpcTransportError

_log = logging.getLogger("mnhost.core.rpc")


class RpcTarget(Protocol):
    rpc_port: int
    rpc_user: str
    rpc_password: str


def split_alias(alias: str) -> tuple[str, list[Any]]:
    """``"masternode status"`` -> ``("masternode", ["status"])``."""

    parts = alias.split()
    if not parts:
        raise ValueError("empty RPC method")
    return parts[0], list(parts[1:])


def _error_message(payload: Any) -> tuple[str | None, int | None]:
    if not isinstance(payload, dict):
        return None, None
    error = payload.get("error")
    if error is None:
        return None, None
    if isinstance(error, dict):
        message = error.get("message")
        code = error.get("code")
        return (str(message) if message else "RPC error"), (code if isinstance(code, int) else None)
    return str(error), None


class RpcClient:
    """One POST per call, no retries; callers own retry and backoff."""

    def __init__(
        self,
        *,
        host: str = "127.0.0.1",
        timeout: float = const.RPC_TIMEOUT_S,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.host = host
        self.timeout = timeout
        self._transport = transport

    def url_for(self, node: RpcTarget) -> str:
        return f"http://{self.host}:{int(node.rpc_port)}/"

    async def call(self, node: RpcTarget, method: str, params: Sequence[Any] | None = None) -> Any:
        envelope = {
            "jsonrpc": "1.0",
            "id": const.RPC_REQUEST_ID,
            "method": method,
            "params": list(params or []),
        }
        url = self.url_for(node)
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(url, json=envelope, auth=(node.rpc_user, node.rpc_password))
        except httpx.RequestError as exc:
            raise RpcTransportError(f"RPC {method} to {url} failed: {str(exc) or exc.__class__.__name__}", method=method) from exc

        payload: Any = None
        if response.content:
            try:
                payload = response.json()
            except ValueError:
                payload = None

        if response.status_code < 200 or response.status_code >= 300:
            detail, _ = _error_message(payload)
            message = f"RPC error: {response.status_code} {response.reason_phrase}"
            if detail:
                message = f"{message}: {detail}"
            raise RpcTransportError(message, method=method, http_status=response.status_code)

        if not isinstance(payload, dict):
            raise RpcProtocolError(f"RPC {method}: malformed response", method=method)

        detail, code = _error_message(payload)
        if detail is not None:
            raise RpcProtocolError(detail, method=method, rpc_code=code)
        return payload.get("result")

    async def call_alias(self, node: RpcTarget, alias: str, params: Sequence[Any] = ()) -> Any:
        method, head = split_alias(alias)
        return await self.call(node, method, [*head, *params])
