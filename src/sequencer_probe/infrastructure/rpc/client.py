"""JSON-RPC 2.0 client for the sequencer node, backed by HTTPX."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

import httpx

from sequencer_probe.application.ports.node_rpc import NodeRpcPort
from sequencer_probe.domain.errors import RpcResponseError, RpcTransportError
from sequencer_probe.domain.models import Endpoint
from sequencer_probe.json_types import JsonObject, JsonValue

logger = logging.getLogger(__name__)

DEFAULT_REQUEST_ID = 67


@dataclass
class HttpNodeRpcClient(NodeRpcPort):
    """Implementation of NodeRpcPort issuing one POST per call.

    The HTTP status is not inspected: a node that answers with a JSON body is
    treated as having answered, whatever the status line says.
    """

    endpoint: Endpoint
    timeout_seconds: float = 5.0
    request_id: int = DEFAULT_REQUEST_ID
    transport: httpx.BaseTransport | None = None

    def __post_init__(self) -> None:
        if self.timeout_seconds <= 0:
            raise ValueError("rpc timeout_seconds must be positive")

    def _client(self, timeout: float) -> httpx.Client:
        return httpx.Client(timeout=timeout, transport=self.transport)

    def call(
        self,
        method: str,
        params: Sequence[JsonValue] = (),
        *,
        timeout: float | None = None,
    ) -> JsonObject:
        effective_timeout = self.timeout_seconds
        if timeout is not None:
            if timeout <= 0:
                raise RpcTransportError(f"{method} to {self.endpoint} skipped: no time left")
            effective_timeout = min(effective_timeout, timeout)
        body: JsonObject = {
            "jsonrpc": "2.0",
            "method": method,
            "params": list(params),
            "id": self.request_id,
        }
        try:
            with self._client(effective_timeout) as client:
                response = client.post(
                    self.endpoint.url,
                    json=body,
                    headers={"Accept": "application/json"},
                )
        except httpx.HTTPError as exc:
            raise RpcTransportError(f"{method} to {self.endpoint} failed: {exc!r}") from exc

        logger.debug(
            "rpc response received",
            extra={"data": {"method": method, "status": response.status_code}},
        )
        try:
            payload = response.json()
        except ValueError as exc:
            raise RpcResponseError(
                f"{method} returned non-JSON body (status {response.status_code}): "
                f"{_summarize_text(response)}"
            ) from exc
        if not isinstance(payload, dict):
            raise RpcResponseError(f"{method} response must be a JSON object")
        return payload


def _summarize_text(response: httpx.Response, *, limit: int = 200) -> str:
    text = (response.text or "").strip()
    if len(text) <= limit:
        return text
    return text[:limit] + "..."


__all__ = ["DEFAULT_REQUEST_ID", "HttpNodeRpcClient"]
