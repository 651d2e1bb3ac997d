"""Port describing JSON-RPC access to a sequencer node."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

from sequencer_probe.json_types import JsonObject, JsonValue


class NodeRpcPort(Protocol):
    """Issues single JSON-RPC calls against the node endpoint."""

    def call(
        self,
        method: str,
        params: Sequence[JsonValue] = (),
        *,
        timeout: float | None = None,
    ) -> JsonObject:
        """Return the decoded JSON-RPC response envelope.

        ``timeout`` lowers the adapter's own request timeout for this call.
        Raises ``RpcTransportError`` when the endpoint is unreachable and
        ``RpcResponseError`` when the body is not a JSON object.
        """


__all__ = ["NodeRpcPort"]
