"""One-shot retrieval of the proven block height and its sync proof."""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Sequence
from datetime import UTC, datetime

from sequencer_probe.application.ports.node_rpc import NodeRpcPort
from sequencer_probe.domain.errors import MissingFieldError, RpcResponseError
from sequencer_probe.domain.models import ProvenBlock, SyncProof
from sequencer_probe.json_types import JsonObject, JsonValue

logger = logging.getLogger("sequencer_probe.artifacts")

TIPS_METHOD = "node_getL2Tips"
SIBLING_PATH_METHOD = "node_getArchiveSiblingPath"

_PROVEN_NUMBER_PATH = ("result", "proven", "number")


class ArtifactFetcher:
    """Fetches artifacts from a reachable node.

    Calls are never retried here; retry policy belongs to the caller.
    """

    def __init__(
        self,
        node: NodeRpcPort,
        *,
        clock: Callable[[], datetime] = lambda: datetime.now(UTC),
    ) -> None:
        self._node = node
        self._clock = clock

    def fetch_proven_block(self) -> ProvenBlock:
        """Return the latest proven block reported by ``node_getL2Tips``."""

        response = self._node.call(TIPS_METHOD)
        value = _lookup(response, _PROVEN_NUMBER_PATH)
        if _is_absent(value):
            raise MissingFieldError(".".join(_PROVEN_NUMBER_PATH), method=TIPS_METHOD)
        block = ProvenBlock(height=_coerce_height(value), retrieved_at=self._clock())
        logger.info("retrieved latest proven block", extra={"data": {"height": block.height}})
        return block

    def fetch_sync_proof(self, block: ProvenBlock) -> SyncProof:
        """Return the archive sibling path for ``block``.

        Takes the ``ProvenBlock`` itself so a proof can only be requested for
        a height this run has actually fetched.
        """

        height = str(block.height)
        response = self._node.call(SIBLING_PATH_METHOD, (height, height))
        value = _lookup(response, ("result",))
        if _is_absent(value):
            raise MissingFieldError("result", method=SIBLING_PATH_METHOD)
        payload = value if isinstance(value, str) else json.dumps(value, separators=(",", ":"))
        proof = SyncProof.for_block(block, payload)
        logger.info(
            "retrieved sync proof",
            extra={"data": {"height": proof.height, "payload_len": len(proof.payload)}},
        )
        return proof


def _lookup(response: JsonObject, path: Sequence[str]) -> JsonValue:
    current: JsonValue = response
    for key in path:
        if not isinstance(current, dict):
            return None
        current = current.get(key)
    return current


def _is_absent(value: JsonValue) -> bool:
    return value is None or value == ""


def _coerce_height(value: JsonValue) -> int:
    if isinstance(value, bool):
        raise RpcResponseError(f"proven block number must be an integer, got {value!r}")
    if isinstance(value, int):
        height = value
    elif isinstance(value, float) and value.is_integer():
        height = int(value)
    elif isinstance(value, str) and value.strip().isascii() and value.strip().isdigit():
        height = int(value.strip(), 10)
    else:
        raise RpcResponseError(f"proven block number must be an integer, got {value!r}")
    if height < 0:
        raise RpcResponseError(f"proven block number must be non-negative, got {height}")
    return height


__all__ = ["ArtifactFetcher", "SIBLING_PATH_METHOD", "TIPS_METHOD"]
