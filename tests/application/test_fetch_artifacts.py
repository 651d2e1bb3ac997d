from __future__ import annotations

import pytest

from sequencer_probe.application.fetch_artifacts import (
    SIBLING_PATH_METHOD,
    TIPS_METHOD,
    ArtifactFetcher,
)
from sequencer_probe.domain.errors import MissingFieldError, RpcResponseError, RpcTransportError
from sequencer_probe.domain.models import ProvenBlock
from tests.fixtures.fakes import FIXED_NOW, ScriptedNode, proof_response, tips_response


def _fetcher(node: ScriptedNode) -> ArtifactFetcher:
    return ArtifactFetcher(node, clock=lambda: FIXED_NOW)


def test_fetch_proven_block_reads_proven_number() -> None:
    node = ScriptedNode([{"result": {"proven": {"number": 42}}}])

    block = _fetcher(node).fetch_proven_block()

    assert block.height == 42
    assert block.retrieved_at == FIXED_NOW
    assert node.calls == [(TIPS_METHOD, ())]


def test_fetch_proven_block_accepts_decimal_string() -> None:
    node = ScriptedNode([tips_response("1234")])

    assert _fetcher(node).fetch_proven_block().height == 1234


@pytest.mark.parametrize(
    "response",
    [
        {"result": None},
        {"jsonrpc": "2.0", "id": 67},
        {"result": {"latest": {"number": 9}}},
        {"result": {"proven": None}},
        tips_response(None),
        tips_response(""),
        {"jsonrpc": "2.0", "id": 67, "error": {"code": -32603, "message": "internal"}},
    ],
)
def test_fetch_proven_block_missing_field(response: dict[str, object]) -> None:
    node = ScriptedNode([response])

    with pytest.raises(MissingFieldError) as excinfo:
        _fetcher(node).fetch_proven_block()

    assert excinfo.value.field == "result.proven.number"
    assert excinfo.value.method == TIPS_METHOD
    assert len(node.calls) == 1


@pytest.mark.parametrize("number", [True, "latest", -3, 1.5, {"value": 1}, "²", "١٢"])
def test_fetch_proven_block_rejects_non_integer_heights(number: object) -> None:
    node = ScriptedNode([tips_response(number)])

    with pytest.raises(RpcResponseError):
        _fetcher(node).fetch_proven_block()


def test_fetch_proven_block_propagates_transport_errors_without_retry() -> None:
    node = ScriptedNode([RpcTransportError("connection reset"), tips_response(7)])

    with pytest.raises(RpcTransportError, match="connection reset"):
        _fetcher(node).fetch_proven_block()

    assert len(node.calls) == 1


def test_fetch_sync_proof_requests_sibling_path_for_block_height() -> None:
    node = ScriptedNode([{"result": "base64xyz"}])
    block = ProvenBlock(height=42, retrieved_at=FIXED_NOW)

    proof = _fetcher(node).fetch_sync_proof(block)

    assert proof.payload == "base64xyz"
    assert proof.height == 42
    assert node.calls == [(SIBLING_PATH_METHOD, ("42", "42"))]


def test_fetch_sync_proof_serializes_structured_results() -> None:
    node = ScriptedNode([proof_response({"path": ["0x01", "0x02"]})])
    block = ProvenBlock(height=5, retrieved_at=FIXED_NOW)

    proof = _fetcher(node).fetch_sync_proof(block)

    assert proof.payload == '{"path":["0x01","0x02"]}'


@pytest.mark.parametrize("result", [None, ""])
def test_fetch_sync_proof_missing_result(result: object) -> None:
    node = ScriptedNode([proof_response(result)])
    block = ProvenBlock(height=42, retrieved_at=FIXED_NOW)

    with pytest.raises(MissingFieldError) as excinfo:
        _fetcher(node).fetch_sync_proof(block)

    assert excinfo.value.field == "result"
    assert excinfo.value.method == SIBLING_PATH_METHOD


def test_fetch_sync_proof_missing_result_key() -> None:
    node = ScriptedNode([{"jsonrpc": "2.0", "id": 67}])
    block = ProvenBlock(height=1, retrieved_at=FIXED_NOW)

    with pytest.raises(MissingFieldError, match="missing result"):
        _fetcher(node).fetch_sync_proof(block)
