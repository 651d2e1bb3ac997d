from __future__ import annotations

import json
from pathlib import Path
from subprocess import CompletedProcess

import httpx

from sequencer_probe.application.orchestrator import ProbeStage
from sequencer_probe.runtime.bootstrap import build_runtime
from sequencer_probe.runtime.settings import ProbeSettings
from tests.fixtures.fakes import FakeClock


def _node_handler(proven: int, proof: str):
    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        if body["method"] == "node_getL2Tips":
            result = {"proven": {"number": proven}, "latest": {"number": proven + 3}}
            return httpx.Response(status_code=200, json={"jsonrpc": "2.0", "id": body["id"], "result": result})
        if body["method"] == "node_getArchiveSiblingPath":
            assert body["params"] == [str(proven), str(proven)]
            return httpx.Response(status_code=200, json={"jsonrpc": "2.0", "id": body["id"], "result": proof})
        return httpx.Response(status_code=404)

    return handler


def test_runtime_saves_output_record_end_to_end(tmp_path: Path) -> None:
    output = tmp_path / "aztec_node_output.txt"
    settings = ProbeSettings(
        NODE_RPC_ENDPOINT="localhost:8080",
        PROBE_OUTPUT_PATH=output,
        STARTUP_DELAY_SECONDS=0,
    )
    clock = FakeClock()

    runtime = build_runtime(
        settings,
        transport=httpx.MockTransport(_node_handler(100, "proofdata")),
        sleep=clock.sleep,
        monotonic=clock.monotonic,
    )
    report = runtime.orchestrator.run()

    assert report.stage is ProbeStage.DONE
    content = output.read_text(encoding="utf-8")
    assert "Latest Proven Block Number: 100" in content
    assert "Sync Proof (base64): proofdata" in content


def test_runtime_collects_docker_diagnostics_on_timeout(tmp_path: Path) -> None:
    settings = ProbeSettings(
        PROBE_OUTPUT_PATH=tmp_path / "out.txt",
        POLL_INTERVAL_SECONDS=10,
        POLL_MAX_WAIT_SECONDS=30,
    )
    clock = FakeClock()
    commands: list[list[str]] = []

    def refuse(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    def runner(args: list[str], **kwargs: object) -> CompletedProcess[str]:
        commands.append(list(args))
        return CompletedProcess(args=args, returncode=0, stdout="CONTAINER ID   IMAGE\n", stderr="")

    runtime = build_runtime(
        settings,
        transport=httpx.MockTransport(refuse),
        command_runner=runner,
        sleep=clock.sleep,
        monotonic=clock.monotonic,
    )
    report = runtime.orchestrator.run()

    assert report.stage is ProbeStage.FAILED
    assert report.failure is not None and report.failure.stage is ProbeStage.POLLING
    assert report.readiness is not None and report.readiness.attempts == 3
    assert report.diagnostics is not None
    assert report.diagnostics.notes == ("no aztecprotocol/aztec container found",)
    assert commands[0][:3] == ["docker", "ps", "-a"]
    assert not (tmp_path / "out.txt").exists()


def test_runtime_skips_diagnostics_when_disabled(tmp_path: Path) -> None:
    settings = ProbeSettings(
        PROBE_OUTPUT_PATH=tmp_path / "out.txt",
        NODE_DIAGNOSTICS_ENABLED=False,
    )

    runtime = build_runtime(settings)

    assert runtime.diagnostics is None
    assert runtime.rpc_client.endpoint.url == "http://localhost:8080"
