"""Runtime wiring for a probe run."""

from __future__ import annotations

import logging
import subprocess
import time
from collections.abc import Callable
from dataclasses import dataclass

import httpx

from sequencer_probe.application.fetch_artifacts import ArtifactFetcher
from sequencer_probe.application.orchestrator import ProbeOrchestrator, ProbeTimings
from sequencer_probe.application.poll_readiness import ReadinessPoller
from sequencer_probe.infrastructure.diagnostics.docker import DockerNodeDiagnostics
from sequencer_probe.infrastructure.rpc.client import HttpNodeRpcClient
from sequencer_probe.infrastructure.state.output_file import FileOutputSink
from sequencer_probe.runtime.settings import ProbeSettings

logger = logging.getLogger("sequencer_probe.runtime")


@dataclass(frozen=True, slots=True)
class RuntimeContext:
    """Aggregated components for a single probe run."""

    settings: ProbeSettings
    rpc_client: HttpNodeRpcClient
    sink: FileOutputSink
    diagnostics: DockerNodeDiagnostics | None
    orchestrator: ProbeOrchestrator


def build_runtime(
    settings: ProbeSettings,
    *,
    transport: httpx.BaseTransport | None = None,
    command_runner: Callable[..., subprocess.CompletedProcess[str]] | None = None,
    sleep: Callable[[float], None] | None = None,
    monotonic: Callable[[], float] | None = None,
) -> RuntimeContext:
    """Build the orchestrator and its collaborators from ``settings``.

    The optional hooks replace network, subprocess and timing dependencies.
    """

    rpc_client = HttpNodeRpcClient(
        endpoint=settings.endpoint,
        timeout_seconds=settings.rpc_timeout_seconds,
        request_id=settings.rpc_request_id,
        transport=transport,
    )
    sink = FileOutputSink(settings.output_path, session_name=settings.session_name)
    diagnostics = (
        DockerNodeDiagnostics(
            image=settings.container_image,
            session_name=settings.session_name,
            log_tail=settings.diagnostics_log_tail,
            command_runner=command_runner,
        )
        if settings.diagnostics_enabled
        else None
    )

    sleep = sleep or time.sleep
    orchestrator = ProbeOrchestrator(
        poller=ReadinessPoller(
            rpc_client,
            monotonic=monotonic or time.monotonic,
            sleep=sleep,
        ),
        fetcher=ArtifactFetcher(rpc_client),
        sink=sink,
        timings=ProbeTimings(
            max_wait=settings.poll_max_wait_seconds,
            interval=settings.poll_interval_seconds,
            startup_delay=settings.startup_delay_seconds,
        ),
        diagnostics=diagnostics,
        sleep=sleep,
    )
    logger.debug(
        "built probe runtime",
        extra={
            "data": {
                "endpoint": rpc_client.endpoint.url,
                "output_path": str(sink.path),
                "diagnostics_enabled": diagnostics is not None,
            }
        },
    )
    return RuntimeContext(
        settings=settings,
        rpc_client=rpc_client,
        sink=sink,
        diagnostics=diagnostics,
        orchestrator=orchestrator,
    )


__all__ = ["RuntimeContext", "build_runtime"]
