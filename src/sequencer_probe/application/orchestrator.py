"""Sequences readiness polling, artifact retrieval and persistence."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum

from sequencer_probe.application.fetch_artifacts import ArtifactFetcher
from sequencer_probe.application.poll_readiness import ReadinessPoller
from sequencer_probe.application.ports.diagnostics import NodeDiagnostics, NodeDiagnosticsPort
from sequencer_probe.application.ports.output_sink import OutputSinkPort
from sequencer_probe.domain.errors import (
    PersistenceError,
    ProbeError,
    ReadinessTimeoutError,
    RpcError,
)
from sequencer_probe.domain.models import OutputRecord, ReadinessResult

logger = logging.getLogger("sequencer_probe.orchestrator")


class ProbeStage(StrEnum):
    STARTING = "starting"
    POLLING = "polling"
    FETCHING_HEIGHT = "fetching_height"
    FETCHING_PROOF = "fetching_proof"
    PERSISTING = "persisting"
    DONE = "done"
    FAILED = "failed"


_NODE_STAGES = frozenset(
    {ProbeStage.POLLING, ProbeStage.FETCHING_HEIGHT, ProbeStage.FETCHING_PROOF}
)


@dataclass(frozen=True, slots=True)
class ProbeTimings:
    max_wait: float = 600.0
    interval: float = 10.0
    startup_delay: float = 0.0

    def __post_init__(self) -> None:
        if self.max_wait <= 0:
            raise ValueError("max_wait must be positive")
        if not 0 < self.interval <= self.max_wait:
            raise ValueError("interval must be positive and not exceed max_wait")
        if self.startup_delay < 0:
            raise ValueError("startup_delay must be non-negative")


@dataclass(frozen=True, slots=True)
class StageFailure:
    """Which stage failed and the error it failed with."""

    stage: ProbeStage
    error: ProbeError

    @property
    def message(self) -> str:
        return f"{self.stage.value} failed: {self.error}"

    @property
    def involves_node(self) -> bool:
        return self.stage in _NODE_STAGES


@dataclass(frozen=True, slots=True)
class ProbeReport:
    """Terminal outcome of a probe run."""

    stage: ProbeStage
    history: tuple[ProbeStage, ...]
    readiness: ReadinessResult | None = None
    record: OutputRecord | None = None
    failure: StageFailure | None = None
    diagnostics: NodeDiagnostics | None = None

    @property
    def succeeded(self) -> bool:
        return self.stage is ProbeStage.DONE


@dataclass(slots=True)
class _Run:
    history: list[ProbeStage] = field(default_factory=list)
    readiness: ReadinessResult | None = None

    def enter(self, stage: ProbeStage) -> None:
        if stage in self.history:
            raise RuntimeError(f"probe stage {stage.value} visited twice")
        logger.debug("entering stage %s", stage.value)
        self.history.append(stage)


class ProbeOrchestrator:
    """Runs starting → polling → fetching → persisting once, halting on the first failure.

    The orchestrator never retries and never tries to repair the node; it only
    reports which stage failed, the literal error, and any diagnostics it
    could collect.
    """

    def __init__(
        self,
        *,
        poller: ReadinessPoller,
        fetcher: ArtifactFetcher,
        sink: OutputSinkPort,
        timings: ProbeTimings,
        diagnostics: NodeDiagnosticsPort | None = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], datetime] = lambda: datetime.now(UTC),
    ) -> None:
        self._poller = poller
        self._fetcher = fetcher
        self._sink = sink
        self._timings = timings
        self._diagnostics = diagnostics
        self._sleep = sleep
        self._clock = clock

    def run(self) -> ProbeReport:
        run = _Run()
        run.enter(ProbeStage.STARTING)
        if self._timings.startup_delay > 0:
            logger.info(
                "waiting for the node to start",
                extra={"data": {"startup_delay_s": self._timings.startup_delay}},
            )
            self._sleep(self._timings.startup_delay)

        run.enter(ProbeStage.POLLING)
        readiness = self._poller.poll(
            max_wait=self._timings.max_wait,
            interval=self._timings.interval,
        )
        run.readiness = readiness
        if not readiness.ready:
            error = ReadinessTimeoutError(
                self._timings.max_wait,
                attempts=readiness.attempts,
                last_error=readiness.last_error,
            )
            return self._fail(run, ProbeStage.POLLING, error)

        run.enter(ProbeStage.FETCHING_HEIGHT)
        try:
            block = self._fetcher.fetch_proven_block()
        except RpcError as exc:
            return self._fail(run, ProbeStage.FETCHING_HEIGHT, exc)

        run.enter(ProbeStage.FETCHING_PROOF)
        try:
            proof = self._fetcher.fetch_sync_proof(block)
        except RpcError as exc:
            return self._fail(run, ProbeStage.FETCHING_PROOF, exc)

        run.enter(ProbeStage.PERSISTING)
        record = OutputRecord(recorded_at=self._clock(), block=block, proof=proof)
        try:
            self._sink.save(record)
        except PersistenceError as exc:
            return self._fail(run, ProbeStage.PERSISTING, exc)

        run.enter(ProbeStage.DONE)
        logger.info(
            "probe complete",
            extra={"data": {"height": record.height, "attempts": readiness.attempts}},
        )
        return ProbeReport(
            stage=ProbeStage.DONE,
            history=tuple(run.history),
            readiness=readiness,
            record=record,
        )

    def _fail(self, run: _Run, stage: ProbeStage, error: ProbeError) -> ProbeReport:
        failure = StageFailure(stage=stage, error=error)
        run.enter(ProbeStage.FAILED)
        logger.error(
            "probe failed during %s: %s",
            stage.value,
            error,
            extra={"data": {"stage": stage.value, "error_type": type(error).__name__}},
        )
        diagnostics = None
        if self._diagnostics is not None and failure.involves_node:
            diagnostics = self._diagnostics.collect()
        return ProbeReport(
            stage=ProbeStage.FAILED,
            history=tuple(run.history),
            readiness=run.readiness,
            failure=failure,
            diagnostics=diagnostics,
        )


__all__ = [
    "ProbeOrchestrator",
    "ProbeReport",
    "ProbeStage",
    "ProbeTimings",
    "StageFailure",
]
