"""Use case for waiting until the node's RPC endpoint answers."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from datetime import UTC, datetime

from sequencer_probe.application.ports.node_rpc import NodeRpcPort
from sequencer_probe.domain.errors import RpcResponseError, RpcTransportError
from sequencer_probe.domain.models import (
    PollAttempt,
    PollOutcome,
    ReadinessResult,
    ReadinessStatus,
)

logger = logging.getLogger("sequencer_probe.readiness")

HEALTH_CHECK_METHOD = "node_getL2Tips"


class ReadinessPoller:
    """Polls a side-effect free RPC method until the node answers or the budget runs out.

    Reachability is the only success criterion: any JSON object in response,
    including a JSON-RPC error envelope, counts as ready. A response that only
    arrives after the budget is spent does not.
    """

    def __init__(
        self,
        node: NodeRpcPort,
        *,
        monotonic: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], datetime] = lambda: datetime.now(UTC),
        method: str = HEALTH_CHECK_METHOD,
    ) -> None:
        self._node = node
        self._monotonic = monotonic
        self._sleep = sleep
        self._clock = clock
        self._method = method

    def poll(self, *, max_wait: float, interval: float) -> ReadinessResult:
        if max_wait <= 0:
            raise ValueError("max_wait must be positive")
        if interval <= 0:
            raise ValueError("interval must be positive")
        if interval > max_wait:
            raise ValueError("interval must not exceed max_wait")

        started = self._monotonic()
        deadline = started + max_wait
        attempts = 0
        last_error: str | None = None

        while True:
            attempts += 1
            attempt = self._attempt(attempts, remaining=deadline - self._monotonic())
            now = self._monotonic()
            if attempt.outcome is PollOutcome.REACHABLE and now < deadline:
                elapsed = now - started
                logger.info(
                    "node is reachable",
                    extra={"data": {"attempts": attempts, "elapsed_s": round(elapsed, 3)}},
                )
                return ReadinessResult(
                    status=ReadinessStatus.READY,
                    attempts=attempts,
                    elapsed_seconds=elapsed,
                    last_error=last_error,
                )
            last_error = attempt.error or last_error
            if now >= deadline:
                break
            logger.info(
                "waiting for node to become reachable (%d/%d seconds)",
                int(now - started),
                int(max_wait),
                extra={"data": {"attempt": attempts, "outcome": attempt.outcome.value}},
            )
            self._sleep(min(interval, deadline - now))
            now = self._monotonic()
            if now >= deadline:
                break

        elapsed = now - started
        logger.warning(
            "node not reachable within poll budget",
            extra={"data": {"attempts": attempts, "max_wait_s": max_wait, "last_error": last_error}},
        )
        return ReadinessResult(
            status=ReadinessStatus.TIMED_OUT,
            attempts=attempts,
            elapsed_seconds=elapsed,
            last_error=last_error,
        )

    def _attempt(self, number: int, *, remaining: float) -> PollAttempt:
        at = self._clock()
        try:
            # bound the request by what is left of the poll budget
            self._node.call(self._method, timeout=remaining)
        except RpcTransportError as exc:
            logger.debug("health check unreachable: %s", exc)
            return PollAttempt(number, at, PollOutcome.UNREACHABLE, str(exc))
        except RpcResponseError as exc:
            logger.debug("health check returned malformed response: %s", exc)
            return PollAttempt(number, at, PollOutcome.ERROR, str(exc))
        return PollAttempt(number, at, PollOutcome.REACHABLE)


__all__ = ["HEALTH_CHECK_METHOD", "ReadinessPoller"]
