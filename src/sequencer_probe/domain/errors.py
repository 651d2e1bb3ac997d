"""Error taxonomy for node probing."""

from __future__ import annotations

from pathlib import Path


class ProbeError(RuntimeError):
    """Base class for probe failures surfaced to the orchestrator."""


class RpcError(ProbeError):
    """Base class for JSON-RPC failures."""


class RpcTransportError(RpcError):
    """Raised when the node endpoint cannot be reached (refused, DNS, timeout)."""


class RpcResponseError(RpcError):
    """Raised when the node answers with a body that cannot be interpreted."""


class MissingFieldError(RpcError):
    """Raised when an expected result field is absent, null or empty."""

    def __init__(self, field: str, *, method: str) -> None:
        super().__init__(f"{method} response is missing {field}")
        self.field = field
        self.method = method


class ReadinessTimeoutError(ProbeError):
    """Raised when the node did not become reachable within the poll budget."""

    def __init__(self, max_wait: float, *, attempts: int, last_error: str | None) -> None:
        message = f"node not reachable after {max_wait:g} seconds ({attempts} attempts)"
        if last_error:
            message = f"{message}: last_error={last_error}"
        super().__init__(message)
        self.max_wait = max_wait
        self.attempts = attempts
        self.last_error = last_error


class PersistenceError(ProbeError):
    """Raised when the output record cannot be written."""

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"failed to write output record to {path}: {reason}")
        self.path = path


__all__ = [
    "ProbeError",
    "RpcError",
    "RpcTransportError",
    "RpcResponseError",
    "MissingFieldError",
    "ReadinessTimeoutError",
    "PersistenceError",
]
