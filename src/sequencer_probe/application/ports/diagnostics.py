"""Port describing read-only inspection of the node runtime."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True, slots=True)
class NodeDiagnostics:
    """Best-effort snapshot of the node runtime taken after a failure."""

    containers: str | None = None
    container_id: str | None = None
    recent_logs: str | None = None
    hints: tuple[str, ...] = ()
    notes: tuple[str, ...] = ()


class NodeDiagnosticsPort(Protocol):
    """Collects diagnostics without mutating the node runtime."""

    def collect(self) -> NodeDiagnostics:
        """Return whatever diagnostics are available; must not raise."""


__all__ = ["NodeDiagnostics", "NodeDiagnosticsPort"]
