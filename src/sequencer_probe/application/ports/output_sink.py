"""Port describing durable output record persistence."""

from __future__ import annotations

from typing import Protocol

from sequencer_probe.domain.models import OutputRecord


class OutputSinkPort(Protocol):
    """Persists the result of a probe run, replacing any previous record."""

    def save(self, record: OutputRecord) -> None:
        """Write the record; raises ``PersistenceError`` on failure."""


__all__ = ["OutputSinkPort"]
