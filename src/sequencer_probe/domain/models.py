"""Value objects produced while probing a sequencer node."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum
from urllib.parse import urlsplit

_MAX_PORT = 65_535


@dataclass(frozen=True, slots=True)
class Endpoint:
    """Network address of the node's JSON-RPC interface."""

    host: str
    port: int
    scheme: str = "http"

    def __post_init__(self) -> None:
        if not self.host.strip():
            raise ValueError("endpoint host must not be empty")
        if not 0 < self.port <= _MAX_PORT:
            raise ValueError(f"endpoint port must be in 1..{_MAX_PORT}, got {self.port}")
        if self.scheme not in ("http", "https"):
            raise ValueError(f"unsupported endpoint scheme {self.scheme!r}")

    @property
    def url(self) -> str:
        return f"{self.scheme}://{self.host}:{self.port}"

    @classmethod
    def parse(cls, value: str) -> Endpoint:
        """Parse ``host:port`` or an ``http(s)://host:port`` URL."""

        text = value.strip()
        if not text:
            raise ValueError("endpoint must not be empty")
        if "://" not in text:
            text = f"http://{text}"
        parts = urlsplit(text)
        try:
            port = parts.port
        except ValueError as exc:
            raise ValueError(f"invalid endpoint port in {value!r}") from exc
        if parts.hostname is None or port is None:
            raise ValueError(f"endpoint must be host:port, got {value!r}")
        return cls(host=parts.hostname, port=port, scheme=parts.scheme)

    def __str__(self) -> str:
        return self.url


class PollOutcome(StrEnum):
    REACHABLE = "reachable"
    UNREACHABLE = "unreachable"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class PollAttempt:
    """Outcome of a single health-check tick."""

    attempt: int
    at: datetime
    outcome: PollOutcome
    error: str | None = None


class ReadinessStatus(StrEnum):
    READY = "ready"
    TIMED_OUT = "timed_out"


@dataclass(frozen=True, slots=True)
class ReadinessResult:
    """Terminal outcome of a poll session."""

    status: ReadinessStatus
    attempts: int
    elapsed_seconds: float
    last_error: str | None = None

    @property
    def ready(self) -> bool:
        return self.status is ReadinessStatus.READY


@dataclass(frozen=True, slots=True)
class ProvenBlock:
    """Latest proven L2 block height as reported by the node."""

    height: int
    retrieved_at: datetime

    def __post_init__(self) -> None:
        if self.height < 0:
            raise ValueError("proven block height must be non-negative")


@dataclass(frozen=True, slots=True)
class SyncProof:
    """Opaque archive sibling path attesting to a proven block."""

    height: int
    payload: str

    def __post_init__(self) -> None:
        if not self.payload:
            raise ValueError("sync proof payload must not be empty")

    @classmethod
    def for_block(cls, block: ProvenBlock, payload: str) -> SyncProof:
        return cls(height=block.height, payload=payload)


@dataclass(frozen=True, slots=True)
class OutputRecord:
    """Complete result of a probe run, written once to the output sink."""

    recorded_at: datetime
    block: ProvenBlock
    proof: SyncProof

    def __post_init__(self) -> None:
        if self.proof.height != self.block.height:
            raise ValueError(
                f"sync proof height {self.proof.height} does not match block {self.block.height}"
            )

    @property
    def height(self) -> int:
        return self.block.height


__all__ = [
    "Endpoint",
    "PollOutcome",
    "PollAttempt",
    "ReadinessStatus",
    "ReadinessResult",
    "ProvenBlock",
    "SyncProof",
    "OutputRecord",
]
