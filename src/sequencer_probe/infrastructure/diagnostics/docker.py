"""Read-only node diagnostics gathered through the Docker CLI."""

from __future__ import annotations

import logging
import subprocess
from collections.abc import Callable

from sequencer_probe.application.ports.diagnostics import NodeDiagnostics, NodeDiagnosticsPort

logger = logging.getLogger(__name__)

DEFAULT_NODE_IMAGE = "aztecprotocol/aztec"


def node_inspection_hints(
    *,
    session_name: str | None,
    image: str = DEFAULT_NODE_IMAGE,
    docker_binary: str = "docker",
) -> tuple[str, ...]:
    """Commands an operator can run to look at the node by hand."""

    hints: list[str] = []
    if session_name:
        hints.append(
            f"check the node logs in the '{session_name}' tmux session: "
            f"tmux attach -t {session_name}"
        )
    hints.append(f"inspect the container directly: {docker_binary} ps -a | grep {image}")
    return tuple(hints)


class DockerNodeDiagnostics(NodeDiagnosticsPort):
    """Lists node containers and tails the newest container's logs."""

    def __init__(
        self,
        *,
        image: str = DEFAULT_NODE_IMAGE,
        docker_binary: str = "docker",
        session_name: str | None = None,
        log_tail: int = 50,
        command_timeout: float = 15.0,
        command_runner: Callable[..., subprocess.CompletedProcess[str]] | None = None,
    ) -> None:
        if log_tail <= 0:
            raise ValueError("log_tail must be positive")
        if command_timeout <= 0:
            raise ValueError("command_timeout must be positive")
        self._image = image
        self._docker = docker_binary
        self._session_name = session_name or None
        self._log_tail = log_tail
        self._command_timeout = command_timeout
        self._run = command_runner or subprocess.run

    def collect(self) -> NodeDiagnostics:
        notes: list[str] = []
        ancestor = f"ancestor={self._image}"
        hints = node_inspection_hints(
            session_name=self._session_name,
            image=self._image,
            docker_binary=self._docker,
        )

        container_id: str | None = None
        recent_logs: str | None = None

        containers = self._docker_output(["ps", "-a", "--filter", ancestor], notes)
        if containers is None:
            return NodeDiagnostics(hints=hints, notes=tuple(notes))
        if not _has_rows(containers):
            notes.append(f"no {self._image} container found")
            return NodeDiagnostics(hints=hints, notes=tuple(notes))

        ids = self._docker_output(["ps", "-a", "-q", "--filter", ancestor], notes)
        if ids:
            container_id = ids.splitlines()[0].strip()
            recent_logs = self._docker_output(
                ["logs", "--tail", str(self._log_tail), container_id],
                notes,
                merge_stderr=True,
            )

        return NodeDiagnostics(
            containers=containers,
            container_id=container_id,
            recent_logs=recent_logs,
            hints=hints,
            notes=tuple(notes),
        )

    def _docker_output(
        self,
        args: list[str],
        notes: list[str],
        *,
        merge_stderr: bool = False,
    ) -> str | None:
        command = [self._docker, *args]
        try:
            result = self._run(
                command,
                capture_output=True,
                text=True,
                check=True,
                timeout=self._command_timeout,
            )
        except FileNotFoundError:
            notes.append(f"{self._docker} binary not found")
            logger.warning("docker binary not found", extra={"data": {"docker": self._docker}})
            return None
        except subprocess.TimeoutExpired:
            notes.append(f"{' '.join(command)} timed out after {self._command_timeout:g}s")
            logger.warning(
                "docker command timed out (ignored)",
                extra={"data": {"command": command, "timeout_s": self._command_timeout}},
            )
            return None
        except subprocess.CalledProcessError as exc:
            stderr = (exc.stderr or "").strip()
            notes.append(f"{' '.join(command)} failed (returncode={exc.returncode}): {stderr}")
            logger.warning(
                "docker command failed (ignored): returncode=%s stderr=%s",
                exc.returncode,
                stderr,
                extra={"data": {"command": command}},
            )
            return None
        except OSError as exc:
            notes.append(f"{' '.join(command)} could not run: {exc}")
            logger.warning(
                "docker command could not run (ignored): %s",
                exc,
                extra={"data": {"command": command}},
            )
            return None
        output = (result.stdout or "").strip()
        if merge_stderr and result.stderr:
            output = "\n".join(part for part in (output, result.stderr.strip()) if part)
        return output


def _has_rows(listing: str) -> bool:
    # `docker ps` always prints a header line
    return len(listing.splitlines()) > 1


__all__ = ["DEFAULT_NODE_IMAGE", "DockerNodeDiagnostics", "node_inspection_hints"]
