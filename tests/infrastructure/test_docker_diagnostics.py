from __future__ import annotations

import subprocess
from collections.abc import Callable
from subprocess import CompletedProcess

import pytest

from sequencer_probe.infrastructure.diagnostics.docker import (
    DockerNodeDiagnostics,
    node_inspection_hints,
)

_LISTING = (
    "CONTAINER ID   IMAGE                 STATUS\n"
    "abc123         aztecprotocol/aztec   Exited (1) 2 minutes ago\n"
    "def456         aztecprotocol/aztec   Exited (0) 1 hour ago"
)


class RecordingRunner:
    def __init__(self, respond: Callable[[list[str]], CompletedProcess[str] | Exception]) -> None:
        self._respond = respond
        self.commands: list[list[str]] = []
        self.timeouts: list[object] = []

    def __call__(self, args: list[str], **kwargs: object) -> CompletedProcess[str]:
        self.commands.append(list(args))
        self.timeouts.append(kwargs.get("timeout"))
        outcome = self._respond(list(args))
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def _completed(args: list[str], stdout: str, stderr: str = "") -> CompletedProcess[str]:
    return CompletedProcess(args=args, returncode=0, stdout=stdout, stderr=stderr)


def test_collect_lists_containers_and_tails_newest_logs() -> None:
    def respond(args: list[str]) -> CompletedProcess[str]:
        if args[1] == "logs":
            return _completed(args, "block 1 synced\n", "warn: peer dropped\n")
        if "-q" in args:
            return _completed(args, "abc123\ndef456\n")
        return _completed(args, _LISTING)

    runner = RecordingRunner(respond)
    diagnostics = DockerNodeDiagnostics(session_name="aztec", log_tail=20, command_runner=runner)

    result = diagnostics.collect()

    assert result.containers == _LISTING
    assert result.container_id == "abc123"
    assert result.recent_logs == "block 1 synced\nwarn: peer dropped"
    assert result.notes == ()
    assert any("tmux attach -t aztec" in hint for hint in result.hints)
    assert runner.commands == [
        ["docker", "ps", "-a", "--filter", "ancestor=aztecprotocol/aztec"],
        ["docker", "ps", "-a", "-q", "--filter", "ancestor=aztecprotocol/aztec"],
        ["docker", "logs", "--tail", "20", "abc123"],
    ]


def test_collect_reports_missing_container() -> None:
    runner = RecordingRunner(lambda args: _completed(args, "CONTAINER ID   IMAGE   STATUS\n"))

    result = DockerNodeDiagnostics(command_runner=runner).collect()

    assert result.containers is None
    assert result.container_id is None
    assert result.notes == ("no aztecprotocol/aztec container found",)
    assert len(runner.commands) == 1


def test_collect_survives_missing_docker_binary() -> None:
    runner = RecordingRunner(lambda args: FileNotFoundError("docker"))

    result = DockerNodeDiagnostics(session_name="", command_runner=runner).collect()

    assert result.notes == ("docker binary not found",)
    assert all("tmux" not in hint for hint in result.hints)


def test_collect_records_failed_docker_commands() -> None:
    error = subprocess.CalledProcessError(
        1,
        ["docker", "ps"],
        stderr="permission denied while trying to connect to the Docker daemon socket",
    )
    runner = RecordingRunner(lambda args: error)

    result = DockerNodeDiagnostics(command_runner=runner).collect()

    assert result.containers is None
    assert len(result.notes) == 1
    assert "permission denied" in result.notes[0]


def test_log_tail_must_be_positive() -> None:
    with pytest.raises(ValueError, match="log_tail"):
        DockerNodeDiagnostics(log_tail=0)


def test_collect_bounds_each_docker_command() -> None:
    runner = RecordingRunner(lambda args: _completed(args, "CONTAINER ID   IMAGE   STATUS\n"))

    DockerNodeDiagnostics(command_timeout=5, command_runner=runner).collect()

    assert runner.timeouts == [5]


def test_collect_notes_hung_docker_daemon() -> None:
    runner = RecordingRunner(lambda args: subprocess.TimeoutExpired(args, 15))

    result = DockerNodeDiagnostics(command_runner=runner).collect()

    assert result.containers is None
    assert result.notes == (
        "docker ps -a --filter ancestor=aztecprotocol/aztec timed out after 15s",
    )


def test_collect_notes_unrunnable_docker_binary() -> None:
    runner = RecordingRunner(lambda args: PermissionError(13, "Permission denied"))

    result = DockerNodeDiagnostics(command_runner=runner).collect()

    assert len(result.notes) == 1
    assert "could not run" in result.notes[0]
    assert "Permission denied" in result.notes[0]


def test_node_inspection_hints_without_session() -> None:
    assert node_inspection_hints(session_name=None, image="example/node") == (
        "inspect the container directly: docker ps -a | grep example/node",
    )
