"""Command-line entrypoint: wait for the node, then save its proven block and sync proof."""

from __future__ import annotations

import argparse
import json
from collections.abc import Sequence
from pathlib import Path

from sequencer_probe.application.orchestrator import ProbeReport
from sequencer_probe.infrastructure.diagnostics.docker import node_inspection_hints
from sequencer_probe.infrastructure.observability.logging import configure_logging
from sequencer_probe.runtime.bootstrap import build_runtime
from sequencer_probe.runtime.settings import ProbeSettings


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sequencer-probe",
        description=(
            "Wait for a running sequencer node's JSON-RPC endpoint, then save the latest "
            "proven block number and its sync proof."
        ),
    )
    parser.add_argument("--endpoint", help="Node RPC address as host:port or URL (NODE_RPC_ENDPOINT).")
    parser.add_argument("--interval", type=float, help="Seconds between health checks (POLL_INTERVAL_SECONDS).")
    parser.add_argument("--max-wait", type=float, help="Total polling budget in seconds (POLL_MAX_WAIT_SECONDS).")
    parser.add_argument(
        "--request-timeout",
        type=float,
        help="Per-request RPC timeout in seconds (NODE_RPC_TIMEOUT_SECONDS).",
    )
    parser.add_argument(
        "--startup-delay",
        type=float,
        help="Seconds to wait before the first health check (STARTUP_DELAY_SECONDS).",
    )
    parser.add_argument("--output", type=Path, help="Output record path; .json selects JSON (PROBE_OUTPUT_PATH).")
    parser.add_argument("--session-name", help="tmux session running the node, for operator hints (NODE_SESSION_NAME).")
    parser.add_argument("--container-image", help="Node container image for diagnostics (NODE_CONTAINER_IMAGE).")
    parser.add_argument(
        "--no-diagnostics",
        action="store_true",
        help="Do not inspect docker containers when the node fails.",
    )
    return parser


def _settings_from_args(args: argparse.Namespace) -> ProbeSettings:
    return ProbeSettings.load(
        rpc_endpoint=args.endpoint,
        poll_interval_seconds=args.interval,
        poll_max_wait_seconds=args.max_wait,
        rpc_timeout_seconds=args.request_timeout,
        startup_delay_seconds=args.startup_delay,
        output_path=args.output,
        session_name=args.session_name,
        container_image=args.container_image,
        diagnostics_enabled=False if args.no_diagnostics else None,
    )


def report_summary(report: ProbeReport, *, output_path: Path) -> dict[str, object]:
    """Render a probe report as a JSON-compatible mapping."""

    summary: dict[str, object] = {
        "status": report.stage.value,
        "stages": [stage.value for stage in report.history],
    }
    if report.readiness is not None:
        summary["poll_attempts"] = report.readiness.attempts
        summary["poll_elapsed_s"] = round(report.readiness.elapsed_seconds, 3)
    if report.record is not None:
        summary["block_number"] = report.record.height
        summary["sync_proof"] = report.record.proof.payload
        summary["output_path"] = str(output_path)
    if report.failure is not None:
        summary["failed_stage"] = report.failure.stage.value
        summary["error"] = str(report.failure.error)
    return summary


def failure_message(report: ProbeReport, *, hints: Sequence[str] = ()) -> str:
    """Return operator guidance for a failed report.

    ``hints`` are shown for node failures when no diagnostics were collected.
    """

    if report.failure is None:
        raise ValueError("report did not fail")
    lines = [f"Error: {report.failure.message}"]
    diagnostics = report.diagnostics
    if diagnostics is not None:
        if diagnostics.containers:
            lines.extend(["Node containers:", diagnostics.containers])
        if diagnostics.recent_logs:
            lines.extend([f"Recent logs ({diagnostics.container_id}):", diagnostics.recent_logs])
        lines.extend(f"Note: {note}" for note in diagnostics.notes)
        lines.extend(f"Hint: {hint}" for hint in diagnostics.hints)
    elif report.failure.involves_node:
        lines.extend(f"Hint: {hint}" for hint in hints)
    return "\n".join(lines)


def main(argv: Sequence[str] | None = None) -> None:
    args = _build_parser().parse_args(list(argv) if argv is not None else None)
    configure_logging()

    try:
        settings = _settings_from_args(args)
    except ValueError as exc:
        raise SystemExit(f"invalid configuration: {exc}") from exc

    runtime = build_runtime(settings)
    report = runtime.orchestrator.run()

    print(json.dumps(report_summary(report, output_path=settings.output_path)))
    if not report.succeeded:
        hints = node_inspection_hints(
            session_name=settings.session_name,
            image=settings.container_image,
        )
        raise SystemExit(failure_message(report, hints=hints))


__all__ = ["failure_message", "main", "report_summary"]
