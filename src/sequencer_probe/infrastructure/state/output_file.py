"""Filesystem-backed persistence for the probe output record."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path

from sequencer_probe.application.ports.output_sink import OutputSinkPort
from sequencer_probe.domain.errors import PersistenceError
from sequencer_probe.domain.models import OutputRecord

logger = logging.getLogger(__name__)

_RULE = "-" * 32


class FileOutputSink(OutputSinkPort):
    """Write the latest output record to a single file, replacing the previous one."""

    def __init__(self, path: Path, *, session_name: str | None = None) -> None:
        self._path = path
        self._session_name = session_name or None

    @property
    def path(self) -> Path:
        return self._path

    # ------------------------------------------------------------------
    # public API

    def save(self, record: OutputRecord) -> None:
        """Persist ``record``; a partially written file is never left in place."""

        content = self.render(record)
        tmp_path = Path(f"{self._path}.tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(content, encoding="utf-8")
            os.replace(tmp_path, self._path)
        except OSError as exc:
            if tmp_path.exists():
                tmp_path.unlink()
            raise PersistenceError(self._path, str(exc)) from exc
        logger.info(
            "saved block number and sync proof",
            extra={"data": {"path": str(self._path), "height": record.height}},
        )

    def render(self, record: OutputRecord) -> str:
        if self._path.suffix == ".json":
            return self._render_json(record)
        return self._render_text(record)

    # ------------------------------------------------------------------
    # helpers

    def _render_json(self, record: OutputRecord) -> str:
        payload = {
            "timestamp": record.recorded_at.isoformat(),
            "block_number": record.height,
            "sync_proof": record.proof.payload,
        }
        return json.dumps(payload, indent=2) + "\n"

    def _render_text(self, record: OutputRecord) -> str:
        lines = [
            "Aztec Sequencer Node Output",
            _RULE,
            f"Timestamp: {record.recorded_at.isoformat()}",
            f"Latest Proven Block Number: {record.height}",
            f"Sync Proof (base64): {record.proof.payload}",
            _RULE,
        ]
        if self._session_name:
            lines.append(f"To attach to the node session, run: tmux attach -t {self._session_name}")
            lines.append("To detach from the session, press: Ctrl+b, then d")
        return "\n".join(lines) + "\n"


__all__ = ["FileOutputSink"]
