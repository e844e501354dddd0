"""
Run report recording and status logging.

Why this exists:
- Every run writes a JSON report with inputs, per-page outcomes and a
  timeline of status messages.
- Run-level status goes through one place so messages are consistent and
  captured. Page transcripts do not use this channel.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
import json
from pathlib import Path
import sys
from typing import Any, Dict, List, TextIO

from .models import PageResult
from .utils import ensure_dir


REPORT_NAME = "report.json"


def _iso_now() -> str:
    """Return an ISO-8601 timestamp in UTC."""

    return datetime.now(timezone.utc).isoformat()


@dataclass
class ReportRecorder:
    """
    Collect status messages and page outcomes, then write one report file.
    """

    tool_name: str
    tool_version: str
    command: str
    options: Dict[str, Any]
    inputs: Dict[str, Any] = field(default_factory=dict)
    outputs: Dict[str, Any] = field(default_factory=dict)
    verbosity: str = "normal"
    console_stream: TextIO = field(default_factory=lambda: sys.stderr)
    started_at: str = field(default_factory=_iso_now)
    logs: List[Dict[str, Any]] = field(default_factory=list)
    actions: List[Dict[str, Any]] = field(default_factory=list)

    def log(self, message: str, level: str = "info") -> None:
        """Record a status message and also print it to the console."""

        entry = {"timestamp": _iso_now(), "level": level, "message": message}
        self.logs.append(entry)

        if self.verbosity == "quiet":
            should_print = level == "error"
        elif self.verbosity == "verbose":
            should_print = True
        else:
            should_print = level in {"info", "warning", "error"}

        if should_print:
            rendered = f"[{level}] {message}" if self.verbosity == "verbose" else message
            print(rendered, file=self.console_stream)

    def add_action(self, action: str, status: str, **details: Any) -> None:
        """
        Add an action record.

        Example action types: analyze_page, load_entry, run.
        """

        entry: Dict[str, Any] = {
            "timestamp": _iso_now(),
            "action": action,
            "status": status,
        }
        entry.update(details)
        self.actions.append(entry)

    def add_page_result(self, result: PageResult) -> None:
        details: Dict[str, Any] = {"page": result.page_name, "outputs": list(result.outputs)}
        if result.caption_confidence is not None:
            details["caption_confidence"] = result.caption_confidence
        if result.error is not None:
            details["error"] = result.error
        self.add_action("analyze_page", result.status, **details)

    def _summarize_actions(self) -> Dict[str, int]:
        """Count actions by status (ok, error, ...)."""

        counts: Dict[str, int] = {}
        for action in self.actions:
            status = action.get("status", "unknown")
            counts[status] = counts.get(status, 0) + 1
        return counts

    def build_report(self, summary: Dict[str, Any]) -> Dict[str, Any]:
        """Assemble the final report structure."""

        return {
            "tool": self.tool_name,
            "version": self.tool_version,
            "command": self.command,
            "started_at": self.started_at,
            "ended_at": _iso_now(),
            "options": self.options,
            "inputs": self.inputs,
            "outputs": self.outputs,
            "summary": summary,
            "action_counts": self._summarize_actions(),
            "actions": self.actions,
            "logs": self.logs,
        }

    def write_report(self, path: Path, summary: Dict[str, Any]) -> None:
        ensure_dir(path.parent)
        report = self.build_report(summary)
        with path.open("w", encoding="utf-8") as handle:
            json.dump(report, handle, indent=2, ensure_ascii=True)
