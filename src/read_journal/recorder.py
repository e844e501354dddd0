"""
Per-page transcripts with run-wide fan-out.

Why this module exists:
- Every page gets its own `{page}.out` transcript.
- Everything a page writes also goes to the console and to one
  `aggregator.txt` for the whole run.
- The writer is handed to page code explicitly; nothing swaps sys.stdout.

RunRecorder keeps the "current output target": the console at run start,
a page transcript while a page is active. Only one page can be active at a
time and the previous target is always restored when the page ends.
"""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
import sys
from typing import Iterator, Optional, TextIO, Union

from .tee import Tee, tee
from .utils import ensure_dir


AGGREGATOR_NAME = "aggregator.txt"
PAGE_LOG_SUFFIX = ".out"

Sink = Union[TextIO, Tee]


@dataclass
class OutputTarget:
    """Where textual output goes right now: a normal and an error channel."""

    out: Sink
    err: Sink
    page_name: Optional[str] = None
    log_path: Optional[Path] = None


class RunRecorder:
    def __init__(
        self,
        out_dir: Path,
        aggregator: TextIO,
        console_out: Optional[TextIO] = None,
        console_err: Optional[TextIO] = None,
    ) -> None:
        self.out_dir = out_dir
        self.aggregator = aggregator
        self.console = OutputTarget(
            out=console_out if console_out is not None else sys.stdout,
            err=console_err if console_err is not None else sys.stderr,
        )
        self._current = self.console

    @classmethod
    @contextmanager
    def open(
        cls,
        out_dir: Path,
        console_out: Optional[TextIO] = None,
        console_err: Optional[TextIO] = None,
    ) -> Iterator["RunRecorder"]:
        """Open (truncate) the run aggregator and keep it for the whole run."""

        ensure_dir(out_dir)
        aggregator_path = out_dir / AGGREGATOR_NAME
        # Line buffering: each finished line reaches disk immediately.
        with aggregator_path.open("w", encoding="utf-8", buffering=1) as aggregator:
            yield cls(out_dir, aggregator, console_out, console_err)

    @property
    def aggregator_path(self) -> Path:
        return self.out_dir / AGGREGATOR_NAME

    @property
    def current(self) -> OutputTarget:
        return self._current

    def page_log_path(self, page_name: str) -> Path:
        return self.out_dir / f"{page_name}{PAGE_LOG_SUFFIX}"

    @contextmanager
    def page(self, page_name: str) -> Iterator[OutputTarget]:
        """
        Activate a page transcript: console + aggregator + `{page}.out`.

        The prior target is restored on every exit path, including errors
        raised by the caller's block.
        """

        if self._current.page_name is not None:
            raise RuntimeError(
                f"Cannot start {page_name}: transcript for {self._current.page_name} is still active."
            )

        previous = self._current
        log_path = self.page_log_path(page_name)
        with log_path.open("w", encoding="utf-8", buffering=1) as page_log:
            target = OutputTarget(
                out=tee(previous.out, self.aggregator, page_log),
                err=tee(previous.err, self.aggregator, page_log),
                page_name=page_name,
                log_path=log_path,
            )
            self._current = target
            try:
                yield target
            finally:
                try:
                    target.out.flush()
                    target.err.flush()
                finally:
                    self._current = previous
