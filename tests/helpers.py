"""
Shared helpers for read-journal tests: CLI runner, temp workspaces, a fake
analyzer standing in for the vision service, and synthetic images.
"""

from __future__ import annotations

import io
import shutil
import sys
from contextlib import contextmanager, redirect_stderr, redirect_stdout
from pathlib import Path
from typing import Iterator, List, Sequence, Union
from uuid import uuid4

from PIL import Image


SRC_DIR = Path(__file__).resolve().parents[1] / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from read_journal.config import DEFAULT_READ_JOURNAL, Settings, deep_merge  # noqa: E402
from read_journal.models import (  # noqa: E402
    AnalysisResult,
    Caption,
    OcrBlock,
    OcrLine,
    OcrWord,
    ReadResult,
)


def _normalize_exit_code(value: object) -> int:
    """Normalize return values/SystemExit payloads into process-style int codes."""

    if value is None:
        return 0
    if isinstance(value, int):
        return value
    try:
        return int(value)  # type: ignore[call-overload]
    except (TypeError, ValueError):
        return 1


def run_read_journal_cli(argv: list[str]) -> tuple[int, str, str]:
    """
    Run the CLI in-process with isolated argv and captured stdio.

    Returns: (exit_code, stdout_text, stderr_text)
    """

    from read_journal import cli

    original_argv = list(sys.argv)
    stdout_stream = io.StringIO()
    stderr_stream = io.StringIO()
    exit_code = 0

    try:
        sys.argv = ["read-journal", *argv]
        with redirect_stdout(stdout_stream), redirect_stderr(stderr_stream):
            try:
                result = cli.main(argv)
            except SystemExit as exc:
                exit_code = _normalize_exit_code(exc.code)
            else:
                exit_code = _normalize_exit_code(result)
    finally:
        sys.argv = original_argv

    return exit_code, stdout_stream.getvalue(), stderr_stream.getvalue()


@contextmanager
def workspace_temp_dir(prefix: str = "test") -> Iterator[Path]:
    root = Path(__file__).resolve().parents[1] / ".tmp_tests"
    root.mkdir(parents=True, exist_ok=True)
    tmp = root / f"{prefix}_{uuid4().hex}"
    tmp.mkdir(parents=True, exist_ok=False)
    try:
        yield tmp
    finally:
        shutil.rmtree(tmp, ignore_errors=True)


class FakeAnalyzer:
    """Returns (or raises) queued responses in call order and keeps payloads."""

    def __init__(self, responses: Sequence[Union[AnalysisResult, Exception]]) -> None:
        self.responses: List[Union[AnalysisResult, Exception]] = list(responses)
        self.payloads: List[bytes] = []

    def analyze(self, image_data: bytes) -> AnalysisResult:
        self.payloads.append(image_data)
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    def payload_sizes(self) -> List[tuple[int, int]]:
        sizes = []
        for payload in self.payloads:
            with Image.open(io.BytesIO(payload)) as image:
                sizes.append(image.size)
        return sizes


def make_settings(**overrides: object) -> Settings:
    return Settings.from_mapping(deep_merge(DEFAULT_READ_JOURNAL, dict(overrides)))


def box(x0: float, y0: float, x1: float, y1: float) -> tuple:
    return ((x0, y0), (x1, y0), (x1, y1), (x0, y1))


def make_result(
    caption: str | None = None,
    confidence: float = 0.0,
    words: Sequence[tuple[str, float, tuple]] = (),
) -> AnalysisResult:
    """One caption plus, when words are given, a single-line OCR result."""

    read = None
    if words:
        ocr_words = tuple(OcrWord(text, conf, polygon) for text, conf, polygon in words)
        xs = [x for _, _, polygon in words for x, _ in polygon]
        ys = [y for _, _, polygon in words for _, y in polygon]
        line = OcrLine(
            text=" ".join(text for text, _, _ in words),
            confidence=sum(conf for _, conf, _ in words) / len(words),
            polygon=box(min(xs), min(ys), max(xs), max(ys)),
            words=ocr_words,
        )
        read = ReadResult(blocks=(OcrBlock(lines=(line,)),))
    return AnalysisResult(
        caption=Caption(caption, confidence) if caption is not None else None,
        dense_captions=(Caption("a page of handwriting", 0.7),) if caption else (),
        read=read,
    )


def write_jpeg(path: Path, size: tuple[int, int], color=(240, 240, 230), orientation: int | None = None) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    image = Image.new("RGB", size, color=color)
    if orientation is None:
        image.save(path, format="JPEG")
    else:
        exif = Image.Exif()
        exif[0x0112] = orientation
        image.save(path, format="JPEG", exif=exif)
    return path
