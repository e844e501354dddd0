"""
Run the journal-reading pipeline over every input entry.

Per entry: load -> normalize orientation -> split (optional) -> per page:
open transcript -> encode -> analyze -> annotate (optional) -> aggregate ->
close transcript. Page and entry failures become error PageResults and the
run continues; only FatalPrecondition stops a run.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
import time
from typing import Any, Dict, List, Optional, TextIO

from . import __version__
from .annotate import annotate_page
from .codec import encode_jpeg
from .config import Settings
from .inputs import ImageEntry, resolve_input
from .models import AnalysisResult, Page, PageResult, Polygon
from .recorder import RunRecorder, Sink
from .report import REPORT_NAME, ReportRecorder
from .spread import load_spread, normalize_spread, split_spread, whole_page
from .stats import ConfidenceStats
from .utils import (
    FatalPrecondition,
    UserError,
    ensure_dir_path,
    format_elapsed,
    format_percent,
)
from .vision import Analyzer, ImageAnalyzer


OUTPUT_FOLDER = "image_out"


@dataclass
class RunSummary:
    out_dir: Path
    stats: ConfidenceStats
    elapsed_seconds: float
    results: List[PageResult] = field(default_factory=list)

    @property
    def failed(self) -> List[PageResult]:
        return [result for result in self.results if not result.ok]


def _format_polygon(polygon: Polygon) -> str:
    return " ".join(f"({x:g},{y:g})" for x, y in polygon)


def write_analysis(result: AnalysisResult, out: Sink, verbose: bool = False) -> None:
    """Write caption, dense captions and OCR text for one page."""

    if result.caption is not None and result.caption.text:
        print(
            f'Caption: "{result.caption.text}" (Conf:{format_percent(result.caption.confidence)})',
            file=out,
        )

    print("Dense Captions:", file=out)
    for dense in result.dense_captions:
        print(f"  {dense.text} (Conf:{format_percent(dense.confidence)})", file=out)

    if result.read is None:
        return

    print("Recognized Text:", file=out)
    for line in result.read.lines():
        print(f"  {line.text}", file=out)
        if verbose:
            print(
                f"    (Conf:{format_percent(line.confidence)}) {_format_polygon(line.polygon)}",
                file=out,
            )

    print("\nWord confidences:", file=out)
    for word in result.read.words():
        print(f"  {word.text} (Conf:{format_percent(word.confidence)})", file=out)
        if verbose:
            print(f"    {_format_polygon(word.polygon)}", file=out)


def _failure_message(exc: Exception) -> str:
    if isinstance(exc, UserError):
        return str(exc)
    return f"{type(exc).__name__}: {exc}"


def process_page(
    page: Page,
    analyzer: Analyzer,
    recorder: RunRecorder,
    settings: Settings,
    stats: ConfidenceStats,
    verbose: bool = False,
) -> PageResult:
    """Analyze one page inside its own transcript; never raises for page failures."""

    try:
        return _analyze_in_transcript(page, analyzer, recorder, settings, stats, verbose)
    except Exception as exc:
        # The transcript itself could not be opened or closed.
        message = _failure_message(exc)
        print(f"Error in {page.name}: {message}", file=recorder.current.err)
        return PageResult(page_name=page.name, status="error", error=message)


def _analyze_in_transcript(
    page: Page,
    analyzer: Analyzer,
    recorder: RunRecorder,
    settings: Settings,
    stats: ConfidenceStats,
    verbose: bool,
) -> PageResult:
    outputs: List[str] = []
    caption_confidence: Optional[float] = None

    with recorder.page(page.name) as target:
        started = time.perf_counter()
        outputs.append(str(target.log_path))
        print(f"--- {page.name} ---", file=target.out)
        try:
            payload = encode_jpeg(page.image, settings.jpeg_quality)
            result = analyzer.analyze(payload)

            write_analysis(result, target.out, verbose=verbose)
            if result.caption is not None and result.caption.text:
                caption_confidence = result.caption.confidence
                stats.record(caption_confidence)

            if settings.save_images:
                written = annotate_page(
                    page,
                    result.read,
                    recorder.out_dir,
                    draw_lines=settings.annotate_lines,
                    draw_words=settings.annotate_words,
                    stroke_width=settings.stroke_width,
                    stroke_color=settings.stroke_color,
                    quality=settings.jpeg_quality,
                )
                for path in written:
                    outputs.append(str(path))
                    print(f"Saved {path.name}", file=target.out)
            else:
                print("Skipping JPEG output (no --save-images flag).", file=target.out)
        except Exception as exc:
            message = _failure_message(exc)
            print(f"Error in {page.name}: {message}", file=target.err)
            return PageResult(
                page_name=page.name,
                status="error",
                caption_confidence=caption_confidence,
                outputs=outputs,
                error=message,
            )
        finally:
            elapsed = time.perf_counter() - started
            print(f"Done in {format_elapsed(elapsed)}\n", file=target.out)

    return PageResult(
        page_name=page.name,
        status="ok",
        caption_confidence=caption_confidence,
        outputs=outputs,
    )


def pages_for_entry(entry: ImageEntry, binder_width: int) -> List[Page]:
    """Load, normalize and (optionally) split one entry into pages."""

    spread = normalize_spread(load_spread(entry.path))
    if entry.split:
        return list(split_spread(spread, binder_width))
    return [whole_page(spread)]


def process_entry(
    entry: ImageEntry,
    analyzer: Analyzer,
    recorder: RunRecorder,
    settings: Settings,
    stats: ConfidenceStats,
    verbose: bool = False,
) -> List[PageResult]:
    try:
        pages = pages_for_entry(entry, settings.binder_width)
    except Exception as exc:
        message = str(exc) if isinstance(exc, UserError) else f"Failed to load {entry.path}: {exc}"
        print(f"Error in {entry.path.name}: {message}", file=recorder.current.err)
        return [PageResult(page_name=entry.path.stem, status="error", error=message)]

    return [
        process_page(page, analyzer, recorder, settings, stats, verbose=verbose)
        for page in pages
    ]


def read_journal(
    settings: Settings,
    analyzer: Optional[Analyzer] = None,
    command_string: str = "read-journal",
    options: Optional[Dict[str, Any]] = None,
    verbosity: str = "normal",
    console_out: Optional[TextIO] = None,
    console_err: Optional[TextIO] = None,
) -> RunSummary:
    """
    Process every entry and print the run statistics.

    Preconditions (input, images, credentials) are checked before anything is
    written; failing one raises FatalPrecondition.
    """

    entries, base_dir = resolve_input(settings.input)
    if not entries:
        raise FatalPrecondition(f"No images to process in {settings.input}.")
    if analyzer is None:
        analyzer = ImageAnalyzer.from_credentials(
            settings.ai_services_endpoint, settings.ai_services_key
        )

    out_dir = settings.out_dir or (base_dir / OUTPUT_FOLDER)
    ensure_dir_path(out_dir, "Output directory")

    report = ReportRecorder(
        tool_name="read-journal",
        tool_version=__version__,
        command=command_string,
        options=options if options is not None else settings.redacted(),
        inputs={"input": str(settings.input), "entries": len(entries)},
        outputs={"out_dir": str(out_dir), "report": str(out_dir / REPORT_NAME)},
        verbosity=verbosity,
    )
    if console_err is not None:
        report.console_stream = console_err

    stats = ConfidenceStats()
    results: List[PageResult] = []
    started = time.perf_counter()
    error_message: Optional[str] = None
    summary: Dict[str, Any] = {"output_dir": str(out_dir)}

    try:
        with RunRecorder.open(out_dir, console_out, console_err) as recorder:
            report.outputs["aggregator"] = str(recorder.aggregator_path)
            report.log(f"Processing {len(entries)} image(s) into {out_dir}.")

            for position, entry in enumerate(entries, start=1):
                report.log(
                    f"Entry {position}/{len(entries)}: {entry.path.name} "
                    f"({'split' if entry.split else 'single page'})",
                    level="debug",
                )
                entry_results = process_entry(
                    entry, analyzer, recorder, settings, stats, verbose=verbosity == "verbose"
                )
                for result in entry_results:
                    report.add_page_result(result)
                results.extend(entry_results)

            elapsed = time.perf_counter() - started
            out = recorder.console.out
            print(
                f"\nProcessed {stats.count} pages with captions. "
                f"Avg confidence: {format_percent(stats.mean())}",
                file=out,
            )
            print(f"Total time: {format_elapsed(elapsed)}", file=out)
    except Exception as exc:  # pragma: no cover - unexpected I/O errors
        error_message = str(exc) if isinstance(exc, UserError) else f"Run failed: {exc}"
        report.log(error_message, level="error")
        report.add_action(action="run", status="error", error=error_message)
        if isinstance(exc, UserError):
            raise
        raise UserError(error_message) from exc
    finally:
        elapsed = time.perf_counter() - started
        summary["pages"] = len(results)
        summary["pages_failed"] = sum(1 for result in results if not result.ok)
        summary["captions"] = stats.count
        summary["mean_confidence"] = stats.mean()
        summary["elapsed_seconds"] = round(elapsed, 3)
        summary["status"] = "error" if error_message else "ok"
        if error_message is not None:
            summary["error"] = error_message
        report.write_report(out_dir / REPORT_NAME, summary)

    return RunSummary(out_dir=out_dir, stats=stats, elapsed_seconds=elapsed, results=results)
