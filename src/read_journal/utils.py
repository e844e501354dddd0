"""
Shared utility helpers.

This module keeps the "sharp edges" (error types and path validation) in one
place so the rest of the code can stay focused on image and transcript work.
"""

from __future__ import annotations

from datetime import timedelta
from pathlib import Path


class UserError(Exception):
    """Raised for user-facing problems that should show a clear message."""


class FatalPrecondition(UserError):
    """The run cannot start: missing input, no images, or no credentials."""


class EntryFailure(UserError):
    """One input entry cannot be processed; the run moves on."""


class InvalidDimension(EntryFailure):
    """Split geometry leaves a page with no pixels."""


class ServiceFailure(UserError):
    """The image-analysis service call failed for one page."""


def normalize_path(value: str) -> Path:
    """
    Convert user input to a Path.

    We do not resolve() here because we want to preserve relative paths in
    reports and error messages.
    """

    return Path(value).expanduser()


def ensure_file_exists(path: Path, label: str) -> Path:
    """Validate that a path exists and is a file."""

    if not path.exists():
        raise UserError(f"{label} not found: {path}")
    if not path.is_file():
        raise UserError(f"{label} is not a file: {path}")
    return path


def ensure_dir(path: Path) -> None:
    """Create a directory (and parents) if needed."""

    path.mkdir(parents=True, exist_ok=True)


def ensure_dir_path(path: Path, label: str) -> None:
    """Ensure a path is either a directory or does not exist yet."""

    if path.exists() and not path.is_dir():
        raise UserError(f"{label} is not a directory: {path}")


def validate_non_negative_int(value: int, label: str) -> int:
    """Common validation for pixel options like --binder_width."""

    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise UserError(f"{label} must be a non-negative integer.")
    return value


def validate_quality(value: int, label: str = "jpeg_quality") -> int:
    """JPEG quality follows Pillow's 1-95 useful range."""

    if isinstance(value, bool) or not isinstance(value, int) or not 1 <= value <= 95:
        raise UserError(f"{label} must be an integer in the range [1, 95].")
    return value


def format_percent(value: float) -> str:
    """Render a 0..1 confidence as a two-decimal percentage."""

    return f"{value * 100:.2f}%"


def format_elapsed(seconds: float) -> str:
    """Render elapsed wall-clock seconds as H:MM:SS.ffffff."""

    return str(timedelta(seconds=max(0.0, seconds)))
