"""
Resolve the run input into a list of image entries.

Input is either a folder of JPEG spreads (each one split) or a JSON list of
`{"path": ..., "split": ...}` entries whose relative paths are resolved
against the JSON file's folder.
"""

from __future__ import annotations

from dataclasses import dataclass
import json
from pathlib import Path
from typing import List, Tuple

from .utils import FatalPrecondition, UserError


IMAGE_SUFFIXES = {".jpg", ".jpeg"}


@dataclass(frozen=True)
class ImageEntry:
    path: Path
    split: bool = True


def collect_image_files(in_dir: Path) -> List[Path]:
    """Top-level .jpg/.jpeg files (any case) in stable order."""

    return sorted(
        path
        for path in in_dir.iterdir()
        if path.is_file() and path.suffix.lower() in IMAGE_SUFFIXES
    )


def _entry_from_raw(raw: object, base_dir: Path, position: int) -> ImageEntry:
    if not isinstance(raw, dict):
        raise UserError(f"Entry {position} must be an object with 'path' and 'split'.")
    # Keys are matched case-insensitively.
    lowered = {str(key).lower(): value for key, value in raw.items()}
    path_value = lowered.get("path")
    if not isinstance(path_value, str) or not path_value.strip():
        raise UserError(f"Entry {position} has no 'path'.")
    split_value = lowered.get("split", False)
    if not isinstance(split_value, bool):
        raise UserError(f"Entry {position} 'split' must be true or false.")

    path = Path(path_value).expanduser()
    if not path.is_absolute():
        path = base_dir / path
    return ImageEntry(path=path, split=split_value)


def load_entry_list(json_path: Path) -> List[ImageEntry]:
    """Parse a JSON entry list; relative paths resolve against its folder."""

    base_dir = json_path.resolve().parent
    try:
        loaded = json.loads(json_path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise FatalPrecondition(f"Failed to read entry list {json_path}: {exc}") from exc

    if loaded is None:
        return []
    if not isinstance(loaded, list):
        raise FatalPrecondition(f"Entry list {json_path} must be a JSON array.")
    try:
        return [
            _entry_from_raw(raw, base_dir, position)
            for position, raw in enumerate(loaded, start=1)
        ]
    except UserError as exc:
        raise FatalPrecondition(f"Invalid entry list {json_path}: {exc}") from exc


def resolve_input(input_path: Path) -> Tuple[List[ImageEntry], Path]:
    """
    Return (entries, base folder).

    The base folder is the input folder itself, or the folder that holds the
    JSON entry list; outputs are written beneath it.
    """

    if input_path.suffix.lower() == ".json" and input_path.is_file():
        return load_entry_list(input_path), input_path.resolve().parent
    if input_path.is_dir():
        entries = [ImageEntry(path=path, split=True) for path in collect_image_files(input_path)]
        return entries, input_path
    raise FatalPrecondition(f"Input not found: {input_path}")
