"""
Configuration helpers for YAML-backed run options.

Precedence: built-in defaults < YAML file < environment < explicit CLI flags.
"""

from __future__ import annotations

from copy import deepcopy
from dataclasses import dataclass
import os
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml
from PIL import ImageColor

from .utils import (
    UserError,
    ensure_file_exists,
    normalize_path,
    validate_non_negative_int,
    validate_quality,
)


DEFAULT_CONFIG_NAME = "appsettings.yaml"
CONFIG_SECTION = "read_journal"

DEFAULT_READ_JOURNAL: dict[str, Any] = {
    "input": "images",
    "out_dir": None,
    "binder_width": 0,
    "jpeg_quality": 50,
    "save_images": False,
    "annotate_lines": False,
    "annotate_words": True,
    "stroke_width": 3,
    "stroke_color": "cyan",
    "ai_services_endpoint": None,
    "ai_services_key": None,
}

ENV_OVERRIDES: dict[str, str] = {
    "AI_SERVICES_ENDPOINT": "ai_services_endpoint",
    "AI_SERVICES_KEY": "ai_services_key",
}


def load_yaml(path: Path) -> dict[str, Any]:
    """Load a YAML file into a dictionary."""

    ensure_file_exists(path, "Config file")
    try:
        with path.open("r", encoding="utf-8") as handle:
            loaded = yaml.safe_load(handle)
    except yaml.YAMLError as exc:
        raise UserError(f"Failed to parse YAML config {path}: {exc}") from exc
    except OSError as exc:
        raise UserError(f"Failed to read config {path}: {exc}") from exc

    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise UserError(f"Config {path} must contain a YAML mapping/object at top level.")
    return loaded


def deep_merge(base: dict[str, Any], overlay: dict[str, Any]) -> dict[str, Any]:
    """
    Recursively merge dictionaries where overlay values win.
    """

    merged = deepcopy(base)
    for key, value in overlay.items():
        if (
            key in merged
            and isinstance(merged[key], dict)
            and isinstance(value, dict)
        ):
            merged[key] = deep_merge(merged[key], value)
        else:
            merged[key] = deepcopy(value)
    return merged


def validate_keys(cfg: dict[str, Any], allowed: set[str], ctx: str) -> None:
    """
    Validate dictionary keys and fail fast on unknown entries.
    """

    unknown = sorted(key for key in cfg.keys() if key not in allowed)
    if unknown:
        allowed_list = ", ".join(sorted(allowed))
        unknown_list = ", ".join(unknown)
        raise UserError(
            f"Unknown keys in {ctx}: {unknown_list}. Allowed keys: {allowed_list}."
        )


def extract_section(loaded: dict[str, Any]) -> dict[str, Any]:
    """Support either root config keys or a read_journal wrapper."""

    allowed = set(DEFAULT_READ_JOURNAL.keys())
    if CONFIG_SECTION in loaded:
        section = loaded[CONFIG_SECTION]
        if not isinstance(section, dict):
            raise UserError(f"config.{CONFIG_SECTION} must be a mapping/object.")
        validate_keys(section, allowed, f"config.{CONFIG_SECTION}")
        return section

    validate_keys(loaded, allowed, "config")
    return loaded


def env_overrides(environ: Optional[Mapping[str, str]] = None) -> dict[str, Any]:
    """Pick up service credentials from the environment when set."""

    source = os.environ if environ is None else environ
    return {
        key: source[name]
        for name, key in ENV_OVERRIDES.items()
        if source.get(name, "").strip()
    }


def dump_default_yaml() -> str:
    """Serialize wrapped defaults as YAML."""

    return yaml.safe_dump({CONFIG_SECTION: DEFAULT_READ_JOURNAL}, sort_keys=False).rstrip()


def _require_bool(value: Any, key: str) -> bool:
    """Require a strict boolean value from config/CLI merge output."""

    if isinstance(value, bool):
        return value
    raise UserError(f"{key} must be true or false.")


@dataclass(frozen=True)
class Settings:
    """Validated, typed view of the merged configuration."""

    input: Path
    out_dir: Optional[Path]
    binder_width: int
    jpeg_quality: int
    save_images: bool
    annotate_lines: bool
    annotate_words: bool
    stroke_width: int
    stroke_color: str
    ai_services_endpoint: Optional[str]
    ai_services_key: Optional[str]

    @classmethod
    def from_mapping(cls, cfg: dict[str, Any]) -> "Settings":
        stroke_color = str(cfg["stroke_color"])
        try:
            ImageColor.getrgb(stroke_color)
        except ValueError as exc:
            raise UserError(f"stroke_color is not a recognized color: {stroke_color}") from exc

        stroke_width = validate_non_negative_int(cfg["stroke_width"], "stroke_width")
        if stroke_width == 0:
            raise UserError("stroke_width must be a positive integer.")

        out_dir = cfg.get("out_dir")
        endpoint = cfg.get("ai_services_endpoint")
        key = cfg.get("ai_services_key")
        return cls(
            input=normalize_path(str(cfg["input"])),
            out_dir=normalize_path(str(out_dir)) if out_dir else None,
            binder_width=validate_non_negative_int(cfg["binder_width"], "binder_width"),
            jpeg_quality=validate_quality(cfg["jpeg_quality"]),
            save_images=_require_bool(cfg["save_images"], "save_images"),
            annotate_lines=_require_bool(cfg["annotate_lines"], "annotate_lines"),
            annotate_words=_require_bool(cfg["annotate_words"], "annotate_words"),
            stroke_width=stroke_width,
            stroke_color=stroke_color,
            ai_services_endpoint=str(endpoint) if endpoint else None,
            ai_services_key=str(key) if key else None,
        )

    def redacted(self) -> dict[str, Any]:
        """JSON-friendly options for the run report, without the key."""

        return {
            "input": str(self.input),
            "out_dir": str(self.out_dir) if self.out_dir else None,
            "binder_width": self.binder_width,
            "jpeg_quality": self.jpeg_quality,
            "save_images": self.save_images,
            "annotate_lines": self.annotate_lines,
            "annotate_words": self.annotate_words,
            "stroke_width": self.stroke_width,
            "stroke_color": self.stroke_color,
            "ai_services_endpoint": self.ai_services_endpoint,
            "ai_services_key": "***" if self.ai_services_key else None,
        }
