"""
Command-line interface for read-journal.

This file focuses on parsing arguments and dispatching to the real work.
Keeping this separate makes the code easier to read and test.
"""

from __future__ import annotations

import argparse
import subprocess
import sys
from pathlib import Path
from typing import Any, Dict, Optional

from . import __version__
from .config import (
    DEFAULT_CONFIG_NAME,
    DEFAULT_READ_JOURNAL,
    Settings,
    deep_merge,
    dump_default_yaml,
    env_overrides,
    extract_section,
    load_yaml,
)
from .utils import UserError, normalize_path


EXAMPLES = """Examples:
  python -m read_journal images
  python -m read_journal images --save-images --binder_width 40
  python -m read_journal entries.json --config "appsettings.yaml" --verbose
  python -m read_journal --dump-default-config
"""

CONFIG_KEYS = set(DEFAULT_READ_JOURNAL.keys())


def _verbosity_from_args(args: argparse.Namespace) -> str:
    """Resolve global verbosity mode from top-level flags."""

    if getattr(args, "quiet", False):
        return "quiet"
    if getattr(args, "verbose", False):
        return "verbose"
    return "normal"


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="read-journal",
        description=(
            "Split photographed journal spreads into pages, transcribe them with "
            "Azure AI Vision, and overlay the recognized words."
        ),
        epilog=EXAMPLES,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--version", action="version", version=__version__)
    parser.add_argument(
        "input",
        nargs="?",
        default=argparse.SUPPRESS,
        help='Folder of .jpg spreads or a .json entry list (default: "images").',
    )
    parser.add_argument(
        "--config",
        default=argparse.SUPPRESS,
        help=f"YAML config with service credentials (default: {DEFAULT_CONFIG_NAME} if present).",
    )
    parser.add_argument(
        "--dump-default-config",
        action="store_true",
        help="Print default YAML config and exit.",
    )
    parser.add_argument(
        "--out_dir",
        default=argparse.SUPPRESS,
        help="Output folder (default: <input folder>\\image_out).",
    )
    parser.add_argument(
        "--binder_width",
        type=int,
        default=argparse.SUPPRESS,
        help="Pixels at the spread center excluded from both pages.",
    )
    parser.add_argument(
        "--jpeg_quality",
        type=int,
        default=argparse.SUPPRESS,
        help="JPEG quality for service uploads and annotated images.",
    )
    parser.add_argument(
        "--save-images",
        dest="save_images",
        action="store_true",
        default=argparse.SUPPRESS,
        help="Write word-box overlays as <page>_words.jpg.",
    )
    parser.add_argument(
        "--annotate-lines",
        dest="annotate_lines",
        action="store_true",
        default=argparse.SUPPRESS,
        help="Also write line-box overlays as <page>_lines.jpg (with --save-images).",
    )

    verbosity_group = parser.add_mutually_exclusive_group()
    verbosity_group.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress non-error status logs.",
    )
    verbosity_group.add_argument(
        "--verbose",
        action="store_true",
        help="Show debug status logs and polygon detail in transcripts.",
    )
    return parser


def _build_effective_config(
    args: argparse.Namespace,
    environ: Optional[Dict[str, str]] = None,
) -> tuple[Dict[str, Any], Path | None]:
    """Resolve defaults < YAML config < environment < explicit CLI flags."""

    effective = deep_merge(DEFAULT_READ_JOURNAL, {})
    config_path: Path | None = None
    if hasattr(args, "config"):
        config_path = normalize_path(args.config)
    elif Path(DEFAULT_CONFIG_NAME).is_file():
        config_path = Path(DEFAULT_CONFIG_NAME)

    if config_path is not None:
        effective = deep_merge(effective, extract_section(load_yaml(config_path)))

    effective = deep_merge(effective, env_overrides(environ))

    raw_args = vars(args)
    cli_overrides = {key: raw_args[key] for key in CONFIG_KEYS if key in raw_args}
    effective = deep_merge(effective, cli_overrides)
    return effective, config_path


def _command_string(argv: list[str]) -> str:
    """Reconstruct a command string for the report."""

    # list2cmdline produces a Windows-friendly command representation.
    return subprocess.list2cmdline(argv)


def _command_argv_for_report(argv: list[str] | None) -> list[str]:
    """Choose argv used to record the report command faithfully."""

    if argv is None:
        return list(sys.argv)
    return [sys.argv[0], *argv]


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    try:
        if args.dump_default_config:
            print(dump_default_yaml())
            return 0

        verbosity = _verbosity_from_args(args)
        effective_cfg, config_path = _build_effective_config(args)
        settings = Settings.from_mapping(effective_cfg)

        options = settings.redacted()
        options["version"] = __version__
        options["verbosity"] = verbosity
        if config_path is not None:
            options["config_path"] = str(config_path)

        from .pipeline import read_journal

        read_journal(
            settings,
            command_string=_command_string(_command_argv_for_report(argv)),
            options=options,
            verbosity=verbosity,
        )
        return 0
    except UserError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2
