"""
Lightweight unit tests for validation and formatting helpers.

These are intentionally small, but they cover the most error-prone bits.
"""

from __future__ import annotations

from pathlib import Path
import unittest

from helpers import workspace_temp_dir
from read_journal.utils import (
    EntryFailure,
    FatalPrecondition,
    InvalidDimension,
    ServiceFailure,
    UserError,
    ensure_dir_path,
    ensure_file_exists,
    format_elapsed,
    format_percent,
    normalize_path,
    validate_non_negative_int,
    validate_quality,
)


class ErrorHierarchyTests(unittest.TestCase):
    def test_all_errors_are_user_errors(self) -> None:
        for error_type in (FatalPrecondition, EntryFailure, InvalidDimension, ServiceFailure):
            with self.subTest(error_type=error_type.__name__):
                self.assertTrue(issubclass(error_type, UserError))


class ValidateIntTests(unittest.TestCase):
    def test_valid(self) -> None:
        self.assertEqual(validate_non_negative_int(0, "binder_width"), 0)
        self.assertEqual(validate_non_negative_int(40, "binder_width"), 40)

    def test_invalid(self) -> None:
        for value in (-1, 1.5, True, "3"):
            with self.subTest(value=value):
                with self.assertRaises(UserError):
                    validate_non_negative_int(value, "binder_width")  # type: ignore[arg-type]

    def test_quality_range(self) -> None:
        self.assertEqual(validate_quality(1), 1)
        self.assertEqual(validate_quality(95), 95)
        for value in (0, 96, False):
            with self.subTest(value=value):
                with self.assertRaises(UserError):
                    validate_quality(value)


class FormatTests(unittest.TestCase):
    def test_percent_has_two_decimals(self) -> None:
        self.assertEqual(format_percent(0.9), "90.00%")
        self.assertEqual(format_percent(0.0), "0.00%")
        self.assertEqual(format_percent(0.1234), "12.34%")

    def test_elapsed(self) -> None:
        self.assertEqual(format_elapsed(1.5), "0:00:01.500000")
        self.assertEqual(format_elapsed(-2), "0:00:00")


class PathTests(unittest.TestCase):
    def test_normalize_keeps_relative_paths(self) -> None:
        self.assertEqual(normalize_path("images"), Path("images"))

    def test_missing_file(self) -> None:
        with workspace_temp_dir("utils") as root:
            with self.assertRaises(UserError):
                ensure_file_exists(root / "missing.yaml", "Config file")
            with self.assertRaises(UserError):
                ensure_file_exists(root, "Config file")

    def test_output_path_must_be_a_directory(self) -> None:
        with workspace_temp_dir("utils") as root:
            blocker = root / "image_out"
            blocker.write_text("x", encoding="utf-8")
            with self.assertRaises(UserError):
                ensure_dir_path(blocker, "Output directory")
            ensure_dir_path(root / "fresh", "Output directory")


if __name__ == "__main__":
    unittest.main()
