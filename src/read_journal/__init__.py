"""
read-journal package.

Why this file exists:
- It marks this folder as a package so `python -m read_journal` works after install.
- It keeps import side effects minimal; the CLI lives in cli.py.
"""

__all__ = ["__version__"]

# Keep a simple version string for reports and debugging.
__version__ = "0.1.0"
