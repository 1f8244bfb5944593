"""Utility functions."""

import os
import re
import shutil
import sys
import unicodedata
from datetime import datetime
from typing import Optional, TextIO

RESET = "\x1b[0m"
BOLD = "\x1b[1m"
DIM = "\x1b[2m"
REVERSE = "\x1b[7m"
GREEN = "\x1b[32m"
YELLOW = "\x1b[33m"
CYAN = "\x1b[36m"

CLEAR_SCREEN = "\x1b[2J\x1b[H"
CLEAR_TO_END = "\x1b[J"


class ToolNotFoundError(RuntimeError):
    """Raised when a required external executable cannot be found."""


def style(text: str, *codes: str) -> str:
    """Wrap text in ANSI style codes."""
    if not codes:
        return text
    return "".join(codes) + text + RESET


def strip_ansi(text: str) -> str:
    """Remove ANSI escape codes from text."""
    return re.sub(r"\x1b\[[0-9;?]*[A-Za-z]", "", text)


def display_width(text: str) -> int:
    """Number of terminal cells text occupies (wide characters take two)."""
    width = 0
    previous = 0
    for ch in strip_ansi(text):
        if ch == "\ufe0f":
            # Emoji presentation widens the preceding character
            if previous == 1:
                width += 1
                previous = 2
            continue
        if unicodedata.combining(ch) or unicodedata.category(ch) in ("Mn", "Me", "Cf"):
            continue
        previous = 2 if unicodedata.east_asian_width(ch) in ("W", "F") else 1
        width += previous
    return width


def clear_screen(out: TextIO = sys.stdout) -> None:
    out.write(CLEAR_SCREEN)
    out.flush()


def terminal_width(default: int = 80) -> int:
    """Get terminal width in columns."""
    return shutil.get_terminal_size((default, 24)).columns


def format_size(size_bytes: int) -> str:
    """Format file size in human readable format."""
    if size_bytes < 1024:
        return f"{size_bytes} B"
    elif size_bytes < 1024 * 1024:
        return f"{size_bytes / 1024:.1f} KB"
    elif size_bytes < 1024 * 1024 * 1024:
        return f"{size_bytes / (1024 * 1024):.1f} MB"
    else:
        return f"{size_bytes / (1024 * 1024 * 1024):.1f} GB"


def timestamp(now: Optional[datetime] = None) -> str:
    """Timestamp used in generated file names."""
    return (now or datetime.now()).strftime("%Y%m%d_%H%M%S")


def safe_filename(name: str) -> str:
    """Turn a preset name into something usable in a file name."""
    cleaned = "".join(c if c.isalnum() or c in "._-" else "_" for c in name.strip())
    cleaned = re.sub(r"_+", "_", cleaned).strip("_")
    return cleaned or "recording"


def resolve_tool(name: str) -> str:
    """Resolve an executable name or path, raising if it does not exist."""
    if os.path.dirname(name):
        if os.path.isfile(name) and os.access(name, os.X_OK):
            return os.path.abspath(name)
        raise ToolNotFoundError(f"{name} not found")

    path = shutil.which(name)
    if not path:
        raise ToolNotFoundError(f"{name} not found in PATH")
    return path
