"""
Output rendering and formatting for detection and check results.
"""

from __future__ import annotations

import json
import os
import sys
from typing import Callable, TextIO

from wcwidth import wcswidth

from .check import CheckResult
from .detection import Candidate
from .project import TECHNOLOGIES, DetectedInfo, unclassified_docker

# Environment options
USE_COLOR = os.environ.get("STD_COLOR", "1") == "1"

# ANSI color codes
GREEN = "\033[32m"
YELLOW = "\033[33m"
RED = "\033[31m"
RESET = "\033[0m"

NAME_COLUMN_WIDTH = 12


def colorize(text: str, color: str, stream: TextIO | None = None) -> str:
    """Apply color to text.

    Args:
        text: Text to colorize
        color: ANSI color code
        stream: Destination stream; color is only applied to terminals

    Returns:
        Colored text or plain text if colors disabled
    """
    stream = stream or sys.stdout
    if not USE_COLOR or not text or not stream.isatty():
        return text
    return f"{color}{text}{RESET}"


def pad(text: str, width: int) -> str:
    """Left-align text to a display width (wide characters count double)."""
    display = wcswidth(text)
    if display < 0:
        display = len(text)
    return text + " " * max(0, width - display)


def _print_candidates(title: str, candidates: list[Candidate], out: TextIO,
                      status: Callable[[str], str] | None = None) -> None:
    print(f"{title}:", file=out)
    for candidate in candidates:
        suffix = status(candidate.value) if status else ""
        print(f"  - {candidate.value}{suffix} (from: {candidate.source})", file=out)
    print(file=out)


def print_detected_info(
    info: DetectedInfo,
    eol_status: Callable[[str, str], str] | None = None,
    out: TextIO | None = None,
) -> None:
    """Print detected candidates grouped by technology.

    Args:
        info: Detection result
        eol_status: Optional (product, version) -> suffix lookup such as
            " (EOL: 2024-03-31)"
        out: Output stream (stdout by default)
    """
    out = out or sys.stdout

    if not info.has_candidates():
        print("\nNo project files detected in current directory", file=out)
        return

    print("\n=== Detected Project Information ====", file=out)

    for tech, key, label in TECHNOLOGIES:
        candidates = info.candidates_for(tech)
        if not candidates:
            continue
        status = (lambda version, key=key: eol_status(key, version)) if eol_status else None
        _print_candidates(label, candidates, out, status)

    others = unclassified_docker(info)
    if others:
        _print_candidates("Docker", others, out)


def print_stack(stack: dict, out: TextIO | None = None, indent: str = "  ") -> None:
    """Print manifest stack entries as 'tech: version (from: source)'."""
    out = out or sys.stdout
    for tech, entry in stack.items():
        print(f"{indent}{tech}: {entry.version} (from: {entry.source})", file=out)


def render_check_text(result: CheckResult, out: TextIO | None = None) -> None:
    """Render a check result as a human-readable report."""
    out = out or sys.stdout

    print("Technology Check Results", file=out)
    print("========================", file=out)
    print(file=out)

    if result.matched:
        print(f"MATCH ({len(result.matched)}):", file=out)
        for entry in result.matched:
            mark = colorize("✓", GREEN, out)
            print(f"  {pad(entry.name + ':', NAME_COLUMN_WIDTH)} {entry.version} == {entry.detected}   {mark}", file=out)
        print(file=out)

    if result.mismatched:
        print(f"MISMATCH ({len(result.mismatched)}):", file=out)
        for entry in result.mismatched:
            detected = colorize(entry.detected, YELLOW, out)
            print(
                f"  {pad(entry.name + ':', NAME_COLUMN_WIDTH)} {detected} != {entry.version}"
                f"   (config has {entry.version})",
                file=out,
            )
        print(file=out)

    if result.missing_config:
        print(f"MISSING FROM DETECTION ({len(result.missing_config)}):", file=out)
        for entry in result.missing_config:
            print(
                f"  {pad(entry.name + ':', NAME_COLUMN_WIDTH)} {colorize(entry.version, RED, out)}"
                "   (in config but not detected)",
                file=out,
            )
        print(file=out)

    summary = result.summary()
    print(
        f"Summary: {summary['matches']} match, {summary['mismatches']} mismatch, "
        f"{summary['missing_config']} missing",
        file=out,
    )

    if result.is_match:
        print("Exit code: 0 (all match)", file=out)
    else:
        print("Exit code: 1 (has differences)", file=out)


def render_check_json(result: CheckResult, out: TextIO | None = None) -> None:
    """Render a check result as indented JSON."""
    out = out or sys.stdout
    print(json.dumps(result.to_dict(), indent=2, ensure_ascii=False), file=out)
