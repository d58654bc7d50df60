"""
Project-level detection.

Runs every scanner against a directory, normalizes the raw values, folds
classified Docker images into their technologies, truncates versions to the
catalog's release cycles, and turns the result into manifest stack entries.
"""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Protocol, TextIO

from . import detection
from .detection import Candidate
from .manifest import StackEntry
from .versions import classify_docker_image, clean_version, extract_version_from_docker_image

logger = logging.getLogger(__name__)

# DetectedInfo attribute -> (manifest key, display label)
TECHNOLOGIES: tuple[tuple[str, str, str], ...] = (
    ("ruby", "ruby", "Ruby"),
    ("rails", "rails", "Rails"),
    ("node", "nodejs", "Node.js"),
    ("go", "go", "Go"),
    ("python", "python", "Python"),
)


class Truncator(Protocol):
    def truncate(self, product: str, version: str) -> str: ...


@dataclass
class DetectedInfo:
    """Candidates found per technology, plus every raw Docker image."""

    ruby: list[Candidate] = field(default_factory=list)
    rails: list[Candidate] = field(default_factory=list)
    node: list[Candidate] = field(default_factory=list)
    go: list[Candidate] = field(default_factory=list)
    python: list[Candidate] = field(default_factory=list)
    docker: list[Candidate] = field(default_factory=list)

    def candidates_for(self, tech: str) -> list[Candidate]:
        return getattr(self, tech)

    def has_candidates(self) -> bool:
        return any(self.candidates_for(tech) for tech, _, _ in TECHNOLOGIES) or bool(self.docker)

    def to_dict(self) -> dict[str, list[dict[str, str]]]:
        data = {key: [c.to_dict() for c in self.candidates_for(tech)] for tech, key, _ in TECHNOLOGIES}
        data["docker"] = [c.to_dict() for c in self.docker]
        return data


def detect_project_info(base_path: str | Path = ".", truncator: Truncator | None = None) -> DetectedInfo:
    """Detect technologies used in a project directory.

    Args:
        base_path: Project directory to scan
        truncator: Optional release-cycle truncator; versions are left as
            normalized when None

    Returns:
        DetectedInfo with normalized (and truncated) versions
    """
    logger.debug(f"Scanning {base_path}")
    info = DetectedInfo(
        ruby=_clean(detection.detect_ruby(base_path)),
        rails=_clean(detection.detect_rails(base_path)),
        node=_clean(detection.detect_node(base_path)),
        go=_clean(detection.detect_go(base_path)),
        python=_clean(detection.detect_python(base_path)),
        docker=detection.detect_docker(base_path),
    )

    for image in info.docker:
        tech = classify_docker_image(image.value)
        if tech is None:
            continue
        info.candidates_for(tech).append(Candidate(
            value=extract_version_from_docker_image(image.value),
            source=image.source,
        ))

    if truncator is not None:
        for tech, key, _ in TECHNOLOGIES:
            for candidate in info.candidates_for(tech):
                candidate.value = truncator.truncate(key, candidate.value)

    return info


def _clean(candidates: list[Candidate]) -> list[Candidate]:
    for candidate in candidates:
        candidate.value = clean_version(candidate.value)
    return candidates


def unclassified_docker(info: DetectedInfo) -> list[Candidate]:
    """Docker images that did not map to any technology (postgres, redis...)."""
    return [c for c in info.docker if classify_docker_image(c.value) is None]


def normalize_detected_to_stack(info: DetectedInfo) -> dict[str, StackEntry]:
    """Pick the first candidate of each technology as its stack entry."""
    stack: dict[str, StackEntry] = {}
    for tech, key, _ in TECHNOLOGIES:
        candidates = info.candidates_for(tech)
        if candidates:
            stack[key] = StackEntry(version=candidates[0].value, source=candidates[0].source)
    return stack


def select_from_candidates(
    tech: str,
    candidates: list[Candidate],
    interactive: bool = True,
    input_fn: Callable[[str], str] | None = None,
    output: TextIO | None = None,
) -> StackEntry | None:
    """Let the user choose one candidate, or skip.

    Args:
        tech: Manifest key shown in the prompt
        candidates: Non-empty candidate list
        interactive: Prompt the user; otherwise take the first candidate
        input_fn: Line reader (input() when None)
        output: Stream for the menu (stdout by default)

    Returns:
        Selected entry, or None when skipped
    """
    if not candidates:
        return None
    if not interactive:
        return StackEntry(version=candidates[0].value, source=candidates[0].source)

    input_fn = input_fn or input
    out = output or sys.stdout
    print(f"\nSelect {tech} version (or press Enter to skip):", file=out)
    for i, candidate in enumerate(candidates, start=1):
        print(f"  {i}) {candidate.value} (from: {candidate.source})", file=out)
    print("  0) Skip", file=out)

    while True:
        try:
            choice = input_fn("Your choice: ").strip()
        except EOFError:
            return None

        if choice in ("", "0"):
            return None

        try:
            idx = int(choice)
        except ValueError:
            idx = -1
        if 1 <= idx <= len(candidates):
            selected = candidates[idx - 1]
            return StackEntry(version=selected.value, source=selected.source)

        print("Invalid choice. Please try again.", file=out)


def select_candidates(
    info: DetectedInfo,
    interactive: bool = True,
    input_fn: Callable[[str], str] | None = None,
    output: TextIO | None = None,
) -> dict[str, StackEntry]:
    """Build a manifest stack by selecting one candidate per technology."""
    selected: dict[str, StackEntry] = {}
    for tech, key, _ in TECHNOLOGIES:
        candidates = info.candidates_for(tech)
        if not candidates:
            continue
        entry = select_from_candidates(key, candidates, interactive, input_fn, output)
        if entry is not None and entry.version:
            selected[key] = entry
    return selected
