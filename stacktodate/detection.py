"""
Project file scanners.

Each scanner reads a fixed set of files below an explicit base directory and
returns the raw version strings it finds as Candidates. Scanners never raise:
a missing, unreadable or non-matching file contributes nothing.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

RAILS_GEM_RE = re.compile(r"""gem ['"]rails['"],\s*['"]([^'"]+)['"]""")
NODE_ENGINE_RE = re.compile(r'"node"\s*:\s*"([^"]+)"')
GO_DIRECTIVE_RE = re.compile(r"go\s+(\d+\.\d+(?:\.\d+)?)")
PYPROJECT_PYTHON_RE = re.compile(r'python\s*=\s*"([^"]+)"')
PIPFILE_PYTHON_RE = re.compile(r'python_version\s*=\s*"([^"]+)"')
DOCKER_FROM_RE = re.compile(r"^FROM\s+(.+)", re.MULTILINE)
COMPOSE_IMAGE_RE = re.compile(r"^\s*image:\s*(.+)", re.MULTILINE)

COMPOSE_FILE = "docker-compose.yml"


@dataclass
class Candidate:
    """A detected version value and the file it came from."""

    value: str
    source: str

    def to_dict(self) -> dict[str, str]:
        return {"value": self.value, "source": self.source}


def read_text(base_path: str | Path, filename: str) -> str | None:
    """Read a project file, returning None when it is absent or unreadable.

    Args:
        base_path: Project directory
        filename: File name relative to base_path

    Returns:
        File content or None
    """
    path = Path(base_path) / filename
    try:
        return path.read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        logger.debug(f"Skipping {path}: {e}")
        return None


def _version_file(base_path: str | Path, filename: str) -> list[Candidate]:
    """Whole-file version markers such as .ruby-version or .nvmrc."""
    content = read_text(base_path, filename)
    if content is None:
        return []
    version = content.strip()
    if not version:
        return []
    return [Candidate(value=version, source=filename)]


def _first_match(base_path: str | Path, filename: str, pattern: re.Pattern[str]) -> list[Candidate]:
    """First regex capture in a file, as a single Candidate."""
    content = read_text(base_path, filename)
    if content is None:
        return []
    m = pattern.search(content)
    if not m:
        return []
    return [Candidate(value=m.group(1), source=filename)]


def detect_ruby(base_path: str | Path = ".") -> list[Candidate]:
    """Detect the Ruby version from .ruby-version."""
    return _version_file(base_path, ".ruby-version")


def detect_rails(base_path: str | Path = ".") -> list[Candidate]:
    """Detect the Rails requirement from the Gemfile."""
    return _first_match(base_path, "Gemfile", RAILS_GEM_RE)


def detect_node(base_path: str | Path = ".") -> list[Candidate]:
    """Detect Node.js versions from package.json engines and .nvmrc.

    Returns:
        Candidates in the order package.json, .nvmrc
    """
    candidates = _first_match(base_path, "package.json", NODE_ENGINE_RE)
    candidates.extend(_version_file(base_path, ".nvmrc"))
    return candidates


def detect_go(base_path: str | Path = ".") -> list[Candidate]:
    """Detect the Go version from the go directive in go.mod."""
    return _first_match(base_path, "go.mod", GO_DIRECTIVE_RE)


def detect_python(base_path: str | Path = ".") -> list[Candidate]:
    """Detect Python versions.

    Sources, in order: .python-version, pyproject.toml (``python = "..."``),
    Pipfile (``python_version = "..."``).
    """
    candidates = _version_file(base_path, ".python-version")
    candidates.extend(_first_match(base_path, "pyproject.toml", PYPROJECT_PYTHON_RE))
    candidates.extend(_first_match(base_path, "Pipfile", PIPFILE_PYTHON_RE))
    return candidates


def find_dockerfiles(base_path: str | Path = ".") -> list[str]:
    """List Dockerfile variants (Dockerfile, Dockerfile.prod, app.Dockerfile...).

    Returns:
        Sorted file names relative to base_path
    """
    try:
        return sorted(p.name for p in Path(base_path).glob("*Dockerfile*") if p.is_file())
    except OSError as e:
        logger.debug(f"Cannot list Dockerfiles in {base_path}: {e}")
        return []


def detect_docker(base_path: str | Path = ".") -> list[Candidate]:
    """Collect Docker image references.

    Every ``FROM`` line of every Dockerfile variant and every ``image:`` line
    of docker-compose.yml yields one Candidate, in file order. The value is
    the raw image reference (e.g. ``ruby:3.2.0-alpine``).
    """
    candidates: list[Candidate] = []

    for filename in find_dockerfiles(base_path):
        content = read_text(base_path, filename)
        if content is None:
            continue
        for m in DOCKER_FROM_RE.finditer(content):
            # "FROM node:18 AS builder" -> "node:18"
            parts = m.group(1).split()
            if parts:
                candidates.append(Candidate(value=parts[0], source=filename))

    content = read_text(base_path, COMPOSE_FILE)
    if content is not None:
        for m in COMPOSE_IMAGE_RE.finditer(content):
            image = m.group(1).strip().strip("'\"")
            if image:
                candidates.append(Candidate(value=image, source=COMPOSE_FILE))

    return candidates
