"""
Stack manifest (stacktodate.yml) parsing and persistence.

The manifest is a small, human-edited YAML file::

    uuid: 7c1e...
    name: my-app
    stack:
      ruby:
        version: "3.2"
        source: .ruby-version
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .common import StackToDateError
from .config import DEFAULT_MANIFEST_FILE


class ManifestError(StackToDateError):
    """Raised when a manifest cannot be read, parsed, validated or written."""
    pass


@dataclass(frozen=True)
class StackEntry:
    """
    The chosen version of one technology.

    Attributes:
        version: Normalized version or release cycle
        source: File the version was detected in
    """
    version: str = ""
    source: str = ""

    def to_dict(self) -> dict[str, str]:
        return {"version": self.version, "source": self.source}

    @staticmethod
    def from_dict(data: Any) -> StackEntry:
        """Create StackEntry from a mapping (a bare scalar is taken as the version)."""
        if isinstance(data, dict):
            return StackEntry(
                version=_scalar(data.get("version")),
                source=_scalar(data.get("source")),
            )
        return StackEntry(version=_scalar(data))


def _scalar(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


@dataclass
class Manifest:
    """
    A project's declared technology stack.

    Attributes:
        uuid: Remote tech stack id
        name: Project name
        stack: Technology name -> StackEntry
    """
    uuid: str = ""
    name: str = ""
    stack: dict[str, StackEntry] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"uuid": self.uuid, "name": self.name}
        if self.stack:
            data["stack"] = {tech: entry.to_dict() for tech, entry in self.stack.items()}
        return data

    @staticmethod
    def from_dict(data: dict[str, Any]) -> Manifest:
        stack_data = data.get("stack") or {}
        if not isinstance(stack_data, dict):
            raise ManifestError("stack must be a mapping of technology to {version, source}")
        return Manifest(
            uuid=_scalar(data.get("uuid")),
            name=_scalar(data.get("name")),
            stack={str(tech): StackEntry.from_dict(entry) for tech, entry in stack_data.items()},
        )


def load_manifest(path: str | Path | None = None, require_uuid: bool = False) -> Manifest:
    """
    Load a manifest file.

    Args:
        path: Manifest path (defaults to stacktodate.yml)
        require_uuid: Fail when the manifest has no uuid

    Returns:
        Manifest

    Raises:
        ManifestError: If the file is missing, malformed, or lacks a required uuid
    """
    path = Path(path or DEFAULT_MANIFEST_FILE)

    try:
        with open(path, "r", encoding="utf-8") as f:
            # BaseLoader keeps unquoted 3.10 as "3.10" instead of the float 3.1
            data = yaml.load(f, Loader=yaml.BaseLoader)
    except OSError as e:
        raise ManifestError(f"reading config file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ManifestError(f"parsing config file {path}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ManifestError(f"parsing config file {path}: expected a mapping at top level")

    manifest = Manifest.from_dict(data)

    if require_uuid and not manifest.uuid:
        raise ManifestError("uuid not found in config file")

    return manifest


def dump_manifest(manifest: Manifest) -> str:
    """Serialize a manifest to YAML text."""
    return yaml.safe_dump(
        manifest.to_dict(),
        sort_keys=False,
        default_flow_style=False,
        allow_unicode=True,
    )


def write_manifest(manifest: Manifest, path: str | Path | None = None) -> Path:
    """
    Write a manifest, replacing the file.

    Args:
        manifest: Manifest to persist
        path: Target path (defaults to stacktodate.yml)

    Returns:
        Path written

    Raises:
        ManifestError: If the file cannot be written
    """
    path = Path(path or DEFAULT_MANIFEST_FILE)
    try:
        path.write_text(dump_manifest(manifest), encoding="utf-8")
    except OSError as e:
        raise ManifestError(f"failed to write {path}: {e}") from e
    return path
