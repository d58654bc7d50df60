"""
Manifest comparison.

Compares the stack declared in stacktodate.yml with the stack detected in
the project. The comparison is driven by the manifest: technologies that are
detected but not declared are not reported.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

from .manifest import StackEntry

STATUS_MATCH = "match"
STATUS_MISMATCH = "mismatch"


@dataclass(frozen=True)
class ComparisonEntry:
    """One technology's comparison outcome."""

    name: str
    version: str = ""
    detected: str = ""
    source: str = ""

    def to_dict(self) -> dict[str, str]:
        data = {"name": self.name}
        # Empty fields are omitted from JSON output
        for key in ("version", "detected", "source"):
            value = getattr(self, key)
            if value:
                data[key] = value
        return data


@dataclass
class CheckResult:
    """Three-way partition of the manifest's technologies."""

    matched: list[ComparisonEntry] = field(default_factory=list)
    mismatched: list[ComparisonEntry] = field(default_factory=list)
    missing_config: list[ComparisonEntry] = field(default_factory=list)

    @property
    def status(self) -> str:
        if self.mismatched or self.missing_config:
            return STATUS_MISMATCH
        return STATUS_MATCH

    @property
    def is_match(self) -> bool:
        return self.status == STATUS_MATCH

    def summary(self) -> dict[str, int]:
        return {
            "matches": len(self.matched),
            "mismatches": len(self.mismatched),
            "missing_config": len(self.missing_config),
        }

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status,
            "summary": self.summary(),
            "results": {
                "matched": [e.to_dict() for e in self.matched],
                "mismatched": [e.to_dict() for e in self.mismatched],
                "missing_config": [e.to_dict() for e in self.missing_config],
            },
        }


def compare_stacks(
    config_stack: Mapping[str, StackEntry],
    detected_stack: Mapping[str, StackEntry],
) -> CheckResult:
    """
    Compare declared and detected stacks.

    Versions are compared as plain strings; "3.2" and "3.2.0" differ.

    Args:
        config_stack: Technology -> entry from the manifest
        detected_stack: Technology -> entry from detection

    Returns:
        CheckResult with matched, mismatched and missing_config entries in
        manifest order
    """
    result = CheckResult()

    for tech, config_entry in config_stack.items():
        detected_entry = detected_stack.get(tech)
        if detected_entry is None:
            result.missing_config.append(ComparisonEntry(
                name=tech,
                version=config_entry.version,
                source=config_entry.source,
            ))
            continue

        entry = ComparisonEntry(
            name=tech,
            version=config_entry.version,
            detected=detected_entry.version,
            source=detected_entry.source,
        )
        if config_entry.version == detected_entry.version:
            result.matched.append(entry)
        else:
            result.mismatched.append(entry)

    return result
