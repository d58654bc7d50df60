"""
Version string normalization and Docker image classification.
"""

from __future__ import annotations

import re

from packaging import version as pkg_version

# Longest operators first so "~>" is not read as "~"
VERSION_OPERATORS = ("~>", ">=", "<=", "!=", "==", "^", "~", ">", "<", "=")

NUMERIC_PREFIX_RE = re.compile(r"^([\d.]+)")

# Image-name fragments per technology, checked in this order
DOCKER_IMAGE_MARKERS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("ruby", ("ruby:",)),
    ("python", ("python:",)),
    ("node", ("node:",)),
    ("go", ("golang:", "go:")),
)


def strip_operator(value: str) -> str:
    """Remove the leading comparison operator from a trimmed requirement.

    Operators stacked by mistake ("=~> 1") are all removed so that the
    result never starts with an operator.
    """
    while True:
        for op in VERSION_OPERATORS:
            if value.startswith(op):
                value = value[len(op):].strip()
                break
        else:
            return value


def clean_version(raw: str) -> str:
    """Strip a comparison operator and keep the numeric core of a version.

    Examples:
        "~> 7.1.0" -> "7.1.0", ">= 18.0.0" -> "18.0.0", "3.2.0-alpine" -> "3.2.0"

    Values without a leading number (e.g. "lts/hydrogen") are returned
    operator-stripped and trimmed but otherwise unchanged.

    Args:
        raw: Raw version requirement

    Returns:
        Normalized version, or "" for blank input
    """
    value = strip_operator((raw or "").strip())

    m = NUMERIC_PREFIX_RE.match(value)
    if m:
        return m.group(1)
    return value


def extract_version_from_docker_image(image: str) -> str:
    """Extract the version from a Docker image reference.

    Examples:
        "ruby:3.2.0-alpine" -> "3.2.0", "node:18-alpine" -> "18",
        "myapp:v1.0" -> "v1.0", "ubuntu" -> "ubuntu"

    Args:
        image: Image reference (repo[:tag])

    Returns:
        Leading numeric run of the tag, the whole tag if it is not numeric,
        or the input unchanged when there is no tag
    """
    parts = image.split(":")
    if len(parts) < 2:
        return image

    tag = parts[1]
    m = NUMERIC_PREFIX_RE.match(tag)
    if m:
        return m.group(1)
    return tag


def classify_docker_image(image: str) -> str | None:
    """Bucket an image reference into a technology.

    A marker must start the last path segment of the image, so
    "library/ruby:3.2" is Ruby while "mongo:6" is not Go.

    Args:
        image: Image reference

    Returns:
        "ruby", "python", "node", "go", or None when unclassified
    """
    name = image.rsplit("/", 1)[-1]
    for tech, markers in DOCKER_IMAGE_MARKERS:
        if name.startswith(markers):
            return tech
    return None


def compare_versions(v1: str, v2: str) -> int:
    """
    Compare two version strings.

    Args:
        v1: First version
        v2: Second version

    Returns:
        -1 if v1 < v2, 0 if v1 == v2, 1 if v1 > v2
    """
    try:
        ver1 = pkg_version.parse(v1.lstrip("v"))
        ver2 = pkg_version.parse(v2.lstrip("v"))
    except pkg_version.InvalidVersion:
        # Fallback to string comparison
        if v1 < v2:
            return -1
        elif v1 > v2:
            return 1
        return 0

    if ver1 < ver2:
        return -1
    elif ver1 > ver2:
        return 1
    return 0
