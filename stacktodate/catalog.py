"""
Release-cycle matching against the product catalog.

Catalog products label their release cycles at varying granularity
("3.11" for Python, "18" for Node.js, "7.1" for Rails). Detected versions are
truncated to the longest label the catalog knows so that manifests and EOL
lookups use the catalog's vocabulary.
"""

from __future__ import annotations

import logging
from typing import Callable

from .products_cache import CatalogFetchError, Product, get_product_by_key

logger = logging.getLogger(__name__)

# Internal technology names -> catalog product keys
PRODUCT_KEYS = {
    "ruby": "ruby",
    "rails": "rails",
    "node": "nodejs",
    "nodejs": "nodejs",
    "go": "go",
    "python": "python",
}


def product_key(product: str) -> str:
    """Map a technology name to its catalog key (unknown names pass through)."""
    return PRODUCT_KEYS.get(product, product)


def truncate_version_to_eol_cycle(product: str, version: str, products: list[Product]) -> str:
    """Truncate a version to the release cycle the catalog knows.

    Tries the exact version, then major.minor, then major.

    Examples:
        3.11.0 -> 3.11, 18.0.0 -> 18, 7.1.0 -> 7.1

    Args:
        product: Technology or catalog key (e.g. "python", "nodejs")
        version: Normalized version
        products: Catalog products

    Returns:
        Matching cycle label, or the version unchanged when nothing matches
    """
    if not product or not version:
        return version

    cached = get_product_by_key(product_key(product), products)
    if cached is None:
        return version

    cycles = cached.cycles()
    if version in cycles:
        return version

    parts = version.split(".")
    if len(parts) >= 2:
        major_minor = f"{parts[0]}.{parts[1]}"
        if major_minor in cycles:
            return major_minor

    if parts[0] in cycles:
        return parts[0]

    return version


def get_eol_status(product: str, version: str, products: list[Product]) -> str:
    """Describe the support status of a release cycle.

    Args:
        product: Technology or catalog key
        version: Release cycle label
        products: Catalog products

    Returns:
        " (supported)", " (EOL: <date>)", or "" when the cycle is unknown
    """
    if not product or not version:
        return ""

    cached = get_product_by_key(product_key(product), products)
    if cached is None:
        return ""

    release = cached.get_release(version)
    if release is None:
        return ""
    if not release.eol:
        return " (supported)"
    return f" (EOL: {release.eol})"


class CycleTruncator:
    """Lazily loads the catalog and truncates versions against it.

    Catalog failures are logged once and every later call returns versions
    unchanged, so detection never fails because the catalog is unavailable.
    """

    def __init__(self, loader: Callable[[], list[Product]]):
        self._loader = loader
        self._products: list[Product] | None = None
        self._failed = False

    @property
    def products(self) -> list[Product]:
        if self._products is None and not self._failed:
            try:
                self._products = self._loader()
            except CatalogFetchError as e:
                logger.warning(f"Product catalog unavailable, versions left untruncated: {e}")
                self._failed = True
        return self._products or []

    def truncate(self, product: str, version: str) -> str:
        return truncate_version_to_eol_cycle(product, version, self.products)

    def eol_status(self, product: str, version: str) -> str:
        return get_eol_status(product, version, self.products)
