"""
Product catalog cache.

The catalog of products and their release cycles is fetched from the
stacktodate.club API and kept in ~/.stacktodate/products-cache.json. A cache
file younger than the TTL (24 hours by default, judged by file mtime) is used
as-is; an older one triggers a refetch, and the old snapshot is still served
when the refetch fails.
"""

from __future__ import annotations

import datetime
import json
import logging
import time
import urllib.error
import urllib.request
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .common import StackToDateError, get_config_dir

logger = logging.getLogger(__name__)

CACHE_FILE_NAME = "products-cache.json"
DEFAULT_TTL_HOURS = 24
PRODUCTS_ENDPOINT = "/api/v1/products"
USER_AGENT = "stacktodate-cli"


class CacheError(StackToDateError):
    """Raised when a cache file cannot be read, parsed or written."""
    pass


class CatalogFetchError(StackToDateError):
    """Raised when the product catalog cannot be downloaded."""
    pass


def _opt_str(value: Any) -> str:
    """Release dates may be missing, null, or a boolean flag in the API."""
    if value is None or value is False:
        return ""
    if value is True:
        return "true"
    return str(value)


@dataclass
class Release:
    """One release cycle of a product."""

    release_cycle: str
    release_date: str = ""
    support: str = ""
    extended: str = ""
    eol: str = ""
    lts: bool = False

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary using the API field names."""
        data: dict[str, Any] = {
            "releaseCycle": self.release_cycle,
            "releaseDate": self.release_date,
        }
        if self.support:
            data["support"] = self.support
        if self.extended:
            data["extended"] = self.extended
        if self.eol:
            data["eol"] = self.eol
        data["lts"] = self.lts
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Release":
        """Create from API or cache dictionary."""
        return cls(
            release_cycle=_opt_str(data.get("releaseCycle")),
            release_date=_opt_str(data.get("releaseDate")),
            support=_opt_str(data.get("support")),
            extended=_opt_str(data.get("extended")),
            eol=_opt_str(data.get("eol")),
            lts=bool(data.get("lts", False)),
        )


@dataclass
class Product:
    """A catalog product (e.g. ruby, rails, nodejs) with its release cycles."""

    key: str
    name: str = ""
    releases: list[Release] = field(default_factory=list)

    def cycles(self) -> set[str]:
        """Known release-cycle labels."""
        return {r.release_cycle for r in self.releases}

    def get_release(self, cycle: str) -> Release | None:
        for release in self.releases:
            if release.release_cycle == cycle:
                return release
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "key": self.key,
            "name": self.name,
            "releases": [r.to_dict() for r in self.releases],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Product":
        return cls(
            key=_opt_str(data.get("key")),
            name=_opt_str(data.get("name")),
            releases=[Release.from_dict(r) for r in data.get("releases") or [] if isinstance(r, dict)],
        )


@dataclass
class ProductsCache:
    """Persisted catalog snapshot."""

    timestamp: str = ""
    products: list[Product] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "products": [p.to_dict() for p in self.products],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ProductsCache":
        products_raw = data.get("products") or []
        if not isinstance(products_raw, list):
            raise CacheError("products must be a list")
        return cls(
            timestamp=_opt_str(data.get("timestamp")),
            products=[Product.from_dict(p) for p in products_raw if isinstance(p, dict)],
        )


def get_cache_path() -> Path:
    """Get products cache file path.

    Returns:
        Path to products-cache.json in the stacktodate directory
    """
    return get_config_dir() / CACHE_FILE_NAME


def is_cache_valid(
    path: Path | None = None,
    ttl_hours: int = DEFAULT_TTL_HOURS,
    now: float | None = None,
) -> bool:
    """Check whether the cache file exists and is younger than the TTL.

    Args:
        path: Optional path to cache file (uses default if None)
        ttl_hours: Freshness window in hours
        now: Current time as epoch seconds (defaults to time.time())

    Returns:
        True if the file's modification time is within the TTL
    """
    if path is None:
        path = get_cache_path()

    try:
        mtime = path.stat().st_mtime
    except OSError:
        return False

    if now is None:
        now = time.time()
    return (now - mtime) < ttl_hours * 3600


def load_cache(path: Path | None = None) -> ProductsCache:
    """Load the catalog snapshot from disk.

    Args:
        path: Optional path to cache file (uses default if None)

    Returns:
        ProductsCache instance

    Raises:
        CacheError: If the file is missing, unreadable or malformed
    """
    if path is None:
        path = get_cache_path()

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except OSError as e:
        raise CacheError(f"failed to read cache file: {e}") from e
    except json.JSONDecodeError as e:
        raise CacheError(f"failed to parse cache file {path}: {e}") from e

    if not isinstance(data, dict):
        raise CacheError(f"failed to parse cache file {path}: expected an object")
    return ProductsCache.from_dict(data)


def save_cache(products: list[Product], path: Path | None = None) -> ProductsCache:
    """Write products to the cache file with a fresh timestamp.

    The whole file is replaced; concurrent writers are not coordinated.

    Args:
        products: Catalog products
        path: Optional path to cache file (uses default if None)

    Returns:
        The ProductsCache that was written

    Raises:
        CacheError: If the file cannot be written
    """
    if path is None:
        path = get_cache_path()

    cache = ProductsCache(
        timestamp=datetime.datetime.now(datetime.timezone.utc)
        .replace(microsecond=0)
        .isoformat()
        .replace("+00:00", "Z"),
        products=list(products),
    )

    # Atomic write: write to temp file then rename
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        temp_path = path.with_suffix(".tmp")
        with open(temp_path, "w", encoding="utf-8") as f:
            json.dump(cache.to_dict(), f, indent=2, ensure_ascii=False)
        temp_path.replace(path)
    except OSError as e:
        raise CacheError(f"failed to write cache file: {e}") from e

    return cache


def http_get(url: str, timeout: float | None = None, headers: dict[str, str] | None = None) -> bytes:
    """Perform HTTP GET request, requiring a 200 response.

    Args:
        url: URL to fetch
        timeout: Timeout in seconds (None = no deadline)
        headers: Optional HTTP headers

    Returns:
        Response body as bytes

    Raises:
        CatalogFetchError: On connection failure or any non-200 status
    """
    default_headers = {"User-Agent": USER_AGENT, "Accept": "application/json"}
    if headers:
        default_headers.update(headers)

    req = urllib.request.Request(url, headers=default_headers)
    try:
        if timeout:
            response = urllib.request.urlopen(req, timeout=timeout)
        else:
            response = urllib.request.urlopen(req)
        with response:
            status = response.status
            body = response.read()
    except urllib.error.HTTPError as e:
        detail = e.read().decode("utf-8", "replace") if e.fp else ""
        raise CatalogFetchError(f"API error (status {e.code}): {detail}") from e
    except (urllib.error.URLError, OSError) as e:
        raise CatalogFetchError(f"failed to fetch from API: {e}") from e

    if status != 200:
        raise CatalogFetchError(f"API error (status {status}): {body.decode('utf-8', 'replace')}")
    return body


def fetch_products(api_url: str, timeout: float | None = None) -> list[Product]:
    """Download the product catalog.

    Args:
        api_url: Base URL of the catalog service
        timeout: Optional request deadline in seconds

    Returns:
        List of products

    Raises:
        CatalogFetchError: On network failure, non-200 status or bad JSON
    """
    url = f"{api_url.rstrip('/')}{PRODUCTS_ENDPOINT}"
    logger.debug(f"Fetching product catalog: {url}")

    body = http_get(url, timeout=timeout)
    try:
        data = json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise CatalogFetchError(f"failed to parse API response: {e}") from e

    if not isinstance(data, list):
        raise CatalogFetchError("failed to parse API response: expected a list of products")

    products = [Product.from_dict(p) for p in data if isinstance(p, dict)]
    logger.debug(f"Fetched {len(products)} products")
    return products


def fetch_and_cache(
    api_url: str,
    path: Path | None = None,
    timeout: float | None = None,
) -> ProductsCache:
    """Download the catalog and persist it.

    Returns:
        The freshly written cache
    """
    products = fetch_products(api_url, timeout=timeout)
    return save_cache(products, path)


def get_products(
    api_url: str,
    path: Path | None = None,
    ttl_hours: int = DEFAULT_TTL_HOURS,
    timeout: float | None = None,
) -> list[Product]:
    """Return catalog products, refreshing the cache when stale.

    Args:
        api_url: Base URL of the catalog service
        path: Optional path to cache file (uses default if None)
        ttl_hours: Freshness window in hours
        timeout: Optional request deadline in seconds

    Returns:
        Products from a fresh cache, a new download, or (when the download
        fails) the last snapshot regardless of age

    Raises:
        CatalogFetchError: If the download fails and no snapshot exists
    """
    if path is None:
        path = get_cache_path()

    if is_cache_valid(path, ttl_hours):
        try:
            return load_cache(path).products
        except CacheError as e:
            logger.debug(f"Fresh cache unreadable, refetching: {e}")

    try:
        products = fetch_products(api_url, timeout=timeout)
    except CatalogFetchError as fetch_error:
        try:
            stale = load_cache(path)
        except CacheError:
            raise CatalogFetchError(
                f"failed to fetch products and no valid cache available: {fetch_error}"
            ) from fetch_error
        logger.debug(f"Catalog refresh failed, using stale cache: {fetch_error}")
        return stale.products

    try:
        save_cache(products, path)
    except CacheError as e:
        logger.warning(f"Could not persist product catalog: {e}")
    return products


def get_product_by_key(key: str, products: list[Product]) -> Product | None:
    """Find a product by its catalog key."""
    for product in products:
        if product.key == key:
            return product
    return None
