"""
Shared test fixtures and configuration.
"""

import logging
from pathlib import Path

import pytest

from stacktodate.products_cache import Product, Release


@pytest.fixture(autouse=True)
def isolated_config_dir(tmp_path: Path, monkeypatch) -> Path:
    """Point ~/.stacktodate at a temporary directory and clear stacktodate env vars."""
    config_dir = tmp_path / "stacktodate-home"
    monkeypatch.setenv("STD_CONFIG_DIR", str(config_dir))
    for var in ("STD_TOKEN", "STD_API_URL", "STD_DISABLE_VERSION_CHECK", "STD_DEBUG"):
        monkeypatch.delenv(var, raising=False)
    return config_dir


@pytest.fixture(autouse=True)
def reset_logging():
    """Let records reach caplog even after a test configured the stacktodate logger."""
    logger = logging.getLogger("stacktodate")
    yield
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    """Return an empty project directory."""
    path = tmp_path / "project"
    path.mkdir()
    return path


@pytest.fixture
def catalog() -> list[Product]:
    """Small product catalog with cycles at different granularities."""
    return [
        Product(key="ruby", name="Ruby", releases=[
            Release(release_cycle="3.3", eol="2027-03-31"),
            Release(release_cycle="3.2", eol="2026-03-31"),
            Release(release_cycle="2.7", eol="2023-03-31"),
        ]),
        Product(key="rails", name="Ruby on Rails", releases=[
            Release(release_cycle="7.1"),
            Release(release_cycle="7.0", eol="2025-04-01"),
        ]),
        Product(key="nodejs", name="Node.js", releases=[
            Release(release_cycle="20", lts=True),
            Release(release_cycle="18", eol="2025-04-30", lts=True),
        ]),
        Product(key="python", name="Python", releases=[
            Release(release_cycle="3.12"),
            Release(release_cycle="3.11"),
        ]),
        Product(key="go", name="Go", releases=[
            Release(release_cycle="1.22"),
            Release(release_cycle="1.21", eol="2024-08-13"),
        ]),
    ]
