"""
stacktodate - Track technology lifecycle statuses and plan for end-of-life upgrades.

Core Modules:
- Detection: Version markers in Ruby, Rails, Node.js, Go, Python and Docker files
- Catalog: Cached product release cycles and EOL lookups
- Manifest: stacktodate.yml parsing, comparison and persistence
- Remote Sync: stacktodate.club API client and token storage
"""

__version__ = "0.4.0"
__author__ = "stacktodate contributors"

# Stamped by release builds
__commit__ = "none"
__build_date__ = "unknown"

VERSION = __version__

# Detection
from .detection import Candidate, detect_docker, detect_go, detect_node, detect_python, detect_rails, detect_ruby
from .versions import clean_version, extract_version_from_docker_image, classify_docker_image
from .project import DetectedInfo, detect_project_info, normalize_detected_to_stack, select_candidates

# Catalog
from .products_cache import Product, Release, ProductsCache, get_products, is_cache_valid, load_cache, save_cache
from .catalog import CycleTruncator, get_eol_status, truncate_version_to_eol_cycle

# Manifest
from .manifest import Manifest, StackEntry, load_manifest, write_manifest
from .check import CheckResult, ComparisonEntry, compare_stacks

# Configuration
from .config import Settings, load_settings
from .common import StackToDateError

# Remote Sync
from .api import Component, create_tech_stack, get_tech_stack, push_components
from .credentials import get_token, set_token, delete_token, get_token_source

__all__ = [
    # Version
    "__version__",
    "VERSION",
    # Detection
    "Candidate",
    "detect_ruby",
    "detect_rails",
    "detect_node",
    "detect_go",
    "detect_python",
    "detect_docker",
    "clean_version",
    "extract_version_from_docker_image",
    "classify_docker_image",
    "DetectedInfo",
    "detect_project_info",
    "normalize_detected_to_stack",
    "select_candidates",
    # Catalog
    "Product",
    "Release",
    "ProductsCache",
    "get_products",
    "is_cache_valid",
    "load_cache",
    "save_cache",
    "CycleTruncator",
    "get_eol_status",
    "truncate_version_to_eol_cycle",
    # Manifest
    "Manifest",
    "StackEntry",
    "load_manifest",
    "write_manifest",
    "CheckResult",
    "ComparisonEntry",
    "compare_stacks",
    # Configuration
    "Settings",
    "load_settings",
    "StackToDateError",
    # Remote Sync
    "Component",
    "create_tech_stack",
    "get_tech_stack",
    "push_components",
    "get_token",
    "set_token",
    "delete_token",
    "get_token_source",
]
