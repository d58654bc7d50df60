"""
stacktodate command line interface.

Usage:
    stacktodate autodetect [PATH]      # Detect technologies and their EOL status
    stacktodate init [PATH]            # Create stacktodate.yml from detection
    stacktodate update                 # Re-detect and rewrite the stack
    stacktodate check [-f json]        # Compare stacktodate.yml with detection
    stacktodate push                   # Send the stack to stacktodate.club
    stacktodate global-config set      # Store the API token
"""

from __future__ import annotations

import argparse
import getpass
import logging
import sys
import webbrowser
from pathlib import Path

from . import __build_date__, __commit__, __version__
from .api import convert_stack_to_components, push_components, tech_stack_url
from .catalog import CycleTruncator
from .check import compare_stacks
from .common import StackToDateError, resolve_config_path
from .config import (
    DEFAULT_MANIFEST_FILE,
    CheckOptions,
    DetectOptions,
    InitOptions,
    RemoteOptions,
    Settings,
    UpdateOptions,
    VersionOptions,
    load_settings,
)
from .credentials import delete_token, get_token, get_token_source, set_token
from .installer import detect_install_method, get_upgrade_instructions
from .logging_config import setup_logging
from .manifest import Manifest, load_manifest, write_manifest
from .products_cache import fetch_and_cache, get_cache_path, get_products
from .project import detect_project_info, normalize_detected_to_stack, select_candidates
from .render import print_detected_info, print_stack, render_check_json, render_check_text
from .versioncheck import (
    VersionCheckError,
    cached_update_notice,
    compare_versions,
    format_update_message,
    get_latest_version,
)

logger = logging.getLogger(__name__)

# Commands that show a cached "new version available" notice
AUTO_CHECK_COMMANDS = {"init", "update", "check", "push", "autodetect"}

# check exit codes
EXIT_MATCH = 0
EXIT_MISMATCH = 1
EXIT_ERROR = 2


def get_full_version() -> str:
    return f"stacktodate {__version__} (commit: {__commit__}, built: {__build_date__})"


def _timeout(settings: Settings) -> float | None:
    return settings.request_timeout or None


def make_truncator(settings: Settings) -> CycleTruncator:
    """Truncator backed by the cached product catalog."""
    return CycleTruncator(lambda: get_products(
        settings.api_url,
        ttl_hours=settings.cache_ttl_hours,
        timeout=_timeout(settings),
    ))


def _require_dir(path: str | Path) -> Path:
    target = Path(path)
    if not target.is_dir():
        raise StackToDateError(f"directory not found: {path}")
    return target


def _prompt(label: str) -> str:
    try:
        return input(label).strip()
    except EOFError:
        return ""


def cmd_autodetect(opts: DetectOptions, settings: Settings) -> int:
    """Scan a directory and print detected candidates with their EOL status."""
    target = _require_dir(opts.path)
    print(f"Scanning directory: {opts.path}")

    truncator = make_truncator(settings)
    info = detect_project_info(target, truncator)
    print_detected_info(info, eol_status=truncator.eol_status)
    return 0


def cmd_init(opts: InitOptions, settings: Settings) -> int:
    """Create stacktodate.yml in the target directory."""
    target = _require_dir(opts.path)
    print(f"Initializing project in: {opts.path}")

    stack = {}
    if not opts.skip_autodetect:
        truncator = make_truncator(settings)
        info = detect_project_info(target, truncator)
        print_detected_info(info, eol_status=truncator.eol_status)
        stack = select_candidates(info, interactive=not opts.no_interactive)

    uuid = opts.uuid
    name = opts.name
    if not opts.no_interactive:
        if not uuid:
            uuid = _prompt("Enter UUID: ")
        if not name:
            name = _prompt("Enter name: ")

    manifest = Manifest(uuid=uuid, name=name, stack=stack)
    path = write_manifest(manifest, target / DEFAULT_MANIFEST_FILE)
    logger.debug(f"Wrote {path}")

    print("\nProject initialized successfully!")
    print(f"Created {DEFAULT_MANIFEST_FILE} with:")
    print(f"  UUID: {uuid}")
    print(f"  Name: {name}")
    if stack:
        print("  Stack:")
        print_stack(stack, indent="    ")
    return 0


def cmd_update(opts: UpdateOptions, settings: Settings) -> int:
    """Re-run detection and rewrite the manifest's stack, keeping uuid and name."""
    manifest = load_manifest(opts.config_file)
    path = resolve_config_path(opts.config_file, DEFAULT_MANIFEST_FILE)
    print(f"Updating stack in: {opts.config_file}")

    if not opts.skip_autodetect:
        truncator = make_truncator(settings)
        info = detect_project_info(path.parent, truncator)
        print_detected_info(info, eol_status=truncator.eol_status)
        manifest.stack = select_candidates(info, interactive=not opts.no_interactive)

    write_manifest(manifest, path)

    print("\nStack updated successfully!")
    if manifest.stack:
        print("Updated stack:")
        print_stack(manifest.stack)
    return 0


def cmd_check(opts: CheckOptions, settings: Settings) -> int:
    """Compare the manifest with detection in the manifest's directory.

    Returns:
        0 when everything matches, 1 on differences
    """
    path = resolve_config_path(opts.config_file, DEFAULT_MANIFEST_FILE)
    manifest = load_manifest(path)

    info = detect_project_info(path.parent, make_truncator(settings))
    result = compare_stacks(manifest.stack, normalize_detected_to_stack(info))

    if opts.output_format == "json":
        render_check_json(result)
    else:
        render_check_text(result)

    return EXIT_MATCH if result.is_match else EXIT_MISMATCH


def cmd_push(opts: RemoteOptions, settings: Settings) -> int:
    """Replace the remote tech stack's components with the manifest's stack."""
    manifest = load_manifest(opts.config_file, require_uuid=True)
    token = get_token()

    components = convert_stack_to_components(manifest.stack)
    push_components(token, manifest.uuid, components, api_url=settings.api_url, timeout=_timeout(settings))

    print(f"✓ Successfully pushed {len(components)} components")
    return 0


def cmd_open(opts: RemoteOptions, settings: Settings) -> int:
    """Open the project's tech stack page in the default browser."""
    manifest = load_manifest(opts.config_file, require_uuid=True)
    url = tech_stack_url(settings.api_url, manifest.uuid)

    if not webbrowser.open(url):
        raise StackToDateError(f"failed to open browser for {url}")

    print(f"✓ Opening {url} in your browser")
    return 0


def cmd_fetch_catalog(settings: Settings) -> int:
    """Refresh the product catalog cache regardless of its age."""
    print(f"Fetching product catalog from {settings.api_url}...", file=sys.stderr)

    cache = fetch_and_cache(settings.api_url, timeout=_timeout(settings))

    print(f"✓ Successfully cached {len(cache.products)} products", file=sys.stderr)
    print(f"Cache location: {get_cache_path()}", file=sys.stderr)
    return 0


def cmd_version(opts: VersionOptions, settings: Settings) -> int:
    """Print version information and optionally look for a newer release."""
    print(get_full_version())
    if not opts.check_updates:
        return 0

    try:
        latest, release_url = get_latest_version(timeout=settings.update_check_timeout)
        newer = compare_versions(__version__, latest)
    except VersionCheckError as e:
        print(f"Unable to check for updates: {e}", file=sys.stderr)
        return 0

    if newer:
        instructions = get_upgrade_instructions(detect_install_method(), latest)
        print(f"\n{format_update_message(__version__, latest, release_url, instructions)}")
    else:
        print("\nYou are using the latest version.")
    return 0


def cmd_global_config_set() -> int:
    """Prompt for the API token (without echo) and store it."""
    try:
        token = getpass.getpass("Enter your stacktodate API token: ").strip()
    except EOFError as e:
        raise StackToDateError("failed to read token") from e

    provider = set_token(token)

    print("✓ Token successfully configured")
    print(f"  Storage: {provider.name}")
    return 0


def cmd_global_config_status() -> int:
    source = get_token_source()
    if source is None:
        print("Status: Not configured")
        print()
        print("To set up authentication, run:")
        print("  stacktodate global-config set")
        return 0

    description, secure = source
    print("Status: Configured")
    print(f"Source: {description}")
    if not secure:
        print()
        print("⚠️  Warning: Token stored in plain text file")
        print("For better security, use a system with OS keychain support")
    return 0


def cmd_global_config_delete() -> int:
    """Remove the stored token after a 'yes' confirmation."""
    source = get_token_source()
    if source is None:
        print("No credentials to delete")
        return 0

    print(f"This will remove your token from: {source[0]}")
    response = _prompt("Are you sure you want to delete your credentials? (type 'yes' to confirm): ")
    if response != "yes":
        print("Cancelled - credentials not deleted")
        return 0

    delete_token()
    print("✓ Credentials deleted successfully")
    return 0


def show_update_notice(settings: Settings) -> None:
    """Print the cached update notice (no network access)."""
    if not settings.version_check:
        return
    notice = cached_update_notice(__version__)
    if notice:
        print(f"\n{notice}\n", file=sys.stderr)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="stacktodate",
        description="stacktodate - Track technology lifecycle statuses and plan for end-of-life upgrades",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Verbose output",
    )
    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="No log output on stderr",
    )
    parser.add_argument(
        "--log-file",
        help="Also write debug logs to this file",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=get_full_version(),
    )

    subparsers = parser.add_subparsers(dest="command", metavar="<command>")

    p = subparsers.add_parser(
        "autodetect", aliases=["detect", "scan"],
        help="Detect project information",
    )
    p.add_argument("path", nargs="?", default=".", help="Directory to scan (default: .)")
    p.set_defaults(command="autodetect")

    p = subparsers.add_parser("init", help="Initialize a new project")
    p.add_argument("path", nargs="?", default=".", help="Project directory (default: .)")
    p.add_argument("--uuid", "-u", default="", help="UUID for the project")
    p.add_argument("--name", "-n", default="", help="Name of the project")
    p.add_argument("--skip-autodetect", action="store_true",
                   help="Skip autodetection of project technologies")
    p.add_argument("--no-interactive", action="store_true",
                   help="Use first candidate by default without prompting")

    p = subparsers.add_parser("update", help="Update stack in a stacktodate.yml using autodetect")
    p.add_argument("--config", "-c", default=DEFAULT_MANIFEST_FILE,
                   help="Path to stacktodate.yml config file (default: stacktodate.yml)")
    p.add_argument("--skip-autodetect", action="store_true",
                   help="Keep the existing stack instead of re-detecting")
    p.add_argument("--no-interactive", action="store_true",
                   help="Use first candidate by default without prompting")

    p = subparsers.add_parser("check", help="Check if detected versions match stacktodate.yml")
    p.add_argument("--config", "-c", default=DEFAULT_MANIFEST_FILE,
                   help="Path to stacktodate.yml config file (default: stacktodate.yml)")
    p.add_argument("--format", "-f", choices=["text", "json"], default="text",
                   help="Output format (default: text)")

    p = subparsers.add_parser("push", help="Push tech stack components to the API")
    p.add_argument("--config", "-c", default=DEFAULT_MANIFEST_FILE,
                   help="Path to stacktodate.yml config file (default: stacktodate.yml)")

    p = subparsers.add_parser("open", help="Open the tech stack in your browser")
    p.add_argument("--config", "-c", default=DEFAULT_MANIFEST_FILE,
                   help="Path to stacktodate.yml config file (default: stacktodate.yml)")

    subparsers.add_parser("fetch-catalog", help="Fetch and cache the product catalog")

    p = subparsers.add_parser("version", help="Print the version number")
    p.add_argument("--check-updates", action="store_true", help="Check for newer versions available")

    p = subparsers.add_parser("global-config", help="Manage global configuration and authentication")
    gc = p.add_subparsers(dest="action", metavar="<action>")
    gc.required = True
    gc.add_parser("set", help="Set up authentication token")
    gc.add_parser("status", help="Show current authentication configuration")
    gc.add_parser("delete", help="Remove stored authentication token")

    return parser


def run_command(args: argparse.Namespace, settings: Settings) -> int:
    """Build the command's options from parsed arguments and run it."""
    command = args.command

    if command == "autodetect":
        return cmd_autodetect(DetectOptions(path=args.path), settings)
    elif command == "init":
        return cmd_init(InitOptions(
            path=args.path,
            uuid=args.uuid,
            name=args.name,
            skip_autodetect=args.skip_autodetect,
            no_interactive=args.no_interactive,
        ), settings)
    elif command == "update":
        return cmd_update(UpdateOptions(
            config_file=args.config,
            skip_autodetect=args.skip_autodetect,
            no_interactive=args.no_interactive,
        ), settings)
    elif command == "check":
        return cmd_check(CheckOptions(config_file=args.config, output_format=args.format), settings)
    elif command == "push":
        return cmd_push(RemoteOptions(config_file=args.config), settings)
    elif command == "open":
        return cmd_open(RemoteOptions(config_file=args.config), settings)
    elif command == "fetch-catalog":
        return cmd_fetch_catalog(settings)
    elif command == "version":
        return cmd_version(VersionOptions(check_updates=args.check_updates), settings)
    elif command == "global-config":
        if args.action == "set":
            return cmd_global_config_set()
        elif args.action == "status":
            return cmd_global_config_status()
        return cmd_global_config_delete()

    raise StackToDateError(f"unknown command: {command}")


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the stacktodate CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    setup_logging(verbose=args.verbose, quiet=args.quiet, log_file=args.log_file)
    error_code = EXIT_ERROR if args.command == "check" else 1

    try:
        settings = load_settings()
        if args.command in AUTO_CHECK_COMMANDS:
            show_update_notice(settings)
        return run_command(args, settings)
    except StackToDateError as e:
        print(f"Error: {e}", file=sys.stderr)
        return error_code


if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        sys.exit(130)
