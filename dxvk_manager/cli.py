#!/usr/bin/env python3
"""
Command-line interface for dxvk_manager

Lists and downloads DXVK releases, registers games and applies, restores
or removes DXVK in their install directories.
"""

import argparse
import json
import logging
import sys

from dxvk_manager import constants
from dxvk_manager.config import Config
from dxvk_manager.manager import DxvkManager
from dxvk_manager.models import InstallationTarget


def setup_logging(verbose: bool = False):
    """Setup logging configuration."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


def cmd_releases(manager: DxvkManager, args):
    """Handle releases command."""
    releases = manager.list_catalog(args.channel)
    if not releases:
        print("✗ Could not fetch releases (network error?), try again later")
        return 1

    print(f"\n✓ Found {len(releases)} releases:")
    for release in releases[:args.limit]:
        marker = "✓" if release.is_downloaded else " "
        date = release.published_at.strftime("%Y-%m-%d") if release.published_at else "----------"
        url = release.download_url or "(no downloadable asset)"
        print(f"[{marker}] {release.version:12} {date}  {url}")

    if len(releases) > args.limit:
        print(f"  ... and {len(releases) - args.limit} more")
    return 0


def cmd_download(manager: DxvkManager, args):
    """Handle download command."""
    url = args.url
    if not url:
        release = next((r for r in manager.list_catalog(args.channel) if r.version == args.version), None)
        if release is None:
            print(f"✗ Version {args.version} not found in the {args.channel} catalog")
            return 1
        url = release.download_url

    print(f"Downloading {args.channel} {args.version}...")
    if manager.fetch_and_cache(args.channel, args.version, url):
        print(f"✓ {args.channel} {args.version} is cached")
        return 0
    print(f"✗ Failed to download {args.channel} {args.version}")
    return 1


def cmd_cached(manager: DxvkManager, args):
    """Handle cached command."""
    channels = [args.channel] if args.channel else constants.CHANNELS
    for channel in channels:
        versions = manager.list_cached_versions(channel)
        print(f"{channel}: {', '.join(versions) if versions else '(none)'}")
    return 0


def cmd_requirements(manager: DxvkManager, args):
    """Handle requirements command."""
    info = manager.resolve_requirements(args.direct3d, args.x64, args.x32)
    print(f"{info['description']}: {', '.join(info['requiredDlls'])} ({info['arch']})")
    return 0


def cmd_register(manager: DxvkManager, args):
    """Handle register command."""
    target = InstallationTarget(
        app_id=args.app_id,
        name=args.name or f"Game {args.app_id}",
        install_dir=args.install_dir,
        executable_64bit=args.x64bit,
        executable_32bit=args.x32bit,
        direct3d_versions=args.direct3d,
    )
    if manager.register_target(target):
        print(f"✓ Registered {target.name} ({target.app_id})")
        return 0
    print(f"✗ Failed to save metadata for {target.app_id}")
    return 1


def cmd_apply(manager: DxvkManager, args):
    """Handle apply command."""
    result = manager.apply(args.app_id, args.channel, args.version)
    print(f"{'✓' if result.success else '✗'} {result.message}")
    if result.missing_files:
        print(f"  Missing from package: {', '.join(result.missing_files)}")
    if result.failed_files:
        print(f"  Failed: {', '.join(result.failed_files)}")
    if result.warning:
        print(f"⚠ {result.warning}")
    return 0 if result.success else 1


def cmd_restore(manager: DxvkManager, args):
    """Handle restore command."""
    result = manager.restore(args.app_id)
    print(f"{'✓' if result.success else '✗'} {result.message}")
    if result.restored_files:
        print(f"  Restored: {', '.join(result.restored_files)}")
    if result.failed_files:
        print(f"  Failed: {', '.join(result.failed_files)}")
    if not result.success and not manager.get_patch_state(args.app_id).backuped:
        print(f"  Use 'dxvk-manager remove {args.app_id}' to delete the DXVK DLLs instead")
    return 0 if result.success else 1


def cmd_remove(manager: DxvkManager, args):
    """Handle remove command."""
    result = manager.force_remove(args.app_id)
    print(f"{'✓' if result.success else '✗'} {result.message}")
    if result.removed_files:
        print(f"  Removed: {', '.join(result.removed_files)}")
    return 0 if result.success else 1


def cmd_status(manager: DxvkManager, args):
    """Handle status command."""
    state = manager.get_patch_state(args.app_id)
    data = state.to_record()
    data["backupFilesPresent"] = manager.has_backups(args.app_id)
    print(json.dumps(data, indent=2))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="DXVK Manager - download DXVK releases and patch game directories",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="Examples:\n"
               "  dxvk-manager releases dxvk\n"
               "  dxvk-manager download dxvk v2.6\n"
               "  dxvk-manager register 570 /games/dota --direct3d 'Direct3D 11' --x64bit true\n"
               "  dxvk-manager apply 570 dxvk v2.6\n"
               "  dxvk-manager restore 570"
    )

    parser.add_argument(
        "--base-dir",
        default=None,
        help=f"Base directory for caches and metadata (default: ${constants.HOME_ENV_VAR} "
             "or ~/.config/dxvk_manager)"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose logging"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    releases_parser = subparsers.add_parser("releases", help="List releases of a channel")
    releases_parser.add_argument("channel", choices=constants.CHANNELS)
    releases_parser.add_argument("--limit", type=int, default=20, help="Maximum releases to show (default: 20)")
    releases_parser.set_defaults(func=cmd_releases)

    download_parser = subparsers.add_parser("download", help="Download a version into the cache")
    download_parser.add_argument("channel", choices=constants.CHANNELS)
    download_parser.add_argument("version", help="Version, e.g. v2.6")
    download_parser.add_argument("--url", default=None, help="Archive URL (looked up in the catalog if omitted)")
    download_parser.set_defaults(func=cmd_download)

    cached_parser = subparsers.add_parser("cached", help="List cached versions")
    cached_parser.add_argument("channel", nargs="?", choices=constants.CHANNELS)
    cached_parser.set_defaults(func=cmd_cached)

    requirements_parser = subparsers.add_parser("requirements", help="Show the DLLs needed for a Direct3D version")
    requirements_parser.add_argument("direct3d", nargs="?", default=None, help="e.g. 'Direct3D 9.0c'")
    requirements_parser.add_argument("--x64", action="store_true", help="Game has a 64-bit executable")
    requirements_parser.add_argument("--x32", action="store_true", help="Game has a 32-bit executable")
    requirements_parser.set_defaults(func=cmd_requirements)

    register_parser = subparsers.add_parser("register", help="Register or update a game")
    register_parser.add_argument("app_id", help="Game identifier (e.g. Steam app ID)")
    register_parser.add_argument("install_dir", help="Directory containing the game executable")
    register_parser.add_argument("--name", default=None, help="Display name")
    register_parser.add_argument("--direct3d", default=constants.UNKNOWN_VALUE, help="Direct3D version")
    bitness = ["true", "false", constants.UNKNOWN_VALUE]
    register_parser.add_argument("--x64bit", default=constants.UNKNOWN_VALUE, choices=bitness)
    register_parser.add_argument("--x32bit", default=constants.UNKNOWN_VALUE, choices=bitness)
    register_parser.set_defaults(func=cmd_register)

    apply_parser = subparsers.add_parser("apply", help="Apply a cached version to a game")
    apply_parser.add_argument("app_id")
    apply_parser.add_argument("channel", choices=constants.CHANNELS)
    apply_parser.add_argument("version")
    apply_parser.set_defaults(func=cmd_apply)

    restore_parser = subparsers.add_parser("restore", help="Restore a game's original DLLs from backup")
    restore_parser.add_argument("app_id")
    restore_parser.set_defaults(func=cmd_restore)

    remove_parser = subparsers.add_parser("remove", help="Delete DXVK DLLs from a game without a backup")
    remove_parser.add_argument("app_id")
    remove_parser.set_defaults(func=cmd_remove)

    status_parser = subparsers.add_parser("status", help="Show a game's patch state")
    status_parser.add_argument("app_id")
    status_parser.set_defaults(func=cmd_status)

    return parser


def main(argv=None):
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    setup_logging(args.verbose)

    try:
        manager = DxvkManager(Config.from_environment(args.base_dir))
        return args.func(manager, args)
    except KeyboardInterrupt:
        print("\n\nInterrupted by user")
        return 130
    except Exception as e:
        logging.exception("Unexpected error")
        print(f"\n✗ Error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
