"""modproxy CLI entry points.
This module exposes publishing and inspection commands.
It maps argparse commands onto SDK calls.
"""

from __future__ import annotations

import argparse
from dataclasses import replace
from pathlib import Path
from typing import Any, Sequence

from core.config import ProxyConfig
from core.errors import ModProxyError
from proxy.client import ModuleProxyClient


def build_parser() -> argparse.ArgumentParser:
    """Build the top-level CLI parser.

    Returns:
        Configured argument parser.
    """
    parser = argparse.ArgumentParser(prog="modproxy", description="Module proxy publisher")
    parser.add_argument("--storage-root", help="Override MODPROXY_STORAGE_ROOT for this command")
    subparsers = parser.add_subparsers(dest="command", required=True)
    _add_publish_command(subparsers)
    _add_versions_command(subparsers)
    _add_checksum_command(subparsers)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the modproxy CLI.

    Args:
        argv: Optional argument vector.

    Returns:
        Process exit code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        client = _build_client(args.storage_root)
        if args.command == "publish":
            return _run_publish_command(client, args)
        if args.command == "versions":
            return _run_versions_command(client, args)
        if args.command == "checksum":
            return _run_checksum_command(client, args)
    except ModProxyError as error:
        parser.exit(1, f"modproxy: error: {error}\n")
    parser.error(f"Unsupported command: {args.command}")
    return 2


def _build_client(storage_root: str | None) -> ModuleProxyClient:
    """Build SDK client with optional storage-root override.

    Args:
        storage_root: Optional override path.

    Returns:
        Configured SDK client.
    """
    config = ProxyConfig.from_env()
    if storage_root:
        config = replace(
            config,
            storage_root=Path(storage_root).expanduser().resolve(),
            storage_uri=None,
        )
    return ModuleProxyClient(config)


def _run_publish_command(client: ModuleProxyClient, args: argparse.Namespace) -> int:
    """Handle publish command.

    Args:
        client: SDK client.
        args: Parsed CLI args.

    Returns:
        Exit code.
    """
    source_dir = Path(args.source_dir) if args.source_dir else None
    result = client.publish(args.module, args.version, source_dir=source_dir)
    for line in result.checksum.go_sum_lines():
        print(line)
    return 0


def _run_versions_command(client: ModuleProxyClient, args: argparse.Namespace) -> int:
    """Handle versions command."""
    for version in client.versions(args.module, sort=args.sorted):
        print(version)
    return 0


def _run_checksum_command(client: ModuleProxyClient, args: argparse.Namespace) -> int:
    """Handle checksum command."""
    record = client.checksum(args.module, args.version)
    for line in record.go_sum_lines():
        print(line)
    return 0


def _add_publish_command(subparsers: Any) -> None:
    """Register publish subcommand."""
    parser = subparsers.add_parser("publish", help="Publish a module version from storage")
    parser.add_argument("module", help="Module path, e.g. example.com/foo/bar")
    parser.add_argument("version", help="Version, e.g. v0.0.124 or 0.0.124")
    parser.add_argument(
        "--source-dir",
        help=(
            "Optional local module root copied into storage before publishing. "
            "Files are only added or overwritten: files deleted locally since an "
            "earlier staging stay in storage and are archived too"
        ),
    )


def _add_versions_command(subparsers: Any) -> None:
    """Register versions subcommand."""
    parser = subparsers.add_parser("versions", help="List published versions of a module")
    parser.add_argument("module", help="Module path")
    parser.add_argument(
        "--sorted",
        action="store_true",
        help="Order by semantic version instead of publish order",
    )


def _add_checksum_command(subparsers: Any) -> None:
    """Register checksum subcommand."""
    parser = subparsers.add_parser("checksum", help="Print go.sum lines for a published version")
    parser.add_argument("module", help="Module path")
    parser.add_argument("version", help="Published version")
