"""CLI entry point for the UA Cloud Library catalog.

Runs one catalog query against the configured database and storage and
prints the result as JSON on stdout. Logs go to stderr.

Examples:
    ```bash
    python -m uacloudlib namespaces --limit 10 --order-by title
    python -m uacloudlib namespaces --where '[{"license": {"equals": "MIT"}}]'
    python -m uacloudlib search robot "machine.*tool"
    python -m uacloudlib download 42 --config config/catalog.yaml
    ```
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from uacloudlib.catalog import NodesetCatalog
from uacloudlib.core.exceptions import CloudLibError, ConnectionPoolError
from uacloudlib.core.logger import Logger, StructuredFormatter


DEFAULT_CONFIG = Path("config") / "catalog.yaml"

logger = Logger("cli")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments for the catalog runner."""
    parser = argparse.ArgumentParser(
        prog="uacloudlib",
        description="UA Cloud Library catalog queries",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=DEFAULT_CONFIG,
        help=f"Catalog config path (default: {DEFAULT_CONFIG})",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="WARNING",
        help="Log level (default: WARNING)",
    )

    commands = parser.add_subparsers(dest="command", required=True)

    namespaces = commands.add_parser("namespaces", help="Page of namespace descriptors")
    namespaces.add_argument("--limit", type=int, default=None)
    namespaces.add_argument("--offset", type=int, default=0)
    namespaces.add_argument("--where", default=None, help="JSON filter expression")
    namespaces.add_argument("--order-by", default=None)

    commands.add_parser("nodesets", help="Summary of every nodeset")

    for name in ("categories", "organisations"):
        sub = commands.add_parser(name, help=f"Distinct {name}")
        sub.add_argument("--limit", type=int, default=None)
        sub.add_argument("--where", default=None, help="JSON filter expression")
        sub.add_argument("--order-by", default=None)

    search = commands.add_parser("search", help="Keyword search ('*' matches everything)")
    search.add_argument("keywords", nargs="+")

    delete = commands.add_parser("delete", help="Delete all rows of a nodeset")
    delete.add_argument("nodeset_id", type=int)

    download = commands.add_parser("download", help="Print the stored nodeset file")
    download.add_argument("nodeset_id", type=int)

    return parser.parse_args(argv)


def setup_logging(level: str) -> None:
    """Install a ``StructuredFormatter`` on a stderr root handler."""
    handler = logging.StreamHandler()
    handler.setFormatter(StructuredFormatter())
    logging.root.addHandler(handler)
    logging.root.setLevel(getattr(logging, level))


def _print_json(payload: Any) -> None:
    sys.stdout.write(json.dumps(payload, indent=2, default=str) + "\n")


async def run_command(catalog: NodesetCatalog, args: argparse.Namespace) -> int:
    """Execute the selected command and print its result.

    Returns:
        Exit code: 0 for success, 1 when a delete or download failed.
    """
    command = args.command
    if command == "namespaces":
        items = await catalog.namespaces(args.limit, args.offset, args.where, args.order_by)
        _print_json([item.to_dict() for item in items])
    elif command == "nodesets":
        _print_json([item.to_dict() for item in await catalog.nodesets()])
    elif command == "categories":
        items = await catalog.categories(args.limit, args.where, args.order_by)
        _print_json([item.to_dict() for item in items])
    elif command == "organisations":
        items = await catalog.organisations(args.limit, args.where, args.order_by)
        _print_json([item.to_dict() for item in items])
    elif command == "search":
        _print_json([item.to_dict() for item in await catalog.find_nodesets(args.keywords)])
    elif command == "delete":
        ok = await catalog.delete_nodeset(args.nodeset_id)
        _print_json({"nodesetId": args.nodeset_id, "deleted": ok})
        return 0 if ok else 1
    elif command == "download":
        content = await catalog.download_nodeset(args.nodeset_id)
        if not content:
            logger.error("download_failed", nodeset_id=args.nodeset_id)
            return 1
        sys.stdout.write(content)
    return 0


async def main(argv: list[str] | None = None) -> int:
    """Main entry point: parse args, build the catalog, and run one command."""
    args = parse_args(argv)
    setup_logging(args.log_level)

    try:
        catalog = NodesetCatalog.from_yaml(str(args.config))
    except (FileNotFoundError, CloudLibError, ValidationError) as e:
        logger.error("config_invalid", path=str(args.config), error=str(e))
        return 1

    try:
        async with catalog:
            return await run_command(catalog, args)
    except ConnectionPoolError as e:
        logger.error("connection_failed", error=str(e))
        return 1
    except KeyboardInterrupt:
        logger.info("interrupted")
        return 130


def cli() -> None:
    """Synchronous entry point for console_scripts."""
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    cli()
