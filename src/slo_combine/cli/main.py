"""
slo-combine CLI — pick SLOs from a catalog and combine them.

Usage:
    slo-combine tags --catalog slos.yaml
    slo-combine list --catalog slos.yaml --tag env=prod
    slo-combine toggle checkout-latency api-errors --catalog slos.yaml
    slo-combine show --catalog slos.yaml
    slo-combine clear
    slo-combine version
"""

import argparse
import asyncio
import json
import logging
import sys
from typing import List, Optional

from slo_combine import __version__
from slo_combine.catalog.records import CatalogError, SLORecord, Tag, load_catalog
from slo_combine.catalog.tags import parse_tag, tag_label, unique_tags
from slo_combine.config import CombineConfig
from slo_combine.controller import CombinationController
from slo_combine.persistence.errors import PersistenceError
from slo_combine.persistence.gateway import UserStorageGateway
from slo_combine.persistence.providers import get_document_store

EXIT_OK = 0
EXIT_USAGE = 1
EXIT_SAVE_FAILED = 2


def _common_options() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--config", help="YAML config file")
    common.add_argument("--catalog", help="SLO catalog YAML file or directory")
    common.add_argument("--store", help="SQLite file holding the saved selection")
    common.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return common


def _load_config(parsed: argparse.Namespace) -> CombineConfig:
    config = CombineConfig.from_yaml(parsed.config) if parsed.config else CombineConfig()
    if parsed.catalog:
        config.catalog_path = parsed.catalog
    if parsed.store:
        config.store_path = parsed.store
    if parsed.verbose:
        config.log_level = "DEBUG"
    return config


def _gateway(config: CombineConfig) -> UserStorageGateway:
    store = get_document_store(path=config.store_path)
    return UserStorageGateway(store, config.collection, config.document_id)


def _format_slo(slo: SLORecord, selected: bool) -> str:
    mark = "[x]" if selected else "[ ]"
    tags = ", ".join(tag_label(t) for t in slo.document.tags or ())
    line = f"{mark} {slo.id}  {slo.name}"
    return f"{line}  ({tags})" if tags else line


async def _mounted(gateway: UserStorageGateway, catalog: List[SLORecord]) -> CombinationController:
    controller = CombinationController(gateway, catalog=catalog)
    await controller.mount()
    return controller


async def _list(gateway: UserStorageGateway, catalog: List[SLORecord], tags: List[Tag]) -> int:
    controller = await _mounted(gateway, catalog)
    controller.set_tag_filter(tags)
    view = controller.view()
    if not view.display_list:
        print("No SLOs match." if tags else "No SLOs in catalog.")
        return EXIT_OK
    for slo in view.display_list:
        print(_format_slo(slo, slo.id in view.selected_ids))
    return EXIT_OK


async def _toggle(gateway: UserStorageGateway, catalog: List[SLORecord], ids: List[str]) -> int:
    known = {slo.id for slo in catalog}
    unknown = [i for i in ids if i not in known]
    if unknown:
        print(f"Unknown SLO id(s): {', '.join(unknown)}", file=sys.stderr)
        return EXIT_USAGE

    controller = await _mounted(gateway, catalog)
    for slo_id in ids:
        controller.toggle(slo_id)
    diff = controller.diff()
    if not diff.is_dirty:
        print("Selection unchanged.")
        return EXIT_OK
    if not await controller.save():
        print(f"Save failed: {controller.save_error}", file=sys.stderr)
        return EXIT_SAVE_FAILED
    print(f"Saved selection ({diff.summary()}): {', '.join(controller.aggregated_ids) or 'none'}")
    return EXIT_OK


async def _show(gateway: UserStorageGateway, catalog: List[SLORecord], as_json: bool) -> int:
    controller = await _mounted(gateway, catalog)
    combined = controller.combined_slos
    if as_json:
        print(json.dumps([slo.model_dump(mode="json", by_alias=True) for slo in combined], indent=2))
        return EXIT_OK
    if not combined:
        print("No SLOs selected. Combine SLOs with 'slo-combine toggle <id>'.")
        return EXIT_OK
    for slo in combined:
        print(_format_slo(slo, True))
    return EXIT_OK


async def _clear(gateway: UserStorageGateway) -> int:
    removed = await gateway.clear()
    print("Selection cleared." if removed else "No saved selection.")
    return EXIT_OK


def cli(args: Optional[List[str]] = None) -> int:
    """Main CLI entry point. Returns exit code."""
    common = _common_options()
    parser = argparse.ArgumentParser(
        prog="slo-combine",
        description="Select and combine SLOs from a catalog",
    )
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("version", help="Show version")
    subparsers.add_parser("tags", parents=[common], help="List tags used in the catalog")

    list_parser = subparsers.add_parser("list", parents=[common], help="List catalog SLOs")
    list_parser.add_argument(
        "--tag", action="append", default=[], metavar="KEY=VALUE",
        help="Only show SLOs with this tag (repeatable, all must match)",
    )

    toggle_parser = subparsers.add_parser(
        "toggle", parents=[common], help="Select/deselect SLOs and save the selection",
    )
    toggle_parser.add_argument("ids", nargs="+", metavar="ID")

    show_parser = subparsers.add_parser("show", parents=[common], help="Show combined SLOs")
    show_parser.add_argument("--json", action="store_true", help="Output JSON")

    subparsers.add_parser("clear", parents=[common], help="Delete the saved selection")

    parsed = parser.parse_args(args)

    if parsed.command == "version":
        print(f"slo-combine {__version__}")
        return EXIT_OK

    if parsed.command is None:
        parser.print_help()
        return EXIT_USAGE

    try:
        config = _load_config(parsed)
    except (OSError, ValueError) as e:
        print(f"Invalid config: {e}", file=sys.stderr)
        return EXIT_USAGE
    logging.basicConfig(level=config.log_level)

    catalog: List[SLORecord] = []
    if parsed.command != "clear":
        if not config.catalog_path:
            print("No catalog given. Use --catalog or set catalog_path in the config.", file=sys.stderr)
            return EXIT_USAGE
        try:
            catalog = load_catalog(config.catalog_path)
        except CatalogError as e:
            print(str(e), file=sys.stderr)
            return EXIT_USAGE

    if parsed.command == "tags":
        for tag in unique_tags(catalog):
            print(tag_label(tag))
        return EXIT_OK

    try:
        gateway = _gateway(config)
    except PersistenceError as e:
        print(str(e), file=sys.stderr)
        return EXIT_USAGE

    if parsed.command == "clear":
        try:
            return asyncio.run(_clear(gateway))
        except PersistenceError as e:
            print(str(e), file=sys.stderr)
            return EXIT_SAVE_FAILED

    if parsed.command == "list":
        try:
            tags = [parse_tag(t) for t in parsed.tag]
        except ValueError as e:
            print(str(e), file=sys.stderr)
            return EXIT_USAGE
        return asyncio.run(_list(gateway, catalog, tags))

    if parsed.command == "toggle":
        return asyncio.run(_toggle(gateway, catalog, parsed.ids))

    if parsed.command == "show":
        return asyncio.run(_show(gateway, catalog, parsed.json))

    parser.print_help()
    return EXIT_USAGE


def main() -> None:
    sys.exit(cli())
