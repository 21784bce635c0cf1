"""
layerconf CLI - inspect a layered configuration from the shell.

Usage:
    layerconf show --json appsettings.json --env-prefix APP_
    layerconf get Database:Host --yaml base.yaml --yaml prod.yaml
    layerconf section Logging --database-url sqlite+aiosqlite:///config.db

Sources are layered in a fixed order, later ones winning: JSON files, YAML
files, environment variables, database rows, remote rows.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import Any, Sequence

from layerconf.builder import ConfigurationBuilder
from layerconf.cli.ux import console, error, print_entries, render_value, warning
from layerconf.clients.http_store import HttpRowStore
from layerconf.config import get_settings
from layerconf.core.errors import main_with_error_handling
from layerconf.db.session import dispose_engine, init_engine
from layerconf.db.store import SqlAlchemyRowStore
from layerconf.logging import configure_logging
from layerconf.root import ConfigurationRoot


def _add_source_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--json",
        dest="json_files",
        action="append",
        default=[],
        metavar="PATH",
        help="JSON document (repeatable, later files win)",
    )
    parser.add_argument(
        "--yaml",
        dest="yaml_files",
        action="append",
        default=[],
        metavar="PATH",
        help="YAML document (repeatable, later files win)",
    )
    parser.add_argument(
        "--env-prefix",
        default=None,
        help="Include environment variables starting with this prefix ('' for all)",
    )
    parser.add_argument(
        "--database-url",
        default=None,
        help="SQLAlchemy async URL of a configuration_settings table",
    )
    parser.add_argument(
        "--remote-url",
        default=None,
        help="HTTP endpoint serving configuration rows (defaults to LAYERCONF_REMOTE_URL)",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="layerconf", description=__doc__.splitlines()[1])
    subparsers = parser.add_subparsers(dest="command", required=True)

    show_parser = subparsers.add_parser("show", help="Print every merged entry")
    show_parser.add_argument("--section", default="", help="Only entries below this path")
    show_parser.add_argument(
        "--format", choices=["table", "json"], default="table", help="Output format"
    )
    _add_source_arguments(show_parser)

    get_parser = subparsers.add_parser("get", help="Print the value of one key")
    get_parser.add_argument("key")
    _add_source_arguments(get_parser)

    section_parser = subparsers.add_parser("section", help="Print a section as JSON")
    section_parser.add_argument("path")
    _add_source_arguments(section_parser)

    return parser


async def _build_with_stores(
    builder: ConfigurationBuilder, database_url: str | None, remote_url: str | None
) -> ConfigurationRoot:
    settings = get_settings()
    try:
        if database_url:
            store = SqlAlchemyRowStore(
                init_engine(settings.model_copy(update={"database_url": database_url}))
            )
            await store.ensure_schema()
            builder.add_remote(store, name="database")
        if remote_url:
            builder.add_remote(
                HttpRowStore(
                    remote_url, token=settings.remote_token, timeout=settings.http_timeout
                ),
                name="remote",
            )
        return await builder.build_async()
    finally:
        await dispose_engine()


def build_configuration(
    *,
    json_files: Sequence[str] = (),
    yaml_files: Sequence[str] = (),
    env_prefix: str | None = None,
    database_url: str | None = None,
    remote_url: str | None = None,
) -> ConfigurationRoot:
    """Layer the requested sources into a ConfigurationRoot.

    The rows are read once; the returned root is a snapshot for one command.
    """
    builder = ConfigurationBuilder()
    for path in json_files:
        builder.add_json_file(path)
    for path in yaml_files:
        builder.add_yaml_file(path)
    if env_prefix is not None:
        builder.add_environment_variables(env_prefix)
    if database_url or remote_url:
        return asyncio.run(_build_with_stores(builder, database_url, remote_url))
    return builder.build()


def _print_json(value: Any) -> None:
    console.print_json(json.dumps(value))


def show_command(root: ConfigurationRoot, section: str = "", output_format: str = "table") -> int:
    entries = root.get_section(section).entries() if section else root.as_dict()
    if not entries:
        warning(f"No configuration entries under '{section}'" if section else "No entries")
    if output_format == "json":
        _print_json(entries)
    else:
        print_entries(f"Configuration: {section}" if section else "Configuration", entries)
    return 0


def get_command(root: ConfigurationRoot, key: str) -> int:
    found, value = root.lookup(key)
    if not found:
        error(f"Configuration key '{key}' not found")
        return 1
    console.print(render_value(value))
    return 0


def section_command(root: ConfigurationRoot, path: str) -> int:
    section = root.get_section(path)
    if not section.exists():
        error(f"Configuration section '{path}' not found")
        return 1
    _print_json(section.to_value())
    return 0


@main_with_error_handling()
def run(args: argparse.Namespace) -> int:
    root = build_configuration(
        json_files=args.json_files,
        yaml_files=args.yaml_files,
        env_prefix=args.env_prefix,
        database_url=args.database_url,
        remote_url=args.remote_url or get_settings().remote_url,
    )
    with root:
        if args.command == "show":
            return show_command(root, args.section, args.format)
        if args.command == "get":
            return get_command(root, args.key)
        return section_command(root, args.path)


def main(argv: Sequence[str] | None = None) -> None:
    configure_logging(logging.WARNING, json_output=False)
    parser = build_parser()
    args = parser.parse_args(argv)
    sys.exit(run(args))


if __name__ == "__main__":
    main()
