"""Command line entry point for the order-entry server and catalog tools.

Usage:
    order-entry serve --port 3000
    order-entry inspect catalogo.xlsx
    order-entry inspect catalogo.xlsx --search tornillo
    order-entry status
"""

import argparse
import asyncio
import sys
from pathlib import Path

from order_entry.config.settings import get_settings
from order_entry.ingest.catalog_builder import CatalogBuilder
from order_entry.ingest.column_resolver import COLUMN_PROFILES, resolve_columns
from order_entry.ingest.spreadsheet import read_rows
from order_entry.services.catalog_index import CatalogIndex
from order_entry.services.catalog_source import HybridCatalogSource
from order_entry.services.order_desk import OrderDesk
from order_entry.utils.errors import OrderEntryError
from order_entry.utils.logger import configure_logging


def serve(host: str, port: int, reload: bool) -> None:
    """Run the catalog server with uvicorn."""
    import uvicorn

    uvicorn.run("order_entry.api.main:app", host=host, port=port, reload=reload)


def inspect_catalog(path: Path, profile: str, search: str | None) -> int:
    """Print the columns matched in a catalog file and the product count."""
    rows = read_rows(path.read_bytes(), path.name)
    if not rows:
        print(f"⚠️  {path.name}: no data rows")
        return 1

    columns = COLUMN_PROFILES[profile]
    resolved = resolve_columns(list(rows[0].keys()), columns)
    products = CatalogBuilder(columns).build(rows)

    print(f"📄 {path.name} ({profile} profile)")
    for field_name, header in resolved.items():
        print(f"   {field_name:<18} ← {header if header is not None else '(not found)'}")
    print(f"✅ {len(products)} products from {len(rows)} rows")

    if search:
        index = CatalogIndex(search_limit=get_settings().search_limit)
        index.replace(products, filename=path.name)
        for product in index.search(search):
            print(f"   {product.code:<15} {product.name}  PDV {product.pos_unit}")
    return 0


async def show_status() -> int:
    """Probe the configured catalog source and print its status."""
    desk = OrderDesk.from_settings()
    source = desk.source
    try:
        if isinstance(source, HybridCatalogSource):
            catalog = await source.detect()
            print(f"🔌 Source: {'remote' if source.using_remote else 'local (remote unavailable)'}")
        else:
            catalog = await source.status()
            print("🔌 Source: local")
        print(f"   Loaded:   {catalog.loaded}")
        print(f"   Products: {catalog.product_count}")
        if catalog.filename:
            print(f"   File:     {catalog.filename}")
    finally:
        desk.close()
        if isinstance(source, HybridCatalogSource):
            await source.aclose()
    return 0


def main(argv: list[str] | None = None) -> int:
    settings = get_settings()

    parser = argparse.ArgumentParser(
        prog="order-entry",
        description="Order-entry catalog server and tools",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve_parser = subparsers.add_parser("serve", help="Run the catalog server")
    serve_parser.add_argument("--host", default=settings.host, help="Bind address")
    serve_parser.add_argument("--port", type=int, default=settings.port, help="Bind port")
    serve_parser.add_argument("--reload", action="store_true", help="Reload on code changes")

    inspect_parser = subparsers.add_parser(
        "inspect", help="Show how a catalog spreadsheet would be read"
    )
    inspect_parser.add_argument("file", type=Path, help="Catalog file (.xlsx, .xls or .csv)")
    inspect_parser.add_argument(
        "--profile",
        choices=sorted(COLUMN_PROFILES),
        default=settings.catalog_profile,
        help=f"Candidate header table (default: {settings.catalog_profile})",
    )
    inspect_parser.add_argument("--search", help="Also run a search against the catalog")

    subparsers.add_parser("status", help="Show the status of the configured catalog")

    args = parser.parse_args(argv)
    configure_logging()

    if args.command == "serve":
        serve(args.host, args.port, args.reload)
        return 0

    try:
        if args.command == "inspect":
            return inspect_catalog(args.file, args.profile, args.search)
        return asyncio.run(show_status())
    except (OrderEntryError, OSError) as e:
        print(f"❌ {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
