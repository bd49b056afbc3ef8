"""
Operator command line for the inventory engine.

Usage:
    inventory [--config FILE] [--db-url URL] <command> [options]

Commands:
    init-db                          create the tables
    add-location NAME --actor-id     register a warehouse, vehicle or depot
    add-project NAME [--number]      add a project to the local directory
    receive SKU LOCATION QTY --actor-id  book goods in
    import-bookings FILE --actor-id  book every row of a CSV file
    import-stock FILE LOCATION --actor-id
                                     receive SKU/quantity rows into a location
    import-products FILE --actor-id  create/update products from a CSV file
    export FILE [--from --to --search --include-reversed]
    browse LOCATION                  stock on hand at a location
    low-stock [--location NAME]      pairs below their minimum stock
    template FILE                    write the booking import template
    verify                           compare balances with the journal

Exit code 0 on success, 1 on any error.
"""

from __future__ import annotations

import argparse
import dataclasses
import sys
from datetime import date
from pathlib import Path
from typing import Sequence
from uuid import UUID

from inventory_config import ConfigError, get_active_config
from inventory_ingestion.domain.parsing import parse_decimal
from inventory_ingestion.services.templates import write_booking_template
from inventory_kernel.db.engine import create_tables
from inventory_kernel.domain.dtos import DateRange, TransactionFilter
from inventory_kernel.exceptions import InventoryKernelError
from inventory_kernel.models.catalog import LocationType
from inventory_reporting.export import format_decimal
from inventory_services.inventory_engine import InventoryEngine


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="inventory",
        description="Inventory stock ledger and booking engine.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("--config", type=Path, default=None, help="Settings YAML overlay.")
    parser.add_argument("--db-url", default=None, help="Override database_url from settings.")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("init-db", help="Create all tables.")

    p = sub.add_parser("add-location", help="Register a location.")
    p.add_argument("name")
    p.add_argument("--type", dest="location_type", default=LocationType.WAREHOUSE.value,
                   choices=[t.value for t in LocationType])
    p.add_argument("--license-plate", default=None)
    p.add_argument("--actor-id", required=True, type=UUID)

    p = sub.add_parser("add-project", help="Add a project to the local directory.")
    p.add_argument("name")
    p.add_argument("--number", default=None)

    p = sub.add_parser("receive", help="Book goods in at a location.")
    p.add_argument("sku")
    p.add_argument("location")
    p.add_argument("quantity", help="Locale number, e.g. 2,5 with the default separator.")
    p.add_argument("--actor-id", required=True, type=UUID)
    p.add_argument("--notes", default=None)

    for name in ("import-bookings", "import-products"):
        p = sub.add_parser(name)
        p.add_argument("file", type=Path)
        p.add_argument("--actor-id", required=True, type=UUID, help="User UUID recorded on each row.")

    p = sub.add_parser("import-stock", help="Receive a CSV of SKU/quantity rows into one location.")
    p.add_argument("file", type=Path)
    p.add_argument("location")
    p.add_argument("--actor-id", required=True, type=UUID, help="User UUID recorded on each row.")

    p = sub.add_parser("export", help="Export journal rows as CSV.")
    p.add_argument("file", type=Path)
    p.add_argument("--from", dest="start", type=date.fromisoformat, default=None, help="YYYY-MM-DD")
    p.add_argument("--to", dest="end", type=date.fromisoformat, default=None, help="YYYY-MM-DD")
    p.add_argument("--search", default=None)
    p.add_argument("--include-reversed", action="store_true")

    p = sub.add_parser("browse", help="Stock on hand at a location.")
    p.add_argument("location")

    p = sub.add_parser("low-stock", help="Pairs below minimum stock.")
    p.add_argument("--location", default=None)

    p = sub.add_parser("template", help="Write the booking import template.")
    p.add_argument("file", type=Path)

    sub.add_parser("verify", help="Compare materialized balances with the journal.")
    return parser.parse_args(argv)


def _print_report(report) -> None:
    print(report.summary())


def _run(args: argparse.Namespace) -> int:
    if args.command == "template":
        settings = get_active_config(args.config)
        with args.file.open("w", encoding="utf-8-sig", newline="") as f:
            write_booking_template(f, settings.csv_separator)
        print(f"Template written to {args.file}")
        return 0

    settings = get_active_config(args.config)
    if args.db_url:
        settings = dataclasses.replace(settings, database_url=args.db_url)
    engine = InventoryEngine.from_settings(settings)

    if args.command == "init-db":
        create_tables()
        print("Tables created.")
        return 0

    if args.command == "add-location":
        location = engine.register_location(
            args.name,
            args.actor_id,
            location_type=args.location_type,
            license_plate=args.license_plate,
        )
        print(f"Location {location.name} registered ({location.id})")
        return 0

    if args.command == "add-project":
        project = engine.register_project(args.name, args.number)
        print(f"Project {project.display_name} registered ({project.id})")
        return 0

    if args.command == "receive":
        quantity = parse_decimal(args.quantity, settings.decimal_separator)
        product = engine.find_product(args.sku)
        location = engine.find_location(args.location)
        engine.receive(product.id, location.id, quantity, args.actor_id, notes=args.notes)
        balance = engine.balance(product.id, location.id)
        print(
            f"{product.sku} @ {location.name}: "
            f"{format_decimal(balance, settings.decimal_separator)} {product.unit}"
        )
        return 0

    if args.command == "import-bookings":
        report = engine.import_bookings(args.file, args.actor_id)
        _print_report(report)
        return 0

    if args.command == "import-stock":
        location = engine.find_location(args.location)
        report = engine.import_stock(args.file, location.id, args.actor_id)
        _print_report(report)
        return 0

    if args.command == "import-products":
        report = engine.import_products(args.file, args.actor_id)
        _print_report(report)
        return 0

    if args.command == "export":
        criteria = TransactionFilter(
            date_range=DateRange(args.start, args.end) if (args.start or args.end) else None,
            search_text=args.search,
            include_reversed=args.include_reversed,
        )
        with args.file.open("w", encoding="utf-8", newline="") as f:
            count = engine.export_transactions(f, criteria)
        print(f"Exported {count} rows to {args.file}")
        return 0

    if args.command == "browse":
        location = engine.find_location(args.location)
        rows = engine.browse_stock(location.id)
        if not rows:
            print(f"No stock at {location.name}")
        for row in rows:
            print(f"{row.sku:<16} {row.name:<40} {format_decimal(row.quantity, settings.decimal_separator):>12} {row.unit}")
        return 0

    if args.command == "low-stock":
        location_id = engine.find_location(args.location).id if args.location else None
        alerts = engine.low_stock(location_id)
        for alert in alerts:
            print(
                f"{alert.location_name}: {alert.sku} {alert.product_name} "
                f"{format_decimal(alert.quantity, settings.decimal_separator)}"
                f" < {format_decimal(alert.minimum_stock, settings.decimal_separator)} {alert.unit}"
            )
        if not alerts:
            print("No low stock.")
        return 0

    if args.command == "verify":
        discrepancies = engine.verify_balances()
        for d in discrepancies:
            print(
                f"{d.product_id} @ {d.location_id}: balance {d.materialized}, journal {d.journal}"
            )
        if discrepancies:
            return 1
        print("Balances match the journal.")
        return 0

    raise AssertionError(f"unhandled command {args.command!r}")


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)
    try:
        return _run(args)
    except (InventoryKernelError, ConfigError, ValueError, OSError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
