"""Entry point: python -m purge

Inspects the foreign-key dependency graph and runs cascading purges against
the configured database (TABLE_PURGE_DATABASE_URL).

Usage:
    python -m purge graph                              # dependents-first table order
    python -m purge plan customers --filter "id = 1"   # what a purge would delete
    python -m purge run customers --filter "id = 1"    # purge (asks for confirmation)
    python -m purge run customers --yes --soft-delete
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

# Ensure the project root is importable
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from purge.errors import PurgeError, RowSourceNotFound
from src.cleanup import build_purge_engine
from src.config import settings
from src.database import close_db, init_db


async def show_graph() -> int:
    engine = build_purge_engine()
    print("Top-level tables:")
    for node in engine.graph.root.dependents:
        print(f"  {node.name}")
    print("\nTraversal order (dependents first):")
    for idx, name in enumerate(engine.graph.traversal_order(), 1):
        print(f"  {idx:>3}. {name}")
    return 0


async def show_plan(table_name: str, filter_expression: str) -> int:
    await init_db()
    engine = build_purge_engine()
    order = engine.plan(table_name)

    print(f"Purge plan for {table_name} (filter: {filter_expression or '<none>'})")
    for idx, name in enumerate(order):
        is_target = idx == len(order) - 1
        try:
            count = await engine.count_rows(name, filter_expression if is_target else "")
            rows = f"{count} row(s)"
        except RowSourceNotFound:
            rows = "no row source, skipped"
        marker = "filtered" if is_target and filter_expression else "all rows"
        print(f"  {idx + 1:>3}. {name:<30} {marker:<9} {rows}")
    return 0


async def run_purge(table_name: str, filter_expression: str, assume_yes: bool) -> int:
    await init_db()
    engine = build_purge_engine()

    if not assume_yes:
        order = engine.plan(table_name)
        print(f"This will delete rows from: {', '.join(order)}")
        confirm = input("Type 'yes' to confirm: ")
        if confirm.strip().lower() != "yes":
            print("Aborted.")
            return 1

    result = await engine.purge(table_name, filter_expression)
    for name, count in result.deleted.items():
        print(f"  {name}: removed {count} row(s)")
    if result.succeeded:
        print(f"Done. {result.total_deleted} row(s) deleted.")
        return 0
    print(f"Purge rolled back: {result.error}")
    return 2


async def main(args: argparse.Namespace) -> int:
    if args.schema_map:
        settings.schema_map_path = args.schema_map
    if getattr(args, "soft_delete", False):
        settings.soft_delete = True
    if getattr(args, "any_table", False):
        settings.purge_any_table = True

    try:
        if args.command == "graph":
            return await show_graph()
        if args.command == "plan":
            return await show_plan(args.table, args.filter)
        return await run_purge(args.table, args.filter, args.yes)
    except PurgeError as e:
        print(f"Error: {e}")
        return 2
    finally:
        await close_db()


def cli():
    parser = argparse.ArgumentParser(
        description="Foreign-key aware cascading purge"
    )
    parser.add_argument(
        "--schema-map",
        default="",
        help="YAML schema map to build the graph from instead of the ORM metadata",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("graph", help="Print the dependency graph traversal order")

    plan = sub.add_parser("plan", help="Show the tables and row counts a purge would touch")
    plan.add_argument("table")
    plan.add_argument("--filter", default="", help="SQL predicate for the target table")
    plan.add_argument(
        "--any-table",
        action="store_true",
        help="Allow entry points that are referenced by other tables",
    )

    run = sub.add_parser("run", help="Purge rows and all dependent rows in one transaction")
    run.add_argument("table")
    run.add_argument("--filter", default="", help="SQL predicate for the target table")
    run.add_argument("--soft-delete", action="store_true", help="Use the async save path")
    run.add_argument(
        "--any-table",
        action="store_true",
        help="Allow entry points that are referenced by other tables",
    )
    run.add_argument("--yes", action="store_true", help="Skip the confirmation prompt")

    args = parser.parse_args()
    logging.basicConfig(level=logging.INFO)
    sys.exit(asyncio.run(main(args)))


if __name__ == "__main__":
    cli()
