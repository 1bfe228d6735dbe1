"""Empty every table by purging each top-level table without a filter.

Usage:
    python scripts/reset_live_data.py            # purge everything
    python scripts/reset_live_data.py --dry-run  # print the order only
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

# Ensure project root is importable
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from src.cleanup import build_purge_engine
from src.database import close_db, init_db


async def main(dry_run: bool) -> int:
    await init_db()
    engine = build_purge_engine()
    exit_code = 0

    print("Resetting data...")
    for node in engine.graph.root.dependents:
        if dry_run:
            print(f"  {node.name}: would purge {', '.join(engine.plan(node.name))}")
            continue
        result = await engine.purge(node.name)
        if result.succeeded:
            print(f"  {node.name}: removed {result.total_deleted} row(s)")
        else:
            print(f"  {node.name}: rolled back ({result.error})")
            exit_code = 1

    await close_db()
    print("Done.")
    return exit_code


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Purge all rows, dependents first")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Only print what would be purged",
    )
    args = parser.parse_args()
    logging.basicConfig(level=logging.INFO)
    sys.exit(asyncio.run(main(dry_run=args.dry_run)))
