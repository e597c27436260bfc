"""
Load a legacy investors.json seed file into the investments store.

    python scripts/import_investors.py --file data/investors.json

Investors already present (same name, case-insensitive) receive the
imported allocations; everyone else is appended. Allocations without an
id get one.
"""

import argparse
import asyncio
import json
import logging
from pathlib import Path
from typing import List

from portfolio_dashboard.domain.models import Investor, new_allocation_id
from portfolio_dashboard.infrastructure.db.database import async_session_factory, close_db, init_db
from portfolio_dashboard.infrastructure.db.repositories.investments_repository import InvestmentsRepository

logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")
logger = logging.getLogger(__name__)

DEFAULT_FILE = "data/investors.json"


def read_seed_file(path: Path) -> List[Investor]:
    raw = json.loads(path.read_text(encoding="utf-8"))
    entries = raw.get("investors", []) if isinstance(raw, dict) else raw
    if not isinstance(entries, list):
        raise ValueError(f"{path} does not contain an investors list")
    investors = [Investor.from_document(entry) for entry in entries if isinstance(entry, dict)]
    return [investor for investor in investors if investor.name]


def merge_into(existing: List[Investor], imported: List[Investor]) -> int:
    """Merge ``imported`` into ``existing`` in place; returns allocations added."""
    added = 0
    by_name = {investor.name.lower(): investor for investor in existing}
    for investor in imported:
        for allocation in investor.allocations:
            if not allocation.id:
                allocation.id = new_allocation_id()
        target = by_name.get(investor.name.lower())
        if target is None:
            existing.append(investor)
            by_name[investor.name.lower()] = investor
        else:
            target.allocations.extend(investor.allocations)
        added += len(investor.allocations)
    return added


async def import_investors(path: Path, dry_run: bool = False) -> None:
    imported = read_seed_file(path)
    logger.info(f"Read {len(imported)} investors from {path}")

    await init_db()
    try:
        async with async_session_factory() as session:
            repository = InvestmentsRepository(session)
            document = await repository.load()
            added = merge_into(document.investors, imported)
            if dry_run:
                logger.info(f"Dry run: would add {added} allocations ({len(document.investors)} investors total)")
                await session.rollback()
                return
            await repository.save(document)
            logger.info(f"Imported {added} allocations ({len(document.investors)} investors total)")
    finally:
        await close_db()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Import investors from a JSON seed file")
    parser.add_argument("--file", type=str, default=DEFAULT_FILE, help="Path to investors.json")
    parser.add_argument("--dry-run", action="store_true", help="Report without writing")
    args = parser.parse_args()

    asyncio.run(import_investors(Path(args.file), dry_run=args.dry_run))
