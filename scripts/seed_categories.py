"""Seed the global (owner-less) category pool shared by all users."""

import argparse
import asyncio
from pathlib import Path
import sys
from typing import List

from sqlalchemy import select

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.append(str(ROOT_DIR))

from app.core.database import AsyncSessionLocal, init_db  # noqa: E402
from app.domain.categories.models import Category  # noqa: E402
from app.domain.users.models import User  # noqa: F401,E402
from app.domain.transactions.models import Transaction  # noqa: F401,E402

GLOBAL_CATEGORIES: List[dict] = [
    {"name": "Salary", "type": "income"},
    {"name": "Freelance", "type": "income"},
    {"name": "Groceries", "type": "expense"},
    {"name": "Rent", "type": "expense"},
    {"name": "Utilities", "type": "expense"},
]


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Seed global categories visible to every user")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Only print the categories that would be created",
    )
    return parser.parse_args()


async def seed_global_categories(session_factory=AsyncSessionLocal, dry_run: bool = False) -> list[str]:
    """Create missing global categories; return their "type:name" keys."""
    created: list[str] = []
    async with session_factory() as session:
        existing = await session.execute(
            select(Category.type, Category.name).where(Category.user_id.is_(None))
        )
        existing_keys = {(row.type, row.name) for row in existing.all()}

        for category in GLOBAL_CATEGORIES:
            # NULL owners are not covered by the unique constraint; check here.
            if (category["type"], category["name"]) in existing_keys:
                continue
            created.append(f"{category['type']}:{category['name']}")
            if not dry_run:
                session.add(Category(user_id=None, is_default=False, is_active=True, **category))

        if not dry_run:
            await session.commit()
    return created


async def main(dry_run: bool) -> list[str]:
    await init_db()
    return await seed_global_categories(dry_run=dry_run)


if __name__ == "__main__":
    args = parse_args()
    names = asyncio.run(main(args.dry_run))
    print("Created: " + (", ".join(names) if names else "nothing"))
