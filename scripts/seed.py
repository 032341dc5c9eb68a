"""
Seed Script

Populates the database with demo data for development. Creates a scan
group with two views, users from two companies and their ownerships, then
logs the resulting visibility projection.

Usage:
    python -m scripts.seed
"""

import asyncio
import logging
from datetime import datetime, timedelta, timezone

from console_core.config import configure_logging, get_settings
from console_core.db.store import Store
from console_core.exceptions import ConflictError
from console_core.models.group import Group
from console_core.models.ownership import Ownership
from console_core.models.user import UserField, new_user
from console_core.models.view import View
from console_core.services.user_repository import UserRepository
from console_core.services.view_repository import ViewRepository
from console_core.services.visibility import project_views

logger = logging.getLogger(__name__)

settings = get_settings()


async def seed(store: Store):
    """Create demo data."""
    users = UserRepository(store)

    # ── Users ─────────────────────────────────────────
    admin = new_user("admin@northwind.example", "Northwind", "IT Security", "Bella", "Torres")
    admin.admin = True
    analyst = new_user("carlos@northwind.example", "Northwind", "SOC", "Carlos", "Rivera")
    contractor = new_user("dana@contoso.example", "Contoso", "", "Dana", "Kim")

    created = []
    for user in (admin, analyst, contractor):
        try:
            created.append(await users.create(user))
        except ConflictError:
            logger.info(f"Skipping existing user {user.email}")
            existing = await users.get_by_email(user.email)
            if existing is not None:
                created.append(existing)

    # Contractor has not logged in for a while
    contractor = created[-1]
    contractor.last_login = datetime.now(timezone.utc) - timedelta(days=240)
    await users.save(contractor, [UserField.LAST_LOGIN])

    # ── Group, views and ownerships ───────────────────
    async with store.session() as session:
        group = Group(name="Headquarters")
        session.add(group)
        await session.flush()

        web = View(group_id=group.id, name="Web Servers", filters={"port": [80, 443]}, created_by=admin.email)
        ot = View(group_id=group.id, name="OT Segment", filters={"address": ["10.20.0.0/16"]}, created_by=analyst.email)
        session.add_all([web, ot])
        await session.flush()

        session.add_all([
            Ownership(user_id=created[0].id, view_id=web.id),
            Ownership(user_id=created[2].id, view_id=web.id),
            Ownership(user_id=created[1].id, view_id=ot.id),
        ])

    projection = project_views(
        await ViewRepository(store).get_views(),
        inactive_after=timedelta(days=settings.inactive_after_days),
    )
    for group_projection in projection.groups:
        for view_projection in group_projection.views:
            sizes = {company: len(entries) for company, entries in view_projection.companies.items()}
            logger.info(f"{group_projection.name} / {view_projection.name}: {sizes}")
    if projection.inactive_users:
        logger.warning(f"Users with access but inactive: {', '.join(projection.inactive_users)}")


async def main():
    configure_logging()
    store = Store.from_settings(settings)
    store.open()
    try:
        await store.create_all()
        await seed(store)
    finally:
        await store.close()


if __name__ == "__main__":
    asyncio.run(main())
