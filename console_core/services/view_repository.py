"""
View Repository

Loads views together with everything the visibility projection reads: the
owning group and each ownership's user.
"""

import logging
from collections.abc import Collection

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import selectinload

from console_core.db.store import Store
from console_core.exceptions import StorageError
from console_core.models.ownership import Ownership
from console_core.models.view import View

logger = logging.getLogger(__name__)


class ViewRepository:
    """Read access to views for visibility listings."""

    def __init__(self, store: Store):
        self.store = store

    async def get_views(self, group_ids: Collection[int] | None = None) -> list[View]:
        """
        Fetch views with group and owning users loaded.

        Args:
            group_ids: Restrict to views of these groups, all views if None

        Returns:
            Views ordered by group and view ID, possibly empty
        """
        stmt = (
            select(View)
            .options(
                selectinload(View.group),
                selectinload(View.ownerships).selectinload(Ownership.user),
            )
            .order_by(View.group_id, View.id)
        )
        if group_ids is not None:
            stmt = stmt.where(View.group_id.in_(list(group_ids)))

        try:
            async with self.store.session() as session:
                result = await session.execute(stmt)
                return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error(f"ViewRepository: List views failed: {e}")
            raise StorageError(f"View lookup failed: {e}") from e
