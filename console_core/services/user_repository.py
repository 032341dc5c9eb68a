"""
User Repository

The only mutation and query surface for users. Every request runs in its own
short-lived session, so returned users are detached: changing their
attributes never writes anything until ``save`` is called with the changed
fields.
"""

import logging
from collections.abc import Collection
from enum import Enum

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import selectinload

from console_core.db.store import Store
from console_core.exceptions import ConflictError, InvalidEntityError, StorageError
from console_core.models.ownership import Ownership
from console_core.models.user import User, UserField
from console_core.models.view import View
from console_core.services.sanitize import sanitize_user

logger = logging.getLogger(__name__)


class Expand(str, Enum):
    """Relations that can be loaded together with a single user."""

    OWNERSHIPS = "ownerships"
    OWNERSHIP_GROUPS = "ownerships.group"


DEFAULT_EXPAND = frozenset({Expand.OWNERSHIPS, Expand.OWNERSHIP_GROUPS})

# Unique constraints that map to ConflictError, keyed by reported field
_UNIQUE_FIELDS = {
    "sso_id": ("uq_users_sso_id", "users.sso_id"),
    "email": ("uq_users_email", "users.email"),
}


def _conflicting_field(exc: IntegrityError) -> str | None:
    """Return the user field behind a unique violation, if it is one we know."""
    message = str(exc.orig if exc.orig is not None else exc)
    lowered = message.lower()
    if "unique" not in lowered and "duplicate" not in lowered:
        return None
    for field, markers in _UNIQUE_FIELDS.items():
        if any(marker in message for marker in markers):
            return field
    return None


def _expand_options(expand: Collection[Expand]) -> list:
    if Expand.OWNERSHIP_GROUPS in expand:
        return [
            selectinload(User.ownerships)
            .selectinload(Ownership.view)
            .selectinload(View.group)
        ]
    if Expand.OWNERSHIPS in expand:
        return [selectinload(User.ownerships)]
    return []


class UserRepository:
    """CRUD and query operations over users."""

    def __init__(self, store: Store):
        self.store = store

    async def create(self, user: User) -> User:
        """
        Persist a new user.

        Raises:
            ConflictError: e-mail or SSO id already exists
            StorageError: any other backend fault
        """
        sanitize_user(user)
        if not user.company:
            # Same rule as new_user(): never group a user by an empty company
            user.company = user.email
        try:
            async with self.store.session() as session:
                session.add(user)
                await session.flush()
                session.expunge(user)
        except IntegrityError as e:
            field = _conflicting_field(e)
            if field is not None:
                logger.info(f"User creation rejected, duplicate {field}")
                raise ConflictError(field) from e
            logger.error(f"UserRepository: Create user failed: {e}")
            raise StorageError(f"User creation failed: {e}") from e
        except SQLAlchemyError as e:
            logger.error(f"UserRepository: Create user failed: {e}")
            raise StorageError(f"User creation failed: {e}") from e

        logger.info(f"User {user.id} created")
        return user

    async def save(self, user: User, fields: Collection[UserField]) -> int:
        """
        Update the given fields of a user to their current in-memory values.

        Empty values (False, 0, "") are written like any other value. Only
        the selected fields are touched, so parallel writers working on other
        fields of the same row are not overwritten.

        Returns:
            Number of affected rows. 0 means the row no longer exists.

        Raises:
            InvalidEntityError: the user has not been persisted yet, or the
                company would be cleared
            StorageError: backend fault
        """
        if not fields:
            return 0

        if not user.id:
            raise InvalidEntityError("Cannot update a user without ID")

        selected = [UserField(field) for field in fields]
        if UserField.COMPANY in selected and not user.company:
            raise InvalidEntityError(f"Cannot clear the company of user {user.id}")

        sanitize_user(user)
        values = {getattr(User, field.value): getattr(user, field.value) for field in selected}

        stmt = (
            update(User)
            .where(User.id == user.id)
            .values(values)
            .execution_options(synchronize_session=False)
        )
        try:
            async with self.store.session() as session:
                result = await session.execute(stmt)
                affected = result.rowcount
        except SQLAlchemyError as e:
            logger.error(f"UserRepository: Save user {user.id} failed: {e}")
            raise StorageError(f"User update failed: {e}") from e

        if affected == 0:
            logger.warning(f"User {user.id} not updated, row no longer exists")
        else:
            logger.debug(f"User {user.id} updated: {', '.join(f.value for f in selected)}")
        return affected

    async def delete(self, user: User) -> None:
        """Remove a user. Ownerships are removed by the database cascade."""
        try:
            async with self.store.session() as session:
                await session.execute(
                    delete(User)
                    .where(User.id == user.id)
                    .execution_options(synchronize_session=False)
                )
        except SQLAlchemyError as e:
            logger.error(f"UserRepository: Delete user {user.id} failed: {e}")
            raise StorageError(f"User deletion failed: {e}") from e

        logger.info(f"User {user.id} deleted")

    async def get_all(self) -> list[User]:
        """Fetch all users. Never returns None."""
        return await self._find(select(User).order_by(User.id), "List users")

    async def get_administrators(self) -> list[User]:
        """Fetch all users with admin rights. Never returns None."""
        return await self._find(
            select(User).where(User.admin.is_(True)).order_by(User.id),
            "List administrators",
        )

    async def get_by_id(
        self,
        user_id: int,
        expand: Collection[Expand] = DEFAULT_EXPAND,
    ) -> User | None:
        """
        Fetch a single user by ID with the requested relations loaded.

        By default the user's ownerships and each ownership's group are
        loaded. Returns None if no user matches.
        """
        stmt = (
            select(User)
            .options(*_expand_options(expand))
            .where(User.id == user_id)
            .limit(1)
        )
        users = await self._find(stmt, "Get by id")
        return users[0] if users else None

    async def get_by_email(self, email: str) -> User | None:
        """Fetch a user by e-mail address, compared lower-case."""
        stmt = select(User).where(User.email == email.lower()).limit(1)
        users = await self._find(stmt, "Get by email")
        return users[0] if users else None

    async def get_by_sso_id(self, sso_id: str) -> User | None:
        """Fetch a user by SSO id, compared upper-case."""
        stmt = select(User).where(User.sso_id == sso_id.upper()).limit(1)
        users = await self._find(stmt, "Get by SSO id")
        return users[0] if users else None

    async def _find(self, stmt, action: str) -> list[User]:
        try:
            async with self.store.session() as session:
                result = await session.execute(stmt)
                return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error(f"UserRepository: {action} failed: {e}")
            raise StorageError(f"User lookup failed: {e}") from e
