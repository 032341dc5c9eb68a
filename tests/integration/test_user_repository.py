"""
Integration Tests for the User Repository

Runs every repository operation against a real (in-memory SQLite by
default) database: create with sanitization and conflicts, partial updates,
deletion with ownership cascade, and the query operations.
"""

import logging
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from console_core.db.store import Store
from console_core.exceptions import ConflictError, InvalidEntityError, StorageError
from console_core.models.group import Group
from console_core.models.ownership import Ownership
from console_core.models.user import User, UserField
from console_core.services.user_repository import Expand, UserRepository
from tests.factories import make_ownership, make_user, make_view


# ---------------------------------------------------------------------------
# Create
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_create_assigns_id_and_sanitizes(users: UserRepository) -> None:
    user = await users.create(
        make_user(
            email="<b>User</b>@Example.COM",
            name="<script>alert(1)</script>Jane",
            surname="Doe",
            gender="Diverse",
            sso_id="abc-123",
        )
    )

    assert user.id
    stored = await users.get_by_id(user.id)
    assert stored.email == "user@example.com"
    assert stored.name == "Jane"
    assert stored.gender == "D"
    assert stored.sso_id == "ABC-123"


@pytest.mark.asyncio
async def test_create_duplicate_email_differing_in_case(users: UserRepository, test_user: User) -> None:
    with pytest.raises(ConflictError) as exc_info:
        await users.create(make_user(email="JANE.DOE@example.COM"))

    assert exc_info.value.field == "email"
    assert len(await users.get_all()) == 1


@pytest.mark.asyncio
async def test_create_duplicate_sso_id(users: UserRepository) -> None:
    await users.create(make_user(email="a@example.com", sso_id="sso-1"))

    with pytest.raises(ConflictError) as exc_info:
        await users.create(make_user(email="b@example.com", sso_id="SSO-1"))

    assert exc_info.value.field == "sso_id"


@pytest.mark.asyncio
async def test_create_without_sso_ids_allows_many(users: UserRepository) -> None:
    await users.create(make_user(email="a@example.com"))
    await users.create(make_user(email="b@example.com"))

    assert len(await users.get_all()) == 2


@pytest.mark.asyncio
async def test_create_without_company_groups_by_email(users: UserRepository) -> None:
    user = await users.create(make_user(email="solo@example.com", company=""))
    assert (await users.get_by_id(user.id)).company == "solo@example.com"


@pytest.mark.asyncio
@pytest.mark.parametrize("company", ["", None])
async def test_create_directly_built_user_without_company(users: UserRepository, company) -> None:
    user = User(
        email="Direct@Example.com",
        company=company,
        department="",
        active=True,
        admin=False,
        name="Direct",
        surname="User",
    )

    created = await users.create(user)

    assert (await users.get_by_id(created.id)).company == "direct@example.com"


@pytest.mark.asyncio
async def test_create_not_null_violation_is_storage_error(users: UserRepository) -> None:
    with pytest.raises(StorageError) as exc_info:
        await users.create(make_user(email="broken@example.com", certificate=None))

    assert not isinstance(exc_info.value, ConflictError)
    assert isinstance(exc_info.value.__cause__, IntegrityError)
    assert await users.get_all() == []


@pytest.mark.asyncio
async def test_create_log_carries_only_id(users: UserRepository, caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.INFO, logger="console_core.services.user_repository")

    user = await users.create(make_user(email="private@example.com", company=""))

    assert f"User {user.id} created" in caplog.messages
    assert "private@example.com" not in caplog.text


@pytest.mark.asyncio
async def test_create_on_closed_store_fails() -> None:
    repo = UserRepository(Store("sqlite+aiosqlite://"))
    with pytest.raises(RuntimeError):
        await repo.create(make_user())


# ---------------------------------------------------------------------------
# Save (partial update)
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_save_writes_false_and_leaves_other_columns(users: UserRepository, test_user: User) -> None:
    test_user.active = False
    test_user.name = "Changed"
    test_user.department = ""

    affected = await users.save(test_user, [UserField.ACTIVE])

    assert affected == 1
    stored = await users.get_by_id(test_user.id)
    assert stored.active is False
    assert stored.name == "Jane"
    assert stored.department == "Security"


@pytest.mark.asyncio
async def test_save_writes_empty_string(users: UserRepository, test_user: User) -> None:
    test_user.department = ""

    assert await users.save(test_user, {UserField.DEPARTMENT}) == 1
    assert (await users.get_by_id(test_user.id)).department == ""


@pytest.mark.asyncio
async def test_save_multiple_fields(users: UserRepository, test_user: User) -> None:
    login = datetime.now(timezone.utc) + timedelta(minutes=5)
    test_user.last_login = login
    test_user.logout_count = test_user.logout_count + 1

    assert await users.save(test_user, [UserField.LAST_LOGIN, UserField.LOGOUT_COUNT]) == 1

    stored = await users.get_by_id(test_user.id)
    assert stored.logout_count == 1
    # SQLite hands back naive timestamps
    assert stored.last_login.replace(tzinfo=timezone.utc) == login


@pytest.mark.asyncio
async def test_save_sanitizes_selected_fields(users: UserRepository, test_user: User) -> None:
    test_user.surname = "<img src=x onerror=alert(1)>Smith"
    test_user.email = "NEW@Example.com"

    assert await users.save(test_user, [UserField.SURNAME, UserField.EMAIL]) == 1

    stored = await users.get_by_id(test_user.id)
    assert stored.surname == "Smith"
    assert stored.email == "new@example.com"


@pytest.mark.asyncio
async def test_save_empty_field_list_is_noop(users: UserRepository, test_user: User) -> None:
    test_user.active = False

    assert await users.save(test_user, []) == 0
    assert (await users.get_by_id(test_user.id)).active is True


@pytest.mark.asyncio
async def test_save_empty_field_list_on_unpersisted_user_is_noop(users: UserRepository) -> None:
    assert await users.save(make_user(), []) == 0


@pytest.mark.asyncio
@pytest.mark.parametrize("user_id", [None, 0])
async def test_save_unpersisted_user_rejected(users: UserRepository, user_id) -> None:
    user = make_user()
    user.id = user_id

    with pytest.raises(InvalidEntityError):
        await users.save(user, [UserField.ACTIVE])


@pytest.mark.asyncio
async def test_save_empty_company_rejected(users: UserRepository, test_user: User) -> None:
    test_user.company = ""

    with pytest.raises(InvalidEntityError):
        await users.save(test_user, [UserField.COMPANY])

    assert (await users.get_by_id(test_user.id)).company == "Example Corp"


@pytest.mark.asyncio
async def test_save_empty_company_allowed_when_not_selected(users: UserRepository, test_user: User) -> None:
    test_user.company = ""
    test_user.active = False

    assert await users.save(test_user, [UserField.ACTIVE]) == 1
    assert (await users.get_by_id(test_user.id)).company == "Example Corp"


@pytest.mark.asyncio
async def test_save_sso_id_repeatedly_is_stable(users: UserRepository, test_user: User) -> None:
    test_user.sso_id = "abc\xa0123"

    await users.save(test_user, [UserField.SSO_ID])
    await users.save(test_user, [UserField.SSO_ID])

    assert (await users.get_by_id(test_user.id)).sso_id == "ABC 123"


@pytest.mark.asyncio
async def test_save_unknown_field_rejected(users: UserRepository, test_user: User) -> None:
    with pytest.raises(ValueError):
        await users.save(test_user, ["activ"])


@pytest.mark.asyncio
async def test_save_deleted_user_affects_no_rows(users: UserRepository, test_user: User) -> None:
    await users.delete(test_user)
    test_user.admin = True

    assert await users.save(test_user, [UserField.ADMIN]) == 0


@pytest.mark.asyncio
async def test_save_conflicting_email_is_storage_error(users: UserRepository, test_user: User) -> None:
    other = await users.create(make_user(email="other@example.com"))
    other.email = test_user.email

    with pytest.raises(StorageError):
        await users.save(other, [UserField.EMAIL])


@pytest.mark.asyncio
async def test_attribute_changes_are_not_written_implicitly(users: UserRepository, test_user: User) -> None:
    test_user.admin = True
    await users.save(test_user, [UserField.NAME])

    assert (await users.get_by_id(test_user.id)).admin is False


# ---------------------------------------------------------------------------
# Delete
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_delete_removes_user(users: UserRepository, test_user: User) -> None:
    await users.delete(test_user)

    assert await users.get_by_id(test_user.id) is None


@pytest.mark.asyncio
async def test_delete_twice_is_not_an_error(users: UserRepository, test_user: User) -> None:
    await users.delete(test_user)
    await users.delete(test_user)


@pytest.mark.asyncio
async def test_delete_cascades_ownerships(
    store: Store, users: UserRepository, test_user: User, test_group: Group,
) -> None:
    async with store.session() as session:
        view = make_view(test_group.id)
        session.add(view)
        await session.flush()
        session.add(make_ownership(test_user.id, view.id))

    await users.delete(test_user)

    async with store.session() as session:
        remaining = await session.scalar(select(func.count()).select_from(Ownership))
    assert remaining == 0


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_get_all_empty(users: UserRepository) -> None:
    result = await users.get_all()
    assert result == []


@pytest.mark.asyncio
async def test_get_administrators_empty(users: UserRepository, test_user: User) -> None:
    result = await users.get_administrators()
    assert result == []


@pytest.mark.asyncio
async def test_get_all_ordered_by_id(users: UserRepository) -> None:
    first = await users.create(make_user(email="b@example.com"))
    second = await users.create(make_user(email="a@example.com"))

    assert [u.id for u in await users.get_all()] == [first.id, second.id]


@pytest.mark.asyncio
async def test_get_administrators(users: UserRepository, test_user: User) -> None:
    admin = await users.create(make_user(email="admin@example.com", admin=True))

    result = await users.get_administrators()

    assert [u.id for u in result] == [admin.id]


@pytest.mark.asyncio
async def test_get_by_id_not_found(users: UserRepository) -> None:
    assert await users.get_by_id(12345) is None


@pytest.mark.asyncio
async def test_get_by_id_loads_ownerships_and_groups(
    store: Store, users: UserRepository, test_user: User, test_group: Group,
) -> None:
    async with store.session() as session:
        view = make_view(test_group.id, name="Web Servers")
        session.add(view)
        await session.flush()
        session.add(make_ownership(test_user.id, view.id))

    user = await users.get_by_id(test_user.id)

    assert len(user.ownerships) == 1
    assert user.ownerships[0].view.name == "Web Servers"
    assert user.ownerships[0].view.group.name == "Production Network"


@pytest.mark.asyncio
async def test_get_by_id_without_expand(users: UserRepository, test_user: User) -> None:
    user = await users.get_by_id(test_user.id, expand=set())

    assert user.email == "jane.doe@example.com"
    assert "ownerships" not in user.__dict__


@pytest.mark.asyncio
async def test_get_by_id_ownerships_only(
    store: Store, users: UserRepository, test_user: User, test_group: Group,
) -> None:
    async with store.session() as session:
        view = make_view(test_group.id)
        session.add(view)
        await session.flush()
        session.add(make_ownership(test_user.id, view.id))

    user = await users.get_by_id(test_user.id, expand={Expand.OWNERSHIPS})

    assert [o.user_id for o in user.ownerships] == [test_user.id]
    assert "view" not in user.ownerships[0].__dict__


@pytest.mark.asyncio
async def test_get_by_email_normalizes_input(users: UserRepository, test_user: User) -> None:
    user = await users.get_by_email("JANE.DOE@EXAMPLE.COM")

    assert user is not None
    assert user.id == test_user.id


@pytest.mark.asyncio
async def test_get_by_email_not_found(users: UserRepository, test_user: User) -> None:
    assert await users.get_by_email("nobody@example.com") is None


@pytest.mark.asyncio
async def test_get_by_sso_id_normalizes_input(users: UserRepository) -> None:
    created = await users.create(make_user(email="sso@example.com", sso_id="ABC-123"))

    user = await users.get_by_sso_id("abc-123")

    assert user is not None
    assert user.id == created.id
