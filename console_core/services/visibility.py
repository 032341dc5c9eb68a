"""
Visibility Projector

Turns views with their group and owning users into the grouped structure
shown on the views page: views per group, users with access per company,
and per-user flags for styling.

Pure projection without I/O. Relations must be loaded beforehand, e.g. by
ViewRepository.get_views(). Calling it twice with the same ``now`` yields
equal results.
"""

from collections.abc import Iterable
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

# Roughly six months
INACTIVE_AFTER = timedelta(days=183)

UNNAMED_GROUP = "(unnamed group)"
NO_COMPANY = "(no company)"


class EntryStyle(str, Enum):
    """Visual emphasis of a user entry, highest precedence first."""
    INACTIVE = "inactive"
    ADMIN = "admin"
    OWNER = "owner"
    MEMBER = "member"


class UserEntry(BaseModel):
    """A user with access to a view."""
    user_id: int | None
    email: str
    display_name: str
    company: str
    department: str = ""

    is_inactive: bool = False
    is_admin: bool = False
    is_owner: bool = False
    style: EntryStyle = EntryStyle.MEMBER


class ViewProjection(BaseModel):
    """A view and its users bucketed by company, in query order."""
    view_id: int | None
    name: str
    filters: dict[str, Any] = Field(default_factory=dict)
    companies: dict[str, list[UserEntry]] = Field(default_factory=dict)


class GroupProjection(BaseModel):
    group_id: int | None
    name: str
    views: list[ViewProjection] = Field(default_factory=list)


class VisibilityProjection(BaseModel):
    """Complete projection plus the consolidated inactivity warning."""
    groups: list[GroupProjection] = Field(default_factory=list)
    inactive_users: list[str] = Field(default_factory=list)


def display_name(user: Any) -> str:
    """Full name of a user, falling back to the e-mail address."""
    full = " ".join(part for part in (user.name, user.surname) if part)
    return full or user.email or ""


def is_inactive(last_login: datetime | None, now: datetime, inactive_after: timedelta = INACTIVE_AFTER) -> bool:
    """True if the user did not log in within ``inactive_after``. Naive timestamps are UTC."""
    if last_login is None:
        return True
    if last_login.tzinfo is None:
        last_login = last_login.replace(tzinfo=timezone.utc)
    return now - last_login >= inactive_after


def entry_style(inactive: bool, admin: bool, owner: bool) -> EntryStyle:
    if inactive:
        return EntryStyle.INACTIVE
    if admin:
        return EntryStyle.ADMIN
    if owner:
        return EntryStyle.OWNER
    return EntryStyle.MEMBER


def _user_entry(view: Any, user: Any, now: datetime, inactive_after: timedelta) -> UserEntry:
    inactive = is_inactive(user.last_login, now, inactive_after)
    admin = bool(user.admin)
    creator = (getattr(view, "created_by", None) or "").lower()
    owner = bool(creator) and creator == (user.email or "").lower()
    return UserEntry(
        user_id=user.id,
        email=user.email or "",
        display_name=display_name(user),
        company=user.company or NO_COMPANY,
        department=user.department or "",
        is_inactive=inactive,
        is_admin=admin,
        is_owner=owner,
        style=entry_style(inactive, admin, owner),
    )


def project_view(
    view: Any,
    now: datetime,
    inactive_after: timedelta = INACTIVE_AFTER,
) -> ViewProjection:
    """Bucket the users owning a view by company, keeping query order."""
    companies: dict[str, list[UserEntry]] = {}
    for ownership in view.ownerships or []:
        user = ownership.user
        if user is None:
            continue
        entry = _user_entry(view, user, now, inactive_after)
        companies.setdefault(entry.company, []).append(entry)

    return ViewProjection(
        view_id=view.id,
        name=view.name or "",
        filters=dict(view.filters or {}),
        companies=companies,
    )


def project_views(
    views: Iterable[Any],
    *,
    now: datetime | None = None,
    inactive_after: timedelta = INACTIVE_AFTER,
) -> VisibilityProjection:
    """
    Group views by their owning group and annotate their users.

    Args:
        views: Views with ``group`` and ``ownerships[].user`` loaded
        now: Reference time for the inactivity check, defaults to now (UTC)
        inactive_after: Time without login after which a user is inactive

    Returns:
        VisibilityProjection with groups in first-seen order and the sorted
        display names of all inactive users with access
    """
    if now is None:
        now = datetime.now(timezone.utc)
    elif now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    groups: dict[int | None, GroupProjection] = {}
    inactive: dict[int | str, str] = {}

    for view in views:
        group = view.group
        group_id = group.id if group is not None else view.group_id
        if group_id not in groups:
            name = group.name if group is not None else None
            groups[group_id] = GroupProjection(group_id=group_id, name=name or UNNAMED_GROUP)

        projected = project_view(view, now, inactive_after)
        groups[group_id].views.append(projected)

        for entries in projected.companies.values():
            for entry in entries:
                if entry.is_inactive:
                    # Unsaved users have no id yet
                    key = entry.user_id if entry.user_id is not None else entry.email
                    inactive[key] = entry.display_name

    return VisibilityProjection(
        groups=list(groups.values()),
        inactive_users=sorted(inactive.values(), key=str.lower),
    )
