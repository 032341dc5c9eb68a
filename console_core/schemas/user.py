"""
User Pydantic Schemas

External representation of users. Secret columns (password hash, SSO id,
logout counter, database credential hash) are deliberately not declared, so
they cannot appear in any serialized output.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class GroupResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str | None


class OwnershipResponse(BaseModel):
    """Access grant of a user, with the group of the granted view."""

    id: int
    user_id: int
    view_id: int
    view_name: str | None = None
    group: GroupResponse | None = None

    @classmethod
    def from_ownership(cls, ownership) -> "OwnershipResponse":
        view = ownership.__dict__.get("view")
        group = view.__dict__.get("group") if view is not None else None
        return cls(
            id=ownership.id,
            user_id=ownership.user_id,
            view_id=ownership.view_id,
            view_name=view.name if view is not None else None,
            group=GroupResponse.model_validate(group) if group is not None else None,
        )


class UserResponse(BaseModel):
    """Public user representation for listings."""

    model_config = ConfigDict(from_attributes=True, ser_json_bytes="base64")

    id: int
    email: str
    company: str
    department: str
    created: datetime
    last_login: datetime
    active: bool
    admin: bool
    name: str
    surname: str
    gender: str
    certificate: bytes


class UserDetailResponse(UserResponse):
    """Single user including the views the user has access to."""

    ownerships: list[OwnershipResponse] = []

    @classmethod
    def from_user(cls, user) -> "UserDetailResponse":
        """Build from a user loaded with ownerships (see UserRepository.get_by_id)."""
        base = UserResponse.model_validate(user)
        ownerships = user.__dict__.get("ownerships") or []
        return cls(
            **base.model_dump(),
            ownerships=[OwnershipResponse.from_ownership(o) for o in ownerships],
        )
