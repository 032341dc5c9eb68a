"""
User Model

Tenant-scoped account record. Supports password-based login and SSO
correlation; both are owned by the authentication collaborator, this model
only stores the fields.
"""

from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, Index, LargeBinary, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from console_core.models.base import Base, IdType, utcnow

if TYPE_CHECKING:
    from console_core.models.ownership import Ownership


class UserField(str, Enum):
    """
    Field mask for partial updates.

    Values are the mapped attribute names. The identity and the creation
    timestamp are immutable and therefore not selectable.
    """

    EMAIL = "email"
    PASSWORD_HASH = "password_hash"
    SSO_ID = "sso_id"
    COMPANY = "company"
    DEPARTMENT = "department"
    LAST_LOGIN = "last_login"
    LOGOUT_COUNT = "logout_count"
    ACTIVE = "active"
    ADMIN = "admin"
    NAME = "name"
    SURNAME = "surname"
    GENDER = "gender"
    CERTIFICATE = "certificate"
    DB_PASSWORD_HASH = "db_password_hash"


class User(Base):
    """
    User account record.

    Users sharing a ``company`` may see each other's e-mail addresses in
    shared contexts. Secret columns (password hash, SSO id, logout counter,
    database credential hash) are not part of any response schema.
    """

    __tablename__ = "users"

    # Primary key
    id: Mapped[int] = mapped_column(
        IdType,
        primary_key=True,
        autoincrement=True,
    )

    # Identity
    email: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Login and notification address, stored lower-case",
    )
    password_hash: Mapped[str | None] = mapped_column(
        "password",
        String(255),
        nullable=True,
        comment="Password hash for users not using SSO",
    )
    sso_id: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
        comment="Single sign-on ID, stored upper-case. Matches users to SSO requests",
    )

    # Grouping
    company: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Users of the same company can see each other",
    )
    department: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        default="",
    )

    # Lifecycle
    created: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
    last_login: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        comment="Last time an access token was requested",
    )
    logout_count: Mapped[int] = mapped_column(
        nullable=False,
        default=0,
        comment="Incremented on logout, invalidates previously issued tokens",
    )
    active: Mapped[bool] = mapped_column(Boolean, nullable=False)
    admin: Mapped[bool] = mapped_column(Boolean, nullable=False)

    # Personal
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    surname: Mapped[str] = mapped_column(String(255), nullable=False)
    gender: Mapped[str] = mapped_column(
        String(1),
        nullable=False,
        default="",
        comment="M/W/D or empty",
    )

    # Key material
    certificate: Mapped[bytes] = mapped_column(
        LargeBinary,
        nullable=False,
        default=b"",
        comment="User's public key for encrypted messages",
    )
    db_password_hash: Mapped[str] = mapped_column(
        "db_password",
        String(255),
        nullable=False,
        default="",
        comment="Hash of the generated database credential for view access",
    )

    # Relationships
    ownerships: Mapped[list["Ownership"]] = relationship(
        back_populates="user",
        order_by="Ownership.id",
        passive_deletes=True,
        lazy="raise",
    )

    __table_args__ = (
        UniqueConstraint("email", name="uq_users_email"),
        UniqueConstraint("sso_id", name="uq_users_sso_id"),
        Index("ix_users_admin", "admin"),
    )

    def __repr__(self) -> str:
        return f"<User {self.email} admin={self.admin}>"


def new_user(
    email: str,
    company: str,
    department: str,
    name: str,
    surname: str,
) -> User:
    """
    Construct a not yet persisted user with default status.

    Without an explicit company the e-mail address becomes the company, so a
    user never ends up in another tenant's group by accident.
    """
    if not company:
        company = email

    now = utcnow()
    return User(
        email=email,
        company=company,
        department=department,
        created=now,
        last_login=now,
        logout_count=0,
        active=True,
        admin=False,
        name=name,
        surname=surname,
        gender="",
        certificate=b"",
        db_password_hash="",
    )
