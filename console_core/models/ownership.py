"""
Ownership Model

Join record granting a user access to a view. Rows are removed by the
database when either side is deleted.
"""

from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from console_core.models.base import Base, IdType

if TYPE_CHECKING:
    from console_core.models.user import User
    from console_core.models.view import View


class Ownership(Base):
    """User-to-view access grant."""

    __tablename__ = "ownerships"

    id: Mapped[int] = mapped_column(
        IdType,
        primary_key=True,
        autoincrement=True,
    )
    user_id: Mapped[int] = mapped_column(
        IdType,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    view_id: Mapped[int] = mapped_column(
        IdType,
        ForeignKey("views.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # Relationships
    user: Mapped["User"] = relationship(
        back_populates="ownerships",
        lazy="raise",
    )
    view: Mapped["View"] = relationship(
        back_populates="ownerships",
        lazy="raise",
    )

    __table_args__ = (
        UniqueConstraint("user_id", "view_id", name="uq_ownerships_user_view"),
    )

    def __repr__(self) -> str:
        return f"<Ownership user={self.user_id} view={self.view_id}>"
