"""
View Model

Shared, named resource scoped to a scan target set. Users get access to a
view through Ownership records.
"""

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from console_core.models.base import Base, IdType, JSONType, utcnow

if TYPE_CHECKING:
    from console_core.models.group import Group
    from console_core.models.ownership import Ownership


class View(Base):
    """View record, modelled to the extent ownership and visibility need."""

    __tablename__ = "views"

    id: Mapped[int] = mapped_column(
        IdType,
        primary_key=True,
        autoincrement=True,
    )
    group_id: Mapped[int] = mapped_column(
        IdType,
        ForeignKey("scope_groups.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    filters: Mapped[dict] = mapped_column(
        JSONType,
        nullable=False,
        default=dict,
        comment="Filter criteria restricting the visible scan results",
    )
    created: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
    created_by: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        default="",
        comment="E-mail address of the creating user",
    )

    # Relationships
    group: Mapped["Group"] = relationship(
        back_populates="views",
        lazy="raise",
    )
    ownerships: Mapped[list["Ownership"]] = relationship(
        back_populates="view",
        order_by="Ownership.id",
        passive_deletes=True,
        lazy="raise",
    )

    def __repr__(self) -> str:
        return f"<View {self.name} group={self.group_id}>"
