"""
Group Model

Organizational scope that views belong to.
"""

from typing import TYPE_CHECKING

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from console_core.models.base import Base, IdType

if TYPE_CHECKING:
    from console_core.models.view import View


class Group(Base):
    """Scan-scope grouping. Only identity and display name are modelled."""

    __tablename__ = "scope_groups"

    id: Mapped[int] = mapped_column(
        IdType,
        primary_key=True,
        autoincrement=True,
    )
    name: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
        comment="Display name, may be missing",
    )

    views: Mapped[list["View"]] = relationship(
        back_populates="group",
        passive_deletes=True,
        lazy="raise",
    )

    def __repr__(self) -> str:
        return f"<Group {self.id} {self.name!r}>"
