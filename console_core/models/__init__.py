"""SQLAlchemy ORM Models for the console core."""

from console_core.models.base import Base
from console_core.models.group import Group
from console_core.models.ownership import Ownership
from console_core.models.user import User, UserField, new_user
from console_core.models.view import View

__all__ = [
    "Base",
    "Group",
    "Ownership",
    "User",
    "UserField",
    "View",
    "new_user",
]
