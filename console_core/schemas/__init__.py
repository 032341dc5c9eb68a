"""Pydantic Schemas for the console core."""

from console_core.schemas.user import (
    GroupResponse,
    OwnershipResponse,
    UserDetailResponse,
    UserResponse,
)

__all__ = [
    "GroupResponse",
    "OwnershipResponse",
    "UserDetailResponse",
    "UserResponse",
]
