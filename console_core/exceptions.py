"""
Console Core Exceptions

Error taxonomy raised by the repositories. A missing row is never an error:
lookups return ``None`` instead.
"""


class ConsoleCoreError(Exception):
    """Base class for all errors raised by the core."""


class ConflictError(ConsoleCoreError):
    """A unique constraint (e-mail or SSO id) rejected a new user."""

    def __init__(self, field: str, message: str | None = None):
        self.field = field
        super().__init__(message or f"User with this {field} already exists")


class InvalidEntityError(ConsoleCoreError):
    """Operation attempted on an entity without an assigned identity."""


class StorageError(ConsoleCoreError):
    """Any other backend fault. The driver exception is kept as __cause__."""
