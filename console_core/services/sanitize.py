"""
Sanitization Pipeline

Normalizes untrusted user attributes before they are written. Markup is
stripped with a strict policy that allows no tags at all; e-mail addresses
are stored lower-case, SSO ids upper-case and gender as a single upper-case
character.
"""

import nh3

from console_core.models.user import User, UserField

# Fields rewritten by sanitize_user, in the order they are processed
SANITIZED_FIELDS = (
    UserField.EMAIL,
    UserField.SSO_ID,
    UserField.NAME,
    UserField.SURNAME,
    UserField.GENDER,
)


def sanitize_text(value: str | None) -> str:
    """
    Remove all markup from a string.

    Tags and attributes are dropped, the contents of script and style
    elements are dropped entirely. Never raises; None becomes "".

    Non-breaking spaces become plain spaces. Otherwise the cleaner emits
    ``&nbsp;``, which stops being an entity once the SSO id is upper-cased.
    """
    if not value:
        return ""
    return nh3.clean(str(value).replace("\xa0", " "), tags=set(), attributes={})


def normalize_email(value: str | None) -> str:
    return sanitize_text(value).lower()


def normalize_sso_id(value: str | None) -> str | None:
    if value is None:
        return None
    return sanitize_text(value).upper()


def normalize_gender(value: str | None) -> str:
    return sanitize_text(value).upper()[:1]


def sanitize_user(user: User) -> dict[UserField, str | None]:
    """
    Rewrite the user's free-text fields into their canonical form.

    The normalized values are set on the user and returned keyed by field,
    so the caller can propagate them to the write statement. Idempotent.
    """
    values: dict[UserField, str | None] = {
        UserField.EMAIL: normalize_email(user.email),
        UserField.SSO_ID: normalize_sso_id(user.sso_id),
        UserField.NAME: sanitize_text(user.name),
        UserField.SURNAME: sanitize_text(user.surname),
        UserField.GENDER: normalize_gender(user.gender),
    }
    for field, value in values.items():
        setattr(user, field.value, value)
    return values
