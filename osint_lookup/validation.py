from __future__ import annotations

import re

_EMAIL_SHAPE_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


class InvalidEmailError(ValueError):
    """Raised before any probing when the input is not email-shaped."""


def validate_email_shape(raw: str | None) -> str:
    if raw is None:
        raise InvalidEmailError("Email parameter is required")
    value = raw.strip()
    if not value:
        raise InvalidEmailError("Email parameter is required")
    if not _EMAIL_SHAPE_RE.match(value):
        raise InvalidEmailError("Invalid email format")
    return value


def local_part(email: str) -> str:
    return email.split("@", 1)[0]
