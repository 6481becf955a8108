"""Administrator check for review endpoints.

Identity is established upstream; the proxy in front of the API forwards
a shared admin token for authenticated administrators. This module only
turns that into an ``is_admin`` boolean.
"""

import secrets

from fastapi import Header

from encore.config import get_settings


def is_admin_token(token: str | None) -> bool:
    """Compare a submitted token against the configured admin token."""
    expected = get_settings().admin_token
    if not token or not expected:
        return False
    return secrets.compare_digest(token, expected)


async def get_is_admin(x_admin_token: str | None = Header(None)) -> bool:
    """Return whether the caller is an administrator (never raises)."""
    return is_admin_token(x_admin_token)
