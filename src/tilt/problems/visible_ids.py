"""Visible ids: short public share codes for interactions.

10 characters from the URL-safe alphabet (A-Z, a-z, 0-9, '_', '-'),
generated with a cryptographic random source.
"""

from __future__ import annotations

import secrets
import string

VISIBLE_ID_CHARSET = string.ascii_letters + string.digits + "_-"
VISIBLE_ID_LENGTH = 10


def generate_visible_id(length: int = VISIBLE_ID_LENGTH) -> str:
    """Generate a random URL-safe visible id."""
    return "".join(secrets.choice(VISIBLE_ID_CHARSET) for _ in range(length))


def is_visible_id(value: str) -> bool:
    """Cheap shape check before hitting the database."""
    return 0 < len(value) <= 32 and all(c in VISIBLE_ID_CHARSET for c in value)
