# stringutil.py
from __future__ import annotations

import re
import secrets
import string

_SLUG_STRIP = re.compile(r"[^a-z0-9]+")

_ALPHABET = string.ascii_lowercase + string.digits


def slugify(value: str) -> str:
    """Lowercase value and collapse every run of non-alphanumerics into a single '-'."""
    return _SLUG_STRIP.sub("-", value.lower()).strip("-")


def random_string(n: int = 8) -> str:
    return "".join(secrets.choice(_ALPHABET) for _ in range(n))
