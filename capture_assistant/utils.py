"""Small helpers shared across capture assistant modules."""

from __future__ import annotations

import random
import string

_ID_ALPHABET = string.ascii_lowercase + string.digits


def generate_id(prefix: str, *, size: int = 8) -> str:
    """Generate a short unique identifier with a readable prefix."""

    suffix = "".join(random.choice(_ID_ALPHABET) for _ in range(size))
    return f"{prefix}_{suffix}"


def truncate(text: str, limit: int = 200) -> str:
    """Shorten ``text`` to ``limit`` characters with a trailing ellipsis."""

    if len(text) <= limit:
        return text
    return text[: limit - 3].rstrip() + "..."
