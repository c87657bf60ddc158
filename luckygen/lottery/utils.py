"""Utility helpers for the lottery package."""

from __future__ import annotations

import secrets
import string
from typing import Container, Optional

BASE62_ALPHABET = string.digits + string.ascii_uppercase + string.ascii_lowercase


def generate_id(
    prefix: str,
    taken: Optional[Container[str]] = None,
    length: int = 12,
    max_attempts: int = 32,
) -> str:
    """Return an opaque identifier of the form ``<prefix>-<base62 chars>``.

    When ``taken`` is provided, the helper retries while the generated value
    is already present in it.
    """

    if not prefix:
        raise ValueError("prefix must not be empty")

    for _ in range(max_attempts):
        suffix = "".join(secrets.choice(BASE62_ALPHABET) for _ in range(length))
        candidate = f"{prefix}-{suffix}"
        if taken is not None and candidate in taken:
            continue
        return candidate

    raise RuntimeError(
        f"Unable to generate a unique '{prefix}' identifier after multiple attempts"
    )
