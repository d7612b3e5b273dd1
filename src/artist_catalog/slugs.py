"""Slug and identifier helpers for artist records."""

import re
import secrets
from collections.abc import Callable, Container

from unidecode import unidecode

DEFAULT_ID_BASE = "imported-artist"


def slugify(name: str) -> str:
    """Lowercase ASCII slug with dashes: "Café Noir!" -> "cafe-noir"."""
    normalized = unidecode(name or "").lower()
    normalized = re.sub(r"[^a-z0-9]+", "-", normalized)
    return normalized.strip("-")


def random_suffix() -> str:
    """Twelve hex characters used to disambiguate colliding ids."""
    return secrets.token_hex(6)


def make_unique_id(
    name: str,
    existing_ids: Container[str],
    suffix: Callable[[], str] = random_suffix,
) -> str:
    """Derive an id from a name that does not clash with ``existing_ids``."""
    base = slugify(name) or DEFAULT_ID_BASE
    candidate = base
    while candidate in existing_ids:
        candidate = f"{base}-{suffix()}"
    return candidate
