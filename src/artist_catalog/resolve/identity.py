"""Identity values: the fields that join records across sources.

An identity field is a platform profile link (spotify, youtube, ...). Two
records carrying the same value under the same field denote the same artist.
"""

from collections.abc import Iterable, Mapping
from typing import Any

IdentityKey = tuple[str, str]


def is_empty(value: Any) -> bool:
    """Return True for None, blank strings and empty lists."""
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    if isinstance(value, (list, tuple, set, dict)):
        return len(value) == 0
    return False


def extract_identities(
    record: Mapping[str, Any],
    identity_fields: Iterable[str],
) -> set[IdentityKey]:
    """Collect the (field, value) identity pairs present on a record.

    Only non-empty string values qualify; anything else is ignored.
    """
    identities: set[IdentityKey] = set()
    for field in identity_fields:
        value = record.get(field)
        if isinstance(value, str) and not is_empty(value):
            identities.add((field, value))
    return identities


def ordered_identities(
    record: Mapping[str, Any],
    identity_fields: Iterable[str],
) -> list[IdentityKey]:
    """Same as ``extract_identities`` but keeps the declared field order."""
    return [
        (field, record[field])
        for field in identity_fields
        if isinstance(record.get(field), str) and not is_empty(record[field])
    ]
