"""Field-level merge policy for artist records.

The base record always wins on populated fields. Incoming values only fill
gaps, except for the tag list which is unioned.
"""

import copy
from collections.abc import Mapping
from typing import Any

from artist_catalog.resolve.identity import is_empty

TAG_FIELD = "tags"


def _tag_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [tag for tag in value if isinstance(tag, str)]


def union_tags(*tag_lists: Any) -> list[str]:
    """Union tag lists keeping first-seen order and dropping duplicates."""
    merged: list[str] = []
    seen: set[str] = set()
    for tags in tag_lists:
        for tag in _tag_list(tags):
            if tag not in seen:
                seen.add(tag)
                merged.append(tag)
    return merged


def merge_records(
    base: Mapping[str, Any],
    incoming: Mapping[str, Any],
    tag_field: str = TAG_FIELD,
) -> tuple[dict[str, Any], bool]:
    """Merge ``incoming`` into a copy of ``base``.

    Args:
        base: Record whose populated values are kept
        incoming: Record contributing values for empty fields and extra tags
        tag_field: Name of the tag list field

    Returns:
        (merged record, whether anything differs from base)
    """
    merged = copy.deepcopy(dict(base))
    changed = False

    for key, value in incoming.items():
        if key == tag_field:
            base_tags = union_tags(merged.get(tag_field))
            tags = union_tags(base_tags, value)
            if len(tags) > len(base_tags):
                changed = True
            if tags or tag_field in merged:
                merged[tag_field] = tags
            continue

        if is_empty(merged.get(key)) and not is_empty(value):
            merged[key] = copy.deepcopy(value)
            changed = True

    return merged, changed
