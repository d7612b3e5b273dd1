"""Combine the catalog into a single sorted, validated artifact."""

import json
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from artist_catalog.errors import StorageError
from artist_catalog.resolve.models import CorpusEntry

logger = logging.getLogger(__name__)


@dataclass
class BuildResult:
    records: list[dict[str, Any]] = field(default_factory=list)
    failures: dict[str, list[str]] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failures


def _sort_key(record: dict[str, Any]) -> str:
    return str(record.get("name") or "").casefold()


def build_dist(
    entries: list[CorpusEntry],
    validator: Callable[[dict[str, Any]], list[str] | None],
) -> BuildResult:
    """Validate every catalog record and sort the valid ones by name.

    Args:
        entries: Loaded catalog entries
        validator: Schema validator returning error strings

    Returns:
        BuildResult with sorted records and per-file failures
    """
    result = BuildResult()
    for entry in entries:
        errors = list(validator(entry.record) or [])
        if errors:
            label = Path(entry.handle).name if entry.handle else (entry.identifier or "<unknown>")
            result.failures[label] = errors
            logger.error(f"Schema validation failed for {label}:")
            for error in errors:
                logger.error(f"  {error}")
            continue
        result.records.append(entry.record)

    result.records.sort(key=_sort_key)
    return result


def write_dist(records: list[dict[str, Any]], path: Path) -> Path:
    """Write the combined catalog list as JSON."""
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(records, indent=2, ensure_ascii=False), encoding="utf-8")
    except OSError as e:
        raise StorageError(f"Could not write {path}: {e}") from e
    logger.info(f"Wrote {len(records)} records to {path}")
    return path
