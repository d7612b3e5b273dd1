"""Catalog storage: one JSON file per artist in a directory.

Loading tolerates individual broken files (skipped with a warning) but not a
missing or unreadable directory. Any failure to write is fatal and reported
with the number of writes already committed.
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from artist_catalog.errors import FileCollisionError, StorageError
from artist_catalog.resolve.models import CorpusEntry, Outcome, ResolutionReport
from artist_catalog.schema.models import ArtistSchema
from artist_catalog.slugs import DEFAULT_ID_BASE, slugify

logger = logging.getLogger(__name__)


def dump_record(record: dict[str, Any]) -> str:
    """Serialize a record the way catalog files are stored."""
    return json.dumps(record, indent=2, ensure_ascii=False) + "\n"


@dataclass
class ApplyResult:
    """Files written while persisting a resolution report."""

    created: list[Path] = field(default_factory=list)
    modified: list[Path] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)

    @property
    def committed(self) -> int:
        return len(self.created) + len(self.modified)


class CatalogStore:
    """Read and write artist records under a catalog directory."""

    def __init__(self, directory: Path) -> None:
        self.directory = Path(directory)

    def files(self) -> list[Path]:
        if not self.directory.is_dir():
            raise StorageError(f"Catalog directory not found: {self.directory}")
        try:
            return sorted(self.directory.glob("*.json"))
        except OSError as e:
            raise StorageError(f"Could not list {self.directory}: {e}") from e

    def load(self) -> list[CorpusEntry]:
        """Load every catalog record; undecodable files are skipped."""
        entries: list[CorpusEntry] = []
        for path in self.files():
            try:
                raw = path.read_text(encoding="utf-8")
            except OSError as e:
                raise StorageError(f"Could not read {path}: {e}") from e
            try:
                data = json.loads(raw)
            except json.JSONDecodeError as e:
                logger.warning(f"Skipping {path.name}: invalid JSON ({e})")
                continue
            if not isinstance(data, dict):
                logger.warning(f"Skipping {path.name}: expected an object, got {type(data).__name__}")
                continue
            entries.append(CorpusEntry(record=data, handle=path))

        logger.info(f"Loaded {len(entries)} catalog records from {self.directory}")
        return entries

    def path_for(self, record: dict[str, Any]) -> Path:
        """File path a new record would be written to."""
        base = record.get("id") or slugify(record.get("name") or "") or DEFAULT_ID_BASE
        return self.directory / f"{base}.json"

    def write(
        self,
        record: dict[str, Any],
        handle: Path | None = None,
        schema: ArtistSchema | None = None,
    ) -> Path:
        """Write a record to its file.

        Args:
            record: Record to write
            handle: Existing file to overwrite; None writes a new file
            schema: When given, keys are written in schema order

        Returns:
            Path written

        Raises:
            FileCollisionError: A new record's file name is already taken
            StorageError: The file could not be written
        """
        if schema is not None:
            record = schema.order_fields(record)

        if handle is None:
            path = self.path_for(record)
            if path.exists():
                raise FileCollisionError(f"File already exists: {path.name}")
        else:
            path = Path(handle)

        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            path.write_text(dump_record(record), encoding="utf-8")
        except OSError as e:
            raise StorageError(f"Could not write {path}: {e}") from e
        return path

    def apply(self, report: ResolutionReport, schema: ArtistSchema | None = None) -> ApplyResult:
        """Persist created and modified outcomes of a resolution run.

        A name collision skips that record. Any other storage failure aborts,
        raising StorageError with ``committed`` set to the writes already done.
        """
        result = ApplyResult()

        def _write(outcome: Outcome, bucket: list[Path]) -> None:
            try:
                path = self.write(outcome.record, handle=outcome.handle, schema=schema)
            except FileCollisionError as e:
                logger.warning(f"  {e}, skipping")
                result.skipped.append(outcome.identifier or str(outcome.name))
                return
            except StorageError as e:
                raise StorageError(
                    f"{e} (aborted after {result.committed} committed writes)",
                    committed=result.committed,
                ) from e
            bucket.append(path)

        for outcome in report.modified:
            _write(outcome, result.modified)
        for outcome in report.created:
            _write(outcome, result.created)

        logger.info(
            f"Wrote {len(result.created)} new and {len(result.modified)} updated records "
            f"({len(result.skipped)} skipped)"
        )
        return result
