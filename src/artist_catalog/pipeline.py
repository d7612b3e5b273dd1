"""Library-usable pipeline functions.

Each function corresponds to a CLI command but takes explicit parameters
instead of reading from config/CLI args.
"""

import logging
from datetime import date
from pathlib import Path
from typing import Any

from artist_catalog.build import BuildResult, build_dist, write_dist
from artist_catalog.resolve.models import ResolutionReport
from artist_catalog.resolve.resolver import resolve
from artist_catalog.schema.loader import build_validator
from artist_catalog.schema.models import ArtistSchema
from artist_catalog.store import ApplyResult, CatalogStore

logger = logging.getLogger(__name__)


def run_import(
    records: list[Any],
    catalog_dir: Path,
    schema: ArtistSchema,
    dry_run: bool = False,
    today: date | None = None,
) -> tuple[ResolutionReport, ApplyResult | None]:
    """Resolve incoming records against the catalog and write the results.

    Args:
        records: Incoming artist records (already parsed)
        catalog_dir: Directory of catalog JSON files
        schema: Artist schema (identity fields, tags, template, validation)
        dry_run: Resolve only, write nothing
        today: Override for the date stamped into records

    Returns:
        (resolution report, files written or None on dry run)

    Raises:
        StorageError: Catalog unreadable, or a write failed mid-run
    """
    store = CatalogStore(catalog_dir)
    corpus = store.load()

    report = resolve(
        records,
        corpus,
        schema.identity_fields,
        build_validator(schema),
        tag_field=schema.tag_field,
        allowed_tags=schema.allowed_tags or None,
        provenance_tags=schema.provenance_tags,
        template=schema.template(today),
        today=today,
    )

    if dry_run:
        logger.info("Dry run: no files written")
        return report, None

    return report, store.apply(report, schema=schema)


def run_build(
    catalog_dir: Path,
    schema: ArtistSchema,
    dist_path: Path | None = None,
) -> BuildResult:
    """Validate the catalog and, if every record passes, write the combined list."""
    entries = CatalogStore(catalog_dir).load()
    result = build_dist(entries, build_validator(schema))
    if result.ok and dist_path is not None:
        write_dist(result.records, dist_path)
    return result
