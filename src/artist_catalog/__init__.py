"""artist-catalog: curated artist records with deterministic import merging.

Imports external artist lists into a catalog of one-JSON-file-per-artist,
clustering duplicates by shared profile links, merging them into existing
records without overwriting curated data, and validating every result
against the artist JSON Schema.
"""

__version__ = "0.1.0"

from artist_catalog.pipeline import run_build, run_import
from artist_catalog.resolve import CorpusEntry, CorpusIndex, ResolutionReport, merge_records, resolve
from artist_catalog.schema import ArtistSchema, build_validator, load_schema
from artist_catalog.store import CatalogStore

__all__ = [
    "__version__",
    "ArtistSchema",
    "CatalogStore",
    "CorpusEntry",
    "CorpusIndex",
    "ResolutionReport",
    "build_validator",
    "load_schema",
    "merge_records",
    "resolve",
    "run_build",
    "run_import",
]
