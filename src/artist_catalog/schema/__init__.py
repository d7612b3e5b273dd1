"""Artist schema handling for artist-catalog."""

from artist_catalog.schema.loader import BUNDLED_SCHEMA_PATH, build_validator, load_schema
from artist_catalog.schema.models import ArtistSchema

__all__ = ["ArtistSchema", "BUNDLED_SCHEMA_PATH", "build_validator", "load_schema"]
