"""Shared test fixtures for artist-catalog."""

import json
import tempfile
from datetime import date
from pathlib import Path

import pytest

from artist_catalog.resolve.models import CorpusEntry
from artist_catalog.schema.loader import build_validator, load_schema
from artist_catalog.schema.models import ArtistSchema

TODAY = date(2025, 3, 14)

SPOTIFY = "https://open.spotify.com/artist/{}"
YOUTUBE = "https://www.youtube.com/@{}"


def make_artist(artist_id: str, name: str, **fields) -> dict:
    """A complete, schema-valid catalog record."""
    record = {
        "id": artist_id,
        "name": name,
        "comments": None,
        "spotify": None,
        "apple": None,
        "youtube": None,
        "deezer": None,
        "soundcloud": None,
        "instagram": None,
        "tiktok": None,
        "urls": [],
        "tags": [],
        "dateAdded": "2024-01-01",
        "dateUpdated": None,
    }
    record.update(fields)
    return record


@pytest.fixture
def schema() -> ArtistSchema:
    """The bundled artist schema."""
    return load_schema()


@pytest.fixture
def validator(schema):
    return build_validator(schema)


@pytest.fixture
def identity_fields(schema) -> list[str]:
    return schema.identity_fields


@pytest.fixture
def sample_corpus() -> list[CorpusEntry]:
    """Two first-party artists and one already imported from a feed."""
    return [
        CorpusEntry(
            record=make_artist("velvet-echo", "Velvet Echo", spotify=SPOTIFY.format("ve1"), tags=["ai-vocals"]),
            handle="velvet-echo.json",
        ),
        CorpusEntry(
            record=make_artist("neon-drift", "Neon Drift", youtube=YOUTUBE.format("neondrift")),
            handle="neon-drift.json",
        ),
        CorpusEntry(
            record=make_artist(
                "paper-moons", "Paper Moons",
                spotify=SPOTIFY.format("pm1"), tags=["external"],
            ),
            handle="paper-moons.json",
        ),
    ]


@pytest.fixture
def tmp_dir():
    """Temporary directory that cleans up after test."""
    with tempfile.TemporaryDirectory() as d:
        yield Path(d)


@pytest.fixture
def catalog_dir(tmp_dir, sample_corpus) -> Path:
    """Catalog directory populated with the sample corpus."""
    directory = tmp_dir / "src"
    directory.mkdir()
    for entry in sample_corpus:
        (directory / entry.handle).write_text(json.dumps(entry.record, indent=2) + "\n")
    return directory
