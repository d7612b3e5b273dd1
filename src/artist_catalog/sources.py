"""Parsers for external artist lists.

Each parser turns an already-downloaded payload into bare artist records
(name + profile links + a source tag). Provenance tags are stamped later by
the resolver, and so is everything the schema template fills in.

Supported formats:
- ``records``: JSON list of artist objects
- ``csv``: CSV with an artist-name column and a Spotify artist-id column
- ``uri-list``: JSON object whose ``artists`` keys are ``spotify:artist:<id>`` URIs
"""

import csv
import io
import json
import logging
from pathlib import Path
from typing import Any

from artist_catalog.errors import ParseError

logger = logging.getLogger(__name__)

SPOTIFY_ARTIST_URL = "https://open.spotify.com/artist/{}"
SUPPORTED_FORMATS = ("records", "csv", "uri-list")


def _tags(source_tag: str | None) -> list[str]:
    return [source_tag] if source_tag else []


def parse_record_list(payload: Any, source_tag: str | None = None) -> list[dict[str, Any]]:
    """Accept a JSON list of artist objects, skipping anything that isn't one."""
    if not isinstance(payload, list):
        raise ParseError(f"Expected a JSON list of artists, got {type(payload).__name__}")

    records: list[dict[str, Any]] = []
    for position, item in enumerate(payload):
        if not isinstance(item, dict):
            logger.warning(f"Skipping item #{position}: not an object")
            continue
        record = dict(item)
        tags = record.get("tags") if isinstance(record.get("tags"), list) else []
        record["tags"] = list(tags) + [t for t in _tags(source_tag) if t not in tags]
        records.append(record)
    return records


def parse_csv_blocklist(text: str, source_tag: str | None = None) -> list[dict[str, Any]]:
    """Parse a two-column ``artist,id`` CSV of Spotify artists.

    Raises:
        ParseError: If the header does not look like ``artist..., id...``
    """
    rows = list(csv.reader(io.StringIO(text)))
    if not rows:
        raise ParseError("External format changed, update external parser: empty CSV")

    header = rows[0]
    if len(header) < 2 or "artist" not in header[0].lower() or "id" not in header[1].lower():
        raise ParseError(f"External format changed, update external parser: header {header!r}")

    records: list[dict[str, Any]] = []
    for line_no, row in enumerate(rows[1:], start=2):
        if not row or all(not cell.strip() for cell in row):
            continue
        if len(row) < 2 or not row[1].strip():
            logger.warning(f"Skipping CSV line {line_no}: missing artist id")
            continue
        records.append({
            "name": row[0].strip(),
            "spotify": SPOTIFY_ARTIST_URL.format(row[1].strip()),
            "tags": _tags(source_tag),
        })
    return records


def parse_uri_blocklist(payload: Any, source_tag: str | None = None) -> list[dict[str, Any]]:
    """Parse ``{"artists": {"spotify:artist:<id>": ...}}`` into nameless records.

    Raises:
        ParseError: If no Spotify artist ids can be found
    """
    artists = payload.get("artists") if isinstance(payload, dict) else None
    if not isinstance(artists, dict):
        raise ParseError("External format changed, update external parser: no 'artists' object")

    spotify_ids = []
    for uri in artists:
        parts = str(uri).split(":")
        if len(parts) >= 3 and parts[2]:
            spotify_ids.append(parts[2])

    if not spotify_ids:
        raise ParseError("External format changed, update external parser: no artist ids")

    return [
        {"spotify": SPOTIFY_ARTIST_URL.format(artist_id), "tags": _tags(source_tag)}
        for artist_id in spotify_ids
    ]


def load_feed(path: Path, fmt: str = "records", source_tag: str | None = None) -> list[dict[str, Any]]:
    """Read an external list from disk and parse it.

    Args:
        path: File holding the downloaded list
        fmt: One of SUPPORTED_FORMATS
        source_tag: Tag recording where the records came from

    Returns:
        Parsed incoming records

    Raises:
        ParseError: Unknown format, unreadable file or undecodable payload
    """
    if fmt not in SUPPORTED_FORMATS:
        raise ParseError(f"Unsupported format '{fmt}'. Supported: {', '.join(SUPPORTED_FORMATS)}")

    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError as e:
        raise ParseError(f"Could not read {path}: {e}") from e

    if fmt == "csv":
        records = parse_csv_blocklist(text, source_tag)
    else:
        try:
            payload = json.loads(text)
        except json.JSONDecodeError as e:
            raise ParseError(f"Invalid JSON in {path}: {e}") from e
        if fmt == "uri-list":
            records = parse_uri_blocklist(payload, source_tag)
        else:
            records = parse_record_list(payload, source_tag)

    logger.info(f"Parsed {len(records)} records from {path} ({fmt})")
    return records
