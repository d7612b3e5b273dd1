"""Artist schema loader and validator factory.

Loads the JSON Schema from a user path or the bundled default and compiles
a jsonschema validator with format checking (dates, URIs).
"""

import json
import logging
from collections.abc import Callable
from pathlib import Path
from typing import Any

from jsonschema import Draft202012Validator, FormatChecker
from jsonschema.exceptions import SchemaError as JsonSchemaError

from artist_catalog.errors import SchemaError
from artist_catalog.schema.models import ArtistSchema

logger = logging.getLogger(__name__)

BUNDLED_SCHEMA_PATH = Path(__file__).parent / "bundled" / "artist.schema.json"


def load_schema(path: Path | None = None) -> ArtistSchema:
    """Load the artist schema.

    Args:
        path: Path to a schema JSON file (bundled default when None)

    Returns:
        Parsed ArtistSchema

    Raises:
        SchemaError: If the file is missing, not JSON, or not a valid schema
    """
    schema_path = Path(path) if path else BUNDLED_SCHEMA_PATH
    if not schema_path.exists():
        raise SchemaError(f"Schema not found: {schema_path}")

    try:
        raw = json.loads(schema_path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise SchemaError(f"Could not read schema {schema_path}: {e}") from e

    if not isinstance(raw, dict) or "properties" not in raw:
        raise SchemaError(f"Schema {schema_path} has no 'properties' object")

    schema = ArtistSchema.from_dict(raw, source=str(schema_path))
    try:
        Draft202012Validator.check_schema(schema.validation_schema())
    except JsonSchemaError as e:
        raise SchemaError(f"Invalid schema {schema_path}: {e.message}") from e

    logger.debug(
        f"Loaded schema {schema_path.name} "
        f"({len(schema.field_order)} fields, identity fields: {', '.join(schema.identity_fields)})"
    )
    return schema


def build_validator(schema: ArtistSchema) -> Callable[[dict[str, Any]], list[str]]:
    """Compile a validator returning readable error strings for a record.

    Each error reads ``"<field path>: <message>"``; record-level errors
    (e.g. a missing required property) use ``<root>`` as the path.
    """
    validator = Draft202012Validator(schema.validation_schema(), format_checker=FormatChecker())

    def validate(record: dict[str, Any]) -> list[str]:
        errors = []
        for error in validator.iter_errors(record):
            path = "/".join(str(p) for p in error.absolute_path) or "<root>"
            errors.append(f"{path}: {error.message}")
        return sorted(errors)

    return validate
