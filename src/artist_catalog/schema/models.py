"""Pydantic wrapper around the artist JSON Schema.

The JSON Schema file is the single source of truth for the record shape.
Everything the merge engine needs from it (identity fields, tag enumeration,
field order, template defaults) is derived here.
"""

from collections.abc import Mapping
from datetime import date
from typing import Any

from pydantic import BaseModel, Field

from artist_catalog.resolve.models import PROVENANCE_TAGS

# Custom keywords the validator should not see
_CUSTOM_KEYWORDS = ("githubTag",)


class ArtistSchema(BaseModel):
    """Parsed artist schema plus the views derived from it."""

    raw: dict[str, Any]
    source: str = ""  # path the schema was loaded from

    tag_field: str = "tags"
    identity_fields: list[str] = Field(default_factory=list)
    allowed_tags: list[str] = Field(default_factory=list)
    provenance_tags: list[str] = Field(default_factory=lambda: list(PROVENANCE_TAGS))

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any], source: str = "") -> "ArtistSchema":
        raw = dict(raw)
        properties = raw.get("properties", {})
        defs = raw.get("$defs", {})

        # Profile links are the identity fields, in declaration order
        identity_fields = [
            name for name, prop in properties.items()
            if isinstance(prop, dict) and prop.get("format") == "uri"
        ]

        allowed = defs.get("tag", {}).get("enum")
        if allowed is None:
            allowed = properties.get("tags", {}).get("items", {}).get("enum", [])
        provenance = defs.get("provenanceTag", {}).get("enum") or list(PROVENANCE_TAGS)

        return cls(
            raw=raw,
            source=source,
            identity_fields=identity_fields,
            allowed_tags=list(allowed),
            provenance_tags=list(provenance),
        )

    @property
    def properties(self) -> dict[str, Any]:
        return self.raw.get("properties", {})

    @property
    def field_order(self) -> list[str]:
        return list(self.properties.keys())

    @property
    def required(self) -> list[str]:
        return list(self.raw.get("required", []))

    def validation_schema(self) -> dict[str, Any]:
        """Schema with custom keywords stripped, ready for jsonschema."""
        schema = dict(self.raw)
        schema["properties"] = {
            name: {k: v for k, v in prop.items() if k not in _CUSTOM_KEYWORDS}
            for name, prop in self.properties.items()
        }
        return schema

    def template(self, today: date | None = None) -> dict[str, Any]:
        """Empty record with a default value for every declared field."""
        return _template_for(self.raw, (today or date.today()).isoformat())

    def order_fields(self, record: Mapping[str, Any]) -> dict[str, Any]:
        """Reorder keys to match the schema; unknown keys keep their order at the end."""
        ordered = {key: record[key] for key in self.field_order if key in record}
        for key, value in record.items():
            if key not in ordered:
                ordered[key] = value
        return ordered


def _template_for(schema: Mapping[str, Any], today: str) -> dict[str, Any]:
    template: dict[str, Any] = {}
    for key, prop in schema.get("properties", {}).items():
        types = prop.get("type")
        types = types if isinstance(types, list) else [types]
        primary = next((t for t in types if t != "null"), types[0])
        nullable = "null" in types

        if primary == "array":
            template[key] = []
        elif primary == "object":
            template[key] = _template_for(prop, today) if prop.get("properties") else {}
        elif nullable:
            template[key] = None
        elif primary == "string":
            template[key] = today if prop.get("format") == "date" else ""
        elif primary in ("number", "integer"):
            template[key] = 0
        elif primary == "boolean":
            template[key] = False
        else:
            template[key] = None
    return template
