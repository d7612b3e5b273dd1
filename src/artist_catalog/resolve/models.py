"""Pydantic models for corpus entries and resolution outcomes.

Records themselves stay plain dicts; these models wrap them with the
bookkeeping a caller needs to persist and report a run.
"""

from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

OutcomeStatus = Literal["created", "modified", "rejected"]

EXTERNAL_TAG = "external"
EXTERNAL_MODIFIED_TAG = "external-modified"
PROVENANCE_TAGS = (EXTERNAL_TAG, EXTERNAL_MODIFIED_TAG)


def _label(value: Any) -> str | None:
    """Render a raw record value (ids and names may be any JSON type) for reporting."""
    return None if value is None else str(value)


class CorpusEntry(BaseModel):
    """An existing catalog record and the opaque handle it was loaded from."""

    record: dict[str, Any]
    handle: Any = None  # e.g. file path; never interpreted by the engine

    @property
    def identifier(self) -> str | None:
        return self.record.get("id")


class IdentityCollision(BaseModel):
    """Two corpus records claiming the same identity value."""

    field: str
    value: str
    kept: str | None  # identifier of the first-registered record
    ignored: str | None

    @field_validator("kept", "ignored", mode="before")
    @classmethod
    def _as_label(cls, v: Any) -> str | None:
        return _label(v)


class AmbiguousMatch(BaseModel):
    """An incoming record whose identity values point at different corpus records."""

    name: str | None = None
    chosen: str | None
    chosen_field: str
    conflicting: str | None
    conflicting_field: str

    @field_validator("name", "chosen", "conflicting", mode="before")
    @classmethod
    def _as_label(cls, v: Any) -> str | None:
        return _label(v)


class Outcome(BaseModel):
    """Classification of one merged incoming record."""

    status: OutcomeStatus
    record: dict[str, Any]
    handle: Any = None
    members: int = 1  # incoming records folded into this one
    errors: list[str] = Field(default_factory=list)

    @property
    def identifier(self) -> str | None:
        return self.record.get("id")

    @property
    def name(self) -> str | None:
        return self.record.get("name")


class ResolutionReport(BaseModel):
    """Everything one resolution run decided."""

    created: list[Outcome] = Field(default_factory=list)
    modified: list[Outcome] = Field(default_factory=list)
    rejected: list[Outcome] = Field(default_factory=list)
    unchanged: int = 0
    clusters: int = 0
    incoming: int = 0
    parse_errors: list[str] = Field(default_factory=list)
    collisions: list[IdentityCollision] = Field(default_factory=list)
    ambiguous_matches: list[AmbiguousMatch] = Field(default_factory=list)

    @property
    def created_count(self) -> int:
        return len(self.created)

    @property
    def modified_count(self) -> int:
        return len(self.modified)

    @property
    def rejected_count(self) -> int:
        return len(self.rejected)

    @property
    def created_ids(self) -> set[str]:
        return {o.identifier for o in self.created if o.identifier}

    @property
    def modified_ids(self) -> set[str]:
        return {o.identifier for o in self.modified if o.identifier}

    def summary(self) -> dict[str, int]:
        return {
            "incoming": self.incoming,
            "clusters": self.clusters,
            "created": self.created_count,
            "modified": self.modified_count,
            "rejected": self.rejected_count,
            "unchanged": self.unchanged,
            "parse_errors": len(self.parse_errors),
            "collisions": len(self.collisions),
            "ambiguous_matches": len(self.ambiguous_matches),
        }
