"""Resolution orchestrator: classify an incoming batch against the catalog.

One call to ``resolve`` is one unit of work:

1. Fold intra-batch duplicates (shared identity values) into single records
   and drop feed tags outside the schema enumeration
2. Match each folded record against the corpus index
3. Matched: merge into the existing record, stamp provenance + dateUpdated
   Unmatched: build a new record from the template, mint an id, tag it external
4. Validate, then classify as created / modified / rejected

The engine performs no I/O. Persisting the outcome is the caller's job
(see ``artist_catalog.store``). Concurrent runs against the same catalog must
be serialized by the caller.
"""

import copy
import logging
from collections.abc import Callable, Collection, Iterable, Mapping
from dataclasses import dataclass, field
from datetime import date
from typing import Any

from artist_catalog.resolve.clustering import cluster_records, reduce_cluster
from artist_catalog.resolve.identity import is_empty
from artist_catalog.resolve.matcher import CorpusIndex
from artist_catalog.resolve.merge import TAG_FIELD, merge_records, union_tags
from artist_catalog.resolve.models import (
    EXTERNAL_MODIFIED_TAG,
    EXTERNAL_TAG,
    PROVENANCE_TAGS,
    CorpusEntry,
    Outcome,
    ResolutionReport,
)
from artist_catalog.slugs import make_unique_id, random_suffix

logger = logging.getLogger(__name__)

ID_FIELD = "id"
NAME_FIELD = "name"
DATE_ADDED_FIELD = "dateAdded"
DATE_UPDATED_FIELD = "dateUpdated"

Record = dict[str, Any]
Validator = Callable[[Record], list[str] | None]


@dataclass
class ResolutionContext:
    """Mutable state for a single ``resolve`` call.

    Created records are registered into ``index`` and ``known_ids`` as they
    are minted so later records in the same run see them.
    """

    index: CorpusIndex
    known_ids: set[str]
    today: str
    validator: Validator
    tag_field: str = TAG_FIELD
    allowed_tags: frozenset[str] | None = None
    provenance_tags: frozenset[str] = frozenset(PROVENANCE_TAGS)
    template: Record = field(default_factory=dict)
    suffix: Callable[[], str] = random_suffix
    # id(entry) -> record as rewritten earlier in this run
    current: dict[int, Record] = field(default_factory=dict)
    # id(entry) -> position in report.modified
    modified_at: dict[int, int] = field(default_factory=dict)

    def record_for(self, entry: CorpusEntry) -> Record:
        return self.current.get(id(entry), entry.record)

    def validate(self, record: Record) -> list[str]:
        return list(self.validator(record) or [])

    def has_provenance(self, record: Mapping[str, Any]) -> bool:
        return any(tag in self.provenance_tags for tag in union_tags(record.get(self.tag_field)))

    def keep_tag(self, tag: str) -> bool:
        """Tags outside the schema enumeration never reach the catalog from a feed."""
        if self.allowed_tags is None:
            return True
        return tag in self.allowed_tags or tag in self.provenance_tags


def resolve(
    incoming_records: Iterable[Any],
    corpus: Iterable[CorpusEntry | Mapping[str, Any]],
    identity_fields: Iterable[str],
    validator: Validator,
    *,
    tag_field: str = TAG_FIELD,
    allowed_tags: Collection[str] | None = None,
    provenance_tags: Collection[str] = PROVENANCE_TAGS,
    template: Mapping[str, Any] | None = None,
    today: date | None = None,
    id_suffix: Callable[[], str] = random_suffix,
) -> ResolutionReport:
    """Resolve an incoming batch of artist records against the corpus.

    Args:
        incoming_records: Raw candidate records (dicts) from an external feed
        corpus: Existing catalog entries (or bare record dicts)
        identity_fields: Join-key fields in priority order
        validator: Returns schema errors for a record (empty/None when valid)
        tag_field: Name of the tag list field
        allowed_tags: Permitted tag enumeration (None keeps all feed tags)
        provenance_tags: Tags marking a record as externally sourced
        template: Default field values for newly created records
        today: Date stamped into dateAdded/dateUpdated (defaults to today)
        id_suffix: Source of disambiguators for colliding ids

    Returns:
        ResolutionReport classifying every incoming record
    """
    identity_fields = list(identity_fields)
    incoming_records = list(incoming_records)
    entries = [e if isinstance(e, CorpusEntry) else CorpusEntry(record=dict(e)) for e in corpus]

    report = ResolutionReport(incoming=len(incoming_records))

    records: list[Mapping[str, Any]] = []
    for position, raw in enumerate(incoming_records):
        if not isinstance(raw, Mapping):
            message = f"Incoming record #{position} is not an object ({type(raw).__name__}), skipping"
            logger.warning(message)
            report.parse_errors.append(message)
            continue
        records.append(raw)

    ctx = ResolutionContext(
        index=CorpusIndex.build(entries, identity_fields),
        known_ids={e.identifier for e in entries if e.identifier},
        today=(today or date.today()).isoformat(),
        validator=validator,
        tag_field=tag_field,
        allowed_tags=frozenset(allowed_tags) if allowed_tags is not None else None,
        provenance_tags=frozenset(provenance_tags),
        template=dict(template or {}),
        suffix=id_suffix,
    )

    clusters = cluster_records(records, identity_fields)
    report.clusters = len(clusters)
    logger.info(
        f"Resolving {len(records)} incoming records "
        f"({len(clusters)} after intra-batch dedup) against {len(entries)} catalog records"
    )

    for cluster in clusters:
        merged = reduce_cluster(cluster, tag_field=tag_field)
        if tag_field in merged:
            merged[tag_field] = [t for t in union_tags(merged[tag_field]) if ctx.keep_tag(t)]
        existing = ctx.index.find_match(merged)
        if existing is not None:
            _merge_into_existing(ctx, report, existing, merged, members=len(cluster))
        else:
            _create_new(ctx, report, merged, members=len(cluster))

    report.collisions = list(ctx.index.collisions)
    report.ambiguous_matches = list(ctx.index.ambiguous_matches)

    logger.info(
        f"Resolution complete: {report.created_count} created, "
        f"{report.modified_count} modified, {report.rejected_count} rejected, "
        f"{report.unchanged} unchanged"
    )
    return report


def _merge_into_existing(
    ctx: ResolutionContext,
    report: ResolutionReport,
    entry: CorpusEntry,
    incoming: Record,
    members: int,
) -> None:
    base = ctx.record_for(entry)
    # Provenance on existing records is decided here, never by the feed
    if ctx.tag_field in incoming:
        incoming = dict(incoming)
        incoming[ctx.tag_field] = [
            t for t in incoming[ctx.tag_field] if t not in ctx.provenance_tags
        ]
    merged, changed = merge_records(base, incoming, tag_field=ctx.tag_field)
    if not changed:
        logger.debug(f"  Unchanged: {base.get(NAME_FIELD)} ({entry.identifier})")
        report.unchanged += 1
        return

    # Provenance is only ever added. A record already marked external keeps its tag.
    if not ctx.has_provenance(base):
        merged[ctx.tag_field] = union_tags(merged.get(ctx.tag_field), [EXTERNAL_MODIFIED_TAG])
    merged[DATE_UPDATED_FIELD] = ctx.today

    errors = ctx.validate(merged)
    if errors:
        _reject(report, merged, errors, handle=entry.handle, members=members)
        return

    key = id(entry)
    ctx.current[key] = merged
    if key in ctx.modified_at:
        position = ctx.modified_at[key]
        previous = report.modified[position]
        report.modified[position] = Outcome(
            status="modified",
            record=merged,
            handle=entry.handle,
            members=previous.members + members,
        )
    else:
        ctx.modified_at[key] = len(report.modified)
        report.modified.append(
            Outcome(status="modified", record=merged, handle=entry.handle, members=members)
        )
    logger.info(f"  Modified: {merged.get(NAME_FIELD)} ({entry.identifier})")


def _create_new(
    ctx: ResolutionContext,
    report: ResolutionReport,
    incoming: Record,
    members: int,
) -> None:
    record: Record = copy.deepcopy(ctx.template)
    record.update(copy.deepcopy(incoming))

    name = record.get(NAME_FIELD)
    record[ID_FIELD] = make_unique_id(
        name if isinstance(name, str) else "", ctx.known_ids, ctx.suffix
    )
    record[DATE_ADDED_FIELD] = ctx.today
    record[DATE_UPDATED_FIELD] = None

    record[ctx.tag_field] = union_tags(record.get(ctx.tag_field), [EXTERNAL_TAG])

    errors = ctx.validate(record)
    if errors:
        _reject(report, record, errors, handle=None, members=members)
        return

    ctx.known_ids.add(record[ID_FIELD])
    ctx.index.register(CorpusEntry(record=record))
    report.created.append(Outcome(status="created", record=record, members=members))
    logger.info(f"  Created: {record.get(NAME_FIELD)} ({record[ID_FIELD]})")


def _reject(
    report: ResolutionReport,
    record: Record,
    errors: list[str],
    handle: Any,
    members: int,
) -> None:
    label = record.get(NAME_FIELD)
    if is_empty(label):
        label = record.get(ID_FIELD) or "<unnamed>"
    logger.warning(f"  Validation failed for \"{label}\":")
    for error in errors:
        logger.warning(f"    {error}")
    report.rejected.append(
        Outcome(status="rejected", record=record, handle=handle, members=members, errors=errors)
    )
