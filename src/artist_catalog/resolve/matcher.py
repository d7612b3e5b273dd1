"""Match incoming records against the existing catalog by identity value."""

import logging
import warnings
from collections.abc import Iterable, Mapping
from typing import Any

from artist_catalog.errors import AmbiguousMatchWarning, IdentityCollisionWarning
from artist_catalog.resolve.identity import IdentityKey, ordered_identities
from artist_catalog.resolve.models import AmbiguousMatch, CorpusEntry, IdentityCollision

logger = logging.getLogger(__name__)


class CorpusIndex:
    """Lookup from (field, value) identity pairs to the corpus entry owning them.

    Identity values are expected to be unique across the corpus. When two
    entries claim the same value the first one registered keeps it and an
    IdentityCollisionWarning is emitted.
    """

    def __init__(self, identity_fields: Iterable[str]) -> None:
        self.identity_fields = list(identity_fields)
        self._owners: dict[IdentityKey, CorpusEntry] = {}
        self.collisions: list[IdentityCollision] = []
        self.ambiguous_matches: list[AmbiguousMatch] = []

    @classmethod
    def build(
        cls,
        entries: Iterable[CorpusEntry],
        identity_fields: Iterable[str],
    ) -> "CorpusIndex":
        index = cls(identity_fields)
        count = 0
        for entry in entries:
            index.register(entry)
            count += 1
        logger.debug(f"Indexed {len(index)} identity values from {count} corpus records")
        return index

    def __len__(self) -> int:
        return len(self._owners)

    def register(self, entry: CorpusEntry) -> None:
        """Add an entry's identity values; existing owners are never replaced."""
        for key in ordered_identities(entry.record, self.identity_fields):
            owner = self._owners.get(key)
            if owner is None:
                self._owners[key] = entry
                continue
            if owner is entry:
                continue

            field, value = key
            collision = IdentityCollision(
                field=field,
                value=value,
                kept=owner.identifier,
                ignored=entry.identifier,
            )
            self.collisions.append(collision)
            message = (
                f"Identity collision on {field}={value}: "
                f"'{owner.identifier}' and '{entry.identifier}' both claim it, "
                f"keeping '{owner.identifier}'"
            )
            logger.warning(message)
            warnings.warn(message, IdentityCollisionWarning, stacklevel=2)

    def find_match(self, record: Mapping[str, Any]) -> CorpusEntry | None:
        """Return the corpus entry matching the record, if any.

        Identity fields are tried in declared order and the first hit wins.
        If a later field points at a different corpus entry the conflict is
        reported as an AmbiguousMatchWarning; the first hit is still returned.
        """
        match: CorpusEntry | None = None
        match_field = ""

        for key in ordered_identities(record, self.identity_fields):
            owner = self._owners.get(key)
            if owner is None:
                continue
            if match is None:
                match, match_field = owner, key[0]
                continue
            if owner is not match:
                ambiguous = AmbiguousMatch(
                    name=record.get("name"),
                    chosen=match.identifier,
                    chosen_field=match_field,
                    conflicting=owner.identifier,
                    conflicting_field=key[0],
                )
                self.ambiguous_matches.append(ambiguous)
                message = (
                    f"Ambiguous match for '{record.get('name')}': "
                    f"{match_field} points at '{match.identifier}' but "
                    f"{key[0]} points at '{owner.identifier}'; "
                    f"merging into '{match.identifier}'"
                )
                logger.warning(message)
                warnings.warn(message, AmbiguousMatchWarning, stacklevel=2)

        return match
