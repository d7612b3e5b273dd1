"""Intra-batch duplicate clustering keyed on shared identity values.

Incoming feeds list the same artist several times, often with different
subsets of profile links. Records that share any (field, value) identity pair
are grouped, transitively, and each group is folded into one record.

Grouping uses a disjoint-set forest (path compression + union by rank) keyed
by identity pair, so a batch is processed in near-linear time.
"""

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from artist_catalog.resolve.identity import IdentityKey, extract_identities
from artist_catalog.resolve.merge import TAG_FIELD, merge_records

logger = logging.getLogger(__name__)


class _DisjointSet:
    """Union-find over record indices."""

    def __init__(self, size: int) -> None:
        self._parent = list(range(size))
        self._rank = [0] * size

    def find(self, x: int) -> int:
        while self._parent[x] != x:
            self._parent[x] = self._parent[self._parent[x]]  # path compression
            x = self._parent[x]
        return x

    def union(self, a: int, b: int) -> None:
        ra, rb = self.find(a), self.find(b)
        if ra == rb:
            return
        if self._rank[ra] < self._rank[rb]:
            ra, rb = rb, ra
        self._parent[rb] = ra
        if self._rank[ra] == self._rank[rb]:
            self._rank[ra] += 1


@dataclass
class Cluster:
    """Incoming records that transitively share identity values."""

    indices: list[int] = field(default_factory=list)
    members: list[dict[str, Any]] = field(default_factory=list)
    identities: set[IdentityKey] = field(default_factory=set)

    def __len__(self) -> int:
        return len(self.members)


def cluster_records(
    records: list[Mapping[str, Any]],
    identity_fields: Iterable[str],
) -> list[Cluster]:
    """Partition records into clusters of shared identity values.

    Clusters come back ordered by their first member's position in the batch
    and members keep batch order. Records without identity values end up in
    singleton clusters.

    Args:
        records: Incoming records
        identity_fields: Fields whose values act as join keys

    Returns:
        List of Cluster objects covering every record exactly once
    """
    identity_fields = list(identity_fields)
    forest = _DisjointSet(len(records))
    owner: dict[IdentityKey, int] = {}
    identities_by_index: list[set[IdentityKey]] = []

    for index, record in enumerate(records):
        identities = extract_identities(record, identity_fields)
        identities_by_index.append(identities)
        for key in identities:
            first = owner.setdefault(key, index)
            if first != index:
                forest.union(first, index)

    clusters_by_root: dict[int, Cluster] = {}
    for index, record in enumerate(records):
        cluster = clusters_by_root.setdefault(forest.find(index), Cluster())
        cluster.indices.append(index)
        cluster.members.append(dict(record))
        cluster.identities |= identities_by_index[index]

    # dicts keep insertion order, so clusters follow their first member
    clusters = list(clusters_by_root.values())
    logger.debug(f"Clustered {len(records)} records into {len(clusters)} groups")
    return clusters


def reduce_cluster(cluster: Cluster, tag_field: str = TAG_FIELD) -> dict[str, Any]:
    """Fold a cluster's members left-to-right through the merge policy."""
    if not cluster.members:
        return {}
    merged = dict(cluster.members[0])
    for member in cluster.members[1:]:
        merged, _ = merge_records(merged, member, tag_field=tag_field)
    return merged


def deduplicate_batch(
    records: list[Mapping[str, Any]],
    identity_fields: Iterable[str],
    tag_field: str = TAG_FIELD,
) -> list[dict[str, Any]]:
    """Cluster a batch and reduce every cluster to one record."""
    clusters = cluster_records(records, identity_fields)
    merged = [reduce_cluster(c, tag_field=tag_field) for c in clusters]
    if len(merged) < len(records):
        logger.info(
            f"Intra-batch dedup: {len(records)} records -> {len(merged)} unique "
            f"({len(records) - len(merged)} merged)"
        )
    return merged
