"""Entity resolution: cluster, match and merge incoming artist records.

Deterministic identity-value matching: intra-batch clustering, corpus
lookup, a field-level merge policy and the orchestrator tying them together.
"""

from artist_catalog.resolve.clustering import Cluster, cluster_records, deduplicate_batch, reduce_cluster
from artist_catalog.resolve.identity import extract_identities, is_empty
from artist_catalog.resolve.matcher import CorpusIndex
from artist_catalog.resolve.merge import merge_records, union_tags
from artist_catalog.resolve.models import CorpusEntry, Outcome, ResolutionReport
from artist_catalog.resolve.resolver import resolve

__all__ = [
    "Cluster",
    "CorpusEntry",
    "CorpusIndex",
    "Outcome",
    "ResolutionReport",
    "cluster_records",
    "deduplicate_batch",
    "extract_identities",
    "is_empty",
    "merge_records",
    "reduce_cluster",
    "resolve",
    "union_tags",
]
