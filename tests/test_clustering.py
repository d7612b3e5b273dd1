"""Tests for artist_catalog.resolve.clustering (intra-batch dedup)."""

from artist_catalog.resolve.clustering import cluster_records, deduplicate_batch, reduce_cluster
from artist_catalog.resolve.identity import extract_identities

FIELDS = ["spotify", "youtube", "apple"]


class TestClusterRecords:
    """Test partitioning by shared identity values."""

    def test_empty_batch(self):
        assert cluster_records([], FIELDS) == []

    def test_shared_value_clusters(self):
        records = [
            {"name": "X", "spotify": "s1"},
            {"name": "X", "spotify": "s1", "youtube": "y1"},
        ]
        clusters = cluster_records(records, FIELDS)
        assert len(clusters) == 1
        assert clusters[0].indices == [0, 1]
        assert clusters[0].identities == {("spotify", "s1"), ("youtube", "y1")}

    def test_distinct_values_stay_apart(self):
        records = [{"spotify": "s1"}, {"spotify": "s2"}]
        assert len(cluster_records(records, FIELDS)) == 2

    def test_transitive_chain(self):
        """A~B via X and B~C via Y put A, B and C together."""
        records = [
            {"name": "A", "spotify": "X"},
            {"name": "B", "spotify": "X", "youtube": "Y"},
            {"name": "C", "youtube": "Y"},
        ]
        clusters = cluster_records(records, FIELDS)
        assert len(clusters) == 1
        assert [m["name"] for m in clusters[0].members] == ["A", "B", "C"]

    def test_late_bridge_joins_earlier_clusters(self):
        """A record arriving after two separate clusters merges both."""
        records = [
            {"name": "A", "spotify": "X"},
            {"name": "C", "youtube": "Y"},
            {"name": "B", "spotify": "X", "youtube": "Y"},
        ]
        clusters = cluster_records(records, FIELDS)
        assert len(clusters) == 1
        assert clusters[0].indices == [0, 1, 2]

    def test_fields_not_cross_matched(self):
        records = [{"spotify": "same"}, {"youtube": "same"}]
        assert len(cluster_records(records, FIELDS)) == 2

    def test_records_without_identities_are_singletons(self):
        records = [{"name": "A"}, {"name": "A"}, {"spotify": ""}]
        clusters = cluster_records(records, FIELDS)
        assert [c.indices for c in clusters] == [[0], [1], [2]]

    def test_clusters_ordered_by_first_member(self):
        records = [
            {"name": "P", "spotify": "p"},
            {"name": "Q", "spotify": "q"},
            {"name": "P2", "spotify": "p"},
        ]
        clusters = cluster_records(records, FIELDS)
        assert [c.indices for c in clusters] == [[0, 2], [1]]

    def test_no_two_clusters_share_identity(self):
        records = [
            {"spotify": "a"}, {"youtube": "b"}, {"apple": "c"},
            {"spotify": "a", "apple": "c"}, {"youtube": "d"}, {"youtube": "b", "apple": "e"},
        ]
        clusters = cluster_records(records, FIELDS)
        seen: set = set()
        for cluster in clusters:
            assert not (cluster.identities & seen)
            seen |= cluster.identities
        assert sum(len(c) for c in clusters) == len(records)
        all_ids = set().union(*(extract_identities(r, FIELDS) for r in records))
        assert seen == all_ids


class TestReduceCluster:
    """Test folding a cluster into one record."""

    def test_left_fold_first_member_wins(self):
        records = [
            {"name": "First", "spotify": "s1", "comments": None},
            {"name": "Second", "spotify": "s1", "comments": "from second"},
            {"name": "Third", "spotify": "s1", "comments": "from third"},
        ]
        cluster = cluster_records(records, FIELDS)[0]
        merged = reduce_cluster(cluster)
        assert merged["name"] == "First"
        assert merged["comments"] == "from second"

    def test_tags_unioned_across_members(self):
        records = [
            {"spotify": "s1", "tags": ["feed-a"]},
            {"spotify": "s1", "tags": ["feed-b", "feed-a"]},
        ]
        merged = reduce_cluster(cluster_records(records, FIELDS)[0])
        assert merged["tags"] == ["feed-a", "feed-b"]


class TestDeduplicateBatch:
    """Test the cluster-and-reduce helper."""

    def test_scenario_two_listings_one_artist(self):
        records = [
            {"name": "X", "spotify": "s1"},
            {"name": "X", "spotify": "s1", "youtube": "y1"},
        ]
        result = deduplicate_batch(records, FIELDS)
        assert result == [{"name": "X", "spotify": "s1", "youtube": "y1"}]

    def test_input_records_untouched(self):
        records = [{"spotify": "s1"}, {"spotify": "s1", "youtube": "y1"}]
        deduplicate_batch(records, FIELDS)
        assert records[0] == {"spotify": "s1"}
