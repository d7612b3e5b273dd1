"""Tests for artist_catalog.resolve.resolver (the resolution orchestrator)."""

import pytest
from conftest import SPOTIFY, TODAY, YOUTUBE, make_artist

from artist_catalog.errors import AmbiguousMatchWarning, IdentityCollisionWarning
from artist_catalog.resolve.models import PROVENANCE_TAGS, CorpusEntry
from artist_catalog.resolve.resolver import resolve
from artist_catalog.sources import parse_csv_blocklist


def _run(incoming, corpus, schema, validator, **kwargs):
    kwargs.setdefault("today", TODAY)
    return resolve(
        incoming,
        corpus,
        schema.identity_fields,
        validator,
        allowed_tags=schema.allowed_tags,
        template=schema.template(TODAY),
        **kwargs,
    )


def _apply(corpus: list[CorpusEntry], report) -> list[CorpusEntry]:
    """Corpus as it would look after persisting a report."""
    by_handle = {o.handle: o.record for o in report.modified}
    updated = [
        CorpusEntry(record=by_handle.get(e.handle, e.record), handle=e.handle)
        for e in corpus
    ]
    updated += [CorpusEntry(record=o.record, handle=f"{o.identifier}.json") for o in report.created]
    return updated


class TestScenarios:
    """End-to-end behaviour on small batches."""

    def test_duplicates_in_batch_create_one_record(self, schema, validator):
        incoming = [
            {"name": "X", "spotify": SPOTIFY.format("s1")},
            {"name": "X", "spotify": SPOTIFY.format("s1"), "youtube": YOUTUBE.format("y1")},
        ]
        report = _run(incoming, [], schema, validator)

        assert report.clusters == 1
        assert report.created_count == 1
        created = report.created[0].record
        assert created["spotify"] == SPOTIFY.format("s1")
        assert created["youtube"] == YOUTUBE.format("y1")
        assert created["tags"] == ["external"]
        assert created["id"] == "x"
        assert created["dateAdded"] == TODAY.isoformat()
        assert created["dateUpdated"] is None
        assert report.created[0].members == 2

    def test_fills_empty_field_on_existing_record(self, schema, validator):
        corpus = [CorpusEntry(record=make_artist("x", "X", spotify=SPOTIFY.format("s1")), handle="x.json")]
        incoming = [{"spotify": SPOTIFY.format("s1"), "comments": "new info"}]

        report = _run(incoming, corpus, schema, validator)

        assert report.modified_count == 1
        outcome = report.modified[0]
        assert outcome.handle == "x.json"
        assert outcome.record["comments"] == "new info"
        assert "external-modified" in outcome.record["tags"]
        assert outcome.record["dateUpdated"] == TODAY.isoformat()
        assert report.created_count == 0

    def test_nothing_new_is_a_no_op(self, schema, validator):
        corpus = [
            CorpusEntry(
                record=make_artist("x", "X", spotify=SPOTIFY.format("s1"), comments="already present"),
                handle="x.json",
            )
        ]
        report = _run([{"spotify": SPOTIFY.format("s1")}], corpus, schema, validator)

        assert report.modified_count == 0
        assert report.created_count == 0
        assert report.unchanged == 1

    def test_missing_name_rejected_run_continues(self, schema, validator):
        incoming = [
            {"spotify": SPOTIFY.format("nameless")},
            {"name": "Has Name", "spotify": SPOTIFY.format("named")},
        ]
        report = _run(incoming, [], schema, validator)

        assert report.rejected_count == 1
        rejected = report.rejected[0]
        assert any(e.startswith("name:") or "'name'" in e for e in rejected.errors)
        assert report.created_count == 1
        assert report.created[0].record["name"] == "Has Name"

    def test_identity_collision_first_registered_wins(self, schema, validator):
        corpus = [
            CorpusEntry(record=make_artist("first", "First", spotify=SPOTIFY.format("dup")), handle="first.json"),
            CorpusEntry(record=make_artist("second", "Second", spotify=SPOTIFY.format("dup")), handle="second.json"),
        ]
        incoming = [{"spotify": SPOTIFY.format("dup"), "comments": "hello"}]

        with pytest.warns(IdentityCollisionWarning):
            report = _run(incoming, corpus, schema, validator)

        assert report.modified_count == 1
        assert report.modified[0].identifier == "first"
        assert len(report.collisions) == 1


class TestProvenance:
    """Provenance tag stamping."""

    def test_already_external_record_not_escalated(self, schema, validator, sample_corpus):
        incoming = [{"spotify": SPOTIFY.format("pm1"), "comments": "more"}]
        report = _run(incoming, sample_corpus, schema, validator)

        tags = report.modified[0].record["tags"]
        assert tags == ["external"]

    def test_external_modified_added_once(self, schema, validator):
        corpus = [
            CorpusEntry(
                record=make_artist("x", "X", spotify=SPOTIFY.format("s1"), tags=["external-modified"]),
                handle="x.json",
            )
        ]
        report = _run([{"spotify": SPOTIFY.format("s1"), "comments": "c"}], corpus, schema, validator)
        assert report.modified[0].record["tags"] == ["external-modified"]

    def test_new_record_unknown_tags_filtered(self, schema, validator):
        incoming = [{"name": "Y", "spotify": SPOTIFY.format("y"), "tags": ["ai-vocals", "some/feed"]}]
        report = _run(incoming, [], schema, validator)

        assert report.created[0].record["tags"] == ["ai-vocals", "external"]

    def test_unknown_feed_tag_alone_is_not_a_change(self, schema, validator, sample_corpus):
        incoming = [{"spotify": SPOTIFY.format("ve1"), "tags": ["owner/blocklist"]}]
        report = _run(incoming, sample_corpus, schema, validator)

        assert report.modified_count == 0
        assert report.unchanged == 1

    def test_modified_record_drops_unknown_feed_tag(self, schema, validator, sample_corpus):
        incoming = [{"spotify": SPOTIFY.format("ve1"), "comments": "c", "tags": ["owner/blocklist", "ai-artwork"]}]
        report = _run(incoming, sample_corpus, schema, validator)

        tags = report.modified[0].record["tags"]
        assert tags == ["ai-vocals", "ai-artwork", "external-modified"]

    def test_feed_provenance_tag_not_copied_onto_first_party_record(self, schema, validator, sample_corpus):
        incoming = [{"spotify": SPOTIFY.format("ve1"), "comments": "c", "tags": ["external"]}]
        report = _run(incoming, sample_corpus, schema, validator)

        assert report.modified[0].record["tags"] == ["ai-vocals", "external-modified"]

    def test_schema_provenance_tags_respected(self, schema, validator):
        corpus = [
            CorpusEntry(
                record=make_artist("x", "X", spotify=SPOTIFY.format("s1"), tags=["external"]),
                handle="x.json",
            )
        ]
        report = _run(
            [{"spotify": SPOTIFY.format("s1"), "comments": "c"}],
            corpus,
            schema,
            validator,
            provenance_tags=["external-modified"],
        )
        assert report.modified[0].record["tags"] == ["external", "external-modified"]

    def test_no_enumeration_keeps_feed_tags(self, schema, validator):
        incoming = [{"name": "Y", "spotify": SPOTIFY.format("y"), "tags": ["some/feed"]}]
        report = resolve(
            incoming, [], schema.identity_fields, validator,
            template=schema.template(TODAY), today=TODAY,
        )
        assert report.created[0].record["tags"] == ["some/feed", "external"]

    def test_every_output_with_unknown_tag_has_provenance(self, schema, validator, sample_corpus):
        incoming = [
            {"spotify": SPOTIFY.format("ve1"), "tags": ["feed"]},
            {"youtube": YOUTUBE.format("neondrift"), "tags": ["feed"]},
            {"name": "Brand New", "spotify": SPOTIFY.format("bn"), "tags": ["feed"]},
        ]
        report = _run(incoming, sample_corpus, schema, validator)
        allowed = set(schema.allowed_tags)

        for outcome in report.created + report.modified:
            tags = outcome.record["tags"]
            if any(t not in allowed for t in tags):
                assert any(t in PROVENANCE_TAGS for t in tags)


class TestIdentifiers:
    """Id minting for new records."""

    def test_slug_collision_gets_suffix(self, schema, validator, sample_corpus):
        incoming = [{"name": "Velvet Echo", "spotify": SPOTIFY.format("other")}]
        report = _run(incoming, sample_corpus, schema, validator, id_suffix=lambda: "abc123")

        assert report.created[0].identifier == "velvet-echo-abc123"

    def test_ids_unique_within_run(self, schema, validator):
        suffixes = iter(["aaa", "bbb"])
        incoming = [
            {"name": "Twin", "spotify": SPOTIFY.format("t1")},
            {"name": "Twin", "spotify": SPOTIFY.format("t2")},
            {"name": "Twin", "spotify": SPOTIFY.format("t3")},
        ]
        report = _run(incoming, [], schema, validator, id_suffix=lambda: next(suffixes))

        assert [o.identifier for o in report.created] == ["twin", "twin-aaa", "twin-bbb"]

    def test_unicode_name_slug(self, schema, validator):
        report = _run([{"name": "Café Noir!", "spotify": SPOTIFY.format("cn")}], [], schema, validator)
        assert report.created[0].identifier == "cafe-noir"


class TestRunProperties:
    """Whole-run invariants."""

    def test_second_run_is_idempotent(self, schema, validator, sample_corpus):
        incoming = [
            {"name": "Velvet Echo", "spotify": SPOTIFY.format("ve1"), "comments": "seen in feed", "tags": ["feed"]},
            {"name": "Fresh Face", "spotify": SPOTIFY.format("ff1")},
            {"name": "Fresh Face", "spotify": SPOTIFY.format("ff1"), "youtube": YOUTUBE.format("ff")},
        ]
        first = _run(incoming, sample_corpus, schema, validator)
        assert first.created_count == 1
        assert first.modified_count == 1

        second = _run(incoming, _apply(sample_corpus, first), schema, validator)
        assert second.created_count == 0
        assert second.modified_count == 0
        assert second.unchanged == 2

    def test_source_tagged_feed_second_run_is_no_op(self, schema, validator):
        """A feed carrying its own origin tag settles after one run."""
        incoming = parse_csv_blocklist("artist,id\nSolo,abc\n", source_tag="CennoxX/spotify-ai-blocker")
        first = _run(incoming, [], schema, validator)
        assert first.created_count == 1
        assert first.created[0].record["tags"] == ["external"]

        second = _run(incoming, _apply([], first), schema, validator)
        assert second.created_count == 0
        assert second.modified_count == 0
        assert second.unchanged == 1

    def test_non_string_corpus_ids_in_collision(self, schema, validator):
        corpus = [
            make_artist("first", "First", spotify=SPOTIFY.format("dup")),
            make_artist("second", "Second", spotify=SPOTIFY.format("dup")),
        ]
        corpus[0]["id"], corpus[1]["id"] = 1, 2

        with pytest.warns(IdentityCollisionWarning):
            report = _run([{"spotify": SPOTIFY.format("dup"), "comments": "c"}], corpus, schema, validator)

        assert (report.collisions[0].kept, report.collisions[0].ignored) == ("1", "2")
        assert report.modified_count + report.rejected_count == 1

    def test_non_string_name_in_ambiguous_match(self, schema, validator, sample_corpus):
        incoming = [{"name": 7, "spotify": SPOTIFY.format("ve1"), "youtube": YOUTUBE.format("neondrift")}]
        with pytest.warns(AmbiguousMatchWarning):
            report = _run(incoming, sample_corpus, schema, validator)

        assert report.ambiguous_matches[0].name == "7"
        assert report.modified[0].identifier == "velvet-echo"

    def test_populated_corpus_fields_never_overwritten(self, schema, validator, sample_corpus):
        incoming = [{"name": "Renamed", "spotify": SPOTIFY.format("ve1"), "youtube": YOUTUBE.format("ve")}]
        report = _run(incoming, sample_corpus, schema, validator)

        record = report.modified[0].record
        assert record["name"] == "Velvet Echo"
        assert record["id"] == "velvet-echo"
        assert record["youtube"] == YOUTUBE.format("ve")

    def test_corpus_records_not_mutated(self, schema, validator, sample_corpus):
        before = [dict(e.record) for e in sample_corpus]
        _run([{"spotify": SPOTIFY.format("ve1"), "comments": "x"}], sample_corpus, schema, validator)
        assert [e.record for e in sample_corpus] == before

    def test_validation_failure_on_merge_rejects(self, schema, sample_corpus):
        def strict(record):
            return ["comments: not allowed"] if record.get("comments") else []

        report = _run([{"spotify": SPOTIFY.format("ve1"), "comments": "x"}], sample_corpus, schema, strict)
        assert report.modified_count == 0
        assert report.rejected[0].handle == "velvet-echo.json"
        assert report.rejected[0].errors == ["comments: not allowed"]

    def test_non_mapping_records_reported(self, schema, validator):
        report = _run(["not a record", None, {"name": "Ok", "spotify": SPOTIFY.format("ok")}], [], schema, validator)
        assert len(report.parse_errors) == 2
        assert report.created_count == 1
        assert report.incoming == 3

    def test_ambiguous_cluster_warns(self, schema, validator, sample_corpus):
        incoming = [{"spotify": SPOTIFY.format("ve1"), "youtube": YOUTUBE.format("neondrift"), "comments": "c"}]
        with pytest.warns(AmbiguousMatchWarning):
            report = _run(incoming, sample_corpus, schema, validator)

        assert report.modified[0].identifier == "velvet-echo"
        assert len(report.ambiguous_matches) == 1

    def test_two_clusters_hitting_same_record_emit_one_outcome(self, schema, validator):
        corpus = [
            CorpusEntry(
                record=make_artist("x", "X", spotify=SPOTIFY.format("s1"), youtube=YOUTUBE.format("y1")),
                handle="x.json",
            )
        ]
        incoming = [
            {"spotify": SPOTIFY.format("s1"), "comments": "first"},
            {"youtube": YOUTUBE.format("y1"), "instagram": "https://www.instagram.com/x"},
        ]
        report = _run(incoming, corpus, schema, validator)

        assert report.clusters == 2
        assert report.modified_count == 1
        outcome = report.modified[0]
        assert outcome.members == 2
        assert outcome.record["comments"] == "first"
        assert outcome.record["instagram"] == "https://www.instagram.com/x"
        assert outcome.record["tags"] == ["external-modified"]

    def test_bare_dict_corpus_accepted(self, schema, validator):
        corpus = [make_artist("x", "X", spotify=SPOTIFY.format("s1"))]
        report = _run([{"spotify": SPOTIFY.format("s1"), "comments": "c"}], corpus, schema, validator)
        assert report.modified_count == 1
        assert report.modified[0].handle is None

    def test_summary_counts(self, schema, validator, sample_corpus):
        report = _run([{"name": "N", "spotify": SPOTIFY.format("n")}], sample_corpus, schema, validator)
        summary = report.summary()
        assert summary["created"] == 1
        assert summary["incoming"] == 1
        assert report.created_ids == {"n"}


class TestReportIO:
    """Test YAML persistence of resolution reports."""

    def test_roundtrip(self, schema, validator, sample_corpus, tmp_dir):
        from artist_catalog.resolve.io import read_report, write_report

        incoming = [
            {"name": "Fresh", "spotify": SPOTIFY.format("fresh")},
            {"spotify": SPOTIFY.format("ve1"), "comments": "c"},
            {"spotify": SPOTIFY.format("nameless")},
        ]
        report = _run(incoming, sample_corpus, schema, validator)
        path = tmp_dir / "reports" / "import.yaml"
        write_report(report, path)

        loaded = read_report(path)
        assert loaded.created_ids == report.created_ids
        assert loaded.modified_ids == report.modified_ids
        assert loaded.rejected[0].errors == report.rejected[0].errors
        assert loaded.modified[0].handle == "velvet-echo.json"

    def test_missing_file_is_empty_report(self, tmp_dir):
        from artist_catalog.resolve.io import read_report

        assert read_report(tmp_dir / "none.yaml").created_count == 0
