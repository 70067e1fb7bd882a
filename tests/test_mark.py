"""
Tests for the mark phase.

Covers reachability through tags and manifest lists, the untagged deletion
rule, and how repository walk failures are classified.
"""

import pytest
from unittest.mock import Mock

from registrygc.errors import (
    ConfigurationError,
    InvalidRepositoryNameError,
    ManifestFormatError,
    MarkError,
    OperationCancelled,
    PathNotFoundError,
)
from registrygc.models.digest import Digest
from registrygc.models.gc import GCOptions
from registrygc.models.manifest import Descriptor, ImageManifest
from registrygc.operations.mark import mark
from registrygc.storage import paths


REMOVE_UNTAGGED = GCOptions(dry_run=False, remove_untagged=True)


class TestReachability:
    """Marking through tags and manifest lists"""

    def test_tagged_manifest_marks_its_references(self, ctx, builder, registry):
        m1, blobs = builder.image("app", b'{"config": "m1"}', [b"layer-1", b"layer-2"])
        builder.tag("app", "latest", m1)

        result = mark(ctx, registry, REMOVE_UNTAGGED)

        assert result.mark_set >= {m1, *blobs}
        assert result.candidates == []

    def test_untagged_child_of_tagged_list_is_marked(self, ctx, builder, registry):
        m1, m1_blobs = builder.image("app", b'{"config": "m1"}', [b"layer-1", b"layer-2"])
        m2, m2_blobs = builder.image("app", b'{"config": "m2"}', [b"layer-3"])
        index = builder.index("app", [m1, m2])
        builder.tag("app", "latest", m1)
        builder.tag("app", "multi", index)

        result = mark(ctx, registry, REMOVE_UNTAGGED)

        assert result.mark_set >= {m1, m2, index, *m1_blobs, *m2_blobs}
        assert result.candidates == []

    def test_untagged_list_and_untagged_child_are_candidates(self, ctx, builder, registry):
        m2, m2_blobs = builder.image("app", b'{"config": "m2"}', [b"layer-3"])
        index = builder.index("app", [m2])

        result = mark(ctx, registry, REMOVE_UNTAGGED)

        assert {c.digest for c in result.candidates} == {m2, index}
        assert m2 not in result.mark_set
        assert index not in result.mark_set
        assert not set(m2_blobs) & result.mark_set

    def test_untagged_manifest_is_marked_when_not_removing_untagged(self, ctx, builder, registry):
        m1, blobs = builder.image("app", b'{"config": "m1"}', [b"layer-1"])

        result = mark(ctx, registry, GCOptions(remove_untagged=False))

        assert result.candidates == []
        assert result.mark_set >= {m1, *blobs}

    def test_child_of_tagged_and_untagged_lists_is_kept(self, ctx, builder, registry):
        m2, m2_blobs = builder.image("app", b'{"config": "shared"}', [b"layer-shared"])
        tagged_index = builder.index("app", [m2])
        untagged_index = builder.index("app", [m2, Digest.from_bytes(b"other-platform")])
        builder.tag("app", "multi", tagged_index)

        result = mark(ctx, registry, REMOVE_UNTAGGED)

        candidates = {c.digest for c in result.candidates}
        assert m2 not in candidates
        assert untagged_index in candidates
        assert result.mark_set >= {m2, tagged_index, *m2_blobs}

    def test_missing_child_manifest_is_skipped(self, ctx, builder, registry):
        m1, blobs = builder.image("app", b'{"config": "m1"}', [b"layer-1"])
        missing = Digest.from_bytes(b"never pushed")
        index = builder.index("app", [m1, missing])
        builder.tag("app", "latest", index)

        result = mark(ctx, registry, REMOVE_UNTAGGED)

        assert result.mark_set >= {index, m1, missing, *blobs}
        assert result.candidates == []

    def test_nested_index_keeps_grandchildren(self, ctx, builder, registry):
        m1, m1_blobs = builder.image("app", b'{"config": "m1"}', [b"layer-1"])
        inner = builder.index("app", [m1])
        outer = builder.index("app", [inner])
        builder.tag("app", "latest", outer)

        result = mark(ctx, registry, REMOVE_UNTAGGED)

        assert result.candidates == []
        assert result.mark_set >= {outer, inner, m1, *m1_blobs}

    def test_untagged_nested_index_is_deleted_whole(self, ctx, builder, registry):
        m1, m1_blobs = builder.image("app", b'{"config": "m1"}', [b"layer-1"])
        inner = builder.index("app", [m1])
        outer = builder.index("app", [inner])

        result = mark(ctx, registry, REMOVE_UNTAGGED)

        assert {c.digest for c in result.candidates} == {outer, inner, m1}
        assert not {outer, inner, m1, *m1_blobs} & result.mark_set

    def test_unstored_child_of_untagged_list_is_not_a_candidate(self, ctx, builder, registry):
        missing = Digest.from_bytes(b"never pushed")
        index = builder.index("app", [missing])

        result = mark(ctx, registry, REMOVE_UNTAGGED)

        assert [c.digest for c in result.candidates] == [index]
        assert missing not in result.mark_set

    def test_mark_set_spans_repositories(self, ctx, builder, registry):
        m1, blobs_a = builder.image("team/a", b'{"config": "a"}', [b"layer-a"])
        m2, blobs_b = builder.image("team/b", b'{"config": "b"}', [b"layer-b"])
        builder.tag("team/a", "v1", m1)
        builder.tag("team/b", "v1", m2)

        result = mark(ctx, registry, REMOVE_UNTAGGED)

        assert result.mark_set >= {m1, m2, *blobs_a, *blobs_b}


class TestDeletionCandidates:
    """Tag snapshots attached to deletion candidates"""

    def test_candidates_carry_repository_tags(self, ctx, builder, registry):
        m1, _ = builder.image("app", b'{"config": "m1"}', [b"layer-1"])
        m2, _ = builder.image("app", b'{"config": "m2"}', [b"layer-2"])
        builder.tag("app", "latest", m1)
        builder.tag("app", "stable", m1)

        result = mark(ctx, registry, REMOVE_UNTAGGED)

        assert len(result.candidates) == 1
        candidate = result.candidates[0]
        assert candidate.name == "app"
        assert candidate.digest == m2
        assert candidate.tags == ["latest", "stable"]

    def test_dry_run_does_not_snapshot_tags(self, ctx, builder, registry):
        m1, _ = builder.image("app", b'{"config": "m1"}', [b"layer-1"])
        m2, _ = builder.image("app", b'{"config": "m2"}', [b"layer-2"])
        builder.tag("app", "latest", m1)

        result = mark(ctx, registry, GCOptions(dry_run=True, remove_untagged=True))

        assert [c.digest for c in result.candidates] == [m2]
        assert result.candidates[0].tags == []

    def test_repository_without_tags_yields_empty_snapshot(self, ctx, builder, registry):
        m1, _ = builder.image("app", b'{"config": "m1"}', [b"layer-1"])

        result = mark(ctx, registry, REMOVE_UNTAGGED)

        assert [c.digest for c in result.candidates] == [m1]
        assert result.candidates[0].tags == []

    def test_diagnostics_report_decisions(self, ctx, builder, registry, diagnostics):
        m1, blobs = builder.image("app", b'{"config": "m1"}', [b"layer-1"])
        m2, _ = builder.image("app", b'{"config": "m2"}', [b"layer-2"])
        builder.tag("app", "latest", m1)

        mark(ctx, registry, REMOVE_UNTAGGED, diagnostics)

        assert diagnostics.of("repository") == [("app",)]
        assert diagnostics.of("manifest_marked") == [("app", m1)]
        assert diagnostics.of("manifest_eligible") == [("app", m2)]
        assert {args[1] for args in diagnostics.of("blob_marked")} == set(blobs)


class TestWalkFailures:
    """Classification of errors raised while walking repositories"""

    @staticmethod
    def _namespace_with(manifest_service, tags=("latest",)):
        repository = Mock()
        repository.manifests.return_value = manifest_service
        repository.tags.return_value.lookup.return_value = list(tags)
        repository.tags.return_value.all.return_value = list(tags)

        namespace = Mock()
        namespace.repository.return_value = repository
        namespace.repository_enumerator.return_value.enumerate.side_effect = (
            lambda ctx, visit: visit("app")
        )
        return namespace

    def test_path_not_found_keeps_collected_manifests(self, ctx):
        m1 = Digest.from_bytes(b"m1")
        config, layer = Digest.from_bytes(b"config"), Digest.from_bytes(b"layer")

        def enumerate_then_vanish(ctx, visit):
            visit(m1)
            raise PathNotFoundError("/docker/registry/v2/repositories/app/_manifests/revisions")

        manifest_service = Mock()
        manifest_service.enumerator.return_value = manifest_service
        manifest_service.enumerate.side_effect = enumerate_then_vanish
        manifest_service.get.return_value = ImageManifest(Descriptor(config), [Descriptor(layer)])

        result = mark(ctx, self._namespace_with(manifest_service), REMOVE_UNTAGGED)

        assert result.mark_set == {m1, config, layer}

    def test_repository_without_revisions_is_skipped(self, ctx, builder, driver, registry):
        driver.put_content(ctx, f"{paths.manifests_path('broken')}/tags/old/current/link", b"")
        m1, blobs = builder.image("app", b'{"config": "m1"}', [b"layer-1"])
        builder.tag("app", "latest", m1)

        result = mark(ctx, registry, REMOVE_UNTAGGED)

        assert result.mark_set >= {m1, *blobs}

    def test_other_fetch_failure_aborts_with_repository_name(self, ctx, builder, driver, registry):
        bogus = builder.blob(b"not a manifest")
        driver.put_content(ctx, paths.manifest_revision_link_path("app", bogus), bogus.encode())

        with pytest.raises(MarkError) as exc_info:
            mark(ctx, registry, REMOVE_UNTAGGED)

        assert exc_info.value.repository == "app"
        assert isinstance(exc_info.value.__cause__, ManifestFormatError)

    def test_second_fetch_failure_aborts(self, ctx):
        m1 = Digest.from_bytes(b"m1")
        manifest_service = Mock()
        manifest_service.enumerator.return_value = manifest_service
        manifest_service.enumerate.side_effect = lambda ctx, visit: visit(m1)
        manifest_service.get.side_effect = [
            ImageManifest(Descriptor(Digest.from_bytes(b"config")), []),
            IOError("disk on fire"),
        ]

        with pytest.raises(MarkError, match="mark failed to retrieve manifest"):
            mark(ctx, self._namespace_with(manifest_service), REMOVE_UNTAGGED)

    def test_invalid_repository_name_aborts(self, ctx, builder, driver, registry):
        driver.put_content(ctx, f"{paths.REPOSITORIES_ROOT}/Not-Valid/_manifests/revisions/x", b"")

        with pytest.raises(MarkError) as exc_info:
            mark(ctx, registry, REMOVE_UNTAGGED)

        assert exc_info.value.repository == "Not-Valid"
        assert isinstance(exc_info.value.__cause__, InvalidRepositoryNameError)

    def test_namespace_without_enumerator_is_configuration_error(self, ctx):
        namespace = Mock()
        namespace.repository_enumerator.return_value = None

        with pytest.raises(ConfigurationError):
            mark(ctx, namespace, REMOVE_UNTAGGED)

    def test_cancelled_context_propagates_unwrapped(self, ctx, builder, registry):
        m1, _ = builder.image("app", b'{"config": "m1"}', [b"layer-1"])
        ctx.cancel()

        with pytest.raises(OperationCancelled):
            mark(ctx, registry, REMOVE_UNTAGGED)
