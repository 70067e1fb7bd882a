"""Mark and sweep garbage collection of registry storage."""

import logging
from typing import Any, Dict, List, Optional

from ..config.settings import Config
from ..context import RunContext
from ..errors import MarkError, OperationCancelled
from ..models.digest import Digest
from ..models.gc import GCOptions, GCSummary
from ..storage import create_storage_driver
from ..storage.driver import StorageDriver
from ..storage.registry import Registry
from ..utils.diagnostics import Diagnostics, LoggingDiagnostics
from .mark import mark
from .vacuum import Vacuum


logger = logging.getLogger(__name__)


def mark_and_sweep(ctx: RunContext, driver: StorageDriver, namespace, options: GCOptions,
                   diagnostics: Optional[Diagnostics] = None) -> GCSummary:
    """Mark everything reachable from a tag, then delete the rest.

    Candidate manifests are removed before unreferenced blobs. The run stops
    at the first failure; deletions already made are not rolled back. In dry
    run mode nothing is deleted but the same counts are reported.
    """
    diagnostics = diagnostics or LoggingDiagnostics()

    # Raises ConfigurationError before any work when repositories cannot be enumerated
    result = mark(ctx, namespace, options, diagnostics)
    mark_set = result.mark_set

    delete_set: List[Digest] = []

    def visit_blob(digest: Digest):
        if digest not in mark_set:
            delete_set.append(digest)

    try:
        namespace.blobs().enumerate(ctx, visit_blob)
    except OperationCancelled:
        raise
    except Exception as e:
        raise MarkError(f"error enumerating blobs: {e}") from e

    summary = GCSummary(
        marked=len(mark_set),
        blobs_eligible=len(delete_set),
        manifests_eligible=len(result.candidates),
        dry_run=options.dry_run
    )
    diagnostics.summary(summary.marked, summary.blobs_eligible, summary.manifests_eligible)
    for digest in delete_set:
        diagnostics.blob_eligible(digest)

    if options.dry_run:
        return summary

    vacuum = Vacuum(ctx, driver)
    diagnostics.sweep_started(len(result.candidates) + len(delete_set))

    for candidate in result.candidates:
        vacuum.remove_manifest(candidate.name, candidate.digest, candidate.tags)
        summary.manifests_deleted += 1
        diagnostics.manifest_removed(candidate.name, candidate.digest)

    for digest in delete_set:
        vacuum.remove_blob(digest)
        summary.blobs_deleted += 1
        diagnostics.blob_removed(digest)

    return summary


class GarbageCollectOperation:
    """Runs garbage collection against the storage described by a config."""

    def __init__(self, config: Config):
        self.config = config
        self.driver = create_storage_driver(config)
        self.registry = Registry(self.driver)

    def garbage_collect(self, dry_run: bool = False, remove_untagged: bool = False,
                        ctx: Optional[RunContext] = None,
                        diagnostics: Optional[Diagnostics] = None) -> Dict[str, Any]:
        """Run one full mark and sweep pass."""
        ctx = ctx or RunContext()
        options = GCOptions(dry_run=dry_run, remove_untagged=remove_untagged)
        logger.info(
            f"Starting garbage collection on {self.driver.name} storage "
            f"(dry_run={dry_run}, remove_untagged={remove_untagged})"
        )

        summary = mark_and_sweep(ctx, self.driver, self.registry, options, diagnostics)

        logger.info(
            f"Garbage collection finished: {summary.manifests_deleted} manifests and "
            f"{summary.blobs_deleted} blobs deleted"
        )
        return {
            'driver': self.driver.name,
            'summary': summary
        }
