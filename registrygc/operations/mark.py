"""Mark phase of registry garbage collection.

Walks every repository and computes the set of digests reachable from a tag
together with the manifests that can be deleted. A stored manifest becomes a
deletion candidate only when no tagged manifest reaches it, directly or
through nested manifest lists. Children of a kept list stay marked even
without tags of their own.
"""

import logging
from typing import Dict, List, Optional, Set

from ..context import RunContext
from ..errors import (
    ConfigurationError,
    ManifestUnknownRevisionError,
    MarkError,
    OperationCancelled,
    PathNotFoundError,
    RepositoryUnknownError,
)
from ..models.digest import Digest
from ..models.gc import DeletionCandidate, GCOptions, MarkResult
from ..models.manifest import ManifestList
from ..utils.diagnostics import Diagnostics, LoggingDiagnostics


logger = logging.getLogger(__name__)


class MarkPhase:
    """State of one mark pass. Create a new instance per run."""

    def __init__(self, ctx: RunContext, namespace, options: GCOptions,
                 diagnostics: Optional[Diagnostics] = None):
        self.ctx = ctx
        self.namespace = namespace
        self.options = options
        self.diagnostics = diagnostics or LoggingDiagnostics()
        self.result = MarkResult()

    def run(self) -> MarkResult:
        enumerator = self.namespace.repository_enumerator()
        if enumerator is None:
            raise ConfigurationError("unable to convert namespace to a repository enumerator")

        try:
            enumerator.enumerate(self.ctx, self.mark_repository)
        except (ConfigurationError, MarkError, OperationCancelled):
            raise
        except Exception as e:
            raise MarkError(f"failed to mark: {e}") from e

        return self.result

    def mark_repository(self, name: str):
        """Mark one repository, wrapping failures with its name."""
        try:
            self._mark_repository(name)
        except (ConfigurationError, MarkError, OperationCancelled):
            raise
        except Exception as e:
            raise MarkError(f"failed to mark repository {name}: {e}", repository=name) from e

    def _mark_repository(self, name: str):
        self.diagnostics.repository(name)

        repository = self.namespace.repository(self.ctx, name)
        manifest_service = repository.manifests(self.ctx)
        manifest_enumerator = manifest_service.enumerator()
        if manifest_enumerator is None:
            raise ConfigurationError(f"unable to enumerate manifests of repository {name}")
        tag_service = repository.tags(self.ctx)

        # manifest digest -> manifest lists referencing it (itself when none)
        parents: Dict[Digest, List[Digest]] = {}
        untagged: Set[Digest] = set()
        # revisions actually stored in the repository
        present: Set[Digest] = set()

        def visit_manifest(digest: Digest):
            present.add(digest)
            try:
                manifest = manifest_service.get(self.ctx, digest)
            except OperationCancelled:
                raise
            except Exception as e:
                raise MarkError(
                    f"failed to retrieve manifest for digest {digest}: {e}", repository=name
                ) from e

            references = []
            if isinstance(manifest, ManifestList):
                for descriptor in manifest.manifests:
                    self._record_parent(parents, descriptor.digest, digest)
                    references.append(descriptor.digest)
            parents.setdefault(digest, [digest])
            if digest not in untagged:
                references.append(digest)

            if self.options.remove_untagged:
                for reference in references:
                    try:
                        tags = tag_service.lookup(self.ctx, reference)
                    except OperationCancelled:
                        raise
                    except Exception as e:
                        raise MarkError(
                            f"failed to retrieve tags for digest {reference}: {e}", repository=name
                        ) from e
                    if not tags:
                        untagged.add(reference)

        try:
            manifest_enumerator.enumerate(self.ctx, visit_manifest)
        except PathNotFoundError as e:
            # Unfinished uploads or a manually removed _manifests directory.
            # What was collected so far is still marked below.
            logger.info(f"{name}: {e}; continuing with the next repository")

        pending = self._decide(name, manifest_service, parents, untagged, present)

        if not self.options.dry_run and pending:
            all_tags = self._repository_tags(name, tag_service)
            for candidate in pending:
                candidate.tags = list(all_tags)

    @staticmethod
    def _record_parent(parents: Dict[Digest, List[Digest]], child: Digest, parent: Digest):
        current = parents.get(child)
        if current is None or current == [child]:
            parents[child] = [parent]
        elif parent not in current:
            current.append(parent)

    @staticmethod
    def _reachable(parents: Dict[Digest, List[Digest]], untagged: Set[Digest]) -> Set[Digest]:
        """Return the manifests kept by a tag, directly or through nested lists."""
        children: Dict[Digest, List[Digest]] = {}
        for digest, manifest_parents in parents.items():
            for parent in manifest_parents:
                if parent != digest:
                    children.setdefault(parent, []).append(digest)

        kept: Set[Digest] = set()
        stack = [digest for digest in parents if digest not in untagged]
        while stack:
            digest = stack.pop()
            if digest in kept:
                continue
            kept.add(digest)
            stack.extend(children.get(digest, ()))
        return kept

    def _decide(self, name: str, manifest_service, parents: Dict[Digest, List[Digest]],
                untagged: Set[Digest], present: Set[Digest]) -> List[DeletionCandidate]:
        pending = []
        mark_set = self.result.mark_set
        kept = self._reachable(parents, untagged)

        for digest in parents:
            if digest not in kept:
                if digest not in present:
                    logger.debug(f"{name}: manifest {digest} is listed but not stored, nothing to delete")
                    continue
                self.diagnostics.manifest_eligible(name, digest)
                candidate = DeletionCandidate(name=name, digest=digest)
                self.result.candidates.append(candidate)
                pending.append(candidate)
                continue

            self.diagnostics.manifest_marked(name, digest)
            mark_set.add(digest)

            try:
                manifest = manifest_service.get(self.ctx, digest)
            except ManifestUnknownRevisionError:
                logger.debug(f"{name}: manifest {digest} disappeared during mark, skipping")
                continue
            except OperationCancelled:
                raise
            except Exception as e:
                raise MarkError(
                    f"mark failed to retrieve manifest for digest {digest}: {e}", repository=name
                ) from e

            for descriptor in manifest.references():
                mark_set.add(descriptor.digest)
                self.diagnostics.blob_marked(name, descriptor.digest)

        return pending

    def _repository_tags(self, name: str, tag_service) -> List[str]:
        """Snapshot all tags; any of them may still index a deleted manifest."""
        try:
            return tag_service.all(self.ctx)
        except RepositoryUnknownError:
            return []
        except OperationCancelled:
            raise
        except Exception as e:
            raise MarkError(f"failed to retrieve tags for repository {name}: {e}", repository=name) from e


def mark(ctx: RunContext, namespace, options: GCOptions,
         diagnostics: Optional[Diagnostics] = None) -> MarkResult:
    """Compute the mark set and deletion candidates for every repository."""
    return MarkPhase(ctx, namespace, options, diagnostics).run()
