"""Garbage collection run data models."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Set

from .digest import Digest


@dataclass(frozen=True)
class GCOptions:
    """Options for a garbage collection run."""
    dry_run: bool = False
    remove_untagged: bool = False


@dataclass
class DeletionCandidate:
    """Manifest slated for deletion together with the repository tag snapshot."""
    name: str
    digest: Digest
    tags: List[str] = field(default_factory=list)


@dataclass
class MarkResult:
    """Output of the mark phase."""
    mark_set: Set[Digest] = field(default_factory=set)
    candidates: List[DeletionCandidate] = field(default_factory=list)


@dataclass
class GCSummary:
    """Summary information for a garbage collection run."""
    marked: int
    blobs_eligible: int
    manifests_eligible: int
    dry_run: bool
    manifests_deleted: int = 0
    blobs_deleted: int = 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "DryRun": self.dry_run,
            "Marked": self.marked,
            "BlobsEligible": self.blobs_eligible,
            "ManifestsEligible": self.manifests_eligible,
            "ManifestsDeleted": self.manifests_deleted,
            "BlobsDeleted": self.blobs_deleted
        }
