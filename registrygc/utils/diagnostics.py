"""Observers for garbage collection progress and decisions.

The mark and sweep code reports what it does through a Diagnostics instance.
The default LoggingDiagnostics writes a line-oriented trace through logging;
its text is for humans and may change.
"""

import logging
from typing import Any, List, Tuple


logger = logging.getLogger('registrygc.gc')


class Diagnostics:
    """No-op observer; subclasses override the events they care about."""

    def repository(self, name: str):
        pass

    def manifest_marked(self, repository: str, digest: str):
        pass

    def blob_marked(self, repository: str, digest: str):
        pass

    def manifest_eligible(self, repository: str, digest: str):
        pass

    def blob_eligible(self, digest: str):
        pass

    def summary(self, marked: int, blobs_eligible: int, manifests_eligible: int):
        pass

    def sweep_started(self, total: int):
        pass

    def manifest_removed(self, repository: str, digest: str):
        pass

    def blob_removed(self, digest: str):
        pass


class LoggingDiagnostics(Diagnostics):
    """Emits one log line per event."""

    def __init__(self, log: logging.Logger = logger):
        self.log = log

    def repository(self, name: str):
        self.log.info(name)

    def manifest_marked(self, repository: str, digest: str):
        self.log.info(f"{repository}: marking manifest {digest}")

    def blob_marked(self, repository: str, digest: str):
        self.log.info(f"{repository}: marking blob {digest}")

    def manifest_eligible(self, repository: str, digest: str):
        self.log.info(f"manifest eligible for deletion: {digest}")

    def blob_eligible(self, digest: str):
        self.log.info(f"blob eligible for deletion: {digest}")

    def summary(self, marked: int, blobs_eligible: int, manifests_eligible: int):
        self.log.info(
            f"{marked} blobs marked, {blobs_eligible} blobs and "
            f"{manifests_eligible} manifests eligible for deletion"
        )

    def manifest_removed(self, repository: str, digest: str):
        self.log.info(f"{repository}: deleted manifest {digest}")

    def blob_removed(self, digest: str):
        self.log.info(f"deleted blob {digest}")


class RecordingDiagnostics(Diagnostics):
    """Collects events as (name, args) tuples."""

    def __init__(self):
        self.events: List[Tuple[str, Tuple[Any, ...]]] = []

    def _record(self, event: str, *args):
        self.events.append((event, args))

    def of(self, event: str) -> List[Tuple[Any, ...]]:
        """Return the arguments of every recorded event with this name."""
        return [args for name, args in self.events if name == event]

    def repository(self, name):
        self._record('repository', name)

    def manifest_marked(self, repository, digest):
        self._record('manifest_marked', repository, digest)

    def blob_marked(self, repository, digest):
        self._record('blob_marked', repository, digest)

    def manifest_eligible(self, repository, digest):
        self._record('manifest_eligible', repository, digest)

    def blob_eligible(self, digest):
        self._record('blob_eligible', digest)

    def summary(self, marked, blobs_eligible, manifests_eligible):
        self._record('summary', marked, blobs_eligible, manifests_eligible)

    def sweep_started(self, total):
        self._record('sweep_started', total)

    def manifest_removed(self, repository, digest):
        self._record('manifest_removed', repository, digest)

    def blob_removed(self, digest):
        self._record('blob_removed', digest)
