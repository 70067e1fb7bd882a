"""Progress reporting utilities."""

import sys
from typing import Optional
from tqdm import tqdm

from .diagnostics import Diagnostics


class ProgressReporter:
    """Progress reporting for long-running operations."""

    def __init__(self, total: int, description: str = "Processing", unit: str = "items"):
        self.total = total
        self.description = description
        self.unit = unit
        self.progress_bar = None
        self.manifests = 0
        self.blobs = 0

    def start(self):
        """Start progress reporting."""
        self.progress_bar = tqdm(
            total=self.total,
            desc=self.description,
            unit=self.unit,
            file=sys.stderr
        )

    def update(self, kind: str):
        """Count one finished deletion of the given kind."""
        if self.progress_bar:
            if kind == 'manifest':
                self.manifests += 1
            else:
                self.blobs += 1

            self.progress_bar.set_postfix({
                'manifests': self.manifests,
                'blobs': self.blobs
            })
            self.progress_bar.update(1)

    def finish(self):
        """Finish progress reporting."""
        if self.progress_bar:
            self.progress_bar.close()
            self.progress_bar = None

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.finish()


class ProgressDiagnostics(Diagnostics):
    """Shows a progress bar over the sweep and forwards every event to delegate."""

    def __init__(self, delegate: Optional[Diagnostics] = None, description: str = "Sweeping"):
        self.delegate = delegate or Diagnostics()
        self.description = description
        self.reporter: Optional[ProgressReporter] = None
        self.remaining = 0

    def repository(self, name):
        self.delegate.repository(name)

    def manifest_marked(self, repository, digest):
        self.delegate.manifest_marked(repository, digest)

    def blob_marked(self, repository, digest):
        self.delegate.blob_marked(repository, digest)

    def manifest_eligible(self, repository, digest):
        self.delegate.manifest_eligible(repository, digest)

    def blob_eligible(self, digest):
        self.delegate.blob_eligible(digest)

    def summary(self, marked, blobs_eligible, manifests_eligible):
        self.delegate.summary(marked, blobs_eligible, manifests_eligible)

    def sweep_started(self, total):
        self.delegate.sweep_started(total)
        self.remaining = total
        if total:
            self.reporter = ProgressReporter(total, self.description, unit="objects")
            self.reporter.start()

    def manifest_removed(self, repository, digest):
        self.delegate.manifest_removed(repository, digest)
        self._advance('manifest')

    def blob_removed(self, digest):
        self.delegate.blob_removed(digest)
        self._advance('blob')

    def _advance(self, kind: str):
        if self.reporter is None:
            return
        self.reporter.update(kind)
        self.remaining -= 1
        if self.remaining <= 0:
            self.close()

    def close(self):
        """Close the progress bar if it is still open."""
        if self.reporter is not None:
            self.reporter.finish()
            self.reporter = None
