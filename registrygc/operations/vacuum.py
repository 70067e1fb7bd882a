"""Physical removal of manifests and blobs."""

import logging
from typing import Iterable

from ..context import RunContext
from ..errors import OperationCancelled, PathNotFoundError, SweepError
from ..models.digest import Digest
from ..storage import paths
from ..storage.driver import StorageDriver


logger = logging.getLogger(__name__)


class Vacuum:
    """Removes registry content directly through the storage driver.

    It does not decide what is garbage; callers pass only manifests and
    blobs already proven unreachable.
    """

    def __init__(self, ctx: RunContext, driver: StorageDriver):
        self.ctx = ctx
        self.driver = driver

    def remove_manifest(self, name: str, digest: str, tags: Iterable[str]):
        """Unlink a manifest revision and any tag index entries still naming it."""
        try:
            digest = Digest(digest)
            for tag in tags:
                tag_index_path = paths.manifest_tag_index_entry_path(name, tag, digest)
                try:
                    self.driver.stat(self.ctx, tag_index_path)
                except PathNotFoundError:
                    continue
                logger.info(f"deleting manifest tag reference: {tag_index_path}")
                self.driver.delete(self.ctx, tag_index_path)

            manifest_path = paths.manifest_revision_path(name, digest)
            logger.info(f"deleting manifest: {manifest_path}")
            self.driver.delete(self.ctx, manifest_path)
        except OperationCancelled:
            raise
        except Exception as e:
            raise SweepError(
                f"failed to delete manifest {name}@{digest}: {e}", digest=str(digest), repository=name
            ) from e

    def remove_blob(self, digest: str):
        """Delete a blob from the shared blob store."""
        try:
            digest = Digest(digest)
            blob_path = paths.blob_path(digest)
            logger.info(f"deleting blob: {blob_path}")
            self.driver.delete(self.ctx, blob_path)
        except OperationCancelled:
            raise
        except Exception as e:
            raise SweepError(f"failed to delete blob {digest}: {e}", digest=str(digest)) from e
