"""Registry backend over a storage driver.

Exposes repositories, manifests, tags and blobs laid out the way the Docker
distribution registry stores them (see storage.paths).
"""

import logging
from typing import Any, Callable, List, Optional

from ..context import RunContext
from ..errors import (
    ManifestUnknownRevisionError,
    PathNotFoundError,
    RepositoryUnknownError,
)
from ..models.digest import Digest
from ..models.manifest import parse_manifest
from ..models.namespace import parse_repository_name
from . import paths
from .driver import FileInfo, StorageDriver


logger = logging.getLogger(__name__)


def _basename(path: str) -> str:
    return path.rstrip('/').rsplit('/', 1)[-1]


class Registry:
    """Namespace holding every repository and the shared blob store."""

    def __init__(self, driver: StorageDriver):
        self.driver = driver

    def repository_enumerator(self) -> Optional['RepositoryEnumerator']:
        return RepositoryEnumerator(self.driver)

    def repository(self, ctx: RunContext, name: str) -> 'Repository':
        return Repository(self.driver, parse_repository_name(name))

    def blobs(self) -> 'BlobStore':
        return BlobStore(self.driver)


class RepositoryEnumerator:
    """Yields the name of every repository holding a _manifests directory."""

    def __init__(self, driver: StorageDriver):
        self.driver = driver

    def enumerate(self, ctx: RunContext, visit: Callable[[str], Any]):
        root = paths.REPOSITORIES_ROOT

        def _visit(info: FileInfo) -> bool:
            if not info.is_dir:
                return True
            directory = _basename(info.path)
            if directory.startswith('_'):
                if directory == '_manifests':
                    repository_dir = info.path[len(root) + 1:].rsplit('/', 1)[0]
                    visit(repository_dir)
                return False
            return True

        try:
            self.driver.stat(ctx, root)
        except PathNotFoundError:
            logger.debug(f"No repositories found under {root}")
            return

        self.driver.walk(ctx, root, _visit)


class Repository:
    """A named collection of manifests and tags."""

    def __init__(self, driver: StorageDriver, name: str):
        self.driver = driver
        self.name = name

    def manifests(self, ctx: RunContext) -> 'ManifestStore':
        return ManifestStore(self.driver, self.name)

    def tags(self, ctx: RunContext) -> 'TagStore':
        return TagStore(self.driver, self.name)

    def link_blob(self, ctx: RunContext, digest: Digest):
        """Record that this repository references a blob."""
        self.driver.put_content(ctx, paths.layer_link_path(self.name, digest), digest.encode('utf-8'))


class ManifestStore:
    """Manifest revisions of one repository."""

    def __init__(self, driver: StorageDriver, name: str):
        self.driver = driver
        self.name = name
        self.blob_store = BlobStore(driver)

    def enumerator(self) -> Optional['ManifestStore']:
        return self

    def enumerate(self, ctx: RunContext, visit: Callable[[Digest], Any]):
        """Visit the digest of every manifest revision in the repository.

        Raises PathNotFoundError when the repository has no revisions directory.
        """
        revisions_root = f"{paths.manifests_path(self.name)}/revisions"
        for algorithm_dir in self.driver.list(ctx, revisions_root):
            algorithm = _basename(algorithm_dir)
            for revision_dir in self.driver.list(ctx, algorithm_dir):
                visit(Digest(f"{algorithm}:{_basename(revision_dir)}"))

    def exists(self, ctx: RunContext, digest: Digest) -> bool:
        try:
            self.driver.stat(ctx, paths.manifest_revision_link_path(self.name, digest))
            return True
        except PathNotFoundError:
            return False

    def get(self, ctx: RunContext, digest: Digest):
        """Fetch and decode a manifest revision."""
        digest = Digest(digest)
        try:
            link = self.driver.get_content(ctx, paths.manifest_revision_link_path(self.name, digest))
            payload = self.blob_store.get(ctx, Digest(link.decode('utf-8').strip()))
        except PathNotFoundError:
            raise ManifestUnknownRevisionError(self.name, digest)
        return parse_manifest(payload)

    def put(self, ctx: RunContext, payload: bytes) -> Digest:
        """Store a manifest payload and link it into the repository."""
        parse_manifest(payload)
        digest = self.blob_store.put(ctx, payload)
        self.driver.put_content(
            ctx, paths.manifest_revision_link_path(self.name, digest), digest.encode('utf-8')
        )
        return digest


class TagStore:
    """Tags of one repository."""

    def __init__(self, driver: StorageDriver, name: str):
        self.driver = driver
        self.name = name

    def all(self, ctx: RunContext) -> List[str]:
        """Return every tag name in the repository."""
        try:
            tag_dirs = self.driver.list(ctx, paths.manifest_tags_path(self.name))
        except PathNotFoundError:
            raise RepositoryUnknownError(self.name)
        return [_basename(tag_dir) for tag_dir in tag_dirs]

    def get(self, ctx: RunContext, tag: str) -> Optional[Digest]:
        """Return the digest a tag currently points at, or None."""
        try:
            link = self.driver.get_content(ctx, paths.manifest_tag_current_path(self.name, tag))
        except PathNotFoundError:
            return None
        return Digest(link.decode('utf-8').strip())

    def lookup(self, ctx: RunContext, digest: Digest) -> List[str]:
        """Return the tags currently pointing at digest."""
        try:
            all_tags = self.all(ctx)
        except RepositoryUnknownError:
            return []

        return [tag for tag in all_tags if self.get(ctx, tag) == digest]

    def tag(self, ctx: RunContext, tag: str, digest: Digest):
        """Point tag at digest, keeping the previous target in the tag index."""
        content = digest.encode('utf-8')
        self.driver.put_content(ctx, paths.manifest_tag_current_path(self.name, tag), content)
        self.driver.put_content(
            ctx, paths.manifest_tag_index_entry_link_path(self.name, tag, digest), content
        )

    def untag(self, ctx: RunContext, tag: str):
        self.driver.delete(ctx, paths.manifest_tag_path(self.name, tag))


class BlobStore:
    """Global content-addressed blob store."""

    def __init__(self, driver: StorageDriver):
        self.driver = driver

    def get(self, ctx: RunContext, digest: Digest) -> bytes:
        return self.driver.get_content(ctx, paths.blob_data_path(digest))

    def put(self, ctx: RunContext, content: bytes) -> Digest:
        digest = Digest.from_bytes(content)
        self.driver.put_content(ctx, paths.blob_data_path(digest), content)
        return digest

    def exists(self, ctx: RunContext, digest: Digest) -> bool:
        try:
            self.driver.stat(ctx, paths.blob_data_path(digest))
            return True
        except PathNotFoundError:
            return False

    def enumerate(self, ctx: RunContext, visit: Callable[[Digest], Any]):
        """Visit the digest of every blob holding data."""
        root = paths.BLOBS_ROOT

        def _visit(info: FileInfo) -> bool:
            if not info.is_dir and _basename(info.path) == 'data':
                parts = info.path.split('/')
                visit(Digest(f"{parts[-4]}:{parts[-2]}"))
            return True

        try:
            self.driver.stat(ctx, root)
        except PathNotFoundError:
            logger.debug(f"No blobs found under {root}")
            return

        self.driver.walk(ctx, root, _visit)
