"""
Pytest configuration file.

Provides an in-memory registry and a builder for populating it with blobs,
image manifests, manifest lists and tags.
"""
import sys
from pathlib import Path
from typing import List, Tuple

import pytest

# Make the package importable without installing it
_project_dir = str(Path(__file__).parent.parent.absolute())
if _project_dir not in sys.path:
    sys.path.insert(0, _project_dir)

from registrygc.context import RunContext
from registrygc.models.digest import Digest
from registrygc.models.manifest import (
    Descriptor,
    MEDIA_TYPE_MANIFEST_V2,
    build_image_manifest,
    build_manifest_list,
)
from registrygc.storage.inmemory import InMemoryDriver
from registrygc.storage.registry import Registry
from registrygc.utils.diagnostics import RecordingDiagnostics


class RegistryBuilder:
    """Populates a registry the way pushes would."""

    def __init__(self, ctx: RunContext, driver):
        self.ctx = ctx
        self.driver = driver
        self.registry = Registry(driver)

    def blob(self, content: bytes) -> Digest:
        return self.registry.blobs().put(self.ctx, content)

    def image(self, repo: str, config: bytes, layers: List[bytes]) -> Tuple[Digest, List[Digest]]:
        """Push an image manifest; returns its digest and its blob digests."""
        repository = self.registry.repository(self.ctx, repo)
        config_digest = self.blob(config)
        layer_digests = [self.blob(layer) for layer in layers]
        for digest in [config_digest] + layer_digests:
            repository.link_blob(self.ctx, digest)

        payload = build_image_manifest(
            Descriptor(config_digest, "application/vnd.docker.container.image.v1+json", len(config)),
            [Descriptor(d, "application/vnd.docker.image.rootfs.diff.tar.gzip", len(layer))
             for d, layer in zip(layer_digests, layers)]
        )
        manifest_digest = repository.manifests(self.ctx).put(self.ctx, payload)
        return manifest_digest, [config_digest] + layer_digests

    def index(self, repo: str, children: List[Digest]) -> Digest:
        """Push a manifest list referencing the given child manifests."""
        repository = self.registry.repository(self.ctx, repo)
        payload = build_manifest_list([Descriptor(c, MEDIA_TYPE_MANIFEST_V2, 0) for c in children])
        return repository.manifests(self.ctx).put(self.ctx, payload)

    def tag(self, repo: str, tag: str, digest: Digest):
        self.registry.repository(self.ctx, repo).tags(self.ctx).tag(self.ctx, tag, digest)

    def manifest_exists(self, repo: str, digest: Digest) -> bool:
        return self.registry.repository(self.ctx, repo).manifests(self.ctx).exists(self.ctx, digest)

    def blob_exists(self, digest: Digest) -> bool:
        return self.registry.blobs().exists(self.ctx, digest)


@pytest.fixture
def ctx():
    return RunContext()


@pytest.fixture
def driver():
    return InMemoryDriver()


@pytest.fixture
def builder(ctx, driver):
    return RegistryBuilder(ctx, driver)


@pytest.fixture
def registry(builder):
    return builder.registry


@pytest.fixture
def diagnostics():
    return RecordingDiagnostics()


@pytest.fixture
def make_builder(ctx):
    """Return a factory building a RegistryBuilder over any driver."""
    return lambda storage_driver: RegistryBuilder(ctx, storage_driver)
