"""Decoded manifest models.

Two variants exist: an image manifest referencing its config and layers, and
a manifest list (image index) referencing child manifests. Both Docker and OCI
media types decode into the same variants.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..errors import InvalidDigestError, ManifestFormatError
from .digest import Digest


MEDIA_TYPE_MANIFEST_V2 = "application/vnd.docker.distribution.manifest.v2+json"
MEDIA_TYPE_MANIFEST_LIST = "application/vnd.docker.distribution.manifest.list.v2+json"
MEDIA_TYPE_OCI_MANIFEST = "application/vnd.oci.image.manifest.v1+json"
MEDIA_TYPE_OCI_INDEX = "application/vnd.oci.image.index.v1+json"

IMAGE_MANIFEST_TYPES = (MEDIA_TYPE_MANIFEST_V2, MEDIA_TYPE_OCI_MANIFEST)
MANIFEST_LIST_TYPES = (MEDIA_TYPE_MANIFEST_LIST, MEDIA_TYPE_OCI_INDEX)


@dataclass(frozen=True)
class Descriptor:
    """Reference to content by digest."""
    digest: Digest
    media_type: str = ""
    size: int = 0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Descriptor':
        if not isinstance(data, dict) or 'digest' not in data:
            raise ManifestFormatError(f"descriptor without digest: {data!r}")
        try:
            digest = Digest(data['digest'])
        except InvalidDigestError as e:
            raise ManifestFormatError(f"descriptor has invalid digest: {e}") from e
        return cls(
            digest=digest,
            media_type=data.get('mediaType', ''),
            size=int(data.get('size', 0))
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"mediaType": self.media_type, "digest": str(self.digest), "size": self.size}


@dataclass
class ImageManifest:
    """Single-platform image manifest."""
    config: Descriptor
    layers: List[Descriptor]
    media_type: str = MEDIA_TYPE_MANIFEST_V2
    payload: bytes = field(default=b"", repr=False)

    def references(self) -> List[Descriptor]:
        return [self.config] + list(self.layers)


@dataclass
class ManifestList:
    """Multi-platform manifest list or OCI image index."""
    manifests: List[Descriptor]
    media_type: str = MEDIA_TYPE_MANIFEST_LIST
    payload: bytes = field(default=b"", repr=False)

    def references(self) -> List[Descriptor]:
        return list(self.manifests)


def parse_manifest(payload: bytes) -> Any:
    """Decode a manifest payload into an ImageManifest or a ManifestList."""
    try:
        data = json.loads(payload.decode('utf-8'))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ManifestFormatError(f"manifest is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise ManifestFormatError("manifest must be a JSON object")

    media_type: Optional[str] = data.get('mediaType')

    if media_type in MANIFEST_LIST_TYPES or (media_type is None and 'manifests' in data):
        return ManifestList(
            manifests=[Descriptor.from_dict(d) for d in data.get('manifests') or []],
            media_type=media_type or MEDIA_TYPE_OCI_INDEX,
            payload=payload
        )

    if media_type in IMAGE_MANIFEST_TYPES or (media_type is None and 'config' in data):
        if 'config' not in data:
            raise ManifestFormatError("image manifest has no config descriptor")
        return ImageManifest(
            config=Descriptor.from_dict(data['config']),
            layers=[Descriptor.from_dict(d) for d in data.get('layers') or []],
            media_type=media_type or MEDIA_TYPE_OCI_MANIFEST,
            payload=payload
        )

    raise ManifestFormatError(f"unsupported manifest media type: {media_type}")


def build_image_manifest(config: Descriptor, layers: List[Descriptor],
                         media_type: str = MEDIA_TYPE_MANIFEST_V2) -> bytes:
    """Serialize an image manifest payload."""
    return json.dumps({
        "schemaVersion": 2,
        "mediaType": media_type,
        "config": config.to_dict(),
        "layers": [layer.to_dict() for layer in layers]
    }, indent=3).encode('utf-8')


def build_manifest_list(manifests: List[Descriptor],
                        media_type: str = MEDIA_TYPE_MANIFEST_LIST) -> bytes:
    """Serialize a manifest list payload."""
    return json.dumps({
        "schemaVersion": 2,
        "mediaType": media_type,
        "manifests": [m.to_dict() for m in manifests]
    }, indent=3).encode('utf-8')
