"""Data models for registrygc."""

from .digest import Digest
from .gc import DeletionCandidate, GCOptions, GCSummary, MarkResult
from .manifest import Descriptor, ImageManifest, ManifestList, parse_manifest

__all__ = [
    'Digest',
    'DeletionCandidate',
    'GCOptions',
    'GCSummary',
    'MarkResult',
    'Descriptor',
    'ImageManifest',
    'ManifestList',
    'parse_manifest',
]
