"""Registry storage layout.

    <root>/docker/registry/v2/
        blobs/<alg>/<hex[:2]>/<hex>/data
        repositories/<name>/
            _layers/<alg>/<hex>/link
            _manifests/revisions/<alg>/<hex>/link
            _manifests/tags/<tag>/current/link
            _manifests/tags/<tag>/index/<alg>/<hex>/link
"""

from ..models.digest import Digest


STORAGE_PATH_ROOT = '/docker/registry/v2'
BLOBS_ROOT = f'{STORAGE_PATH_ROOT}/blobs'
REPOSITORIES_ROOT = f'{STORAGE_PATH_ROOT}/repositories'


def blob_path(digest: Digest) -> str:
    """Directory holding a blob's data."""
    return f'{BLOBS_ROOT}/{digest.algorithm}/{digest.hex[:2]}/{digest.hex}'


def blob_data_path(digest: Digest) -> str:
    return f'{blob_path(digest)}/data'


def repository_path(name: str) -> str:
    return f'{REPOSITORIES_ROOT}/{name}'


def manifests_path(name: str) -> str:
    return f'{repository_path(name)}/_manifests'


def manifest_revisions_path(name: str, algorithm: str = 'sha256') -> str:
    return f'{manifests_path(name)}/revisions/{algorithm}'


def manifest_revision_path(name: str, digest: Digest) -> str:
    return f'{manifest_revisions_path(name, digest.algorithm)}/{digest.hex}'


def manifest_revision_link_path(name: str, digest: Digest) -> str:
    return f'{manifest_revision_path(name, digest)}/link'


def manifest_tags_path(name: str) -> str:
    return f'{manifests_path(name)}/tags'


def manifest_tag_path(name: str, tag: str) -> str:
    return f'{manifest_tags_path(name)}/{tag}'


def manifest_tag_current_path(name: str, tag: str) -> str:
    return f'{manifest_tag_path(name, tag)}/current/link'


def manifest_tag_index_entry_path(name: str, tag: str, digest: Digest) -> str:
    """Directory recording that a tag has pointed at digest."""
    return f'{manifest_tag_path(name, tag)}/index/{digest.algorithm}/{digest.hex}'


def manifest_tag_index_entry_link_path(name: str, tag: str, digest: Digest) -> str:
    return f'{manifest_tag_index_entry_path(name, tag, digest)}/link'


def layer_link_path(name: str, digest: Digest) -> str:
    return f'{repository_path(name)}/_layers/{digest.algorithm}/{digest.hex}/link'
