"""Storage driver interface.

Drivers address content with absolute, slash-separated paths such as
``/docker/registry/v2/blobs/sha256/ab/ab12.../data`` and raise
PathNotFoundError for anything that does not exist.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, List

from ..context import RunContext


@dataclass(frozen=True)
class FileInfo:
    """Metadata for a stored path."""
    path: str
    size: int = 0
    is_dir: bool = False


class StorageDriver(ABC):
    """Byte-level storage backend."""

    name = "base"

    @abstractmethod
    def get_content(self, ctx: RunContext, path: str) -> bytes:
        """Return the content stored at path."""

    @abstractmethod
    def put_content(self, ctx: RunContext, path: str, content: bytes):
        """Store content at path, creating parents as needed."""

    @abstractmethod
    def stat(self, ctx: RunContext, path: str) -> FileInfo:
        """Return metadata for a file or directory."""

    @abstractmethod
    def list(self, ctx: RunContext, path: str) -> List[str]:
        """Return the sorted full paths of the direct children of a directory."""

    @abstractmethod
    def delete(self, ctx: RunContext, path: str):
        """Recursively delete a file or directory."""

    def walk(self, ctx: RunContext, path: str, visit: Callable[[FileInfo], bool]):
        """Depth-first traversal below path.

        visit is called for every child; returning False for a directory
        skips its contents.
        """
        for child in self.list(ctx, path):
            info = self.stat(ctx, child)
            descend = visit(info)
            if info.is_dir and descend is not False:
                self.walk(ctx, child, visit)


def normalize_path(path: str) -> str:
    """Return path with a single leading slash and no trailing slash."""
    stripped = path.strip('/')
    return '/' + stripped if stripped else '/'
