"""In-memory storage driver, mostly useful for tests and scratch registries."""

from typing import Dict, List

from ..context import RunContext
from ..errors import PathNotFoundError
from .driver import FileInfo, StorageDriver, normalize_path


class InMemoryDriver(StorageDriver):
    """Keeps file contents in a dict; directories exist implicitly."""

    name = "inmemory"

    def __init__(self):
        self.files: Dict[str, bytes] = {}

    def _is_dir(self, path: str) -> bool:
        if path == '/':
            return bool(self.files)
        prefix = path + '/'
        return any(key.startswith(prefix) for key in self.files)

    def get_content(self, ctx: RunContext, path: str) -> bytes:
        ctx.check()
        path = normalize_path(path)
        if path not in self.files:
            raise PathNotFoundError(path, self.name)
        return self.files[path]

    def put_content(self, ctx: RunContext, path: str, content: bytes):
        ctx.check()
        self.files[normalize_path(path)] = bytes(content)

    def stat(self, ctx: RunContext, path: str) -> FileInfo:
        ctx.check()
        path = normalize_path(path)
        if path in self.files:
            return FileInfo(path=path, size=len(self.files[path]))
        if self._is_dir(path):
            return FileInfo(path=path, is_dir=True)
        raise PathNotFoundError(path, self.name)

    def list(self, ctx: RunContext, path: str) -> List[str]:
        ctx.check()
        path = normalize_path(path)
        if not self._is_dir(path):
            raise PathNotFoundError(path, self.name)

        prefix = path.rstrip('/') + '/'
        children = set()
        for key in self.files:
            if key.startswith(prefix):
                children.add(prefix + key[len(prefix):].split('/', 1)[0])
        return sorted(children)

    def delete(self, ctx: RunContext, path: str):
        ctx.check()
        path = normalize_path(path)
        prefix = path.rstrip('/') + '/'
        doomed = [key for key in self.files if key == path or key.startswith(prefix)]
        if not doomed:
            raise PathNotFoundError(path, self.name)
        for key in doomed:
            del self.files[key]
