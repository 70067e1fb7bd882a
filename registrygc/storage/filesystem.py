"""Local filesystem storage driver."""

import os
import shutil
from typing import List

from ..context import RunContext
from ..errors import PathNotFoundError
from .driver import FileInfo, StorageDriver, normalize_path


DEFAULT_ROOT_DIRECTORY = '/var/lib/registry'


class FilesystemDriver(StorageDriver):
    """Storage driver rooted at a local directory."""

    name = "filesystem"

    def __init__(self, root_directory: str = DEFAULT_ROOT_DIRECTORY):
        self.root_directory = root_directory

    def _full_path(self, path: str) -> str:
        relative = normalize_path(path)[1:]
        return os.path.join(self.root_directory, relative) if relative else self.root_directory

    def get_content(self, ctx: RunContext, path: str) -> bytes:
        ctx.check()
        full_path = self._full_path(path)
        try:
            with open(full_path, 'rb') as f:
                return f.read()
        except (FileNotFoundError, NotADirectoryError, IsADirectoryError):
            raise PathNotFoundError(path, self.name)

    def put_content(self, ctx: RunContext, path: str, content: bytes):
        ctx.check()
        full_path = self._full_path(path)
        os.makedirs(os.path.dirname(full_path), exist_ok=True)
        with open(full_path, 'wb') as f:
            f.write(content)

    def stat(self, ctx: RunContext, path: str) -> FileInfo:
        ctx.check()
        full_path = self._full_path(path)
        try:
            st = os.stat(full_path)
        except (FileNotFoundError, NotADirectoryError):
            raise PathNotFoundError(path, self.name)
        is_dir = os.path.isdir(full_path)
        return FileInfo(path=normalize_path(path), size=0 if is_dir else st.st_size, is_dir=is_dir)

    def list(self, ctx: RunContext, path: str) -> List[str]:
        ctx.check()
        full_path = self._full_path(path)
        try:
            entries = sorted(os.listdir(full_path))
        except (FileNotFoundError, NotADirectoryError):
            raise PathNotFoundError(path, self.name)

        base = normalize_path(path).rstrip('/')
        return [f"{base}/{entry}" for entry in entries]

    def delete(self, ctx: RunContext, path: str):
        ctx.check()
        full_path = self._full_path(path)
        if os.path.isdir(full_path) and not os.path.islink(full_path):
            shutil.rmtree(full_path)
        elif os.path.lexists(full_path):
            os.remove(full_path)
        else:
            raise PathNotFoundError(path, self.name)
