"""Storage drivers and the registry backend built on them."""

from typing import Any, Dict

from ..config.settings import Config
from ..errors import ConfigurationError
from .driver import FileInfo, StorageDriver
from .filesystem import DEFAULT_ROOT_DIRECTORY, FilesystemDriver
from .inmemory import InMemoryDriver
from .s3_driver import S3Driver


def create_driver(driver_name: str, parameters: Dict[str, Any]) -> StorageDriver:
    """Instantiate a storage driver by name."""
    if driver_name == 'filesystem':
        return FilesystemDriver(parameters.get('rootdirectory', DEFAULT_ROOT_DIRECTORY))
    if driver_name == 'inmemory':
        return InMemoryDriver()
    if driver_name == 's3':
        try:
            return S3Driver.from_parameters(parameters)
        except ValueError as e:
            raise ConfigurationError(str(e)) from e
    raise ConfigurationError(f"Unsupported storage driver: {driver_name}")


def create_storage_driver(config: Config) -> StorageDriver:
    """Instantiate the storage driver described by a registry config."""
    driver_name, parameters = config.storage_driver
    return create_driver(driver_name, parameters)


__all__ = [
    'FileInfo',
    'StorageDriver',
    'FilesystemDriver',
    'InMemoryDriver',
    'S3Driver',
    'create_driver',
    'create_storage_driver',
]
