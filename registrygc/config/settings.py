"""Configuration management for registrygc."""

import os
import yaml
from typing import Dict, Any, Optional, Tuple

from ..errors import ConfigurationError


SUPPORTED_DRIVERS = ('filesystem', 'inmemory', 's3')

# Storage keys that configure registry behaviour rather than a driver
NON_DRIVER_STORAGE_KEYS = ('delete', 'maintenance', 'cache', 'redirect')

ENV_OVERRIDES = {
    'REGISTRY_STORAGE_S3_ACCESSKEY': ('s3', 'accesskey'),
    'REGISTRY_STORAGE_S3_SECRETKEY': ('s3', 'secretkey'),
    'REGISTRY_STORAGE_S3_REGION': ('s3', 'region'),
    'REGISTRY_STORAGE_S3_REGIONENDPOINT': ('s3', 'regionendpoint'),
    'REGISTRY_STORAGE_FILESYSTEM_ROOTDIRECTORY': ('filesystem', 'rootdirectory'),
}


class Config:
    """Configuration manager for registrygc.

    Reads a distribution-style registry configuration file. The path is taken
    from the argument or, failing that, the REGISTRY_CONFIG environment
    variable.
    """

    def __init__(self, config_path: Optional[str] = None):
        self.config_path = config_path or os.environ.get('REGISTRY_CONFIG')
        self._registry_config = None
        self._validate_environment()

    def _validate_environment(self):
        if not self.config_path:
            raise ConfigurationError(
                "No registry configuration given: pass a config file or set REGISTRY_CONFIG"
            )

    @property
    def registry_config(self) -> Dict[str, Any]:
        """Load and cache the registry configuration."""
        if self._registry_config is None:
            if not os.path.exists(self.config_path):
                raise ConfigurationError(f"Registry config file not found: {self.config_path}")

            try:
                with open(self.config_path, 'r') as f:
                    loaded = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ConfigurationError(f"Invalid registry config {self.config_path}: {e}") from e

            if not isinstance(loaded, dict):
                raise ConfigurationError(f"Registry config {self.config_path} must be a mapping")
            self._registry_config = loaded

        return self._registry_config

    @property
    def storage_config(self) -> Dict[str, Any]:
        """Get the storage section of the registry config."""
        storage_config = self.registry_config.get('storage') or {}
        if not storage_config:
            raise ConfigurationError("storage section not found in registry configuration")
        if not isinstance(storage_config, dict):
            raise ConfigurationError("storage section must be a mapping")
        return storage_config

    @property
    def storage_driver(self) -> Tuple[str, Dict[str, Any]]:
        """Return the configured driver name and its parameters."""
        drivers = [key for key in self.storage_config if key not in NON_DRIVER_STORAGE_KEYS]
        if len(drivers) != 1:
            raise ConfigurationError(
                f"exactly one storage driver must be configured, found: {', '.join(drivers) or 'none'}"
            )

        driver_name = drivers[0]
        if driver_name not in SUPPORTED_DRIVERS:
            raise ConfigurationError(f"Unsupported storage driver: {driver_name}")

        parameters = dict(self.storage_config.get(driver_name) or {})
        for var, (target_driver, key) in ENV_OVERRIDES.items():
            value = os.environ.get(var)
            if value and target_driver == driver_name:
                parameters[key] = value

        return driver_name, parameters
