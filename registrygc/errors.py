"""Exception types raised by registrygc.

Every exception carries an ErrorCategory so callers can tell configuration
problems from races the collector tolerates and from fatal storage errors.
"""

from enum import Enum
from typing import Optional


class ErrorCategory(Enum):
    """Categories of errors for better error handling"""
    CONFIGURATION = "configuration"
    MALFORMED_INPUT = "malformed_input"
    BENIGN = "benign"
    TOLERATED_RACE = "tolerated_race"
    STORAGE = "storage"
    CANCELLED = "cancelled"


class RegistryGCError(Exception):
    """Base class for all registrygc errors."""

    category = ErrorCategory.STORAGE


class ConfigurationError(RegistryGCError):
    """Configuration is missing, unreadable or lacks a required capability."""

    category = ErrorCategory.CONFIGURATION


class InvalidRepositoryNameError(RegistryGCError, ValueError):
    category = ErrorCategory.MALFORMED_INPUT

    def __init__(self, name: str, reason: str = "invalid reference format"):
        self.name = name
        self.reason = reason
        super().__init__(f"repository name {name!r}: {reason}")


class InvalidDigestError(RegistryGCError, ValueError):
    category = ErrorCategory.MALFORMED_INPUT

    def __init__(self, value: str, reason: str = "invalid digest format"):
        self.value = value
        self.reason = reason
        super().__init__(f"digest {value!r}: {reason}")


class ManifestFormatError(RegistryGCError, ValueError):
    """Manifest payload could not be decoded."""

    category = ErrorCategory.MALFORMED_INPUT


class PathNotFoundError(RegistryGCError):
    """A storage driver path does not exist."""

    category = ErrorCategory.BENIGN

    def __init__(self, path: str, driver_name: str = ""):
        self.path = path
        self.driver_name = driver_name
        prefix = f"{driver_name}: " if driver_name else ""
        super().__init__(f"{prefix}path not found: {path}")


class ManifestUnknownRevisionError(RegistryGCError):
    """The repository does not hold the requested manifest revision."""

    category = ErrorCategory.TOLERATED_RACE

    def __init__(self, name: str, revision: str):
        self.name = name
        self.revision = revision
        super().__init__(f"unknown manifest name={name} revision={revision}")


class RepositoryUnknownError(RegistryGCError):
    category = ErrorCategory.TOLERATED_RACE

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"unknown repository name={name}")


class MarkError(RegistryGCError):
    """Fatal failure during the mark phase."""

    def __init__(self, message: str, repository: Optional[str] = None):
        self.repository = repository
        super().__init__(message)


class SweepError(RegistryGCError):
    """Fatal failure while deleting a manifest or blob."""

    def __init__(self, message: str, digest: Optional[str] = None,
                 repository: Optional[str] = None):
        self.digest = digest
        self.repository = repository
        super().__init__(message)


class OperationCancelled(RegistryGCError):
    category = ErrorCategory.CANCELLED

    def __init__(self, message: str = "operation cancelled"):
        super().__init__(message)
