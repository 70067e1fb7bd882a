"""Repository naming rules."""

import re

from ..errors import InvalidRepositoryNameError


NAME_TOTAL_LENGTH_MAX = 255

_ALPHANUMERIC = r'[a-z0-9]+'
_SEPARATOR = r'(?:[._]|__|[-]+)'
_PATH_COMPONENT = _ALPHANUMERIC + r'(?:' + _SEPARATOR + _ALPHANUMERIC + r')*'
_DOMAIN_COMPONENT = r'(?:[a-zA-Z0-9]|[a-zA-Z0-9][a-zA-Z0-9-]*[a-zA-Z0-9])'
_DOMAIN = _DOMAIN_COMPONENT + r'(?:\.' + _DOMAIN_COMPONENT + r')*(?::[0-9]+)?'

NAME_PATTERN = re.compile(
    r'^(?:' + _DOMAIN + r'/)?' + _PATH_COMPONENT + r'(?:/' + _PATH_COMPONENT + r')*$'
)


def parse_repository_name(name: str) -> str:
    """Validate a repository name, returning it unchanged."""
    if len(name) > NAME_TOTAL_LENGTH_MAX:
        raise InvalidRepositoryNameError(
            name, f"repository name must not be more than {NAME_TOTAL_LENGTH_MAX} characters"
        )
    if not NAME_PATTERN.match(name):
        raise InvalidRepositoryNameError(name)
    return name
