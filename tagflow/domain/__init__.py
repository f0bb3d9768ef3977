"""
Domain layer for tagflow.

Contains pure domain objects with no I/O or side effects:
- Semver: Totally ordered semantic version
- TagNaming: Composes/decomposes version, environment and state tag names
- Requests and results of tag assignment
- The error taxonomy

These objects are immutable where possible and provide
serialization methods for output.
"""

from .semver import Semver, Ordering, parse_semver, compare_versions, normalize_version
from .tag import TagKind, TagState, TagParts, TagNaming, DEFAULT_ENVIRONMENTS, STATE_PREFERENCE
from .assignment import (
    VersionTagRequest,
    EnvironmentTagRequest,
    StateTagRequest,
    TagRequest,
    TagAction,
    TagChange,
    TagResult,
    build_request,
)

__all__ = [
    'Semver',
    'Ordering',
    'parse_semver',
    'compare_versions',
    'normalize_version',
    'TagKind',
    'TagState',
    'TagParts',
    'TagNaming',
    'DEFAULT_ENVIRONMENTS',
    'STATE_PREFERENCE',
    'VersionTagRequest',
    'EnvironmentTagRequest',
    'StateTagRequest',
    'TagRequest',
    'TagAction',
    'TagChange',
    'TagResult',
    'build_request',
]
