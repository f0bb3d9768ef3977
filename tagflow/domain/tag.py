"""
Tag naming for tagflow.

Three tag shapes, each optionally prefixed by a subproject path:
- Version tags:      "v1.2.3", "api/v1.2.3-rc.1"
- Environment tags:  "production", "services/api/staging"
- State tags:        "v1.2.3-stable", "api/v1.2.3-rc.1-deprecated"

Version and state tags are immutable once created; environment tags move
on every deploy. Names are composed and decomposed here as pure string
operations, with no access to the reference store.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional, Tuple

from .errors import (
    InvalidEnvironmentName,
    InvalidSemver,
    InvalidState,
    InvalidSubprojectPath,
    MissingField,
    UnrecognizedTagName,
)
from .semver import Semver, SEMVER_REGEX

DEFAULT_ENVIRONMENTS = ('production', 'staging', 'canary', 'sandbox', 'performance')

SEGMENT_REGEX = re.compile(r'^[A-Za-z0-9._-]+\Z')


class TagKind(Enum):
    """The three tag families."""
    VERSION = "version"
    ENVIRONMENT = "environment"
    STATE = "state"

    @property
    def movable(self) -> bool:
        """Only environment tags may be rebound to a new commit."""
        return self is TagKind.ENVIRONMENT


class TagState(Enum):
    """Lifecycle label of a version, in lookup preference order."""
    STABLE = "stable"
    UNSTABLE = "unstable"
    DEPRECATED = "deprecated"
    NONE = "none"

    @classmethod
    def parse(cls, value: str) -> 'TagState':
        """Parse a state suffix. NONE is not a valid suffix."""
        try:
            state = cls(value.strip().lower())
        except (ValueError, AttributeError):
            raise InvalidState(str(value))
        if state is cls.NONE:
            raise InvalidState(value)
        return state


# Preference order used when a version carries several state tags
STATE_PREFERENCE: Tuple[TagState, ...] = (
    TagState.STABLE,
    TagState.UNSTABLE,
    TagState.DEPRECATED,
)

_STATE_SUFFIX_REGEX = re.compile(
    r'-(?P<state>' + '|'.join(s.value for s in STATE_PREFERENCE) + r')$'
)


@dataclass(frozen=True)
class TagParts:
    """
    Decomposed tag name.

    Only the fields relevant to ``kind`` are set: ``version`` for version
    and state tags, ``environment`` for environment tags, ``state`` for
    state tags.
    """

    kind: TagKind
    subproject: Optional[str] = None
    version: Optional[Semver] = None
    environment: Optional[str] = None
    state: Optional[TagState] = None

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            'kind': self.kind.value,
            'subproject': self.subproject,
            'version': self.version.format() if self.version else None,
            'environment': self.environment,
            'state': self.state.value if self.state else None,
        }


def validate_subproject(path: Optional[str]) -> Optional[str]:
    """
    Validate a subproject path.

    Returns:
        The path unchanged, or None for empty input

    Raises:
        InvalidSubprojectPath: On leading/trailing '/', empty segments or
            characters outside [A-Za-z0-9._-]
    """
    if path is None or path == '':
        return None
    if path.startswith('/') or path.endswith('/'):
        raise InvalidSubprojectPath(path)
    for segment in path.split('/'):
        if not SEGMENT_REGEX.match(segment) or segment in ('.', '..'):
            raise InvalidSubprojectPath(path)
    return path


def _split_prefix(name: str) -> Tuple[Optional[str], str]:
    """Split "a/b/leaf" into ("a/b", "leaf")."""
    if '/' in name:
        prefix, leaf = name.rsplit('/', 1)
        return prefix, leaf
    return None, name


class TagNaming:
    """
    Composes and decomposes tag names.

    Example:
        naming = TagNaming()
        name = naming.compose(TagKind.STATE, subproject="api",
                              version=Semver.parse("1.2.3"), state=TagState.STABLE)
        # "api/v1.2.3-stable"
        naming.decompose(name).state   # TagState.STABLE
    """

    def __init__(self, environments: Iterable[str] = DEFAULT_ENVIRONMENTS):
        """
        Initialize TagNaming.

        Args:
            environments: Allow-list of environment names
        """
        self.environments = tuple(environments)

    def validate_environment(self, environment: Optional[str]) -> str:
        if not environment or environment not in self.environments:
            raise InvalidEnvironmentName(environment or '', self.environments)
        return environment

    def compose(
        self,
        kind: TagKind,
        subproject: Optional[str] = None,
        version: Optional[Semver] = None,
        environment: Optional[str] = None,
        state: Optional[TagState] = None,
    ) -> str:
        """
        Build a tag name.

        Args:
            kind: Tag family
            subproject: Optional subproject path prefix
            version: Required for version and state tags
            environment: Required for environment tags
            state: Required for state tags

        Returns:
            The tag name

        Raises:
            MissingField: A field required by ``kind`` is absent
            InvalidSubprojectPath, InvalidEnvironmentName, InvalidState,
            InvalidSemver: A field is malformed
        """
        subproject = validate_subproject(subproject)

        if kind is TagKind.VERSION:
            if version is None:
                raise MissingField('version', kind.value)
            if version.prerelease and _STATE_SUFFIX_REGEX.search('-' + version.prerelease):
                raise InvalidSemver(
                    version.tag, "prerelease must not end with a state name"
                )
            leaf = version.tag
        elif kind is TagKind.ENVIRONMENT:
            if not environment:
                raise MissingField('environment', kind.value)
            leaf = self.validate_environment(environment)
        elif kind is TagKind.STATE:
            if version is None:
                raise MissingField('version', kind.value)
            if state is None:
                raise MissingField('state', kind.value)
            if state is TagState.NONE:
                raise InvalidState(state.value)
            leaf = f"{version.tag}-{state.value}"
        else:
            raise ValueError(f"Unknown tag kind: {kind}")

        return f"{subproject}/{leaf}" if subproject else leaf

    def decompose(self, name: str) -> TagParts:
        """
        Split a tag name into its parts.

        Raises:
            UnrecognizedTagName: Name matches none of the three shapes
        """
        parts = self.classify_parts(name)
        if parts is None:
            raise UnrecognizedTagName(name)
        return parts

    def classify_parts(self, name: str) -> Optional[TagParts]:
        """
        Like decompose(), but returns None for unrecognized names.

        Only canonical spellings are recognized: a name must compose back
        to itself, so ``v01.0.0`` is not read as version 1.0.0.
        """
        parts = self._match_parts(name)
        if parts is None or self.compose_parts(parts) != name:
            return None
        return parts

    def _match_parts(self, name: str) -> Optional[TagParts]:
        if not name:
            return None
        subproject, leaf = _split_prefix(name)
        if subproject is not None:
            try:
                if validate_subproject(subproject) is None:
                    return None
            except InvalidSubprojectPath:
                return None

        # State suffix wins over a prerelease label of the same spelling
        state_match = _STATE_SUFFIX_REGEX.search(leaf)
        if state_match and leaf.startswith('v'):
            version_text = leaf[:state_match.start()]
            if SEMVER_REGEX.match(version_text) and version_text.startswith('v'):
                return TagParts(
                    kind=TagKind.STATE,
                    subproject=subproject,
                    version=Semver.parse(version_text),
                    state=TagState(state_match.group('state')),
                )

        if leaf.startswith('v') and SEMVER_REGEX.match(leaf):
            return TagParts(
                kind=TagKind.VERSION,
                subproject=subproject,
                version=Semver.parse(leaf),
            )

        if leaf in self.environments:
            return TagParts(
                kind=TagKind.ENVIRONMENT,
                subproject=subproject,
                environment=leaf,
            )

        return None

    def classify(self, name: str) -> Optional[TagKind]:
        """Tag family of a name, or None."""
        parts = self.classify_parts(name)
        return parts.kind if parts else None

    def list_pattern(self, kind: TagKind, subproject: Optional[str] = None) -> str:
        """
        Glob used to list candidate tags of one kind.

        The glob is only a prefilter; callers decompose each result.
        """
        subproject = validate_subproject(subproject)
        prefix = f"{subproject}/" if subproject else ""
        if kind is TagKind.ENVIRONMENT:
            return f"{prefix}*"
        return f"{prefix}v*"

    def compose_parts(self, parts: TagParts) -> str:
        """Inverse of decompose()."""
        return self.compose(
            parts.kind,
            subproject=parts.subproject,
            version=parts.version,
            environment=parts.environment,
            state=parts.state,
        )
