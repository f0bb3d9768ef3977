"""
Tag assignment requests and results.

A request is one of three frozen dataclasses, one per tag kind, each
carrying only the fields that kind needs. Results follow the
to_dict()/outputs convention used for all tagflow output.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Union

from .errors import InvalidTagType, MissingField
from .tag import TagKind


@dataclass(frozen=True)
class VersionTagRequest:
    """Create an immutable version tag."""
    version: str
    commit: Optional[str] = None
    subproject: Optional[str] = None

    kind = TagKind.VERSION


@dataclass(frozen=True)
class EnvironmentTagRequest:
    """Create or move an environment tag."""
    environment: str
    commit: Optional[str] = None
    subproject: Optional[str] = None
    force_move: bool = False

    kind = TagKind.ENVIRONMENT


@dataclass(frozen=True)
class StateTagRequest:
    """Annotate an existing version tag with a lifecycle state."""
    version: str
    state: str
    commit: Optional[str] = None
    subproject: Optional[str] = None

    kind = TagKind.STATE


TagRequest = Union[VersionTagRequest, EnvironmentTagRequest, StateTagRequest]


def _clean(value: Optional[str]) -> Optional[str]:
    """Trim a raw input value; blank becomes None."""
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def build_request(
    tag_type: str,
    version: Optional[str] = None,
    environment: Optional[str] = None,
    state: Optional[str] = None,
    subproject: Optional[str] = None,
    commit: Optional[str] = None,
    force_move: bool = False,
) -> TagRequest:
    """
    Build a typed request from flat, attribute-style inputs (CLI flags,
    pipeline inputs).

    Raises:
        MissingField: A field required by ``tag_type`` is absent
        InvalidTagType: Unknown tag type
    """
    if isinstance(tag_type, TagKind):
        kind = tag_type
    else:
        try:
            kind = TagKind(str(tag_type or '').strip().lower())
        except ValueError:
            raise InvalidTagType(tag_type or '')
    version = _clean(version)
    environment = _clean(environment)
    state = _clean(state)
    subproject = _clean(subproject)
    commit = _clean(commit)

    if kind is TagKind.VERSION:
        if not version:
            raise MissingField('version', kind.value)
        return VersionTagRequest(version=version, commit=commit, subproject=subproject)

    if kind is TagKind.ENVIRONMENT:
        if not environment:
            raise MissingField('environment', kind.value)
        return EnvironmentTagRequest(
            environment=environment,
            commit=commit,
            subproject=subproject,
            force_move=force_move,
        )

    if not version:
        raise MissingField('version', kind.value)
    if not state:
        raise MissingField('state', kind.value)
    return StateTagRequest(version=version, state=state, commit=commit, subproject=subproject)


class TagAction(Enum):
    """What happened (or would happen) to the tag."""
    CREATED = "created"
    MOVED = "moved"
    UNCHANGED = "unchanged"
    WOULD_CREATE = "would_create"
    WOULD_MOVE = "would_move"
    SIMULATED = "simulated"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class TagChange:
    """
    A planned or applied change to one tag.

    ``prior_commit`` is the commit the tag pointed to before the change,
    or None if the tag did not exist.
    """
    tag_name: str
    kind: TagKind
    commit: str
    prior_commit: Optional[str] = None

    @property
    def exists(self) -> bool:
        return self.prior_commit is not None

    @property
    def is_noop(self) -> bool:
        return self.prior_commit == self.commit

    @property
    def planned_action(self) -> TagAction:
        if self.is_noop:
            return TagAction.UNCHANGED
        return TagAction.WOULD_MOVE if self.exists else TagAction.WOULD_CREATE

    @property
    def applied_action(self) -> TagAction:
        if self.is_noop:
            return TagAction.UNCHANGED
        return TagAction.MOVED if self.exists else TagAction.CREATED


@dataclass
class TagResult:
    """Outcome of one tag assignment."""
    tag_name: str
    kind: TagKind
    commit: Optional[str]
    action: TagAction
    mode: str
    prior_commit: Optional[str] = None
    synced: bool = False
    version: Optional[str] = None
    environment: Optional[str] = None
    state: Optional[str] = None
    subproject: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def should_deploy(self) -> bool:
        """Environment tag changes trigger a deployment downstream."""
        return self.kind is TagKind.ENVIRONMENT and self.action in (
            TagAction.CREATED, TagAction.MOVED
        )

    def to_outputs(self) -> Dict[str, str]:
        """Flat key=value outputs for pipeline step capture."""
        outputs = {
            'tag_type': self.kind.value,
            'tag_name': self.tag_name,
            'commit': self.commit or '',
            'prior_commit': self.prior_commit or '',
            'action': self.action.value,
            'mode': self.mode,
            'synced': str(self.synced).lower(),
            'should_deploy': str(self.should_deploy).lower(),
        }
        if self.version:
            outputs['version'] = self.version
        if self.environment:
            outputs['environment'] = self.environment
        if self.state:
            outputs['state'] = self.state
        if self.subproject:
            outputs['subproject'] = self.subproject
        return outputs

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result = {
            'tag_type': self.kind.value,
            'tag_name': self.tag_name,
            'commit': self.commit,
            'prior_commit': self.prior_commit,
            'action': self.action.value,
            'mode': self.mode,
            'synced': self.synced,
            'should_deploy': self.should_deploy,
            'version': self.version,
            'environment': self.environment,
            'state': self.state,
            'subproject': self.subproject,
        }
        if self.metadata:
            result.update(self.metadata)
        return result
