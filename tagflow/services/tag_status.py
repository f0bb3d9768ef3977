"""
Tag status and consistency checks for tagflow.

Reads the whole tag set of one subproject (or the top level) in a
single pass and answers two questions:
- what is deployed where: each environment with its commit, version and
  state, plus the most recent versions
- whether the tags agree with each other: state tags must sit on their
  version tag's commit, and environment tags must point at a released
  version
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from ..domain import Semver, TagKind, TagParts, TagState, STATE_PREFERENCE
from .tag_repository import TagRepository

logger = logging.getLogger(__name__)

STATE_WITHOUT_VERSION = "state_without_version"
STATE_COMMIT_MISMATCH = "state_commit_mismatch"
ENVIRONMENT_UNTAGGED_COMMIT = "environment_untagged_commit"


@dataclass
class TagStatus:
    """One row of the status report: an environment or a recent version."""
    tag_name: str
    kind: TagKind
    commit: Optional[str] = None
    version: Optional[Semver] = None
    environment: Optional[str] = None
    state: TagState = TagState.NONE
    subproject: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'tag_name': self.tag_name,
            'kind': self.kind.value,
            'environment': self.environment,
            'version': self.version.format() if self.version else None,
            'state': self.state.value,
            'commit': self.commit,
            'subproject': self.subproject,
        }


@dataclass
class ConsistencyIssue:
    """A tag that contradicts the rest of the tag set."""
    tag_name: str
    kind: TagKind
    problem: str
    message: str
    commit: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'tag_name': self.tag_name,
            'kind': self.kind.value,
            'problem': self.problem,
            'message': self.message,
            'commit': self.commit,
        }


class _TagIndex:
    """Tags of one subproject, grouped by kind."""

    def __init__(self, repository: TagRepository, subproject: Optional[str]):
        naming = repository.naming
        self.commits = repository.commit_map(subproject)
        self.parts: Dict[str, TagParts] = {
            name: naming.decompose(name) for name in self.commits
        }
        self.versions_at: Dict[str, List[Semver]] = {}
        self.states: Dict[Semver, List[TagState]] = {}
        for name, parts in self.parts.items():
            if parts.kind is TagKind.VERSION:
                self.versions_at.setdefault(self.commits[name], []).append(parts.version)
            elif parts.kind is TagKind.STATE:
                self.states.setdefault(parts.version, []).append(parts.state)

    def of_kind(self, kind: TagKind) -> List[str]:
        return sorted(name for name, parts in self.parts.items() if parts.kind is kind)

    def version_at(self, commit: Optional[str]) -> Optional[Semver]:
        versions = self.versions_at.get(commit) if commit else None
        return max(versions) if versions else None

    def state_of(self, version: Optional[Semver]) -> TagState:
        present = self.states.get(version, []) if version else []
        for state in STATE_PREFERENCE:
            if state in present:
                return state
        return TagState.NONE


class TagStatusService:
    """
    Reports deployment status and tag consistency.

    Example:
        service = TagStatusService(TagRepository(GitReferenceStore(".")))
        for row in service.status():
            print(row.tag_name, row.version)
        issues = service.validate()
    """

    def __init__(self, repository: TagRepository):
        self.repository = repository
        self.naming = repository.naming

    def status(self, subproject: Optional[str] = None, recent: int = 5) -> List[TagStatus]:
        """
        Every configured environment, then the ``recent`` newest versions.

        Environments without a tag are reported with no commit.
        """
        index = _TagIndex(self.repository, subproject)
        rows = []
        for environment in self.naming.environments:
            name = self.naming.compose(
                TagKind.ENVIRONMENT, subproject=subproject, environment=environment
            )
            commit = index.commits.get(name)
            version = index.version_at(commit)
            rows.append(TagStatus(
                tag_name=name,
                kind=TagKind.ENVIRONMENT,
                commit=commit,
                version=version,
                environment=environment,
                state=index.state_of(version),
                subproject=subproject,
            ))

        for version in self.repository.list_version_tags(subproject)[:max(recent, 0)]:
            name = self.naming.compose(TagKind.VERSION, subproject=subproject, version=version)
            rows.append(TagStatus(
                tag_name=name,
                kind=TagKind.VERSION,
                commit=index.commits.get(name),
                version=version,
                state=index.state_of(version),
                subproject=subproject,
            ))
        return rows

    def validate(self, subproject: Optional[str] = None) -> List[ConsistencyIssue]:
        """
        Find tags that break the lifecycle rules.

        Reports state tags whose version tag is missing or on another
        commit, and environment tags on commits with no version tag.
        """
        index = _TagIndex(self.repository, subproject)
        issues = []

        for name in index.of_kind(TagKind.STATE):
            parts = index.parts[name]
            commit = index.commits[name]
            parent = self.naming.compose(
                TagKind.VERSION, subproject=subproject, version=parts.version
            )
            parent_commit = index.commits.get(parent)
            if parent_commit is None:
                issues.append(ConsistencyIssue(
                    name, TagKind.STATE, STATE_WITHOUT_VERSION,
                    f"State tag {name} has no version tag {parent}", commit,
                ))
            elif parent_commit != commit:
                issues.append(ConsistencyIssue(
                    name, TagKind.STATE, STATE_COMMIT_MISMATCH,
                    f"State tag {name} points to {commit}, but {parent} points to {parent_commit}",
                    commit,
                ))

        for name in index.of_kind(TagKind.ENVIRONMENT):
            commit = index.commits[name]
            if index.version_at(commit) is None:
                issues.append(ConsistencyIssue(
                    name, TagKind.ENVIRONMENT, ENVIRONMENT_UNTAGGED_COMMIT,
                    f"Environment tag {name} points to untagged commit {commit}", commit,
                ))

        for issue in issues:
            logger.warning(issue.message)
        return issues
