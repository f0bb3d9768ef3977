"""
Tag repository service for tagflow.

Enforces the mutability policy on top of a ReferenceStore:
- version tags are created once and never move
- state tags are created once, only after their version tag, and only at
  the version tag's commit
- environment tags are created on first deploy and moved afterwards

Every mutator has a plan_* counterpart that performs the same read-only
checks and reports the change without applying it.
"""

import logging
import os
from typing import Dict, List, Optional

from ..domain import (
    Semver,
    TagChange,
    TagKind,
    TagNaming,
    TagParts,
    TagState,
    STATE_PREFERENCE,
)
from ..domain.tag import validate_subproject
from ..domain.errors import (
    AlreadyImmutable,
    CommitMismatch,
    CommitNotFound,
    EnvironmentUnbound,
    MoveRejected,
    ParentMissing,
)
from ..infra import ReferenceStore, StoreResult

logger = logging.getLogger(__name__)


def format_tag_message(kind: TagKind, tag_name: str, action: str,
                       prior_commit: Optional[str] = None) -> str:
    """Annotation recorded on created and moved tags."""
    lines = [f"{action}: {tag_name}", "", f"Type: {kind.value}"]
    if prior_commit:
        lines.append(f"Previous commit: {prior_commit}")
    actor = os.environ.get('GITHUB_ACTOR')
    if actor:
        lines.append(f"Actor: {actor}")
    run_id = os.environ.get('GITHUB_RUN_ID')
    if run_id:
        lines.append(f"Run: {run_id}")
    return '\n'.join(lines)


class TagRepository:
    """
    Typed access to version, environment and state tags.

    Example:
        repo = TagRepository(GitReferenceStore("."))
        repo.create_version_tag(Semver.parse("1.2.0"), commit)
        repo.create_state_tag(Semver.parse("1.2.0"), TagState.STABLE, commit)
        repo.current_version_of("production")
    """

    def __init__(self, store: ReferenceStore, naming: Optional[TagNaming] = None):
        """
        Initialize TagRepository.

        Args:
            store: Reference store adapter
            naming: Tag naming rules (default environment allow-list if None)
        """
        self.store = store
        self.naming = naming or TagNaming()

    # ------------------------------------------------------------------
    # Version tags
    # ------------------------------------------------------------------

    def plan_version_tag(
        self,
        version: Semver,
        commit: str,
        subproject: Optional[str] = None,
    ) -> TagChange:
        """
        Check that a version tag can be created.

        Raises:
            AlreadyImmutable: The tag exists (at any commit)
        """
        name = self.naming.compose(TagKind.VERSION, subproject=subproject, version=version)
        existing = self.store.resolve(name)
        if existing is not None:
            raise AlreadyImmutable(name, existing)
        return TagChange(tag_name=name, kind=TagKind.VERSION, commit=commit)

    def create_version_tag(
        self,
        version: Semver,
        commit: str,
        subproject: Optional[str] = None,
    ) -> str:
        """
        Create an immutable version tag.

        Returns:
            The tag name

        Raises:
            AlreadyImmutable: The tag exists
            CommitNotFound: The store does not know the commit
        """
        change = self.plan_version_tag(version, commit, subproject)
        self._apply(change, allow_move=False, action="Created version tag")
        logger.info(f"Version tag {change.tag_name} points to commit {commit}")
        return change.tag_name

    # ------------------------------------------------------------------
    # Environment tags
    # ------------------------------------------------------------------

    def plan_environment_tag(
        self,
        environment: str,
        commit: str,
        subproject: Optional[str] = None,
        force_move: bool = False,
    ) -> TagChange:
        """
        Check that an environment tag can be created or moved.

        Raises:
            MoveRejected: The tag points elsewhere and force_move is False
        """
        name = self.naming.compose(
            TagKind.ENVIRONMENT, subproject=subproject, environment=environment
        )
        current = self.store.resolve(name)
        if current is not None and current != commit and not force_move:
            raise MoveRejected(name, current, commit)
        return TagChange(
            tag_name=name,
            kind=TagKind.ENVIRONMENT,
            commit=commit,
            prior_commit=current,
        )

    def create_or_move_environment_tag(
        self,
        environment: str,
        commit: str,
        subproject: Optional[str] = None,
        force_move: bool = False,
    ) -> TagChange:
        """
        Point an environment tag at a commit.

        Creates the tag if absent, does nothing if it already points at
        ``commit``, and moves it only when ``force_move`` is set.

        Returns:
            The applied change (prior_commit is None for a new tag)
        """
        change = self.plan_environment_tag(environment, commit, subproject, force_move)
        if change.is_noop:
            logger.info(f"Environment tag {change.tag_name} already points to {commit}")
            return change

        if change.exists:
            logger.info(f"Moving environment tag {change.tag_name}: "
                        f"{change.prior_commit[:7]} -> {commit[:7]}")
            action = "Moved environment tag"
        else:
            logger.info(f"Creating new environment tag: {change.tag_name}")
            action = "Created environment tag"
        self._apply(change, allow_move=True, action=action)
        return change

    # ------------------------------------------------------------------
    # State tags
    # ------------------------------------------------------------------

    def plan_state_tag(
        self,
        version: Semver,
        state: TagState,
        commit: str,
        subproject: Optional[str] = None,
    ) -> TagChange:
        """
        Check that a state tag can be created.

        Raises:
            ParentMissing: No version tag for ``version``
            CommitMismatch: ``commit`` differs from the version tag's commit
            AlreadyImmutable: This exact state tag exists
        """
        name = self.naming.compose(
            TagKind.STATE, subproject=subproject, version=version, state=state
        )
        parent = self.naming.compose(TagKind.VERSION, subproject=subproject, version=version)

        parent_commit = self.store.resolve(parent)
        if parent_commit is None:
            raise ParentMissing(name, parent)
        if parent_commit != commit:
            raise CommitMismatch(name, parent_commit, commit)

        existing = self.store.resolve(name)
        if existing is not None:
            raise AlreadyImmutable(name, existing)
        return TagChange(tag_name=name, kind=TagKind.STATE, commit=commit)

    def create_state_tag(
        self,
        version: Semver,
        state: TagState,
        commit: str,
        subproject: Optional[str] = None,
    ) -> str:
        """
        Annotate a version with a lifecycle state.

        Returns:
            The tag name
        """
        change = self.plan_state_tag(version, state, commit, subproject)
        self._apply(change, allow_move=False, action="Created state tag")
        logger.info(f"State tag {change.tag_name} points to commit {commit}")
        return change.tag_name

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def list_tags(
        self,
        kind: Optional[TagKind] = None,
        subproject: Optional[str] = None,
    ) -> List[TagParts]:
        """
        List recognized tags belonging to exactly one subproject (or to
        the top level when subproject is None).
        """
        if kind is None:
            subproject = validate_subproject(subproject)
            pattern = f"{subproject}/*" if subproject else "*"
        else:
            pattern = self.naming.list_pattern(kind, subproject)

        result = []
        for name in self.store.list_by_prefix(pattern):
            parts = self.naming.classify_parts(name)
            if parts is None or parts.subproject != (subproject or None):
                continue
            if kind is not None and parts.kind is not kind:
                continue
            result.append(parts)
        return result

    def list_version_tags(self, subproject: Optional[str] = None) -> List[Semver]:
        """All released versions, newest first."""
        versions = {p.version for p in self.list_tags(TagKind.VERSION, subproject)}
        return sorted(versions, reverse=True)

    def latest_version(self, subproject: Optional[str] = None) -> Optional[Semver]:
        versions = self.list_version_tags(subproject)
        return versions[0] if versions else None

    def states_of(self, version: Semver, subproject: Optional[str] = None) -> List[TagState]:
        """Every state tag present on a version, in preference order."""
        found = []
        for state in STATE_PREFERENCE:
            name = self.naming.compose(
                TagKind.STATE, subproject=subproject, version=version, state=state
            )
            if self.store.resolve(name) is not None:
                found.append(state)
        return found

    def state_of(self, version: Semver, subproject: Optional[str] = None) -> TagState:
        """
        The most preferred state of a version.

        Stable beats unstable beats deprecated; NONE when no state tag
        exists.
        """
        states = self.states_of(version, subproject)
        return states[0] if states else TagState.NONE

    def version_commit(self, version: Semver, subproject: Optional[str] = None) -> Optional[str]:
        name = self.naming.compose(TagKind.VERSION, subproject=subproject, version=version)
        return self.store.resolve(name)

    def environment_commit(self, environment: str, subproject: Optional[str] = None) -> Optional[str]:
        name = self.naming.compose(
            TagKind.ENVIRONMENT, subproject=subproject, environment=environment
        )
        return self.store.resolve(name)

    def versions_at(self, commit: str, subproject: Optional[str] = None) -> List[Semver]:
        """Versions whose tag points at ``commit``, newest first."""
        return [
            v for v in self.list_version_tags(subproject)
            if self.version_commit(v, subproject) == commit
        ]

    def current_version_of(self, environment: str, subproject: Optional[str] = None) -> Semver:
        """
        The version currently deployed to an environment.

        Raises:
            EnvironmentUnbound: The environment tag is missing, or no
                version tag shares its commit
        """
        name = self.naming.compose(
            TagKind.ENVIRONMENT, subproject=subproject, environment=environment
        )
        commit = self.store.resolve(name)
        if commit is None:
            raise EnvironmentUnbound(name)

        versions = self.versions_at(commit, subproject)
        if not versions:
            raise EnvironmentUnbound(name, commit)
        return versions[0]

    def commit_map(self, subproject: Optional[str] = None) -> Dict[str, str]:
        """Map of tag name to commit for all recognized tags."""
        result = {}
        for parts in self.list_tags(None, subproject):
            name = self.naming.compose_parts(parts)
            commit = self.store.resolve(name)
            if commit is not None:
                result[name] = commit
        return result

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _apply(self, change: TagChange, allow_move: bool, action: str) -> None:
        message = format_tag_message(change.kind, change.tag_name, action, change.prior_commit)
        outcome = self.store.create_or_move(
            change.tag_name, change.commit, allow_move=allow_move, message=message
        )
        if outcome is StoreResult.ALREADY_EXISTS:
            # Lost a race with another writer between plan and apply
            raise AlreadyImmutable(change.tag_name, self.store.resolve(change.tag_name))
        if outcome is StoreResult.COMMIT_NOT_FOUND:
            raise CommitNotFound(change.commit)
