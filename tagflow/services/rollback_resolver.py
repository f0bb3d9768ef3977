"""
Rollback target resolution for tagflow.

Picks the version an environment should roll back to: the newest
known-good version, never the version already deployed, and (by
default) never a version marked deprecated. When no candidate is marked
stable, the newest remaining candidate is used so that rollback still
works for teams that do not annotate every release.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from ..domain import Semver, TagKind, TagState
from ..domain.errors import EnvironmentUnbound, NoCandidate
from .tag_repository import TagRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RollbackTarget:
    """The chosen rollback version and why it was chosen."""
    environment: str
    version: Semver
    tag_name: str
    commit: Optional[str]
    state: TagState
    current: Semver
    reason: str  # "stable" or "newest"
    subproject: Optional[str] = None

    def to_outputs(self) -> Dict[str, str]:
        """Flat key=value outputs for pipeline step capture."""
        outputs = {
            'environment': self.environment,
            'version': self.version.format(),
            'tag_name': self.tag_name,
            'commit': self.commit or '',
            'state': self.state.value,
            'current_version': self.current.format(),
            'reason': self.reason,
        }
        if self.subproject:
            outputs['subproject'] = self.subproject
        return outputs

    def to_dict(self) -> Dict[str, Any]:
        return dict(self.to_outputs())


class RollbackResolver:
    """
    Computes rollback targets from version and state tags.

    Example:
        resolver = RollbackResolver(TagRepository(store))
        target = resolver.resolve_target("production")
        print(target.version)
    """

    def __init__(self, repository: TagRepository):
        self.repository = repository

    def _current(self, environment: str, subproject: Optional[str]) -> Semver:
        try:
            return self.repository.current_version_of(environment, subproject)
        except EnvironmentUnbound as e:
            raise NoCandidate(environment, e.message)

    def _eligible(
        self,
        current: Semver,
        subproject: Optional[str],
        exclude_deprecated: bool,
    ) -> List[Semver]:
        result = [v for v in self.repository.list_version_tags(subproject) if v != current]
        if exclude_deprecated:
            result = [
                v for v in result
                if self.repository.state_of(v, subproject) is not TagState.DEPRECATED
            ]
        # Newest first: the deterministic tie-break between candidates
        return sorted(result, reverse=True)

    def candidates(
        self,
        environment: str,
        subproject: Optional[str] = None,
        exclude_deprecated: bool = True,
    ) -> List[Semver]:
        """
        Eligible versions, newest first, excluding the deployed one.

        Raises:
            NoCandidate: The environment is not bound to a version
        """
        current = self._current(environment, subproject)
        return self._eligible(current, subproject, exclude_deprecated)

    def resolve_target(
        self,
        environment: str,
        subproject: Optional[str] = None,
        prefer_stable: bool = True,
        exclude_deprecated: bool = True,
    ) -> RollbackTarget:
        """
        Choose the version to roll back to.

        Args:
            environment: Environment whose deployment is faulty
            subproject: Optional subproject path
            prefer_stable: Take the newest stable candidate when one exists
            exclude_deprecated: Never return a deprecated version

        Raises:
            NoCandidate: Environment unbound, or nothing left to choose
        """
        self.repository.naming.validate_environment(environment)
        current = self._current(environment, subproject)
        candidates = self._eligible(current, subproject, exclude_deprecated)
        logger.debug(f"Rollback candidates for {environment}: "
                     f"{', '.join(v.format() for v in candidates) or 'none'}")

        if not candidates:
            raise NoCandidate(environment, f"no release other than {current.tag} is eligible")

        chosen: Optional[Semver] = None
        reason = "newest"
        if prefer_stable:
            for version in candidates:
                if self.repository.state_of(version, subproject) is TagState.STABLE:
                    chosen, reason = version, "stable"
                    break
            else:
                logger.info(f"No stable candidate for {environment}; using newest")

        if chosen is None:
            chosen = candidates[0]

        tag_name = self.repository.naming.compose(
            TagKind.VERSION, subproject=subproject, version=chosen
        )
        logger.info(f"Rollback target for {environment}: {tag_name} ({reason})")
        return RollbackTarget(
            environment=environment,
            version=chosen,
            tag_name=tag_name,
            commit=self.repository.version_commit(chosen, subproject),
            state=self.repository.state_of(chosen, subproject),
            current=current,
            reason=reason,
            subproject=subproject,
        )
