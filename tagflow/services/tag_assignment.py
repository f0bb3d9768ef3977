"""
Tag assignment service for tagflow.

Entry point for pipeline steps that create or move tags. One call:
1. resolves the execution mode and short-circuits the simulated modes
2. validates the request (semver, environment, state, subproject, commit)
3. plans (DRY_RUN) or applies (EXECUTE) the change through TagRepository
4. pushes the tag to the remote copy of the store
5. returns a TagResult

Remote conflicts on version and state tags are hard errors: a second
writer binding the same immutable name is a duplicate release, not a
transient race. Environment tags get one re-resolve-and-overwrite retry
(last write wins); there is no compare-and-swap to do better.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from ..cancellation import CancellationToken
from ..domain import (
    EnvironmentTagRequest,
    Semver,
    StateTagRequest,
    TagAction,
    TagChange,
    TagKind,
    TagNaming,
    TagRequest,
    TagResult,
    TagState,
    VersionTagRequest,
)
from ..domain.errors import (
    Cancelled,
    CommitNotFound,
    RemoteSyncConflict,
    RemoteSyncError,
    SimulatedFailure,
    TagflowError,
)
from ..domain.tag import validate_subproject
from ..infra import ReferenceStore, SyncResult
from .execution_mode import ExecutionMode, ExecutionModeResolver
from .tag_repository import TagRepository

logger = logging.getLogger(__name__)

DEFAULT_OPERATION = "tag_assignment"


@dataclass(frozen=True)
class ValidatedRequest:
    """A request whose fields have been parsed and checked."""
    kind: TagKind
    commit: str
    subproject: Optional[str] = None
    version: Optional[Semver] = None
    environment: Optional[str] = None
    state: Optional[TagState] = None
    force_move: bool = False


class TagAssignmentService:
    """
    Orchestrates tag assignment requests.

    Example:
        service = TagAssignmentService(GitReferenceStore("."))
        result = service.assign(VersionTagRequest(version="1.4.0"))
        print(result.tag_name, result.action.value)
    """

    def __init__(
        self,
        store: ReferenceStore,
        naming: Optional[TagNaming] = None,
        mode_resolver: Optional[ExecutionModeResolver] = None,
        sync_remote: bool = True,
        token: Optional[CancellationToken] = None,
        operation: str = DEFAULT_OPERATION,
    ):
        """
        Initialize TagAssignmentService.

        Args:
            store: Reference store adapter
            naming: Tag naming rules (default environment allow-list if None)
            mode_resolver: Execution mode resolver (environment-based if None)
            sync_remote: Push tags to the remote after local changes
            token: Cancellation token (never fires if None)
            operation: Operation name used for execution mode lookup
        """
        self.store = store
        self.naming = naming or TagNaming()
        self.repository = TagRepository(store, self.naming)
        self.operation = operation
        self.mode_resolver = mode_resolver or ExecutionModeResolver.for_operation(operation)
        self.sync_remote = sync_remote
        self.token = token or CancellationToken()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def assign(self, request: TagRequest) -> TagResult:
        """
        Create or move the tag described by ``request``.

        Returns:
            TagResult describing what happened

        Raises:
            TagflowError: Validation, mutability, sync, simulated failure
                or cancellation; all terminal for this request
        """
        mode = self.mode_resolver.resolve().mode
        if not mode.touches_store:
            return self._short_circuit(request, mode)

        validated = self.validate(request)
        self.token.raise_if_cancelled(self.operation)

        if not mode.mutates:
            change = self.plan(validated)
            logger.info(f"Dry run: {change.planned_action.value} {change.tag_name} "
                        f"at {change.commit}")
            result = self._result_from_change(validated, change, change.planned_action, mode)
            result.metadata['would_push'] = self.sync_remote and not change.is_noop
            return result

        change = self.apply(validated)
        action = change.applied_action
        synced = False
        if self.sync_remote:
            self.token.raise_if_cancelled(self.operation)
            synced = self.sync(change)
        return self._result_from_change(validated, change, action, mode, synced=synced)

    def _short_circuit(self, request: TagRequest, mode: ExecutionMode) -> TagResult:
        """Handle the modes that never read or write the store."""
        if mode is ExecutionMode.SKIP:
            logger.info(f"Skipping {self.operation}")
            return self._result(request, TagAction.SKIPPED, mode)
        if mode is ExecutionMode.SIMULATE_PASS:
            logger.info(f"Simulated success for {self.operation}")
            return self._result(request, TagAction.SIMULATED, mode)
        if mode is ExecutionMode.SIMULATE_FAIL:
            logger.error(f"Simulated failure for {self.operation}")
            raise SimulatedFailure(self.operation)
        logger.warning(f"Simulating timeout for {self.operation}")
        self.token.wait()
        raise Cancelled(self.operation)

    def validate(self, request: TagRequest) -> ValidatedRequest:
        """
        Parse and check a request without mutating anything.

        Raises:
            ValidationError subclasses (InvalidSemver, InvalidEnvironmentName,
            InvalidState, InvalidSubprojectPath, CommitNotFound)
        """
        subproject = validate_subproject(request.subproject)
        rev = request.commit or 'HEAD'
        commit = self.store.resolve_commit(rev)
        if commit is None:
            raise CommitNotFound(rev)
        if request.commit is None:
            logger.info(f"Using current HEAD commit: {commit}")

        if isinstance(request, VersionTagRequest):
            return ValidatedRequest(
                kind=TagKind.VERSION,
                commit=commit,
                subproject=subproject,
                version=Semver.parse(request.version),
            )
        if isinstance(request, EnvironmentTagRequest):
            return ValidatedRequest(
                kind=TagKind.ENVIRONMENT,
                commit=commit,
                subproject=subproject,
                environment=self.naming.validate_environment(request.environment),
                force_move=request.force_move,
            )
        if isinstance(request, StateTagRequest):
            return ValidatedRequest(
                kind=TagKind.STATE,
                commit=commit,
                subproject=subproject,
                version=Semver.parse(request.version),
                state=TagState.parse(request.state),
            )
        raise TypeError(f"Unsupported request type: {type(request).__name__}")

    def plan(self, req: ValidatedRequest) -> TagChange:
        """Run every read-only check and report the change."""
        repo = self.repository
        if req.kind is TagKind.VERSION:
            return repo.plan_version_tag(req.version, req.commit, req.subproject)
        if req.kind is TagKind.ENVIRONMENT:
            return repo.plan_environment_tag(
                req.environment, req.commit, req.subproject, req.force_move
            )
        return repo.plan_state_tag(req.version, req.state, req.commit, req.subproject)

    def apply(self, req: ValidatedRequest) -> TagChange:
        """Apply the change to the local store."""
        repo = self.repository
        if req.kind is TagKind.VERSION:
            name = repo.create_version_tag(req.version, req.commit, req.subproject)
            return TagChange(name, TagKind.VERSION, req.commit)
        if req.kind is TagKind.ENVIRONMENT:
            return repo.create_or_move_environment_tag(
                req.environment, req.commit, req.subproject, req.force_move
            )
        name = repo.create_state_tag(req.version, req.state, req.commit, req.subproject)
        return TagChange(name, TagKind.STATE, req.commit)

    def sync(self, change: TagChange) -> bool:
        """
        Push a tag to the remote.

        Returns:
            True once the remote holds the intended commit

        Raises:
            RemoteSyncConflict: Immutable tag rejected, or environment tag
                still conflicting after the single retry
            RemoteSyncError: Remote unreachable
        """
        name = change.tag_name
        outcome = self.store.remote_sync(name)
        if outcome is SyncResult.SUCCESS:
            logger.info(f"Tag {name} pushed successfully")
            return True
        if outcome is SyncResult.NETWORK_ERROR:
            raise RemoteSyncError(name)

        if not change.kind.movable:
            raise RemoteSyncConflict(
                name, "remote rejected the immutable tag"
            )

        remote_commit = self.store.remote_resolve(name)
        if remote_commit == change.commit:
            logger.info(f"Remote {name} already points to {change.commit}")
            return True

        logger.warning(f"Remote {name} points to {remote_commit}; overwriting with {change.commit}")
        retry = self.store.remote_sync(name, force=True)
        if retry is SyncResult.SUCCESS:
            logger.info(f"Tag {name} pushed successfully after retry")
            return True
        if retry is SyncResult.NETWORK_ERROR:
            raise RemoteSyncError(name)
        raise RemoteSyncConflict(name, "conflict persisted after retry")

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _result_from_change(
        self,
        req: ValidatedRequest,
        change: TagChange,
        action: TagAction,
        mode: ExecutionMode,
        synced: bool = False,
    ) -> TagResult:
        return TagResult(
            tag_name=change.tag_name,
            kind=change.kind,
            commit=change.commit,
            prior_commit=change.prior_commit,
            action=action,
            mode=mode.value,
            synced=synced,
            version=req.version.format() if req.version else None,
            environment=req.environment,
            state=req.state.value if req.state else None,
            subproject=req.subproject,
        )

    def _result(self, request: TagRequest, action: TagAction, mode: ExecutionMode) -> TagResult:
        """Result for modes that never look at the store."""
        return TagResult(
            tag_name=self._preview_name(request),
            kind=request.kind,
            commit=request.commit,
            action=action,
            mode=mode.value,
            version=getattr(request, 'version', None),
            environment=getattr(request, 'environment', None),
            state=getattr(request, 'state', None),
            subproject=request.subproject,
        )

    def _preview_name(self, request: TagRequest) -> str:
        """Tag name for reporting; empty when the request is malformed."""
        try:
            if isinstance(request, VersionTagRequest):
                return self.naming.compose(
                    TagKind.VERSION, request.subproject, version=Semver.parse(request.version)
                )
            if isinstance(request, EnvironmentTagRequest):
                return self.naming.compose(
                    TagKind.ENVIRONMENT, request.subproject, environment=request.environment
                )
            return self.naming.compose(
                TagKind.STATE,
                request.subproject,
                version=Semver.parse(request.version),
                state=TagState.parse(request.state),
            )
        except TagflowError:
            return ''
