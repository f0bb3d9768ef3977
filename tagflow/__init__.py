"""
tagflow - Release lifecycle tracking with git tags.

tagflow answers three questions for a delivery pipeline: what version is
this commit, what is running in environment X, and what should X roll
back to if its deployment is faulty.

Quick Start:
    from tagflow import (
        GitReferenceStore, TagAssignmentService, RollbackResolver,
        VersionTagRequest, EnvironmentTagRequest,
    )

    store = GitReferenceStore(".")
    service = TagAssignmentService(store)

    # Release 1.4.0 at HEAD and deploy it to staging
    service.assign(VersionTagRequest(version="1.4.0"))
    result = service.assign(EnvironmentTagRequest(environment="staging", force_move=True))
    print(result.tag_name, result.action.value, result.should_deploy)

    # What to roll back to
    target = RollbackResolver(service.repository).resolve_target("staging")
    print(target.version)

Tag Families:
    Version      v1.2.3, api/v1.2.3           immutable
    State        v1.2.3-stable, -unstable, -deprecated   immutable
    Environment  production, api/staging      movable

Execution Modes:
    EXECUTE, DRY_RUN, SIMULATE_PASS, SIMULATE_FAIL, SKIP, SIMULATE_TIMEOUT
    (read from CI_TEST_<PIPELINE>_<OPERATION>_BEHAVIOR,
    CI_TEST_<OPERATION>_BEHAVIOR, CI_TEST_MODE)
"""

__version__ = "0.1.0"

# Domain objects
from .domain import (
    Semver,
    TagKind,
    TagState,
    TagParts,
    TagNaming,
    VersionTagRequest,
    EnvironmentTagRequest,
    StateTagRequest,
    TagAction,
    TagResult,
    build_request,
)
from .domain.errors import TagflowError

# Reference stores
from .infra import ReferenceStore, GitReferenceStore, InMemoryReferenceStore

# Services
from .services import (
    TagRepository,
    RollbackResolver,
    RollbackTarget,
    ExecutionMode,
    ExecutionModeResolver,
    TagAssignmentService,
)

from .cancellation import CancellationToken

# Configuration
from .config import load_config, save_config

__all__ = [
    # Version
    "__version__",
    # Domain objects
    "Semver",
    "TagKind",
    "TagState",
    "TagParts",
    "TagNaming",
    "VersionTagRequest",
    "EnvironmentTagRequest",
    "StateTagRequest",
    "TagAction",
    "TagResult",
    "build_request",
    "TagflowError",
    # Reference stores
    "ReferenceStore",
    "GitReferenceStore",
    "InMemoryReferenceStore",
    # Services
    "TagRepository",
    "RollbackResolver",
    "RollbackTarget",
    "ExecutionMode",
    "ExecutionModeResolver",
    "TagAssignmentService",
    "CancellationToken",
    # Configuration
    "load_config",
    "save_config",
]
