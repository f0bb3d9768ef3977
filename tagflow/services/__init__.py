"""
Service layer for tagflow.

Contains business logic that orchestrates domain objects and infrastructure:
- TagRepository: Mutability policy and typed tag queries
- RollbackResolver: Rollback target selection
- ExecutionModeResolver: Real, rehearsal and simulated execution modes
- TagAssignmentService: Entry point for tag assignment requests
- TagStatusService: Deployment status and tag consistency checks

Services are the primary API for commands to use.
"""

from .tag_repository import TagRepository
from .rollback_resolver import RollbackResolver, RollbackTarget
from .execution_mode import ExecutionMode, ExecutionModeResolver, ModeSource, ModeResolution
from .tag_assignment import TagAssignmentService
from .tag_status import ConsistencyIssue, TagStatus, TagStatusService

__all__ = [
    'TagRepository',
    'RollbackResolver',
    'RollbackTarget',
    'ExecutionMode',
    'ExecutionModeResolver',
    'ModeSource',
    'ModeResolution',
    'TagAssignmentService',
    'TagStatusService',
    'TagStatus',
    'ConsistencyIssue',
]
