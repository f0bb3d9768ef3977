"""
Error taxonomy for tagflow.

Every error raised by the domain and service layers derives from
TagflowError and carries the exit code the CLI reports for it.
Validation errors are raised before any mutating store call.
"""

from typing import Optional

from .. import exit_codes


class TagflowError(Exception):
    """Base class for all tagflow errors."""

    exit_code = exit_codes.VALIDATION_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


# =============================================================================
# VALIDATION (caller mistakes, never retried)
# =============================================================================

class ValidationError(TagflowError):
    """Request rejected before touching the reference store."""
    exit_code = exit_codes.VALIDATION_ERROR


class InvalidSemver(ValidationError):
    def __init__(self, text: str, reason: Optional[str] = None):
        message = f"Invalid version format: {text!r}"
        if reason:
            message += f" ({reason})"
        super().__init__(message)
        self.text = text


class InvalidEnvironmentName(ValidationError):
    def __init__(self, name: str, allowed=()):
        message = f"Invalid environment: {name!r}"
        if allowed:
            message += f" (must be one of: {', '.join(allowed)})"
        super().__init__(message)
        self.name = name


class InvalidSubprojectPath(ValidationError):
    def __init__(self, path: str):
        super().__init__(
            f"Invalid subproject path: {path!r} "
            "(slash-separated segments, no leading or trailing '/')"
        )
        self.path = path


class InvalidState(ValidationError):
    def __init__(self, state: str):
        super().__init__(
            f"Invalid state: {state!r} (must be one of: stable, unstable, deprecated)"
        )
        self.state = state


class MissingField(ValidationError):
    def __init__(self, field_name: str, kind: str):
        super().__init__(f"{field_name} is required for {kind} tags")
        self.field_name = field_name
        self.kind = kind


class InvalidTagType(ValidationError):
    def __init__(self, value: str):
        super().__init__(
            f"Invalid tag type: {value!r} (must be one of: version, environment, state)"
        )
        self.value = value


class UnrecognizedTagName(ValidationError):
    def __init__(self, name: str):
        super().__init__(f"Not a version, environment or state tag: {name!r}")
        self.name = name


class CommitNotFound(ValidationError):
    def __init__(self, commit: str):
        super().__init__(f"Commit not found: {commit}")
        self.commit = commit


class UnknownExecutionMode(ValidationError):
    def __init__(self, value: str, source: str):
        super().__init__(f"Unknown execution mode {value!r} (from {source})")
        self.value = value
        self.source = source


# =============================================================================
# MUTABILITY POLICY
# =============================================================================

class ImmutabilityError(TagflowError):
    exit_code = exit_codes.IMMUTABILITY_CONFLICT


class AlreadyImmutable(ImmutabilityError):
    def __init__(self, tag_name: str, commit: Optional[str] = None):
        message = f"Tag {tag_name} already exists and is immutable"
        if commit:
            message += f" (points to {commit})"
        super().__init__(message)
        self.tag_name = tag_name
        self.commit = commit


class CommitMismatch(ImmutabilityError):
    def __init__(self, tag_name: str, expected: str, actual: str):
        super().__init__(
            f"State tag {tag_name} must point to its version's commit "
            f"{expected}, got {actual}"
        )
        self.tag_name = tag_name
        self.expected = expected
        self.actual = actual


class MoveRejected(ImmutabilityError):
    def __init__(self, tag_name: str, current: str, requested: str):
        super().__init__(
            f"Environment tag {tag_name} points to {current}; "
            f"moving it to {requested} requires --force-move"
        )
        self.tag_name = tag_name
        self.current = current
        self.requested = requested


class ParentMissing(TagflowError):
    exit_code = exit_codes.PARENT_MISSING

    def __init__(self, tag_name: str, parent: str):
        super().__init__(
            f"Cannot create state tag {tag_name}: version tag {parent} does not exist"
        )
        self.tag_name = tag_name
        self.parent = parent


# =============================================================================
# REMOTE SYNC
# =============================================================================

class RemoteSyncError(TagflowError):
    """Push to the remote failed (network or rejection)."""
    exit_code = exit_codes.REMOTE_SYNC_FAILURE

    def __init__(self, tag_name: str, detail: str = "remote unreachable"):
        super().__init__(f"Failed to push tag {tag_name}: {detail}")
        self.tag_name = tag_name


class RemoteSyncConflict(RemoteSyncError):
    def __init__(self, tag_name: str, detail: str = "rejected by remote"):
        super().__init__(tag_name, detail)


class ReferenceStoreError(TagflowError):
    """The local store failed to write a tag for a reason other than
    an existing tag or a missing commit."""
    exit_code = exit_codes.STORE_FAILURE

    def __init__(self, tag_name: str, detail: str):
        super().__init__(f"Failed to write tag {tag_name}: {detail}")
        self.tag_name = tag_name
        self.detail = detail


# =============================================================================
# EXECUTION
# =============================================================================

class Cancelled(TagflowError):
    exit_code = exit_codes.CANCELLED

    def __init__(self, operation: str = "operation"):
        super().__init__(f"{operation} cancelled")
        self.operation = operation


class SimulatedFailure(TagflowError):
    exit_code = exit_codes.VALIDATION_ERROR

    def __init__(self, operation: str):
        super().__init__(f"Simulated failure for {operation}")
        self.operation = operation


# =============================================================================
# QUERIES
# =============================================================================

class ResolutionError(TagflowError):
    exit_code = exit_codes.NO_CANDIDATE


class EnvironmentUnbound(ResolutionError):
    def __init__(self, tag_name: str, commit: Optional[str] = None):
        if commit:
            message = f"Environment {tag_name} points to untagged commit {commit}"
        else:
            message = f"Environment tag {tag_name} does not exist"
        super().__init__(message)
        self.tag_name = tag_name
        self.commit = commit


class NoCandidate(ResolutionError):
    def __init__(self, environment: str, reason: str = "no eligible version"):
        super().__init__(f"No rollback candidate for {environment}: {reason}")
        self.environment = environment


class NoVersionTags(ResolutionError):
    def __init__(self, pattern: str):
        super().__init__(f"No version tags found matching pattern: {pattern}")
        self.pattern = pattern
