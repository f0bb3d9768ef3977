"""
Standard exit codes for tagflow commands.

Pipelines branch on these codes, so they are part of the public interface.
"""


SUCCESS = 0                  # Successful termination
VALIDATION_ERROR = 1         # Bad input: semver, environment, subproject, commit
IMMUTABILITY_CONFLICT = 2    # Version/state tag already exists, or move refused
PARENT_MISSING = 3           # State tag requested without its version tag
REMOTE_SYNC_FAILURE = 4      # Push to the remote rejected or unreachable
NO_CANDIDATE = 5             # Rollback target or current version not found
STORE_FAILURE = 6            # Local tag store refused a write (ref lock, bad name)
CANCELLED = 124              # Timed out or cancelled (matches timeout(1))
INTERRUPTED = 130            # Terminated by Ctrl+C (SIGINT)

# Exit code mappings for exceptions that are not TagflowError subclasses
EXCEPTION_EXIT_CODES = {
    'KeyboardInterrupt': INTERRUPTED,
    'TimeoutError': CANCELLED,
    'ConfigError': VALIDATION_ERROR,
}


def get_exit_code_for_exception(exc: BaseException) -> int:
    """
    Get the appropriate exit code for an exception.

    Exceptions carrying an ``exit_code`` attribute (all tagflow errors)
    use it directly; everything else is looked up by class name.

    Args:
        exc: The exception that occurred

    Returns:
        Appropriate exit code
    """
    code = getattr(exc, 'exit_code', None)
    if isinstance(code, int):
        return code
    return EXCEPTION_EXIT_CODES.get(exc.__class__.__name__, VALIDATION_ERROR)
