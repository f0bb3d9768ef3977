"""
Common CLI utilities and decorators for consistent command behavior.
"""

import sys
from dataclasses import dataclass
from functools import wraps
from typing import Any, Dict, Optional

import click

from .cancellation import CancellationToken
from .config import ConfigError, configure_logging, load_config, logger
from .domain import TagNaming
from .domain.errors import TagflowError
from .exit_codes import INTERRUPTED, get_exit_code_for_exception
from .infra import GitReferenceStore, ReferenceStore
from .output import emit_error


@dataclass
class CommandContext:
    """Everything a command needs, built once from configuration."""
    config: Dict[str, Any]
    naming: TagNaming
    store: ReferenceStore
    token: CancellationToken


def build_context(
    repo: str = ".",
    verbose: bool = False,
    timeout: Optional[float] = None,
    store: Optional[ReferenceStore] = None,
) -> CommandContext:
    """
    Load configuration, configure logging and open the reference store.

    Args:
        repo: Path to the git working tree
        verbose: Force DEBUG logging
        timeout: Overall deadline in seconds for the command
        store: Store to use instead of a GitReferenceStore (tests)
    """
    config = load_config()
    configure_logging(config, verbose=verbose)

    token = CancellationToken(timeout=timeout)
    naming = TagNaming(config['tags']['environments'])
    if store is None:
        store = GitReferenceStore(
            path=repo,
            remote=config['remote']['name'],
            timeout=config['git']['timeout_seconds'],
            token=token,
        )
    return CommandContext(config=config, naming=naming, store=store, token=token)


def tagflow_command(func):
    """
    Decorator that provides standard CLI behavior:
    - tagflow errors exit with their own exit code
    - the error is reported on stderr (as JSON when --json is given)
    - Ctrl+C exits with 130
    """

    @wraps(func)
    def wrapper(*args, **kwargs):
        as_json = kwargs.get('json_output', False)
        try:
            return func(*args, **kwargs)
        except KeyboardInterrupt:
            logger.error("Interrupted by user")
            sys.exit(INTERRUPTED)
        except click.ClickException:
            raise
        except (TagflowError, ConfigError) as e:
            code = get_exit_code_for_exception(e)
            if as_json:
                emit_error(str(e), type=type(e).__name__, context={'exit_code': code})
            else:
                click.echo(f"Error: {e}", err=True)
            sys.exit(code)

    return wrapper


# Standard options that many commands share
common_options = {
    'repo': click.option('--repo', default='.', show_default=True,
                         type=click.Path(file_okay=False),
                         help='Path to the git working tree'),
    'subproject': click.option('--subproject', default=None,
                               help='Subproject path prefix (e.g. services/api)'),
    'json': click.option('--json', 'json_output', is_flag=True,
                         help='Output a JSON line instead of key=value pairs'),
    'verbose': click.option('-v', '--verbose', is_flag=True,
                            help='Enable debug logging'),
}


def add_common_options(*option_names):
    """
    Decorator to add common options to a command.

    Example:
        @add_common_options('repo', 'verbose')
        def my_command(repo, verbose):
            ...
    """
    def decorator(func):
        for name in reversed(option_names):
            func = common_options[name](func)
        return func
    return decorator
