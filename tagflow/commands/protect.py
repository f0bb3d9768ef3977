"""
Push protection command for tagflow.

Install as a git pre-push hook:

    #!/bin/sh
    exec tagflow check-push "$@"

git feeds one line per pushed ref on stdin. Environment tags are
refused unless ALLOW_PROTECTED_TAG_PUSH=true is set.
"""

import sys

import click

from ..cli_utils import add_common_options, build_context, tagflow_command
from ..config import logger
from ..exit_codes import VALIDATION_ERROR
from ..output import emit
from ..services.tag_protection import OVERRIDE_VARIABLE, check_push, parse_hook_lines


@click.command('check-push')
@click.argument('remote_name', required=False)
@click.argument('remote_url', required=False)
@click.option('--allow-protected', is_flag=True, envvar=OVERRIDE_VARIABLE,
              help=f'Emergency override (also set by {OVERRIDE_VARIABLE}=true)')
@click.option('--tag', 'tag_names', multiple=True,
              help='Check a tag name instead of reading hook input (repeatable)')
@click.option('--report', is_flag=True, help='Print one JSON line per pushed tag')
@add_common_options('verbose')
@tagflow_command
def check_push_cmd(remote_name, remote_url, allow_protected, tag_names, report, verbose):
    """Refuse manual pushes of protected environment tags.

    Reads git pre-push hook input from stdin, or checks the names given
    with --tag. Exits with 1 when a protected tag would be pushed.
    """
    ctx = build_context(verbose=verbose)
    if tag_names:
        tags = [(name, False) for name in tag_names]
    else:
        tags = parse_hook_lines(click.get_text_stream('stdin'))
    if not tags:
        return

    result = check_push(tags, ctx.naming, allow_protected=allow_protected)
    if report:
        emit(result.checks)

    if not result.allowed:
        names = ', '.join(c.tag_name for c in result.rejected)
        target = f" to {remote_name}" if remote_name else ""
        logger.error(f"Push{target} rejected: protected tags {names}")
        logger.error(f"Set {OVERRIDE_VARIABLE}=true for an emergency override")
        sys.exit(VALIDATION_ERROR)
