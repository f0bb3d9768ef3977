"""
Tag assignment command for tagflow.

Pipeline entry point for creating version and state tags and for
creating or moving environment tags:

    tagflow assign --tag-type version --version 1.4.0
    tagflow assign --tag-type environment --environment staging --force-move
    tagflow assign --tag-type state --version 1.4.0 --state stable
"""

import click

from ..cli_utils import add_common_options, build_context, tagflow_command
from ..config import logger
from ..domain import TagAction, build_request
from ..output import emit_json, emit_outputs, write_github_output
from ..services import ExecutionModeResolver, TagAssignmentService


@click.command('assign')
@click.option('--tag-type', 'tag_type', default=None,
              help='Kind of tag to assign: version, environment or state')
@click.option('--version', 'version', default=None, help='Semantic version (version and state tags)')
@click.option('--environment', default=None, help='Environment name (environment tags)')
@click.option('--state', default=None,
              help='Lifecycle state: stable, unstable or deprecated (state tags)')
@add_common_options('subproject')
@click.option('--commit', default=None, help='Commit to tag (default: HEAD)')
@click.option('--force-move', is_flag=True, help='Allow moving an existing environment tag')
@click.option('--push/--no-push', 'push', default=None,
              help='Push the tag to the remote (default from config remote.push)')
@click.option('--operation', default=None,
              help='Operation name for execution mode lookup (default from config)')
@click.option('--pipeline', default=None,
              help='Pipeline name for execution mode lookup (default: $GITHUB_WORKFLOW)')
@click.option('--timeout', type=float, default=None, help='Overall deadline in seconds')
@add_common_options('repo', 'json', 'verbose')
@tagflow_command
def assign_cmd(tag_type, version, environment, state, subproject, commit, force_move,
               push, operation, pipeline, timeout, repo, json_output, verbose):
    """Create or move a version, environment or state tag.

    Prints key=value outputs (tag_name, commit, action, should_deploy, ...)
    and appends them to $GITHUB_OUTPUT when it is set.

    The execution mode is read from CI_TEST_<PIPELINE>_<OPERATION>_BEHAVIOR,
    CI_TEST_<OPERATION>_BEHAVIOR or CI_TEST_MODE (first one set wins):
    EXECUTE, DRY_RUN, SIMULATE_PASS, SIMULATE_FAIL, SKIP or SIMULATE_TIMEOUT.
    """
    ctx = build_context(repo, verbose=verbose, timeout=timeout)
    config = ctx.config

    operation = operation or config['execution']['operation']
    if push is None:
        push = bool(config['remote']['push'])

    request = build_request(
        tag_type,
        version=version,
        environment=environment,
        state=state,
        subproject=subproject,
        commit=commit,
        force_move=force_move,
    )

    resolver = ExecutionModeResolver.for_operation(
        operation, pipeline=pipeline, prefix=config['execution']['prefix']
    )
    service = TagAssignmentService(
        ctx.store,
        naming=ctx.naming,
        mode_resolver=resolver,
        sync_remote=push,
        token=ctx.token,
        operation=operation,
    )
    result = service.assign(request)

    if result.action is TagAction.SKIPPED:
        logger.info(f"{operation} skipped; no outputs written")
        return

    if json_output:
        emit_json(result)
        write_github_output(result.to_outputs())
    else:
        emit_outputs(result.to_outputs())
