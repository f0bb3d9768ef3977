"""
Status and consistency commands for tagflow.

    tagflow status --pretty
    tagflow validate --subproject services/api
"""

import sys

import click

from ..cli_utils import add_common_options, build_context, tagflow_command
from ..config import logger
from ..domain.tag import validate_subproject
from ..exit_codes import VALIDATION_ERROR
from ..output import emit
from ..services import TagRepository, TagStatusService


@click.command('status')
@add_common_options('subproject')
@click.option('--recent', default=5, show_default=True, type=int,
              help='Number of recent versions to show after the environments')
@click.option('--pretty', is_flag=True, help='Display as formatted table')
@add_common_options('repo', 'verbose')
@tagflow_command
def status_cmd(subproject, recent, pretty, repo, verbose):
    """Show what is deployed to each environment.

    One row per configured environment (commit, version and state; empty
    when the environment has no tag), followed by the most recent
    versions.
    """
    subproject = validate_subproject(subproject)
    ctx = build_context(repo, verbose=verbose)
    service = TagStatusService(TagRepository(ctx.store, ctx.naming))
    emit(service.status(subproject, recent=recent), pretty=pretty)


@click.command('validate')
@add_common_options('subproject')
@click.option('--pretty', is_flag=True, help='Display as formatted table')
@add_common_options('repo', 'verbose')
@tagflow_command
def validate_cmd(subproject, pretty, repo, verbose):
    """Check that the tags agree with each other.

    Reports state tags without their version tag or on a different
    commit, and environment tags on commits no version tag points to.
    Exits with 1 when any problem is found.
    """
    subproject = validate_subproject(subproject)
    ctx = build_context(repo, verbose=verbose)
    issues = TagStatusService(TagRepository(ctx.store, ctx.naming)).validate(subproject)
    if not issues:
        logger.info("Tags are consistent")
        return

    emit(issues, pretty=pretty)
    logger.error(f"{len(issues)} tag consistency problem(s) found")
    sys.exit(VALIDATION_ERROR)
