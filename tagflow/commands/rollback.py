"""
Rollback target command for tagflow.

    tagflow rollback-target --environment production
    tagflow rollback-target --environment staging --no-prefer-stable
"""

import click

from ..cli_utils import add_common_options, build_context, tagflow_command
from ..output import emit_json, emit_outputs
from ..services import RollbackResolver, TagRepository


@click.command('rollback-target')
@click.option('--environment', default=None, help='Environment to roll back')
@add_common_options('subproject')
@click.option('--prefer-stable/--no-prefer-stable', 'prefer_stable', default=None,
              help='Take the newest stable version when one exists (default from config)')
@click.option('--exclude-deprecated/--include-deprecated', 'exclude_deprecated', default=None,
              help='Never pick a deprecated version (default from config)')
@click.option('--list', 'list_candidates', is_flag=True,
              help='Also print every eligible version, newest first')
@add_common_options('repo', 'json', 'verbose')
@tagflow_command
def rollback_target_cmd(environment, subproject, prefer_stable, exclude_deprecated,
                        list_candidates, repo, json_output, verbose):
    """Pick the version an environment should roll back to.

    The version currently deployed is never chosen. Exits with 5 when the
    environment is not bound to a version or nothing else is eligible.
    """
    ctx = build_context(repo, verbose=verbose)
    defaults = ctx.config['rollback']
    if prefer_stable is None:
        prefer_stable = bool(defaults['prefer_stable'])
    if exclude_deprecated is None:
        exclude_deprecated = bool(defaults['exclude_deprecated'])

    resolver = RollbackResolver(TagRepository(ctx.store, ctx.naming))
    target = resolver.resolve_target(
        environment,
        subproject=subproject,
        prefer_stable=prefer_stable,
        exclude_deprecated=exclude_deprecated,
    )

    outputs = target.to_outputs()
    if list_candidates:
        candidates = resolver.candidates(environment, subproject, exclude_deprecated)
        outputs['candidates'] = ','.join(v.format() for v in candidates)

    if json_output:
        emit_json(outputs)
    else:
        emit_outputs(outputs)
