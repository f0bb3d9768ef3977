"""
Read-only tag queries for tagflow.

None of these commands modify the reference store.
"""

import click

from ..cli_utils import add_common_options, build_context, tagflow_command
from ..domain import Semver, TagKind
from ..domain.errors import InvalidTagType, NoVersionTags, ValidationError
from ..domain.semver import BUMP_PARTS
from ..domain.tag import validate_subproject
from ..output import emit, emit_json, emit_outputs
from ..services import TagRepository


def _emit_single(outputs, json_output):
    if json_output:
        emit_json(outputs)
    else:
        emit_outputs(outputs)


def _parse_kind(tag_type):
    if not tag_type:
        return None
    try:
        return TagKind(tag_type.strip().lower())
    except ValueError:
        raise InvalidTagType(tag_type)


def list_tag_rows(repository: TagRepository, kind=None, subproject=None):
    """Recognized tags with the commit each one points to."""
    for parts in repository.list_tags(kind, subproject):
        name = repository.naming.compose_parts(parts)
        row = {'tag_name': name}
        row.update(parts.to_dict())
        row['commit'] = repository.store.resolve(name)
        yield row


@click.command('list')
@click.option('--tag-type', 'tag_type', default=None,
              help='Only list one kind: version, environment or state')
@add_common_options('subproject')
@click.option('--pretty', is_flag=True, help='Display as formatted table')
@add_common_options('repo', 'verbose')
@tagflow_command
def list_cmd(tag_type, subproject, pretty, repo, verbose):
    """List version, environment and state tags.

    Outputs JSONL by default, one tag per line. Tags that belong to a
    different subproject, or that match none of the three shapes, are
    left out.
    """
    ctx = build_context(repo, verbose=verbose)
    repository = TagRepository(ctx.store, ctx.naming)
    rows = list_tag_rows(repository, _parse_kind(tag_type), subproject)
    emit(rows, pretty=pretty)


@click.command('current')
@click.option('--environment', default=None, help='Environment name')
@add_common_options('subproject', 'repo', 'json', 'verbose')
@tagflow_command
def current_cmd(environment, subproject, repo, json_output, verbose):
    """Show the version currently deployed to an environment."""
    ctx = build_context(repo, verbose=verbose)
    repository = TagRepository(ctx.store, ctx.naming)
    ctx.naming.validate_environment(environment)

    version = repository.current_version_of(environment, subproject)
    outputs = {
        'environment': environment,
        'version': version.format(),
        'tag_name': ctx.naming.compose(TagKind.VERSION, subproject=subproject, version=version),
        'commit': repository.environment_commit(environment, subproject),
        'state': repository.state_of(version, subproject).value,
    }
    if subproject:
        outputs['subproject'] = subproject
    _emit_single(outputs, json_output)


@click.command('state-of')
@click.option('--version', 'version', default=None, help='Semantic version')
@add_common_options('subproject', 'repo', 'json', 'verbose')
@tagflow_command
def state_of_cmd(version, subproject, repo, json_output, verbose):
    """Show the lifecycle state of a version.

    When several state tags exist, stable wins over unstable, which wins
    over deprecated. A version without state tags reports "none".
    """
    ctx = build_context(repo, verbose=verbose)
    repository = TagRepository(ctx.store, ctx.naming)
    parsed = Semver.parse((version or '').strip())

    states = repository.states_of(parsed, subproject)
    outputs = {
        'version': parsed.format(),
        'tag_name': ctx.naming.compose(TagKind.VERSION, subproject=subproject, version=parsed),
        'exists': repository.version_commit(parsed, subproject) is not None,
        'state': states[0].value if states else 'none',
        'states': ','.join(s.value for s in states),
    }
    if subproject:
        outputs['subproject'] = subproject
    _emit_single(outputs, json_output)


@click.command('latest')
@add_common_options('subproject', 'repo', 'json', 'verbose')
@tagflow_command
def latest_cmd(subproject, repo, json_output, verbose):
    """Show the highest released version."""
    ctx = build_context(repo, verbose=verbose)
    repository = TagRepository(ctx.store, ctx.naming)

    latest = repository.latest_version(subproject)
    if latest is None:
        raise NoVersionTags(ctx.naming.list_pattern(TagKind.VERSION, subproject))

    outputs = {
        'version': latest.format(),
        'tag_name': ctx.naming.compose(TagKind.VERSION, subproject=subproject, version=latest),
        'commit': repository.version_commit(latest, subproject),
        'state': repository.state_of(latest, subproject).value,
    }
    if subproject:
        outputs['subproject'] = subproject
    _emit_single(outputs, json_output)


@click.command('next-version')
@click.option('--bump', default='patch', show_default=True,
              help='Part to increment: major, minor or patch')
@click.option('--from', 'base', default=None,
              help='Version to increment (default: latest version tag, or 0.0.0)')
@add_common_options('subproject', 'repo', 'json', 'verbose')
@tagflow_command
def next_version_cmd(bump, base, subproject, repo, json_output, verbose):
    """Compute the next version by incrementing the latest one."""
    subproject = validate_subproject(subproject)
    bump = bump.strip().lower()
    if bump not in BUMP_PARTS:
        raise ValidationError(f"Invalid increment type: {bump} (use major, minor or patch)")

    if base and base.strip():
        current = Semver.parse(base.strip())
    else:
        ctx = build_context(repo, verbose=verbose)
        current = TagRepository(ctx.store, ctx.naming).latest_version(subproject)
        if current is None:
            current = Semver(0, 0, 0)

    following = current.bump(bump)
    outputs = {
        'previous_version': current.format(),
        'version': following.format(),
        'tag_name': f"{subproject}/{following.tag}" if subproject else following.tag,
        'bump': bump,
    }
    _emit_single(outputs, json_output)
