#!/usr/bin/env python3

import click

from tagflow.commands.assign import assign_cmd
from tagflow.commands.config import config_cmd
from tagflow.commands.protect import check_push_cmd
from tagflow.commands.query import (
    current_cmd,
    latest_cmd,
    list_cmd,
    next_version_cmd,
    state_of_cmd,
)
from tagflow.commands.rollback import rollback_target_cmd
from tagflow.commands.status import status_cmd, validate_cmd


@click.group()
@click.version_option(package_name='tagflow')
def cli():
    """tagflow - Release lifecycle tracking with git tags.

    Version tags (v1.2.3) and state tags (v1.2.3-stable) are immutable;
    environment tags (production, staging, ...) move on every deploy.
    Answers what version a commit is, what is running where, and what to
    roll back to.
    """
    pass


# Mutations
cli.add_command(assign_cmd)

# Queries
cli.add_command(list_cmd)
cli.add_command(current_cmd)
cli.add_command(state_of_cmd)
cli.add_command(latest_cmd)
cli.add_command(next_version_cmd)
cli.add_command(rollback_target_cmd)
cli.add_command(status_cmd)
cli.add_command(validate_cmd)

# Hooks and configuration
cli.add_command(check_push_cmd)
cli.add_command(config_cmd)


def main():
    cli()

if __name__ == "__main__":
    main()
