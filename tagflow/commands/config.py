import json
from pathlib import Path

import click

from ..cli_utils import tagflow_command
from ..config import get_config_path, get_default_config, load_config, save_config


@click.group("config")
def config_cmd():
    """Configuration management commands."""
    pass


@config_cmd.command("show")
@click.option("--pretty", is_flag=True, help="Display as formatted JSON instead of single-line JSONL")
@click.option("--path", is_flag=True, help="Show the config file path being used")
@tagflow_command
def show_config(pretty, path):
    """Show the current configuration with all merges applied.

    By default, outputs single-line JSON (JSONL format).
    Use --pretty for human-readable formatted output.
    Use --path to see which config file is being used.
    """
    if path:
        print(json.dumps({"config_path": str(get_config_path())}))
        return

    config = load_config()

    if pretty:
        print(json.dumps(config, indent=2, ensure_ascii=False))
    else:
        print(json.dumps(config, ensure_ascii=False))


@config_cmd.command("init")
@click.option("--path", "target", type=click.Path(dir_okay=False), default=None,
              help="File to write (default: .tagflow/config.toml in the current directory)")
@click.option("--force", is_flag=True, help="Overwrite an existing file")
@tagflow_command
def init_config(target, force):
    """Write a configuration file with the default settings.

    The format follows the file suffix: .json, .toml, .yaml or .yml.
    """
    config_path = Path(target) if target else Path.cwd() / '.tagflow' / 'config.toml'
    if config_path.exists() and not force:
        click.echo(f"Configuration already exists at {config_path} (use --force to overwrite)", err=True)
        return

    written = save_config(get_default_config(), config_path)
    print(json.dumps({"config_path": str(written)}))
