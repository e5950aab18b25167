import json
from pathlib import Path

import click

from ..config import get_config_path, get_default_config, load_config, save_config
from ..exit_codes import CommandError
from .common import fail


@click.group("config")
def config_cmd():
    """Configuration management commands."""
    pass


@config_cmd.command("show")
@click.argument('root', default='.', type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.option("--pretty", is_flag=True, help="Display as formatted JSON instead of single-line JSONL")
@click.option("--path", is_flag=True, help="Show the config file path being used")
def show_config(root, pretty, path):
    """Show the effective configuration with all merges applied.

    By default, outputs single-line JSON (JSONL format).
    Use --pretty for human-readable formatted output.
    Use --path to see which config file is being used.
    """
    if path:
        config_path = get_config_path(root)
        print(json.dumps({"config_path": str(config_path) if config_path else None}))
        return

    try:
        config = load_config(root)
    except CommandError as e:
        fail(e, pretty)

    # Never echo the token
    if config['pages'].get('token'):
        config['pages']['token'] = '***'

    if pretty:
        print(json.dumps(config, indent=2, ensure_ascii=False))
    else:
        print(json.dumps(config, ensure_ascii=False))


@config_cmd.command("init")
@click.argument('root', default='.', type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.option("--force", is_flag=True, help="Overwrite an existing .doccpages.yaml")
def init_config(root, force):
    """Write a .doccpages.yaml with the default settings."""
    config_path = root / '.doccpages.yaml'
    if config_path.exists() and not force:
        click.echo(f"Configuration already exists at {config_path}", err=True)
        return
    save_config(get_default_config(), config_path)
    click.echo(f"Configuration written to {config_path}", err=True)
