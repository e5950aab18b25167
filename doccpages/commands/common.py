"""
Shared helpers for doccpages commands.
"""

import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, Optional

import click

from ..config import load_config
from ..exit_codes import CommandError, get_exit_code_for_exception
from ..render import render_error, render_result


def add_common_options(func):
    """
    Decorator to add the options every command accepts.

    Adds:
    - --pretty: Rich output instead of JSON lines
    - --debug: Debug logging
    - --config: Explicit configuration file
    """
    # Add options in reverse order (they get applied bottom-up)
    func = click.option("--config", "config_path", type=click.Path(exists=True, dir_okay=False, path_type=Path),
                        help="Configuration file (default: .doccpages.yaml or ~/.doccpages/config.yaml)")(func)
    func = click.option("--debug", is_flag=True, help="Enable debug logging")(func)
    func = click.option("--pretty", is_flag=True, help="Display with rich formatting")(func)
    return func


def setup_logging(debug: bool, config: Optional[Dict[str, Any]] = None) -> None:
    level_name = 'DEBUG' if debug else (config or {}).get('logging', {}).get('level', 'INFO')
    level = getattr(logging, str(level_name).upper(), logging.INFO)
    logging.getLogger('doccpages').setLevel(level)
    if debug:
        logging.getLogger().setLevel(logging.DEBUG)


def load_command_config(root: Path, config_path: Optional[Path], debug: bool, pretty: bool) -> Dict[str, Any]:
    """Load config for a command, exiting with CONFIG_ERROR if it does not parse."""
    setup_logging(debug)
    try:
        config = load_config(root, config_path)
    except CommandError as e:
        fail(e, pretty)
    setup_logging(debug, config)
    return config


def apply_cli_overrides(
    config: Dict[str, Any],
    scheme: Optional[str] = None,
    xcode_version: Optional[str] = None,
    allow_missing_docc: bool = False,
    hosting: Optional[str] = None,
    pages_directory: Optional[str] = None
) -> Dict[str, Any]:
    """Fold command-line options into the loaded config."""
    if scheme:
        config['pipeline']['scheme'] = scheme
    if xcode_version:
        config['toolchain']['xcode_version'] = xcode_version
    if allow_missing_docc:
        config['toolchain']['require_docc'] = False
    if hosting:
        config['pages']['target'] = hosting
    if pages_directory:
        config['pages']['directory'] = pages_directory
    return config


def emit(data: Dict[str, Any], pretty: bool, title: str = "Result") -> None:
    """Write one result: a JSON line on stdout, or a rich table."""
    if pretty:
        render_result(data, title)
    else:
        print(json.dumps(data), flush=True)


def progress(message: str) -> None:
    click.echo(message, err=True)


def fail(error: Exception, pretty: bool):
    """
    Report an error as JSON on stderr and exit.

    CommandErrors carry their own type and exit code; anything else is
    reported by class name and mapped through get_exit_code_for_exception.
    """
    if isinstance(error, CommandError):
        payload = error.to_dict()
    else:
        payload = {'error': str(error), 'type': type(error).__name__}
    if pretty:
        render_error(payload)
    else:
        print(json.dumps(payload), file=sys.stderr, flush=True)
    sys.exit(get_exit_code_for_exception(error))
