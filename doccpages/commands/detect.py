"""
Detect command for doccpages.

Reports whether a repository is a Swift Package or an Xcode project.
"""

from pathlib import Path

import click

from ..render import render_project
from ..services.detector import detect_project, find_xcode_projects
from .common import add_common_options, emit, fail, load_command_config


@click.command('detect')
@click.argument('root', default='.', type=click.Path(exists=True, file_okay=False, path_type=Path))
@add_common_options
def detect_handler(root: Path, pretty: bool, debug: bool, config_path):
    """
    Detect the project type of ROOT (default: current directory).

    Exits with code 64 when neither Package.swift nor an .xcodeproj exists.

    Examples:

        doccpages detect

        doccpages detect ~/src/MyApp --pretty
    """
    load_command_config(root, config_path, debug, pretty)

    try:
        descriptor = detect_project(root)
    except Exception as e:
        fail(e, pretty)

    candidates = [str(p.relative_to(root)) for p in find_xcode_projects(root)]
    if pretty:
        render_project(descriptor, candidates)
    else:
        data = descriptor.to_dict()
        if candidates:
            data['xcode_projects'] = candidates
        emit(data, pretty)
