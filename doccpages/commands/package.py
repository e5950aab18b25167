"""
Package command for doccpages.

Turns an existing documentation archive into a hosting-ready site.
"""

from pathlib import Path

import click

from ..domain import DocumentationArchive, ProjectKind
from ..exit_codes import CommandError, USAGE_ERROR
from ..infra.toolchain import ToolchainClient
from ..services.packager import SitePackager, redirect_target
from .common import add_common_options, emit, fail, load_command_config


@click.command('package')
@click.argument('root', default='.', type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.option('--archive', 'archive_path', required=True,
              type=click.Path(exists=True, file_okay=False, path_type=Path),
              help='Path to the .doccarchive (or plugin output directory)')
@click.option('--target', required=True, help='Scheme or target the archive documents')
@click.option('--static-ready', is_flag=True,
              help='Archive is already transformed for static hosting (skip the transform)')
@add_common_options
def package_handler(
    root: Path,
    archive_path: Path,
    target: str,
    static_ready: bool,
    pretty: bool,
    debug: bool,
    config_path,
):
    """
    Package a documentation archive as a static site.

    Copies the theme assets, writes the root redirect page and, unless
    --static-ready is given, runs `docc process-archive
    transform-for-static-hosting` first.

    Examples:

        doccpages package --archive /tmp/docbuild/Build/Products/Debug-iphoneos/MyApp.doccarchive --target MyApp
    """
    config = load_command_config(root, config_path, debug, pretty)

    try:
        redirect_target(target)
    except ValueError as e:
        fail(CommandError(str(e), USAGE_ERROR), pretty)

    archive = DocumentationArchive(
        path=archive_path,
        target=target,
        kind=ProjectKind.SWIFT_PACKAGE if static_ready else ProjectKind.XCODE_PROJECT,
        static_ready=static_ready,
    )
    packager = SitePackager(ToolchainClient(config['toolchain']), config)

    try:
        site = packager.package(archive, root)
    except Exception as e:
        fail(e, pretty)

    emit(site.to_dict(), pretty, title="Static Site")
