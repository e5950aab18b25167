"""
Build command for doccpages.

Detects the project and compiles its DocC documentation.
"""

from pathlib import Path
from typing import Optional

import click

from ..infra.toolchain import ToolchainClient
from ..services.compiler import DocumentationCompiler
from ..services.detector import detect_project
from .common import add_common_options, apply_cli_overrides, emit, fail, load_command_config, progress


@click.command('build')
@click.argument('root', default='.', type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.option('--scheme', help='Scheme or target to document (default: first one listed)')
@click.option('--xcode-version', help='Xcode version to build with, e.g. 15.1.0')
@click.option('--allow-missing-docc', is_flag=True, help='Only warn when docc cannot be found')
@add_common_options
def build_handler(
    root: Path,
    scheme: Optional[str],
    xcode_version: Optional[str],
    allow_missing_docc: bool,
    pretty: bool,
    debug: bool,
    config_path,
):
    """
    Build DocC documentation for ROOT.

    Swift packages are documented with the swift-docc-plugin straight into
    the output directory; Xcode projects with `xcodebuild docbuild`.

    Examples:

        doccpages build

        doccpages build --scheme MyKit --xcode-version 15.1.0
    """
    config = load_command_config(root, config_path, debug, pretty)
    apply_cli_overrides(config, scheme=scheme, xcode_version=xcode_version,
                        allow_missing_docc=allow_missing_docc)

    toolchain = ToolchainClient(config['toolchain'])
    compiler = DocumentationCompiler(toolchain, config)

    try:
        descriptor = detect_project(root)
        if config['toolchain'].get('xcode_version'):
            toolchain.select_xcode(str(config['toolchain']['xcode_version']))
        compiler.check_toolchain()
        progress(f"Building documentation for {descriptor.kind.value}...")
        archive = compiler.build(descriptor)
    except Exception as e:
        fail(e, pretty)

    emit(archive.to_dict(), pretty, title="Documentation Archive")
