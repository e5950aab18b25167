"""
Publish command for doccpages.

Uploads and deploys an already packaged site tree.
"""

from pathlib import Path
from typing import Optional

import click

from ..domain import SiteTree
from ..services.compiler import resolve_path
from ..services.packager import ASSETS_DIRNAME, REDIRECT_PAGE
from ..services.publisher import Publisher
from .common import add_common_options, apply_cli_overrides, emit, fail, load_command_config, progress


@click.command('publish')
@click.argument('root', default='.', type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.option('--site', 'site_dir', type=click.Path(path_type=Path),
              help='Site directory to publish (default: pipeline.output_dir)')
@click.option('--hosting', type=click.Choice(['branch', 'directory']),
              help='Deployment target (default: pages.target)')
@click.option('--pages-directory', help='Destination for the directory target')
@add_common_options
def publish_handler(
    root: Path,
    site_dir: Optional[Path],
    hosting: Optional[str],
    pages_directory: Optional[str],
    pretty: bool,
    debug: bool,
    config_path,
):
    """
    Upload and deploy a packaged site.

    Only one publish per concurrency group runs at a time; a newer
    publish cancels an older one still in progress.

    Examples:

        doccpages publish

        doccpages publish --hosting directory --pages-directory /srv/docs
    """
    config = load_command_config(root, config_path, debug, pretty)
    apply_cli_overrides(config, hosting=hosting, pages_directory=pages_directory)

    site_root = site_dir if site_dir else resolve_path(root, config['pipeline']['output_dir'])
    site = SiteTree(
        root=site_root,
        target='',
        assets_dir=site_root / ASSETS_DIRNAME,
        redirect_page=site_root / REDIRECT_PAGE,
    )

    try:
        publisher = Publisher(root, config)
        progress(f"Publishing {site_root}...")
        deployment = publisher.publish(site)
    except Exception as e:
        fail(e, pretty)

    emit(deployment.to_dict(), pretty, title="Deployment")
