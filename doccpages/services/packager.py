"""
Static-site packager for doccpages.

Turns a documentation archive into a tree a plain file server can host:
static-hosting transform (Xcode archives only), theme assets, and a root
redirect page pointing at the documentation for the selected target.
"""

import json
import logging
import re
import shutil
from pathlib import Path
from typing import Any, Dict, Iterable, Optional

from ..config import get_default_config
from ..domain import DocumentationArchive, SiteTree
from ..exit_codes import AssetsNotFoundError, BuildError
from ..infra.toolchain import ToolchainClient
from .compiler import resolve_path

logger = logging.getLogger(__name__)

ASSETS_DIRNAME = "Assets"
REDIRECT_PAGE = "index.html"

_UNSAFE_TARGET = re.compile(r'[/\\?#%"\'<>\s\x00-\x1f\x7f]')

REDIRECT_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<title>{title}</title>
<script>window.location.href += {target_js}</script>
</head>
<body>
<noscript><a href=".{target}">{title}</a></noscript>
</body>
</html>
"""


def redirect_target(target: str) -> str:
    """
    Path the root page forwards to: ``/documentation/<target>``.

    Raises:
        ValueError: For empty names or names with path-unsafe characters
    """
    if not target or target in ('.', '..') or '..' in target:
        raise ValueError(f"Invalid documentation target name: {target!r}")
    if _UNSAFE_TARGET.search(target):
        raise ValueError(f"Documentation target name is not path-safe: {target!r}")
    return f"/documentation/{target}"


def render_redirect_page(target: str) -> str:
    """HTML for the site root that appends the documentation path to the current URL."""
    path = redirect_target(target)
    return REDIRECT_TEMPLATE.format(
        title=f"{target} Documentation",
        target=path,
        target_js=json.dumps(path),
    )


class SitePackager:
    """
    Builds the static site tree from a documentation archive.

    Example:
        packager = SitePackager(ToolchainClient(), config)
        site = packager.package(archive, Path("."))
        packager.cleanup([Path("/tmp/docbuild")])
    """

    def __init__(self, toolchain: ToolchainClient, config: Optional[Dict[str, Any]] = None):
        self.toolchain = toolchain
        self.config = config or get_default_config()
        self.pipeline_config = self.config['pipeline']

    def assets_source(self, root: Path) -> Path:
        return resolve_path(root, self.pipeline_config['assets_dir'])

    def output_dir(self, root: Path) -> Path:
        return resolve_path(root, self.pipeline_config['output_dir'])

    def package(self, archive: DocumentationArchive, root: Path) -> SiteTree:
        """
        Produce the hosting-ready site under the output directory.

        The assets check runs first so a missing theme fails before
        anything is written.

        Raises:
            AssetsNotFoundError: If the assets directory is missing
            BuildError: If the target name is not path-safe or the
                static-hosting transform fails
        """
        root = Path(root)
        assets = self.assets_source(root)
        logger.info("Checking if Assets directory exists...")
        if not assets.is_dir():
            raise AssetsNotFoundError(assets)

        try:
            redirect_target(archive.target)
        except ValueError as e:
            raise BuildError(str(e)) from e

        output = self.output_dir(root)
        if not archive.static_ready:
            base_path = self.pipeline_config.get('hosting_base_path') or archive.target
            logger.info("Processing DocC archive...")
            self.toolchain.transform_for_static_hosting(archive.path, output, base_path)
        elif archive.path.resolve() != output.resolve():
            logger.info(f"Copying {archive.path} to {output}...")
            shutil.copytree(archive.path, output, dirs_exist_ok=True)
        output.mkdir(parents=True, exist_ok=True)

        assets_dest = output / ASSETS_DIRNAME
        logger.info(f"Copying Assets to {assets_dest}...")
        shutil.copytree(assets, assets_dest, dirs_exist_ok=True)

        redirect = output / REDIRECT_PAGE
        redirect.write_text(render_redirect_page(archive.target), encoding='utf-8')
        logger.debug(f"Wrote redirect page to {redirect_target(archive.target)}")

        return SiteTree(
            root=output,
            target=archive.target,
            assets_dir=assets_dest,
            redirect_page=redirect,
        )

    def cleanup(self, paths: Iterable[Path]) -> None:
        """Remove temporary build directories. Never touches the site tree."""
        for path in paths:
            path = Path(path)
            if path.exists():
                logger.info(f"Cleaning up {path}")
                shutil.rmtree(path, ignore_errors=True)
