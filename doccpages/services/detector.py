"""
Project-type detection for doccpages.

Decides whether a repository is a Swift Package or an Xcode project,
which in turn selects the build strategy.
"""

import os
import logging
from pathlib import Path
from typing import List

from ..domain import ProjectDescriptor, ProjectKind
from ..exit_codes import ProjectNotFoundError

logger = logging.getLogger(__name__)

PACKAGE_MANIFEST = "Package.swift"

# Never descend into build output or vendored dependencies
SKIP_DIRECTORIES = {
    '.git', '.build', '.swiftpm', 'DerivedData', 'Pods', 'Carthage',
    'node_modules',
}


def find_xcode_projects(root: Path) -> List[Path]:
    """
    Find *.xcodeproj bundles below ``root``.

    Results are ordered shallowest first, then by path, so the first
    entry is stable for a given tree.
    """
    root = Path(root)
    found: List[Path] = []

    for dirpath, dirnames, _ in os.walk(root):
        kept = []
        for name in dirnames:
            if name.endswith('.xcodeproj'):
                found.append(Path(dirpath) / name)
            elif name not in SKIP_DIRECTORIES and not name.endswith(('.xcworkspace', '.app')):
                kept.append(name)
        # Prune in place so os.walk skips bundles and excluded dirs
        dirnames[:] = kept

    return sorted(found, key=lambda p: (len(p.relative_to(root).parts), str(p.relative_to(root))))


def detect_project(root: Path) -> ProjectDescriptor:
    """
    Classify the repository at ``root``.

    A Package.swift at the root takes precedence over any Xcode project,
    so only one build path is ever chosen.

    Raises:
        ProjectNotFoundError: If neither a manifest nor a project file exists
    """
    root = Path(root)
    if not root.is_dir():
        raise ProjectNotFoundError(f"Not a directory: {root}")

    manifest = root / PACKAGE_MANIFEST
    if manifest.is_file():
        logger.info("This is a Swift Package.")
        return ProjectDescriptor(kind=ProjectKind.SWIFT_PACKAGE, root=root, manifest=manifest)

    projects = find_xcode_projects(root)
    if projects:
        project_file = projects[0]
        if len(projects) > 1:
            logger.warning(
                f"Found {len(projects)} Xcode projects, using {project_file.relative_to(root)}"
            )
        logger.info(f"Found Xcode project: {project_file}")
        return ProjectDescriptor(
            kind=ProjectKind.XCODE_PROJECT, root=root, project_file=project_file
        )

    raise ProjectNotFoundError(
        f"Neither a Swift Package nor an Xcode project found in {root}"
    )
