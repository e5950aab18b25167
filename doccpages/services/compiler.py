"""
Documentation compiler for doccpages.

Produces a documentation archive for a detected project, using the
swift-docc-plugin for Swift packages and ``xcodebuild docbuild`` for
Xcode projects. Any tool failure propagates; nothing is retried.
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..config import get_default_config
from ..domain import DocumentationArchive, ProjectDescriptor, ProjectKind
from ..exit_codes import BuildError, ProjectNotFoundError, ToolchainError
from ..infra.toolchain import ToolchainClient

logger = logging.getLogger(__name__)


def resolve_path(root: Path, value: str) -> Path:
    """Expand ``~`` and anchor relative paths at the project root."""
    path = Path(value).expanduser()
    return path if path.is_absolute() else Path(root) / path


def first_documentable_target(description: Dict[str, Any]) -> Optional[str]:
    """
    Pick the target to document from ``swift package describe`` output.

    Prefers the first library (``regular``) target, else the first target.
    """
    targets: List[Dict[str, Any]] = description.get('targets') or []
    for target in targets:
        if target.get('type') == 'regular' and target.get('name'):
            return target['name']
    for target in targets:
        if target.get('name'):
            return target['name']
    return None


class DocumentationCompiler:
    """
    Builds DocC documentation for one project.

    Example:
        compiler = DocumentationCompiler(ToolchainClient(), config)
        compiler.check_toolchain()
        archive = compiler.build(descriptor)
    """

    def __init__(self, toolchain: ToolchainClient, config: Optional[Dict[str, Any]] = None):
        self.toolchain = toolchain
        self.config = config or get_default_config()
        self.pipeline_config = self.config['pipeline']
        self.require_docc = self.config['toolchain'].get('require_docc', True)

    def check_toolchain(self) -> Optional[str]:
        """
        Log the Swift version and make sure docc can be found.

        Returns:
            Path to docc, or None when it is missing and require_docc is off

        Raises:
            ToolchainError: If docc is missing and require_docc is on
        """
        version = self.toolchain.swift_version()
        if version:
            logger.info(f"Swift version: {version}")
        else:
            logger.warning("Could not determine Swift version")

        docc = self.toolchain.find_docc()
        if docc:
            logger.debug(f"Using docc at {docc}")
            return docc

        if self.require_docc:
            raise ToolchainError("docc tool not found")
        logger.warning("docc tool not found")
        return None

    def select_target(self, descriptor: ProjectDescriptor) -> str:
        """
        Choose the scheme (Xcode) or target (SwiftPM) to document.

        A configured ``pipeline.scheme`` wins; otherwise the first one
        reported by the toolchain is used.
        """
        configured = self.pipeline_config.get('scheme')
        if configured:
            logger.info(f"Selected Scheme: {configured} (configured)")
            return configured

        if descriptor.kind == ProjectKind.XCODE_PROJECT:
            schemes = self.toolchain.list_schemes(descriptor.project_file)
            logger.info(f"Available Schemes: {', '.join(schemes) if schemes else '(none)'}")
            if not schemes:
                raise BuildError(f"No schemes found in {descriptor.project_file}")
            selected = schemes[0]
        elif descriptor.kind == ProjectKind.SWIFT_PACKAGE:
            selected = first_documentable_target(self.toolchain.describe_package(descriptor.root))
            if not selected:
                raise BuildError(f"No targets found in {descriptor.manifest}")
        else:
            raise ProjectNotFoundError()

        logger.info(f"Selected Scheme: {selected}")
        return selected

    def hosting_base_path(self, target: str) -> str:
        return self.pipeline_config.get('hosting_base_path') or target

    def output_dir(self, root: Path) -> Path:
        return resolve_path(root, self.pipeline_config['output_dir'])

    def derived_data_path(self, root: Path) -> Path:
        return resolve_path(root, self.pipeline_config['derived_data_path'])

    def archive_path(self, root: Path, scheme: str) -> Path:
        """Where xcodebuild puts the archive for the configured build."""
        products = (
            f"{self.pipeline_config.get('configuration', 'Debug')}-"
            f"{self.pipeline_config.get('products_platform', 'iphoneos')}"
        )
        return self.derived_data_path(root) / 'Build' / 'Products' / products / f"{scheme}.doccarchive"

    def build(self, descriptor: ProjectDescriptor) -> DocumentationArchive:
        """
        Build documentation along exactly one path for the descriptor kind.

        Raises:
            BuildError: If a tool fails or no archive is produced
            ProjectNotFoundError: For a NEITHER descriptor
        """
        if descriptor.kind == ProjectKind.SWIFT_PACKAGE:
            return self._build_package(descriptor)
        if descriptor.kind == ProjectKind.XCODE_PROJECT:
            return self._build_xcode_project(descriptor)
        raise ProjectNotFoundError()

    def _build_package(self, descriptor: ProjectDescriptor) -> DocumentationArchive:
        root = descriptor.root
        logger.info("Resolving dependencies for Swift Package...")
        self.toolchain.resolve_package(root)

        target = self.select_target(descriptor)
        output_dir = self.output_dir(root)
        output_dir.mkdir(parents=True, exist_ok=True)

        logger.info("Building DocC documentation for Swift Package...")
        self.toolchain.generate_package_docs(
            root, target, output_dir, self.hosting_base_path(target)
        )
        return DocumentationArchive(
            path=output_dir,
            target=target,
            kind=ProjectKind.SWIFT_PACKAGE,
            static_ready=True,
        )

    def _build_xcode_project(self, descriptor: ProjectDescriptor) -> DocumentationArchive:
        root = descriptor.root
        project_file = descriptor.project_file

        logger.info("Resolving dependencies for Xcode project...")
        self.toolchain.resolve_project(project_file)

        scheme = self.select_target(descriptor)

        logger.info("Building DocC documentation for Xcode project...")
        self.toolchain.docbuild(
            project_file,
            scheme,
            self.derived_data_path(root),
            self.pipeline_config.get('destination', 'generic/platform=iOS'),
        )

        archive = self._locate_archive(root, scheme)
        logger.info(f"Documentation archive: {archive}")
        return DocumentationArchive(
            path=archive,
            target=scheme,
            kind=ProjectKind.XCODE_PROJECT,
            static_ready=False,
        )

    def _locate_archive(self, root: Path, scheme: str) -> Path:
        expected = self.archive_path(root, scheme)
        if expected.is_dir():
            return expected

        derived = self.derived_data_path(root)
        matches = sorted(derived.rglob(f"{scheme}.doccarchive")) if derived.is_dir() else []
        if matches:
            logger.warning(f"Archive not at {expected}, using {matches[0]}")
            return matches[0]

        raise BuildError(f"Documentation archive not found: {expected}")
