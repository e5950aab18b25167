"""
Project and artifact domain objects for doccpages.

Each object here is created once during a single run, handed to the next
stage and then discarded. They are frozen so no stage can mutate what an
earlier stage produced.
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Dict, Any, Optional


class ProjectKind(Enum):
    """Classification of the repository being documented."""
    SWIFT_PACKAGE = "swift_package"
    XCODE_PROJECT = "xcode_project"
    NEITHER = "neither"


@dataclass(frozen=True)
class ProjectDescriptor:
    """
    Result of project-type detection.

    Attributes:
        kind: Which build strategy applies
        root: Repository root that was inspected
        project_file: The selected .xcodeproj (Xcode projects only)
        manifest: Path to Package.swift (Swift packages only)
    """
    kind: ProjectKind
    root: Path
    project_file: Optional[Path] = None
    manifest: Optional[Path] = None

    @property
    def is_swift_package(self) -> bool:
        return self.kind == ProjectKind.SWIFT_PACKAGE

    @property
    def is_xcode_project(self) -> bool:
        return self.kind == ProjectKind.XCODE_PROJECT

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result = {
            'kind': self.kind.value,
            'root': str(self.root),
            'is_swift_package': self.is_swift_package,
        }
        if self.project_file:
            result['project_file'] = str(self.project_file)
        if self.manifest:
            result['manifest'] = str(self.manifest)
        return result


@dataclass(frozen=True)
class DocumentationArchive:
    """
    Output of the documentation compiler.

    For Xcode projects this is the .doccarchive bundle under derived data.
    For Swift packages the plugin writes hosting-ready output directly,
    so ``static_ready`` is True and ``path`` is the output directory.
    """
    path: Path
    target: str
    kind: ProjectKind
    static_ready: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            'path': str(self.path),
            'target': self.target,
            'kind': self.kind.value,
            'static_ready': self.static_ready,
        }


@dataclass(frozen=True)
class SiteTree:
    """The hosting-ready output directory."""
    root: Path
    target: str
    assets_dir: Path
    redirect_page: Path

    def to_dict(self) -> Dict[str, Any]:
        return {
            'root': str(self.root),
            'target': self.target,
            'assets_dir': str(self.assets_dir),
            'redirect_page': str(self.redirect_page),
        }


@dataclass(frozen=True)
class Artifact:
    """A packed site tree ready for upload."""
    path: Path
    site_root: Path
    size: int
    sha256: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            'path': str(self.path),
            'site_root': str(self.site_root),
            'size': self.size,
            'sha256': self.sha256,
        }


@dataclass(frozen=True)
class Deployment:
    """A published artifact on a hosting target."""
    target_name: str
    url: Optional[str] = None
    ref: Optional[str] = None  # commit hash or directory

    def to_dict(self) -> Dict[str, Any]:
        result = {'target': self.target_name, 'url': self.url}
        if self.ref:
            result['ref'] = self.ref
        return result
