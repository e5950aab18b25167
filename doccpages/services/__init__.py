"""
Service layer for doccpages.

Contains the pipeline stages, each orchestrating domain objects and
infrastructure:
- detect_project: Swift Package vs Xcode project
- DocumentationCompiler: docc via the package plugin or xcodebuild
- SitePackager: static-hosting transform, assets, redirect page
- Publisher: artifact upload and deploy under the publish lock
- Pipeline: the four stages in order

Services are the primary API for commands to use.
"""

from .detector import detect_project, find_xcode_projects
from .compiler import DocumentationCompiler
from .packager import SitePackager, redirect_target, render_redirect_page
from .publisher import Publisher
from .pipeline import Pipeline

__all__ = [
    'detect_project',
    'find_xcode_projects',
    'DocumentationCompiler',
    'SitePackager',
    'redirect_target',
    'render_redirect_page',
    'Publisher',
    'Pipeline',
]
