"""
doccpages - Build DocC documentation and publish it as a static site.

The pipeline runs four stages, each consuming what the previous produced:

    detect   -> ProjectDescriptor (Swift Package or Xcode project)
    build    -> DocumentationArchive (docc via plugin or xcodebuild)
    package  -> SiteTree (static-hosting transform, assets, redirect page)
    publish  -> Deployment (artifact upload, then deploy)

Quick Start:
    from pathlib import Path
    import doccpages

    config = doccpages.load_config(".")
    pipeline = doccpages.Pipeline(Path("."), config, force=True)
    for message in pipeline.run(publish=False):
        print(message)
    print(pipeline.last_report.to_dict())
"""

__version__ = "0.3.0"

# Domain objects
from .domain import (
    ProjectKind,
    ProjectDescriptor,
    DocumentationArchive,
    SiteTree,
    Artifact,
    Deployment,
    PipelineStage,
    StageStatus,
    PipelineReport,
)

# Services
from .services import (
    detect_project,
    DocumentationCompiler,
    SitePackager,
    Publisher,
    Pipeline,
    redirect_target,
)

# Configuration
from .config import load_config, get_default_config

__all__ = [
    "__version__",
    "ProjectKind",
    "ProjectDescriptor",
    "DocumentationArchive",
    "SiteTree",
    "Artifact",
    "Deployment",
    "PipelineStage",
    "StageStatus",
    "PipelineReport",
    "detect_project",
    "DocumentationCompiler",
    "SitePackager",
    "Publisher",
    "Pipeline",
    "redirect_target",
    "load_config",
    "get_default_config",
]
