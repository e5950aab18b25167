"""
Domain layer for doccpages.

Contains pure domain objects with no I/O or side effects:
- ProjectDescriptor: What kind of project the repository holds
- DocumentationArchive, SiteTree, Artifact, Deployment: What each stage hands on
- PipelineReport: Stage-by-stage record of a run
"""

from .project import (
    ProjectKind,
    ProjectDescriptor,
    DocumentationArchive,
    SiteTree,
    Artifact,
    Deployment,
)
from .pipeline import PipelineStage, StageStatus, StageResult, PipelineReport

__all__ = [
    'ProjectKind',
    'ProjectDescriptor',
    'DocumentationArchive',
    'SiteTree',
    'Artifact',
    'Deployment',
    'PipelineStage',
    'StageStatus',
    'StageResult',
    'PipelineReport',
]
